"""
Data stream writer for the Vercel AI SDK ``useChat`` client.

Every part is one line ``<code>:<json>\\n``:

    0  text delta            2  data parts (list)
    3  error message         8  message annotations (list)
    9  tool call             a  tool result
    f  step start            e  step finish
    d  message finish
"""
import asyncio
import json
import logging
import re
import time
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

DATA_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
    "X-Vercel-AI-Data-Stream": "v1",
}
DATA_STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"

THINK_TAG_RE = re.compile(r"<think>([\s\S]*?)</think>")


def format_part(code: str, value: Any) -> str:
    return f"{code}:{json.dumps(value, default=str)}\n"


class DataStreamWriter:
    """
    Queue-backed writer shared by the chat loop, the tools and the
    document handlers of one request.

    Tool lifecycle is tracked as ``idle`` -> ``executing`` -> ``streaming``
    -> ``idle`` and every data part is kept in an event log.
    """

    def __init__(self, queue: Optional[asyncio.Queue] = None):
        self.queue = queue or asyncio.Queue()
        self.closed = False
        self.tool_execution_state = "idle"
        self.current_tool_id: Optional[str] = None
        self.event_log: List[Dict[str, Any]] = []

    def _put(self, line: str) -> None:
        if self.closed:
            logger.debug(f"Dropping write after close: {line[:40]!r}")
            return
        self.queue.put_nowait(line)

    def write_text(self, text: str) -> None:
        self._put(format_part("0", text))

    def write_data(self, data: Dict[str, Any]) -> None:
        self.event_log.append({"type": data.get("type", "unknown"), "data": data, "timestamp": time.time()})
        self._put(format_part("2", [data]))

    def write_error(self, message: str) -> None:
        self._put(format_part("3", message))

    def write_message_annotation(self, annotation: Dict[str, Any]) -> None:
        self._put(format_part("8", [annotation]))

    def write_tool_call(self, tool_call_id: str, tool_name: str, args: Any) -> None:
        self._put(format_part("9", {"toolCallId": tool_call_id, "toolName": tool_name, "args": args}))

    def write_tool_result(self, tool_call_id: str, result: Any) -> None:
        self._put(format_part("a", {"toolCallId": tool_call_id, "result": result}))

    def write_start_step(self, message_id: str) -> None:
        self._put(format_part("f", {"messageId": message_id}))

    def write_finish_step(self, finish_reason: str, usage: Dict[str, int], is_continued: bool = False) -> None:
        self._put(format_part("e", {
            "finishReason": finish_reason,
            "usage": usage,
            "isContinued": is_continued,
        }))

    def write_finish_message(self, finish_reason: str, usage: Dict[str, int]) -> None:
        self._put(format_part("d", {"finishReason": finish_reason, "usage": usage}))

    def write_tool_start(self, tool_id: str, tool_name: str) -> None:
        self.tool_execution_state = "executing"
        self.current_tool_id = tool_id
        self.write_data({"type": "tool-start", "data": {"id": tool_id, "name": tool_name}})

    def write_tool_content_delta(self, content: str) -> None:
        """Stream output produced while a tool runs (nested completions)"""
        self.tool_execution_state = "streaming"
        self.write_data({"type": "text-delta", "content": content})

    def write_tool_complete(self, tool_id: str, result: Any) -> None:
        self.tool_execution_state = "idle"
        self.current_tool_id = None
        self.write_data({"type": "tool-complete", "data": {"id": tool_id, "result": result}})

    def write_tool_error(self, tool_id: str, error: str) -> None:
        self.tool_execution_state = "idle"
        self.current_tool_id = None
        self.write_data({"type": "tool-error", "data": {"id": tool_id, "error": error}})

    def get_all_events(self) -> List[Dict[str, Any]]:
        return list(self.event_log)

    def clear_event_log(self) -> None:
        self.event_log = []

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            # None marks the end of the stream for the consumer
            self.queue.put_nowait(None)


async def create_data_stream(
    execute: Callable[[DataStreamWriter], Awaitable[None]],
    on_error: Optional[Callable[[Exception], str]] = None,
) -> AsyncGenerator[str, None]:
    """
    Run ``execute(writer)`` in a background task and yield the lines it writes

    Args:
        execute: Coroutine function producing the stream content
        on_error: Maps an exception from ``execute`` to the error message sent
            to the client; the exception text is sent by default

    Yields:
        Protocol lines in the order they were written
    """
    writer = DataStreamWriter()

    async def run() -> None:
        try:
            await execute(writer)
        except Exception as e:
            logger.error(f"Data stream error: {type(e).__name__}: {str(e)}", exc_info=True)
            writer.write_error(on_error(e) if on_error else str(e) or type(e).__name__)
        finally:
            writer.close()

    task = asyncio.create_task(run())
    try:
        while True:
            line = await writer.queue.get()
            if line is None:
                break
            yield line
    finally:
        if not task.done():
            # Client went away before the producer finished
            logger.info("Client disconnected, cancelling data stream task")
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


def extract_reasoning_tokens(content: str) -> Dict[str, str]:
    """Split ``<think>`` blocks of reasoning-model output from the answer"""
    reasoning = "\n\n".join(THINK_TAG_RE.findall(content))
    return {"reasoning": reasoning, "content": THINK_TAG_RE.sub("", content).strip()}

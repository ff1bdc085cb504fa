"""
Tool registry and the tool-calling chat loop.

``stream_chat_with_tools`` sends the conversation to OpenRouter, relays
content deltas, collects streamed tool calls, runs them one by one and
resubmits the conversation with their results until the model answers
without tools or the step limit is reached.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Dict, List, Optional

from pydantic import ValidationError

from app.ai.openrouter_client import OpenRouterClient, get_openrouter_client
from app.tools import BaseTool, ToolError, ToolExecutionContext, default_tools

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 5


@dataclass
class ToolExecutionResult:
    success: bool
    result: Any = None
    error: Optional[str] = None


class ToolRegistry:
    """Tools by name, with their OpenAI function definitions"""

    def __init__(self):
        self._tools: Dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        logger.info(f"Registering tool: {tool.name}")
        self._tools[tool.name] = tool

    def register_tools(self, tools: List[BaseTool]) -> None:
        for tool in tools:
            self.register(tool)

    def get_tool(self, name: str) -> Optional[BaseTool]:
        return self._tools.get(name)

    def get_definition(self, name: str) -> Optional[Dict[str, Any]]:
        tool = self._tools.get(name)
        return tool.to_openai_tool() if tool else None

    def get_all_definitions(self) -> List[Dict[str, Any]]:
        return [tool.to_openai_tool() for tool in self._tools.values()]

    def get_tool_names(self) -> List[str]:
        return list(self._tools)

    def definitions_for(self, names: List[str]) -> List[Dict[str, Any]]:
        """Definitions for the given names, skipping unregistered ones"""
        definitions = []
        for name in names:
            definition = self.get_definition(name)
            if definition is None:
                logger.warning(f"Tool '{name}' is not registered, leaving it out")
                continue
            definitions.append(definition)
        return definitions


tool_registry = ToolRegistry()
tool_registry.register_tools(default_tools())


async def execute_tool_call(
    tool_call: Dict[str, Any],
    context: ToolExecutionContext,
    registry: Optional[ToolRegistry] = None,
) -> ToolExecutionResult:
    """
    Run one tool call and report its lifecycle on the data stream

    Args:
        tool_call: OpenAI-format call ``{id, type, function: {name, arguments}}``
        context: Execution context shared by the tools of this request
        registry: Registry to look the tool up in, the global one by default

    Returns:
        ToolExecutionResult; failures are returned, never raised
    """
    registry = registry or tool_registry
    call_id = tool_call["id"]
    name = tool_call["function"]["name"]
    data_stream = context.data_stream

    tool = registry.get_tool(name)
    if tool is None:
        error = f"Tool '{name}' not found"
        logger.error(error)
        if data_stream:
            data_stream.write_tool_error(call_id, error)
        return ToolExecutionResult(success=False, error=error)

    logger.info(f"Executing tool: {name}")
    if data_stream:
        data_stream.write_tool_start(call_id, name)

    try:
        raw_arguments = tool_call["function"].get("arguments") or "{}"
        arguments = json.loads(raw_arguments)
        if not isinstance(arguments, dict):
            raise ToolError("Tool arguments must be a JSON object")
        validated = tool.input_schema.model_validate(arguments)
        result = await tool.execute(context, **validated.model_dump())
    except json.JSONDecodeError as e:
        error = f"Invalid tool arguments: {e.msg}"
    except ValidationError as e:
        error = f"Invalid tool arguments: {e.errors(include_url=False)}"
    except ToolError as e:
        error = str(e)
    except Exception as e:
        logger.error(f"Tool '{name}' execution error: {type(e).__name__}: {str(e)}", exc_info=True)
        error = str(e) or type(e).__name__
    else:
        logger.info(f"Tool '{name}' executed successfully")
        if data_stream:
            data_stream.write_tool_complete(call_id, result)
        return ToolExecutionResult(success=True, result=result)

    logger.info(f"Tool '{name}' failed: {error}")
    if data_stream:
        data_stream.write_tool_error(call_id, error)
    return ToolExecutionResult(success=False, error=error)


async def process_tool_calls(
    tool_calls: List[Dict[str, Any]],
    context: ToolExecutionContext,
    registry: Optional[ToolRegistry] = None,
) -> List[Dict[str, Any]]:
    """Run tool calls in order and build the ``role=tool`` messages for them"""
    results = []
    for tool_call in tool_calls:
        outcome = await execute_tool_call(tool_call, context, registry)
        results.append({
            "role": "tool",
            "tool_call_id": tool_call["id"],
            "content": json.dumps(outcome.result, default=str) if outcome.success else f"Error: {outcome.error}",
        })
    return results


def _add_usage(total: Dict[str, int], usage: Any) -> None:
    for key in ("prompt_tokens", "completion_tokens", "total_tokens"):
        total[key] += getattr(usage, key, 0) or 0


async def stream_chat_with_tools(
    messages: List[Dict[str, Any]],
    model_key: str,
    context: ToolExecutionContext,
    tools: Optional[List[str]] = None,
    max_steps: int = DEFAULT_MAX_STEPS,
    client: Optional[OpenRouterClient] = None,
    registry: Optional[ToolRegistry] = None,
    **sampling,
) -> AsyncGenerator[Dict[str, Any], None]:
    """
    Stream a chat completion with tool support

    Args:
        messages: OpenAI-format conversation, system prompt included
        model_key: Key into the OpenRouter model mapping
        context: Execution context passed to every tool
        tools: Names of the tools the model may call
        max_steps: Upper bound on model round trips
        client: OpenRouter client, the shared one by default
        registry: Tool registry, the global one by default
        **sampling: temperature / max_tokens / top_p overrides

    Yields:
        ``{"type": "content" | "tool_call" | "tool_result" | "finish", "data": ...}``;
        exactly one ``finish`` event ends the stream
    """
    client = client or get_openrouter_client()
    registry = registry or tool_registry
    tool_definitions = registry.definitions_for(tools or [])
    current_messages = list(messages)
    usage = {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}
    step_count = 0

    while step_count < max_steps:
        step_count += 1
        logger.info(f"Step {step_count}: sending {len(tool_definitions)} tools to API")

        assistant_message = ""
        tool_calls: Dict[int, Dict[str, Any]] = {}

        async for chunk in client.stream_chat_completion(
            model_key, current_messages, tools=tool_definitions, **sampling
        ):
            if getattr(chunk, "usage", None):
                _add_usage(usage, chunk.usage)
            if not chunk.choices:
                continue

            delta = chunk.choices[0].delta
            if delta.content:
                assistant_message += delta.content
                yield {"type": "content", "data": delta.content}

            for tool_call_delta in delta.tool_calls or []:
                index = tool_call_delta.index
                function = tool_call_delta.function
                call = tool_calls.get(index)
                if call is None:
                    call = tool_calls[index] = {
                        "id": tool_call_delta.id or "",
                        "type": "function",
                        "function": {
                            "name": (function.name if function else None) or "",
                            "arguments": (function.arguments if function else None) or "",
                        },
                    }
                else:
                    if tool_call_delta.id and not call["id"]:
                        call["id"] = tool_call_delta.id
                    if function and function.name and not call["function"]["name"]:
                        call["function"]["name"] = function.name
                    if function and function.arguments:
                        call["function"]["arguments"] += function.arguments

                yield {
                    "type": "tool_call",
                    "data": {
                        "id": call["id"],
                        "name": call["function"]["name"],
                        "arguments": call["function"]["arguments"],
                    },
                }

        if not tool_calls:
            yield {
                "type": "finish",
                "data": {
                    "content": assistant_message,
                    "usage": usage,
                    "finish_reason": "stop",
                    "steps": step_count,
                },
            }
            return

        ordered_calls = [tool_calls[index] for index in sorted(tool_calls)]
        logger.info(f"Executing {len(ordered_calls)} tool calls: {[c['function']['name'] for c in ordered_calls]}")
        tool_results = await process_tool_calls(ordered_calls, context, registry)

        current_messages.append({
            "role": "assistant",
            "content": assistant_message or None,
            "tool_calls": ordered_calls,
        })
        current_messages.extend(tool_results)

        for result in tool_results:
            yield {
                "type": "tool_result",
                "data": {"tool_call_id": result["tool_call_id"], "content": result["content"]},
            }

    logger.warning(f"Tool loop stopped after {max_steps} steps")
    yield {
        "type": "finish",
        "data": {
            "content": "",
            "usage": usage,
            "finish_reason": "max_steps",
            "steps": step_count,
        },
    }

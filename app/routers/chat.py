import json
import logging
import time
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app import database
from app.ai.entitlements import get_entitlements
from app.ai.model_router import UserContext, select_model_with_routing
from app.ai.performance import ModelPerformanceMetric, calculate_cost, performance_monitor
from app.ai.prompts import system_prompt
from app.ai.stream_writer import (
    DATA_STREAM_HEADERS,
    DATA_STREAM_MEDIA_TYPE,
    DataStreamWriter,
    create_data_stream,
    extract_reasoning_tokens,
)
from app.ai.title import generate_title_from_user_message
from app.ai.tools_handler import stream_chat_with_tools
from app.config import settings
from app.database import get_db
from app.errors import ChatSDKError
from app.models.chat import Chat, Message
from app.models.user import User
from app.schemas.chat import (
    ChatModelSelection,
    ChatRequest,
    ChatResponse,
    MessageResponse,
    RequestHints,
    VisibilityUpdate,
)
from app.services.chat_service import ChatService
from app.tools.base import ToolExecutionContext
from app.utils.auth import get_current_user, get_current_user_or_guest
from app.utils.message_formatting import ui_messages_to_model_messages
from app.utils.session import MODEL_COOKIE_NAME, session_manager

router = APIRouter(prefix="/api/chat", tags=["chat"])

logger = logging.getLogger(__name__)

CHAT_TOOLS = ["getWeather", "createDocument", "updateDocument", "requestSuggestions"]
STREAM_ERROR_MESSAGE = "An error occurred while processing your request."
RESUME_WINDOW_SECONDS = 15

# Loop finish reasons as the AI SDK client names them
FINISH_REASONS = {"stop": "stop", "max_steps": "tool-calls"}


def request_hints_from_headers(request: Request) -> RequestHints:
    """Geolocation hints set by the edge proxy, if any"""
    headers = request.headers
    return RequestHints(
        latitude=headers.get("x-vercel-ip-latitude"),
        longitude=headers.get("x-vercel-ip-longitude"),
        city=headers.get("x-vercel-ip-city"),
        country=headers.get("x-vercel-ip-country"),
    )


def message_to_ui(message: Message) -> Dict[str, Any]:
    return {
        "id": str(message.id),
        "role": message.role,
        "parts": message.parts,
        "attachments": message.attachments,
        "createdAt": message.createdAt,
    }


def can_read_chat(chat: Chat, user: Optional[User]) -> bool:
    if chat.visibility == "public":
        return True
    return user is not None and chat.userId == user.id


def build_assistant_parts(
    content: str, tool_invocations: List[Dict[str, Any]], reasoning_model: bool
) -> List[Dict[str, Any]]:
    """Parts of the assistant message saved once the stream finishes"""
    parts = []
    if reasoning_model:
        extracted = extract_reasoning_tokens(content)
        if extracted["reasoning"]:
            parts.append({"type": "reasoning", "reasoning": extracted["reasoning"]})
        content = extracted["content"]

    for invocation in tool_invocations:
        parts.append({"type": "tool-invocation", "toolInvocation": invocation})

    if content:
        parts.append({"type": "text", "text": content})
    return parts


def _parse_tool_output(content: str) -> Any:
    if content.startswith("Error: "):
        return {"error": content[len("Error: "):]}
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return content


async def run_chat_stream(
    writer: DataStreamWriter,
    *,
    chat_id: UUID,
    user: User,
    selected_chat_model: str,
    model_messages: List[Dict[str, Any]],
    request_hints: RequestHints,
) -> None:
    """
    Produce the assistant turn for one chat request on the data stream

    Runs in its own task, so database access goes through fresh sessions
    instead of the request-scoped one.
    """
    user_context = UserContext(
        user_id=str(user.id),
        is_guest=user.is_guest,
        session_id=f"session_{user.id}_{int(time.time() * 1000)}",
    )
    routed_model = select_model_with_routing(selected_chat_model, user_context)
    reasoning_model = routed_model == "chat-model-reasoning"
    available_tools = [] if reasoning_model else CHAT_TOOLS

    if routed_model == selected_chat_model:
        logger.info(f"Model selection: using {routed_model} for user {user.id}")
    else:
        logger.info(f"Model routing: {selected_chat_model} -> {routed_model} for user {user.id}")

    writer.write_data({
        "type": "model-routing",
        "data": {
            "originalModel": selected_chat_model,
            "routedModel": routed_model,
            "userId": str(user.id),
            "timestamp": datetime.utcnow().isoformat(),
        },
    })

    assistant_id = uuid.uuid4()
    writer.write_start_step(str(assistant_id))

    messages = [
        {"role": "system", "content": system_prompt(routed_model, request_hints)},
        *model_messages,
    ]
    context = ToolExecutionContext(
        user=user,
        session_factory=database.AsyncSessionLocal,
        data_stream=writer,
    )

    full_content = ""
    pending_calls: Dict[str, Dict[str, str]] = {}
    tool_invocations: List[Dict[str, Any]] = []
    start_time = time.perf_counter()

    try:
        async for event in stream_chat_with_tools(
            messages,
            routed_model,
            context,
            tools=available_tools,
            max_steps=settings.max_tool_steps,
        ):
            if event["type"] == "content":
                full_content += event["data"]
                writer.write_text(event["data"])

            elif event["type"] == "tool_call":
                pending_calls[event["data"]["id"]] = event["data"]
                writer.write_data({"type": "tool-call", "data": event["data"]})

            elif event["type"] == "tool_result":
                call_id = event["data"]["tool_call_id"]
                call = pending_calls.get(call_id, {"name": "", "arguments": ""})
                try:
                    args = json.loads(call["arguments"] or "{}")
                except json.JSONDecodeError:
                    args = {}
                result = _parse_tool_output(event["data"]["content"])

                writer.write_tool_call(call_id, call["name"], args)
                writer.write_tool_result(call_id, result)
                tool_invocations.append({
                    "state": "result",
                    "toolCallId": call_id,
                    "toolName": call["name"],
                    "args": args,
                    "result": result,
                })

            elif event["type"] == "finish":
                usage = event["data"]["usage"]
                latency_ms = (time.perf_counter() - start_time) * 1000
                performance_monitor.record(ModelPerformanceMetric(
                    model=routed_model,
                    user_id=str(user.id),
                    session_id=user_context.session_id,
                    latency_ms=latency_ms,
                    prompt_tokens=usage["prompt_tokens"],
                    completion_tokens=usage["completion_tokens"],
                    total_tokens=usage["total_tokens"],
                    cost=calculate_cost(routed_model, usage["prompt_tokens"], usage["completion_tokens"]),
                ))

                parts = build_assistant_parts(full_content, tool_invocations, reasoning_model)
                if parts:
                    try:
                        async with database.AsyncSessionLocal() as db:
                            await ChatService.save_messages(db, [{
                                "id": assistant_id,
                                "chatId": chat_id,
                                "role": "assistant",
                                "parts": parts,
                                "attachments": [],
                            }])
                        logger.info(f"Saved assistant message {assistant_id} for chat {chat_id}")
                    except Exception as e:
                        # The answer was already streamed; the client still gets the finish parts
                        logger.error(
                            f"Failed to save chat {chat_id}: {type(e).__name__}: {str(e)}", exc_info=True
                        )

                finish_reason = FINISH_REASONS.get(event["data"]["finish_reason"], "stop")
                client_usage = {
                    "promptTokens": usage["prompt_tokens"],
                    "completionTokens": usage["completion_tokens"],
                }
                writer.write_finish_step(finish_reason, client_usage)
                writer.write_finish_message(finish_reason, client_usage)

    except Exception as e:
        logger.error(f"Streaming error for chat {chat_id}: {type(e).__name__}: {str(e)}", exc_info=True)
        writer.write_error(STREAM_ERROR_MESSAGE)
        performance_monitor.record(ModelPerformanceMetric(
            model=routed_model,
            user_id=str(user.id),
            session_id=user_context.session_id,
            latency_ms=(time.perf_counter() - start_time) * 1000,
            success=False,
            error=str(e),
        ))


@router.post("")
async def chat(
    request: Request,
    payload: dict = Body(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user_or_guest),
):
    """Stream the assistant's answer to a new user message"""
    try:
        chat_request = ChatRequest.model_validate(payload)
    except ValidationError as e:
        logger.info(f"Rejected chat request: {e.error_count()} validation errors")
        raise ChatSDKError("bad_request:api")

    chat_id = chat_request.id
    message = chat_request.message

    entitlements = get_entitlements(user.user_type)
    if chat_request.selectedChatModel not in entitlements["available_chat_model_ids"]:
        raise ChatSDKError("forbidden:chat")

    message_count = await ChatService.get_message_count_by_user_id(db, user.id, difference_in_hours=24)
    if message_count > entitlements["max_messages_per_day"]:
        raise ChatSDKError("rate_limit:chat")

    chat = await ChatService.get_chat_by_id(db, chat_id)
    if not chat:
        title = await generate_title_from_user_message(message.content)
        await ChatService.save_chat(
            db, chat_id, user.id, title, visibility=chat_request.selectedVisibilityType
        )
    elif chat.userId != user.id:
        raise ChatSDKError("forbidden:chat")

    previous_messages = await ChatService.get_messages_by_chat_id(db, chat_id)

    user_message = {
        "id": message.id,
        "chatId": chat_id,
        "role": "user",
        "parts": [part.model_dump() for part in message.parts],
        "attachments": [attachment.model_dump() for attachment in message.experimental_attachments],
    }
    await ChatService.save_messages(db, [user_message])
    await ChatService.create_stream_id(db, uuid.uuid4(), chat_id)

    model_messages = ui_messages_to_model_messages(
        [message_to_ui(previous) for previous in previous_messages] + [user_message]
    )

    async def execute(writer: DataStreamWriter) -> None:
        await run_chat_stream(
            writer,
            chat_id=chat_id,
            user=user,
            selected_chat_model=chat_request.selectedChatModel,
            model_messages=model_messages,
            request_hints=request_hints_from_headers(request),
        )

    # AI SDK expects text/plain, not text/event-stream
    response = StreamingResponse(
        create_data_stream(execute, on_error=lambda e: STREAM_ERROR_MESSAGE),
        media_type=DATA_STREAM_MEDIA_TYPE,
        headers=DATA_STREAM_HEADERS,
    )
    if user.is_guest:
        session_manager.set_guest(response, str(user.id))
    return response


@router.get("/{chat_id}/stream")
async def resume_stream(
    chat_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Re-send the latest assistant message if it finished moments ago"""
    resume_requested_at = datetime.utcnow()

    chat = await ChatService.get_chat_by_id(db, chat_id)
    if not chat:
        raise ChatSDKError("not_found:chat")
    if not can_read_chat(chat, user):
        raise ChatSDKError("forbidden:chat")

    stream_ids = await ChatService.get_stream_ids_by_chat_id(db, chat_id)
    if not stream_ids:
        raise ChatSDKError("not_found:stream")

    empty = Response(content="", media_type=DATA_STREAM_MEDIA_TYPE, headers=DATA_STREAM_HEADERS)

    messages = await ChatService.get_messages_by_chat_id(db, chat_id)
    if not messages or messages[-1].role != "assistant":
        return empty

    most_recent = messages[-1]
    if (resume_requested_at - most_recent.createdAt).total_seconds() > RESUME_WINDOW_SECONDS:
        return empty

    restored = MessageResponse.model_validate(most_recent).model_dump(mode="json")
    line = f"2:{json.dumps([{'type': 'append-message', 'message': restored}])}\n"
    return Response(content=line, media_type=DATA_STREAM_MEDIA_TYPE, headers=DATA_STREAM_HEADERS)


@router.delete("", response_model=ChatResponse)
async def delete_chat(
    id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Delete a chat with its messages and votes"""
    if id is None:
        raise ChatSDKError("bad_request:api")

    chat = await ChatService.get_chat_by_id(db, id)
    if not chat:
        raise ChatSDKError("not_found:chat")
    if chat.userId != user.id:
        raise ChatSDKError("forbidden:chat")

    deleted = await ChatService.delete_chat_by_id(db, id)
    return ChatResponse.model_validate(deleted)


@router.post("/model")
async def save_chat_model(selection: ChatModelSelection, response: Response):
    """Remember the selected chat model in a cookie"""
    response.set_cookie(key=MODEL_COOKIE_NAME, value=selection.model, samesite="lax")
    return {"model": selection.model}


@router.delete("/messages/{message_id}/trailing")
async def delete_trailing_messages(
    message_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Delete a message and everything after it in its chat"""
    message = await ChatService.get_message_by_id(db, message_id)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")

    chat = await ChatService.get_chat_by_id(db, message.chatId)
    if not chat or chat.userId != user.id:
        raise ChatSDKError("forbidden:chat")

    deleted = await ChatService.delete_messages_by_chat_id_after_timestamp(
        db, message.chatId, message.createdAt
    )
    return {"success": True, "deleted_count": deleted}


@router.get("/{chat_id}", response_model=ChatResponse)
async def get_chat(
    chat_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user_or_guest),
):
    """Get a specific chat by ID"""
    chat = await ChatService.get_chat_by_id(db, chat_id)
    if not chat:
        raise ChatSDKError("not_found:chat")
    if not can_read_chat(chat, user):
        raise ChatSDKError("forbidden:chat")

    return ChatResponse.model_validate(chat)


@router.get("/{chat_id}/messages")
async def get_chat_messages(
    chat_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user_or_guest),
):
    """Get messages for a specific chat"""
    chat = await ChatService.get_chat_by_id(db, chat_id)
    if not chat:
        raise ChatSDKError("not_found:chat")
    if not can_read_chat(chat, user):
        raise ChatSDKError("forbidden:chat")

    messages = await ChatService.get_messages_by_chat_id(db, chat_id)
    return {"messages": [MessageResponse.model_validate(message) for message in messages]}


@router.patch("/{chat_id}/visibility", response_model=ChatResponse)
async def update_visibility(
    chat_id: UUID,
    update: VisibilityUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Make a chat public or private"""
    chat = await ChatService.get_chat_by_id(db, chat_id)
    if not chat:
        raise ChatSDKError("not_found:chat")
    if chat.userId != user.id:
        raise ChatSDKError("forbidden:chat")

    await ChatService.update_chat_visibility(db, chat_id, update.visibility)
    await db.refresh(chat)
    return ChatResponse.model_validate(chat)

"""Conversion between stored UI messages (parts) and OpenAI chat messages"""

import json
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

VALID_ROLES = ("user", "assistant", "system", "tool")


def _text_from_parts(parts: List[Dict[str, Any]]) -> str:
    return "".join(part.get("text") or "" for part in parts if part.get("type") == "text")


def sanitize_message_content(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, (dict, list)):
        return json.dumps(content, default=str)
    return str(content or "")


def convert_ui_message_to_openai(ui_message: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert one UI message to an OpenAI message

    Text parts are joined into ``content`` and tool-invocation parts become
    ``tool_calls``. Messages without parts are taken as already compatible.
    """
    created_at = ui_message.get("createdAt") or datetime.utcnow()
    parts = ui_message.get("parts")
    if isinstance(parts, list):
        tool_calls = [
            {
                "id": part.get("toolInvocation", {}).get("toolCallId") or str(uuid.uuid4()),
                "type": "function",
                "function": {
                    "name": part.get("toolInvocation", {}).get("toolName", ""),
                    "arguments": json.dumps(part.get("toolInvocation", {}).get("args") or {}),
                },
            }
            for part in parts
            if part.get("type") == "tool-invocation"
        ]
        message = {
            "id": ui_message.get("id") or str(uuid.uuid4()),
            "role": ui_message.get("role") or "user",
            "content": _text_from_parts(parts),
            "createdAt": created_at,
        }
        if tool_calls:
            message["tool_calls"] = tool_calls
        return message

    message = {
        "id": ui_message.get("id") or str(uuid.uuid4()),
        "role": ui_message.get("role") or "user",
        "content": ui_message.get("content") or "",
        "createdAt": created_at,
    }
    for key in ("tool_calls", "tool_call_id"):
        if ui_message.get(key):
            message[key] = ui_message[key]
    return message


def convert_messages_to_openai(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [convert_ui_message_to_openai(message) for message in messages]


def validate_openai_message(message: Any) -> bool:
    if not isinstance(message, dict):
        return False
    if message.get("role") not in VALID_ROLES:
        return False
    if not isinstance(message.get("content"), str):
        return False

    tool_calls = message.get("tool_calls")
    if tool_calls is not None:
        if not isinstance(tool_calls, list):
            return False
        for tool_call in tool_calls:
            if not tool_call.get("id") or not tool_call.get("function", {}).get("name"):
                return False
    return True


def format_messages_for_api(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Drop UI-only fields (id, createdAt) and stringify content"""
    formatted = []
    for message in messages:
        entry = {"role": message["role"], "content": sanitize_message_content(message.get("content"))}
        if message.get("tool_calls"):
            entry["tool_calls"] = message["tool_calls"]
        if message.get("tool_call_id"):
            entry["tool_call_id"] = message["tool_call_id"]
        formatted.append(entry)
    return formatted


def get_last_user_message(messages: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    for message in reversed(messages):
        if message.get("role") == "user":
            return message
    return None


def get_last_assistant_message(messages: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    for message in reversed(messages):
        if message.get("role") == "assistant":
            return message
    return None


def remove_incomplete_assistant_messages(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Drop empty assistant messages, except when one is the last message"""
    last_index = len(messages) - 1
    return [
        message
        for index, message in enumerate(messages)
        if message.get("role") != "assistant"
        or sanitize_message_content(message.get("content")).strip()
        or index == last_index
    ]


def ui_messages_to_model_messages(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Turn a stored conversation into the messages sent to the model

    Image attachments of user messages become ``image_url`` content parts.
    Finished tool invocations of assistant messages become ``tool_calls``
    followed by one ``role=tool`` message each, so the model sees the
    results it produced earlier.
    """
    model_messages = []
    for message in messages:
        role = message.get("role")
        parts = message.get("parts") or []
        text = _text_from_parts(parts) if parts else sanitize_message_content(message.get("content"))

        if role == "user":
            images = [
                {"type": "image_url", "image_url": {"url": attachment["url"]}}
                for attachment in message.get("attachments") or []
                if str(attachment.get("contentType", "")).startswith("image/")
            ]
            content = [{"type": "text", "text": text}, *images] if images else text
            model_messages.append({"role": "user", "content": content})
            continue

        if role != "assistant":
            model_messages.append({"role": role, "content": text})
            continue

        invocations = [
            part["toolInvocation"]
            for part in parts
            if part.get("type") == "tool-invocation"
            and part.get("toolInvocation", {}).get("state") == "result"
        ]
        if not invocations:
            if text.strip():
                model_messages.append({"role": "assistant", "content": text})
            continue

        model_messages.append({
            "role": "assistant",
            "content": text or None,
            "tool_calls": [
                {
                    "id": invocation["toolCallId"],
                    "type": "function",
                    "function": {
                        "name": invocation["toolName"],
                        "arguments": json.dumps(invocation.get("args") or {}),
                    },
                }
                for invocation in invocations
            ],
        })
        model_messages.extend(
            {
                "role": "tool",
                "tool_call_id": invocation["toolCallId"],
                "content": sanitize_message_content(invocation.get("result")),
            }
            for invocation in invocations
        )
    return model_messages

import json

from app.utils.message_formatting import (
    convert_ui_message_to_openai,
    format_messages_for_api,
    get_last_assistant_message,
    get_last_user_message,
    remove_incomplete_assistant_messages,
    sanitize_message_content,
    ui_messages_to_model_messages,
    validate_openai_message,
)

WEATHER_INVOCATION = {
    "state": "result",
    "toolCallId": "call_1",
    "toolName": "getWeather",
    "args": {"latitude": 52.52, "longitude": 13.41},
    "result": {"current": {"temperature_2m": 21.5}},
}


class TestUiToModelMessages:
    def test_text_parts_are_joined(self):
        messages = ui_messages_to_model_messages([
            {"role": "user", "parts": [{"type": "text", "text": "Hello "}, {"type": "text", "text": "world"}]},
        ])
        assert messages == [{"role": "user", "content": "Hello world"}]

    def test_image_attachments_become_image_parts(self):
        messages = ui_messages_to_model_messages([{
            "role": "user",
            "parts": [{"type": "text", "text": "What is this?"}],
            "attachments": [
                {"url": "https://bucket.s3.us-east-1.amazonaws.com/cat.png", "name": "cat.png", "contentType": "image/png"},
                {"url": "https://example.com/notes.txt", "name": "notes.txt", "contentType": "text/plain"},
            ],
        }])

        assert messages == [{
            "role": "user",
            "content": [
                {"type": "text", "text": "What is this?"},
                {"type": "image_url", "image_url": {"url": "https://bucket.s3.us-east-1.amazonaws.com/cat.png"}},
            ],
        }]

    def test_finished_tool_invocations_are_replayed(self):
        messages = ui_messages_to_model_messages([
            {"role": "user", "parts": [{"type": "text", "text": "Weather in Berlin?"}]},
            {
                "role": "assistant",
                "parts": [
                    {"type": "tool-invocation", "toolInvocation": WEATHER_INVOCATION},
                    {"type": "text", "text": "It is 21.5 degrees."},
                ],
            },
        ])

        assert messages[1] == {
            "role": "assistant",
            "content": "It is 21.5 degrees.",
            "tool_calls": [{
                "id": "call_1",
                "type": "function",
                "function": {"name": "getWeather", "arguments": json.dumps(WEATHER_INVOCATION["args"])},
            }],
        }
        assert messages[2] == {
            "role": "tool",
            "tool_call_id": "call_1",
            "content": json.dumps(WEATHER_INVOCATION["result"]),
        }

    def test_pending_invocations_and_empty_assistant_turns_are_skipped(self):
        pending = dict(WEATHER_INVOCATION, state="call")
        messages = ui_messages_to_model_messages([
            {"role": "user", "parts": [{"type": "text", "text": "Hi"}]},
            {"role": "assistant", "parts": [{"type": "tool-invocation", "toolInvocation": pending}]},
            {"role": "assistant", "parts": [{"type": "reasoning", "reasoning": "hmm"}]},
        ])
        assert messages == [{"role": "user", "content": "Hi"}]


class TestConvertUiMessage:
    def test_parts_message(self):
        message = convert_ui_message_to_openai({
            "id": "m1",
            "role": "assistant",
            "parts": [
                {"type": "text", "text": "Checking"},
                {"type": "tool-invocation", "toolInvocation": WEATHER_INVOCATION},
            ],
        })
        assert message["id"] == "m1"
        assert message["content"] == "Checking"
        assert message["tool_calls"][0]["function"]["name"] == "getWeather"

    def test_plain_message_keeps_tool_fields(self):
        message = convert_ui_message_to_openai({"role": "tool", "content": "{}", "tool_call_id": "call_1"})
        assert message["tool_call_id"] == "call_1"
        assert message["id"]
        assert message["createdAt"]


class TestValidationAndFormatting:
    def test_validate(self):
        assert validate_openai_message({"role": "user", "content": "hi"})
        assert not validate_openai_message({"role": "robot", "content": "hi"})
        assert not validate_openai_message({"role": "user", "content": None})
        assert not validate_openai_message("hi")
        assert not validate_openai_message({
            "role": "assistant",
            "content": "",
            "tool_calls": [{"id": "", "function": {"name": "getWeather"}}],
        })

    def test_format_for_api_drops_ui_fields(self):
        formatted = format_messages_for_api([
            {"id": "m1", "createdAt": "now", "role": "user", "content": {"a": 1}},
            {"role": "tool", "content": "ok", "tool_call_id": "call_1"},
        ])
        assert formatted == [
            {"role": "user", "content": '{"a": 1}'},
            {"role": "tool", "content": "ok", "tool_call_id": "call_1"},
        ]

    def test_sanitize(self):
        assert sanitize_message_content(None) == ""
        assert sanitize_message_content(3) == "3"
        assert sanitize_message_content([1]) == "[1]"


class TestLookups:
    def test_last_messages(self):
        messages = [
            {"role": "user", "content": "one"},
            {"role": "assistant", "content": "two"},
            {"role": "user", "content": "three"},
        ]
        assert get_last_user_message(messages)["content"] == "three"
        assert get_last_assistant_message(messages)["content"] == "two"
        assert get_last_assistant_message(messages[:1]) is None

    def test_remove_incomplete_assistant_messages(self):
        messages = [
            {"role": "user", "content": "one"},
            {"role": "assistant", "content": "  "},
            {"role": "user", "content": "two"},
            {"role": "assistant", "content": ""},
        ]
        assert remove_incomplete_assistant_messages(messages) == [
            {"role": "user", "content": "one"},
            {"role": "user", "content": "two"},
            {"role": "assistant", "content": ""},
        ]

from typing import Dict, List, TypedDict

from app.config import settings


class Entitlements(TypedDict):
    max_messages_per_day: int
    available_chat_model_ids: List[str]


ENTITLEMENTS_BY_USER_TYPE: Dict[str, Entitlements] = {
    # Users without an account
    "guest": {
        "max_messages_per_day": settings.guest_message_limit,
        "available_chat_model_ids": ["chat-model", "chat-model-reasoning", "gemini-flash-lite"],
    },
    # Users with a Google account
    "regular": {
        "max_messages_per_day": settings.regular_user_message_limit,
        "available_chat_model_ids": ["chat-model", "chat-model-reasoning", "gemini-flash-lite"],
    },
}


def get_entitlements(user_type: str) -> Entitlements:
    return ENTITLEMENTS_BY_USER_TYPE.get(user_type, ENTITLEMENTS_BY_USER_TYPE["guest"])

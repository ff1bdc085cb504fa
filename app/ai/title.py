import logging
import re

from app.ai.openrouter_client import get_openrouter_client
from app.ai.prompts import TITLE_PROMPT
from app.config import settings

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"
MAX_TITLE_LENGTH = 80


def clean_title(raw_title: str) -> str:
    """Strip markdown, prefixes, quotes and colons from a generated title"""
    title = re.sub(r'^[#*\s]+', '', raw_title.strip())
    title = re.sub(r'^title\s*:\s*', '', title, flags=re.IGNORECASE)
    title = re.sub(r'["\':`]', '', title)
    title = " ".join(title.split())
    return title[:MAX_TITLE_LENGTH].strip()


async def generate_title_from_user_message(user_message_text: str) -> str:
    """Generate a concise title from the user's first message"""
    try:
        raw_title = await get_openrouter_client().chat_completion(
            settings.default_title_model,
            [
                {"role": "system", "content": TITLE_PROMPT},
                {"role": "user", "content": user_message_text},
            ],
        )
    except Exception as e:
        logger.error(f"Error generating title: {type(e).__name__}: {str(e)}")
        return DEFAULT_TITLE

    return clean_title(raw_title) or DEFAULT_TITLE

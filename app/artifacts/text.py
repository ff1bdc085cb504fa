from app.ai.prompts import TEXT_PROMPT
from app.artifacts.base import DocumentHandler


class TextDocumentHandler(DocumentHandler):
    kind = "text"
    system_prompt = TEXT_PROMPT

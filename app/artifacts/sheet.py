from app.ai.prompts import SHEET_PROMPT
from app.artifacts.base import DocumentHandler


class SheetDocumentHandler(DocumentHandler):
    kind = "sheet"
    system_prompt = SHEET_PROMPT
    temperature = 0.3
    max_tokens = 2000

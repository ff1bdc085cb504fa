from app.ai.prompts import CODE_PROMPT
from app.artifacts.base import DocumentHandler


class CodeDocumentHandler(DocumentHandler):
    kind = "code"
    system_prompt = CODE_PROMPT
    temperature = 0.3
    max_tokens = 4000

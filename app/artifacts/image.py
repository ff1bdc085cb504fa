from app.ai.prompts import IMAGE_PROMPT
from app.artifacts.base import DocumentHandler


class ImageDocumentHandler(DocumentHandler):
    """Produces an image description rather than pixels"""

    kind = "image"
    system_prompt = IMAGE_PROMPT
    model_key = "image-model"
    temperature = 0.7
    max_tokens = 1000

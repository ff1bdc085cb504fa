from pydantic import BaseModel
from typing import Optional


class FileUploadResponse(BaseModel):
    url: str
    pathname: str
    contentType: str
    size: int
    downloadUrl: str
    key: Optional[str] = None

"""Chat tools - weather lookup and document artifacts"""

from .base import BaseTool, ToolError, ToolExecutionContext
from .weather import WeatherTool
from .create_document import CreateDocumentTool
from .update_document import UpdateDocumentTool
from .request_suggestions import RequestSuggestionsTool


def default_tools() -> list[BaseTool]:
    return [
        WeatherTool(),
        CreateDocumentTool(),
        UpdateDocumentTool(),
        RequestSuggestionsTool(),
    ]


__all__ = [
    "BaseTool",
    "ToolError",
    "ToolExecutionContext",
    "WeatherTool",
    "CreateDocumentTool",
    "UpdateDocumentTool",
    "RequestSuggestionsTool",
    "default_tools",
]

"""Base Tool Class for chat tools"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User

if TYPE_CHECKING:
    from app.ai.stream_writer import DataStreamWriter


class ToolError(Exception):
    """Expected tool failure; the message is reported back to the model"""


@dataclass
class ToolExecutionContext:
    """What a tool can reach while it runs for one chat request"""
    user: Optional[User]
    session_factory: Callable[[], AsyncSession]
    data_stream: Optional["DataStreamWriter"] = None


class BaseTool(ABC):
    """Base class for all chat tools."""

    def __init__(self):
        self.name = self.__class__.__name__.replace("Tool", "")

    @property
    @abstractmethod
    def description(self) -> str:
        """Tool description for the LLM."""
        pass

    @property
    @abstractmethod
    def input_schema(self) -> type[BaseModel]:
        """Pydantic model for tool input validation."""
        pass

    @abstractmethod
    async def execute(self, context: ToolExecutionContext, **kwargs) -> Dict[str, Any]:
        """Execute the tool with validated inputs; raise ToolError on failure."""
        pass

    def to_openai_tool(self) -> Dict[str, Any]:
        """Convert to an OpenAI function tool definition."""
        parameters = self.input_schema.model_json_schema()
        parameters.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }

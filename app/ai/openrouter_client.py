"""
OpenRouter Client
OpenAI-compatible access to the models served through OpenRouter
"""
import logging
from typing import Any, AsyncGenerator, Dict, List, Optional

from openai import AsyncOpenAI

from app.config import settings

logger = logging.getLogger(__name__)

# Model keys used across the app mapped to OpenRouter model names
MODEL_MAPPINGS = {
    "chat-model": "google/gemini-2.0-flash-lite-001",
    "chat-model-reasoning": "openai/o1-mini",
    "gemini-flash-lite": "google/gemini-2.0-flash-lite-001",
    "title-model": "google/gemini-2.0-flash-lite-001",
    "artifact-model": "google/gemini-2.0-flash-lite-001",
    "image-model": "google/gemini-2.0-flash-lite-001",
}

MODEL_CONFIGS = {
    "chat-model": {"temperature": 0.7, "max_tokens": 4000, "top_p": 0.9},
    "chat-model-reasoning": {"temperature": 0.3, "max_tokens": 8000, "top_p": 0.95},
    "gemini-flash-lite": {"temperature": 0.7, "max_tokens": 8000, "top_p": 0.9},
    "title-model": {"temperature": 0.5, "max_tokens": 100, "top_p": 0.8},
    "artifact-model": {"temperature": 0.4, "max_tokens": 6000, "top_p": 0.9},
    "image-model": {"temperature": 0.7, "max_tokens": 1000, "top_p": 0.9},
}


def get_model_name(model_key: str) -> str:
    """OpenRouter model name for a model key; unknown keys pass through"""
    return MODEL_MAPPINGS.get(model_key, model_key)


def get_model_config(model_key: str) -> Dict[str, Any]:
    return dict(MODEL_CONFIGS.get(model_key, MODEL_CONFIGS["chat-model"]))


class OpenRouterClient:
    """Client for the OpenRouter chat completions API with streaming support"""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        if client is None:
            if not settings.openrouter_api_key:
                raise ValueError("OPENROUTER_API_KEY is required")
            client = AsyncOpenAI(
                api_key=settings.openrouter_api_key,
                base_url=settings.openrouter_base_url,
            )
        self.client = client
        # OpenRouter reads app attribution from per-request headers
        self.extra_headers = {
            "HTTP-Referer": settings.openrouter_site_url,
            "X-Title": settings.openrouter_app_name,
        }

    def _request_kwargs(self, model_key: str, messages: List[Dict[str, Any]], **overrides) -> Dict[str, Any]:
        kwargs = {
            "model": get_model_name(model_key),
            "messages": messages,
            "extra_headers": self.extra_headers,
            **get_model_config(model_key),
        }
        kwargs.update({key: value for key, value in overrides.items() if value is not None})
        return kwargs

    async def stream_chat_completion(
        self,
        model_key: str,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        **overrides,
    ) -> AsyncGenerator[Any, None]:
        """
        Stream a chat completion

        Args:
            model_key: Key into MODEL_MAPPINGS (e.g. "chat-model")
            messages: OpenAI-format messages
            tools: OpenAI function tool definitions, if any
            **overrides: Sampling parameters replacing the model defaults

        Yields:
            Raw ChatCompletionChunk objects; the last one may only carry usage
        """
        kwargs = self._request_kwargs(model_key, messages, **overrides)
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"

        logger.info(f"Streaming from OpenRouter: model={kwargs['model']}, messages={len(messages)}, tools={len(tools or [])}")

        stream = await self.client.chat.completions.create(
            stream=True,
            stream_options={"include_usage": True},
            **kwargs,
        )
        async for chunk in stream:
            yield chunk

    async def stream_text(
        self,
        model_key: str,
        messages: List[Dict[str, Any]],
        **overrides,
    ) -> AsyncGenerator[str, None]:
        """Stream only the content deltas of a completion"""
        async for chunk in self.stream_chat_completion(model_key, messages, **overrides):
            if not chunk.choices:
                continue
            content = chunk.choices[0].delta.content
            if content:
                yield content

    async def chat_completion(
        self,
        model_key: str,
        messages: List[Dict[str, Any]],
        **overrides,
    ) -> str:
        """Non-streaming completion returning the message text"""
        kwargs = self._request_kwargs(model_key, messages, **overrides)
        logger.info(f"Completion from OpenRouter: model={kwargs['model']}, messages={len(messages)}")

        response = await self.client.chat.completions.create(**kwargs)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


_openrouter_client: Optional[OpenRouterClient] = None


def get_openrouter_client() -> OpenRouterClient:
    """Shared client, created on first use so imports work without an API key"""
    global _openrouter_client
    if _openrouter_client is None:
        logger.info("Creating OpenRouter client")
        _openrouter_client = OpenRouterClient()
    return _openrouter_client


def set_openrouter_client(client: Optional[OpenRouterClient]) -> None:
    global _openrouter_client
    _openrouter_client = client


def reset_openrouter_client() -> None:
    """Drop the shared client so the next call rebuilds it from settings"""
    set_openrouter_client(None)

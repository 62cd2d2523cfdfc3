"""LLM client: HTTP connection to a chat-completion backend.

The services inject an LLM callable matching the protocol:

    async def __call__(self, stage, messages, *, response_format=None, tools=None) -> ChatReply

`stage` identifies which task is calling (e.g. "story", "facilitator").
The implementation uses it for logging only.

HttpChatLLM speaks the OpenAI-compatible /v1/chat/completions format and
returns either free text, schema-constrained JSON text, or tool calls.
Tests use StubLLM (defined in conftest.py) instead.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, TypeVar

import httpx
from pydantic import BaseModel, Field, ValidationError

from dungeon_dj.models import ChatMessage

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


# ---------------------------------------------------------------------------
# Reply types
# ---------------------------------------------------------------------------

class ToolCall(BaseModel):
    id: str = ""
    name: str
    arguments: str = "{}"  # raw JSON text as sent by the model


class ChatReply(BaseModel):
    content: str | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Protocol: every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class ChatLLM(Protocol):
    async def __call__(
        self,
        stage: str,
        messages: list[ChatMessage],
        *,
        response_format: dict | None = None,
        tools: list[dict] | None = None,
    ) -> ChatReply: ...


# ---------------------------------------------------------------------------
# HttpChatLLM: connects to a real backend
# ---------------------------------------------------------------------------

class HttpChatLLM:
    """Async HTTP client for OpenAI-compatible chat completion backends.

      POST {base}/v1/chat/completions  {"model", "messages", "response_format"?, "tools"?}
      Response: {"choices": [{"message": {"content": ..., "tool_calls": [...]}}]}

    Args:
        provider_url: Base URL of the backend, e.g. "https://api.openai.com".
        api_key:      Bearer token, or empty string if not required.
        model:        Model identifier sent with every request.
        timeout:      HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        model: str = "gpt-4.1-mini",
        timeout: float = 120.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._model = model
        self._timeout = timeout

    @property
    def model(self) -> str:
        return self._model

    def with_model(self, model: str) -> HttpChatLLM:
        """Same backend, different model (character sheets use a larger one)."""
        return HttpChatLLM(self._base_url, self._api_key, model, self._timeout)

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_body(
        self,
        messages: list[ChatMessage],
        response_format: dict | None,
        tools: list[dict] | None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": self._model,
            "messages": [m.model_dump() for m in messages],
        }
        if response_format:
            body["response_format"] = response_format
        if tools:
            body["tools"] = tools
        return body

    def _parse_response(self, data: dict) -> ChatReply:
        """Extract content and tool calls from the first choice."""
        choices = data.get("choices")
        if not choices or "message" not in choices[0]:
            raise LLMError("Unexpected response format from chat completion backend")
        message = choices[0]["message"] or {}
        calls = []
        for raw in message.get("tool_calls") or []:
            function = raw.get("function") or {}
            if "name" not in function:
                raise LLMError("Unexpected tool call format from chat completion backend")
            calls.append(ToolCall(
                id=raw.get("id", ""),
                name=function["name"],
                arguments=function.get("arguments") or "{}",
            ))
        return ChatReply(content=message.get("content"), tool_calls=calls)

    async def __call__(
        self,
        stage: str,
        messages: list[ChatMessage],
        *,
        response_format: dict | None = None,
        tools: list[dict] | None = None,
    ) -> ChatReply:
        url = f"{self._base_url}/v1/chat/completions"
        body = self._build_body(messages, response_format, tools)
        logger.debug(
            "llm call stage=%s model=%s messages=%d tools=%d",
            stage, self._model, len(messages), len(tools or []),
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"LLM backend request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("Unexpected response format from chat completion backend") from e
        if not isinstance(data, dict):
            raise LLMError("Unexpected response format from chat completion backend")
        reply = self._parse_response(data)
        logger.debug(
            "llm response stage=%s content_len=%d tool_calls=%s",
            stage, len(reply.content or ""), [c.name for c in reply.tool_calls],
        )
        return reply


# ---------------------------------------------------------------------------
# Structured output helpers
# ---------------------------------------------------------------------------

def json_schema_format(name: str, model: type[BaseModel]) -> dict:
    """`response_format` payload constraining the reply to `model`'s schema."""
    return {
        "type": "json_schema",
        "json_schema": {"name": name, "schema": model.model_json_schema()},
    }


def parse_structured(reply: ChatReply, model: type[M], what: str) -> M:
    """Validate a schema-constrained reply into `model`.

    Raises LLMParseError when the reply is empty or does not match.
    """
    if not reply.content:
        raise LLMParseError(f"No content received for {what}")
    try:
        return model.model_validate_json(reply.content)
    except ValidationError as e:
        logger.warning("invalid %s payload: %s", what, e)
        raise LLMParseError(f"Failed to parse {what} as JSON") from e


def parse_arguments(call: ToolCall) -> dict:
    """Decode a tool call's JSON arguments into a dict."""
    try:
        args = json.loads(call.arguments or "{}")
    except json.JSONDecodeError as e:
        raise LLMParseError(f"Tool call {call.name} has malformed arguments") from e
    if not isinstance(args, dict):
        raise LLMParseError(f"Tool call {call.name} arguments must be an object")
    return args


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""


class LLMParseError(LLMError):
    """Raised when the backend answered but the payload is unusable."""

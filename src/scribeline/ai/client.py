"""Async generation client for OpenAI-compatible endpoints.

Hosted endpoints are called through :class:`openai.AsyncOpenAI` chat
completions with a strict JSON schema for the ``{"content": ...}`` response,
falling back to JSON-object mode when the model rejects structured outputs.
Local servers (LM Studio, Ollama, llama.cpp) get a direct chat-completions
POST over ``httpx`` and a lenient parser, since many of them wrap JSON in code
fences or ignore the schema entirely.
"""

from __future__ import annotations

import inspect
import ipaddress
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, TypeVar
from urllib.parse import urlparse

import httpx
from openai import APIConnectionError, AsyncOpenAI, RateLimitError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..errors import GenerationError
from .ai_types import EditRequest, GenerationBackend
from .prompts import build_messages, structured_response_format

LOGGER = logging.getLogger(__name__)
_T = TypeVar("_T")

_CHAT_COMPLETIONS_PATH = "/chat/completions"
_AUTH_PATTERN = re.compile(
    r"invalid api key|incorrect api key|authentication|unauthorized|auth failed|invalid authentication",
    re.IGNORECASE,
)
_FENCE_OPEN = re.compile(r"^```[a-zA-Z0-9]*\s*")
_FENCE_CLOSE = re.compile(r"```$")
_RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    APIConnectionError,
    RateLimitError,
    httpx.TransportError,
)


@dataclass(slots=True)
class ClientSettings:
    """Subset of settings required to configure the AI client."""

    base_url: str
    api_key: str
    model: str
    organization: str | None = None
    temperature: float | None = 0.2
    request_timeout: float | None = 90.0
    max_retries: int = 3
    retry_min_seconds: float = 0.5
    retry_max_seconds: float = 6.0
    default_headers: Mapping[str, str] | None = None
    debug_logging: bool = False


def is_local_url(url: str) -> bool:
    """Return ``True`` for loopback and private-network endpoints."""

    try:
        host = urlparse(url).hostname
    except ValueError:
        return False
    if not host:
        return False
    if host == "localhost":
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return address.is_loopback or address.is_private or address.is_unspecified


def strip_code_fences(text: str) -> str:
    """Remove a fence wrapping the whole response, as local models often add."""

    fenced = text.strip()
    if fenced.startswith("```") and fenced.endswith("```") and len(fenced) >= 6:
        return _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", fenced, count=1)).strip()
    return text


def describe_error(exc: BaseException) -> str:
    """Fold SDK and transport errors into one readable message."""

    message = str(exc) or type(exc).__name__
    body = getattr(exc, "body", None)
    body_error = body.get("error") if isinstance(body, Mapping) else None
    if not isinstance(body_error, Mapping):
        body_error = {}

    status = getattr(exc, "status_code", None)
    response = getattr(exc, "response", None)
    if status is None and response is not None:
        status = getattr(response, "status_code", None)

    code = getattr(exc, "code", None) or body_error.get("code")
    detail = body_error.get("message") or getattr(exc, "message", None)
    if not isinstance(detail, str) or not detail:
        detail = message

    if (
        status == 401
        or code == "invalid_api_key"
        or type(exc).__name__ == "AuthenticationError"
        or _AUTH_PATTERN.search(message)
        or _AUTH_PATTERN.search(detail)
    ):
        return f"Authentication failed. Check your API key and project/organization. ({detail})"
    if "connection error" in message.lower():
        return f"Request failed. Check your API key and network/base URL. ({detail})"
    return message


def _mentions_structured_outputs(message: str) -> bool:
    lowered = message.lower()
    return "json_schema" in lowered or "structured" in lowered


class AIClient(GenerationBackend):
    """Generation backend with retry semantics and endpoint routing."""

    def __init__(
        self,
        settings: ClientSettings,
        *,
        client: AsyncOpenAI | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._owns_client = client is None
        self._http_client = http_client
        self._owns_http_client = http_client is None

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def is_local(self) -> bool:
        return is_local_url(self._settings.base_url)

    async def generate(self, request: EditRequest) -> str:
        """Return the model's replacement text for ``request``."""

        LOGGER.debug(
            "Requesting %s edit from %s (%s endpoint)",
            request.mode,
            self._settings.model,
            "local" if self.is_local else "hosted",
        )
        if self.is_local:
            return await self._generate_local(request)
        try:
            return await self._generate_hosted(request, json_mode=False)
        except GenerationError as exc:
            if not _mentions_structured_outputs(exc.message):
                raise
            LOGGER.info("Structured outputs unsupported by %s; retrying in JSON mode", self._settings.model)
        return await self._generate_hosted(request, json_mode=True)

    async def _generate_hosted(self, request: EditRequest, *, json_mode: bool) -> str:
        payload: Dict[str, Any] = {
            "model": self._settings.model,
            "messages": build_messages(request, json_mode=json_mode),
            "response_format": {"type": "json_object"} if json_mode else structured_response_format(),
        }
        if self._settings.temperature is not None:
            payload["temperature"] = self._settings.temperature
        if self._settings.debug_logging:
            self._log_prompt_payload(payload)

        client = self._openai_client()
        response = await self._call(lambda: client.chat.completions.create(**payload))

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise GenerationError("Empty model output.")
        choice = choices[0]
        message = getattr(choice, "message", None)
        refusal = getattr(message, "refusal", None)
        if isinstance(refusal, str) and refusal.strip():
            raise GenerationError(f"Model refused the request: {refusal}")
        if getattr(choice, "finish_reason", None) == "length":
            raise GenerationError("Model response incomplete: length")
        content = getattr(message, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise GenerationError("Empty model output.")
        parsed = self._parse_content(strip_code_fences(content).strip())
        if parsed is None:
            raise GenerationError("Model output missing content.", details={"output": content[:200]})
        return parsed

    async def _generate_local(self, request: EditRequest) -> str:
        url = self._local_endpoint()
        body: Dict[str, Any] = {
            "model": self._settings.model,
            "messages": build_messages(request),
            "response_format": structured_response_format(),
            "stream": False,
        }
        if self._settings.temperature is not None:
            body["temperature"] = self._settings.temperature
        headers = {"Content-Type": "application/json"}
        if self._settings.api_key:
            headers["Authorization"] = f"Bearer {self._settings.api_key}"
        if self._settings.default_headers:
            headers.update(self._settings.default_headers)
        if self._settings.debug_logging:
            self._log_prompt_payload(body)

        http_client = self._local_http_client()
        response = await self._call(lambda: http_client.post(url, json=body, headers=headers))
        if response.status_code >= 400:
            raise GenerationError(response.text or f"HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise GenerationError("Local endpoint returned a non-JSON response.") from exc

        content = None
        if isinstance(data, Mapping):
            choices = data.get("choices") or [{}]
            first = choices[0] if isinstance(choices[0], Mapping) else {}
            message = first.get("message") or {}
            content = message.get("content") if isinstance(message, Mapping) else None
        if not isinstance(content, str) or not content.strip():
            raise GenerationError("Empty model output.")
        cleaned = strip_code_fences(content).strip()
        parsed = self._parse_content(cleaned)
        return cleaned if parsed is None else parsed

    async def _call(self, factory: Callable[[], Awaitable[_T]]) -> _T:
        try:
            async for attempt in self._retrying():
                with attempt:
                    result = await factory()
        except Exception as exc:
            LOGGER.debug("Generation request failed: %s", exc, exc_info=True)
            raise GenerationError(describe_error(exc), details={"type": type(exc).__name__}) from exc
        return result

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(max(1, self._settings.max_retries)),
            wait=wait_exponential(
                multiplier=self._settings.retry_min_seconds,
                max=self._settings.retry_max_seconds,
            ),
            retry=retry_if_exception_type(_RETRYABLE_ERRORS),
        )

    @staticmethod
    def _parse_content(text: str) -> str | None:
        try:
            data = json.loads(text)
        except (TypeError, ValueError):
            return None
        if isinstance(data, Mapping) and isinstance(data.get("content"), str):
            return data["content"]
        return None

    def _local_endpoint(self) -> str:
        base = self._settings.base_url.strip()
        if base.rstrip("/").endswith(_CHAT_COMPLETIONS_PATH):
            return base
        return base.rstrip("/") + _CHAT_COMPLETIONS_PATH

    def _openai_client(self) -> AsyncOpenAI:
        if self._client is None:
            headers = dict(self._settings.default_headers) if self._settings.default_headers else None
            self._client = AsyncOpenAI(
                api_key=self._settings.api_key,
                base_url=self._settings.base_url,
                organization=self._settings.organization,
                timeout=self._settings.request_timeout,
                default_headers=headers,
                max_retries=0,
            )
        return self._client

    def _local_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._settings.request_timeout)
        return self._http_client

    def _log_prompt_payload(self, payload: Mapping[str, Any]) -> None:
        try:
            serialized = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError):
            LOGGER.debug("AI prompt payload (unserializable): %s", payload)
        else:
            LOGGER.debug("AI prompt payload:\n%s", serialized)

    async def aclose(self) -> None:
        """Close clients this instance created to release network resources."""

        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None
        if self._client is None or not self._owns_client:
            return
        close = getattr(self._client, "close", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result
        self._client = None


__all__ = ["AIClient", "ClientSettings", "describe_error", "is_local_url", "strip_code_fences"]

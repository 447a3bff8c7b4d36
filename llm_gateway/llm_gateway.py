from __future__ import annotations  # HTTP gateway for chat-completion LLM routes

import json
import logging
import os
import re
import threading
from typing import Any, Dict, List, Optional, Protocol, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError, model_validator

from config.routes import LlmRoute


logger = logging.getLogger(__name__)

_ROUTE_LOCKS: Dict[str, threading.Lock] = {}
_ROUTE_LOCKS_GUARD = threading.Lock()

TEXT_KEYS = ("question", "summary", "content")
_FENCE = re.compile(r"^```[\w-]*[ \t]*\n(?P<body>[\s\S]*?)\n?```$")


class HttpClient(Protocol):  # Anything with an httpx-style post()
    def post(self, url: str, *, json: Dict[str, Any], headers: Dict[str, str], timeout: float) -> "HttpResponse": ...


class HttpResponse(Protocol):
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class LlmGatewayError(RuntimeError):  # Transport, status or validation failure
    pass


class TextReply(BaseModel):  # Free-text completion for routes without JSON output
    text: str

    @model_validator(mode="before")
    @classmethod
    def _unwrap_known_keys(cls, data: Any) -> Any:
        """Accept {"question": ...} or {"summary": ...} in place of {"text": ...}."""

        if isinstance(data, dict) and "text" not in data:
            for key in TEXT_KEYS:
                if isinstance(data.get(key), str):
                    return {"text": data[key].strip()}
        return data

    @classmethod
    def from_raw_content(cls, content: str) -> "TextReply":
        return cls(text=content.strip())


T = TypeVar("T", bound=BaseModel)


def call(
    task: str,
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> T:
    """Send ``task`` as a single user message and return the parsed reply."""

    return chat([{"role": "user", "content": task}], schema, cfg=cfg, client=client, options=options)


def chat(
    messages: Sequence[Dict[str, str]],
    schema: Type[T],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
    options: Optional[Dict[str, Any]] = None,
) -> T:
    """Run one completion on ``cfg``, re-asking while the reply fails ``schema``.

    Every failure surfaces as :class:`LlmGatewayError`; degrading is the
    caller's decision.
    """

    if cfg.sequential:
        with _route_lock(cfg):
            return _complete(messages, schema, cfg, client, options)
    return _complete(messages, schema, cfg, client, options)


def _complete(
    messages: Sequence[Dict[str, str]],
    schema: Type[T],
    cfg: LlmRoute,
    client: Optional[HttpClient],
    options: Optional[Dict[str, Any]],
) -> T:
    prompt = _prompt_messages(messages, schema, cfg.enforce_json)
    url = f"{cfg.base_url}{cfg.endpoint}"
    headers = _headers(cfg)
    attempts = cfg.max_retries + 1
    logger.info("LLM request route=%s model=%s attempts=%d", cfg.name, cfg.model, attempts)

    rejected: Optional[Exception] = None
    for attempt in range(1, attempts + 1):
        attempt_messages = prompt if rejected is None else prompt + [_retry_hint(rejected, cfg.enforce_json)]
        content = _send(url, _payload(cfg, attempt_messages, options), headers, cfg, client)
        try:
            reply = _validate(schema, content)
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning("LLM reply rejected route=%s attempt=%d: %s", cfg.name, attempt, exc)
            rejected = exc
            continue
        logger.info("LLM request done route=%s attempt=%d", cfg.name, attempt)
        return reply
    raise LlmGatewayError(f"LLM output failed validation after {attempts} attempts") from rejected


def _route_lock(cfg: LlmRoute) -> threading.Lock:
    key = cfg.name or f"{cfg.base_url}{cfg.endpoint}"
    with _ROUTE_LOCKS_GUARD:
        return _ROUTE_LOCKS.setdefault(key, threading.Lock())


def _prompt_messages(messages: Sequence[Dict[str, str]], schema: Type[BaseModel], enforce_json: bool) -> List[Dict[str, str]]:
    prompt: List[Dict[str, str]] = []
    if enforce_json:
        schema_json = json.dumps(schema.model_json_schema(), indent=2)
        prompt.append({"role": "system", "content": "Reply with a single JSON object matching this schema:\n" + schema_json})
    for item in messages:
        role = str(item.get("role", "")).strip()
        if not role:
            raise ValueError("Chat message missing role")
        prompt.append({"role": role, "content": str(item.get("content", ""))})
    return prompt


def _headers(cfg: LlmRoute) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    api_key = os.getenv(cfg.api_key_env) if cfg.api_key_env else None
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    headers.update(cfg.extra_headers)
    return headers


def _payload(cfg: LlmRoute, messages: List[Dict[str, str]], options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"model": cfg.model, "messages": messages}
    if options:
        payload.update(options)
    if cfg.response_format:
        payload["response_format"] = {"type": cfg.response_format}
    return payload


def _send(
    url: str,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    cfg: LlmRoute,
    client: Optional[HttpClient],
) -> str:
    try:
        if client is not None:
            return _read_content(client.post(url, json=payload, headers=headers, timeout=cfg.timeout_s))
        with httpx.Client(timeout=cfg.timeout_s) as http:
            return _read_content(http.post(url, json=payload, headers=headers))
    except httpx.TimeoutException as exc:
        logger.error("LLM request timed out after %.1fs route=%s", cfg.timeout_s, cfg.name)
        raise LlmGatewayError("LLM request timed out") from exc
    except httpx.HTTPError as exc:
        logger.error("LLM transport failure route=%s: %s", cfg.name, exc)
        raise LlmGatewayError("LLM transport failed") from exc


def _read_content(response: HttpResponse) -> str:
    if response.status_code >= 400:
        logger.error("LLM error status=%s", response.status_code)
        raise LlmGatewayError(f"LLM returned status {response.status_code}")
    try:
        data = response.json()
    except ValueError as exc:
        raise LlmGatewayError("LLM payload was not JSON") from exc
    if isinstance(data, dict):
        choices = data.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            if isinstance(message, dict) and isinstance(message.get("content"), str):
                return message["content"]
        if isinstance(data.get("content"), str):
            return data["content"]
    raise LlmGatewayError("LLM response missing content")


def _validate(schema: Type[T], content: str) -> T:
    text = content.strip()
    fenced = _FENCE.match(text)
    if fenced:
        text = fenced.group("body").strip()
    try:
        return schema.model_validate_json(text)
    except (json.JSONDecodeError, ValidationError):
        adapter = getattr(schema, "from_raw_content", None)
        if not callable(adapter):
            raise
        logger.debug("Reply for %s is not JSON; using raw content", schema.__name__)
        return adapter(text)  # type: ignore[no-any-return]


def _retry_hint(error: Exception, enforce_json: bool) -> Dict[str, str]:
    reason = str(error).splitlines()[0].strip() if str(error) else ""
    if len(reason) > 200:
        reason = reason[:197] + "..."
    hint = "The previous reply failed validation."
    if reason:
        hint += f" Reason: {reason}."
    hint += " Return a single JSON object that matches the schema." if enforce_json else " Follow the requested format precisely."
    return {"role": "system", "content": hint}

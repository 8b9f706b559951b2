"""Transports that carry gateway requests to a generation backend."""

from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional

import requests

from .config import Settings
from .errors import GatewayError, ValidationError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a senior software engineer producing small, runnable projects. "
    "Reply with a single JSON object of the form "
    '{"files": [{"path": "relative/path.ext", "language": "<language>", "content": "<full file text>"}], '
    '"summary": "<one paragraph>", "warnings": ["<optional caveat>"]}. '
    "Paths are relative and use forward slashes. Always return complete file contents."
)


def _user_message(request: dict) -> str:
    action = request.get("action")
    if action == "generate":
        return (
            "Build the following as a small runnable app. Include only the files it needs.\n"
            f"Task: {request['prompt']}"
        )
    if action == "explain":
        return (
            "Explain this code in plain language. Return the explanation as explanation.md "
            "and the original code as code.txt, and put a short summary in 'summary'.\n\n"
            f"CODE:\n{request['code']}"
        )
    if action == "edit":
        return (
            "Apply the following edits and return the full modified file(s). "
            "Split into several files when the code implies it.\n"
            f"Instruction: {request['instruction']}\n\nCODE:\n{request['code']}"
        )
    if action == "clone":
        return (
            "Below are the raw HTML and the extracted CSS of a website. Reconstruct a clean, "
            "minimal, working clone as exactly three files: index.html, styles.css, main.js. "
            "Keep the semantics, typography and key layout; replace external assets with placeholders.\n"
            f"URL: {request['url']}\n\nHTML:\n{request.get('html', '')}\n\nCSS:\n{request.get('css', '')}\n"
        )
    raise ValidationError(f"Unknown action: {action!r}")


def build_messages(request: dict) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": _user_message(request)},
    ]


def _error_text(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), str) and payload["error"].strip():
        return payload["error"].strip()
    text = response.text.strip()
    return text or f"Request failed: {response.status_code}"


def _message_content(payload: dict) -> str:
    """Return the first choice's message text; an empty string when there are no choices."""
    choices = payload.get("choices") or []
    if not isinstance(choices, list):
        raise GatewayError("Provider returned an unexpected response")
    if not choices:
        return ""
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        raise GatewayError("Provider returned an unexpected response")
    content = message.get("content")
    if content is None:
        return ""
    if not isinstance(content, str):
        raise GatewayError("Provider returned an unexpected response")
    return content


class HttpTransport:
    """POST each request as JSON to a remote backend endpoint."""

    def __init__(
        self,
        endpoint: str,
        session: Optional[requests.Session] = None,
        timeout: float = 60,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.endpoint = endpoint
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json", **(headers or {})}

    def send(self, request: dict) -> object:
        logger.debug("POST %s action=%s", self.endpoint, request.get("action"))
        try:
            response = self.session.post(self.endpoint, json=request, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise GatewayError(f"Backend unreachable: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise GatewayError(_error_text(response))
        try:
            return response.json()
        except ValueError as exc:
            raise GatewayError("Backend returned malformed JSON") from exc


class ProviderTransport:
    """Answer requests locally by prompting an OpenAI-compatible chat completions API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        session: Optional[requests.Session] = None,
        timeout: float = 60,
        temperature: float = 0.2,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.temperature = temperature

    def send(self, request: dict) -> object:
        body = {
            "model": self.model,
            "messages": build_messages(request),
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
        }
        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise GatewayError(f"Provider unreachable: {exc}") from exc
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if response.status_code >= 400 or not isinstance(payload, dict) or "error" in payload:
            message = "Request failed"
            if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
                message = payload["error"].get("message", message)
            elif response.status_code >= 400:
                message = _error_text(response)
            raise GatewayError(str(message))
        text = _message_content(payload)
        if not text:
            raise GatewayError("Provider returned an empty response")
        try:
            return json.loads(text)
        except ValueError as exc:
            raise GatewayError("Provider response is not valid JSON") from exc


def transport_from_settings(settings: Settings, session: Optional[requests.Session] = None):
    """Pick the remote backend when configured, else the direct provider."""

    timeout = settings.request_timeout
    if settings.backend_url:
        return HttpTransport(settings.backend_url, session=session, timeout=timeout)
    if settings.api_key:
        return ProviderTransport(
            settings.api_key,
            model=settings.get("model"),
            base_url=settings.get("provider_base_url"),
            session=session,
            timeout=timeout,
        )
    raise ValidationError("Set DEVFORGE_BACKEND_URL or OPENAI_API_KEY to enable AI actions.")

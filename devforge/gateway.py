"""Dispatch AI actions to the backend and normalize the replies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Protocol, Tuple
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from .core.models import Delta, FileRecord
from .errors import ActionError, GatewayError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class Action(str, Enum):
    GENERATE = "generate"
    EXPLAIN = "explain"
    EDIT = "edit"
    CLONE = "clone"


# Required payload fields per action, in outbound order
REQUIRED_FIELDS: Dict[Action, Tuple[str, ...]] = {
    Action.GENERATE: ("prompt",),
    Action.EXPLAIN: ("code",),
    Action.EDIT: ("code", "instruction"),
    Action.CLONE: ("url",),
}


class Transport(Protocol):
    def send(self, request: dict) -> object:
        """Deliver one request and return the decoded JSON reply."""
        ...


@dataclass(frozen=True)
class ClonedSite:
    url: str
    html: str
    stylesheets: Tuple[str, ...] = ()
    css: str = ""
    failed: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DispatchResult:
    action: Action | str
    delta: Optional[Delta] = None
    error: Optional[ActionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.delta is not None


class InflightGuard:
    """Caller-held gate allowing one pending invocation per action."""

    def __init__(self) -> None:
        self._pending: set[Action] = set()

    def acquire(self, action: Action | str) -> bool:
        key = coerce_action(action)
        if key in self._pending:
            return False
        self._pending.add(key)
        return True

    def release(self, action: Action | str) -> None:
        self._pending.discard(coerce_action(action))

    def is_pending(self, action: Action | str) -> bool:
        return coerce_action(action) in self._pending

    @property
    def pending(self) -> FrozenSet[Action]:
        return frozenset(self._pending)


def coerce_action(action: Action | str) -> Action:
    try:
        return Action(action)
    except ValueError:
        raise ValidationError(f"Unknown action: {action!r}") from None


def is_absolute_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def build_request(action: Action | str, payload: Dict[str, object]) -> dict:
    """Validate ``payload`` for ``action`` and return the outbound request."""

    action = coerce_action(action)
    request: dict = {"action": action.value}
    for name in REQUIRED_FIELDS[action]:
        value = payload.get(name)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{action.value}: '{name}' must not be empty")
        request[name] = value
    if action is Action.CLONE:
        url = str(request["url"]).strip()
        if not is_absolute_url(url):
            raise ValidationError("clone: enter a full http:// or https:// URL")
        request["url"] = url
    return request


def discover_stylesheets(html: str, base_url: str) -> List[str]:
    """Return absolute stylesheet URLs linked from ``html``, in document order."""

    soup = BeautifulSoup(html, "html.parser")
    found: List[str] = []
    for tag in soup.find_all("link"):
        rel = tag.get("rel") or []
        if isinstance(rel, str):
            rel = rel.split()
        if "stylesheet" not in {token.lower() for token in rel}:
            continue
        href = (tag.get("href") or "").strip()
        if not href:
            continue
        found.append(urljoin(base_url, href))
    return found


def normalize_reply(reply: object) -> Delta:
    """Turn a backend reply into a :class:`Delta`, dropping malformed entries."""

    if not isinstance(reply, dict):
        raise GatewayError("Backend reply is not a JSON object")
    if "error" in reply and "files" not in reply:
        raise GatewayError(f"Backend error: {reply['error']}")
    entries = reply.get("files")
    if not isinstance(entries, list):
        raise GatewayError("Backend reply has no 'files' list")

    files: List[FileRecord] = []
    dropped = 0
    for entry in entries:
        try:
            files.append(FileRecord.from_dict(entry))
        except ValueError as exc:
            dropped += 1
            logger.warning("Dropping malformed file entry: %s", exc)

    summary = reply.get("summary")
    raw_warnings = reply.get("warnings")
    warnings = [w for w in raw_warnings if isinstance(w, str)] if isinstance(raw_warnings, list) else []
    if dropped:
        warnings.append(f"Skipped {dropped} malformed file entr{'y' if dropped == 1 else 'ies'}")
    return Delta(
        files=tuple(files),
        summary=summary if isinstance(summary, str) else None,
        warnings=tuple(warnings),
    )


class ActionGateway:
    """Stateless mediator between UI actions and the generation backend."""

    def __init__(
        self,
        transport: Transport,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.transport = transport
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def dispatch(self, action: Action | str, **payload: object) -> DispatchResult:
        try:
            kind = coerce_action(action)
            delta = self._run(kind, payload)
        except ActionError as exc:
            logger.info("Action %s failed: %s", action, exc)
            return DispatchResult(action=_safe_action(action), error=exc)
        logger.info("Action %s returned %d file(s)", kind.value, len(delta.files))
        return DispatchResult(action=kind, delta=delta)

    def _run(self, action: Action, payload: Dict[str, object]) -> Delta:
        request = build_request(action, payload)
        if action is Action.CLONE:
            site = self.fetch_site(str(request["url"]))
            request["html"] = site.html
            request["css"] = site.css
        reply = self.transport.send(request)
        return normalize_reply(reply)

    def fetch_site(self, url: str) -> ClonedSite:
        """Fetch a page and the stylesheets it links; stylesheet failures are skipped."""

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise GatewayError(f"Could not fetch {url}: {exc}") from exc
        html = response.text

        stylesheets = discover_stylesheets(html, url)
        bodies: List[str] = []
        failed: List[str] = []
        for href in stylesheets:
            try:
                css_response = self.session.get(href, timeout=self.timeout)
                css_response.raise_for_status()
            except requests.RequestException as exc:
                logger.info("Skipping stylesheet %s: %s", href, exc)
                failed.append(href)
                continue
            bodies.append(css_response.text)
        return ClonedSite(
            url=url,
            html=html,
            stylesheets=tuple(stylesheets),
            css="\n\n".join(bodies),
            failed=tuple(failed),
        )


def _safe_action(action: Action | str) -> Action | str:
    try:
        return Action(action)
    except ValueError:
        return action

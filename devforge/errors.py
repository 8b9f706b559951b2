"""Error types surfaced by the DevForge core."""

from __future__ import annotations


class DevForgeError(Exception):
    """Base class for every error raised by the package."""


class ActionError(DevForgeError):
    """An AI action could not be completed; the message is shown to the user."""

    kind = "action"


class ValidationError(ActionError):
    """Caller input was rejected before any external call was attempted."""

    kind = "validation"


class GatewayError(ActionError):
    """The backend call failed or replied with something unusable."""

    kind = "gateway"

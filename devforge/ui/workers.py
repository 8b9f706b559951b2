"""Background workers that keep network calls off the UI thread."""

from __future__ import annotations

import logging

from PyQt6.QtCore import QObject, pyqtSignal

from ..errors import GatewayError
from ..gateway import ActionGateway, DispatchResult

logger = logging.getLogger(__name__)


class ActionWorker(QObject):
    finished = pyqtSignal(object)

    def __init__(self, gateway: ActionGateway, action: str, payload: dict) -> None:
        super().__init__()
        self.gateway = gateway
        self.action = action
        self.payload = payload

    def run(self) -> None:
        try:
            result = self.gateway.dispatch(self.action, **self.payload)
        except Exception as exc:  # noqa: BLE001 - reported to the user as a failed action
            logger.exception("Unexpected failure in %s", self.action)
            result = DispatchResult(action=self.action, error=GatewayError(str(exc)))
        self.finished.emit(result)

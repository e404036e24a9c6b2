"""
AT Command Service
Thin adapter over the modem's AT command CGI endpoint.

The endpoint itself owns retries and busy detection; this adapter issues a
single request and turns its JSON reply into an ATCommandResult.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from .preferences import TransportConfig, get_preferences

logger = logging.getLogger(__name__)


@dataclass
class ATCommandResult:
    """Outcome of one AT command request"""

    ok: bool
    data: str = ""
    error: Optional[str] = None
    busy: bool = False
    attempts: int = 0
    command: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "data": self.data,
            "error": self.error,
            "busy": self.busy,
            "attempts": self.attempts,
            "command": self.command,
        }


class ATCommandService:
    """Executes batched AT commands through the transport endpoint"""

    def __init__(self, config: TransportConfig = None, session: requests.Session = None):
        self._config = config
        self._session = session or requests.Session()

    @property
    def config(self) -> TransportConfig:
        return self._config or get_preferences().get_transport_config()

    def execute(self, atcmd: str, timeout: float = None) -> ATCommandResult:
        """Run one command batch (commands joined with ';')"""
        command = atcmd.strip() if isinstance(atcmd, str) else ""
        if not command:
            return ATCommandResult(ok=False, error="Empty or invalid AT command.")

        config = self.config
        try:
            response = self._session.get(
                config.endpoint,
                params={"atcmd": command},
                timeout=timeout or config.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.Timeout:
            logger.error(f"AT request timed out: {command}")
            return ATCommandResult(ok=False, error="AT request timed out.", attempts=1, command=command)
        except requests.RequestException as e:
            logger.error(f"AT request failed: {e}")
            return ATCommandResult(ok=False, error=str(e), attempts=1, command=command)
        except ValueError as e:
            logger.error(f"Invalid AT endpoint response: {e}")
            return ATCommandResult(ok=False, error="Invalid AT Response.", attempts=1, command=command)

        return self._interpret(payload, command)

    @staticmethod
    def _interpret(payload: dict, command: str) -> ATCommandResult:
        output = payload.get("output") or ""
        attempts = payload.get("attempts") or 1

        if payload.get("success"):
            if payload.get("has_error"):
                return ATCommandResult(
                    ok=False,
                    data=output,
                    error="The modem returned ERROR.",
                    attempts=attempts,
                    command=payload.get("command", command),
                )
            return ATCommandResult(ok=True, data=output, attempts=attempts, command=payload.get("command", command))

        busy = bool(payload.get("busy"))
        default_message = "The modem is busy. Try again later." if busy else "Command execution failed."
        return ATCommandResult(
            ok=False,
            data=output,
            error=payload.get("message") or default_message,
            busy=busy,
            attempts=attempts,
            command=payload.get("command", command),
        )

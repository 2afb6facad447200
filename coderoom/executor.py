"""Stateless passthrough to a Piston-compatible code execution service.

Execution never touches room state and is never broadcast. Every failure mode
(service disabled, unreachable, timing out, answering with an error or with
garbage) is folded into an ``ExecutionResult`` with ``ok=False`` so callers do
not have to handle exceptions.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .config import Settings, get_settings
from .schemas import ExecutionResult

logger = logging.getLogger(__name__)


class CodeExecutor:
    def __init__(
        self,
        *,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        enabled: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.url = url or settings.execution_url
        self.timeout = timeout if timeout is not None else settings.execution_timeout
        self.enabled = settings.execution_enabled if enabled is None else enabled
        self._transport = transport

    def _payload(self, language: str, code: str, stdin: str) -> Dict[str, Any]:
        return {
            "language": language,
            "version": "*",
            "files": [{"content": code}],
            "stdin": stdin,
        }

    async def run(self, language: str, code: str, stdin: str = "") -> ExecutionResult:
        if not self.enabled:
            return ExecutionResult(ok=False, error="code execution is disabled")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.url, json=self._payload(language, code, stdin))
        except httpx.TimeoutException:
            logger.warning("execution service timed out after %ss", self.timeout)
            return ExecutionResult(ok=False, error="execution service timed out")
        except httpx.HTTPError as exc:
            logger.warning("execution service unreachable: %s", exc)
            return ExecutionResult(ok=False, error="execution service unavailable")

        if not resp.is_success:
            detail = _error_message(resp)
            logger.info("execution service error %s: %s", resp.status_code, detail)
            return ExecutionResult(ok=False, error=detail)

        try:
            body = resp.json()
            run = body["run"]
            return ExecutionResult(
                ok=True,
                stdout=run.get("stdout") or "",
                stderr=run.get("stderr") or "",
                exit_code=run.get("code"),
            )
        except (ValueError, KeyError, TypeError, AttributeError):
            logger.warning("malformed execution response: %.200s", resp.text)
            return ExecutionResult(ok=False, error="malformed response from execution service")


def _error_message(resp: httpx.Response) -> str:
    try:
        message = resp.json().get("message")
    except (ValueError, AttributeError):
        message = None
    if isinstance(message, str) and message:
        return message
    return f"execution service returned {resp.status_code}"


__all__ = ["CodeExecutor"]

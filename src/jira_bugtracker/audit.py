"""Audit logging for bug tracker plugin operations.

Provides append-only audit logging in JSON Lines format for every
operation the host invokes on a plugin.
"""

from __future__ import annotations

import json
import re
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

# Patterns for sensitive argument keys
SENSITIVE_PATTERNS = [
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"secret", re.IGNORECASE),
    re.compile(r"token", re.IGNORECASE),
    re.compile(r"credential", re.IGNORECASE),
]


def _is_sensitive_key(key: str) -> bool:
    """Check if a key name indicates sensitive data."""
    return any(pattern.search(key) for pattern in SENSITIVE_PATTERNS)


def _sanitize_arguments(arguments: dict[str, Any]) -> dict[str, Any]:
    """Sanitize arguments by redacting sensitive values.

    Args:
        arguments: Original arguments dictionary.

    Returns:
        New dictionary with sensitive values redacted.
    """
    sanitized = {}
    for key, value in arguments.items():
        if _is_sensitive_key(key):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = _sanitize_arguments(value)
        else:
            sanitized[key] = value
    return sanitized


def _get_timestamp() -> str:
    """Get current UTC timestamp in ISO 8601 format."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class AuditLogger:
    """Append-only audit logger with JSON Lines format.

    The log file is flushed after each write.
    """

    def __init__(self, log_path: Path) -> None:
        """Initialize the audit logger.

        Args:
            log_path: Path to the audit log file.
        """
        self._log_path = log_path
        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(log_path, "a", encoding="utf-8")  # noqa: SIM115

    def _write_line(self, data: dict[str, Any]) -> None:
        """Write a JSON line to the log file and flush."""
        self._file.write(json.dumps(data, default=str) + "\n")
        self._file.flush()

    def log_request(self, request_id: str, operation: str, arguments: dict[str, Any]) -> None:
        """Log an incoming plugin operation.

        Args:
            request_id: Unique identifier for this request.
            operation: Name of the plugin operation.
            arguments: Operation arguments (will be sanitized).
        """
        self._write_line(
            {
                "type": "request",
                "timestamp": _get_timestamp(),
                "request_id": request_id,
                "operation": operation,
                "arguments": _sanitize_arguments(arguments),
            }
        )

    def log_response(
        self, request_id: str, status: str, duration_ms: float, error: str | None = None
    ) -> None:
        """Log the outcome of a plugin operation.

        Args:
            request_id: Request identifier to correlate with.
            status: Result status (success/error).
            duration_ms: Execution time in milliseconds.
            error: Error message for failed operations.
        """
        event: dict[str, Any] = {
            "type": "response",
            "timestamp": _get_timestamp(),
            "request_id": request_id,
            "result_status": status,
            "execution_time_ms": duration_ms,
        }
        if error is not None:
            event["error"] = error
        self._write_line(event)

    @contextmanager
    def operation(self, operation: str, arguments: dict[str, Any]) -> Iterator[str]:
        """Log the request and response around one operation.

        Yields:
            The request id.
        """
        request_id = uuid4().hex
        self.log_request(request_id, operation, arguments)
        started = time.perf_counter()
        try:
            yield request_id
        except Exception as e:
            duration_ms = (time.perf_counter() - started) * 1000
            self.log_response(request_id, "error", duration_ms, error=str(e))
            raise
        duration_ms = (time.perf_counter() - started) * 1000
        self.log_response(request_id, "success", duration_ms)

    def close(self) -> None:
        """Close the log file."""
        if self._file and not self._file.closed:
            self._file.close()

    def __enter__(self) -> AuditLogger:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.close()

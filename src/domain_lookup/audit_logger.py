"""
Audit Logger module for the domain lookup engine.

Provides structured logging with dual-format output (JSON and human-readable text),
a minimum severity filter, optional HMAC signing of entries, and masking of
credentials before anything is written.
"""

import hashlib
import hmac
import json
import sys
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, TextIO

from .config import LoggingConfig
from .enums import LogLevel


_SEVERITY = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARN: 30,
    LogLevel.ERROR: 40,
}


@dataclass
class LogEntry:
    """Represents a single log entry with all metadata."""

    timestamp: str
    level: LogLevel
    component: str
    message: str
    data: dict = field(default_factory=dict)
    signature: Optional[str] = None

    def signable(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "level": self.level.value,
            "component": self.component,
            "message": self.message,
            "data": self.data,
        }


class AuditLogger:
    """
    Structured logger used by every engine component.

    Entries below the configured minimum level are dropped. Values under
    sensitive keys (passwords, credentials, tokens) are replaced before the
    entry is stored, signed or written.
    """

    SENSITIVE_KEYS = frozenset({
        "password", "credential", "secret", "token", "api_key",
        "authorization", "signing_key", "private_key",
    })

    MASK_VALUE = "***MASKED***"

    def __init__(
        self,
        output_format: str = "text",
        output_stream: Optional[TextIO] = None,
        min_level: LogLevel = LogLevel.INFO,
        max_entries: int = 1000,
    ):
        """
        Initialize the audit logger.

        Args:
            output_format: Output format - 'json', 'text', or 'both'
            output_stream: Output stream for log entries (defaults to sys.stderr)
            min_level: Entries below this level are discarded
            max_entries: Most recent entries kept in memory; older ones are
                dropped (the output stream still receives every entry)
        """
        if output_format not in ("json", "text", "both"):
            raise ValueError(f"Invalid output_format: {output_format}")

        self._output_format = output_format
        self._output_stream = output_stream or sys.stderr
        self._min_level = min_level
        self._signing_key: Optional[bytes] = None
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)

    @classmethod
    def from_config(
        cls, config: LoggingConfig, output_stream: Optional[TextIO] = None
    ) -> "AuditLogger":
        """Build a logger from the logging section of the engine config."""
        logger = cls(
            output_format=config.output_format,
            output_stream=output_stream,
            min_level=LogLevel(config.level),
        )
        if config.audit_mode and config.audit_signing_key:
            logger.enable_audit_mode(config.audit_signing_key)
        return logger

    @property
    def audit_mode(self) -> bool:
        return self._signing_key is not None

    @property
    def entries(self) -> list[LogEntry]:
        """Most recent entries that passed the level filter."""
        return list(self._entries)

    def enable_audit_mode(self, signing_key: str) -> None:
        if not signing_key:
            raise ValueError("Signing key cannot be empty")
        self._signing_key = signing_key.encode("utf-8")

    def is_enabled_for(self, level: LogLevel) -> bool:
        return _SEVERITY[level] >= _SEVERITY[self._min_level]

    def log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Log an entry in the configured format(s).

        Returns:
            The created LogEntry, or None when filtered out by level
        """
        if not self.is_enabled_for(level):
            return None

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            component=component,
            message=message,
            data=self.mask_sensitive_data(data or {}),
        )

        if self._signing_key:
            entry.signature = self._sign_entry(entry)

        self._entries.append(entry)
        self._write(entry)
        return entry

    def debug(self, component: str, message: str, data: Optional[dict] = None) -> Optional[LogEntry]:
        return self.log(LogLevel.DEBUG, component, message, data)

    def info(self, component: str, message: str, data: Optional[dict] = None) -> Optional[LogEntry]:
        return self.log(LogLevel.INFO, component, message, data)

    def warn(self, component: str, message: str, data: Optional[dict] = None) -> Optional[LogEntry]:
        return self.log(LogLevel.WARN, component, message, data)

    def error(
        self,
        component: str,
        message: str,
        error: Optional[Exception] = None,
        data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """Log an error, attaching the exception type and text when given."""
        context = dict(data or {})
        if error is not None:
            context["error_message"] = str(error)
            context["error_type"] = type(error).__name__
        return self.log(LogLevel.ERROR, component, message, context)

    def mask_sensitive_data(self, data: dict) -> dict:
        """Recursively mask values stored under sensitive keys."""
        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if any(sensitive in key_lower for sensitive in self.SENSITIVE_KEYS):
                masked[key] = self.MASK_VALUE
            elif isinstance(value, dict):
                masked[key] = self.mask_sensitive_data(value)
            elif isinstance(value, list):
                masked[key] = [
                    self.mask_sensitive_data(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                masked[key] = value
        return masked

    def verify_signature(self, entry: LogEntry) -> bool:
        if not entry.signature or not self._signing_key:
            return False
        return hmac.compare_digest(entry.signature, self._sign_entry(entry))

    def _sign_entry(self, entry: LogEntry) -> str:
        content = json.dumps(entry.signable(), sort_keys=True, ensure_ascii=False, default=str)
        return hmac.new(self._signing_key, content.encode("utf-8"), hashlib.sha256).hexdigest()

    def _write(self, entry: LogEntry) -> None:
        if self._output_format in ("json", "both"):
            self._output_stream.write(self.format_json(entry) + "\n")
        if self._output_format in ("text", "both"):
            self._output_stream.write(self.format_text(entry) + "\n")
        self._output_stream.flush()

    def format_json(self, entry: LogEntry) -> str:
        obj = entry.signable()
        if entry.signature:
            obj["signature"] = entry.signature
        return json.dumps(obj, ensure_ascii=False, default=str)

    def format_text(self, entry: LogEntry) -> str:
        # [TIMESTAMP] LEVEL [COMPONENT] MESSAGE {data}
        parts = [
            f"[{entry.timestamp}]",
            entry.level.value.upper(),
            f"[{entry.component}]",
            entry.message,
        ]
        if entry.data:
            parts.append(json.dumps(entry.data, ensure_ascii=False, default=str))

        text = " ".join(parts)
        if entry.signature:
            text += f" [sig:{entry.signature[:16]}...]"
        return text

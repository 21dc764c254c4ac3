"""
Quota Gate module for the domain lookup engine.

This module provides per-caller request quotas with:
- A fixed window per caller key, created on first use and replaced on expiry
- A ceiling chosen per call site (detail lookups, prices, suffix list)
- A full bypass for authenticated callers
- Windows kept in an injected MemoryStore so tests can isolate state
"""

from .models import AuthDecision, QuotaStatus, QuotaWindow
from .store import MemoryStore


class QuotaGate:
    """
    Fixed-window request quota for one call site.

    Ensures:
    - At most ``ceiling`` requests are allowed per caller key per window
    - A denied request leaves the window untouched
    - Authenticated callers are never counted or denied
    """

    def __init__(
        self,
        store: MemoryStore,
        scope: str,
        ceiling: int,
        window_seconds: float = 60.0,
    ) -> None:
        """
        Initialize the gate.

        Args:
            store: Shared store holding the quota windows
            scope: Name of the call site; windows are kept per scope
            ceiling: Maximum allowed requests per window
            window_seconds: Window length
        """
        if ceiling < 1:
            raise ValueError(f"Quota ceiling must be positive: {ceiling}")
        self._store = store
        self._scope = scope
        self._ceiling = ceiling
        self._window_seconds = window_seconds

    @property
    def scope(self) -> str:
        return self._scope

    @property
    def ceiling(self) -> int:
        return self._ceiling

    def current(self, caller_key: str, auth: AuthDecision) -> QuotaStatus:
        """Report the caller's window without counting a request."""
        now = self._store.now()
        if auth.authenticated:
            return QuotaStatus(
                allowed=True, count=0, reset_at=now + self._window_seconds, limit=None
            )

        with self._store.lock:
            window = self._store.windows.get((self._scope, caller_key))
            if window is None or now > window.reset_at:
                return QuotaStatus(
                    allowed=True,
                    count=0,
                    reset_at=now + self._window_seconds,
                    limit=self._ceiling,
                )
            return QuotaStatus(
                allowed=window.count < self._ceiling,
                count=window.count,
                reset_at=window.reset_at,
                limit=self._ceiling,
            )

    def check(self, caller_key: str, auth: AuthDecision) -> QuotaStatus:
        """
        Count a request against the caller's window.

        Args:
            caller_key: Caller identifier (source IP)
            auth: Authentication decision for the request

        Returns:
            QuotaStatus; ``allowed`` is False once the ceiling is reached
        """
        now = self._store.now()

        if auth.authenticated:
            return QuotaStatus(
                allowed=True,
                count=0,
                reset_at=now + self._window_seconds,
                limit=None,
            )

        key = (self._scope, caller_key)
        with self._store.lock:
            window = self._store.windows.get(key)

            if window is None or now > window.reset_at:
                window = QuotaWindow(
                    caller_key=caller_key,
                    count=1,
                    reset_at=now + self._window_seconds,
                )
                self._store.windows[key] = window
                return QuotaStatus(
                    allowed=True,
                    count=window.count,
                    reset_at=window.reset_at,
                    limit=self._ceiling,
                )

            if window.count >= self._ceiling:
                return QuotaStatus(
                    allowed=False,
                    count=window.count,
                    reset_at=window.reset_at,
                    limit=self._ceiling,
                )

            window.count += 1
            return QuotaStatus(
                allowed=True,
                count=window.count,
                reset_at=window.reset_at,
                limit=self._ceiling,
            )

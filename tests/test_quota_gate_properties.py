"""
Property-based tests for the Quota Gate module.

Uses Hypothesis for property-based testing to verify the fixed-window
quota behaviour, the authenticated bypass and lock-protected counting.
"""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from domain_lookup.enums import AuthMode
from domain_lookup.models import AuthDecision
from domain_lookup.quota_gate import QuotaGate
from domain_lookup.store import MemoryStore


ANONYMOUS = AuthDecision(authenticated=False, mode=AuthMode.NONE)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# Strategies for generating test data

caller_key_strategy = st.from_regex(r"\A(?:\d{1,3}\.){3}\d{1,3}\Z")

auth_strategy = st.sampled_from([
    AuthDecision(authenticated=True, mode=AuthMode.ADMIN),
    AuthDecision(authenticated=True, mode=AuthMode.PERSONAL),
])


def make_gate(ceiling: int, window: float = 60.0, scope: str = "domain-query"):
    clock = FakeClock()
    store = MemoryStore(clock=clock)
    return QuotaGate(store, scope, ceiling, window), store, clock


class TestCeilingProperty:
    """
    At most ``ceiling`` requests are allowed per caller key per window; the
    next one is denied with the window left unchanged.
    """

    @given(
        ceiling=st.integers(min_value=1, max_value=40),
        extra=st.integers(min_value=1, max_value=10),
        caller=caller_key_strategy,
    )
    @settings(max_examples=100)
    def test_requests_beyond_ceiling_are_denied(
        self, ceiling: int, extra: int, caller: str
    ) -> None:
        gate, _, clock = make_gate(ceiling)

        statuses = []
        for _ in range(ceiling + extra):
            statuses.append(gate.check(caller, ANONYMOUS))
            clock.advance(0.01)

        allowed = [s for s in statuses if s.allowed]
        denied = [s for s in statuses if not s.allowed]

        assert len(allowed) == ceiling
        assert len(denied) == extra
        assert [s.count for s in allowed] == list(range(1, ceiling + 1))

        # Denials report the unchanged window
        first_reset = statuses[0].reset_at
        for status in denied:
            assert status.count == ceiling
            assert status.reset_at == first_reset
            assert status.remaining == 0

    @given(ceiling=st.integers(min_value=1, max_value=20))
    @settings(max_examples=50)
    def test_window_resets_after_expiry(self, ceiling: int) -> None:
        gate, _, clock = make_gate(ceiling, window=60.0)

        for _ in range(ceiling):
            gate.check("10.0.0.1", ANONYMOUS)
        assert not gate.check("10.0.0.1", ANONYMOUS).allowed

        clock.advance(60.5)
        status = gate.check("10.0.0.1", ANONYMOUS)

        assert status.allowed
        assert status.count == 1
        assert status.reset_at == pytest.approx(clock.now + 60.0)

    def test_window_still_active_at_exact_reset_time(self) -> None:
        gate, _, clock = make_gate(1, window=60.0)

        first = gate.check("10.0.0.1", ANONYMOUS)
        clock.now = first.reset_at

        assert not gate.check("10.0.0.1", ANONYMOUS).allowed

    @given(
        callers=st.lists(caller_key_strategy, min_size=2, max_size=5, unique=True),
        ceiling=st.integers(min_value=1, max_value=5),
    )
    @settings(max_examples=50)
    def test_callers_counted_independently(self, callers: list, ceiling: int) -> None:
        gate, _, _ = make_gate(ceiling)

        for _ in range(ceiling):
            gate.check(callers[0], ANONYMOUS)
        assert not gate.check(callers[0], ANONYMOUS).allowed

        for caller in callers[1:]:
            status = gate.check(caller, ANONYMOUS)
            assert status.allowed
            assert status.count == 1

    def test_scopes_counted_independently(self) -> None:
        store = MemoryStore(clock=FakeClock())
        details = QuotaGate(store, "domain-query", 1)
        prices = QuotaGate(store, "price", 1)

        assert details.check("10.0.0.1", ANONYMOUS).allowed
        assert not details.check("10.0.0.1", ANONYMOUS).allowed
        assert prices.check("10.0.0.1", ANONYMOUS).allowed

    def test_non_positive_ceiling_rejected(self) -> None:
        store = MemoryStore()
        with pytest.raises(ValueError):
            QuotaGate(store, "domain-query", 0)


class TestAuthenticatedBypassProperty:
    """An authenticated caller, in either mode, is never denied or counted."""

    @given(
        auth=auth_strategy,
        requests=st.integers(min_value=1, max_value=200),
        ceiling=st.integers(min_value=1, max_value=5),
    )
    @settings(max_examples=100)
    def test_authenticated_never_denied(
        self, auth: AuthDecision, requests: int, ceiling: int
    ) -> None:
        gate, store, _ = make_gate(ceiling)

        for _ in range(requests):
            status = gate.check("10.0.0.1", auth)
            assert status.allowed
            assert status.count == 0
            assert status.limit is None
            assert status.remaining is None

        assert store.window_count() == 0

    def test_admin_and_personal_modes_behave_identically(self) -> None:
        admin_gate, _, _ = make_gate(1)
        personal_gate, _, _ = make_gate(1)

        admin = [
            admin_gate.check("10.0.0.1", AuthDecision(True, AuthMode.ADMIN)) for _ in range(5)
        ]
        personal = [
            personal_gate.check("10.0.0.1", AuthDecision(True, AuthMode.PERSONAL))
            for _ in range(5)
        ]

        assert [s.to_dict() for s in admin] == [s.to_dict() for s in personal]


class TestCurrentStatusProperty:
    """Reading the current window never counts a request."""

    @given(
        used=st.integers(min_value=0, max_value=10),
        reads=st.integers(min_value=1, max_value=10),
    )
    @settings(max_examples=50)
    def test_current_does_not_count(self, used: int, reads: int) -> None:
        gate, _, _ = make_gate(10)

        for _ in range(used):
            gate.check("10.0.0.1", ANONYMOUS)
        for _ in range(reads):
            status = gate.current("10.0.0.1", ANONYMOUS)
            assert status.count == used

        assert gate.check("10.0.0.1", ANONYMOUS).allowed == (used < 10)


class TestConcurrentAccessProperty:
    """Concurrent checks from the same caller never lose updates."""

    @pytest.mark.parametrize("ceiling", [1, 12, 30])
    def test_parallel_checks_allow_exactly_ceiling(self, ceiling: int) -> None:
        gate, store, _ = make_gate(ceiling)
        barrier = threading.Barrier(8)

        def worker() -> int:
            barrier.wait()
            return sum(1 for _ in range(20) if gate.check("10.0.0.1", ANONYMOUS).allowed)

        with ThreadPoolExecutor(max_workers=8) as pool:
            allowed = sum(pool.map(lambda _: worker(), range(8)))

        assert allowed == ceiling
        assert store.windows[("domain-query", "10.0.0.1")].count == ceiling


class TestSweepProperty:
    """The periodic sweep drops only expired windows."""

    def test_sweep_removes_expired_windows(self) -> None:
        gate, store, clock = make_gate(5, window=60.0)

        gate.check("10.0.0.1", ANONYMOUS)
        clock.advance(30)
        gate.check("10.0.0.2", ANONYMOUS)
        clock.advance(31)

        assert store.sweep() == 1
        assert store.window_count() == 1
        assert ("domain-query", "10.0.0.2") in store.windows

    def test_sweeper_task_runs_and_stops(self) -> None:
        async def scenario() -> int:
            clock = FakeClock()
            store = MemoryStore(clock=clock, sweep_interval_seconds=0.01)
            gate = QuotaGate(store, "domain-query", 5, 60.0)
            gate.check("10.0.0.1", ANONYMOUS)
            clock.advance(61)

            store.start()
            await asyncio.sleep(0.05)
            remaining = store.window_count()
            await store.close()
            return remaining

        assert asyncio.run(scenario()) == 0

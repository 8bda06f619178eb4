"""Amplification coefficient ramp controller.

A changes only through scheduled linear ramps so that no single transaction
can move the curve shape abruptly:

    A(t) = initial_a                                         t <= initial_a_time
    A(t) = initial_a + (future_a - initial_a) * elapsed / span  in between
    A(t) = future_a                                          t >= future_a_time
"""

from __future__ import annotations

import structlog

from stableswap.clock import Clock
from stableswap.constants import (
    A_LOW_THRESHOLD,
    DEFAULT_MIN_RAMP_TIME,
    MAX_A,
    MAX_A_CHANGE,
    MAX_A_CHANGE_LOW,
)
from stableswap.errors import (
    ExcessiveAChange,
    InsufficientRampTime,
    InvalidFutureA,
    InvalidParameter,
    RampAlreadyInProgress,
)
from stableswap.governance.access import Ownership

logger = structlog.get_logger()


class AmplificationRamp:
    """Holds and time-interpolates the amplification coefficient A.

    Attributes:
        initial_a: A at the start of the current (or last) ramp
        future_a: A at the end of the current (or last) ramp
        initial_a_time: Ramp start timestamp
        future_a_time: Ramp end timestamp
        min_ramp_time: Minimum duration of any new ramp, in seconds
    """

    def __init__(
        self,
        initial_a: int,
        owner: str,
        clock: Clock,
        min_ramp_time: int = DEFAULT_MIN_RAMP_TIME,
    ) -> None:
        _validate_a(initial_a)
        if min_ramp_time < 0:
            raise InvalidParameter(f"min_ramp_time must be non-negative, got {min_ramp_time}")
        now = clock.now()
        self._clock = clock
        self.ownership = Ownership(owner)
        self.initial_a = initial_a
        self.future_a = initial_a
        self.initial_a_time = now
        self.future_a_time = now
        self.min_ramp_time = min_ramp_time

    def get_a(self) -> int:
        """Current interpolated A (integer-truncated toward initial_a)."""
        now = self._clock.now()
        if now >= self.future_a_time:
            return self.future_a
        if now <= self.initial_a_time:
            return self.initial_a

        elapsed = now - self.initial_a_time
        span = self.future_a_time - self.initial_a_time
        if self.future_a > self.initial_a:
            return self.initial_a + (self.future_a - self.initial_a) * elapsed // span
        return self.initial_a - (self.initial_a - self.future_a) * elapsed // span

    @property
    def is_ramping(self) -> bool:
        return self._clock.now() < self.future_a_time

    def ramp_a(self, caller: str, future_a: int, future_time: int) -> None:
        """Schedule a linear ramp from the current A to future_a.

        Raises:
            NotGovernor: If caller is not the owner
            RampAlreadyInProgress: If the previous ramp has not finished
            InsufficientRampTime: If the ramp is shorter than min_ramp_time
            InvalidFutureA: If future_a is outside (0, MAX_A]
            ExcessiveAChange: If future_a is more than 2x (10x at A <= 2)
                above or less than half of the current A
        """
        self.ownership.require_owner(caller)
        now = self._clock.now()
        if now < self.future_a_time:
            raise RampAlreadyInProgress(f"Ramp in progress until {self.future_a_time}")
        if future_time < now + self.min_ramp_time:
            raise InsufficientRampTime(
                f"Ramp must last at least {self.min_ramp_time}s, got {future_time - now}s"
            )
        _validate_a(future_a)

        current_a = self.get_a()
        _check_a_change(current_a, future_a)

        self.initial_a = current_a
        self.future_a = future_a
        self.initial_a_time = now
        self.future_a_time = future_time
        logger.info(
            "a_ramp_started",
            initial_a=current_a,
            future_a=future_a,
            initial_a_time=now,
            future_a_time=future_time,
        )

    def stop_ramp(self, caller: str) -> int:
        """Freeze A at its current interpolated value."""
        self.ownership.require_owner(caller)
        current_a = self.get_a()
        now = self._clock.now()
        self.initial_a = current_a
        self.future_a = current_a
        self.initial_a_time = now
        self.future_a_time = now
        logger.info("a_ramp_stopped", current_a=current_a, timestamp=now)
        return current_a

    @property
    def governor(self) -> str:
        return self.ownership.owner

    def propose_governor(self, caller: str, new_governor: str) -> None:
        self.ownership.propose(caller, new_governor)

    def accept_governor(self, caller: str) -> None:
        self.ownership.accept(caller)

    def set_min_ramp_time(self, caller: str, min_ramp_time: int) -> None:
        self.ownership.require_owner(caller)
        if min_ramp_time < 0:
            raise InvalidParameter(f"min_ramp_time must be non-negative, got {min_ramp_time}")
        self.min_ramp_time = min_ramp_time
        logger.info("min_ramp_time_updated", min_ramp_time=min_ramp_time)


def _validate_a(value: int) -> None:
    if value <= 0 or value > MAX_A:
        raise InvalidFutureA(f"A must be in (0, {MAX_A}], got {value}")


def _check_a_change(current_a: int, future_a: int) -> None:
    # Small A values get a wider upward allowance; A = 1 could otherwise only reach 2
    if current_a <= A_LOW_THRESHOLD:
        if future_a > current_a * MAX_A_CHANGE_LOW:
            raise ExcessiveAChange(
                f"future_a {future_a} exceeds {MAX_A_CHANGE_LOW}x current A {current_a}"
            )
        return
    if future_a > current_a * MAX_A_CHANGE:
        raise ExcessiveAChange(f"future_a {future_a} exceeds {MAX_A_CHANGE}x current A {current_a}")
    if future_a * MAX_A_CHANGE < current_a:
        raise ExcessiveAChange(f"future_a {future_a} is below current A {current_a} / {MAX_A_CHANGE}")

"""Retry-gated, run-once bootstrap for the Docker connection.

State machine
-------------
UNINITIALIZED  – no attempt has run yet (or the last one was cancelled).
BOOTSTRAPPING  – one attempt is in flight; other callers wait for it.
READY          – bootstrap succeeded; ``ensure_ready`` is a no-op.
FAILED         – the last attempt failed; callers get ``InitError`` until the
                 retry policy opens the next attempt window.

Attempts are triggered by callers, never by a background timer: a caller
arriving after the retry window opens runs the next attempt itself.
"""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from dockutil.errors import InitError
from dockutil.models.config import RetryConfig
from dockutil.models.docker import InitState
from dockutil.observability.logging import get_logger
from dockutil.observability.metrics import init_attempts_total, init_state


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential back-off between bootstrap attempts.

    After ``max_attempts`` consecutive failures the gate waits ``cooldown_s``
    and starts counting again; with ``cooldown_s=None`` it never retries.
    """

    max_attempts: int = 5
    initial_delay_s: float = 1.0
    max_delay_s: float = 30.0
    multiplier: float = 2.0
    cooldown_s: float | None = 300.0

    @classmethod
    def from_config(cls, config: RetryConfig) -> RetryPolicy:
        return cls(
            max_attempts=config.max_attempts,
            initial_delay_s=config.initial_delay_s,
            max_delay_s=config.max_delay_s,
            cooldown_s=config.cooldown_s,
        )

    def delay_after(self, failures: int) -> float:
        """Return the wait before the next attempt after ``failures`` in a row."""
        if failures >= self.max_attempts:
            return math.inf if self.cooldown_s is None else self.cooldown_s
        return min(self.initial_delay_s * self.multiplier ** (failures - 1), self.max_delay_s)


class InitGate:
    """Runs ``bootstrap`` once, shielding concurrent callers from re-running it.

    Example::

        gate = InitGate(connect, RetryPolicy(max_attempts=3))
        await gate.ensure_ready()  # raises InitError while unavailable
    """

    def __init__(
        self,
        bootstrap: Callable[[], Awaitable[None]],
        policy: RetryPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._log = get_logger("docker.init_gate")
        self._bootstrap = bootstrap
        self._policy = policy if policy is not None else RetryPolicy()
        self._clock = clock

        self._state: InitState = InitState.UNINITIALIZED
        self._done: asyncio.Event | None = None
        self._failures: int = 0
        self._retry_at: float = 0.0
        self._last_error: BaseException | None = None
        self._emit_state_metric()

    @property
    def state(self) -> InitState:
        return self._state

    @property
    def last_error(self) -> BaseException | None:
        return self._last_error

    async def ensure_ready(self) -> None:
        """Return once the bootstrap has succeeded.

        Raises:
            InitError: the attempt this call ran or waited on failed, or the
                retry policy does not permit an attempt yet.
        """
        while True:
            if self._state is InitState.READY:
                return

            if self._state is InitState.BOOTSTRAPPING:
                assert self._done is not None
                await self._done.wait()
                if self._state is InitState.FAILED:
                    raise self._init_error()
                continue

            if self._state is InitState.FAILED and self._clock() < self._retry_at:
                raise self._init_error()

            await self._attempt()
            return

    async def wait_idle(self) -> None:
        """Wait until no bootstrap attempt is in flight; never raises ``InitError``."""
        while self._state is InitState.BOOTSTRAPPING:
            assert self._done is not None
            await self._done.wait()

    def reset(self) -> None:
        """Forget any outcome so the next caller bootstraps from scratch."""
        if self._state is InitState.BOOTSTRAPPING:
            return
        self._state = InitState.UNINITIALIZED
        self._failures = 0
        self._retry_at = 0.0
        self._last_error = None
        self._emit_state_metric()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _attempt(self) -> None:
        """Run one bootstrap attempt; the caller becomes its owner."""
        self._state = InitState.BOOTSTRAPPING
        self._done = asyncio.Event()
        self._emit_state_metric()
        self._log.debug("docker_init_attempt", previous_failures=self._failures)

        try:
            await self._bootstrap()
        except asyncio.CancelledError:
            self._state = InitState.UNINITIALIZED
            self._log.info("docker_init_cancelled")
            raise
        except Exception as exc:
            self._record_failure(exc)
            raise self._init_error() from exc
        else:
            self._state = InitState.READY
            self._failures = 0
            self._last_error = None
            init_attempts_total.labels(outcome="success").inc()
            self._log.info("docker_init_ready")
        finally:
            self._emit_state_metric()
            self._done.set()

    def _record_failure(self, exc: Exception) -> None:
        self._failures += 1
        self._last_error = exc
        delay = self._policy.delay_after(self._failures)
        self._retry_at = self._clock() + delay
        exhausted = self._failures >= self._policy.max_attempts
        if exhausted and self._policy.cooldown_s is not None:
            self._failures = 0
        self._state = InitState.FAILED
        init_attempts_total.labels(outcome="failure").inc()
        self._log.warning(
            "docker_init_failed",
            error=str(exc),
            exhausted=exhausted,
            retry_in_s=None if math.isinf(delay) else delay,
        )

    def _init_error(self) -> InitError:
        remaining = self._retry_at - self._clock()
        retry_in = None if math.isinf(remaining) else max(remaining, 0.0)
        return InitError(
            f"docker connection not available: {self._last_error}",
            cause=self._last_error,
            retry_in_s=retry_in,
        )

    def _emit_state_metric(self) -> None:
        for state in InitState:
            init_state.labels(state=state.value).set(1 if self._state == state else 0)

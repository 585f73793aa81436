"""Run polling as a small state machine.

A run is ``pending`` while upstream reports it queued or in progress,
``terminal`` once it reports anything else, and ``timed_out`` when the
wall-clock ceiling passes first. Timing out is not a failure: the caller
carries on with whatever the thread holds.
"""

import asyncio
import time
from enum import Enum
from typing import Awaitable, Callable

from pydantic import BaseModel

from shared.logging import get_logger
from shared.models import Run

logger = get_logger(__name__)

POLL_INTERVAL_SECONDS = 0.9
POLL_TIMEOUT_SECONDS = 60.0


class PollState(str, Enum):
    """State of the poll loop."""
    PENDING = "pending"
    TERMINAL = "terminal"
    TIMED_OUT = "timed_out"


class PollOutcome(BaseModel):
    """Where the poll loop stopped."""
    run: Run
    state: PollState
    polls: int = 0
    elapsed_seconds: float = 0

    @property
    def timed_out(self) -> bool:
        return self.state is PollState.TIMED_OUT


class RunPoller:
    """
    Re-fetches a run at a fixed interval until it leaves the pending states.

    The clock and sleep function are injectable so elapsed time can be
    simulated without real delays.
    """

    def __init__(
        self,
        fetch_run: Callable[[str], Awaitable[Run]],
        interval: float = POLL_INTERVAL_SECONDS,
        timeout: float = POLL_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> None:
        """
        Initialize the poller.

        Args:
            fetch_run: Coroutine returning the current state of a run by id
            interval: Delay between checks in seconds
            timeout: Wall-clock ceiling in seconds, measured from loop start
            clock: Monotonic clock returning seconds
            sleep: Coroutine used to wait between checks
        """
        self.interval = interval
        self.timeout = timeout
        self._fetch_run = fetch_run
        self._clock = clock
        self._sleep = sleep

    def state_of(self, run: Run, elapsed: float) -> PollState:
        """Classify a run given the time spent polling so far."""
        if not run.is_pending:
            return PollState.TERMINAL
        if elapsed > self.timeout:
            return PollState.TIMED_OUT
        return PollState.PENDING

    async def wait(self, run: Run) -> PollOutcome:
        """
        Poll until the run is terminal or the ceiling is reached.

        Args:
            run: Run as returned by its creation call

        Returns:
            The last observed run and the state the loop ended in
        """
        started = self._clock()
        polls = 0
        state = self.state_of(run, 0.0)

        while state is PollState.PENDING:
            await self._sleep(self.interval)
            run = await self._fetch_run(run.id)
            polls += 1
            state = self.state_of(run, self._clock() - started)

        elapsed = self._clock() - started
        if state is PollState.TIMED_OUT:
            logger.warning(
                "Run still pending at poll ceiling",
                run_id=run.id,
                status=run.status,
                polls=polls,
                elapsed_seconds=round(elapsed, 3),
            )

        return PollOutcome(run=run, state=state, polls=polls, elapsed_seconds=elapsed)

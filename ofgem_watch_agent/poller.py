"""Poll loop: fetch, compare, notify, persist, repeat."""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Sequence

from .detector import Decision, RelevanceFilter, evaluate
from .email_notifier import DeliveryResult, NotificationDispatcher
from .fetcher import FetchOrchestrator
from .models import Item
from .state_store import StateStore

logger = logging.getLogger(__name__)


class PollState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    COMPARING = "comparing"
    NOTIFYING = "notifying"
    PERSISTING = "persisting"
    SHUTTING_DOWN = "shutting_down"


@dataclass
class CycleResult:
    """What happened during one cycle."""
    item: Optional[Item] = None
    decision: Optional[Decision] = None
    delivery: Optional[DeliveryResult] = None
    persisted: bool = False
    error: Optional[str] = None


class PollLoop:
    """
    Runs one cycle immediately, then one cycle per interval until stopped.

    Cycles never overlap: the next wait starts only after the current
    cycle has returned. Errors inside a cycle are logged and swallowed at
    the cycle boundary so the loop keeps running.
    """

    def __init__(
        self,
        fetcher: FetchOrchestrator,
        store: StateStore,
        dispatcher: NotificationDispatcher,
        recipients: Sequence[str],
        interval_seconds: float,
        relevance_filter: Optional[RelevanceFilter] = None,
        max_runtime_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        wait: Optional[Callable[[float], bool]] = None,
    ):
        self.fetcher = fetcher
        self.store = store
        self.dispatcher = dispatcher
        self.recipients = list(recipients)
        self.interval_seconds = interval_seconds
        self.relevance_filter = relevance_filter
        self.max_runtime_seconds = max_runtime_seconds
        self._clock = clock
        self._stop_event = threading.Event()
        # wait(timeout) returns True if the loop was asked to stop meanwhile
        self._wait = wait or self._stop_event.wait
        self._started_at: Optional[float] = None
        self.state = PollState.IDLE
        self.cycles_run = 0

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request a graceful shutdown. Safe to call from a signal handler."""
        if not self._stop_event.is_set():
            logger.info("Shutting down...")
        self._stop_event.set()

    def run(self) -> int:
        """
        Run until stopped or until the maximum runtime elapses.

        Returns:
            Process exit code (always 0, shutdown is graceful).
        """
        self._started_at = self._clock()
        logger.info(
            f"Starting Ofgem publication watcher. Polling every {self.interval_seconds:g} seconds."
        )

        while not self.stopping:
            self.run_cycle()

            if self.stopping:
                break
            if not self._runtime_exceeded() and self._wait(self._next_wait()):
                break
            if self._runtime_exceeded():
                logger.info("Maximum runtime reached.")
                break

        self.state = PollState.SHUTTING_DOWN
        logger.info(f"Watcher stopped after {self.cycles_run} cycle(s).")
        return 0

    def run_cycle(self) -> CycleResult:
        """Run one fetch/compare/notify/persist pass. Never raises."""
        result = CycleResult()
        self.cycles_run += 1
        logger.info(f"Starting poll cycle at {_utc_now_iso()}")
        try:
            self._run_cycle(result)
        except Exception as e:
            logger.error(f"Uncaught error during polling cycle: {e}", exc_info=True)
            result.error = str(e)
        finally:
            if self.state is not PollState.SHUTTING_DOWN:
                self.state = PollState.IDLE
            logger.info(f"Poll cycle finished at {_utc_now_iso()}")
        return result

    def _run_cycle(self, result: CycleResult) -> None:
        self.state = PollState.FETCHING
        latest = self.fetcher.fetch_latest()
        if latest is None:
            logger.info("No publication data fetched. Skipping comparison.")
            return
        result.item = latest

        self.state = PollState.COMPARING
        last_seen = self.store.load()
        decision = evaluate(latest, last_seen, self.relevance_filter)
        result.decision = decision

        if not decision.is_new_item:
            logger.info("No new publication detected.")
            return

        logger.info(f"New publication detected ({decision.kind.value}): {latest.title}")

        if decision.is_notifiable:
            self.state = PollState.NOTIFYING
            result.delivery = self.dispatcher.notify(latest, self.recipients)
            if not result.delivery.delivered:
                logger.warning("Notification was not delivered; state will still advance.")
        else:
            logger.info("Publication does not match any target keyword; not notifying.")

        self.state = PollState.PERSISTING
        result.persisted = self.store.save(latest)

    def _runtime_exceeded(self) -> bool:
        if self.max_runtime_seconds is None or self._started_at is None:
            return False
        return self._clock() - self._started_at >= self.max_runtime_seconds

    def _next_wait(self) -> float:
        if self.max_runtime_seconds is None or self._started_at is None:
            return self.interval_seconds
        remaining = self.max_runtime_seconds - (self._clock() - self._started_at)
        return max(0.0, min(self.interval_seconds, remaining))


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")

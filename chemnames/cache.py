"""
Identifier -> display-name cache with request deduplication.

Callers always get a string back immediately: the cached name, or the
identifier itself while a lookup is pending or after it failed. Lookups run
on a worker pool and every terminal transition is published to subscribers.

States per identifier:
- PENDING: one lookup is in flight; no second one is started
- RESOLVED: a synonym was found
- FALLBACK: lookups failed; the identifier is the display name

RESOLVED and FALLBACK are terminal. The first terminal outcome applied to an
entry wins; later outcomes for the same entry are ignored.
"""

import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional

from .logger import StructuredLogger, get_logger
from .lookup import NameLookupClient
from .outcome import LookupOutcome
from .retry import RetryPolicy

PENDING = "pending"
RESOLVED = "resolved"
FALLBACK = "fallback"

TERMINAL_STATES = (RESOLVED, FALLBACK)

Subscriber = Callable[[str, str], None]


@dataclass
class CacheEntry:
    identifier: str
    state: str
    display_name: str
    attempts: int = 0
    last_error: Optional[str] = None

    @property
    def settled(self) -> bool:
        return self.state in TERMINAL_STATES


class NameCache:
    """
    Process-scoped name cache for one panel session.

    Construct one per session and inject it into whatever renders the
    history list; close() it when the session ends.
    """

    def __init__(
        self,
        client: NameLookupClient,
        policy: Optional[RetryPolicy] = None,
        max_workers: int = 4,
        executor: Optional[Executor] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            client: Lookup client used for each attempt
            policy: Retry policy wrapped around the client (default RetryPolicy())
            max_workers: Size of the worker pool when no executor is given
            executor: Optional executor to run resolutions on
            logger: Optional logger (default: global logger)
        """
        self.client = client
        self.policy = policy or RetryPolicy()
        self.logger = logger or get_logger()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="chemnames"
        )
        self._entries: Dict[str, CacheEntry] = {}
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._inflight = 0
        self._cancelled = threading.Event()

    def __enter__(self) -> "NameCache":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._entries

    @property
    def closed(self) -> bool:
        return self._cancelled.is_set()

    def get_or_resolve(self, identifier: str) -> str:
        """
        Return the best known display name for `identifier` without blocking.

        Starts a background lookup the first time an identifier is seen.
        Raises ValueError for a blank identifier.
        """
        if not isinstance(identifier, str) or identifier.strip() == "":
            raise ValueError("identifier must be a non-empty string")

        with self._lock:
            entry = self._entries.get(identifier)
            if entry is not None:
                if entry.settled:
                    self.logger.record_cache_hit()
                else:
                    self.logger.record_dedup_hit()
                return entry.display_name

            if self._cancelled.is_set():
                # Session is over; nothing new gets scheduled.
                return identifier

            self.logger.record_cache_miss()
            self._entries[identifier] = CacheEntry(identifier, PENDING, identifier)
            self._inflight += 1

        # Submitted outside the lock: an inline executor settles the entry
        # before submit() returns.
        try:
            future = self._executor.submit(self._resolve, identifier)
        except RuntimeError as e:
            # Executor already shut down
            self._finish(identifier, LookupOutcome.transient(f"not scheduled: {e}").with_attempts(0))
        else:
            future.add_done_callback(lambda f: self._on_done(identifier, f))

        return identifier

    def _resolve(self, identifier: str) -> None:
        try:
            outcome = self.policy.resolve(
                identifier,
                self.client.lookup,
                cancelled=self._cancelled.is_set,
                on_retry=self._on_retry,
            )
        except Exception as e:
            self.logger.exception("Unexpected error resolving name", identifier=identifier)
            outcome = LookupOutcome.permanent(f"{type(e).__name__}: {e}")
        self._finish(identifier, outcome)

    def _on_retry(self, attempt: int, outcome: LookupOutcome, delay: float) -> None:
        self.logger.debug(
            "Retrying name lookup",
            attempt=attempt,
            error=outcome.error,
            delay=delay,
        )

    def _on_done(self, identifier: str, future) -> None:
        # Only futures dropped by close() end here without having run.
        if future.cancelled():
            self._finish(identifier, LookupOutcome.transient("cancelled").with_attempts(0))

    def _finish(self, identifier: str, outcome: LookupOutcome) -> None:
        try:
            self.apply_outcome(identifier, outcome)
        finally:
            with self._idle:
                self._inflight -= 1
                self._idle.notify_all()

    def apply_outcome(self, identifier: str, outcome: LookupOutcome) -> bool:
        """
        Settle `identifier` with `outcome` and notify subscribers.

        Returns False when the entry was already settled; the earlier
        outcome is kept. An identifier with no entry is recorded directly in
        its terminal state.
        """
        if outcome.ok and outcome.name:
            state, display_name = RESOLVED, outcome.name
        else:
            state, display_name = FALLBACK, identifier

        with self._lock:
            entry = self._entries.get(identifier)
            if entry is not None and entry.settled:
                self.logger.debug(
                    "Ignoring outcome for settled entry",
                    identifier=identifier,
                    state=entry.state,
                    outcome=outcome.kind,
                )
                return False
            if entry is None:
                entry = CacheEntry(identifier, state, display_name)
                self._entries[identifier] = entry
            entry.state = state
            entry.display_name = display_name
            entry.attempts += outcome.attempts
            entry.last_error = outcome.error
            subscribers = list(self._subscribers)

        if state == FALLBACK:
            self.logger.info(
                "Name lookup gave up, showing identifier",
                identifier=identifier,
                attempts=outcome.attempts,
                error=outcome.error,
            )

        for callback in subscribers:
            try:
                callback(identifier, display_name)
            except Exception:
                self.logger.exception("Subscriber failed", identifier=identifier)
        return True

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register `callback(identifier, display_name)` for settled entries.

        Returns a function that removes the subscription; calling it more
        than once is harmless.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def peek(self, identifier: str) -> Optional[CacheEntry]:
        """Copy of the entry for `identifier`, without triggering a lookup."""
        with self._lock:
            entry = self._entries.get(identifier)
            return replace(entry) if entry is not None else None

    def entries(self) -> Dict[str, CacheEntry]:
        with self._lock:
            return {k: replace(v) for k, v in self._entries.items()}

    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for e in self._entries.values() if e.state == PENDING)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no lookup is in flight. Returns False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: self._inflight == 0, timeout=timeout)

    def reset(self) -> None:
        """
        Forget every settled entry.

        Pending entries stay so their in-flight lookup is not duplicated;
        they settle normally when it completes.
        """
        with self._lock:
            self._entries = {k: e for k, e in self._entries.items() if not e.settled}

    def close(self) -> None:
        """End the session: stop retrying, drop subscribers, release the pool and client."""
        self._cancelled.set()
        with self._lock:
            self._subscribers.clear()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        self.client.close()

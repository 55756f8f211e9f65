"""Rate limiter wrapper around pyrate-limiter."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from pyrate_limiter import (  # type: ignore[attr-defined]
    BucketFullException,
    InMemoryBucket,
    Limiter,
    Rate,
)

if TYPE_CHECKING:
    from types import TracebackType

# Track original thread excepthook
_original_excepthook = threading.excepthook

# Thread idents registered for exception suppression during cleanup.
# Tracked by ident (not name) so unrelated threads sharing a name are unaffected.
_suppressed_thread_idents: set[int] = set()
_suppressed_lock = threading.Lock()


def _custom_excepthook(args: threading.ExceptHookArgs) -> None:
    """Thread excepthook that suppresses the known pyrate-limiter cleanup race.

    pyrate-limiter's Leaker thread can raise AssertionError once all its
    buckets are disposed. Suppression applies only to threads registered
    by RateLimiter.close() and only to AssertionError.
    """
    import structlog

    logger = structlog.get_logger()

    thread_ident = args.thread.ident if args.thread else None

    with _suppressed_lock:
        if thread_ident is not None and thread_ident in _suppressed_thread_idents and args.exc_type is AssertionError:
            _suppressed_thread_idents.discard(thread_ident)
            logger.debug(
                "Suppressed expected pyrate-limiter cleanup exception",
                thread_ident=thread_ident,
                thread_name=args.thread.name if args.thread else None,
            )
            return

    _original_excepthook(args)


threading.excepthook = _custom_excepthook


class RateLimiter:
    """Sliding-window limiter: at most max_requests per window_seconds.

    Wraps pyrate-limiter with an in-memory bucket. State lives in the
    instance and is not meant to survive a restart.

    Example:
        limiter = RateLimiter(max_requests=10, window_seconds=60)

        if limiter.try_acquire():
            sign()
        else:
            reject()

        with RateLimiter(max_requests=10, window_seconds=60) as limiter:
            limiter.try_acquire()
    """

    def __init__(self, max_requests: int, window_seconds: float, *, name: str = "default") -> None:
        """Initialize rate limiter.

        Args:
            max_requests: Requests allowed inside one window. Must be positive.
            window_seconds: Window length in seconds. Must be positive.
            name: Item name recorded in the bucket (identifies the client)

        Raises:
            ValueError: If limits are not positive.
        """
        if max_requests <= 0:
            raise ValueError(f"max_requests must be positive, got {max_requests}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")

        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._lock = threading.Lock()

        window_ms = max(1, int(window_seconds * 1000))
        self._bucket = InMemoryBucket(rates=[Rate(max_requests, window_ms)])
        self._limiter = Limiter(self._bucket, max_delay=None, raise_when_fail=True)

    def try_acquire(self, weight: int = 1) -> bool:
        """Try to acquire without blocking.

        Args:
            weight: Number of tokens to acquire (default 1)

        Returns:
            True if acquired, False if rate limited
        """
        with self._lock:
            try:
                self._limiter.try_acquire(self.name, weight=weight)
            except BucketFullException:
                return False
            return True

    def close(self) -> None:
        """Close the rate limiter and release the leaker thread."""
        leaker = self._limiter.bucket_factory._leaker
        if leaker is not None and leaker.is_alive() and leaker.ident is not None:
            with _suppressed_lock:
                _suppressed_thread_idents.add(leaker.ident)
        else:
            leaker = None

        self._limiter.dispose(self._bucket)

        if leaker is not None:
            leaker.join(timeout=0.05)

    def __enter__(self) -> RateLimiter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

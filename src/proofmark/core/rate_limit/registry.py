"""Registry for per-client rate limiters."""

from __future__ import annotations

import threading
from types import TracebackType

from proofmark.core.config import SignerRateLimitSettings
from proofmark.core.rate_limit.limiter import RateLimiter


class NoOpLimiter:
    """No-op limiter when rate limiting is disabled.

    Provides the same interface as RateLimiter but never limits.
    """

    def try_acquire(self, weight: int = 1) -> bool:
        """No-op try_acquire (always succeeds)."""
        return True

    def close(self) -> None:
        """No-op close (nothing to clean up)."""

    def __enter__(self) -> NoOpLimiter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


class RateLimitRegistry:
    """Registry that keeps one rate limiter per client identifier.

    Creates limiters on demand and reuses them for the same client.
    Thread-safe for concurrent access. State is process-scoped: created
    with the registry, gone when it is closed.

    Example:
        registry = RateLimitRegistry(settings.signer.rate_limit)

        if not registry.get_limiter(client_ip).try_acquire():
            raise RateLimitedError(client_ip, retry_after_seconds=registry.window_seconds)

        registry.close()
    """

    def __init__(self, settings: SignerRateLimitSettings) -> None:
        self._settings = settings
        self._limiters: dict[str, RateLimiter] = {}
        self._lock = threading.Lock()
        self._noop_limiter = NoOpLimiter()

    @property
    def window_seconds(self) -> float:
        return self._settings.window_seconds

    def get_limiter(self, client_id: str) -> RateLimiter | NoOpLimiter:
        """Get or create the limiter for a client.

        Returns:
            RateLimiter (or NoOpLimiter if disabled)
        """
        if not self._settings.enabled:
            return self._noop_limiter

        with self._lock:
            if client_id not in self._limiters:
                self._limiters[client_id] = RateLimiter(
                    max_requests=self._settings.max_requests,
                    window_seconds=self._settings.window_seconds,
                    name=client_id,
                )
            return self._limiters[client_id]

    def close(self) -> None:
        """Close all limiters and release resources."""
        with self._lock:
            for limiter in self._limiters.values():
                limiter.close()
            self._limiters.clear()

    def __enter__(self) -> RateLimitRegistry:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

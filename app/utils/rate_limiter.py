"""
Per-client request throttling for the public API
"""
import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Iterable, Tuple

from fastapi import HTTPException, Request

from app.config import settings
from app.utils.security import decode_token

logger = logging.getLogger(__name__)

EXEMPT_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")


class RateLimiter:
    """
    In-memory sliding-window limiter, one window per (label, seconds, limit)
    Counters live in this process only; run one worker or put Redis behind it.
    """

    def __init__(self, requests_per_minute: int = 60, requests_per_hour: int = 1000):
        self.windows: Tuple[Tuple[str, int, int], ...] = (
            ("minute", 60, requests_per_minute),
            ("hour", 3600, requests_per_hour),
        )
        # {window label: {client_id: deque of request timestamps}}
        self.hits: Dict[str, Dict[str, Deque[float]]] = {
            label: defaultdict(deque) for label, _, _ in self.windows
        }
        self._last_sweep = time.time()

    def is_exempt(self, path: str, exempt_paths: Iterable[str] = EXEMPT_PATHS) -> bool:
        return path in exempt_paths or path.startswith("/media/")

    def client_id(self, request: Request) -> str:
        """
        User id for callers with a valid access token, client IP otherwise

        Tokens that fail verification count against the IP, so rotating
        made-up bearer strings never opens a fresh window.
        """
        authorization = request.headers.get("authorization", "")
        if authorization.lower().startswith("bearer "):
            payload = decode_token(authorization[7:].strip())
            if payload and payload.get("user_id"):
                return f"user:{payload['user_id']}"

        return "ip:" + (request.client.host if request.client else "unknown")

    def _prune(self, timestamps: Deque[float], cutoff: float) -> None:
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

    def _sweep(self, now: float) -> None:
        """Drop clients whose every timestamp has left its window"""
        for label, seconds, _ in self.windows:
            tracker = self.hits[label]
            for client in list(tracker.keys()):
                self._prune(tracker[client], now - seconds)
                if not tracker[client]:
                    del tracker[client]
        self._last_sweep = now

    async def check_rate_limit(self, request: Request) -> None:
        """
        Count this request against every window of its client

        Raises:
            HTTPException: 429 with a Retry-After header once a window is full
        """
        client = self.client_id(request)
        now = time.time()

        if now - self._last_sweep > 60:
            self._sweep(now)

        for label, seconds, limit in self.windows:
            timestamps = self.hits[label][client]
            self._prune(timestamps, now - seconds)

            if len(timestamps) >= limit:
                retry_after = max(int(timestamps[0] + seconds - now) + 1, 1)
                logger.warning(f"Rate limit exceeded ({label}): {client}")
                raise HTTPException(
                    status_code=429,
                    detail={
                        "error": "rate_limit_exceeded",
                        "message": f"Too many requests. Limit: {limit} requests per {label}",
                        "retry_after": retry_after
                    },
                    headers={"Retry-After": str(retry_after)}
                )

        for label, _, _ in self.windows:
            self.hits[label][client].append(now)

    def reset(self) -> None:
        for tracker in self.hits.values():
            tracker.clear()


# Global instance
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR
)

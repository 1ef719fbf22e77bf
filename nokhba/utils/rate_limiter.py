"""
Rate limiting for API endpoints
"""
import time
from collections import defaultdict
from fastapi import Request, HTTPException
from typing import Dict, List, Tuple
import logging

from nokhba.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    In-memory sliding-window rate limiter
    Production: Use Redis for distributed rate limiting
    """

    def __init__(self, requests_per_minute: int = 60, requests_per_hour: int = 1000, scope: str = "global"):
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.scope = scope

        # Storage: {client_id: [timestamp, ...]}
        self.minute_tracker: Dict[str, List[float]] = defaultdict(list)
        self.hour_tracker: Dict[str, List[float]] = defaultdict(list)

    def _get_client_id(self, request: Request) -> str:
        """
        Client IP. The middleware runs before authentication, so per-user
        buckets go through `hit(user_id)` instead (see `redeem_limiter`)
        """
        return request.client.host if request.client else "unknown"

    def _cleanup_old_entries(self, tracker: Dict[str, List[float]], window_seconds: int, now: float):
        cutoff_time = now - window_seconds

        for client_id in list(tracker.keys()):
            tracker[client_id] = [ts for ts in tracker[client_id] if ts > cutoff_time]
            if not tracker[client_id]:
                del tracker[client_id]

    def _limits(self) -> Tuple[Tuple[Dict[str, List[float]], int, int, str], ...]:
        return (
            (self.minute_tracker, self.requests_per_minute, 60, "minute"),
            (self.hour_tracker, self.requests_per_hour, 3600, "hour"),
        )

    def hit(self, client_id: str, now: float = None) -> None:
        """
        Record one request for a client

        Raises:
            HTTPException: 429 if a window is exhausted
        """
        now = now if now is not None else time.time()

        for tracker, limit, window, label in self._limits():
            self._cleanup_old_entries(tracker, window, now)
            if len(tracker[client_id]) >= limit:
                logger.warning(f"Rate limit exceeded ({self.scope}/{label}): {client_id}")
                raise HTTPException(
                    status_code=429,
                    detail={
                        "error": "rate_limit_exceeded",
                        "message": f"Too many requests. Limit: {limit} requests per {label}",
                        "retry_after": window
                    }
                )

        self.minute_tracker[client_id].append(now)
        self.hour_tracker[client_id].append(now)

    async def check_rate_limit(self, request: Request) -> None:
        self.hit(self._get_client_id(request))

    def reset(self) -> None:
        self.minute_tracker.clear()
        self.hour_tracker.clear()


# Global instances
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR
)

# Recharge codes are short; slow down guessing
redeem_limiter = RateLimiter(
    requests_per_minute=settings.REDEEM_LIMIT_PER_MINUTE,
    requests_per_hour=settings.REDEEM_LIMIT_PER_MINUTE * 20,
    scope="redeem"
)

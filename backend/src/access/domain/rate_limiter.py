from collections import defaultdict, deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Deque, Dict, Optional

from src.core.utils import utcnow

@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after_seconds: float = 0.0

class SlidingWindowRateLimiter:
    """Limiteur à fenêtre glissante, en mémoire, par clé (ici l'email demandé).

    L'état est local au processus: derrière plusieurs workers la limite
    s'applique par worker.
    """

    def __init__(self, limit: int, window_seconds: int, max_keys: int = 10_000):
        self.limit = limit
        self.window = timedelta(seconds=window_seconds)
        self.max_keys = max_keys
        self._buckets: Dict[str, Deque[datetime]] = defaultdict(deque)

    def check(self, key: str, now: Optional[datetime] = None) -> RateLimitResult:
        """Enregistre une tentative pour `key` si elle est permise."""
        now = now or utcnow()
        cutoff = now - self.window
        if key not in self._buckets and len(self._buckets) >= self.max_keys:
            self._prune(cutoff)

        bucket = self._buckets[key]
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()

        if len(bucket) >= self.limit:
            retry_after = (bucket[0] + self.window - now).total_seconds()
            return RateLimitResult(allowed=False, remaining=0, retry_after_seconds=max(retry_after, 0.0))

        bucket.append(now)
        return RateLimitResult(allowed=True, remaining=self.limit - len(bucket))

    def reset(self) -> None:
        self._buckets.clear()

    def _prune(self, cutoff: datetime) -> None:
        expired = [k for k, bucket in self._buckets.items() if not bucket or bucket[-1] <= cutoff]
        for k in expired:
            del self._buckets[k]

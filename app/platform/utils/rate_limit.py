from threading import Lock
from time import time
from typing import Dict, List, Optional

from fastapi import HTTPException, status

from app.platform.config import settings

_requests: Dict[str, List[float]] = {}
_lock = Lock()

WINDOW_SECONDS = 60


def rate_limit(key: str, max_requests: Optional[int] = None):
    limit = max_requests if max_requests is not None else settings.SIGNUP_RATE_LIMIT_PER_MINUTE
    now = time()
    with _lock:
        timestamps = _requests.get(key, [])
        # Remove old timestamps outside window
        cutoff = now - WINDOW_SECONDS
        timestamps = [ts for ts in timestamps if ts > cutoff]
        if len(timestamps) >= limit:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please slow down.",
                headers={"Retry-After": str(int(timestamps[0] + WINDOW_SECONDS - now) + 1)},
            )
        timestamps.append(now)
        _requests[key] = timestamps


def reset_rate_limits():
    with _lock:
        _requests.clear()

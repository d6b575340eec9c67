"""IP / customer based rate limiting (SlowAPI); proxy aware (X-Forwarded-For)."""
from fastapi import Request

from slowapi import Limiter

from .security import decode_access_token


def _get_client_ip(request: Request) -> str:
    """Real client IP behind a proxy."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


def customer_key(request: Request) -> str:
    """Signed-in customers are limited per account, anonymous callers per IP."""
    auth = request.headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        payload = decode_access_token(auth[7:].strip())
        if payload and payload.get("sub"):
            return f"user:{payload['sub']}"
    return f"ip:{_get_client_ip(request)}"


def format_time_remaining(seconds: float) -> str:
    secs = max(0, int(-(-seconds // 1)))
    if secs < 60:
        return f"{secs} seconds"
    minutes = -(-secs // 60)
    return f"{minutes} minute{'s' if minutes > 1 else ''}"


limiter = Limiter(key_func=_get_client_ip)

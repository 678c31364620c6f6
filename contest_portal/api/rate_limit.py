# contest_portal/api/rate_limit.py
"""
Rate limiting przez fastapi-limiter (redis, wspolny dla wszystkich instancji).
Best-effort: jesli limiter nie wystartowal albo redis nie odpowiada, request przechodzi.
"""
import math
from typing import Tuple

from fastapi import Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from contest_portal.domain.errors import RateLimited
from contest_portal.utils.logging import get_logger
from contest_portal.utils.settings import RATE_LIMIT_ENABLED, REDIS_URL

logger = get_logger(__name__)

RATE_LIMIT_PREFIX = "contest-portal:ratelimit"


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def too_many_requests(request: Request, response: Response, pexpire: int):
    retry_after = math.ceil(pexpire / 1000)
    raise RateLimited(f"Too many requests. Please try again in {retry_after} seconds.")


def limiter_ready() -> bool:
    return FastAPILimiter.redis is not None


async def init_rate_limiter(url: str | None = None, enabled: bool = RATE_LIMIT_ENABLED) -> bool:
    if not enabled:
        logger.info("Rate limiting disabled by RATE_LIMIT_ENABLED")
        return False

    redis = aioredis.from_url(url or REDIS_URL, encoding="utf-8", decode_responses=True)
    try:
        await FastAPILimiter.init(redis, prefix=RATE_LIMIT_PREFIX, http_callback=too_many_requests)
    except (RedisError, OSError) as e:
        # init ustawia redis zanim zaladuje skrypt - sprzatamy, zeby zaleznosc wiedziala ze limiter nie dziala
        FastAPILimiter.redis = None
        await redis.aclose()
        logger.warning(f"Rate limiting disabled due to init error: {e}")
        return False

    logger.info("Rate limiting enabled")
    return True


async def close_rate_limiter():
    if limiter_ready():
        await FastAPILimiter.close()
        FastAPILimiter.redis = None


def rate_limit(scope: str, limit: Tuple[int, int]):
    times, seconds = limit

    async def _identifier(request: Request) -> str:
        return f"{scope}:{client_ip(request)}"

    limiter = RateLimiter(times=times, seconds=seconds, identifier=_identifier)

    async def dependency(request: Request, response: Response):
        if not limiter_ready():
            return
        try:
            await limiter(request, response)
        except RedisError:
            logger.warning(f"Rate limiter unavailable for {scope}, allowing request", exc_info=True)

    return dependency

from typing import Optional

import aiohttp

USER_AGENT = "autorender-bot v1.0"
HTTP_TIMEOUT = aiohttp.ClientTimeout(total=60, connect=10)

# Shared aiohttp session for API requests (lazy init, reused)
_http_session: Optional[aiohttp.ClientSession] = None


async def get_http_session() -> aiohttp.ClientSession:
    global _http_session
    if _http_session is None or _http_session.closed:
        _http_session = aiohttp.ClientSession(
            timeout=HTTP_TIMEOUT, headers={"User-Agent": USER_AGENT}
        )
    return _http_session


async def close_http_session() -> None:
    global _http_session
    if _http_session is not None:
        await _http_session.close()
        _http_session = None

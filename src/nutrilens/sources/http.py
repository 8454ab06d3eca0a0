"""Retrying HTTP requests for source adapters."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from nutrilens.logging import get_logger
from nutrilens.sources.base import SourceError

logger = get_logger(__name__)

TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})


def _retry_after_seconds(err: Exception | None) -> float | None:
    if not isinstance(err, httpx.HTTPStatusError) or err.response is None:
        return None
    if err.response.status_code != 429:
        return None
    ra = err.response.headers.get("retry-after")
    if ra is None:
        return None
    try:
        return float(ra)
    except ValueError:
        return None


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    source: str,
    max_retries: int = 2,
    backoff_s: float = 0.5,
    max_backoff_s: float = 4.0,
    **kwargs: Any,
) -> httpx.Response:
    """Send a request, retrying transport errors and transient statuses.

    Args:
        client: Open httpx client.
        method: HTTP method.
        url: Absolute URL.
        source: Adapter name used in log records.
        max_retries: Retries after the first attempt.
        backoff_s: Base exponential backoff.
        max_backoff_s: Backoff ceiling.
        **kwargs: Passed through to `client.request`.

    Returns:
        A successful (2xx) response.

    Raises:
        SourceError: When every attempt failed.
    """

    last_err: Exception | None = None
    started = time.monotonic()

    for attempt in range(max_retries + 1):
        status_code: int | None = None
        try:
            resp = await client.request(method, url, **kwargs)
            status_code = resp.status_code
            if status_code in TRANSIENT_STATUSES:
                raise httpx.HTTPStatusError(
                    f"{source} transient status={status_code}",
                    request=resp.request,
                    response=resp,
                )
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as e:
            last_err = e
            if e.response is not None and e.response.status_code not in TRANSIENT_STATUSES:
                break
        except (httpx.TimeoutException, httpx.RequestError) as e:
            last_err = e

        if attempt >= max_retries:
            break

        retry_after_s = _retry_after_seconds(last_err)
        backoff = min(max_backoff_s, backoff_s * (2**attempt))
        sleep_s = retry_after_s if retry_after_s is not None else backoff
        logger.warning(
            "Source request retry",
            extra={
                "source": source,
                "attempt": attempt,
                "max_retries": max_retries,
                "status_code": status_code,
                "sleep_s": sleep_s,
                "elapsed_ms": int((time.monotonic() - started) * 1000),
            },
        )
        await asyncio.sleep(sleep_s)

    raise SourceError(f"{source} request failed: {last_err}") from last_err

import asyncio
import logging
from pathlib import Path

import httpx

from src.errors import HttpStatusError, NetworkError, RequestTimeoutError

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 15.0
MAX_REDIRECTS = 5
REDIRECT_STATUSES = (301, 302)
ERROR_BODY_LIMIT = 2000


async def fetch(
    client: httpx.AsyncClient,
    url: str,
    destination: Path,
    *,
    timeout: float = DOWNLOAD_TIMEOUT,
    max_redirects: int = MAX_REDIRECTS,
) -> None:
    """Download ``url`` into ``destination``, following 301/302 redirects.

    ``timeout`` caps the whole operation, redirects included. On expiry the
    in-flight request is cancelled.
    """
    try:
        await asyncio.wait_for(
            _fetch(client, url, destination, timeout, max_redirects),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        destination.unlink(missing_ok=True)
        raise RequestTimeoutError(
            f"Download of {url} timed out after {timeout}s"
        ) from e


async def _fetch(
    client: httpx.AsyncClient,
    url: str,
    destination: Path,
    timeout: float,
    max_redirects: int,
) -> None:
    try:
        current = httpx.URL(url)
    except (httpx.InvalidURL, ValueError) as e:
        raise NetworkError(f"Invalid download URL {url!r}: {e}") from e
    for hop in range(max_redirects + 1):
        try:
            async with client.stream(
                "GET", current, timeout=timeout, follow_redirects=False
            ) as response:
                if response.status_code in REDIRECT_STATUSES:
                    location = response.headers.get("location")
                    if not location:
                        raise HttpStatusError(
                            f"Redirect {response.status_code} from {current} has no Location header",
                            status_code=response.status_code,
                        )
                    current = current.join(location)
                    logger.info(f"Following redirect ({hop + 1}) to {current}")
                    continue

                if not response.is_success:
                    await response.aread()
                    raise HttpStatusError(
                        f"Download failed with HTTP {response.status_code} for {current}",
                        status_code=response.status_code,
                        stdout=response.text[:ERROR_BODY_LIMIT] or None,
                    )

                await _write_body(response, destination)
                return
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"Download of {current} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Download of {current} failed: {e}") from e

    raise NetworkError(f"Too many redirects (more than {max_redirects}) for {url}")


async def _write_body(response: httpx.Response, destination: Path) -> None:
    try:
        with destination.open("wb") as fh:
            async for chunk in response.aiter_bytes():
                fh.write(chunk)
    except BaseException:
        # partial file must not outlive a failed stream
        try:
            destination.unlink(missing_ok=True)
        except OSError as cleanup_error:
            logger.warning(f"Could not remove partial download {destination}: {cleanup_error}")
        raise

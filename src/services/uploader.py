import asyncio
import logging
import mimetypes
from pathlib import Path

import httpx

from src.errors import HttpStatusError, NetworkError, RequestTimeoutError

logger = logging.getLogger(__name__)

UPLOAD_TIMEOUT = 30.0
FILE_FIELD = "file"


async def upload(
    client: httpx.AsyncClient,
    file_path: Path,
    endpoint_url: str,
    *,
    timeout: float = UPLOAD_TIMEOUT,
) -> str:
    """POST ``file_path`` as multipart/form-data and return the response body verbatim.

    The body is not interpreted here: a 2xx response that is not JSON is still
    a successful upload.
    """
    content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
    try:
        with file_path.open("rb") as fh:
            response = await asyncio.wait_for(
                client.post(
                    endpoint_url,
                    files={FILE_FIELD: (file_path.name, fh, content_type)},
                    headers={"accept": "application/json"},
                    timeout=timeout,
                    follow_redirects=False,
                ),
                timeout=timeout,
            )
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        raise RequestTimeoutError(
            f"Upload to {endpoint_url} timed out after {timeout}s"
        ) from e
    except httpx.HTTPError as e:
        raise NetworkError(f"Upload to {endpoint_url} failed: {e}") from e

    if not response.is_success:
        raise HttpStatusError(
            f"Upload failed with HTTP {response.status_code} from {endpoint_url}",
            status_code=response.status_code,
            stdout=response.text or None,
        )

    logger.info(f"Image uploaded. Raw response: {response.text}")
    return response.text

import asyncio
import logging
import secrets
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import httpx

from src.errors import ImageUploaderError, ValidationError
from src.services import formats, interpreter
from src.services.encoder import ConvertCommandEncoder, ImageEncoder
from src.services.fetcher import DOWNLOAD_TIMEOUT, MAX_REDIRECTS, fetch
from src.services.uploader import UPLOAD_TIMEOUT, upload

logger = logging.getLogger(__name__)

DEFAULT_FILENAME_PREFIX = "mcp_upload_"


class Stage(str, Enum):
    DOWNLOADING = "downloading"
    CLASSIFYING = "classifying"
    CONVERTING = "converting"
    UPLOADING = "uploading"
    INTERPRETING = "interpreting"
    CLEANING = "cleaning"


@dataclass(frozen=True)
class TransferRequest:
    source_url: str
    filename_prefix: str = DEFAULT_FILENAME_PREFIX

    def __post_init__(self):
        if not self.source_url or not self.source_url.strip():
            raise ValidationError("image_url is required")
        try:
            url = httpx.URL(self.source_url)
        except (httpx.InvalidURL, ValueError) as e:
            raise ValidationError(f"image_url is not a valid URL: {e}") from e
        if url.scheme not in ("http", "https"):
            raise ValidationError("image_url must be an http(s) URL")
        if "/" in self.filename_prefix or "\\" in self.filename_prefix:
            raise ValidationError("filename_prefix must not contain path separators")


@dataclass(frozen=True)
class UploadOutcome:
    raw_response: str
    resolved_url: str | None
    converted: bool

    @property
    def status(self) -> str:
        return "success" if self.resolved_url else "partial_success_unknown_url"


class TemporaryArtifacts:
    """Tracks the temporary files of one transfer and deletes them on exit."""

    def __init__(self, directory: Path, base_name: str):
        self.directory = directory
        self.base_name = base_name
        self.paths: list[Path] = []

    def new(self, extension: str) -> Path:
        path = self.directory / f"{self.base_name}{extension}"
        self.paths.append(path)
        return path

    async def release(self) -> None:
        logger.info(f"[{Stage.CLEANING.value}] removing {len(self.paths)} temporary file(s)")
        await asyncio.gather(*(asyncio.to_thread(self._delete, p) for p in self.paths))

    @staticmethod
    def _delete(path: Path) -> None:
        try:
            path.unlink()
            logger.info(f"Temporary file deleted: {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Error deleting temporary file {path}: {e}")

    async def __aenter__(self) -> "TemporaryArtifacts":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.release()


class ImageTransferService:
    def __init__(
        self,
        upload_url: str,
        *,
        encoder: ImageEncoder | None = None,
        temp_dir: str | Path | None = None,
        download_timeout: float = DOWNLOAD_TIMEOUT,
        upload_timeout: float = UPLOAD_TIMEOUT,
        max_redirects: int = MAX_REDIRECTS,
    ):
        self.upload_url = upload_url
        self.encoder = encoder or ConvertCommandEncoder()
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
        self.download_timeout = download_timeout
        self.upload_timeout = upload_timeout
        self.max_redirects = max_redirects
        self._client = httpx.AsyncClient(
            headers={"user-agent": "image-uploader-mcp-server/0.2.0"},
        )

    async def close(self):
        await self._client.aclose()

    async def transfer(
        self, image_url: str, filename_prefix: str = DEFAULT_FILENAME_PREFIX
    ) -> UploadOutcome:
        """Download ``image_url``, convert WebP to JPEG and re-host it.

        Temporary files are removed before this returns or raises.
        """
        request = TransferRequest(image_url, filename_prefix)
        base_name = f"{request.filename_prefix}{secrets.token_hex(8)}"

        async with TemporaryArtifacts(self.temp_dir, base_name) as artifacts:
            stage = Stage.DOWNLOADING
            try:
                local_path = artifacts.new(formats.classify(request.source_url))
                logger.info(f"[{stage.value}] {request.source_url} -> {local_path}")
                await fetch(
                    self._client,
                    request.source_url,
                    local_path,
                    timeout=self.download_timeout,
                    max_redirects=self.max_redirects,
                )

                stage = Stage.CLASSIFYING
                upload_path = local_path
                converted = False
                if formats.needs_normalization(formats.classify(local_path.name)):
                    stage = Stage.CONVERTING
                    upload_path = artifacts.new(formats.NORMALIZED_EXTENSION)
                    logger.info(f"[{stage.value}] {local_path.name} -> {upload_path.name}")
                    await self.encoder.reencode(local_path, upload_path)
                    converted = True

                stage = Stage.UPLOADING
                logger.info(f"[{stage.value}] {upload_path} -> {self.upload_url}")
                raw_response = await upload(
                    self._client,
                    upload_path,
                    self.upload_url,
                    timeout=self.upload_timeout,
                )

                stage = Stage.INTERPRETING
                resolved_url = interpreter.interpret(raw_response, self.upload_url)
            except ImageUploaderError as e:
                e.stage = e.stage or stage.value
                logger.error(f"[{stage.value}] {e.message}")
                raise

        return UploadOutcome(
            raw_response=raw_response,
            resolved_url=resolved_url,
            converted=converted,
        )

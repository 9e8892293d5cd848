from pathlib import Path

import httpx
import pytest

from src.errors import ConversionError
from src.services.transfer import ImageTransferService

UPLOAD_URL = "https://img.host/upload"
JPEG_BYTES = b"\xff\xd8\xff\xe0converted-jpeg"


class FakeEncoder:
    """Writes fixed JPEG bytes instead of shelling out to ImageMagick."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple[Path, Path]] = []

    async def reencode(self, source: Path, target: Path) -> None:
        self.calls.append((source, target))
        if self.fail:
            raise ConversionError("convert exited with status 1", stderr="bad image")
        target.write_bytes(JPEG_BYTES)


@pytest.fixture
def encoder():
    return FakeEncoder()


@pytest.fixture
async def service(tmp_path, encoder):
    service = ImageTransferService(
        upload_url=UPLOAD_URL,
        encoder=encoder,
        temp_dir=tmp_path,
    )
    yield service
    await service.close()


@pytest.fixture
async def client():
    async with httpx.AsyncClient() as client:
        yield client

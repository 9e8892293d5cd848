import asyncio
import logging
from pathlib import Path
from typing import Protocol

from src.errors import ConversionError

logger = logging.getLogger(__name__)

DEFAULT_CONVERT_COMMAND = "convert"


class ImageEncoder(Protocol):
    async def reencode(self, source: Path, target: Path) -> None: ...


class ConvertCommandEncoder:
    """Re-encodes images with ImageMagick's ``convert`` (or a compatible CLI).

    The target encoding is picked by the tool from the target file's extension.
    """

    def __init__(self, command: str = DEFAULT_CONVERT_COMMAND):
        self.command = command

    async def reencode(self, source: Path, target: Path) -> None:
        logger.info(f"Executing {self.command}: {source} -> {target}")
        try:
            proc = await asyncio.create_subprocess_exec(
                self.command,
                str(source),
                str(target),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ConversionError(
                f"Conversion command '{self.command}' is not installed or not on PATH"
            ) from e

        stdout, stderr = await proc.communicate()
        out = stdout.decode(errors="replace") or None
        err = stderr.decode(errors="replace") or None
        if proc.returncode != 0:
            raise ConversionError(
                f"Conversion command '{self.command}' exited with status {proc.returncode}",
                stdout=out,
                stderr=err,
            )
        if err:
            logger.warning(f"{self.command} stderr: {err}")

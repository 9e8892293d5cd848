import shutil

import pytest

from src.errors import ConversionError
from src.services.encoder import ConvertCommandEncoder


class TestConvertCommandEncoder:
    async def test_missing_command_raises_conversion_error(self, tmp_path):
        source = tmp_path / "a.webp"
        source.write_bytes(b"RIFF")
        encoder = ConvertCommandEncoder("no-such-convert-command-xyz")
        with pytest.raises(ConversionError, match="not installed"):
            await encoder.reencode(source, tmp_path / "a.jpg")

    @pytest.mark.skipif(shutil.which("cp") is None, reason="needs cp")
    async def test_runs_command_with_source_and_target(self, tmp_path):
        source = tmp_path / "a.webp"
        source.write_bytes(b"RIFF....WEBP")
        target = tmp_path / "a.jpg"
        await ConvertCommandEncoder("cp").reencode(source, target)
        assert target.read_bytes() == b"RIFF....WEBP"

    @pytest.mark.skipif(shutil.which("cp") is None, reason="needs cp")
    async def test_non_zero_exit_captures_stderr(self, tmp_path):
        with pytest.raises(ConversionError) as exc_info:
            await ConvertCommandEncoder("cp").reencode(
                tmp_path / "missing.webp", tmp_path / "out.jpg"
            )
        assert "exited with status" in exc_info.value.message
        assert exc_info.value.stderr

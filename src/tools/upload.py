from mcp.server.fastmcp import FastMCP

from src.services.transfer import DEFAULT_FILENAME_PREFIX, ImageTransferService
from src.tools._error_handler import handle_errors


@handle_errors
async def upload_from_url(
    service: ImageTransferService,
    image_url: str,
    filename_prefix: str = DEFAULT_FILENAME_PREFIX,
) -> dict:
    outcome = await service.transfer(image_url, filename_prefix=filename_prefix)
    if outcome.resolved_url:
        summary = f" Constructed/Parsed Image URL: {outcome.resolved_url}"
    else:
        summary = " Could not determine final image URL from response."
    return {
        "message": f"Upload attempt finished. Raw response: {outcome.raw_response}{summary}",
        "raw_response": outcome.raw_response,
        "uploaded_image_url": outcome.resolved_url,
        "status": outcome.status,
        "converted_to_jpeg": outcome.converted,
    }


def register(mcp: FastMCP, service: ImageTransferService):
    @mcp.tool()
    async def upload_image_from_url(
        image_url: str, filename_prefix: str = DEFAULT_FILENAME_PREFIX
    ) -> dict:
        """Download an image from a URL and re-host it on the configured image hosting service.

        WebP images are converted to JPEG first (requires ImageMagick 'convert').
        Returns the host's raw response, the parsed image URL when the response
        shape is recognized, and whether a conversion happened.

        filename_prefix: prefix for the temporary file name; a random suffix is appended."""
        return await upload_from_url(service, image_url, filename_prefix)

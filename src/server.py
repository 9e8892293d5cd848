import contextlib
import logging
import shutil

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.server import TransportSecuritySettings
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

from src.services.encoder import ConvertCommandEncoder
from src.services.transfer import ImageTransferService
from src.tools import upload

# stdio トランスポートでは stdout がプロトコル用なので、ログは stderr へ
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def _create_service_and_mcp():
    from src.config import Settings

    settings = Settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    service = ImageTransferService(
        upload_url=settings.image_upload_url,
        encoder=ConvertCommandEncoder(settings.convert_command),
        temp_dir=settings.temp_dir,
        download_timeout=settings.download_timeout,
        upload_timeout=settings.upload_timeout,
        max_redirects=settings.max_redirects,
    )
    logger.info(f"Using image upload URL from environment: {settings.image_upload_url}")
    if shutil.which(settings.convert_command) is None:
        logger.warning(
            f"'{settings.convert_command}' (ImageMagick) not found on PATH; "
            "WebP images cannot be converted"
        )

    mcp = FastMCP(
        "image-uploader-mcp-server",
        json_response=True,
        stateless_http=True,
        transport_security=TransportSecuritySettings(
            enable_dns_rebinding_protection=False,
        ),
    )
    upload.register(mcp, service)

    return settings, service, mcp


async def health(request):
    return JSONResponse({"status": "ok"})


def create_app() -> Starlette:
    settings, service, mcp = _create_service_and_mcp()

    @contextlib.asynccontextmanager
    async def lifespan(app):
        logger.info("Image Uploader MCP Server starting")
        async with mcp.session_manager.run():
            try:
                yield
            finally:
                await service.close()
        logger.info("Image Uploader MCP Server stopped")

    app = Starlette(
        routes=[
            Route("/health", health),
            Mount("/", app=mcp.streamable_http_app()),
        ],
        lifespan=lifespan,
    )

    if settings.mcp_auth_token:
        from src.auth import BearerAuthMiddleware

        app.add_middleware(BearerAuthMiddleware, token=settings.mcp_auth_token)

    return app


def main():
    from src.config import Settings

    settings = Settings()
    if settings.transport == "stdio":
        _, _, mcp = _create_service_and_mcp()
        logger.info("Image Uploader MCP Server running on stdio. Waiting for requests...")
        mcp.run(transport="stdio")
    else:
        import uvicorn

        app = create_app()
        uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    image_upload_url: str  # 必須: 画像ホスティングのアップロードAPI
    download_timeout: float = 15.0
    upload_timeout: float = 30.0
    max_redirects: int = 5
    convert_command: str = "convert"
    temp_dir: str | None = None
    mcp_auth_token: str | None = None
    port: int = 8080
    transport: str = "stdio"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @field_validator("image_upload_url")
    @classmethod
    def _require_http_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("IMAGE_UPLOAD_URL must be an http(s) URL")
        return value

import os
from typing import List, Optional
from pydantic import BaseModel, Field, ValidationError, field_validator

from nameplate.core.errors import ConfigurationError


_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


class Settings(BaseModel):
    """Runtime configuration passed explicitly into the request handlers."""

    gemini_api_key: Optional[str] = None
    image_provider: str = "gemini"
    image_model: str = "gemini-3-pro-image-preview"
    aspect_ratio: str = "3:4"
    image_size: str = "1K"
    sd_endpoint_url: Optional[str] = None
    sd_api_key: Optional[str] = None
    request_timeout: float = 90
    mock_fallback: bool = False
    job_required: bool = True
    prompt_style: str = "nameplate"
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])
    max_body_bytes: int = 6 * 1024 * 1024
    max_face_bytes: int = 5 * 1024 * 1024

    @field_validator("prompt_style")
    @classmethod
    def _lowercase(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("image_provider")
    @classmethod
    def _known_provider(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("gemini", "stable_diffusion", "mock"):
            raise ValueError(f"Unknown image provider: {value}")
        return value

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (call load_dotenv first)."""
        values = {
            "gemini_api_key": os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or None,
            "sd_endpoint_url": os.getenv("SD_ENDPOINT_URL") or None,
            "sd_api_key": os.getenv("SD_API_KEY") or None,
            "mock_fallback": _env_flag("MOCK_FALLBACK", False),
            "job_required": _env_flag("JOB_REQUIRED", True),
        }
        optional = {
            "image_provider": "IMAGE_PROVIDER",
            "image_model": "IMAGE_MODEL",
            "aspect_ratio": "IMAGE_ASPECT_RATIO",
            "image_size": "IMAGE_SIZE",
            "request_timeout": "IMAGE_REQUEST_TIMEOUT",
            "prompt_style": "PROMPT_STYLE",
            "max_body_bytes": "MAX_BODY_BYTES",
            "max_face_bytes": "MAX_FACE_BYTES",
        }
        for field, env_name in optional.items():
            value = os.getenv(env_name)
            if value:
                values[field] = value

        origins = os.getenv("ALLOWED_ORIGINS")
        if origins:
            values["allowed_origins"] = [o.strip() for o in origins.split(",") if o.strip()]

        try:
            return cls(**values)
        except ValidationError as e:
            problems = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            raise ConfigurationError(f"Cấu hình máy chủ không hợp lệ: {problems or e}")

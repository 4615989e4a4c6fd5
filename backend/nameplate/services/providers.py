from nameplate.core.config import Settings
from nameplate.core.errors import ConfigurationError
from nameplate.services.gemini_image import GeminiImageService
from nameplate.services.mock_image import MockImageService
from nameplate.services.stable_diffusion import StableDiffusionImageService


def build_image_service(settings: Settings):
    """
    Pick the image service for the configured provider.

    A provider that is not configured raises ConfigurationError, unless
    `settings.mock_fallback` is on, in which case the mock service is used.
    """
    if settings.image_provider == "mock":
        return MockImageService()

    try:
        if settings.image_provider == "stable_diffusion":
            return StableDiffusionImageService(
                settings.sd_endpoint_url,
                api_key=settings.sd_api_key,
                aspect_ratio=settings.aspect_ratio,
                timeout=settings.request_timeout,
            )
        return GeminiImageService(
            settings.gemini_api_key,
            model=settings.image_model,
            aspect_ratio=settings.aspect_ratio,
            image_size=settings.image_size,
        )
    except ConfigurationError as e:
        if not settings.mock_fallback:
            raise
        print(f"Warning: {settings.image_provider} not available ({e.message}). Using mock image service.")
        return MockImageService()

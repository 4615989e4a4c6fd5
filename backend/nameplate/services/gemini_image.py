import base64
from typing import Iterator, Optional, Tuple

import google.genai as genai
from google.genai import types

from nameplate.core.errors import ConfigurationError, GenerationError
from nameplate.models.schemas import FaceImage, GeneratedImage

DEFAULT_MODEL = "gemini-3-pro-image-preview"
NO_IMAGE_MESSAGE = "Model không trả về dữ liệu ảnh. Vui lòng thử lại hoặc đổi IMAGE_MODEL."


def _iter_inline_blobs(response) -> Iterator:
    """Inline data of every response part, top-level parts first."""
    for part in getattr(response, "parts", None) or []:
        yield getattr(part, "inline_data", None)
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            yield getattr(part, "inline_data", None)


def _first_image(response) -> Optional[Tuple[bytes, str]]:
    blob = next((b for b in _iter_inline_blobs(response) if b is not None and getattr(b, "data", None)), None)
    if blob is None:
        return None
    data = base64.b64decode(blob.data) if isinstance(blob.data, str) else blob.data
    return data, getattr(blob, "mime_type", None) or "image/png"


class GeminiImageService:
    """Gemini image generation from a text prompt plus one reference face."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        aspect_ratio: str = "3:4",
        image_size: str = "1K",
        client: Optional[genai.Client] = None,
    ):
        if client is None:
            if not api_key:
                raise ConfigurationError("Chưa cấu hình GEMINI_API_KEY.")
            client = genai.Client(api_key=api_key)
        self.client = client
        self.model = model
        self.aspect_ratio = aspect_ratio
        self.image_size = image_size

    def generate(self, prompt: str, face: FaceImage) -> GeneratedImage:
        print(f"Gemini Image Generate: model={self.model}, face={face.mime_type} ({len(face.data)} bytes)")
        response = self.client.models.generate_content(
            model=self.model,
            contents=[
                prompt,
                types.Part.from_bytes(data=face.data, mime_type=face.mime_type),
            ],
            config=types.GenerateContentConfig(
                image_config=types.ImageConfig(
                    aspect_ratio=self.aspect_ratio,
                    image_size=self.image_size,
                ),
            ),
        )
        extracted = _first_image(response)
        if extracted is None:
            raise GenerationError(NO_IMAGE_MESSAGE)

        data, mime_type = extracted
        return GeneratedImage(
            image_base64=base64.b64encode(data).decode("utf-8"),
            mime_type=mime_type,
            model=self.model,
        )

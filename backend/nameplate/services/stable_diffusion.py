import base64
from typing import Optional

import requests

from nameplate.core.errors import ConfigurationError, GenerationError
from nameplate.models.schemas import FaceImage, GeneratedImage

ASPECT_SIZES = {
    "3:4": (768, 1024),
    "1:1": (1024, 1024),
    "4:3": (1024, 768),
}


def _first(value):
    if isinstance(value, list) and value:
        return value[0]
    return None


def _get(value, key: str):
    return value.get(key) if isinstance(value, dict) else None


class StableDiffusionImageService:
    """Generic img2img HTTP endpoint (AUTOMATIC1111 / Stability style JSON)."""

    def __init__(
        self,
        endpoint_url: Optional[str],
        api_key: Optional[str] = None,
        aspect_ratio: str = "3:4",
        timeout: float = 90,
        session: Optional[requests.Session] = None,
    ):
        if not endpoint_url:
            raise ConfigurationError("Chưa cấu hình SD_ENDPOINT_URL.")
        self.endpoint_url = endpoint_url
        self.api_key = api_key
        self.width, self.height = ASPECT_SIZES.get(aspect_ratio, ASPECT_SIZES["3:4"])
        self.timeout = timeout
        self.session = session or requests.Session()
        self.model = "stable-diffusion"

    def generate(self, prompt: str, face: FaceImage) -> GeneratedImage:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        payload = {
            "prompt": prompt,
            "init_images": [base64.b64encode(face.data).decode("utf-8")],
            "width": self.width,
            "height": self.height,
        }

        print(f"Stable Diffusion Generate: endpoint={self.endpoint_url}, size={self.width}x{self.height}")
        try:
            response = self.session.post(
                self.endpoint_url, json=payload, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
            result = response.json()
        except requests.RequestException as e:
            raise GenerationError(f"Không gọi được dịch vụ tạo ảnh: {e}")
        except ValueError:
            raise GenerationError("Dịch vụ tạo ảnh trả về dữ liệu không hợp lệ.")

        return self._parse_result(result)

    def _parse_result(self, result) -> GeneratedImage:
        if not isinstance(result, dict):
            raise GenerationError("Dịch vụ tạo ảnh trả về dữ liệu không hợp lệ.")

        image = result.get("image")
        first_image = _first(result.get("images"))
        artifact = _first(result.get("artifacts"))

        candidates = [
            first_image,
            _get(first_image, "b64_json"),
            _get(first_image, "base64"),
            image,
            _get(artifact, "base64"),
        ]
        image_base64 = next((c for c in candidates if isinstance(c, str) and c), None)
        if image_base64:
            # Some servers send data URLs
            if image_base64.startswith("data:") and "," in image_base64:
                image_base64 = image_base64.split(",", 1)[1]
            return GeneratedImage(image_base64=image_base64, mime_type="image/png", model=self.model)

        urls = [_get(image, "url"), _get(first_image, "url"), result.get("url")]
        image_url = next((u for u in urls if isinstance(u, str) and u), None)
        if image_url:
            return GeneratedImage(image_url=image_url, model=self.model)

        raise GenerationError(
            f"Dịch vụ tạo ảnh không trả về ảnh. Response keys: {list(result.keys())}"
        )

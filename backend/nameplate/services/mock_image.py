import base64
from io import BytesIO

from PIL import Image, ImageDraw

from nameplate.models.schemas import FaceImage, GeneratedImage

MOCK_MODEL_NAME = "mock-banana-pro"

WALNUT = (74, 44, 26)
GOLD = (212, 175, 55)
DESK = (36, 30, 28)


class MockImageService:
    """
    Offline stand-in for the image API.
    Renders a plain 3:4 nameplate mock-up so the front-end can be exercised
    without credentials.
    """

    def __init__(self, width: int = 768, height: int = 1024):
        self.width = width
        self.height = height
        self.model = MOCK_MODEL_NAME

    def generate(self, prompt: str, face: FaceImage) -> GeneratedImage:
        img = Image.new("RGB", (self.width, self.height), DESK)
        draw = ImageDraw.Draw(img)

        plate_top = self.height * 5 // 8
        plate = (self.width // 10, plate_top, self.width * 9 // 10, plate_top + self.height // 5)
        draw.rectangle(plate, fill=WALNUT, outline=GOLD, width=6)

        # Portrait slot on the left of the plate
        slot = (plate[0] + 20, plate[1] + 20, plate[0] + 20 + (plate[3] - plate[1] - 40), plate[3] - 20)
        draw.rectangle(slot, outline=GOLD, width=3)

        # Three text lines as gold bars
        left = slot[2] + 30
        right = plate[2] - 30
        line_top = plate[1] + 35
        for height, shrink in ((22, 0), (14, 60), (10, 120)):
            draw.rectangle((left, line_top, right - shrink, line_top + height), fill=GOLD)
            line_top += height + 25

        buffer = BytesIO()
        img.save(buffer, format="PNG")
        return GeneratedImage(
            image_base64=base64.b64encode(buffer.getvalue()).decode("utf-8"),
            mime_type="image/png",
            model=self.model,
        )

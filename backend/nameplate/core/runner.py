import time

from nameplate.core.config import Settings
from nameplate.core.errors import PayloadTooLarge, SubmissionError
from nameplate.core.multipart import DEFAULT_FILE_FIELDS, decode_multipart
from nameplate.core.validators import SubmissionValidator
from nameplate.models.schemas import GenerateResponse
from nameplate.services.prompts import PromptBuilder, get_prompt_builder
from nameplate.services.providers import build_image_service


class GenerationRunner:
    """Request orchestrator: decode, validate, build prompt, generate."""

    def __init__(self, settings: Settings, prompt_builder: PromptBuilder, image_service):
        self.settings = settings
        self.prompt_builder = prompt_builder
        self.image_service = image_service
        self.validator = SubmissionValidator(
            job_required=settings.job_required,
            max_face_bytes=settings.max_face_bytes,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationRunner":
        return cls(
            settings,
            get_prompt_builder(settings.prompt_style),
            build_image_service(settings),
        )

    def run(self, body: bytes, content_type: str) -> GenerateResponse:
        """
        Handle one generate request.

        Args:
            body: Raw multipart body bytes
            content_type: Content-Type header value

        Returns:
            GenerateResponse with the generated image

        Raises:
            NameplateError subclasses, mapped to HTTP responses by the caller
        """
        if len(body) > self.settings.max_body_bytes:
            raise PayloadTooLarge("Dữ liệu gửi lên quá lớn.")

        if "multipart/form-data" not in (content_type or "").lower():
            raise SubmissionError("Dữ liệu gửi lên không đúng định dạng (multipart/form-data).")

        form = decode_multipart(
            body,
            content_type,
            text_fields=self.prompt_builder.text_fields,
            file_fields=DEFAULT_FILE_FIELDS,
        )
        if form.issues:
            print(f"Multipart issues: {form.issues}")

        submission = self.validator.validate(form)
        prompt = self.prompt_builder.build(submission)

        image = self.image_service.generate(prompt, submission.face)

        return GenerateResponse(
            image_base64=image.image_base64,
            image_url=image.image_url,
            mime_type=image.mime_type,
            request_id=f"req-{int(time.time() * 1000)}",
            prompt_used=prompt,
            model_used=image.model,
        )

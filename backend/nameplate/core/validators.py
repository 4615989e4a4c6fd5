import re

from nameplate.core.errors import SubmissionError
from nameplate.models.schemas import DecodedForm, FaceImage, Submission


_NON_DIGITS = re.compile(r"[^0-9]")
ACCEPTED_FACE_TYPES = ("image/jpeg", "image/jpg", "image/png")

MESSAGES = {
    "invalid": "Dữ liệu gửi lên không hợp lệ. Vui lòng thử lại.",
    "name": "Vui lòng nhập Tên.",
    "job": "Vui lòng nhập Ngành nghề.",
    "phone": "Vui lòng nhập Số điện thoại hợp lệ.",
    "face": "Vui lòng tải lên ảnh tham chiếu gương mặt (JPG/PNG).",
    "face_type": "Vui lòng chỉ tải lên file ảnh (JPG, PNG).",
    "face_size": "Kích thước ảnh không được vượt quá {limit_mb}MB.",
}


def sanitize_text(value: str) -> str:
    """Strip NUL bytes, normalize CRLF to LF, then trim. Order matters."""
    return (value or "").replace("\x00", "").replace("\r\n", "\n").strip()


def normalize_phone(value: str) -> str:
    """Keep only the decimal digits, in their original order."""
    return _NON_DIGITS.sub("", value or "")


class SubmissionValidator:
    """Turns a decoded form into a Submission or raises SubmissionError."""

    def __init__(self, job_required: bool = True, max_face_bytes: int = 5 * 1024 * 1024):
        self.job_required = job_required
        self.max_face_bytes = max_face_bytes

    def validate(self, form: DecodedForm) -> Submission:
        if form.is_empty:
            raise SubmissionError(MESSAGES["invalid"])

        name = sanitize_text(form.name)
        job = sanitize_text(form.job)
        phone_raw = sanitize_text(form.phone)
        phone = normalize_phone(phone_raw)

        if not name:
            raise SubmissionError(MESSAGES["name"])
        if self.job_required and not job:
            raise SubmissionError(MESSAGES["job"])
        if not phone:
            raise SubmissionError(MESSAGES["phone"])

        face_bytes = form.face_bytes
        if not face_bytes:
            raise SubmissionError(MESSAGES["face"])

        mime_type = form.face_mime_type
        if mime_type.split(";", 1)[0].strip().lower() not in ACCEPTED_FACE_TYPES:
            raise SubmissionError(MESSAGES["face_type"])
        if len(face_bytes) > self.max_face_bytes:
            limit_mb = self.max_face_bytes // (1024 * 1024)
            raise SubmissionError(MESSAGES["face_size"].format(limit_mb=limit_mb))

        return Submission(
            name=name,
            job=job,
            phone_raw=phone_raw,
            phone=phone,
            outfit=sanitize_text(form.outfit),
            portrait_style=sanitize_text(form.portrait_style),
            face=FaceImage(data=face_bytes, mime_type=mime_type),
        )

from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


DEFAULT_FACE_MIME_TYPE = "image/jpeg"


class PartHeaders(BaseModel):
    name: Optional[str] = None
    content_type: str = DEFAULT_FACE_MIME_TYPE
    filename: Optional[str] = None


class UploadedFile(BaseModel):
    data: bytes = b""
    content_type: str = DEFAULT_FACE_MIME_TYPE
    filename: Optional[str] = None


class DecodedForm(BaseModel):
    """Result of decoding one multipart/form-data body.

    Always structurally valid. Malformed input shows up as missing fields
    and entries in `issues`, never as an exception.
    """
    fields: Dict[str, str] = Field(default_factory=dict)
    files: Dict[str, UploadedFile] = Field(default_factory=dict)
    issues: List[str] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return self.fields.get("name", "")

    @property
    def job(self) -> str:
        return self.fields.get("job", "")

    @property
    def phone(self) -> str:
        return self.fields.get("phone", "")

    @property
    def outfit(self) -> str:
        return self.fields.get("outfit", "")

    @property
    def portrait_style(self) -> str:
        return self.fields.get("portraitStyle", "")

    @property
    def face_bytes(self) -> Optional[bytes]:
        face = self.files.get("face")
        return face.data if face is not None else None

    @property
    def face_mime_type(self) -> str:
        face = self.files.get("face")
        return face.content_type if face is not None else DEFAULT_FACE_MIME_TYPE

    @property
    def is_empty(self) -> bool:
        return not self.fields and not self.files


class FaceImage(BaseModel):
    data: bytes
    mime_type: str = DEFAULT_FACE_MIME_TYPE


class Submission(BaseModel):
    name: str
    job: str = ""
    phone_raw: str
    phone: str  # digits only
    outfit: str = ""
    portrait_style: str = ""
    face: FaceImage


class GeneratedImage(BaseModel):
    image_base64: Optional[str] = None
    image_url: Optional[str] = None
    mime_type: str = "image/png"
    model: str


# Request/Response models for API
class GenerateResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    image_base64: Optional[str] = None
    image_url: Optional[str] = None
    mime_type: str = "image/png"
    request_id: str
    prompt_used: str
    model_used: str


class ErrorResponse(BaseModel):
    error: str

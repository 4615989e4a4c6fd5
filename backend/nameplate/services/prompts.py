from typing import Tuple

from nameplate.core.errors import ConfigurationError
from nameplate.models.schemas import Submission


NAMEPLATE_PROMPT = """Tạo một ảnh chân thực (photorealistic) chất lượng cao: một bảng tên gỗ cao cấp đặt trên mặt bàn da trong văn phòng sang trọng.

Yêu cầu bảng tên:
- Gỗ óc chó sẫm màu, hoàn thiện bóng sang trọng.
- Chữ kim loại màu vàng, dập nổi rõ nét, căn chỉnh thẳng hàng, không bị méo.
- Nội dung trên bảng (giữ đúng dấu tiếng Việt, đúng chính tả):
  Dòng 1 (lớn): "{name}"
  Dòng 2 (vừa): "{job}"
  Dòng 3 (nhỏ): "{phone}"

Ảnh chân dung:
- Dùng ảnh tham chiếu gương mặt được cung cấp.
- Tạo chân dung phong cách doanh nhân, mặc vest, ánh sáng studio.
- Đặt chân dung ở bên trái bảng tên, giống như in/khắc trên một tấm kim loại gắn vào bảng gỗ.

Bối cảnh:
- Hậu cảnh văn phòng mờ (bokeh), ánh sáng điện ảnh, độ sâu trường ảnh nông, tập trung vào bảng tên.
- Tỉ lệ ảnh dọc 3:4, chi tiết cao.
Không có watermark, không có chữ rác, không sai dấu tiếng Việt."""


PORTRAIT_PROMPT = """Tạo một ảnh chân dung doanh nhân chân thực (photorealistic) dựa trên ảnh tham chiếu gương mặt được cung cấp.

Nhân vật:
- Giữ đúng đặc điểm gương mặt trong ảnh tham chiếu.
- Trang phục: {outfit}.
- Phong cách chân dung: {style}.

Bảng chức danh đặt phía trước nhân vật, gỗ óc chó, chữ vàng dập nổi (giữ đúng dấu tiếng Việt):
  Dòng 1 (lớn): "{name}"
  Dòng 2 (vừa): {job_line}
  Dòng 3 (nhỏ): "{phone}"

Ánh sáng studio, hậu cảnh mờ, tỉ lệ ảnh dọc 3:4, chi tiết cao.
Không có watermark, không có chữ rác, không sai dấu tiếng Việt."""

DEFAULT_OUTFIT = "vest công sở lịch lãm"
DEFAULT_PORTRAIT_STYLE = "ảnh studio doanh nhân"
BLANK_JOB_LINE = "để trống dòng này, không tự thêm chữ"


class PromptBuilder:
    """Turns a validated submission into the text prompt for the image model."""

    text_fields: Tuple[str, ...] = ("name", "job", "phone")

    def build(self, submission: Submission) -> str:
        raise NotImplementedError


class NameplatePromptBuilder(PromptBuilder):

    def build(self, submission: Submission) -> str:
        return NAMEPLATE_PROMPT.format(
            name=submission.name,
            job=submission.job,
            phone=submission.phone_raw,
        )


class PortraitPromptBuilder(PromptBuilder):
    """Portrait variant: outfit and style come from the form, job may be blank."""

    text_fields = ("name", "job", "phone", "outfit", "portraitStyle")

    def build(self, submission: Submission) -> str:
        job_line = f'"{submission.job}"' if submission.job else BLANK_JOB_LINE
        return PORTRAIT_PROMPT.format(
            name=submission.name,
            job_line=job_line,
            phone=submission.phone_raw,
            outfit=submission.outfit or DEFAULT_OUTFIT,
            style=submission.portrait_style or DEFAULT_PORTRAIT_STYLE,
        )


PROMPT_BUILDERS = {
    "nameplate": NameplatePromptBuilder,
    "portrait": PortraitPromptBuilder,
}


def get_prompt_builder(style: str) -> PromptBuilder:
    try:
        return PROMPT_BUILDERS[style]()
    except KeyError:
        raise ConfigurationError(f"Unknown prompt style: {style}")

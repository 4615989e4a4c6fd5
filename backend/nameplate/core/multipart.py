"""Multipart form-data decoder for the generate endpoint.

Works on the raw request body so it behaves the same behind FastAPI and
behind a serverless gateway that hands over a base64 string. Malformed input
never raises out of `decode_multipart`: the caller gets whatever could be
parsed plus a list of issues.
"""

import re
from typing import Iterable, Iterator, Tuple

from nameplate.core.validators import sanitize_text
from nameplate.models.schemas import (
    DEFAULT_FACE_MIME_TYPE, DecodedForm, PartHeaders, UploadedFile
)


DEFAULT_TEXT_FIELDS = ("name", "job", "phone", "outfit", "portraitStyle")
DEFAULT_FILE_FIELDS = ("face",)

CRLF = b"\r\n"
HEADER_SEPARATOR = b"\r\n\r\n"
TERMINATOR = b"--"

_BOUNDARY_RE = re.compile(r'boundary=(?:"([^"]+)"|([^;]+))', re.IGNORECASE)
_DISPOSITION_RE = re.compile(r"^content-disposition:(.*)$", re.IGNORECASE | re.MULTILINE)
_NAME_RE = re.compile(r'\bname="([^"]+)"', re.IGNORECASE)
_FILENAME_RE = re.compile(r'\bfilename="([^"]*)"', re.IGNORECASE)
_CONTENT_TYPE_RE = re.compile(r"^content-type:[ \t]*([^\r\n]*)", re.IGNORECASE | re.MULTILINE)


class MultipartError(ValueError):
    pass


class MalformedContentType(MultipartError):
    pass


class MalformedPart(MultipartError):
    pass


class TruncatedStream(MultipartError):
    pass


def extract_boundary(content_type: str) -> str:
    match = _BOUNDARY_RE.search(content_type or "")
    boundary = (match.group(1) or match.group(2)).strip() if match else ""
    if not boundary:
        raise MalformedContentType("no boundary parameter in Content-Type")
    return boundary


def iter_parts(body: bytes, delimiter: bytes) -> Iterator[bytes]:
    """
    Yield the raw bytes of each part between `delimiter` occurrences.

    Stops quietly at the terminal `--boundary--`. Raises TruncatedStream once
    an opening delimiter has no closing one; parts before it are already out.
    """
    cursor = 0
    while True:
        start = body.find(delimiter, cursor)
        if start == -1:
            return

        after = start + len(delimiter)
        if body[after:after + 2] == TERMINATOR:
            return

        # Skip the CRLF that follows an internal delimiter
        part_start = after + 2
        next_start = body.find(delimiter, part_start)
        if next_start == -1:
            raise TruncatedStream(f"no delimiter after offset {start}")

        # Every delimiter is preceded by a CRLF that belongs to the framing
        yield body[part_start:next_start - 2]
        cursor = next_start


def split_part(part: bytes) -> Tuple[str, bytes]:
    header_end = part.find(HEADER_SEPARATOR)
    if header_end == -1:
        raise MalformedPart("part has no header/content separator")
    header_text = part[:header_end].decode("utf-8", errors="replace")
    return header_text, part[header_end + len(HEADER_SEPARATOR):]


def parse_part_headers(header_text: str) -> PartHeaders:
    headers = PartHeaders()

    disposition = _DISPOSITION_RE.search(header_text)
    if disposition:
        name_match = _NAME_RE.search(disposition.group(1))
        if name_match:
            headers.name = name_match.group(1)
        filename_match = _FILENAME_RE.search(disposition.group(1))
        if filename_match:
            headers.filename = filename_match.group(1)

    type_match = _CONTENT_TYPE_RE.search(header_text)
    if type_match and type_match.group(1).strip():
        headers.content_type = type_match.group(1).strip()
    else:
        headers.content_type = DEFAULT_FACE_MIME_TYPE

    return headers


def decode_multipart(
    body: bytes,
    content_type: str,
    text_fields: Iterable[str] = DEFAULT_TEXT_FIELDS,
    file_fields: Iterable[str] = DEFAULT_FILE_FIELDS,
) -> DecodedForm:
    """
    Decode a multipart/form-data body into known text and file fields.

    Args:
        body: Raw request body, already unwrapped from any transport base64
        content_type: Value of the Content-Type request header
        text_fields: Field names decoded as UTF-8 text and sanitized
        file_fields: Field names kept as raw bytes with their MIME type

    Returns:
        DecodedForm. Duplicate field names: the last occurrence wins.
    """
    form = DecodedForm()
    text_fields = frozenset(text_fields)
    file_fields = frozenset(file_fields)

    try:
        boundary = extract_boundary(content_type)
    except MalformedContentType as e:
        form.issues.append(str(e))
        return form

    delimiter = b"--" + boundary.encode("utf-8")

    try:
        for index, part in enumerate(iter_parts(body, delimiter)):
            try:
                header_text, content = split_part(part)
                headers = parse_part_headers(header_text)
                if headers.name is None:
                    raise MalformedPart("part has no name parameter")
            except MalformedPart as e:
                form.issues.append(f"part {index}: {e}")
                continue

            if headers.name in file_fields:
                form.files[headers.name] = UploadedFile(
                    data=content,
                    content_type=headers.content_type,
                    filename=headers.filename,
                )
            elif headers.name in text_fields:
                form.fields[headers.name] = sanitize_text(
                    content.decode("utf-8", errors="replace")
                )
    except TruncatedStream as e:
        form.issues.append(str(e))

    return form

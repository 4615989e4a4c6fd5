"""Serverless (Netlify Functions / AWS Lambda proxy) entry point.

Gateways deliver multipart bodies as base64 with `isBase64Encoded` set; the
body is unwrapped to bytes here before it reaches the decoder.
"""

import base64
import binascii
import json
from typing import Callable, Optional

from dotenv import load_dotenv

from nameplate.core.config import Settings
from nameplate.core.errors import NameplateError
from nameplate.core.runner import GenerationRunner


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def json_response(status_code: int, payload, origin: str = "*") -> dict:
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "application/json; charset=utf-8",
            **CORS_HEADERS,
            "Access-Control-Allow-Origin": origin,
        },
        "body": json.dumps(payload, ensure_ascii=False),
    }


def get_header(headers: Optional[dict], name: str) -> str:
    for key, value in (headers or {}).items():
        if key.lower() == name.lower():
            return value or ""
    return ""


def resolve_origin(allowed_origins, request_origin: str) -> str:
    """Echo the caller's Origin when it is allowed, else the first allowed origin."""
    if not allowed_origins or "*" in allowed_origins:
        return "*"
    if request_origin in allowed_origins:
        return request_origin
    return allowed_origins[0]


def event_body_bytes(event: dict) -> bytes:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body)
    if isinstance(body, bytes):
        return body
    return body.encode("utf-8", errors="surrogateescape")


def handle_event(
    event: dict,
    settings: Settings,
    runner_factory: Callable[[Settings], GenerationRunner] = GenerationRunner.from_settings,
) -> dict:
    """
    Turn one gateway event into a gateway response.

    The runner is only built for POST requests that carry a body, so
    preflight requests succeed even when the image provider is not configured.
    """
    origin = resolve_origin(settings.allowed_origins, get_header(event.get("headers"), "origin"))
    method = (event.get("httpMethod") or "").upper()

    if method == "OPTIONS":
        return {"statusCode": 204, "headers": {**CORS_HEADERS, "Access-Control-Allow-Origin": origin}, "body": ""}

    if method != "POST":
        return json_response(405, {"error": "Phương thức không hợp lệ. Vui lòng dùng POST."}, origin)

    if not event.get("body"):
        return json_response(400, {"error": "Không nhận được dữ liệu gửi lên."}, origin)

    try:
        body = event_body_bytes(event)
    except (binascii.Error, ValueError):
        return json_response(400, {"error": "Dữ liệu gửi lên không hợp lệ. Vui lòng thử lại."}, origin)

    try:
        runner = runner_factory(settings)
        result = runner.run(body, get_header(event.get("headers"), "content-type"))
    except NameplateError as e:
        return json_response(e.status_code, {"error": e.message}, origin)
    except Exception as e:
        print(f"Function error: {e}")
        return json_response(500, {"error": str(e) or "Lỗi xử lý tạo ảnh."}, origin)

    return json_response(200, result.model_dump(), origin)


def handler(event, context):
    """Netlify Functions handler."""
    load_dotenv()
    try:
        settings = Settings.from_env()
    except NameplateError as e:
        print(f"Function error: {e.message}")
        return json_response(e.status_code, {"error": e.message})
    return handle_event(event, settings)

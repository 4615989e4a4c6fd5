import base64
import json
import os
import sys
import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

# Add backend to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from nameplate.api.generate import get_runner, get_settings
from nameplate.api.netlify import handle_event, handler
from nameplate.core.config import Settings
from nameplate.core.errors import ConfigurationError
from nameplate.core.runner import GenerationRunner
from nameplate.main import app
from nameplate.models.schemas import GeneratedImage
from nameplate.services.prompts import NameplatePromptBuilder
from multipart_helpers import FACE_BYTES, VALID_FIELDS, build_body, content_type_for


def make_runner(settings=None):
    service = MagicMock()
    service.generate.return_value = GeneratedImage(image_base64="aW1n", model="fake-model")
    return GenerationRunner(settings or Settings(), NameplatePromptBuilder(), service)


class TestFastAPIGenerate(unittest.TestCase):

    def setUp(self):
        self.runner = make_runner()
        app.dependency_overrides[get_runner] = lambda: self.runner
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "healthy"})

    def test_generate_with_client_encoded_form(self):
        response = self.client.post(
            "/api/generate",
            data=VALID_FIELDS,
            files={"face": ("face.jpg", FACE_BYTES, "image/jpeg")},
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["image_base64"], "aW1n")
        self.assertEqual(data["model_used"], "fake-model")
        self.assertIn('"Nguyễn Văn A"', data["prompt_used"])

        face = self.runner.image_service.generate.call_args.args[1]
        self.assertEqual(face.data, FACE_BYTES)

    def test_validation_error_shape(self):
        response = self.client.post(
            "/api/generate",
            content=build_body(dict(VALID_FIELDS, name=" ")),
            headers={"Content-Type": content_type_for()},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Vui lòng nhập Tên."})

    def test_wrong_content_type(self):
        response = self.client.post("/api/generate", json={"name": "An"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("multipart/form-data", response.json()["error"])

    def test_unexpected_error_is_500(self):
        self.runner.image_service.generate.side_effect = RuntimeError("upstream exploded")
        response = self.client.post(
            "/api/generate",
            content=build_body(VALID_FIELDS),
            headers={"Content-Type": content_type_for()},
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "upstream exploded"})

    def test_unconfigured_provider_is_500(self):
        del app.dependency_overrides[get_runner]
        app.dependency_overrides[get_settings] = lambda: Settings(gemini_api_key=None)
        response = self.client.post(
            "/api/generate",
            content=build_body(VALID_FIELDS),
            headers={"Content-Type": content_type_for()},
        )
        self.assertEqual(response.status_code, 500)
        self.assertIn("GEMINI_API_KEY", response.json()["error"])

    def test_unknown_prompt_style_is_json_500(self):
        del app.dependency_overrides[get_runner]
        app.dependency_overrides[get_settings] = lambda: Settings(image_provider="mock", prompt_style="bogus")
        response = self.client.post(
            "/api/generate",
            content=build_body(VALID_FIELDS),
            headers={"Content-Type": content_type_for()},
        )
        self.assertEqual(response.status_code, 500)
        self.assertTrue(response.headers["content-type"].startswith("application/json"))
        self.assertIn("bogus", response.json()["error"])

    @patch.dict(os.environ, {"IMAGE_PROVIDER": "dalle"}, clear=True)
    def test_invalid_environment_is_json_500(self):
        del app.dependency_overrides[get_runner]
        get_settings.cache_clear()
        try:
            response = self.client.post(
                "/api/generate",
                content=build_body(VALID_FIELDS),
                headers={"Content-Type": content_type_for()},
            )
        finally:
            get_settings.cache_clear()
        self.assertEqual(response.status_code, 500)
        self.assertIn("image_provider", response.json()["error"])


class TestNetlifyHandler(unittest.TestCase):

    def setUp(self):
        self.settings = Settings()
        self.runner = make_runner(self.settings)

    def event(self, body=None, method="POST", base64_encoded=True, headers=None):
        if body is not None and base64_encoded:
            body = base64.b64encode(body).decode("ascii")
        return {
            "httpMethod": method,
            "headers": headers if headers is not None else {"Content-Type": content_type_for()},
            "body": body,
            "isBase64Encoded": base64_encoded,
        }

    def handle(self, event):
        return handle_event(event, self.settings, lambda settings: self.runner)

    def test_preflight(self):
        response = handle_event(self.event(method="OPTIONS"), Settings(gemini_api_key=None))
        self.assertEqual(response["statusCode"], 204)
        self.assertEqual(response["headers"]["Access-Control-Allow-Methods"], "POST, OPTIONS")

    def test_method_not_allowed(self):
        response = self.handle(self.event(method="GET"))
        self.assertEqual(response["statusCode"], 405)

    def test_missing_body(self):
        response = self.handle(self.event(body=None))
        self.assertEqual(response["statusCode"], 400)

    def test_base64_body(self):
        response = self.handle(self.event(build_body(VALID_FIELDS)))
        self.assertEqual(response["statusCode"], 200)
        payload = json.loads(response["body"])
        self.assertEqual(payload["image_base64"], "aW1n")
        self.assertEqual(response["headers"]["Content-Type"], "application/json; charset=utf-8")
        self.assertEqual(response["headers"]["Access-Control-Allow-Origin"], "*")

    def test_text_body_round_trips_to_bytes(self):
        text = build_body(VALID_FIELDS).decode("utf-8", errors="surrogateescape")
        response = self.handle(self.event(text, base64_encoded=False, headers={"content-type": content_type_for()}))
        self.assertEqual(response["statusCode"], 200)
        face = self.runner.image_service.generate.call_args.args[1]
        self.assertEqual(face.data, FACE_BYTES)

    def test_validation_error(self):
        response = self.handle(self.event(build_body(dict(VALID_FIELDS, phone="abc"))))
        self.assertEqual(response["statusCode"], 400)
        self.assertEqual(json.loads(response["body"]), {"error": "Vui lòng nhập Số điện thoại hợp lệ."})

    def test_configuration_error(self):
        def factory(settings):
            raise ConfigurationError("Chưa cấu hình GEMINI_API_KEY.")

        response = handle_event(self.event(build_body(VALID_FIELDS)), self.settings, factory)
        self.assertEqual(response["statusCode"], 500)
        self.assertIn("GEMINI_API_KEY", json.loads(response["body"])["error"])

    @patch.dict(os.environ, {"IMAGE_PROVIDER": "dalle"}, clear=True)
    @patch('nameplate.api.netlify.load_dotenv')
    def test_handler_with_invalid_environment(self, mock_load_dotenv):
        response = handler({"httpMethod": "POST", "body": "x"}, None)
        self.assertEqual(response["statusCode"], 500)
        self.assertEqual(response["headers"]["Access-Control-Allow-Origin"], "*")
        self.assertIn("image_provider", json.loads(response["body"])["error"])

    def test_echoes_allowed_request_origin(self):
        self.settings = Settings(allowed_origins=["https://a.example", "https://b.example"])
        headers = {"Content-Type": content_type_for(), "Origin": "https://b.example"}
        response = self.handle(self.event(build_body(VALID_FIELDS), headers=headers))
        self.assertEqual(response["statusCode"], 200)
        self.assertEqual(response["headers"]["Access-Control-Allow-Origin"], "https://b.example")

        response = self.handle(self.event(method="OPTIONS", headers={"origin": "https://a.example"}))
        self.assertEqual(response["headers"]["Access-Control-Allow-Origin"], "https://a.example")

    def test_unlisted_origin_gets_first_allowed_origin(self):
        self.settings = Settings(allowed_origins=["https://a.example", "https://b.example"])
        headers = {"Content-Type": content_type_for(), "Origin": "https://evil.example"}
        response = self.handle(self.event(method="GET", headers=headers))
        self.assertEqual(response["headers"]["Access-Control-Allow-Origin"], "https://a.example")


if __name__ == '__main__':
    unittest.main()

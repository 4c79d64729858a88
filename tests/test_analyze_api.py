import base64
import io
import logging
import os
import unittest
from unittest import mock

from ingredientscan_backend import create_app
from ingredientscan_backend.services.images import DEFAULT_MAX_IMAGE_BYTES
from ingredientscan_backend.services.llm import VisionLLMResult

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"
DATA_URL = "data:image/jpeg;base64," + base64.b64encode(JPEG_BYTES).decode("ascii")

MODEL_ANSWER = (
    "Sugar:\n"
    "Harm Scale: 8/10\n"
    "Potential Health Concerns: Diabetes, Obesity\n"
    "Salt:\n"
    "Harm Scale: 4/10\n"
)


class _StubLLMClient:
    def __init__(self, *, raw_text="", error=None):
        self.raw_text = raw_text
        self.error = error
        self.calls: list[tuple[bytes, str | None]] = []

    def analyze_image(self, *, image_bytes, prompt=None, mime_type=None):
        self.calls.append((image_bytes, mime_type))
        if self.error is not None:
            raise self.error
        return VisionLLMResult(raw_text=self.raw_text)


class AnalyzeEndpointTests(unittest.TestCase):
    def setUp(self):
        self.app = create_app()
        self.app.testing = True
        self.client = self.app.test_client()
        logging.disable(logging.CRITICAL)
        self.addCleanup(logging.disable, logging.NOTSET)

    def _install(self, stub):
        self.app.extensions["vision_llm_client"] = stub
        return stub

    def test_json_data_url_is_analyzed(self):
        stub = self._install(_StubLLMClient(raw_text=MODEL_ANSWER))

        response = self.client.post("/api/analyze", json={"imageData": DATA_URL})

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["text"], MODEL_ANSWER)
        self.assertIsNone(body["notice"])
        self.assertEqual(body["summary"], "2 ingredients detected, 1 high risk")
        self.assertEqual(
            body["ingredients"],
            [
                {
                    "name": "Sugar",
                    "harmScale": 8,
                    "healthConcerns": ["Diabetes", "Obesity"],
                    "riskBand": "high",
                },
                {
                    "name": "Salt",
                    "harmScale": 4,
                    "healthConcerns": [],
                    "riskBand": "low",
                },
            ],
        )
        self.assertEqual(stub.calls, [(JPEG_BYTES, "image/jpeg")])

    def test_multipart_upload_is_analyzed(self):
        stub = self._install(_StubLLMClient(raw_text=MODEL_ANSWER))

        response = self.client.post(
            "/api/analyze",
            data={"image": (io.BytesIO(JPEG_BYTES), "label.png", "image/png")},
            content_type="multipart/form-data",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(stub.calls, [(JPEG_BYTES, "image/png")])

    def test_empty_parse_returns_notice_not_error(self):
        self._install(_StubLLMClient(raw_text="Sorry, the label is unreadable."))

        response = self.client.post("/api/analyze", json={"imageData": DATA_URL})

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["ingredients"], [])
        self.assertEqual(body["notice"]["title"], "No ingredients detected")

    def test_missing_image_is_bad_request(self):
        self._install(_StubLLMClient(raw_text=MODEL_ANSWER))

        response = self.client.post("/api/analyze", json={})

        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.get_json())

    def test_invalid_data_url_is_bad_request(self):
        self._install(_StubLLMClient(raw_text=MODEL_ANSWER))

        response = self.client.post(
            "/api/analyze", json={"imageData": "data:text/plain;base64,aGVsbG8="}
        )

        self.assertEqual(response.status_code, 400)

    def test_unconfigured_client_is_service_unavailable(self):
        self.app.extensions.pop("vision_llm_client", None)

        response = self.client.post("/api/analyze", json={"imageData": DATA_URL})

        self.assertEqual(response.status_code, 503)
        self.assertEqual(
            response.get_json(), {"error": "vision LLM client is not configured"}
        )

    def test_model_failure_is_bad_gateway(self):
        self._install(_StubLLMClient(error=RuntimeError("upstream exploded")))

        response = self.client.post("/api/analyze", json={"imageData": DATA_URL})

        self.assertEqual(response.status_code, 502)
        self.assertEqual(
            response.get_json(), {"error": "failed to query vision model"}
        )

    def test_cors_headers_are_present(self):
        self._install(_StubLLMClient(raw_text=MODEL_ANSWER))

        response = self.client.options("/api/analyze")

        self.assertEqual(response.headers["Access-Control-Allow-Origin"], "*")
        self.assertIn("content-type", response.headers["Access-Control-Allow-Headers"])

    def test_healthchecks(self):
        for path in ("/healthz", "/api/healthz"):
            with self.subTest(path=path):
                response = self.client.get(path)
                self.assertEqual(response.get_json(), {"status": "ok"})

    def test_capture_page_is_served(self):
        response = self.client.get("/")

        self.assertEqual(response.status_code, 200)
        self.assertIn(b"Analyze Food Ingredients", response.data)
        response.close()


class AppConfigTests(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch("ingredientscan_backend.services.llm.OpenAI")
        patcher.start()
        self.addCleanup(patcher.stop)

    def _create_app(self, **env):
        env.setdefault("INGREDIENTSCAN_LLM_API_KEY", "test-key")
        with mock.patch.dict(os.environ, env):
            return create_app()

    def test_invalid_max_image_bytes_falls_back_to_default(self):
        for raw in ("lots", "0", "-5"):
            with self.subTest(raw=raw):
                with self.assertLogs("ingredientscan_backend", level="WARNING") as logs:
                    app = self._create_app(INGREDIENTSCAN_MAX_IMAGE_BYTES=raw)

                self.assertEqual(app.config["MAX_IMAGE_BYTES"], DEFAULT_MAX_IMAGE_BYTES)
                self.assertTrue(
                    any("INGREDIENTSCAN_MAX_IMAGE_BYTES" in line for line in logs.output)
                )

    def test_oversize_image_is_bad_request(self):
        app = self._create_app(INGREDIENTSCAN_MAX_IMAGE_BYTES="8")
        stub = _StubLLMClient(raw_text=MODEL_ANSWER)
        app.extensions["vision_llm_client"] = stub
        oversize = "data:image/jpeg;base64," + base64.b64encode(b"x" * 32).decode("ascii")

        logging.disable(logging.CRITICAL)
        self.addCleanup(logging.disable, logging.NOTSET)
        response = app.test_client().post("/api/analyze", json={"imageData": oversize})

        self.assertEqual(response.status_code, 400)
        self.assertIn("8 byte limit", response.get_json()["error"])
        self.assertEqual(stub.calls, [])

    def test_llm_settings_come_from_env(self):
        app = self._create_app(
            INGREDIENTSCAN_LLM_MODEL="vision-test",
            INGREDIENTSCAN_LLM_PROMPT="List ingredients.",
            INGREDIENTSCAN_LLM_SYSTEM_PROMPT="You are a nutritionist.",
        )

        settings = app.extensions["vision_llm_client"]._settings
        self.assertEqual(settings.model, "vision-test")
        self.assertEqual(settings.analysis_prompt, "List ingredients.")
        self.assertEqual(settings.system_prompt, "You are a nutritionist.")

    def test_cors_origin_from_env(self):
        app = self._create_app(INGREDIENTSCAN_CORS_ORIGIN="https://scan.example")

        response = app.test_client().get("/healthz")

        self.assertEqual(
            response.headers["Access-Control-Allow-Origin"], "https://scan.example"
        )


if __name__ == "__main__":
    unittest.main()

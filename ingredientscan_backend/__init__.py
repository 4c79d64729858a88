import logging
import os
from pathlib import Path

from flask import Flask, Response, jsonify, send_from_directory

from ingredientscan_backend.api import init_app as init_api
from ingredientscan_backend.config import (
    DEFAULT_ANALYSIS_PROMPT,
    DEFAULT_LLM_MODEL,
)
from ingredientscan_backend.services.images import DEFAULT_MAX_IMAGE_BYTES
from ingredientscan_backend.services.llm import (
    VisionLLMSettings,
    init_vision_llm_client,
)

FRONTEND_DIR = Path(__file__).resolve().parent / "frontend"

CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"
REQUEST_BODY_HEADROOM = 64 * 1024


def create_app() -> Flask:
    """Application factory for the IngredientScan backend."""
    app = Flask(__name__)

    _configure_logging(app)

    app.config["MAX_IMAGE_BYTES"] = _int_from_env(
        app, "INGREDIENTSCAN_MAX_IMAGE_BYTES", DEFAULT_MAX_IMAGE_BYTES
    )
    # data URLs inflate the image by a third; leave room for the JSON body
    app.config["MAX_CONTENT_LENGTH"] = (
        app.config["MAX_IMAGE_BYTES"] * 2 + REQUEST_BODY_HEADROOM
    )
    app.config["CORS_ORIGIN"] = os.environ.get("INGREDIENTSCAN_CORS_ORIGIN", "*")

    @app.get("/healthz")
    def healthcheck():
        return jsonify(status="ok")

    @app.get("/api/healthz")
    def api_healthcheck():
        return jsonify(status="ok")

    llm_api_key = os.environ.get("INGREDIENTSCAN_LLM_API_KEY") or os.environ.get(
        "OPENAI_API_KEY"
    )
    llm_model = os.environ.get("INGREDIENTSCAN_LLM_MODEL", DEFAULT_LLM_MODEL)
    llm_prompt = os.environ.get("INGREDIENTSCAN_LLM_PROMPT", DEFAULT_ANALYSIS_PROMPT)
    llm_system_prompt = os.environ.get("INGREDIENTSCAN_LLM_SYSTEM_PROMPT")

    if llm_api_key:
        app.extensions["vision_llm_client"] = init_vision_llm_client(
            VisionLLMSettings(
                api_key=llm_api_key,
                model=llm_model,
                analysis_prompt=llm_prompt or None,
                system_prompt=llm_system_prompt or None,
            )
        )
    else:
        app.logger.warning(
            "INGREDIENTSCAN_LLM_API_KEY/OPENAI_API_KEY not set; analyze endpoint disabled"
        )

    init_api(app)
    _register_cors(app)
    _register_frontend(app)

    return app


def _configure_logging(app: Flask) -> None:
    """Ensure application and root loggers emit INFO-level logs."""

    logging.basicConfig(level=logging.INFO)
    logging.getLogger().setLevel(logging.INFO)
    app.logger.setLevel(logging.INFO)


def _int_from_env(app: Flask, name: str, default: int) -> int:
    raw_value = os.environ.get(name)
    if not raw_value:
        return default
    try:
        value = int(raw_value)
    except ValueError:
        value = 0
    if value <= 0:
        app.logger.warning("invalid %s=%s; using %s", name, raw_value, default)
        return default
    return value


def _register_cors(app: Flask) -> None:
    """Allow the capture page to be hosted apart from the API."""

    @app.after_request
    def _add_cors_headers(response: Response) -> Response:
        response.headers["Access-Control-Allow-Origin"] = app.config["CORS_ORIGIN"]
        response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
        return response


def _register_frontend(app: Flask) -> None:
    """Serve the capture page and its assets."""

    if not FRONTEND_DIR.exists():
        app.logger.warning(
            "frontend bundle missing; UI routes will return 404",
            extra={"path": str(FRONTEND_DIR)},
        )
        return

    @app.route("/", defaults={"path": ""})
    @app.route("/<path:path>")
    def _serve_frontend(path: str):
        asset_path = FRONTEND_DIR / path
        if path and asset_path.is_file():
            return send_from_directory(FRONTEND_DIR, path)

        return send_from_directory(FRONTEND_DIR, "index.html")

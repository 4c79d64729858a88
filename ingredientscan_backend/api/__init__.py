"""API package wiring for IngredientScan backend."""

from flask import Flask

from .analyze import bp as analyze_bp


def init_app(app: Flask) -> None:
    """Register all API blueprints on the given application."""

    app.register_blueprint(analyze_bp)

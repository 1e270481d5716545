"""Blueprint registration helper."""

from __future__ import annotations

from flask import Flask, jsonify

from .messages import bp as messages_bp


def register_routes(app: Flask) -> None:
    """Register all application blueprints on the provided Flask app."""
    app.register_blueprint(messages_bp)

    @app.get("/")
    def index():
        return jsonify(message="CVPilot background service"), 200

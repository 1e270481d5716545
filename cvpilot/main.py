"""Flask application setup for the background message service."""

from __future__ import annotations

from typing import Optional

from flask import Flask
from flask_cors import CORS

from cvpilot.background import BackgroundOrchestrator
from cvpilot.routes import register_routes
from cvpilot.routes.messages import ORCHESTRATOR_KEY
from cvpilot.services.identity import StaticIdentityProvider
from cvpilot.services.token_manager import TokenManager


def create_app(orchestrator: Optional[BackgroundOrchestrator] = None) -> Flask:
    """Configure and return the Flask application instance."""
    app = Flask(__name__)
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    if orchestrator is None:
        orchestrator = BackgroundOrchestrator(
            TokenManager(identity=StaticIdentityProvider.from_env())
        )
    app.extensions[ORCHESTRATOR_KEY] = orchestrator

    register_routes(app)
    app.logger.info("Analysis Service at %s", orchestrator.token_manager.base_url)

    return app

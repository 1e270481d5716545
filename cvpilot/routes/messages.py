"""/api/messages route carrying the background message protocol over HTTP."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request

bp = Blueprint("messages", __name__, url_prefix="/api/messages")

ORCHESTRATOR_KEY = "cvpilot.orchestrator"


@bp.post("")
async def dispatch_message():
    """Hand a protocol message to the background orchestrator."""
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        payload = {}

    orchestrator = current_app.extensions[ORCHESTRATOR_KEY]
    response = await orchestrator.handle_message(payload)
    if not response.get("success"):
        current_app.logger.info(
            "Message %s failed with %s", payload.get("type"), response.get("code")
        )

    # Protocol failures travel in the body; the transport itself succeeded.
    return jsonify(response), 200

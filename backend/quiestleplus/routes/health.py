from __future__ import annotations

from flask import Blueprint, jsonify

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    return jsonify({"status": "ok"})


@bp.get("")
def index():
    return jsonify(
        {
            "message": "API Qui est le plus - Serveur WebSocket",
            "status": "running",
            "endpoints": {
                "health": "/api/health",
                "categories": "/api/categories",
                "rooms": "/api/rooms/<code>",
            },
        }
    )

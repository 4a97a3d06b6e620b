from __future__ import annotations

from flask import Blueprint, jsonify

from ..game.questions import category_summary

bp = Blueprint("questions", __name__)


@bp.get("/categories")
def get_categories():
    return jsonify({"categories": category_summary()})

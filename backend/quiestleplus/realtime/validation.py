from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from ..game.models import CUSTOM_CATEGORY, RoomSettings
from ..game.questions import CATEGORIES


_DATA_URL_RE = re.compile(r"^data:image/(png|jpe?g|gif|webp);base64,[A-Za-z0-9+/=\s]+$")


def _has_control_chars(text: str) -> bool:
    return any(ord(ch) < 32 for ch in text)


def validate_name(name: Any, max_length: int = 20) -> str | None:
    if not isinstance(name, str):
        return None
    n = name.strip()
    if not n or len(n) > max_length:
        return None
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        return None
    if _has_control_chars(n):
        return None
    return n


def normalize_avatar(raw: Any, max_bytes: int = 2_000_000) -> str | None:
    """Keep a small inline image or an http(s) URL, drop anything else."""
    if not isinstance(raw, str):
        return None
    a = raw.strip()
    if not a or len(a) > max_bytes:
        return None
    if _DATA_URL_RE.match(a):
        return a
    if re.match(r"^https?://\S+$", a):
        return a
    return None


def normalize_code(raw: Any) -> str | None:
    if not isinstance(raw, str):
        return None
    code = raw.strip().upper()
    if not code or not re.fullmatch(r"[A-Z0-9]{4,12}", code):
        return None
    return code


def validate_adjective(raw: Any, max_length: int = 80) -> str | None:
    if not isinstance(raw, str):
        return None
    a = " ".join(raw.split())
    if not a or len(a) > max_length:
        return None
    if "<" in a or ">" in a:
        return None
    return a


def parse_index(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _setting(config, key: str):
    # Accepts a Flask config mapping or a Config class.
    if isinstance(config, Mapping):
        return config[key]
    return getattr(config, key)


def parse_settings(payload: Any, config) -> RoomSettings | None:
    if not isinstance(payload, dict):
        return None

    try:
        number_of_questions = int(payload.get("numberOfQuestions"))
        question_time = int(payload.get("questionTime", _setting(config, "DEFAULT_QUESTION_TIME")))
    except (TypeError, ValueError):
        return None

    if not _setting(config, "MIN_QUESTIONS") <= number_of_questions <= _setting(config, "MAX_QUESTIONS"):
        return None
    if not _setting(config, "MIN_QUESTION_TIME") <= question_time <= _setting(config, "MAX_QUESTION_TIME"):
        return None

    raw_categories = payload.get("categories")
    if not isinstance(raw_categories, list):
        return None

    categories: list[str] = []
    for c in raw_categories:
        if not isinstance(c, str) or c not in CATEGORIES:
            return None
        if c not in categories:
            categories.append(c)
    if not categories:
        return None

    # Custom prompts replace the catalog for the whole game.
    if CUSTOM_CATEGORY in categories:
        categories = [CUSTOM_CATEGORY]

    return RoomSettings(
        number_of_questions=number_of_questions,
        categories=categories,
        question_time=question_time,
    )

import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Socket.IO
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    # Avatars travel as base64 data URLs.
    MAX_HTTP_BUFFER_SIZE = int(os.environ.get("MAX_HTTP_BUFFER_SIZE", "10000000"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Rooms
    ROOM_CODE_LENGTH = int(os.environ.get("ROOM_CODE_LENGTH", "6"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "2"))

    # Game defaults
    DEFAULT_NUMBER_OF_QUESTIONS = int(os.environ.get("DEFAULT_NUMBER_OF_QUESTIONS", "10"))
    DEFAULT_QUESTION_TIME = int(os.environ.get("DEFAULT_QUESTION_TIME", "30"))
    DEFAULT_CATEGORY = os.environ.get("DEFAULT_CATEGORY", "classique")

    # Bounds checked on inbound payloads
    MIN_QUESTIONS = int(os.environ.get("MIN_QUESTIONS", "5"))
    MAX_QUESTIONS = int(os.environ.get("MAX_QUESTIONS", "30"))
    MIN_QUESTION_TIME = int(os.environ.get("MIN_QUESTION_TIME", "10"))
    MAX_QUESTION_TIME = int(os.environ.get("MAX_QUESTION_TIME", "120"))
    MAX_NAME_LENGTH = int(os.environ.get("MAX_NAME_LENGTH", "20"))
    MAX_ADJECTIVE_LENGTH = int(os.environ.get("MAX_ADJECTIVE_LENGTH", "80"))
    MAX_AVATAR_BYTES = int(os.environ.get("MAX_AVATAR_BYTES", "2000000"))

    # Round timer. Off means no background ticker is spawned.
    TIMER_ENABLED = os.environ.get("TIMER_ENABLED", "1") == "1"

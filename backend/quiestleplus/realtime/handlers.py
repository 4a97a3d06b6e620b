from __future__ import annotations

import functools
import logging

from flask import current_app, request
from flask_socketio import SocketIO, emit, join_room, leave_room

from ..game.models import Room, custom_questions_to_list, question_to_dict, result_to_dict, room_public_state
from ..game.store import Rejection, RoomStore, is_rejection
from . import validation


logger = logging.getLogger(__name__)

INVALID_PAYLOAD = "invalid_payload"
INTERNAL_ERROR = "internal_error"

ERROR_MESSAGES: dict[str, str] = {
    Rejection.ROOM_NOT_FOUND.value: "Room introuvable",
    Rejection.NOT_IN_ROOM.value: "Vous n'êtes dans aucune room",
    Rejection.ONLY_HOST.value: "Seul l'hôte peut faire cette action",
    Rejection.INVALID_STATE.value: "Action impossible à ce moment de la partie",
    Rejection.INVALID_TARGET.value: "Joueur introuvable",
    Rejection.NOT_ENOUGH_PLAYERS.value: "Impossible de démarrer le jeu (minimum 2 joueurs requis)",
    Rejection.NOT_ENOUGH_QUESTIONS.value: "Pas assez de questions pour démarrer",
    Rejection.COLLECTION_FULL.value: "Toutes les questions ont déjà été proposées",
    Rejection.INDEX_OUT_OF_RANGE.value: "Question introuvable",
    INVALID_PAYLOAD: "Requête invalide",
    INTERNAL_ERROR: "Erreur interne du serveur",
}


def _error_code(error) -> str:
    return error.value if isinstance(error, Rejection) else str(error)


def register_socketio_handlers(socketio: SocketIO, store: RoomStore) -> None:
    def _fail(error) -> dict:
        code = _error_code(error)
        logger.debug("rejected sid=%s error=%s", request.sid, code)
        emit("room:error", {"error": code, "message": ERROR_MESSAGES.get(code, code)})
        return {"ok": False, "error": code}

    def _guarded(handler):
        @functools.wraps(handler)
        def wrapper(*args, **kwargs):
            try:
                return handler(*args, **kwargs)
            except Exception:
                logger.exception("socket handler %s failed sid=%s", handler.__name__, request.sid)
                return _fail(INTERNAL_ERROR)

        return wrapper

    def _cfg(key: str):
        return current_app.config[key]

    def _broadcast_room(room: Room) -> None:
        socketio.emit("room:updated", room_public_state(room), to=room.code)

    def _close_round(room: Room, trigger: str) -> None:
        with store.lock:
            result = store.calculate_results(room.code)
            if is_rejection(result):
                return
            logger.info("round results code=%s trigger=%s", room.code, trigger)
            socketio.emit("game:results", result_to_dict(result), to=room.code)
            _broadcast_room(room)

    def _close_round_if_complete(room: Room) -> None:
        with store.lock:
            if room.status == "playing" and store.has_everyone_voted(room.code):
                _close_round(room, "all-voted")

    def _start_round(room: Room) -> None:
        def on_tick(time_remaining: int) -> None:
            socketio.emit("game:timerUpdate", time_remaining, to=room.code)

        def on_expired() -> None:
            socketio.emit("game:timeExpired", to=room.code)
            _close_round(room, "timer")

        socketio.emit("game:question", question_to_dict(room.current_question), to=room.code)
        store.start_timer(room.code, on_expired=on_expired, on_tick=on_tick)

    def _depart(player_id: str) -> None:
        """Drop ``player_id`` from whatever room it is in and tell the others."""
        with store.lock:
            current = store.get_player_room(player_id)
            if current is None:
                return
            code = current.code
            outcome = store.leave_room(player_id)
            try:
                leave_room(code, sid=player_id)
            except (KeyError, ValueError):
                pass
            if outcome.room is None:
                return
            _broadcast_room(outcome.room)
            _close_round_if_complete(outcome.room)

    @socketio.on("room:create")
    @_guarded
    def room_create(data=None):
        payload = data or {}
        name = validation.validate_name(payload.get("name"), _cfg("MAX_NAME_LENGTH"))
        if name is None:
            return _fail(INVALID_PAYLOAD)
        avatar = validation.normalize_avatar(payload.get("avatar"), _cfg("MAX_AVATAR_BYTES"))

        _depart(request.sid)
        room = store.create_room(request.sid, name, avatar)
        join_room(room.code)
        emit("room:joined", room_public_state(room))
        return {"ok": True, "roomCode": room.code}

    @socketio.on("room:join")
    @_guarded
    def room_join(data=None):
        payload = data or {}
        code = validation.normalize_code(payload.get("code"))
        name = validation.validate_name(payload.get("name"), _cfg("MAX_NAME_LENGTH"))
        if code is None or name is None:
            return _fail(INVALID_PAYLOAD)
        avatar = validation.normalize_avatar(payload.get("avatar"), _cfg("MAX_AVATAR_BYTES"))

        with store.lock:
            # The current room is only left once the target is known to exist.
            if store.get_room(code) is None:
                return _fail(Rejection.ROOM_NOT_FOUND)

            current = store.get_player_room(request.sid)
            if current is not None and current.code != code:
                _depart(request.sid)

            room = store.join_room(code, request.sid, name, avatar)
            if is_rejection(room):
                return _fail(room)

            join_room(room.code)
            emit("room:joined", room_public_state(room))
            _broadcast_room(room)
        return {"ok": True, "roomCode": room.code}

    @socketio.on("room:updateSettings")
    @_guarded
    def room_update_settings(data=None):
        settings = validation.parse_settings(data, current_app.config)
        if settings is None:
            return _fail(INVALID_PAYLOAD)

        room = store.update_settings(request.sid, settings)
        if is_rejection(room):
            return _fail(room)

        _broadcast_room(room)
        return {"ok": True}

    @socketio.on("room:leave")
    @_guarded
    def room_leave(data=None):
        _depart(request.sid)
        return {"ok": True}

    @socketio.on("room:kickPlayer")
    @_guarded
    def room_kick_player(data=None):
        payload = data or {}
        target_id = payload.get("playerId")
        if not isinstance(target_id, str) or not target_id:
            return _fail(INVALID_PAYLOAD)

        with store.lock:
            room = store.kick_player(request.sid, target_id)
            if is_rejection(room):
                return _fail(room)

            socketio.emit("room:kicked", to=target_id)
            try:
                leave_room(room.code, sid=target_id)
            except (KeyError, ValueError):
                pass
            _broadcast_room(room)
            _close_round_if_complete(room)
        return {"ok": True}

    @socketio.on("room:transferHost")
    @_guarded
    def room_transfer_host(data=None):
        payload = data or {}
        new_host_id = payload.get("newHostId")
        if not isinstance(new_host_id, str) or not new_host_id:
            return _fail(INVALID_PAYLOAD)

        room = store.transfer_host(request.sid, new_host_id)
        if is_rejection(room):
            return _fail(room)

        _broadcast_room(room)
        return {"ok": True}

    @socketio.on("room:regenerateCode")
    @_guarded
    def room_regenerate_code(data=None):
        with store.lock:
            outcome = store.regenerate_code(request.sid)
            if is_rejection(outcome):
                return _fail(outcome)

            room = outcome.room
            for player in room.players:
                try:
                    leave_room(outcome.old_code, sid=player.id)
                    join_room(room.code, sid=player.id)
                except (KeyError, ValueError):
                    logger.warning("could not move sid=%s to code=%s", player.id, room.code)
            _broadcast_room(room)
        return {"ok": True, "roomCode": room.code}

    @socketio.on("game:start")
    @_guarded
    def game_start(data=None):
        with store.lock:
            outcome = store.start_game(request.sid)
            if is_rejection(outcome):
                return _fail(outcome)

            room = outcome.room
            _broadcast_room(room)
            if outcome.question is None:
                socketio.emit("custom:questionsUpdated", custom_questions_to_list(room.custom_questions), to=room.code)
            else:
                _start_round(room)
        return {"ok": True}

    @socketio.on("custom:addQuestion")
    @_guarded
    def custom_add_question(data=None):
        payload = data or {}
        adjective = validation.validate_adjective(payload.get("adjective"), _cfg("MAX_ADJECTIVE_LENGTH"))
        if adjective is None:
            return _fail(INVALID_PAYLOAD)

        room = store.add_custom_question(request.sid, adjective)
        if is_rejection(room):
            return _fail(room)

        _broadcast_room(room)
        socketio.emit("custom:questionsUpdated", custom_questions_to_list(room.custom_questions), to=room.code)
        return {"ok": True}

    @socketio.on("custom:removeQuestion")
    @_guarded
    def custom_remove_question(data=None):
        payload = data or {}
        index = validation.parse_index(payload.get("index"))
        if index is None:
            return _fail(INVALID_PAYLOAD)

        room = store.remove_custom_question(request.sid, index)
        if is_rejection(room):
            return _fail(room)

        _broadcast_room(room)
        socketio.emit("custom:questionsUpdated", custom_questions_to_list(room.custom_questions), to=room.code)
        return {"ok": True}

    @socketio.on("custom:startGame")
    @_guarded
    def custom_start_game(data=None):
        with store.lock:
            outcome = store.start_game_with_custom_questions(request.sid)
            if is_rejection(outcome):
                return _fail(outcome)

            _broadcast_room(outcome.room)
            _start_round(outcome.room)
        return {"ok": True}

    @socketio.on("game:vote")
    @_guarded
    def game_vote(data=None):
        payload = data or {}
        target_id = payload.get("targetPlayerId")
        if not isinstance(target_id, str) or not target_id:
            return _fail(INVALID_PAYLOAD)

        with store.lock:
            room = store.vote(request.sid, target_id)
            if is_rejection(room):
                return _fail(room)

            _broadcast_room(room)
            _close_round_if_complete(room)
        return {"ok": True}

    @socketio.on("game:nextQuestion")
    @_guarded
    def game_next_question(data=None):
        with store.lock:
            outcome = store.next_question(request.sid)
            if is_rejection(outcome):
                return _fail(outcome)

            room = outcome.room
            _broadcast_room(room)
            if outcome.finished:
                socketio.emit("game:finished", [result_to_dict(r) for r in room.results], to=room.code)
            else:
                _start_round(room)
        return {"ok": True, "finished": outcome.finished}

    @socketio.on("game:backToLobby")
    @_guarded
    def game_back_to_lobby(data=None):
        room = store.reset_room(request.sid)
        if is_rejection(room):
            return _fail(room)

        _broadcast_room(room)
        return {"ok": True}

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        try:
            _depart(request.sid)
        except Exception:
            logger.exception("disconnect cleanup failed sid=%s", request.sid)

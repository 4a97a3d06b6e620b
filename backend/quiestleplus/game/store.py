from __future__ import annotations

import logging
import random
import string
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from threading import RLock
from typing import Callable, Union

from ..config import Config
from .models import (
    CUSTOM_CATEGORY,
    CustomQuestion,
    Player,
    Question,
    QuestionResult,
    QuestionSeed,
    RankingEntry,
    Room,
    RoomSettings,
)
from .questions import format_question_text, sample_questions
from .timer import ExpiredCallback, RoundTimer, TickCallback, spawn_thread


logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


class Rejection(str, Enum):
    ROOM_NOT_FOUND = "room_not_found"
    NOT_IN_ROOM = "not_in_room"
    ONLY_HOST = "only_host"
    INVALID_STATE = "invalid_state"
    INVALID_TARGET = "invalid_target"
    NOT_ENOUGH_PLAYERS = "not_enough_players"
    NOT_ENOUGH_QUESTIONS = "not_enough_questions"
    COLLECTION_FULL = "collection_full"
    INDEX_OUT_OF_RANGE = "index_out_of_range"


@dataclass
class LeaveResult:
    room: Room | None
    deleted: bool


@dataclass
class RegenerateResult:
    room: Room
    old_code: str


@dataclass
class StartResult:
    room: Room
    question: Question | None = None


@dataclass
class NextResult:
    room: Room
    question: Question | None
    finished: bool


RoomOrRejection = Union[Room, Rejection]


def is_rejection(value) -> bool:
    return isinstance(value, Rejection)


def assign_ranks(ranking: list[RankingEntry]) -> list[RankingEntry]:
    """Number a vote-sorted ranking; tied entries share a rank (1, 1, 3)."""
    rank = 1
    for i, entry in enumerate(ranking):
        if i > 0 and entry.votes != ranking[i - 1].votes:
            rank = i + 1
        entry.rank = rank
    return ranking


class RoomStore:
    """Owner of every room and of the connection -> room code index.

    All mutations run under one re-entrant lock and either fully apply or
    leave the room untouched. Business-rule violations come back as
    ``Rejection`` members, never as exceptions.
    """

    def __init__(
        self,
        config=Config,
        spawn: Callable[..., None] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        self._player_rooms: dict[str, str] = {}
        self._config = config
        self._rng = rng or random.Random()

        if not getattr(config, "TIMER_ENABLED", True):
            spawn = None
        elif spawn is None:
            spawn = spawn_thread
        self.timer = RoundTimer(self._lock, spawn=spawn, sleep=sleep)

    @property
    def lock(self) -> RLock:
        return self._lock

    # ---- lookups ----

    def _generate_code(self) -> str:
        length = int(getattr(self._config, "ROOM_CODE_LENGTH", 6))
        while True:
            code = "".join(self._rng.choices(CODE_ALPHABET, k=length))
            if code not in self._rooms:
                return code

    def get_room(self, code: str) -> Room | None:
        with self._lock:
            return self._rooms.get((code or "").strip().upper())

    def get_player_room(self, player_id: str) -> Room | None:
        with self._lock:
            code = self._player_rooms.get(player_id)
            if code is None:
                return None
            return self._rooms.get(code)

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def _room_of(self, player_id: str) -> RoomOrRejection:
        room = self.get_player_room(player_id)
        if room is None:
            return Rejection.NOT_IN_ROOM
        return room

    def _hosted_room(self, player_id: str) -> RoomOrRejection:
        room = self._room_of(player_id)
        if is_rejection(room):
            return room
        if room.host_id != player_id:
            return Rejection.ONLY_HOST
        return room

    # ---- membership ----

    def create_room(self, host_id: str, name: str, avatar: str | None = None) -> Room:
        with self._lock:
            # An identity belongs to at most one room.
            if host_id in self._player_rooms:
                self.leave_room(host_id)

            settings = RoomSettings(
                number_of_questions=int(getattr(self._config, "DEFAULT_NUMBER_OF_QUESTIONS", 10)),
                categories=[getattr(self._config, "DEFAULT_CATEGORY", "classique")],
                question_time=int(getattr(self._config, "DEFAULT_QUESTION_TIME", 30)),
            )
            room = Room(
                id=uuid.uuid4().hex,
                code=self._generate_code(),
                host_id=host_id,
                players=[Player(id=host_id, name=name, avatar=avatar, is_host=True)],
                settings=settings,
            )
            self._rooms[room.code] = room
            self._player_rooms[host_id] = room.code
            logger.info("room created code=%s host=%s", room.code, host_id)
            return room

    def join_room(self, code: str, player_id: str, name: str, avatar: str | None = None) -> RoomOrRejection:
        with self._lock:
            room = self.get_room(code)
            if room is None:
                return Rejection.ROOM_NOT_FOUND

            if room.find_player(player_id) is not None:
                return room
            if player_id in self._player_rooms:
                self.leave_room(player_id)

            room.players.append(Player(id=player_id, name=name, avatar=avatar, is_host=False))
            self._player_rooms[player_id] = room.code
            logger.info("player joined code=%s player=%s", room.code, player_id)
            return room

    def _remove_player_locked(self, room: Room, player_id: str) -> None:
        room.players = [p for p in room.players if p.id != player_id]
        self._player_rooms.pop(player_id, None)

        # A departed player's ballot and any ballot naming them both go.
        room.votes.pop(player_id, None)
        for voter_id in [v for v, target in room.votes.items() if target == player_id]:
            del room.votes[voter_id]

    def leave_room(self, player_id: str) -> LeaveResult:
        with self._lock:
            room = self.get_player_room(player_id)
            if room is None:
                self._player_rooms.pop(player_id, None)
                return LeaveResult(room=None, deleted=False)

            self._remove_player_locked(room, player_id)
            logger.info("player left code=%s player=%s", room.code, player_id)

            if not room.players:
                self.timer.stop(room)
                del self._rooms[room.code]
                logger.info("room deleted code=%s", room.code)
                return LeaveResult(room=None, deleted=True)

            if room.host_id == player_id:
                new_host = room.players[0]
                new_host.is_host = True
                room.host_id = new_host.id
                logger.info("host reassigned code=%s host=%s", room.code, new_host.id)

            return LeaveResult(room=room, deleted=False)

    def kick_player(self, host_id: str, target_id: str) -> RoomOrRejection:
        with self._lock:
            room = self._hosted_room(host_id)
            if is_rejection(room):
                return room
            if target_id == host_id or room.find_player(target_id) is None:
                return Rejection.INVALID_TARGET

            self._remove_player_locked(room, target_id)
            logger.info("player kicked code=%s player=%s", room.code, target_id)
            return room

    def transfer_host(self, host_id: str, new_host_id: str) -> RoomOrRejection:
        with self._lock:
            room = self._hosted_room(host_id)
            if is_rejection(room):
                return room
            new_host = room.find_player(new_host_id)
            if new_host is None:
                return Rejection.INVALID_TARGET
            if new_host_id == host_id:
                return room

            for p in room.players:
                p.is_host = p.id == new_host_id
            room.host_id = new_host_id
            logger.info("host transferred code=%s host=%s", room.code, new_host_id)
            return room

    def regenerate_code(self, host_id: str) -> Union[RegenerateResult, Rejection]:
        with self._lock:
            room = self._hosted_room(host_id)
            if is_rejection(room):
                return room

            old_code = room.code
            new_code = self._generate_code()
            del self._rooms[old_code]
            room.code = new_code
            self._rooms[new_code] = room
            for p in room.players:
                self._player_rooms[p.id] = new_code

            logger.info("room code regenerated old=%s new=%s", old_code, new_code)
            return RegenerateResult(room=room, old_code=old_code)

    def update_settings(self, player_id: str, settings: RoomSettings) -> RoomOrRejection:
        with self._lock:
            room = self._hosted_room(player_id)
            if is_rejection(room):
                return room
            room.settings = settings
            return room

    # ---- game flow ----

    def _build_question(self, seed: QuestionSeed) -> Question:
        return Question(
            id=uuid.uuid4().hex,
            text=format_question_text(seed.adjective),
            adjective=seed.adjective,
            category=seed.category,
        )

    def _begin_game_locked(self, room: Room, seeds: list[QuestionSeed]) -> StartResult:
        room.generated_questions = list(seeds)
        room.current_question_index = 0
        room.votes = {}
        room.results = []
        room.custom_questions = None
        room.status = "playing"
        room.current_question = self._build_question(seeds[0])
        logger.info("game started code=%s questions=%s", room.code, len(seeds))
        return StartResult(room=room, question=room.current_question)

    def _remember_used(self, room: Room, seeds: list[QuestionSeed]) -> None:
        for seed in seeds:
            if seed.adjective not in room.used_questions:
                room.used_questions.append(seed.adjective)

    def start_game(self, host_id: str) -> Union[StartResult, Rejection]:
        with self._lock:
            room = self._hosted_room(host_id)
            if is_rejection(room):
                return room
            if room.status in ("custom-questions", "playing", "results"):
                return Rejection.INVALID_STATE
            if len(room.players) < int(getattr(self._config, "MIN_PLAYERS", 2)):
                return Rejection.NOT_ENOUGH_PLAYERS

            if room.settings.uses_custom_questions:
                room.status = "custom-questions"
                room.custom_questions = []
                room.current_question = None
                room.current_question_index = 0
                room.generated_questions = None
                room.votes = {}
                room.results = []
                logger.info("custom question collection opened code=%s", room.code)
                return StartResult(room=room)

            categories = room.settings.categories
            count = room.settings.number_of_questions
            seeds, needs_reset = sample_questions(categories, count, room.used_questions, rng=self._rng)
            if needs_reset:
                logger.info("question history exhausted, resetting code=%s", room.code)
                room.used_questions = []
                seeds, _ = sample_questions(categories, count, rng=self._rng)
            if not seeds:
                return Rejection.NOT_ENOUGH_QUESTIONS

            self._remember_used(room, seeds)
            return self._begin_game_locked(room, seeds)

    def add_custom_question(self, player_id: str, adjective: str) -> RoomOrRejection:
        with self._lock:
            room = self._room_of(player_id)
            if is_rejection(room):
                return room
            if room.status != "custom-questions" or room.custom_questions is None:
                return Rejection.INVALID_STATE
            if len(room.custom_questions) >= room.settings.number_of_questions:
                return Rejection.COLLECTION_FULL

            room.custom_questions.append(CustomQuestion(adjective=adjective, player_id=player_id))
            return room

    def remove_custom_question(self, player_id: str, index: int) -> RoomOrRejection:
        with self._lock:
            room = self._room_of(player_id)
            if is_rejection(room):
                return room
            if room.status != "custom-questions" or room.custom_questions is None:
                return Rejection.INVALID_STATE
            if index < 0 or index >= len(room.custom_questions):
                return Rejection.INDEX_OUT_OF_RANGE

            del room.custom_questions[index]
            return room

    def start_game_with_custom_questions(self, host_id: str) -> Union[StartResult, Rejection]:
        with self._lock:
            room = self._hosted_room(host_id)
            if is_rejection(room):
                return room
            if room.status != "custom-questions" or room.custom_questions is None:
                return Rejection.INVALID_STATE
            if not room.custom_questions or len(room.custom_questions) < room.settings.number_of_questions:
                return Rejection.NOT_ENOUGH_QUESTIONS

            seeds = [QuestionSeed(adjective=c.adjective, category=CUSTOM_CATEGORY) for c in room.custom_questions]
            self._remember_used(room, seeds)
            return self._begin_game_locked(room, seeds)

    def vote(self, voter_id: str, target_id: str) -> RoomOrRejection:
        with self._lock:
            room = self._room_of(voter_id)
            if is_rejection(room):
                return room
            if room.status != "playing":
                return Rejection.INVALID_STATE
            if room.find_player(target_id) is None:
                return Rejection.INVALID_TARGET

            room.votes[voter_id] = target_id
            return room

    def has_everyone_voted(self, code: str) -> bool:
        with self._lock:
            room = self.get_room(code)
            if room is None:
                return False
            return all(p.id in room.votes for p in room.players)

    def calculate_results(self, code: str) -> Union[QuestionResult, Rejection]:
        with self._lock:
            room = self.get_room(code)
            if room is None:
                return Rejection.ROOM_NOT_FOUND
            # Only an open round can be closed, so a late second caller is a no-op.
            if room.status != "playing" or room.current_question is None:
                return Rejection.INVALID_STATE

            self.timer.stop(room)

            counts = {p.id: 0 for p in room.players}
            for target_id in room.votes.values():
                if target_id in counts:
                    counts[target_id] += 1

            # sorted() is stable, so ties keep join order.
            ranking = sorted(
                (RankingEntry(player=p, votes=counts[p.id]) for p in room.players),
                key=lambda entry: entry.votes,
                reverse=True,
            )
            result = QuestionResult(
                question=room.current_question,
                votes=counts,
                ranking=assign_ranks(ranking),
            )
            room.results.append(result)
            room.status = "results"
            logger.info(
                "round closed code=%s index=%s votes=%s",
                room.code,
                room.current_question_index,
                len(room.votes),
            )
            return result

    def next_question(self, host_id: str) -> Union[NextResult, Rejection]:
        with self._lock:
            room = self._hosted_room(host_id)
            if is_rejection(room):
                return room
            if room.status not in ("playing", "results"):
                return Rejection.INVALID_STATE

            self.timer.stop(room)
            seeds = room.generated_questions or []
            upcoming = room.current_question_index + 1
            room.votes = {}

            if upcoming >= len(seeds):
                room.status = "finished"
                room.current_question = None
                logger.info("game finished code=%s rounds=%s", room.code, len(room.results))
                return NextResult(room=room, question=None, finished=True)

            room.current_question_index = upcoming
            room.current_question = self._build_question(seeds[upcoming])
            room.status = "playing"
            return NextResult(room=room, question=room.current_question, finished=False)

    def reset_room(self, host_id: str) -> RoomOrRejection:
        with self._lock:
            room = self._hosted_room(host_id)
            if is_rejection(room):
                return room

            self.timer.stop(room)
            room.status = "lobby"
            room.current_question_index = 0
            room.current_question = None
            room.votes = {}
            room.results = []
            room.custom_questions = None
            room.generated_questions = None
            logger.info("room reset to lobby code=%s", room.code)
            return room

    # ---- timer ----

    def start_timer(self, code: str, on_expired: ExpiredCallback, on_tick: TickCallback) -> bool:
        with self._lock:
            room = self.get_room(code)
            if room is None:
                return False
            self.timer.start(room, on_expired, on_tick)
            return True

    def stop_timer(self, code: str) -> None:
        with self._lock:
            room = self.get_room(code)
            if room is not None:
                self.timer.stop(room)

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


RoomStatus = Literal["lobby", "custom-questions", "playing", "results", "finished"]

CUSTOM_CATEGORY = "custom"


@dataclass
class Player:
    id: str
    name: str
    avatar: str | None = None
    is_host: bool = False


@dataclass
class RoomSettings:
    number_of_questions: int = 10
    categories: list[str] = field(default_factory=lambda: ["classique"])
    question_time: int = 30

    @property
    def uses_custom_questions(self) -> bool:
        # "custom" wins over any co-selected catalog category.
        return CUSTOM_CATEGORY in self.categories


@dataclass
class CustomQuestion:
    adjective: str
    player_id: str


@dataclass(frozen=True)
class QuestionSeed:
    """One (adjective, category) pair of a game's generated question list."""

    adjective: str
    category: str


@dataclass
class Question:
    id: str
    text: str
    adjective: str
    category: str


@dataclass
class RankingEntry:
    player: Player
    votes: int
    rank: int = 1


@dataclass
class QuestionResult:
    question: Question
    votes: dict[str, int]
    ranking: list[RankingEntry]

    @property
    def winners(self) -> list[Player]:
        if not self.ranking or self.ranking[0].votes == 0:
            return []
        top = self.ranking[0].votes
        return [entry.player for entry in self.ranking if entry.votes == top]


@dataclass
class Room:
    id: str
    code: str
    host_id: str
    players: list[Player] = field(default_factory=list)
    settings: RoomSettings = field(default_factory=RoomSettings)
    current_question_index: int = 0
    current_question: Question | None = None
    votes: dict[str, str] = field(default_factory=dict)
    results: list[QuestionResult] = field(default_factory=list)
    status: RoomStatus = "lobby"
    custom_questions: list[CustomQuestion] | None = None
    time_remaining: int | None = None
    used_questions: list[str] = field(default_factory=list)
    # Per-game question list, never exposed to clients.
    generated_questions: list[QuestionSeed] | None = None

    def find_player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None


def player_to_dict(player: Player) -> dict:
    payload = {"id": player.id, "name": player.name, "isHost": player.is_host}
    if player.avatar:
        payload["avatar"] = player.avatar
    return payload


def settings_to_dict(settings: RoomSettings) -> dict:
    return {
        "numberOfQuestions": settings.number_of_questions,
        "categories": list(settings.categories),
        "questionTime": settings.question_time,
    }


def question_to_dict(question: Question) -> dict:
    return {
        "id": question.id,
        "text": question.text,
        "adjective": question.adjective,
        "category": question.category,
    }


def custom_questions_to_list(custom_questions: list[CustomQuestion] | None) -> list[dict]:
    return [{"adjective": c.adjective, "playerId": c.player_id} for c in custom_questions or []]


def result_to_dict(result: QuestionResult) -> dict:
    return {
        "question": question_to_dict(result.question),
        "votes": dict(result.votes),
        "ranking": [
            {"player": player_to_dict(e.player), "votes": e.votes, "rank": e.rank}
            for e in result.ranking
        ],
        "winners": [p.id for p in result.winners],
    }


def room_public_state(room: Room) -> dict:
    payload = {
        "id": room.id,
        "code": room.code,
        "hostId": room.host_id,
        "players": [player_to_dict(p) for p in room.players],
        "settings": settings_to_dict(room.settings),
        "currentQuestionIndex": room.current_question_index,
        "votes": dict(room.votes),
        "results": [result_to_dict(r) for r in room.results],
        "status": room.status,
        "usedQuestions": list(room.used_questions),
    }

    if room.current_question is not None:
        payload["currentQuestion"] = question_to_dict(room.current_question)
    if room.custom_questions is not None:
        payload["customQuestions"] = custom_questions_to_list(room.custom_questions)
    if room.time_remaining is not None:
        payload["timeRemaining"] = room.time_remaining

    return payload

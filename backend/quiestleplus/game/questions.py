from __future__ import annotations

import random
from typing import Iterable

from .models import CUSTOM_CATEGORY, QuestionSeed


QUESTION_TEMPLATE = "Qui est le plus {adjective} ?"

ADJECTIVES: dict[str, list[str]] = {
    "soft": [
        "gentil",
        "drôle",
        "créatif",
        "intelligent",
        "courageux",
        "généreux",
        "souriant",
        "positif",
        "sportif",
        "artistique",
        "sympathique",
        "sage",
        "organisé",
        "patient",
        "aventureux",
        "rêveur",
        "sociable",
        "calme",
        "enthousiaste",
        "serviable",
    ],
    "classique": [
        "bavard",
        "timide",
        "têtu",
        "gourmand",
        "paresseux",
        "stressé",
        "distrait",
        "maladroit",
        "romantique",
        "jaloux",
        "fêtard",
        "dépensier",
        "râleur",
        "sensible",
        "bordélique",
        "susceptible",
        "accro aux réseaux sociaux",
        "retardataire",
        "menteur",
        "égoïste",
    ],
    "humour-noir": [
        "susceptible de finir en prison",
        "susceptible de survivre à une apocalypse zombie",
        "susceptible de mourir en premier dans un film d'horreur",
        "susceptible de devenir dictateur",
        "susceptible de trahir ses amis pour de l'argent",
        "susceptible de rejoindre une secte",
        "susceptible de faire un pacte avec le diable",
        "susceptible de disparaître sans laisser de traces",
        "susceptible de devenir un serial killer",
        "susceptible d'être possédé",
        "susceptible de se faire larguer par SMS",
        "susceptible de finir seul avec 50 chats",
        "susceptible de ruiner sa vie sur un coup de tête",
        "susceptible de se faire virer le premier jour",
        "susceptible de provoquer la fin du monde",
    ],
    "hard": [
        "chaud au lit",
        "infidèle",
        "pervers",
        "susceptible de faire un plan à 3",
        "susceptible d'avoir le plus de conquêtes",
        "kinky",
        "susceptible d'envoyer des nudes",
        "obsédé",
        "susceptible de regarder du porno en public",
        "susceptible de coucher le premier soir",
        "exhibitionniste",
        "susceptible d'avoir des fantasmes bizarres",
        "accro au sexe",
        "susceptible d'utiliser des sex-toys",
        "susceptible de tromper son partenaire",
    ],
    "politiquement-incorrect": [
        "raciste sans le savoir",
        "susceptible de faire une blague déplacée",
        "sexiste",
        "homophobe",
        "susceptible de se faire cancel sur Twitter",
        "susceptible d'insulter sans s'en rendre compte",
        "susceptible de voter pour un parti extrême",
        "intolérant",
        "susceptible de faire un scandale public",
        "susceptible d'offenser tout le monde",
        "complotiste",
        "susceptible de tenir des propos choquants",
        "irrespectueux",
        "susceptible de discriminer",
        "provocateur",
    ],
}

CATEGORIES: tuple[str, ...] = tuple(ADJECTIVES.keys()) + (CUSTOM_CATEGORY,)


def format_question_text(adjective: str) -> str:
    return QUESTION_TEMPLATE.format(adjective=adjective)


def catalog_seeds(categories: Iterable[str]) -> list[QuestionSeed]:
    seeds: list[QuestionSeed] = []
    seen: set[str] = set()
    for category in categories:
        if category in seen:
            continue
        seen.add(category)
        for adjective in ADJECTIVES.get(category, []):
            seeds.append(QuestionSeed(adjective=adjective, category=category))
    return seeds


def sample_questions(
    categories: Iterable[str],
    count: int,
    used: Iterable[str] = (),
    rng: random.Random | None = None,
) -> tuple[list[QuestionSeed], bool]:
    """Pick ``count`` questions from the selected catalog categories.

    Adjectives in ``used`` are skipped. Returns ``(seeds, needs_reset)``:
    when the history leaves fewer than ``count`` candidates, nothing is
    picked and ``needs_reset`` is True so the caller can clear its history
    and sample again. A catalog smaller than ``count`` even without history
    yields every question it has.
    """
    pool = catalog_seeds(categories)
    used_set = set(used)
    available = [s for s in pool if s.adjective not in used_set]

    if len(available) < count and len(available) < len(pool):
        return [], True

    shuffled = list(available)
    (rng or random).shuffle(shuffled)
    return shuffled[: max(0, count)], False


def category_summary() -> list[dict]:
    summary = [{"id": name, "count": len(words)} for name, words in ADJECTIVES.items()]
    summary.append({"id": CUSTOM_CATEGORY, "count": None})
    return summary

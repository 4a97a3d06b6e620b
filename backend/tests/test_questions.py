import random

from quiestleplus.game.questions import (
    ADJECTIVES,
    CATEGORIES,
    category_summary,
    catalog_seeds,
    format_question_text,
    sample_questions,
)


def test_sample_takes_requested_count_from_selected_categories():
    seeds, needs_reset = sample_questions(['soft'], 5, rng=random.Random(1))
    assert not needs_reset
    assert len(seeds) == 5
    assert all(s.category == 'soft' for s in seeds)
    assert all(s.adjective in ADJECTIVES['soft'] for s in seeds)
    assert len({s.adjective for s in seeds}) == 5


def test_sample_skips_used_adjectives():
    used = ADJECTIVES['classique'][:10]
    seeds, needs_reset = sample_questions(['classique'], 10, used, rng=random.Random(2))
    assert not needs_reset
    assert {s.adjective for s in seeds} == set(ADJECTIVES['classique'][10:])


def test_sample_signals_reset_when_history_leaves_too_few():
    used = ADJECTIVES['classique'][:15]
    seeds, needs_reset = sample_questions(['classique'], 10, used)
    assert needs_reset
    assert seeds == []


def test_small_catalog_returns_everything_without_reset():
    total = len(ADJECTIVES['hard'])
    seeds, needs_reset = sample_questions(['hard'], total + 10)
    assert not needs_reset
    assert len(seeds) == total


def test_custom_and_unknown_categories_contribute_nothing():
    assert catalog_seeds(['custom', 'nope']) == []
    seeds, needs_reset = sample_questions(['custom'], 5)
    assert seeds == []
    assert not needs_reset


def test_duplicate_categories_are_counted_once():
    assert len(catalog_seeds(['soft', 'soft'])) == len(ADJECTIVES['soft'])


def test_multiple_categories_are_pooled():
    seeds, _ = sample_questions(['soft', 'hard'], 30, rng=random.Random(3))
    assert {s.category for s in seeds} <= {'soft', 'hard'}
    assert len(seeds) == 30


def test_question_text_embeds_adjective():
    assert format_question_text('drôle') == 'Qui est le plus drôle ?'


def test_category_summary_lists_catalog_and_custom():
    ids = [c['id'] for c in category_summary()]
    assert ids == list(CATEGORIES)
    assert ids[-1] == 'custom'

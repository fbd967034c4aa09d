import random
from collections import Counter

from color_engine.models import CardColor
from color_engine.services.games.deck import FALLBACK_CARD, build_deck, draw_definition

from conftest import make_definition


def test_deck_has_requested_size_and_unique_ids():
    catalog = [make_definition('Bakery'), make_definition('Ranch', CardColor.BLUE, 'GET 2')]
    deck = build_deck(catalog, 100, random.Random(1))
    assert len(deck) == 100
    assert len({c.id for c in deck}) == 100
    assert all(not c.is_used for c in deck)


def test_instances_do_not_alias_each_other():
    deck = build_deck([make_definition('Bakery')], 5, random.Random(2))
    deck[0].is_used = True
    assert not any(c.is_used for c in deck[1:])
    assert len({id(c) for c in deck}) == 5
    assert all(c.name == 'Bakery' and c.cost == 3 for c in deck)


def test_empty_catalog_uses_fallback_card():
    deck = build_deck([], 3, random.Random(3))
    assert len(deck) == 3
    assert all(c.name == FALLBACK_CARD.name and c.effect == 'GET 1' for c in deck)


def test_zero_weight_catalog_uses_fallback_card():
    deck = build_deck([make_definition('Broken', weight=0)], 4, random.Random(4))
    assert {c.name for c in deck} == {FALLBACK_CARD.name}


def test_weighted_sampling_converges_to_weights():
    catalog = [
        make_definition('Common', weight=70),
        make_definition('Uncommon', weight=20),
        make_definition('Rare', weight=10),
    ]
    rng = random.Random(42)
    draws = 20000
    counts = Counter(draw_definition(catalog, 100, rng).name for _ in range(draws))
    for card in catalog:
        expected = card.weight / 100
        assert abs(counts[card.name] / draws - expected) < 0.02


def test_shuffle_spreads_repeated_definitions():
    catalog = [make_definition('A', weight=50), make_definition('B', weight=50)]
    deck = build_deck(catalog, 60, random.Random(5))
    names = [c.name for c in deck]
    # Not one contiguous block per definition
    runs = sum(1 for a, b in zip(names, names[1:]) if a != b)
    assert runs > 2

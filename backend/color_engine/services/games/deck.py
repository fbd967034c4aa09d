import logging
import random
from typing import List, Optional, Sequence

from color_engine.models import CardColor, CardDefinition, CardInstance, new_card_id
from .effects import parse_effect

logger = logging.getLogger(__name__)

FALLBACK_EFFECT = 'GET 1'
FALLBACK_CARD = CardDefinition(
    name='Town Square',
    color=CardColor.BLUE,
    effect=FALLBACK_EFFECT,
    cost=1,
    reward=1,
    weight=1,
    description='Get 1 coin.',
    instruction=parse_effect(FALLBACK_EFFECT),
)


def _usable_catalog(catalog: Sequence[CardDefinition]) -> List[CardDefinition]:
    usable = [c for c in catalog or [] if c.weight > 0]
    if not usable:
        logger.warning(f"[deck] catalog empty or without positive weights ({len(catalog or [])} entries); using fallback card")
        return [FALLBACK_CARD]
    return usable


def draw_definition(catalog: Sequence[CardDefinition], total_weight: int, rng: random.Random) -> CardDefinition:
    """Weighted pick: roll in [0, total_weight) and walk the cumulative weights."""
    roll = rng.randrange(total_weight)
    cumulative = 0
    for card in catalog:
        cumulative += card.weight
        if roll < cumulative:
            return card
    return catalog[-1]


def shuffle_cards(cards: List[CardInstance], rng: random.Random) -> None:
    # Fisher-Yates, in place
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randint(0, i)
        cards[i], cards[j] = cards[j], cards[i]


def build_deck(catalog: Sequence[CardDefinition], target_size: int, rng: Optional[random.Random] = None) -> List[CardInstance]:
    """Generate target_size fresh card instances from the catalog and shuffle them."""
    rng = rng or random.Random()
    pool = _usable_catalog(catalog)
    total_weight = sum(c.weight for c in pool)

    deck = [
        CardInstance.from_definition(draw_definition(pool, total_weight, rng), new_card_id())
        for _ in range(max(0, target_size))
    ]
    shuffle_cards(deck, rng)
    logger.debug(f"[deck] built {len(deck)} cards from {len(pool)} definitions")
    return deck

import json
import logging
import os
from typing import Any, Dict, List, Optional

from color_engine.models import CardColor, CardDefinition
from .effects import parse_effect

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT = 50
MIN_WEIGHT = 1
MAX_WEIGHT = 100
PLACEHOLDER_ICON = '/images/cards/placeholder.png'


def default_catalog_path() -> str:
    return os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), 'data', 'cards.json')


def validate_definition(card: CardDefinition) -> List[str]:
    errors = []
    if not card.name.strip():
        errors.append('name is missing')
    if not card.effect.strip():
        errors.append('effect is missing')
    elif card.instruction is None:
        errors.append(f'effect {card.effect!r} cannot be parsed')
    if card.cost < 0:
        errors.append('cost cannot be negative')
    if not MIN_WEIGHT <= card.weight <= MAX_WEIGHT:
        errors.append(f'weight must be within {MIN_WEIGHT}-{MAX_WEIGHT}')
    return errors


def _weight(raw) -> int:
    try:
        weight = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_WEIGHT
    if weight <= 0:
        return DEFAULT_WEIGHT
    return max(MIN_WEIGHT, min(MAX_WEIGHT, weight))


def _cost(raw, index: int, name: str) -> int:
    cost = int(raw or 0)
    if cost < 0:
        logger.warning(f"[catalog] row={index} card={name!r} negative cost {cost}, using 0")
        return 0
    return cost


def _icon(raw) -> str:
    icon = str(raw or '').strip()
    return f'/images/cards/{icon}' if icon else PLACEHOLDER_ICON


def parse_card(row: Dict[str, Any], index: int = 0) -> Optional[CardDefinition]:
    """Build a definition from one catalog row. Header and blank rows give None."""
    name = str(row.get('name') or '').strip()
    if not name or name.lower() == 'name':
        return None

    try:
        color = CardColor.parse(row.get('color'))
    except ValueError:
        logger.error(f"[catalog] row={index} card={name!r} unknown color {row.get('color')!r}, using Blue")
        color = CardColor.BLUE

    effect = str(row.get('effect') or '').strip()
    card = CardDefinition(
        name=name,
        color=color,
        effect=effect,
        cost=_cost(row.get('cost'), index, name),
        reward=int(row.get('reward') or 0),
        weight=_weight(row.get('weight')),
        icon=_icon(row.get('icon')),
        description=str(row.get('description') or ''),
        narrative=str(row.get('narrative') or ''),
        instruction=parse_effect(effect),
    )

    errors = validate_definition(card)
    if errors:
        logger.warning(f"[catalog] row={index} card={name!r} invalid: {'; '.join(errors)}")
    return card


def load_catalog(path: Optional[str] = None) -> List[CardDefinition]:
    """Read card definitions from a JSON array file.

    A missing or unreadable file is logged and yields an empty catalog; the
    deck builder substitutes a fallback card in that case.
    """
    path = path or default_catalog_path()
    if not os.path.exists(path):
        logger.error(f"[catalog] file not found: {path}")
        return []

    try:
        with open(path, encoding='utf-8') as fh:
            rows = json.load(fh)
    except (OSError, ValueError) as exc:
        logger.error(f"[catalog] failed to read {path}: {exc}")
        return []

    if not isinstance(rows, list):
        logger.error(f"[catalog] {path} must contain a JSON array of cards")
        return []

    cards = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            logger.warning(f"[catalog] row={index} skipped: not an object")
            continue
        try:
            card = parse_card(row, index)
        except (TypeError, ValueError) as exc:
            logger.error(f"[catalog] row={index} failed to parse: {exc}")
            continue
        if card is not None:
            cards.append(card)

    logger.info(f"[catalog] loaded {len(cards)} cards from {path}")
    return cards

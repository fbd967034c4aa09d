"""Card effect scripts.

A script is a short whitespace-separated command attached to a card, e.g.
``GET 3`` or ``STEAL_MONEY RANDOM 2``. Scripts are parsed once, when the
catalog is loaded, into one of the instruction types below; activation only
applies the parsed instruction.

Supported commands (case-insensitive):

    GET n                  actor gains n coins
    GETALL n               every player gains n coins
    STEAL_MONEY mode n     each victim loses up to n coins to the actor
    STEAL_CARD mode        each victim loses one random card to the actor
    GETBY color n          actor gains n per owned card of that color

``mode`` is ALL (every other player) or RANDOM (one other eligible player).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from color_engine.models import CardColor, GameState, Player

logger = logging.getLogger(__name__)


class VictimMode(Enum):
    ALL = 'ALL'
    RANDOM = 'RANDOM'


@dataclass(frozen=True)
class Gain:
    amount: int


@dataclass(frozen=True)
class GainAll:
    amount: int


@dataclass(frozen=True)
class StealMoney:
    mode: VictimMode
    amount: int


@dataclass(frozen=True)
class StealCard:
    mode: VictimMode


@dataclass(frozen=True)
class GainByColor:
    color: CardColor
    multiplier: int


Instruction = Union[Gain, GainAll, StealMoney, StealCard, GainByColor]


@dataclass(frozen=True)
class EffectMessage:
    text: str
    tone: str = 'info'

    def to_dict(self):
        return {'message': self.text, 'type': self.tone}


def _amount(token: str) -> Optional[int]:
    try:
        value = int(token)
    except ValueError:
        return None
    return value if value >= 0 else None


def _mode(token: str) -> Optional[VictimMode]:
    try:
        return VictimMode(token.upper())
    except ValueError:
        return None


def parse_effect(script: Optional[str]) -> Optional[Instruction]:
    """Parse a script into an instruction, or None when it is malformed."""
    parts = (script or '').split()
    if not parts:
        return None
    command, params = parts[0].upper(), parts[1:]

    if command in ('GET', 'GETALL'):
        if len(params) < 1:
            return None
        amount = _amount(params[0])
        if amount is None:
            return None
        return Gain(amount) if command == 'GET' else GainAll(amount)

    if command == 'STEAL_MONEY':
        if len(params) < 2:
            return None
        mode, amount = _mode(params[0]), _amount(params[1])
        if mode is None or amount is None:
            return None
        return StealMoney(mode, amount)

    if command == 'STEAL_CARD':
        if len(params) < 1:
            return None
        mode = _mode(params[0])
        return StealCard(mode) if mode is not None else None

    if command == 'GETBY':
        if len(params) < 2:
            return None
        try:
            color = CardColor.parse(params[0])
        except ValueError:
            return None
        multiplier = _amount(params[1])
        return GainByColor(color, multiplier) if multiplier is not None else None

    return None


def _select_victims(state: GameState, actor: Player, mode: VictimMode, eligible=None) -> List[Player]:
    others = [p for p in state.players.values() if p.name != actor.name]
    if eligible is not None:
        others = [p for p in others if eligible(p)]
    if mode is VictimMode.ALL:
        return others
    if not others:
        return []
    return [state.rng.choice(others)]


def _apply_gain(instr: Gain, actor, state):
    actor.coins += instr.amount
    return [EffectMessage(f'{actor.name} gained +{instr.amount} coins from their holdings', 'gold')]


def _apply_gain_all(instr: GainAll, actor, state):
    for player in state.players.values():
        player.coins += instr.amount
    return [EffectMessage(f'Bumper harvest! Everyone gained {instr.amount} coins', 'gold')]


def _apply_steal_money(instr: StealMoney, actor, state):
    messages = []
    for victim in _select_victims(state, actor, instr.mode):
        stolen = min(victim.coins, instr.amount)
        victim.coins -= stolen
        actor.coins += stolen
        messages.append(EffectMessage(f'{actor.name} stole {stolen} coins from {victim.name}!', 'important'))
    return messages


def _apply_steal_card(instr: StealCard, actor, state):
    messages = []
    victims = _select_victims(state, actor, instr.mode, eligible=lambda p: bool(p.inventory))
    for victim in victims:
        index = state.rng.randrange(len(victim.inventory))
        card = victim.inventory.pop(index)
        actor.inventory.append(card)
        messages.append(EffectMessage(f"{actor.name} stole '{card.name}' from {victim.name}!", 'important'))
    return messages


def _apply_gain_by_color(instr: GainByColor, actor, state):
    count = actor.count_cards_by_color(instr.color)
    earnings = count * instr.multiplier
    actor.coins += earnings
    return [EffectMessage(
        f'{actor.name} earned {earnings} coins from {count} {instr.color.value} cards', 'gold'
    )]


_HANDLERS = {
    Gain: _apply_gain,
    GainAll: _apply_gain_all,
    StealMoney: _apply_steal_money,
    StealCard: _apply_steal_card,
    GainByColor: _apply_gain_by_color,
}


def apply_instruction(instruction: Instruction, actor: Player, state: GameState) -> List[EffectMessage]:
    handler = _HANDLERS.get(type(instruction))
    if handler is None:
        logger.warning(f"[effect] room={state.room_code} unsupported instruction {instruction!r}")
        return []
    return handler(instruction, actor, state)


def execute(script: str, actor: Player, state: GameState) -> List[EffectMessage]:
    """Parse and apply a script. Malformed scripts change nothing and log nothing."""
    instruction = parse_effect(script)
    if instruction is None:
        return []
    return apply_instruction(instruction, actor, state)

"""Turn and market rules for a single room.

Every function here validates first and mutates after, so a rejected action
leaves the GameState untouched. Callers hold the room lock.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from color_engine.models import (
    ALL_COLORS, GAME_FINISHED, CardDefinition, GameState, Player,
)
from .deck import build_deck
from .effects import EffectMessage, apply_instruction
from .settings import GameSettings

logger = logging.getLogger(__name__)


class ActionRejected(Exception):
    """An operation was refused; no state was changed."""

    def __init__(self, reason: str, message: str = ''):
        super().__init__(message or reason)
        self.reason = reason
        self.message = message or reason


@dataclass
class ActivationResult:
    messages: List[EffectMessage] = field(default_factory=list)
    game_over: bool = False
    winner: Optional[str] = None


def initialize_game(room_code: str, player_names: Sequence[str], settings: GameSettings,
                    catalog: Sequence[CardDefinition], rng: Optional[random.Random] = None) -> GameState:
    rng = rng or random.Random()
    state = GameState(room_code=room_code, settings=settings, rng=rng)

    for name in player_names:
        state.players[name] = Player(name=name, coins=settings.roll_starting_coins(rng))

    # Poorest first, ties by name
    state.turn_order = [
        p.name for p in sorted(state.players.values(), key=lambda p: (p.coins, p.name))
    ]
    state.current_turn_index = 0
    state.round_number = 1
    state.deck = build_deck(catalog, settings.deck_size, rng)
    state.replenish_market(settings.market_size(len(state.players)))
    state.active_color = rng.choice(ALL_COLORS)

    logger.info(
        f"[start] room={room_code} order={' -> '.join(state.turn_order)} "
        f"color={state.active_color.value} market={len(state.market)} deck={len(state.deck)}"
    )
    return state


def _acting_player(state: GameState, actor_name: Optional[str]) -> Player:
    if state.is_finished:
        raise ActionRejected('game_finished', 'The game is already over')
    player = state.current_player()
    if player is None:
        raise ActionRejected('game_not_found', 'No current player')
    if actor_name is not None and actor_name.lower() != player.name.lower():
        raise ActionRejected('not_your_turn', f"It is {player.name}'s turn")
    return player


def buy_card(state: GameState, card_id: str, actor_name: Optional[str] = None) -> Player:
    """Move a market card into the current player's inventory for its cost."""
    player = _acting_player(state, actor_name)
    if player.has_bought_this_turn:
        raise ActionRejected('already_bought', 'You already bought a card this turn')
    card = state.find_market_card(card_id)
    if card is None:
        raise ActionRejected('card_not_found', 'That card is not on the market')
    if not player.can_afford(card.cost):
        raise ActionRejected('insufficient_funds', f'{card.name} costs {card.cost}, you have {player.coins}')

    player.coins -= card.cost
    state.market.remove(card)
    player.inventory.append(card)
    player.has_bought_this_turn = True

    logger.info(f"[buy] room={state.room_code} player={player.name} card={card.name} cost={card.cost}")
    return player


def activate_card(state: GameState, card_id: str, actor_name: Optional[str] = None) -> ActivationResult:
    player = _acting_player(state, actor_name)
    card = player.find_card(card_id)
    if card is None:
        raise ActionRejected('card_not_found', 'You do not own that card')
    if card.color != state.active_color:
        raise ActionRejected('wrong_color', f'Only {state.active_color.value} cards are active this round')
    if card.is_used:
        raise ActionRejected('card_used', f'{card.name} was already used this round')
    if card.instruction is None:
        logger.warning(f"[activate] room={state.room_code} card={card.name} malformed effect {card.effect!r}")
        raise ActionRejected('malformed_effect', f'{card.name} has an invalid effect')

    messages = apply_instruction(card.instruction, player, state)
    card.is_used = True
    logger.info(f"[activate] room={state.room_code} player={player.name} card={card.name} coins={player.coins}")

    result = ActivationResult(messages=messages)
    if player.coins >= state.settings.win_target:
        state.status = GAME_FINISHED
        state.winner = player.name
        result.game_over = True
        result.winner = player.name
        logger.info(f"[win] room={state.room_code} winner={player.name} coins={player.coins}")
    return result


def end_turn(state: GameState, actor_name: Optional[str] = None) -> Player:
    """Pass the turn on; a wrap back to the first seat starts a new round.

    Daily income does not trigger a win check, only activations do.
    """
    _acting_player(state, actor_name)

    state.current_turn_index = (state.current_turn_index + 1) % len(state.turn_order)
    next_player = state.current_player()
    next_player.coins += state.settings.daily_income
    next_player.has_bought_this_turn = False

    if state.current_turn_index == 0:
        start_new_round(state)

    logger.info(f"[turn] room={state.room_code} player={next_player.name} round={state.round_number}")
    return next_player


def start_new_round(state: GameState) -> None:
    state.round_number += 1
    state.active_color = state.rng.choice(ALL_COLORS)
    for player in state.players.values():
        player.reset_turn_state()
    state.replenish_market(state.settings.market_size(len(state.players)))
    logger.info(
        f"[round] room={state.room_code} round={state.round_number} color={state.active_color.value} "
        f"market={len(state.market)} deck={len(state.deck)}"
    )

import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class CardColor(Enum):
    BLUE = 'Blue'
    GOLD = 'Gold'
    RED = 'Red'
    PURPLE = 'Purple'

    @classmethod
    def parse(cls, value) -> 'CardColor':
        """Case-insensitive lookup by name; raises ValueError on unknown colors."""
        if isinstance(value, CardColor):
            return value
        text = str(value or '').strip().lower()
        for color in cls:
            if color.value.lower() == text:
                return color
        raise ValueError(f'Unknown card color: {value!r}')


ALL_COLORS = list(CardColor)

GAME_ACTIVE = 'active'
GAME_FINISHED = 'finished'


def new_card_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class CardDefinition:
    name: str
    color: CardColor
    effect: str
    cost: int = 0
    reward: int = 0
    weight: int = 50
    icon: str = ''
    description: str = ''
    narrative: str = ''
    # Parsed effect; None when the script could not be parsed.
    instruction: Any = field(default=None, compare=False, repr=False)


@dataclass
class CardInstance:
    id: str
    name: str
    color: CardColor
    effect: str
    cost: int
    reward: int
    weight: int
    icon: str = ''
    description: str = ''
    narrative: str = ''
    instruction: Any = field(default=None, compare=False, repr=False)
    is_used: bool = False

    @classmethod
    def from_definition(cls, definition: CardDefinition, card_id: Optional[str] = None) -> 'CardInstance':
        return cls(
            id=card_id or new_card_id(),
            name=definition.name,
            color=definition.color,
            effect=definition.effect,
            cost=definition.cost,
            reward=definition.reward,
            weight=definition.weight,
            icon=definition.icon,
            description=definition.description,
            narrative=definition.narrative,
            instruction=definition.instruction,
            is_used=False,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'color': self.color.value,
            'effect': self.effect,
            'cost': self.cost,
            'reward': self.reward,
            'weight': self.weight,
            'icon': self.icon,
            'description': self.description,
            'narrative': self.narrative,
            'is_used': self.is_used,
        }


@dataclass
class Player:
    name: str
    coins: int = 0
    inventory: List[CardInstance] = field(default_factory=list)
    has_bought_this_turn: bool = False

    def can_afford(self, cost: int) -> bool:
        return self.coins >= cost

    def count_cards_by_color(self, color: CardColor) -> int:
        return sum(1 for card in self.inventory if card.color == color)

    def find_card(self, card_id: str) -> Optional[CardInstance]:
        return next((c for c in self.inventory if c.id == card_id), None)

    def reset_turn_state(self) -> None:
        """Make every owned card activatable again (round boundary)."""
        for card in self.inventory:
            card.is_used = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'coins': self.coins,
            'inventory': [c.to_dict() for c in self.inventory],
            'has_bought_this_turn': self.has_bought_this_turn,
        }


@dataclass
class GameState:
    """Authoritative state of one room once the game has started."""
    room_code: str
    settings: Any
    players: Dict[str, Player] = field(default_factory=dict)
    market: List[CardInstance] = field(default_factory=list)
    deck: List[CardInstance] = field(default_factory=list)
    turn_order: List[str] = field(default_factory=list)
    current_turn_index: int = 0
    active_color: CardColor = CardColor.BLUE
    round_number: int = 1
    status: str = GAME_ACTIVE
    winner: Optional[str] = None
    version: int = 0
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    @property
    def is_finished(self) -> bool:
        return self.status == GAME_FINISHED

    @property
    def current_player_name(self) -> Optional[str]:
        if not self.turn_order:
            return None
        return self.turn_order[self.current_turn_index]

    def current_player(self) -> Optional[Player]:
        name = self.current_player_name
        return self.players.get(name) if name is not None else None

    def find_market_card(self, card_id: str) -> Optional[CardInstance]:
        return next((c for c in self.market if c.id == card_id), None)

    def replenish_market(self, target_size: int) -> int:
        """Move cards from the deck head into the market until it reaches target_size.

        Stops quietly when the deck runs out. Returns the number of cards moved.
        """
        moved = 0
        while len(self.market) < target_size and self.deck:
            self.market.append(self.deck.pop(0))
            moved += 1
        return moved

    def all_card_ids(self) -> List[str]:
        ids = [c.id for c in self.deck] + [c.id for c in self.market]
        for player in self.players.values():
            ids.extend(c.id for c in player.inventory)
        return ids


@dataclass(frozen=True)
class TableSnapshot:
    room_code: str
    status: str
    active_color: str
    market: List[Dict[str, Any]]
    current_player: Optional[str]
    players: List[Dict[str, Any]]
    round_number: int
    deck_count: int
    winner: Optional[str] = None
    version: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'room_code': self.room_code,
            'status': self.status,
            'active_color': self.active_color,
            'market': self.market,
            'current_player': self.current_player,
            'players': self.players,
            'round_number': self.round_number,
            'deck_count': self.deck_count,
            'winner': self.winner,
            'version': self.version,
        }


def snapshot(state: GameState) -> TableSnapshot:
    """Build the broadcast payload for a room. Pure: never mutates state."""
    return TableSnapshot(
        room_code=state.room_code,
        status=state.status,
        active_color=state.active_color.value,
        market=[c.to_dict() for c in state.market],
        current_player=state.current_player_name,
        players=[p.to_dict() for p in state.players.values()],
        round_number=state.round_number,
        deck_count=len(state.deck),
        winner=state.winner,
        version=state.version,
    )

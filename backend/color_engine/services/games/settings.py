import logging
import random
from dataclasses import dataclass
from typing import Any, List, Mapping

logger = logging.getLogger(__name__)

DEFAULT_WIN_TARGET = 100
DEFAULT_DAILY_INCOME = 1
MIN_PLAYERS = 2
MAX_PLAYERS = 4
PLAYERS_COUNT_TOKEN = '{players_count}'


@dataclass
class GameSettings:
    """Balance knobs for a room. Read from the Flask config at app start."""
    start_coins_min: int = 5
    start_coins_max: int = 10
    win_target: int = DEFAULT_WIN_TARGET
    daily_income: int = DEFAULT_DAILY_INCOME
    min_players_count: int = MIN_PLAYERS
    max_players_count: int = MAX_PLAYERS
    market_size_formula: str = PLAYERS_COUNT_TOKEN + ' + 1'
    deck_size: int = 100

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> 'GameSettings':
        defaults = cls()

        def _int(key, default):
            try:
                return int(cfg.get(key, default))
            except (TypeError, ValueError):
                logger.warning(f"[settings] invalid {key}={cfg.get(key)!r}, using {default}")
                return default

        return cls(
            start_coins_min=_int('START_COINS_MIN', defaults.start_coins_min),
            start_coins_max=_int('START_COINS_MAX', defaults.start_coins_max),
            win_target=_int('WIN_TARGET', defaults.win_target),
            daily_income=_int('DAILY_INCOME', defaults.daily_income),
            min_players_count=_int('MIN_PLAYERS', defaults.min_players_count),
            max_players_count=_int('MAX_PLAYERS', defaults.max_players_count),
            market_size_formula=str(cfg.get('MARKET_SIZE_FORMULA') or defaults.market_size_formula),
            deck_size=_int('DECK_SIZE', defaults.deck_size),
        )

    def validate(self) -> List[str]:
        errors = []
        if self.start_coins_min < 0:
            errors.append('start_coins_min cannot be negative')
        if self.start_coins_max < self.start_coins_min:
            errors.append('start_coins_max must not be below start_coins_min')
        if self.win_target <= 0:
            errors.append('win_target must be positive')
        if self.daily_income < 0:
            errors.append('daily_income cannot be negative')
        if self.min_players_count < MIN_PLAYERS:
            errors.append(f'min_players_count must be at least {MIN_PLAYERS}')
        if self.max_players_count > MAX_PLAYERS:
            errors.append(f'max_players_count must be at most {MAX_PLAYERS}')
        if self.min_players_count > self.max_players_count:
            errors.append('min_players_count cannot exceed max_players_count')
        if self.deck_size < 0:
            errors.append('deck_size cannot be negative')
        return errors

    def apply_defaults(self) -> None:
        """Repair out-of-range values in place."""
        if self.start_coins_min < 0:
            self.start_coins_min = 5
        if self.start_coins_max < self.start_coins_min:
            self.start_coins_max = self.start_coins_min + 5
        if self.win_target <= 0:
            self.win_target = DEFAULT_WIN_TARGET
        if self.daily_income < 0:
            self.daily_income = DEFAULT_DAILY_INCOME
        if self.min_players_count < MIN_PLAYERS:
            self.min_players_count = MIN_PLAYERS
        if self.max_players_count > MAX_PLAYERS:
            self.max_players_count = MAX_PLAYERS
        if self.min_players_count > self.max_players_count:
            self.min_players_count = self.max_players_count
        if self.deck_size < 0:
            self.deck_size = 100

    def is_valid_player_count(self, count: int) -> bool:
        return self.min_players_count <= count <= self.max_players_count

    def roll_starting_coins(self, rng: random.Random) -> int:
        return rng.randint(self.start_coins_min, self.start_coins_max)

    def market_size(self, player_count: int) -> int:
        # Formula is a sum of integer terms, e.g. "{players_count} + 1".
        formula = self.market_size_formula.replace(PLAYERS_COUNT_TOKEN, str(player_count))
        total = 0
        for part in formula.split('+'):
            try:
                total += int(part.strip())
            except ValueError:
                continue
        if total <= 0:
            logger.warning(f"[settings] market formula {self.market_size_formula!r} gave {total}, falling back")
            return player_count + 1
        return total

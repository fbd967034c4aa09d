import os
import sys
import random
import pytest

# Ensure the backend root (containing the `color_engine` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from color_engine import create_app, socketio
from color_engine.models import CardColor, CardDefinition, CardInstance, GameState, Player
from color_engine.services.games.effects import parse_effect
from color_engine.services.games.settings import GameSettings


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CARD_CATALOG_PATH = ''
    START_COINS_MIN = 5
    START_COINS_MAX = 5
    WIN_TARGET = 100
    DAILY_INCOME = 1
    DECK_SIZE = 100
    MARKET_SIZE_FORMULA = '{players_count} + 1'
    MIN_PLAYERS = 2
    MAX_PLAYERS = 4


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


def make_definition(name='Bakery', color=CardColor.GOLD, effect='GET 3', cost=3, weight=50):
    return CardDefinition(
        name=name, color=color, effect=effect, cost=cost, reward=0,
        weight=weight, instruction=parse_effect(effect),
    )


def make_card(name='Bakery', color=CardColor.GOLD, effect='GET 3', cost=3):
    return CardInstance.from_definition(make_definition(name, color, effect, cost))


@pytest.fixture()
def settings():
    return GameSettings(start_coins_min=5, start_coins_max=5, win_target=100, daily_income=1, deck_size=20)


@pytest.fixture()
def make_state(settings):
    """Build a running GameState directly: make_state({'Ann': 5, 'Bob': 5})."""
    def _make(coins_by_name, active_color=CardColor.BLUE, seed=7):
        state = GameState(room_code='TEST', settings=settings, rng=random.Random(seed))
        for name, coins in coins_by_name.items():
            state.players[name] = Player(name=name, coins=coins)
        state.turn_order = list(coins_by_name)
        state.active_color = active_color
        return state
    return _make

from color_engine.models import CardColor
from color_engine.services.games.effects import (
    Gain, GainAll, GainByColor, StealCard, StealMoney, VictimMode, execute, parse_effect,
)

from conftest import make_card


def test_parse_commands_case_insensitive():
    assert parse_effect('get 3') == Gain(3)
    assert parse_effect('GETALL 2') == GainAll(2)
    assert parse_effect('steal_money random 4') == StealMoney(VictimMode.RANDOM, 4)
    assert parse_effect('STEAL_CARD all') == StealCard(VictimMode.ALL)
    assert parse_effect('GETBY blue 3') == GainByColor(CardColor.BLUE, 3)


def test_parse_rejects_malformed_scripts():
    for script in ['', '   ', 'FLY 3', 'GET', 'GET x', 'GET -1', 'STEAL_MONEY ALL',
                   'STEAL_MONEY SOME 2', 'STEAL_CARD', 'GETBY Green 2', 'GETBY Blue']:
        assert parse_effect(script) is None, script


def test_malformed_script_is_silent_noop(make_state):
    state = make_state({'Ann': 5, 'Bob': 5})
    assert execute('TELEPORT 9', state.players['Ann'], state) == []
    assert execute('GET lots', state.players['Ann'], state) == []
    assert [p.coins for p in state.players.values()] == [5, 5]


def test_get_adds_coins_to_actor(make_state):
    state = make_state({'Ann': 5, 'Bob': 5})
    messages = execute('GET 4', state.players['Ann'], state)
    assert state.players['Ann'].coins == 9
    assert state.players['Bob'].coins == 5
    assert len(messages) == 1
    assert 'Ann' in messages[0].text and '4' in messages[0].text
    assert messages[0].tone == 'gold'


def test_getall_pays_everyone(make_state):
    state = make_state({'Ann': 1, 'Bob': 2, 'Cy': 3})
    messages = execute('GETALL 2', state.players['Bob'], state)
    assert [p.coins for p in state.players.values()] == [3, 4, 5]
    assert 'Everyone gained 2 coins' in messages[0].text


def test_steal_money_all_conserves_coins(make_state):
    state = make_state({'Ann': 5, 'Bob': 5, 'Cy': 5})
    messages = execute('STEAL_MONEY ALL 2', state.players['Ann'], state)
    assert state.players['Ann'].coins == 9
    assert state.players['Bob'].coins == 3
    assert state.players['Cy'].coins == 3
    assert sum(p.coins for p in state.players.values()) == 15
    assert [m.text for m in messages] == ['Ann stole 2 coins from Bob!', 'Ann stole 2 coins from Cy!']


def test_steal_money_caps_at_victim_balance(make_state):
    state = make_state({'Ann': 0, 'Bob': 1})
    messages = execute('STEAL_MONEY ALL 5', state.players['Ann'], state)
    assert state.players['Ann'].coins == 1
    assert state.players['Bob'].coins == 0
    assert messages[0].text == 'Ann stole 1 coins from Bob!'


def test_steal_money_random_hits_exactly_one_other(make_state):
    state = make_state({'Ann': 5, 'Bob': 5, 'Cy': 5})
    messages = execute('STEAL_MONEY RANDOM 3', state.players['Ann'], state)
    assert state.players['Ann'].coins == 8
    assert sorted([state.players['Bob'].coins, state.players['Cy'].coins]) == [2, 5]
    assert len(messages) == 1


def test_steal_card_random_skips_empty_inventories(make_state):
    state = make_state({'Ann': 5, 'Bob': 5, 'Cy': 5})
    loot = make_card('Cafe', CardColor.RED)
    state.players['Cy'].inventory.append(loot)
    messages = execute('STEAL_CARD RANDOM', state.players['Ann'], state)
    assert state.players['Ann'].inventory == [loot]
    assert state.players['Cy'].inventory == []
    assert messages[0].text == "Ann stole 'Cafe' from Cy!"
    assert messages[0].tone == 'important'


def test_steal_card_without_victims_is_noop(make_state):
    state = make_state({'Ann': 5, 'Bob': 5})
    assert execute('STEAL_CARD RANDOM', state.players['Ann'], state) == []
    assert execute('STEAL_CARD ALL', state.players['Ann'], state) == []
    assert state.players['Ann'].inventory == []


def test_steal_card_all_moves_one_card_per_victim(make_state):
    state = make_state({'Ann': 5, 'Bob': 5, 'Cy': 5})
    state.players['Bob'].inventory.extend([make_card('A'), make_card('B')])
    state.players['Cy'].inventory.append(make_card('C'))
    messages = execute('STEAL_CARD ALL', state.players['Ann'], state)
    assert len(state.players['Ann'].inventory) == 2
    assert len(state.players['Bob'].inventory) == 1
    assert state.players['Cy'].inventory == []
    assert len(messages) == 2


def test_getby_counts_matching_cards(make_state):
    state = make_state({'Ann': 0, 'Bob': 0})
    ann = state.players['Ann']
    ann.inventory.extend([
        make_card('W1', CardColor.BLUE), make_card('W2', CardColor.BLUE), make_card('R', CardColor.RED),
    ])
    messages = execute('GETBY Blue 3', ann, state)
    assert ann.coins == 6
    assert messages[0].text == 'Ann earned 6 coins from 2 Blue cards'

    bob = state.players['Bob']
    execute('GETBY Purple 3', bob, state)
    assert bob.coins == 0

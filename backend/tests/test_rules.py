import pytest

from conftest import FixedDice, make_room
from poisoncake.models import GameState
from poisoncake.services.rooms import rules
from poisoncake.services.rooms.errors import (
    CakeAlreadyEaten,
    InsufficientPlayers,
    InvalidCake,
    InvalidConfiguration,
    NotYourTurn,
    RollPending,
    WrongPhase,
)
from poisoncake.services.rooms.store import RoomStore


def _turn_based(*names, poisons):
    """A room already in the eating phase with the given poisons, seated in order."""
    room = make_room(*names)
    room.grid_size = 5
    for player, poison in zip(room.players, poisons):
        player.poison = poison
    room.state = GameState.TURN_BASED
    room.current_player_index = 0
    return room


@pytest.mark.parametrize('count,ok', [(1, False), (2, True), (3, True), (4, False)])
def test_start_match_requires_two_or_three_players(count, ok):
    room = make_room(*[f'P{i}' for i in range(count)])
    if ok:
        rules.start_match(room, 4)
        assert room.state == GameState.SETUP_POISON
        assert room.grid_size == 4
        assert room.current_player_index == 0
    else:
        with pytest.raises((InsufficientPlayers, InvalidConfiguration)):
            rules.start_match(room, 4)
        assert room.state == GameState.LOBBY


@pytest.mark.parametrize('grid_size', [2, 11, '5', None, True, 4.5])
def test_start_match_rejects_bad_grid(grid_size):
    room = make_room('A', 'B')
    with pytest.raises(InvalidConfiguration):
        rules.start_match(room, grid_size)
    assert room.state == GameState.LOBBY


def test_start_match_only_from_lobby():
    room = make_room('A', 'B', state=GameState.ROLL_DICE)
    with pytest.raises(WrongPhase):
        rules.start_match(room, 5)


def test_choose_poison_round_reaches_roll_dice():
    room = make_room('A', 'B', 'C')
    rules.start_match(room, 3)
    assert rules.choose_poison(room, 'A', 0) == GameState.SETUP_POISON
    assert room.current_player_index == 1
    assert rules.choose_poison(room, 'B', 0) == GameState.SETUP_POISON
    assert rules.choose_poison(room, 'C', 8) == GameState.ROLL_DICE
    assert room.current_player_index == 0
    # same cell twice is allowed
    assert [p.poison for p in room.players] == [0, 0, 8]


def test_choose_poison_out_of_turn_is_ignored():
    room = make_room('A', 'B')
    rules.start_match(room, 3)
    with pytest.raises(NotYourTurn):
        rules.choose_poison(room, 'B', 1)
    assert room.players[1].poison is None
    assert room.current_player_index == 0


@pytest.mark.parametrize('cell', [-1, 9, '3', None, False])
def test_choose_poison_rejects_cells_off_board(cell):
    room = make_room('A', 'B')
    rules.start_match(room, 3)
    with pytest.raises(InvalidCake):
        rules.choose_poison(room, 'A', cell)


def test_dice_order_is_stable_descending_sort():
    room = make_room('A', 'B', 'C', 'D', state=GameState.ROLL_DICE)
    dice = FixedDice(3, 5, 5, 1)
    for name in ('A', 'B', 'C', 'D'):
        rules.roll_dice(room, name, dice)
        rules.finish_roll(room)
    assert [p.name for p in room.players] == ['B', 'C', 'A', 'D']
    assert room.state == GameState.TURN_BASED
    assert room.current_player_index == 0


def test_roll_waits_for_reveal_before_advancing():
    room = make_room('A', 'B', state=GameState.ROLL_DICE)
    dice = FixedDice(4, 6)
    assert rules.roll_dice(room, 'A', dice) == 4
    assert room.current_player_index == 0
    assert room.pending_roll == 'A'
    # a duplicate click during the reveal is rejected
    with pytest.raises(RollPending):
        rules.roll_dice(room, 'A', dice)
    with pytest.raises(RollPending):
        rules.roll_dice(room, 'B', dice)
    assert rules.finish_roll(room) == GameState.ROLL_DICE
    assert room.current_player_index == 1
    assert room.pending_roll is None


def test_roll_from_non_current_player_is_ignored():
    room = make_room('A', 'B', state=GameState.ROLL_DICE)
    with pytest.raises(NotYourTurn):
        rules.roll_dice(room, 'B', FixedDice(6))
    assert room.players[1].last_roll == 0
    assert room.pending_roll is None


def test_finish_roll_after_roller_left_keeps_shifted_index():
    room = make_room('A', 'B', 'C', state=GameState.ROLL_DICE)
    dice = FixedDice(2, 3)
    rules.roll_dice(room, 'A', dice)
    rules.finish_roll(room)
    rules.roll_dice(room, 'B', dice)
    # B leaves mid-reveal; C slides into index 1
    room.players.pop(1)
    rules.finish_roll(room)
    assert room.state == GameState.ROLL_DICE
    assert room.current_player.name == 'C'


def _seated_rolling_room(*names):
    store = RoomStore()
    room = store.create_room(names[0], names[0])
    for name in names[1:]:
        store.join_room(room.code, name, name)
    room.state = GameState.ROLL_DICE
    return store, room


def test_last_roller_leaving_mid_reveal_still_starts_turns():
    store, room = _seated_rolling_room('A', 'B')
    dice = FixedDice(4, 2)
    rules.roll_dice(room, 'A', dice)
    rules.finish_roll(room)
    rules.roll_dice(room, 'B', dice)
    store.remove_connection('B')
    assert room.current_player_index == 0
    assert rules.finish_roll(room) == GameState.TURN_BASED
    assert room.current_player.name == 'A'
    assert room.pending_roll is None


def test_last_of_three_leaving_mid_reveal_does_not_replay_round():
    store, room = _seated_rolling_room('A', 'B', 'C')
    dice = FixedDice(2, 5, 6)
    for name in ('A', 'B'):
        rules.roll_dice(room, name, dice)
        rules.finish_roll(room)
    rules.roll_dice(room, 'C', dice)
    store.remove_connection('C')
    assert rules.finish_roll(room) == GameState.TURN_BASED
    assert [p.name for p in room.players] == ['B', 'A']
    assert room.current_player_index == 0


def test_middle_roller_leaving_mid_reveal_hands_dice_on():
    store, room = _seated_rolling_room('A', 'B', 'C')
    dice = FixedDice(2, 5)
    rules.roll_dice(room, 'A', dice)
    rules.finish_roll(room)
    rules.roll_dice(room, 'B', dice)
    store.remove_connection('B')
    assert rules.finish_roll(room) == GameState.ROLL_DICE
    assert room.current_player.name == 'C'


def test_finish_roll_without_pending_roll():
    room = make_room('A', 'B', state=GameState.ROLL_DICE)
    with pytest.raises(WrongPhase):
        rules.finish_roll(room)


def test_safe_cake_passes_turn():
    room = _turn_based('A', 'B', 'C', poisons=[1, 2, 3])
    result = rules.eat_cake(room, 'A', 10)
    assert result.outcome == rules.SAFE
    assert result.next_player.name == 'B'
    assert room.current_player_index == 1
    assert 10 in room.eaten_cakes


def test_safe_cake_skips_eliminated_players():
    room = _turn_based('A', 'B', 'C', poisons=[1, 2, 3])
    room.players[1].is_active = False
    result = rules.eat_cake(room, 'A', 10)
    assert result.next_player.name == 'C'


def test_eating_same_cake_twice_has_no_effect():
    room = _turn_based('A', 'B', poisons=[1, 2])
    rules.eat_cake(room, 'A', 10)
    snapshot = room.to_dict()
    with pytest.raises(CakeAlreadyEaten):
        rules.eat_cake(room, 'B', 10)
    with pytest.raises(NotYourTurn):
        rules.eat_cake(room, 'A', 10)
    assert room.to_dict() == snapshot


def test_eating_another_players_poison_ends_match():
    room = _turn_based('A', 'B', poisons=[1, 2])
    result = rules.eat_cake(room, 'A', 2)
    assert result.is_over
    assert [p.name for p in result.winners] == ['B']
    assert room.winners == ['B']
    assert room.state == GameState.GAME_OVER
    assert room.players[0].is_active


def test_shared_poison_eaten_by_non_owner_makes_all_owners_win():
    room = _turn_based('A', 'B', 'C', poisons=[1, 7, 7])
    result = rules.eat_cake(room, 'A', 7)
    assert result.is_over
    assert sorted(p.name for p in result.winners) == ['B', 'C']
    assert 'B and C' in result.message


def test_self_poison_shared_with_another_owner_ends_match():
    room = _turn_based('A', 'B', 'C', poisons=[7, 7, 3])
    result = rules.eat_cake(room, 'A', 7)
    assert result.is_over
    assert [p.name for p in result.winners] == ['B']
    assert not room.players[0].is_active


def test_self_poison_with_one_survivor_crowns_them():
    room = _turn_based('A', 'B', poisons=[4, 2])
    result = rules.eat_cake(room, 'A', 4)
    assert result.is_over
    assert [p.name for p in result.winners] == ['B']
    assert 'last survivor is B' in result.message


def test_self_poison_with_two_survivors_continues_and_skips_eliminated():
    room = _turn_based('A', 'B', 'C', poisons=[4, 2, 3])
    result = rules.eat_cake(room, 'A', 4)
    assert result.outcome == rules.ELIMINATED
    assert room.state == GameState.TURN_BASED
    assert not room.players[0].is_active
    assert result.next_player.name == 'B'

    seen = []
    for cake in (10, 11, 12, 13):
        seen.append(room.current_player.name)
        rules.eat_cake(room, room.current_player.identity, cake)
    assert 'A' not in seen
    assert seen == ['B', 'C', 'B', 'C']


def test_self_poison_with_nobody_left_is_a_draw():
    room = _turn_based('A', 'B', poisons=[4, 2])
    room.players[1].is_active = False
    result = rules.eat_cake(room, 'A', 4)
    assert result.is_over
    assert result.winners == []
    assert 'draw' in result.message
    assert room.winners == []


def test_safe_cake_with_nobody_active_is_a_draw():
    room = _turn_based('A', 'B', poisons=[4, 2])
    for p in room.players:
        p.is_active = False
    result = rules.eat_cake(room, 'A', 0)
    assert result.is_over
    assert room.state == GameState.GAME_OVER


def test_eat_requires_turn_based_phase():
    room = make_room('A', 'B', state=GameState.ROLL_DICE)
    with pytest.raises(WrongPhase):
        rules.eat_cake(room, 'A', 0)


def test_return_to_lobby_resets_players():
    room = _turn_based('A', 'B', poisons=[1, 2])
    room.players[0].last_roll = 6
    rules.eat_cake(room, 'A', 2)
    rules.return_to_lobby(room)
    assert room.state == GameState.LOBBY
    assert room.eaten_cakes == set()
    assert room.winners == []
    for p in room.players:
        assert (p.poison, p.last_roll, p.is_active) == (None, 0, True)


def test_return_to_lobby_not_allowed_mid_setup():
    room = make_room('A', 'B', state=GameState.SETUP_POISON)
    with pytest.raises(WrongPhase):
        rules.return_to_lobby(room)


def test_next_active_index_wraps_and_reports_none():
    room = make_room('A', 'B', 'C')
    room.players[0].is_active = False
    assert rules.next_active_index(room, 2) == 1
    for p in room.players:
        p.is_active = False
    assert rules.next_active_index(room, 0) is None

import pytest

from arcade import db
from arcade.models import User, Move
from arcade.services.games import lifecycle, battleship
from arcade.services.games.errors import (
    AlreadyAttacked,
    InvalidCoordinates,
    InvalidState,
    NotYourTurn,
)
from arcade.services.games.experience import award_experience
from arcade.services.games.generators import Cell, count_cells, generate_board
from arcade.services.games.store import load_game


def board_with_ships(*cells, size=8):
    board = [[0] * size for _ in range(size)]
    for x, y in cells:
        board[x][y] = int(Cell.SHIP)
    return board


def start_battleship(a, b, board_a=None, board_b=None, first=None):
    created = lifecycle.create_game(a, 'battleship')
    game_id = created['game_id']
    lifecycle.join_game(b, created['code'])
    game = load_game(game_id)
    if board_a is not None:
        game.player_for(a).board = board_a
    if board_b is not None:
        game.player_for(b).board = board_b
    if first is not None:
        game.current_turn_user_id = first
    db.session.commit()
    lifecycle.set_ready(a, game_id)
    lifecycle.set_ready(b, game_id)
    lifecycle.start_game(a, game_id)
    return game_id


def test_generate_board_places_distinct_ships():
    board = generate_board(8, 15)
    assert len(board) == 8 and all(len(row) == 8 for row in board)
    assert count_cells(board, Cell.SHIP) == 15


def test_start_deals_boards_and_picks_turn(user_ids):
    a, b = user_ids('Alice', 'Bob')
    game_id = start_battleship(a, b)
    game = load_game(game_id)
    assert game.status == 'in_progress'
    assert game.current_turn_user_id in (a, b)
    for p in game.players:
        assert count_cells(p.board, Cell.SHIP) == 15


def test_miss_passes_turn(user_ids):
    a, b = user_ids('Alice', 'Bob')
    game_id = start_battleship(a, b, board_b=board_with_ships((5, 5)), first=a)

    result = battleship.attack(a, game_id, 0, 0)
    assert result == {'status': 'miss', 'x': 0, 'y': 0}
    game = load_game(game_id)
    assert game.current_turn_user_id == b
    assert game.player_for(b).board[0][0] == Cell.MISS


def test_hit_keeps_turn_and_counts(user_ids):
    a, b = user_ids('Alice', 'Bob')
    game_id = start_battleship(a, b, board_b=board_with_ships((1, 1), (2, 2)), first=a)

    assert battleship.attack(a, game_id, 1, 1)['status'] == 'hit'
    game = load_game(game_id)
    assert game.current_turn_user_id == a
    assert game.player_for(a).ships_sunk == 1
    assert game.player_for(b).ships_lost == 1

    with pytest.raises(AlreadyAttacked):
        battleship.attack(a, game_id, 1, 1)


def test_attack_guards(user_ids):
    a, b = user_ids('Alice', 'Bob')
    game_id = start_battleship(a, b, board_b=board_with_ships((5, 5)), first=a)

    with pytest.raises(NotYourTurn):
        battleship.attack(b, game_id, 0, 0)
    with pytest.raises(InvalidCoordinates):
        battleship.attack(a, game_id, 8, 0)
    with pytest.raises(InvalidCoordinates):
        battleship.attack(a, game_id, '-1', '0')


def test_attack_route_reports_errors(client, make_user):
    alice, bob = make_user('Alice'), make_user('Bob')
    game_id = start_battleship(alice['id'], bob['id'], board_b=board_with_ships((5, 5)), first=alice['id'])

    res = client.post(f'/battleship/{game_id}/attack/9/0', headers=alice['headers'])
    assert res.status_code == 400
    res = client.post(f'/battleship/{game_id}/attack/0/0', headers=bob['headers'])
    assert res.status_code == 403
    res = client.post(f'/battleship/{game_id}/attack/0/0', headers=alice['headers'])
    assert res.get_json() == {'status': 'miss', 'x': 0, 'y': 0}


def test_victory_finishes_game_and_grants_experience(user_ids):
    a, b = user_ids('Alice', 'Bob')
    game_id = start_battleship(a, b, board_b=board_with_ships((3, 4)), first=a)

    result = battleship.attack(a, game_id, 3, 4)
    assert result['status'] == 'win'

    game = load_game(game_id)
    assert game.status == 'finished'
    assert game.winner == a
    assert game.current_turn_user_id is None
    assert game.player_for(a).result == 'win'
    assert game.player_for(b).result == 'lose'

    winner, loser = db.session.get(User, a), db.session.get(User, b)
    assert (winner.wins, winner.exp) == (1, 250)
    assert (loser.losses, loser.exp) == (1, 125)

    with pytest.raises(InvalidState):
        battleship.attack(a, game_id, 0, 0)


def test_ships_sunk_matches_recorded_hits(user_ids):
    a, b = user_ids('Alice', 'Bob')
    game_id = start_battleship(a, b, board_b=board_with_ships((0, 1), (0, 2)), first=a)
    battleship.attack(a, game_id, 0, 1)
    battleship.attack(a, game_id, 0, 2)

    game = load_game(game_id)
    me = game.player_for(a)
    hits = Move.query.filter_by(player_game_id=me.id, hit=True).count()
    assert me.ships_sunk == hits == game.player_for(b).ships_lost == 2


def test_precision_tracks_hit_ratio(user_ids):
    a, b = user_ids('Alice', 'Bob')
    game_id = start_battleship(a, b, board_b=board_with_ships((1, 1), (6, 6)), first=a)
    battleship.attack(a, game_id, 1, 1)
    battleship.attack(a, game_id, 0, 0)
    assert db.session.get(User, a).precision == 50


def test_win_levels_up(user_ids):
    a, b = user_ids('Alice', 'Bob')
    user = db.session.get(User, a)
    user.exp = 900
    db.session.commit()
    game_id = start_battleship(a, b, board_b=board_with_ships((2, 2)), first=a)
    battleship.attack(a, game_id, 2, 2)
    user = db.session.get(User, a)
    assert (user.level, user.exp) == (2, 150)


def test_experience_failure_is_swallowed(user_ids):
    (a,) = user_ids('Alice')
    assert award_experience(9999, a) is False


def test_status_masks_enemy_ships(user_ids):
    a, b = user_ids('Alice', 'Bob')
    game_id = start_battleship(
        a, b,
        board_a=board_with_ships((0, 0), (7, 7)),
        board_b=board_with_ships((1, 1), (4, 4)),
        first=a,
    )
    battleship.attack(a, game_id, 1, 1)

    status = lifecycle.get_game_status(game_id, a)
    assert status['is_my_turn'] is True
    assert status['enemy_board'][1][1] == Cell.HIT
    assert status['enemy_board'][4][4] == Cell.EMPTY
    assert count_cells(status['enemy_board'], Cell.SHIP) == 0
    assert status['my_board'][0][0] == Cell.SHIP
    assert status['enemy_ships_remaining'] == 1
    assert 'board' not in status['players'][0]

    battleship.attack(a, game_id, 4, 4)
    final = lifecycle.get_game_status(game_id, b)
    assert final['status'] == 'finished'
    assert final['winner_name'] == 'Alice'
    assert final['enemy_board'][0][0] == Cell.SHIP


def test_surrender_declares_winner(client, make_user):
    alice, bob = make_user('Alice'), make_user('Bob')
    game_id = start_battleship(alice['id'], bob['id'])

    res = client.post(f'/battleship/{game_id}/surrender', headers=bob['headers'])
    assert res.status_code == 200
    assert res.get_json()['winner'] == alice['id']

    game = load_game(game_id)
    assert game.status == 'finished'
    assert game.surrendered_by == [game.player_for(bob['id']).id]
    assert db.session.get(User, alice['id']).wins == 1

    again = client.post(f'/battleship/{game_id}/surrender', headers=bob['headers'])
    assert again.status_code == 409


def test_leave_running_game_surrenders(user_ids):
    a, b = user_ids('Alice', 'Bob')
    game_id = start_battleship(a, b)
    result = lifecycle.leave_game(a, game_id)
    assert result['winner'] == b
    assert load_game(game_id).status == 'finished'

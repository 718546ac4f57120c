import pytest

from arcade import db
from arcade.models import Game
from arcade.services.games import lifecycle, loteria
from arcade.services.games.errors import (
    AlreadyJoined,
    CardAlreadyActive,
    Conflict,
    DrawCooldown,
    Forbidden,
    GameFull,
    InvalidInput,
    InvalidState,
    NoCardsAvailable,
    NotFound,
)
from arcade.services.games.generators import LOTERIA_CARDS
from arcade.services.games.store import load_game


def loteria_lobby(host, *players, **config):
    created = lifecycle.create_game(host, 'loteria', config or None)
    for user_id in players:
        lifecycle.join_game(user_id, created['code'])
    return created['game_id']


def start_loteria(host, *players):
    game_id = loteria_lobby(host, *players)
    for user_id in players:
        loteria.generate_player_card(game_id, user_id)
        lifecycle.set_ready(user_id, game_id)
    lifecycle.start_game(host, game_id)
    return game_id


def fill_card(game_id, user_id, drawn_cards):
    game = load_game(game_id)
    player = game.player_for(user_id)
    player.marked_cells = [True] * 16
    player.tokens_used = 16
    game.drawn_cards = list(drawn_cards)
    db.session.commit()
    return player


def test_player_bounds(user_ids):
    (h,) = user_ids('Host')
    with pytest.raises(InvalidInput):
        lifecycle.create_game(h, 'loteria', {'min_players': 3})
    with pytest.raises(InvalidInput):
        lifecycle.create_game(h, 'loteria', {'min_players': 6, 'max_players': 5})
    with pytest.raises(InvalidInput):
        lifecycle.create_game(h, 'loteria', {'max_players': 17})
    with pytest.raises(InvalidInput):
        lifecycle.create_game(h, 'loteria', {'min_players': 0})

    game = load_game(loteria_lobby(h))
    assert (game.min_players, game.max_players) == (4, 16)
    host = game.players[0]
    assert host.is_host and host.ready and host.card_generated


def test_create_route_rejects_bad_bounds(client, make_user):
    host = make_user('Host')
    res = client.post('/game/create/loteria', json={'minPlayers': 'abc'}, headers=host['headers'])
    assert res.status_code == 400
    res = client.post('/game/create/loteria', json={'minPlayers': 4, 'maxPlayers': 6}, headers=host['headers'])
    assert res.status_code == 201


def test_join_capacity_counts_host(user_ids):
    h, p1, p2, p3, p4 = user_ids('Host', 'P1', 'P2', 'P3', 'P4')
    game_id = loteria_lobby(h, p1, p2, p3, max_players=4)
    code = load_game(game_id).code
    with pytest.raises(GameFull):
        lifecycle.join_game(p4, code)
    with pytest.raises(AlreadyJoined):
        lifecycle.join_game(p1, code)


def test_can_start_needs_every_card_and_ready(user_ids):
    h, p1, p2, p3 = user_ids('Host', 'P1', 'P2', 'P3')
    game_id = loteria_lobby(h, p1, p2)
    assert lifecycle.get_lobby_status(game_id, h)['can_start'] is False

    loteria.generate_player_card(game_id, p1)
    assert load_game(game_id).status == 'card_selection'
    # Joining still works while cards are being picked
    lifecycle.join_game(p3, load_game(game_id).code)

    for user_id in (p1, p2, p3):
        if user_id != p1:
            loteria.generate_player_card(game_id, user_id)
    lifecycle.set_ready(p1, game_id)
    lifecycle.set_ready(p2, game_id)
    assert lifecycle.get_lobby_status(game_id, h)['can_start'] is False
    with pytest.raises(InvalidState):
        lifecycle.start_game(h, game_id)

    lifecycle.set_ready(p3, game_id)
    lobby = lifecycle.get_lobby_status(game_id, p1)
    assert lobby['can_start'] is True
    assert lobby['current_players'] == 4
    assert lobby['my_card_generated'] is True

    with pytest.raises(Forbidden):
        lifecycle.start_game(p1, game_id)
    lifecycle.start_game(h, game_id)
    assert load_game(game_id).status == 'in_progress'


def test_generate_card_rules(user_ids):
    h, p1, outsider = user_ids('Host', 'P1', 'Outsider')
    game_id = loteria_lobby(h, p1)
    with pytest.raises(Forbidden):
        loteria.generate_player_card(game_id, h)
    with pytest.raises(Forbidden):
        loteria.generate_player_card(game_id, outsider)

    card = loteria.generate_player_card(game_id, p1)['player_card']
    assert len(card) == 16
    assert len(set(card)) == 16
    assert set(card) <= set(LOTERIA_CARDS)


def test_draw_requires_host_and_running_game(user_ids):
    h, p1, p2, p3 = user_ids('Host', 'P1', 'P2', 'P3')
    game_id = loteria_lobby(h, p1, p2, p3)
    with pytest.raises(InvalidState):
        loteria.draw_card(game_id, h)
    with pytest.raises(Forbidden):
        loteria.draw_card(game_id, p1)


def test_process_card_requires_running_game(user_ids):
    h, p1, p2, p3 = user_ids('Host', 'P1', 'P2', 'P3')
    game_id = loteria_lobby(h, p1, p2, p3)
    with pytest.raises(InvalidState):
        loteria.process_current_card(game_id, h)

    for user_id in (p1, p2, p3):
        loteria.generate_player_card(game_id, user_id)
        lifecycle.set_ready(user_id, game_id)
    lifecycle.start_game(h, game_id)
    fill_card(game_id, p1, load_game(game_id).player_for(p1).player_card)
    loteria.claim_win(game_id, p1)

    with pytest.raises(InvalidState):
        loteria.process_current_card(game_id, h)


def test_draws_without_replacement(user_ids):
    h, p1, p2, p3 = user_ids('Host', 'P1', 'P2', 'P3')
    game_id = start_loteria(h, p1, p2, p3)

    seen = []
    first = loteria.draw_card(game_id, h)['drawn_card']
    with pytest.raises(CardAlreadyActive):
        loteria.draw_card(game_id, h)
    seen.append(first)
    loteria.process_current_card(game_id, h)

    for _ in range(len(LOTERIA_CARDS) - 1):
        card = loteria.draw_card(game_id, h)['drawn_card']
        assert card not in seen
        seen.append(card)
        loteria.process_current_card(game_id, h)

    assert sorted(seen) == sorted(LOTERIA_CARDS)
    with pytest.raises(NoCardsAvailable):
        loteria.draw_card(game_id, h)


def test_draw_cooldown(user_ids):
    h, p1, p2, p3 = user_ids('Host', 'P1', 'P2', 'P3')
    game_id = start_loteria(h, p1, p2, p3)
    load_game(game_id).draw_cooldown_seconds = 60
    db.session.commit()

    loteria.draw_card(game_id, h)
    loteria.process_current_card(game_id, h)
    with pytest.raises(DrawCooldown):
        loteria.draw_card(game_id, h)


def test_place_token_rules(user_ids):
    h, p1, p2, p3 = user_ids('Host', 'P1', 'P2', 'P3')
    game_id = start_loteria(h, p1, p2, p3)
    game = load_game(game_id)
    card = list(game.player_for(p1).player_card)
    game.current_card = card[5]
    db.session.commit()

    with pytest.raises(Forbidden):
        loteria.place_token(game_id, h, 5)
    with pytest.raises(InvalidInput):
        loteria.place_token(game_id, p1, 16)
    with pytest.raises(InvalidInput):
        loteria.place_token(game_id, p1, 4)

    result = loteria.place_token(game_id, p1, 5)
    assert (result['row'], result['col'], result['tokens_used']) == (1, 1, 1)
    assert result['can_claim'] is False
    with pytest.raises(Conflict):
        loteria.place_token(game_id, p1, 5)


def test_token_route_accepts_row_and_col(client, make_user):
    host, p1, p2, p3 = (make_user(n) for n in ('Host', 'P1', 'P2', 'P3'))
    game_id = start_loteria(host['id'], p1['id'], p2['id'], p3['id'])
    game = load_game(game_id)
    game.current_card = game.player_for(p1['id']).player_card[6]
    db.session.commit()

    res = client.post(f'/loteria/{game_id}/token', json={'row': 1, 'col': 2}, headers=p1['headers'])
    assert res.status_code == 200
    assert res.get_json()['cell_index'] == 6
    res = client.post(f'/loteria/{game_id}/token', json={'row': 4, 'col': 0}, headers=p1['headers'])
    assert res.status_code == 400
    res = client.post(f'/loteria/{game_id}/token', json={}, headers=p1['headers'])
    assert res.status_code == 400


def test_claim_needs_full_card(user_ids):
    h, p1, p2, p3 = user_ids('Host', 'P1', 'P2', 'P3')
    game_id = start_loteria(h, p1, p2, p3)
    with pytest.raises(InvalidState):
        loteria.claim_win(game_id, p1)
    with pytest.raises(Forbidden):
        loteria.claim_win(game_id, h)


def test_valid_claim_finishes_game(user_ids):
    h, p1, p2, p3 = user_ids('Host', 'P1', 'P2', 'P3')
    game_id = start_loteria(h, p1, p2, p3)
    player = fill_card(game_id, p1, load_game(game_id).player_for(p1).player_card)

    result = loteria.claim_win(game_id, p1)
    assert result['is_valid'] is True

    game = load_game(game_id)
    assert game.status == 'finished'
    assert game.winner == p1
    assert game.player_under_review is None
    assert player.verification_result == 'valid'
    assert [p.result for p in game.players if p.user_id != p1] == ['lose', 'lose', 'lose']
    assert sum(1 for p in game.players if p.result == 'win') == 1

    with pytest.raises(InvalidState):
        loteria.draw_card(game_id, h)

    status = lifecycle.get_game_status(game_id, p2)
    assert status['winners'] == [p1]
    assert status['winner_name'] == 'P1'


def test_invalid_claim_demotes_to_spectator(user_ids):
    h, p1, p2, p3 = user_ids('Host', 'P1', 'P2', 'P3')
    game_id = start_loteria(h, p1, p2, p3)
    fill_card(game_id, p1, [])

    result = loteria.claim_win(game_id, p1)
    assert result['is_valid'] is False
    assert result['is_cheater'] is True

    game = load_game(game_id)
    player = game.player_for(p1)
    assert game.status == 'in_progress'
    assert game.winner is None
    assert game.banned_players == [p1]
    assert player.is_spectator is True
    assert player.claimed_win is False
    assert player.result == 'lose'

    with pytest.raises(Forbidden):
        loteria.place_token(game_id, p1, 0)
    with pytest.raises(Forbidden):
        loteria.claim_win(game_id, p1)


def test_reshuffle(user_ids):
    h, p1, p2, p3 = user_ids('Host', 'P1', 'P2', 'P3')
    game_id = start_loteria(h, p1, p2, p3)
    with pytest.raises(InvalidState):
        loteria.reshuffle_cards(game_id, h)

    loteria.draw_card(game_id, h)
    game = load_game(game_id)
    game.current_card = game.player_for(p1).player_card[0]
    db.session.commit()
    loteria.place_token(game_id, p1, 0)

    with pytest.raises(Forbidden):
        loteria.reshuffle_cards(game_id, p1)
    result = loteria.reshuffle_cards(game_id, h)
    assert result['cards_remaining'] == len(LOTERIA_CARDS)

    game = load_game(game_id)
    assert game.drawn_cards == []
    assert game.current_card is None
    assert game.player_for(p1).marked_cells[0] is True


def test_kick_player(user_ids):
    h, p1, p2 = user_ids('Host', 'P1', 'P2')
    game_id = loteria_lobby(h, p1, p2)
    with pytest.raises(Forbidden):
        loteria.kick_player(game_id, p1, p2)
    with pytest.raises(NotFound):
        loteria.kick_player(game_id, h, h)

    assert loteria.kick_player(game_id, h, p2)['kicked'] is True
    assert [p.user_id for p in load_game(game_id).players] == [h, p1]


def test_host_leaving_lobby_closes_it(user_ids):
    h, p1 = user_ids('Host', 'P1')
    game_id = loteria_lobby(h, p1)
    assert lifecycle.leave_game(h, game_id)['game_closed'] is True
    assert db.session.get(Game, game_id) is None


def test_leaving_running_game(user_ids):
    h, p1, p2, p3 = user_ids('Host', 'P1', 'P2', 'P3')
    game_id = start_loteria(h, p1, p2, p3)

    result = lifecycle.leave_game(p1, game_id)
    assert result['game_over'] is False
    game = load_game(game_id)
    assert game.player_for(p1).is_spectator is True
    assert game.player_for(p1).result == 'lose'
    assert game.surrendered_by == [game.player_for(p1).id]

    with pytest.raises(Conflict):
        lifecycle.leave_game(p1, game_id)
    assert load_game(game_id).surrendered_by == [game.player_for(p1).id]

    result = lifecycle.leave_game(h, game_id)
    assert result['game_over'] is True
    game = load_game(game_id)
    assert game.status == 'finished'
    assert game.winner is None
    assert all(p.result == 'lose' for p in game.players)


def test_status_views(user_ids):
    h, p1, p2, p3 = user_ids('Host', 'P1', 'P2', 'P3')
    game_id = start_loteria(h, p1, p2, p3)

    host_view = lifecycle.get_game_status(game_id, h)
    assert host_view['is_host'] is True
    assert len(host_view['host_view']['players_cards']) == 3
    assert host_view['host_view']['can_draw'] is True

    player_view = lifecycle.get_game_status(game_id, p1)
    assert player_view['is_host'] is False
    assert len(player_view['my_card']) == 16
    assert 'host_view' not in player_view
    assert all('player_card' not in info for info in player_view['players_info'])
    assert {info['user_id'] for info in player_view['players_info']} == {p2, p3}

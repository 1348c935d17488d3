from moviematch.models import COMPLETED, IN_PROGRESS, WAITING
from moviematch.services import rounds


def _start(registry, lobby):
    update = rounds.mark_ready(registry, lobby, registry.sessions.get(lobby.host_id))
    assert update.started
    return update


def _vote(registry, lobby, player_id, vote_type, movie_id=None):
    movie_id = movie_id or lobby.current_movie.id
    return rounds.cast_vote(registry, lobby, registry.sessions.get(player_id), movie_id, vote_type)


def test_host_ready_starts_round(game_registry, lobby_factory):
    lobby = lobby_factory()
    update = _start(game_registry, lobby)
    assert lobby.game_state == IN_PROGRESS
    assert lobby.current_movie_index == 0
    assert update.movie_changed
    assert all(not p.is_ready for p in game_registry.players_of(lobby))


def test_non_host_ready_waits_for_everyone(game_registry, lobby_factory):
    lobby = lobby_factory(player_names=('P1', 'P2', 'P3'))
    update = rounds.mark_ready(game_registry, lobby, game_registry.sessions.get('P2'))
    assert update.accepted and not update.started
    assert lobby.game_state == WAITING
    assert game_registry.sessions.get('P2').is_ready

    rounds.mark_ready(game_registry, lobby, game_registry.sessions.get('P3'))
    assert lobby.game_state == WAITING
    # P1 is the host, but all-ready also holds once the last player signals
    update = rounds.mark_ready(game_registry, lobby, game_registry.sessions.get('P1'))
    assert update.started


def test_ready_during_round_is_ignored_and_keeps_budget(game_registry, lobby_factory):
    lobby = lobby_factory()
    _start(game_registry, lobby)
    _vote(game_registry, lobby, 'P1', 'up')
    update = rounds.mark_ready(game_registry, lobby, game_registry.sessions.get('P1'))
    assert not update.accepted
    assert update.rejected_reason == rounds.ALREADY_IN_PROGRESS
    assert game_registry.sessions.get('P1').votes_remaining.upvotes == 2
    assert game_registry.sessions.get('P1').has_voted


def test_vote_before_start_is_rejected(game_registry, lobby_factory):
    lobby = lobby_factory()
    update = _vote(game_registry, lobby, 'P1', 'up', movie_id='m1')
    assert update.rejected_reason == rounds.NOT_IN_PROGRESS
    assert lobby.votes == {}


def test_double_vote_is_rejected(game_registry, lobby_factory):
    lobby = lobby_factory()
    _start(game_registry, lobby)
    assert _vote(game_registry, lobby, 'P1', 'up').accepted
    second = _vote(game_registry, lobby, 'P1', 'down')
    assert second.rejected_reason == rounds.ALREADY_VOTED
    assert lobby.votes['m1'] == {'P1': 'up'}
    p1 = game_registry.sessions.get('P1')
    assert p1.votes_remaining.upvotes == 2
    assert p1.votes_remaining.downvotes == 3


def test_vote_for_other_movie_is_rejected(game_registry, lobby_factory):
    lobby = lobby_factory()
    _start(game_registry, lobby)
    update = _vote(game_registry, lobby, 'P1', 'up', movie_id='m2')
    assert update.rejected_reason == rounds.WRONG_MOVIE
    assert lobby.votes == {}


def test_unknown_player_is_rejected(game_registry, lobby_factory):
    lobby = lobby_factory()
    _start(game_registry, lobby)
    update = rounds.cast_vote(game_registry, lobby, None, 'm1', 'up')
    assert update.rejected_reason == rounds.UNKNOWN_PLAYER


def test_departed_player_events_are_ignored(game_registry, lobby_factory):
    lobby = lobby_factory(player_names=('P1', 'P2', 'P3'))
    _start(game_registry, lobby)
    gone = game_registry.sessions.get('P3')
    rounds.handle_departure(game_registry, 'P3')

    update = rounds.cast_vote(game_registry, lobby, gone, 'm1', 'up')
    assert update.rejected_reason == rounds.UNKNOWN_PLAYER
    update = rounds.mark_ready(game_registry, lobby, gone)
    assert update.rejected_reason == rounds.UNKNOWN_PLAYER
    assert lobby.votes == {}
    assert lobby.game_state == IN_PROGRESS
    assert lobby.current_movie_index == 0
    assert gone.votes_remaining.upvotes == 3


def test_advance_only_when_everyone_voted(game_registry, lobby_factory):
    lobby = lobby_factory()
    _start(game_registry, lobby)
    update = _vote(game_registry, lobby, 'P1', 'pass')
    assert update.accepted and not update.advanced
    assert lobby.current_movie_index == 0

    update = _vote(game_registry, lobby, 'P2', 'up')
    assert update.advanced
    assert lobby.current_movie_index == 1
    assert all(not p.has_voted for p in game_registry.players_of(lobby))
    # Budgets carry across movies
    assert game_registry.sessions.get('P2').votes_remaining.upvotes == 2


def test_exhausted_downvote_budget(game_registry, lobby_factory):
    lobby = lobby_factory(player_names=('P1',), titles=('A', 'B', 'C', 'D'))
    _start(game_registry, lobby)
    for _ in range(3):
        assert _vote(game_registry, lobby, 'P1', 'down').accepted
    player = game_registry.sessions.get('P1')
    assert player.votes_remaining.downvotes == 0
    assert lobby.current_movie.id == 'm4'

    update = _vote(game_registry, lobby, 'P1', 'down')
    assert update.rejected_reason == rounds.BUDGET_EXHAUSTED
    assert 'm4' not in lobby.votes
    assert player.votes_remaining.downvotes == 0
    assert player.has_voted is False

    # Passes are unbudgeted
    assert _vote(game_registry, lobby, 'P1', 'pass').completed


def test_full_round_scenario(game_registry, lobby_factory):
    lobby = lobby_factory()
    _start(game_registry, lobby)

    _vote(game_registry, lobby, 'P1', 'up')
    _vote(game_registry, lobby, 'P2', 'up')
    # A is settled, a late vote on it goes nowhere
    assert _vote(game_registry, lobby, 'P1', 'down', movie_id='m1').rejected_reason == rounds.WRONG_MOVIE

    _vote(game_registry, lobby, 'P1', 'pass')
    _vote(game_registry, lobby, 'P2', 'up')
    _vote(game_registry, lobby, 'P1', 'down')
    update = _vote(game_registry, lobby, 'P2', 'pass')

    assert update.completed
    assert lobby.game_state == COMPLETED
    results = update.results['results']
    assert [r['title'] for r in results] == ['A', 'B', 'C']
    assert results[0]['score'] == 2
    assert results[0]['votes'] == {'up': 2, 'down': 0, 'pass': 0}
    assert results[2]['score'] == -1
    assert update.results['votes']['m2'] == {'P1': 'pass', 'P2': 'up'}


def test_ready_after_completion_resets_round(game_registry, lobby_factory):
    lobby = lobby_factory(player_names=('P1', 'P2'), titles=('A',))
    _start(game_registry, lobby)
    _vote(game_registry, lobby, 'P1', 'up')
    _vote(game_registry, lobby, 'P2', 'down')
    assert lobby.game_state == COMPLETED

    # A non-host asking to play again resets the lobby but does not start it
    update = rounds.mark_ready(game_registry, lobby, game_registry.sessions.get('P2'))
    assert update.accepted and not update.started
    assert lobby.game_state == WAITING
    assert lobby.votes == {}
    for player in game_registry.players_of(lobby):
        assert player.votes_remaining.upvotes == 3
        assert player.votes_remaining.downvotes == 3
        assert player.has_voted is False

    update = rounds.mark_ready(game_registry, lobby, game_registry.sessions.get('P1'))
    assert update.started
    assert lobby.game_state == IN_PROGRESS
    assert lobby.current_movie_index == 0


def test_departure_completes_current_movie(game_registry, lobby_factory):
    lobby = lobby_factory(player_names=('P1', 'P2', 'P3'))
    _start(game_registry, lobby)
    _vote(game_registry, lobby, 'P1', 'up')
    _vote(game_registry, lobby, 'P2', 'up')

    remaining, update = rounds.handle_departure(game_registry, 'P3')
    assert remaining is lobby
    assert update.advanced
    assert lobby.current_movie_index == 1
    assert lobby.players == ['P1', 'P2']


def test_departure_on_last_movie_completes_round(game_registry, lobby_factory):
    lobby = lobby_factory(player_names=('P1', 'P2'), titles=('A',))
    _start(game_registry, lobby)
    _vote(game_registry, lobby, 'P2', 'up')

    remaining, update = rounds.handle_departure(game_registry, 'P1')
    assert remaining is lobby
    assert lobby.host_id == 'P2'
    assert update.completed
    assert update.results['results'][0]['score'] == 1


def test_departure_while_waiting_does_not_start(game_registry, lobby_factory):
    lobby = lobby_factory()
    remaining, update = rounds.handle_departure(game_registry, 'P2')
    assert remaining is lobby
    assert not update.movie_changed and not update.completed
    assert lobby.game_state == WAITING


def test_departure_of_unready_host_starts_when_rest_are_ready(game_registry, lobby_factory):
    lobby = lobby_factory(player_names=('P1', 'P2', 'P3'))
    rounds.mark_ready(game_registry, lobby, game_registry.sessions.get('P2'))
    rounds.mark_ready(game_registry, lobby, game_registry.sessions.get('P3'))
    assert lobby.game_state == WAITING

    remaining, update = rounds.handle_departure(game_registry, 'P1')
    assert remaining is lobby
    assert lobby.host_id == 'P2'
    assert update.started and update.movie_changed
    assert lobby.game_state == IN_PROGRESS
    assert lobby.current_movie_index == 0


def test_last_departure_destroys_lobby(game_registry, lobby_factory):
    lobby = lobby_factory(player_names=('P1',))
    remaining, update = rounds.handle_departure(game_registry, 'P1')
    assert remaining is None
    assert lobby.id not in game_registry.lobbies


def test_player_statuses(game_registry, lobby_factory):
    lobby = lobby_factory()
    _start(game_registry, lobby)
    _vote(game_registry, lobby, 'P2', 'pass')
    assert rounds.player_statuses(game_registry, lobby) == [
        {'id': 'P1', 'name': 'P1', 'hasVoted': False, 'isReady': False, 'isHost': True},
        {'id': 'P2', 'name': 'P2', 'hasVoted': True, 'isReady': False, 'isHost': False},
    ]

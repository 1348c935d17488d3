from functools import wraps
from typing import Optional

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from moviematch import socketio
from moviematch.errors import PayloadError, RegistryError
from moviematch.models import IN_PROGRESS, Lobby
from moviematch.registry import GameRegistry
from moviematch.schemas import CastVotePayload, CreateLobbyPayload, JoinLobbyPayload, parse_payload
from moviematch.services import rounds
from moviematch.services.movies import CUSTOM_TOPIC, MovieProvider, select_movies


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _registry() -> GameRegistry:
    return current_app.extensions['moviematch.registry']


def _provider() -> MovieProvider:
    return current_app.extensions['moviematch.provider']


def _namespace() -> str:
    return current_app.config.get('SOCKETIO_NAMESPACE', '/ws')


def _fail(message: str) -> dict:
    return {'success': False, 'error': message}


def _joined_ack(lobby: Lobby, player_id: str) -> dict:
    return {
        'success': True,
        'lobbyId': lobby.id,
        'playerId': player_id,
        'topic': lobby.topic,
        'hostId': lobby.host_id,
    }


def _guard_defects(handler):
    """Log invariant violations and drop the event; re-raise under TESTING."""
    @wraps(handler)
    def wrapper(*args, **kwargs):
        try:
            return handler(*args, **kwargs)
        except RegistryError as exc:
            current_app.logger.error(f"[defect] event={handler.__name__} sid={_get_sid()} error={exc}")
            if current_app.config.get('TESTING'):
                raise
            return None
    return wrapper


# ---- Broadcasting ----

def _broadcast(registry: GameRegistry, lobby_id: str, event: str, payload) -> None:
    # The Socket.IO room delivers; the registry channel mirrors its membership
    if not registry.channel_members(lobby_id):
        return
    socketio.emit(event, payload, to=lobby_id, namespace=_namespace())


def _broadcast_status(registry: GameRegistry, lobby: Lobby) -> None:
    _broadcast(registry, lobby.id, 'players:status', rounds.player_statuses(registry, lobby))


def _publish_progress(registry: GameRegistry, lobby: Lobby, update: rounds.RoundUpdate) -> None:
    if update.movie_changed:
        current_app.logger.info(
            f"[movie] lobby={lobby.id} movie={lobby.current_movie_index + 1}/{len(lobby.movies)}"
        )
        _broadcast(registry, lobby.id, 'movie:new', lobby.movie_payload())
    if update.completed:
        current_app.logger.info(f"[round-complete] lobby={lobby.id} movies={len(lobby.movies)}")
        _broadcast(registry, lobby.id, 'round:complete', update.results)


def _lobby_for(registry: GameRegistry, sid: str) -> tuple:
    player = registry.sessions.get(sid)
    if player is None:
        return None, None
    return player, registry.lobbies.get(player.lobby_id)


# ---- Handlers ----

def handle_connect():
    emit('connected', {'message': f'Connected to {_namespace()}'})


def handle_disconnect(*_args):
    sid = _get_sid()
    registry = _registry()
    player, lobby = _lobby_for(registry, sid)
    if player is None:
        return
    if lobby is None:
        registry.sessions.remove(sid)
        return
    with lobby.lock:
        leave_room(lobby.id)
        remaining, update = rounds.handle_departure(registry, sid)
        if remaining is None:
            current_app.logger.info(f"[lobby-destroyed] lobby={lobby.id} last_player={sid}")
            return
        current_app.logger.info(
            f"[disconnect] lobby={lobby.id} player={sid} host={remaining.host_id} players={len(remaining.players)}"
        )
        _broadcast_status(registry, remaining)
        _publish_progress(registry, remaining, update)


def handle_create_lobby(data=None):
    sid = _get_sid()
    registry = _registry()
    config = current_app.config
    if sid in registry.sessions:
        return _fail('Already in a lobby')
    try:
        payload = parse_payload(
            CreateLobbyPayload, data,
            max_name_length=config.get('MAX_PLAYER_NAME_LENGTH', 32),
            min_custom_movies=config.get('MIN_CUSTOM_MOVIES', 2),
        )
    except PayloadError as exc:
        return _fail(str(exc))

    # Catalog I/O happens before any lock is taken
    count = config.get('MOVIES_PER_LOBBY', 9)
    if payload.custom_movies is not None:
        topic = CUSTOM_TOPIC
        movies = _provider().fetch_custom(payload.custom_movies, count)
    else:
        topic = payload.topic
        pool = _provider().fetch_candidates(topic, config.get('MOVIE_POOL_SIZE', 25))
        movies = select_movies(pool, count)
    if not movies:
        return _fail('No movies available for this topic')

    try:
        lobby = registry.create_lobby(sid, payload.player_name, topic, movies)
    except RegistryError:
        # Same connection raced two creates
        return _fail('Already in a lobby')
    current_app.logger.info(
        f"[lobby-create] lobby={lobby.id} player={sid} topic={topic} movies={len(movies)}"
    )
    with lobby.lock:
        join_room(lobby.id)
        _broadcast_status(registry, lobby)
    return _joined_ack(lobby, sid)


def handle_join_lobby(data=None):
    sid = _get_sid()
    registry = _registry()
    config = current_app.config
    if sid in registry.sessions:
        return _fail('Already in a lobby')
    try:
        payload = parse_payload(
            JoinLobbyPayload, data,
            max_name_length=config.get('MAX_PLAYER_NAME_LENGTH', 32),
        )
    except PayloadError as exc:
        return _fail(str(exc))

    lobby = registry.lobbies.get(payload.lobby_id)
    if lobby is None:
        return _fail('Lobby not found')
    with lobby.lock:
        if not registry.lobbies.is_live(lobby):
            return _fail('Lobby not found')
        try:
            registry.add_player(lobby, sid, payload.player_name)
        except RegistryError:
            return _fail('Already in a lobby')
        join_room(lobby.id)
        current_app.logger.info(
            f"[lobby-join] lobby={lobby.id} player={sid} players={len(lobby.players)} state={lobby.game_state}"
        )
        _broadcast_status(registry, lobby)
        # Mid-round joiners get the movie everyone else is looking at
        if lobby.game_state == IN_PROGRESS:
            emit('movie:new', lobby.movie_payload())
        return _joined_ack(lobby, sid)


def handle_round_ready(*_args):
    sid = _get_sid()
    registry = _registry()
    player, lobby = _lobby_for(registry, sid)
    if player is None or lobby is None:
        return
    with lobby.lock:
        if not registry.lobbies.is_live(lobby):
            return
        update = rounds.mark_ready(registry, lobby, player)
        if not update.accepted:
            current_app.logger.debug(f"[ready-ignored] lobby={lobby.id} player={sid} reason={update.rejected_reason}")
            return
        current_app.logger.info(f"[ready] lobby={lobby.id} player={sid} started={update.started}")
        _broadcast_status(registry, lobby)
        _publish_progress(registry, lobby, update)


def handle_cast_vote(data=None):
    sid = _get_sid()
    registry = _registry()
    try:
        payload = parse_payload(CastVotePayload, data)
    except PayloadError as exc:
        current_app.logger.debug(f"[vote-invalid] player={sid} error={exc}")
        return
    player, lobby = _lobby_for(registry, sid)
    if player is None or lobby is None:
        return
    with lobby.lock:
        if not registry.lobbies.is_live(lobby):
            return
        update = rounds.cast_vote(registry, lobby, player, payload.movie_id, payload.vote_type)
        if not update.accepted:
            current_app.logger.debug(
                f"[vote-ignored] lobby={lobby.id} player={sid} movie={payload.movie_id} reason={update.rejected_reason}"
            )
            return
        emit('votes:remaining', player.votes_remaining.to_dict())
        _broadcast_status(registry, lobby)
        _publish_progress(registry, lobby, update)


def register_socketio_handlers(namespace: Optional[str] = None) -> None:
    """Register Socket.IO event handlers on the game namespace."""
    namespace = namespace or '/ws'
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', _guard_defects(handle_disconnect), namespace=namespace)
    socketio.on_event('lobby:create', _guard_defects(handle_create_lobby), namespace=namespace)
    socketio.on_event('lobby:join', _guard_defects(handle_join_lobby), namespace=namespace)
    socketio.on_event('round:ready', _guard_defects(handle_round_ready), namespace=namespace)
    socketio.on_event('vote:cast', _guard_defects(handle_cast_vote), namespace=namespace)

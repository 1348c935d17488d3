import os
import sys
import pytest

# Ensure the backend root (containing the `moviematch` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from moviematch import create_app, socketio
from moviematch.models import Lobby, Movie
from moviematch.registry import GameRegistry

NAMESPACE = '/ws'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'
    SOCKETIO_NAMESPACE = NAMESPACE
    LOG_LEVEL = 'DEBUG'
    TMDB_API_KEY = None
    MOVIE_POOL_SIZE = 3
    MOVIES_PER_LOBBY = 3
    DEFAULT_UPVOTES = 3
    DEFAULT_DOWNVOTES = 3
    MIN_CUSTOM_MOVIES = 2
    MAX_PLAYER_NAME_LENGTH = 32


def make_movies(*titles):
    return [Movie(id=f"m{i + 1}", title=title, release_year='2000', rating=7.0, duration=100)
            for i, title in enumerate(titles)]


class StaticMovieProvider:
    """Deterministic stand-in for the TMDB-backed provider."""

    def __init__(self, movies=None):
        self.movies = movies or make_movies('Alien', 'Brazil', 'Casablanca')
        self.calls = []

    def fetch_candidates(self, topic, count):
        self.calls.append(('candidates', topic, count))
        return list(self.movies[:count])

    def fetch_custom(self, titles, count):
        self.calls.append(('custom', tuple(titles), count))
        return make_movies(*list(titles)[:count])


@pytest.fixture()
def movie_provider():
    return StaticMovieProvider()


@pytest.fixture()
def flask_app(movie_provider):
    application = create_app(TestConfig, movie_provider=movie_provider)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def registry(flask_app):
    return flask_app.extensions['moviematch.registry']


@pytest.fixture()
def make_sio_client(flask_app):
    created = []

    def _make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace=NAMESPACE
        )
        created.append(test_client)
        # Flush the connect greeting
        test_client.get_received(NAMESPACE)
        return test_client

    yield _make
    for test_client in created:
        try:
            if test_client.is_connected(NAMESPACE):
                test_client.disconnect(namespace=NAMESPACE)
        except Exception:
            pass


@pytest.fixture()
def game_registry():
    """A bare registry for engine tests that do not need the Flask app."""
    return GameRegistry(upvotes=3, downvotes=3)


@pytest.fixture()
def lobby_factory(game_registry):
    """Create a lobby with the given movies and joined players (first is host)."""
    def _make(player_names=('P1', 'P2'), titles=('A', 'B', 'C')) -> Lobby:
        host, *others = player_names
        lobby = game_registry.create_lobby(host, host, 'popular', make_movies(*titles))
        for name in others:
            game_registry.add_player(lobby, name, name)
        return lobby
    return _make

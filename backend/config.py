import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
        ).split(',')
        if origin.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Movie catalog (TMDB). Without a key the provider serves fallback data.
    TMDB_API_KEY = os.environ.get('TMDB_API_KEY')
    TMDB_BASE_URL = os.environ.get('TMDB_BASE_URL', 'https://api.themoviedb.org/3')
    TMDB_IMAGE_BASE_URL = os.environ.get('TMDB_IMAGE_BASE_URL', 'https://image.tmdb.org/t/p/w500')
    TMDB_TIMEOUT_SEC = float(os.environ.get('TMDB_TIMEOUT_SEC', '5'))
    # Upper bound on cached catalog responses (search queries are client-chosen)
    TMDB_CACHE_SIZE = int(os.environ.get('TMDB_CACHE_SIZE', '128'))
    # Candidates fetched per lobby, and how many of them are sampled into it
    MOVIE_POOL_SIZE = int(os.environ.get('MOVIE_POOL_SIZE', '25'))
    MOVIES_PER_LOBBY = int(os.environ.get('MOVIES_PER_LOBBY', '9'))
    # Per-round vote budget; passes are unlimited
    DEFAULT_UPVOTES = int(os.environ.get('DEFAULT_UPVOTES', '3'))
    DEFAULT_DOWNVOTES = int(os.environ.get('DEFAULT_DOWNVOTES', '3'))
    MIN_CUSTOM_MOVIES = int(os.environ.get('MIN_CUSTOM_MOVIES', '2'))
    MAX_PLAYER_NAME_LENGTH = int(os.environ.get('MAX_PLAYER_NAME_LENGTH', '32'))

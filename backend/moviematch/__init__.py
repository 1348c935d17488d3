import logging

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from config import Config

# Events from one connection run in receive order
socketio = SocketIO(async_mode=None, async_handlers=False)


def _configure_logging(flask_app):
    level = getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    flask_app.logger.setLevel(level)


def create_app(config_class=Config, movie_provider=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    _configure_logging(flask_app)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Game state lives for the lifetime of this app instance
    from moviematch.registry import GameRegistry
    from moviematch.services.movies import MovieProvider
    flask_app.extensions['moviematch.registry'] = GameRegistry(
        upvotes=flask_app.config.get('DEFAULT_UPVOTES', 3),
        downvotes=flask_app.config.get('DEFAULT_DOWNVOTES', 3),
    )
    flask_app.extensions['moviematch.provider'] = movie_provider or MovieProvider.from_config(flask_app.config)

    from moviematch.api.lobbies import lobbies
    flask_app.register_blueprint(lobbies, url_prefix='/api')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from moviematch.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE'))

    @click.command('fetch-movies')
    @click.argument('topic', default='popular')
    @click.option('--count', default=10, show_default=True, help='Number of movies to fetch.')
    def fetch_movies_command(topic, count):
        """Print the movies the catalog returns for TOPIC."""
        provider = flask_app.extensions['moviematch.provider']
        for movie in provider.fetch_candidates(topic, count):
            click.echo(f"{movie.id:>4}  {movie.title} ({movie.release_year or '?'})  "
                       f"rating={movie.rating} runtime={movie.duration}m")

    flask_app.cli.add_command(fetch_movies_command)

    return flask_app

from flask import Blueprint, current_app, jsonify

from moviematch.services import rounds
from moviematch.services.movies import SEARCH_PREFIX, list_topics

lobbies = Blueprint('lobbies', __name__)


def _registry():
    return current_app.extensions['moviematch.registry']


@lobbies.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok', 'lobbies': len(_registry().lobbies)}), 200


@lobbies.route('/topics', methods=['GET'])
def topics():
    """
    Returns the catalog topics a lobby can be created with.
    Free-text search is available as `search:<query>`.
    """
    return jsonify({'topics': list_topics(), 'searchPrefix': SEARCH_PREFIX}), 200


@lobbies.route('/lobbies/<string:lobby_id>', methods=['GET'])
def get_lobby(lobby_id):
    """
    Returns a read-only snapshot of a live lobby.
    """
    registry = _registry()
    lobby = registry.lobbies.get(lobby_id.upper())
    if lobby is None:
        return jsonify({'error': 'Lobby not found'}), 404

    with lobby.lock:
        response = lobby.to_dict()
        response['players'] = rounds.player_statuses(registry, lobby)
    return jsonify(response), 200

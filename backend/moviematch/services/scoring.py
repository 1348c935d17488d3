from collections import Counter
from typing import Dict, Mapping

from moviematch.models import Lobby, VOTE_DOWN, VOTE_PASS, VOTE_UP


def tally(movie_votes: Mapping[str, str]) -> Dict[str, int]:
    """Count up/down/pass values in a playerId -> voteType mapping."""
    counts = Counter(movie_votes.values())
    return {
        'up': counts.get(VOTE_UP, 0),
        'down': counts.get(VOTE_DOWN, 0),
        'pass': counts.get(VOTE_PASS, 0),
    }


def compute_results(lobby: Lobby) -> dict:
    """Build the `round:complete` payload for a lobby.

    Every movie in the lobby is scored (up - down; passes do not count),
    including movies nobody voted on. Movies are ordered by score,
    highest first; equal scores keep the lobby's movie order.
    """
    results = []
    for movie in lobby.movies:
        counts = tally(lobby.votes.get(movie.id, {}))
        entry = movie.to_dict()
        entry['votes'] = counts
        entry['score'] = counts['up'] - counts['down']
        results.append(entry)
    # sorted() is stable, also with reverse=True
    results = sorted(results, key=lambda r: r['score'], reverse=True)
    return {
        'results': results,
        'votes': {movie_id: dict(by_player) for movie_id, by_player in lobby.votes.items()},
    }

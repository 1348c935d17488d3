import threading
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional

# Lobby game states
WAITING = 'waiting'
IN_PROGRESS = 'in_progress'
COMPLETED = 'completed'

# Vote values
VOTE_UP = 'up'
VOTE_DOWN = 'down'
VOTE_PASS = 'pass'
VOTE_TYPES = (VOTE_UP, VOTE_DOWN, VOTE_PASS)


@dataclass(frozen=True)
class Movie:
    """A catalog candidate. `id` is a local ordinal (m1, m2, ...) unique within a lobby."""
    id: str
    title: str
    image_url: Optional[str] = None
    release_year: str = ''
    rating: float = 0
    duration: int = 0
    description: str = ''
    tmdb_id: Optional[int] = None

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'imageUrl': self.image_url,
            'releaseYear': self.release_year,
            'rating': self.rating,
            'duration': self.duration,
            'description': self.description,
            'tmdbId': self.tmdb_id,
        }


@dataclass
class VoteBudget:
    upvotes: int = 3
    downvotes: int = 3

    def remaining(self, vote_type: str) -> Optional[int]:
        """Remaining count for a budgeted vote type, None for unbudgeted ones."""
        if vote_type == VOTE_UP:
            return self.upvotes
        if vote_type == VOTE_DOWN:
            return self.downvotes
        return None

    def spend(self, vote_type: str) -> None:
        if vote_type == VOTE_UP:
            self.upvotes -= 1
        elif vote_type == VOTE_DOWN:
            self.downvotes -= 1

    def to_dict(self):
        return asdict(self)


@dataclass
class Player:
    id: str
    name: str
    lobby_id: Optional[str] = None
    has_voted: bool = False
    is_ready: bool = False
    votes_remaining: VoteBudget = field(default_factory=VoteBudget)


@dataclass
class Lobby:
    id: str
    host_id: str
    topic: str
    movies: List[Movie]
    players: List[str] = field(default_factory=list)
    current_movie_index: int = 0
    votes: Dict[str, Dict[str, str]] = field(default_factory=dict)
    game_state: str = WAITING
    # Serializes every mutation of this lobby and its players
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def current_movie(self) -> Optional[Movie]:
        if 0 <= self.current_movie_index < len(self.movies):
            return self.movies[self.current_movie_index]
        return None

    def movie_payload(self):
        """Payload for `movie:new`."""
        return {
            'movie': self.current_movie.to_dict() if self.current_movie else None,
            'movieNumber': self.current_movie_index + 1,
            'totalMovies': len(self.movies),
        }

    def to_dict(self):
        return {
            'lobbyId': self.id,
            'hostId': self.host_id,
            'topic': self.topic,
            'gameState': self.game_state,
            'players': list(self.players),
            'movieNumber': self.current_movie_index + 1,
            'totalMovies': len(self.movies),
        }

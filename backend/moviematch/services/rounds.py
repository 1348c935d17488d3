"""Round engine: readiness, vote casting, advancement and round reset.

Every function works on an in-memory `Lobby` plus the `GameRegistry` that
owns its players, and performs no I/O. Callers hold `lobby.lock` for the
duration of a call and turn the returned `RoundUpdate` into events.

State machine:
    waiting --ready--> in_progress --all voted, more movies--> in_progress
    in_progress --all voted on last movie--> completed --ready--> waiting
"""
from dataclasses import dataclass
from typing import List, Optional

from moviematch.models import COMPLETED, IN_PROGRESS, VOTE_TYPES, WAITING, Lobby, Player
from moviematch.registry import GameRegistry
from .scoring import compute_results

# Reasons a request is ignored
UNKNOWN_PLAYER = 'unknown_player'
NOT_IN_PROGRESS = 'not_in_progress'
ALREADY_IN_PROGRESS = 'already_in_progress'
WRONG_MOVIE = 'wrong_movie'
ALREADY_VOTED = 'already_voted'
BUDGET_EXHAUSTED = 'budget_exhausted'
INVALID_VOTE = 'invalid_vote'
NO_MOVIES = 'no_movies'


@dataclass
class RoundUpdate:
    accepted: bool = True
    rejected_reason: Optional[str] = None
    started: bool = False
    advanced: bool = False
    completed: bool = False
    results: Optional[dict] = None

    @classmethod
    def rejected(cls, reason: str) -> 'RoundUpdate':
        return cls(accepted=False, rejected_reason=reason)

    @property
    def movie_changed(self) -> bool:
        return self.started or self.advanced


def player_statuses(registry: GameRegistry, lobby: Lobby) -> List[dict]:
    """Payload for `players:status`, in join order."""
    return [
        {
            'id': p.id,
            'name': p.name,
            'hasVoted': p.has_voted,
            'isReady': p.is_ready,
            'isHost': p.id == lobby.host_id,
        }
        for p in registry.players_of(lobby)
    ]


def all_voted(registry: GameRegistry, lobby: Lobby) -> bool:
    return all(p.has_voted for p in registry.players_of(lobby))


def all_ready(registry: GameRegistry, lobby: Lobby) -> bool:
    return all(p.is_ready for p in registry.players_of(lobby))


def reset_round(registry: GameRegistry, lobby: Lobby) -> None:
    """Put a lobby back to `waiting` with fresh votes and budgets."""
    lobby.current_movie_index = 0
    lobby.votes = {}
    lobby.game_state = WAITING
    for player in registry.players_of(lobby):
        player.has_voted = False
        player.is_ready = False
        player.votes_remaining = registry.new_budget()


def start_round(registry: GameRegistry, lobby: Lobby) -> RoundUpdate:
    if lobby.game_state == IN_PROGRESS:
        return RoundUpdate.rejected(ALREADY_IN_PROGRESS)
    if not lobby.movies:
        return RoundUpdate.rejected(NO_MOVIES)
    lobby.game_state = IN_PROGRESS
    lobby.current_movie_index = 0
    for player in registry.players_of(lobby):
        player.has_voted = False
        player.is_ready = False
    return RoundUpdate(started=True)


def mark_ready(registry: GameRegistry, lobby: Lobby, player: Player) -> RoundUpdate:
    """Handle a ready signal from `player`.

    A finished lobby is reset first. The round starts when the host is
    ready or when every joined player is.
    """
    if player.lobby_id != lobby.id or player.id not in lobby.players:
        return RoundUpdate.rejected(UNKNOWN_PLAYER)
    if lobby.game_state == IN_PROGRESS:
        return RoundUpdate.rejected(ALREADY_IN_PROGRESS)
    if lobby.game_state == COMPLETED:
        reset_round(registry, lobby)
    player.is_ready = True
    if player.id == lobby.host_id or all_ready(registry, lobby):
        return start_round(registry, lobby)
    return RoundUpdate()


def settle(registry: GameRegistry, lobby: Lobby) -> RoundUpdate:
    """Advance or finish the round if every joined player has voted."""
    if lobby.game_state != IN_PROGRESS or not all_voted(registry, lobby):
        return RoundUpdate()
    if lobby.current_movie_index < len(lobby.movies) - 1:
        lobby.current_movie_index += 1
        # Budgets carry over between movies; only the voted flag resets
        for player in registry.players_of(lobby):
            player.has_voted = False
        return RoundUpdate(advanced=True)
    lobby.game_state = COMPLETED
    return RoundUpdate(completed=True, results=compute_results(lobby))


def cast_vote(registry: GameRegistry, lobby: Lobby, player: Optional[Player],
              movie_id: str, vote_type: str) -> RoundUpdate:
    if player is None or player.lobby_id != lobby.id or player.id not in lobby.players:
        return RoundUpdate.rejected(UNKNOWN_PLAYER)
    if lobby.game_state != IN_PROGRESS:
        return RoundUpdate.rejected(NOT_IN_PROGRESS)
    if vote_type not in VOTE_TYPES:
        return RoundUpdate.rejected(INVALID_VOTE)
    current = lobby.current_movie
    if current is None or movie_id != current.id:
        return RoundUpdate.rejected(WRONG_MOVIE)
    movie_votes = lobby.votes.get(movie_id, {})
    if player.has_voted or player.id in movie_votes:
        return RoundUpdate.rejected(ALREADY_VOTED)
    remaining = player.votes_remaining.remaining(vote_type)
    if remaining is not None and remaining <= 0:
        return RoundUpdate.rejected(BUDGET_EXHAUSTED)

    lobby.votes.setdefault(movie_id, {})[player.id] = vote_type
    player.votes_remaining.spend(vote_type)
    player.has_voted = True
    return settle(registry, lobby)


def handle_departure(registry: GameRegistry, player_id: str) -> tuple:
    """Remove a player and repair the round they leave behind.

    Returns `(lobby, update)`; `lobby` is None when the player was not in
    a lobby or the lobby was destroyed because it became empty. A waiting
    lobby whose remaining players are all ready starts its round.
    """
    lobby = registry.remove_player(player_id)
    if lobby is None:
        return None, RoundUpdate()
    if lobby.game_state == WAITING and all_ready(registry, lobby):
        return lobby, start_round(registry, lobby)
    return lobby, settle(registry, lobby)

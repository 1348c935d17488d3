"""In-memory registries for players, lobbies and broadcast channels.

One `GameRegistry` is built per application in `create_app` and stored on
`app.extensions`. Every operation that touches game state receives it
explicitly; nothing here is a module-level singleton.
"""
import random
import threading
from typing import Dict, Iterator, List, Optional, Set

from .errors import RegistryError
from .models import Lobby, Movie, Player, VoteBudget

# No 0/O or 1/I
LOBBY_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
LOBBY_CODE_LENGTH = 6


def generate_lobby_code(is_taken, length=LOBBY_CODE_LENGTH, rng=random):
    """Generate a short shareable code that `is_taken` reports as free."""
    while True:
        code = ''.join(rng.choices(LOBBY_CODE_ALPHABET, k=length))
        if not is_taken(code):
            return code


class SessionRegistry:
    """Connection id -> Player. A player lives exactly as long as its connection."""

    def __init__(self):
        self._players: Dict[str, Player] = {}

    def create_player(self, player_id: str, name: str, lobby_id: str, budget: VoteBudget) -> Player:
        if player_id in self._players:
            raise RegistryError(f"player {player_id} already registered")
        player = Player(id=player_id, name=name, lobby_id=lobby_id, votes_remaining=budget)
        self._players[player_id] = player
        return player

    def get(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def remove(self, player_id: str) -> Optional[Player]:
        return self._players.pop(player_id, None)

    def __contains__(self, player_id):
        return player_id in self._players

    def __len__(self):
        return len(self._players)


class LobbyRegistry:
    """Lobby code -> Lobby. The authoritative container for game state."""

    def __init__(self, rng=random):
        self._lobbies: Dict[str, Lobby] = {}
        self._rng = rng

    def generate_code(self) -> str:
        return generate_lobby_code(lambda code: code in self._lobbies, rng=self._rng)

    def create_lobby(self, host_player_id: str, topic: str, movies: List[Movie]) -> Lobby:
        code = self.generate_code()
        lobby = Lobby(id=code, host_id=host_player_id, topic=topic, movies=list(movies),
                      players=[host_player_id])
        self._lobbies[code] = lobby
        return lobby

    def get(self, lobby_id: Optional[str]) -> Optional[Lobby]:
        if not lobby_id:
            return None
        return self._lobbies.get(lobby_id)

    def is_live(self, lobby: Lobby) -> bool:
        return self._lobbies.get(lobby.id) is lobby

    def destroy_lobby(self, lobby_id: str) -> None:
        lobby = self._lobbies.get(lobby_id)
        if lobby is None:
            return
        if lobby.players:
            raise RegistryError(f"lobby {lobby_id} still has {len(lobby.players)} player(s)")
        del self._lobbies[lobby_id]

    def __iter__(self) -> Iterator[Lobby]:
        return iter(list(self._lobbies.values()))

    def __contains__(self, lobby_id):
        return lobby_id in self._lobbies

    def __len__(self):
        return len(self._lobbies)


class GameRegistry:
    """Process-wide game state: sessions, lobbies and lobby channels.

    `lock` guards the registry dictionaries themselves (creating and
    destroying lobbies, adding and removing players). Per-lobby state is
    guarded by `Lobby.lock`; when both are needed take the lobby lock first.
    """

    def __init__(self, upvotes=3, downvotes=3, rng=random):
        self.sessions = SessionRegistry()
        self.lobbies = LobbyRegistry(rng=rng)
        self.channels: Dict[str, Set[str]] = {}
        self.default_upvotes = upvotes
        self.default_downvotes = downvotes
        self.lock = threading.RLock()

    def new_budget(self) -> VoteBudget:
        return VoteBudget(upvotes=self.default_upvotes, downvotes=self.default_downvotes)

    def players_of(self, lobby: Lobby) -> List[Player]:
        """Players currently joined to `lobby`, in join order."""
        players = []
        for player_id in lobby.players:
            player = self.sessions.get(player_id)
            if player is not None:
                players.append(player)
        return players

    def create_lobby(self, host_id: str, host_name: str, topic: str, movies: List[Movie]) -> Lobby:
        with self.lock:
            if host_id in self.sessions:
                raise RegistryError(f"player {host_id} already registered")
            lobby = self.lobbies.create_lobby(host_id, topic, movies)
            self.sessions.create_player(host_id, host_name, lobby.id, self.new_budget())
            self.join_channel(lobby.id, host_id)
            return lobby

    def add_player(self, lobby: Lobby, player_id: str, name: str) -> Player:
        with self.lock:
            if not self.lobbies.is_live(lobby):
                raise RegistryError(f"lobby {lobby.id} is no longer live")
            player = self.sessions.create_player(player_id, name, lobby.id, self.new_budget())
            lobby.players.append(player_id)
            self.join_channel(lobby.id, player_id)
            return player

    def remove_player(self, player_id: str) -> Optional[Lobby]:
        """Drop a player everywhere. Returns the lobby they left, if it is still live.

        Reassigns the host to the first remaining player and destroys the
        lobby once it is empty.
        """
        with self.lock:
            player = self.sessions.remove(player_id)
            if player is None:
                return None
            lobby = self.lobbies.get(player.lobby_id)
            if lobby is None:
                return None
            if player_id in lobby.players:
                lobby.players.remove(player_id)
            self.leave_channel(lobby.id, player_id)
            if not lobby.players:
                self.lobbies.destroy_lobby(lobby.id)
                self.channels.pop(lobby.id, None)
                return None
            if lobby.host_id == player_id:
                lobby.host_id = lobby.players[0]
            return lobby

    # ---- Broadcast channels ----

    def join_channel(self, lobby_id: str, sid: str) -> None:
        self.channels.setdefault(lobby_id, set()).add(sid)

    def leave_channel(self, lobby_id: str, sid: str) -> None:
        members = self.channels.get(lobby_id)
        if members is not None:
            members.discard(sid)

    def channel_members(self, lobby_id: str) -> List[str]:
        """Live connection ids for a lobby channel. Stale ids are dropped."""
        with self.lock:
            members = self.channels.get(lobby_id, set())
            stale = {sid for sid in members if sid not in self.sessions}
            members -= stale
            return sorted(members)

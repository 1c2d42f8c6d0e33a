from __future__ import annotations

import io
import json
import os
import threading
from typing import IO, List, Optional

from pydantic import TypeAdapter, ValidationError

from players.player_models import League, Player


EMPTY_LEAGUE = "[]"

_league_adapter = TypeAdapter(List[Player])


class StoreError(Exception):
    """Base class for player store failures."""


class LoadError(StoreError):
    """The db file content is not a JSON array of players."""


class StatError(StoreError):
    """The db file metadata could not be read."""


class PersistenceError(StoreError):
    """A snapshot could not be written back to the db file."""


def _handle_name(handle: IO[str]) -> str:
    return str(getattr(handle, "name", "<stream>"))


def open_player_db(path: str) -> IO[str]:
    """Open ``path`` read/write, creating it if needed and keeping its content."""
    parent = os.path.dirname(path)
    try:
        if parent:
            os.makedirs(parent, exist_ok=True)
        fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o666)
        return os.fdopen(fd, "r+", encoding="utf-8")
    except OSError as exc:
        raise StoreError(f"problem opening {path}: {exc}") from exc


def load_league(text: str, source: str = "<stream>") -> League:
    try:
        players = _league_adapter.validate_json(text)
    except ValidationError as exc:
        raise LoadError(f"problem parsing league from {source}: {exc}") from exc
    return League(players)


def _handle_size(handle: IO[str]) -> int:
    """Size of the db file, leaving the handle rewound to the start."""
    try:
        handle.seek(0)
        try:
            return os.fstat(handle.fileno()).st_size
        except io.UnsupportedOperation:
            # In-memory streams have no descriptor; measure by seeking.
            size = handle.seek(0, io.SEEK_END)
            handle.seek(0)
            return size
    except (OSError, ValueError) as exc:
        # ValueError covers handles that are already closed.
        raise StatError(
            f"problem getting file info from file {_handle_name(handle)}: {exc}"
        ) from exc


def initialise_player_db_file(handle: IO[str]) -> None:
    """Make sure ``handle`` holds a league, writing ``[]`` into an empty file."""
    if _handle_size(handle) == 0:
        handle.write(EMPTY_LEAGUE)
        handle.flush()
        handle.seek(0)


class _Tape:
    """Writes each snapshot over the whole file.

    The handle is rewound and truncated before every write so the file only
    ever holds the latest snapshot.
    """

    def __init__(self, handle: IO[str]):
        self.handle = handle

    def write(self, text: str) -> None:
        try:
            self.handle.seek(0)
            self.handle.truncate(0)
            self.handle.write(text)
            self.handle.flush()
            try:
                os.fsync(self.handle.fileno())
            except io.UnsupportedOperation:
                pass
        except (OSError, ValueError) as exc:
            raise PersistenceError(
                f"problem writing league to {_handle_name(self.handle)}: {exc}"
            ) from exc


class FileSystemPlayerStore:
    """Player store backed by a single JSON file.

    Reads are served from memory. Every mutation works on a copy of the
    league, rewrites the entire copy to the file, and only then replaces the
    in-memory league, so a failed write leaves the store unchanged. All
    operations hold the store lock, so a lookup, the mutation and the
    snapshot write happen as one step even when requests are served from
    several threads.
    """

    def __init__(self, handle: IO[str]):
        self._lock = threading.RLock()
        initialise_player_db_file(handle)
        self.league = load_league(handle.read(), _handle_name(handle))
        self.handle = handle
        self._database = _Tape(handle)

    def _commit(self, league: League) -> None:
        text = json.dumps(league.as_records(), indent=2)
        self._database.write(text + "\n")
        self.league = league

    def get_league(self) -> List[Player]:
        with self._lock:
            return self.league.sorted_by_wins()

    def get_player(self, name: str) -> Optional[Player]:
        with self._lock:
            player, _ = self.league.find(name)
            return player.model_copy() if player is not None else None

    def get_player_score(self, name: str) -> int:
        with self._lock:
            player, _ = self.league.find(name)
            if player is not None:
                return player.Wins
            return 0

    def record_win(self, name: str) -> None:
        with self._lock:
            league = self.league.copy()
            player, _ = league.find(name)
            if player is not None:
                player.Wins += 1
            else:
                league.append(Player(Name=name, Wins=1))
            self._commit(league)

    def record_new_player(self, player: Player) -> None:
        """Add ``player``, replacing any record with the same name."""
        with self._lock:
            league = self.league.copy()
            existing, idx = league.find(player.Name)
            if existing is not None:
                league.remove_at(idx)
            league.append(Player(Name=player.Name, Wins=player.Wins))
            self._commit(league)

    def delete_player(self, name: str) -> bool:
        """Remove ``name`` from the league. Returns False when it was absent."""
        with self._lock:
            league = self.league.copy()
            existing, idx = league.find(name)
            if existing is not None:
                league.remove_at(idx)
            self._commit(league)
            return existing is not None

    def close(self) -> None:
        with self._lock:
            if not self.handle.closed:
                self.handle.flush()
                self.handle.close()

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from players.player_models import Player
from server import create_app


LEAGUE_JSON = """[
    {"Name": "Cleo", "Wins": 10},
    {"Name": "Chris", "Wins": 33}]"""


@pytest.fixture
def create_temp_file(tmp_path):
    """Write ``initial_data`` to a db file and return it opened read/write."""
    handles = []

    def _create(initial_data: str, name: str = "db.json"):
        path = tmp_path / name
        path.write_text(initial_data, encoding="utf-8")
        handle = open(path, "r+", encoding="utf-8")
        handles.append(handle)
        return handle

    yield _create

    for handle in handles:
        if not handle.closed:
            handle.close()


class StubPlayerStore:
    def __init__(self, scores=None, league=None):
        self.scores = dict(scores or {})
        self.league = list(league or [])
        self.win_calls = []
        self.new_player_calls = []
        self.delete_calls = []

    def get_player(self, name):
        if name not in self.scores:
            return None
        return Player(Name=name, Wins=self.scores[name])

    def get_player_score(self, name):
        return self.scores.get(name, 0)

    def get_league(self):
        return self.league

    def record_win(self, name):
        self.win_calls.append(name)

    def record_new_player(self, player):
        self.new_player_calls.append(player.Name)

    def delete_player(self, name):
        self.delete_calls.append(name)
        return name in self.scores


@pytest.fixture
def stub_store():
    return StubPlayerStore(scores={"Pepper": 20, "Floyd": 10})


@pytest.fixture
def client(stub_store):
    return TestClient(create_app(stub_store))

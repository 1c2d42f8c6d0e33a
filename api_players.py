from __future__ import annotations

import os
from typing import List, Optional, Union

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Request
from fastapi.responses import PlainTextResponse

from players.player_models import Player
from players.player_store import PersistenceError


router = APIRouter(tags=["players"])

JSON_CONTENT_TYPE = "application/json"


def _log(event: str, data: dict) -> None:
    """One line per state-mutating request."""
    print(event, data)


def get_store(request: Request):
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Player store not ready")
    return store


def verify_key(x_api_key: Optional[str] = Header(None)) -> bool:
    api_key = os.getenv("PLAYER_API_KEY", "")
    if api_key and x_api_key != api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")
    return True


def _persistence_failed(exc: PersistenceError) -> HTTPException:
    print(f"❌ {exc}")
    return HTTPException(status_code=500, detail=f"Failed to save league: {exc}")


@router.get("/league", response_model=List[Player])
@router.get("/list", response_model=List[Player], include_in_schema=False)
def list_league(store=Depends(get_store)):
    return store.get_league()


@router.get("/store/{name}", response_class=PlainTextResponse)
def show_score(name: str, store=Depends(get_store)):
    # Absence decides the 404; an existing player with no wins scores 0.
    player = store.get_player(name)
    if player is None:
        return PlainTextResponse("404 Not Found", status_code=404)
    return PlainTextResponse(str(player.Wins))


@router.post("/store/{name}", status_code=202, response_class=PlainTextResponse)
def process_win(
    name: str,
    _: bool = Depends(verify_key),
    store=Depends(get_store),
):
    try:
        store.record_win(name)
    except PersistenceError as exc:
        raise _persistence_failed(exc)

    _log("🏆 RECORD_WIN", {"player": name})
    return PlainTextResponse("", status_code=202)


@router.put("/store/{name}", status_code=202, response_class=PlainTextResponse)
def process_new_player(
    name: str,
    payload: Union[List[Player], Player] = Body(...),
    _: bool = Depends(verify_key),
    store=Depends(get_store),
):
    # The body is authoritative; the path name only selects the route.
    players = payload if isinstance(payload, list) else [payload]
    try:
        for player in players:
            store.record_new_player(player)
    except PersistenceError as exc:
        raise _persistence_failed(exc)

    _log(
        "📥 RECORD_NEW_PLAYERS",
        {"path_name": name, "players": [p.Name for p in players]},
    )
    return PlainTextResponse("", status_code=202)


@router.delete("/store/{name}", status_code=202, response_class=PlainTextResponse)
def process_delete(
    name: str,
    _: bool = Depends(verify_key),
    store=Depends(get_store),
):
    try:
        found = store.delete_player(name)
    except PersistenceError as exc:
        raise _persistence_failed(exc)

    if found:
        _log("🗑️ DELETE_PLAYER", {"player": name})
    else:
        _log("⚠️ DELETE_PLAYER_NOT_FOUND", {"player": name})
    return PlainTextResponse("OK", status_code=202)

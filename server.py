import os
import sys

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse
import uvicorn

from api_auth import JsonCredentialStore, StaticCredentialStore, router as auth_router
from api_players import router as players_router
from players.player_store import FileSystemPlayerStore, StoreError, open_player_db


load_dotenv()

DB_FILE_NAME = os.getenv("PLAYER_DB_PATH", "game.db.json")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 5000))
CREDENTIALS_PATH = os.getenv("CREDENTIALS_PATH", "")


def create_app(store, credentials=None) -> FastAPI:
    app = FastAPI(title="Player League")
    app.state.store = store
    app.state.credentials = credentials or StaticCredentialStore()
    app.state.server = None

    @app.middleware("http")
    async def log_request(request: Request, call_next):
        client = request.client.host if request.client else "-"
        print(request.method, request.url, client)
        return await call_next(request)

    @app.get("/ping", response_class=PlainTextResponse)
    def ping():
        return "pong"

    @app.post("/shutdown", status_code=202, response_class=PlainTextResponse)
    def shutdown(request: Request):
        server = request.app.state.server
        if server is None:
            raise HTTPException(status_code=503, detail="Server not running")
        server.should_exit = True
        return PlainTextResponse("shutting down", status_code=202)

    app.include_router(players_router)
    app.include_router(auth_router)
    return app


def main() -> int:
    try:
        credentials = JsonCredentialStore(CREDENTIALS_PATH) if CREDENTIALS_PATH else None
    except (OSError, ValueError) as exc:
        print(f"❌ problem loading credentials from {CREDENTIALS_PATH}: {exc}")
        return 1

    try:
        db = open_player_db(DB_FILE_NAME)
    except StoreError as exc:
        print(f"❌ {exc}")
        return 1

    try:
        store = FileSystemPlayerStore(db)
    except StoreError as exc:
        db.close()
        print(f"❌ problem creating file system player store: {exc}")
        return 1

    app = create_app(store, credentials)

    config = uvicorn.Config(app, host=HOST, port=PORT)
    server = uvicorn.Server(config)
    app.state.server = server

    print(f"✅ Serving {len(store.get_league())} players from {DB_FILE_NAME} on {HOST}:{PORT}")
    try:
        server.run()
    finally:
        store.close()
        print("👋 Player db closed")
    return 0


if __name__ == "__main__":
    sys.exit(main())

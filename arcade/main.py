from __future__ import annotations

import asyncio
import logging
import random
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from common.config_manager import ConfigManager, get_config
from common.exceptions import ContractViolationError

from .game.controller import SessionController
from .game.models import SessionSnapshot
from .game.ports import HighScoreStore, Timer
from .game.storage import JsonHighScoreStore
from .game.timers import AsyncioTimer


class TapRequest(BaseModel):
    cell_id: int


def configure_logging(config: ConfigManager) -> None:
    log_level = getattr(logging, str(config.get("logging.level", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )


def serialize_snapshot(snapshot: SessionSnapshot) -> Dict[str, object]:
    return {
        "status": snapshot.status.value,
        "score": snapshot.score,
        "misses": snapshot.misses,
        "max_misses": snapshot.max_misses,
        "ended": snapshot.ended,
        "high_score": snapshot.high_score,
        "current_delay_ms": snapshot.current_delay,
        "active_cell": snapshot.board.active_id,
        "cells": [
            {
                "id": cell.id,
                "active": cell.active,
                "category": cell.category.value,
                "points": cell.category.points,
            }
            for cell in snapshot.board.cells
        ],
    }


def create_app(
    config: Optional[ConfigManager] = None,
    timer: Optional[Timer] = None,
    store: Optional[HighScoreStore] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """
    Build the web adapter. The controller is created when the app starts, so
    the default AsyncioTimer binds to the server's running loop.
    """
    config = config or get_config()
    configure_logging(config)
    session_config = config.session_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        controller = SessionController(
            session_config,
            timer or AsyncioTimer(),
            store or JsonHighScoreStore(config.get("storage.high_score_file", "data/high_score.json")),
            rng,
        )
        app.state.controller = controller
        try:
            yield
        finally:
            controller.teardown()

    app = FastAPI(title="Tap Arcade", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def controller_for(request: Request) -> SessionController:
        return request.app.state.controller

    @app.get("/api/session")
    async def session_state(request: Request):
        return serialize_snapshot(controller_for(request).snapshot())

    @app.post("/api/session/tap")
    async def tap_cell(payload: TapRequest, request: Request):
        controller = controller_for(request)
        try:
            controller.on_cell_tapped(payload.cell_id)
        except ContractViolationError as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        return serialize_snapshot(controller.snapshot())

    @app.post("/api/session/reset")
    async def reset_session(request: Request):
        controller = controller_for(request)
        try:
            controller.reset()
        except ContractViolationError as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        return serialize_snapshot(controller.snapshot())

    @app.get("/api/high-score")
    async def high_score(request: Request):
        return {"high_score": controller_for(request).high_score}

    @app.delete("/api/high-score")
    async def clear_high_score(request: Request):
        controller = controller_for(request)
        controller.clear_high_score()
        return {"high_score": controller.high_score}

    @app.websocket("/ws/session")
    async def session_ws(websocket: WebSocket):
        controller: SessionController = websocket.app.state.controller
        await websocket.accept()
        outbox: "asyncio.Queue[Dict[str, object]]" = asyncio.Queue()

        def on_transition(snapshot: SessionSnapshot) -> None:
            outbox.put_nowait({"type": "session_state", "payload": serialize_snapshot(snapshot)})

        async def pump() -> None:
            while True:
                message = await outbox.get()
                await websocket.send_json(message)

        unsubscribe = controller.subscribe(on_transition)
        on_transition(controller.snapshot())
        sender = asyncio.create_task(pump())
        try:
            while True:
                data = await websocket.receive_json()
                msg_type = data.get("type") if isinstance(data, dict) else None
                try:
                    if msg_type == "tap":
                        payload = data.get("payload") or {}
                        cell_id = payload.get("cell_id") if isinstance(payload, dict) else None
                        if not isinstance(cell_id, int):
                            raise ValueError("cell_id must be an integer")
                        controller.on_cell_tapped(cell_id)
                    elif msg_type == "reset":
                        controller.reset()
                    else:
                        raise ValueError("Unknown message type")
                except (ContractViolationError, ValueError) as exc:
                    outbox.put_nowait({"type": "error", "payload": {"message": str(exc)}})
        except WebSocketDisconnect:
            logging.debug("Session websocket disconnected")
        finally:
            unsubscribe()
            sender.cancel()

    return app


app = create_app()

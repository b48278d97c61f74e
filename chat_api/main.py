# chat_api/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import CORS_ORIGINS, LOG_LEVEL
from .database import init_db, make_engine
from .errors import ChatError, Unauthorized
from .models import MessageBody, ParticipantCreate
from .room import ChatRoom

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    engine = make_engine()
    await init_db(engine)

    room = ChatRoom(engine)
    app.state.room = room
    room.tracker.start()

    yield

    await room.tracker.stop()
    await engine.dispose()


app = FastAPI(title="chat-api", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def get_room(request: Request) -> ChatRoom:
    return request.app.state.room


@app.get("/participants")
async def list_participants(room: ChatRoom = Depends(get_room)):
    return [p.to_public() for p in await room.registry.list()]


@app.post("/participants", status_code=201)
async def join(body: ParticipantCreate, room: ChatRoom = Depends(get_room)):
    participant = await room.registry.join(body.name)
    return participant.to_public()


@app.get("/messages")
async def list_messages(
    limit: Optional[int] = Query(default=None),
    user: Optional[str] = Header(default=None),
    room: ChatRoom = Depends(get_room),
):
    messages = await room.router.list_visible(user, limit=limit)
    return [m.to_public() for m in messages]


@app.post("/messages", status_code=201)
async def send_message(
    body: MessageBody,
    user: Optional[str] = Header(default=None),
    room: ChatRoom = Depends(get_room),
):
    try:
        message_id = await room.router.send(user, body.to, body.text, body.type)
    except Unauthorized as e:
        # unknown senders are reported like any other bad message
        raise HTTPException(status_code=422, detail=e.detail)
    return {"id": message_id}


@app.post("/status")
async def refresh_status(
    user: Optional[str] = Header(default=None),
    room: ChatRoom = Depends(get_room),
):
    await room.registry.refresh(user)
    return {"ok": True}


@app.delete("/messages/{message_id}")
async def delete_message(
    message_id: str,
    user: Optional[str] = Header(default=None),
    room: ChatRoom = Depends(get_room),
):
    await room.router.delete(message_id, user)
    return {"ok": True}


@app.put("/messages/{message_id}")
async def update_message(
    message_id: str,
    body: MessageBody,
    user: Optional[str] = Header(default=None),
    room: ChatRoom = Depends(get_room),
):
    await room.router.update(message_id, user, body.to, body.text, body.type)
    return {"ok": True}

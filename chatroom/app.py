import logging
from typing import Optional

from fastapi import FastAPI, Header, Query
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from .models import JOIN_TEXT, Message, MessageIn, Participant, ParticipantIn, now_ms, status_message
from .settings import Settings, get_settings
from .store import ChatStore, DuplicateParticipantError, MongoChatStore
from .sweeper import PresenceSweeper
from .validation import validation_exception_handler

logger = logging.getLogger(__name__)


def store_failure(e: Exception) -> PlainTextResponse:
    logger.exception('[SERVER] store operation failed: %s', e)
    return PlainTextResponse(str(e), status_code=500)


def create_app(store: Optional[ChatStore] = None, settings: Optional[Settings] = None,
               run_sweeper: bool = True) -> FastAPI:
    """Build the chat-room API.

    ``store`` defaults to a MongoChatStore created on startup from ``settings``;
    tests inject an in-memory one and usually pass ``run_sweeper=False``.
    """
    settings = settings or get_settings()
    app = FastAPI(title='Chat room backend')
    app.state.settings = settings
    app.state.store = store
    app.state.sweeper = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials='*' not in settings.cors_origins,
        allow_methods=['*'],
        allow_headers=['*'],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.on_event('startup')
    async def startup_event():
        if app.state.store is None:
            app.state.store = MongoChatStore(settings.database_url, settings.database_name)
        try:
            await app.state.store.connect()
        except Exception as e:
            # requests will fail with 500 until the store becomes reachable
            logger.error('[SERVER] could not connect to MongoDB: %s', e)
        if run_sweeper:
            app.state.sweeper = PresenceSweeper(app.state.store, settings.sweep_interval, settings.stale_after)
            app.state.sweeper.start()
        logger.info('[SERVER] running on port %s', settings.port)

    @app.on_event('shutdown')
    async def shutdown_event():
        if app.state.sweeper is not None:
            await app.state.sweeper.stop()
        if app.state.store is not None:
            await app.state.store.close()

    @app.get('/')
    async def index():
        return HTMLResponse('<h3>Chat room backend running. See /participants and /messages</h3>')

    @app.post('/participants', status_code=201)
    async def register_participant(participant: ParticipantIn):
        db = app.state.store
        name = participant.name
        try:
            if await db.find_participant(name):
                return Response(status_code=409)
            await db.insert_participant(Participant(name=name).to_document())
            await db.insert_message(status_message(name, JOIN_TEXT).to_document())
        except DuplicateParticipantError:
            # lost a concurrent registration race on the unique index
            return Response(status_code=409)
        except Exception as e:
            return store_failure(e)
        logger.info('[SERVER] %s joined', name)
        return Response(status_code=201)

    @app.get('/participants')
    async def list_participants():
        try:
            return await app.state.store.list_participants()
        except Exception as e:
            return store_failure(e)

    @app.post('/messages', status_code=201)
    async def post_message(message: MessageIn, user: str = Header(...)):
        db = app.state.store
        try:
            if not await db.find_participant(user):
                return Response(status_code=422)
            doc = Message(**{'from': user, 'to': message.to, 'text': message.text, 'type': message.type})
            await db.insert_message(doc.to_document())
        except Exception as e:
            return store_failure(e)
        logger.debug('[SERVER] message from=%s to=%s type=%s', user, message.to, message.type)
        return Response(status_code=201)

    @app.get('/messages')
    async def list_messages(user: str = Header(...), limit: Optional[int] = Query(None, gt=0)):
        try:
            return await app.state.store.list_messages(user, limit)
        except Exception as e:
            return store_failure(e)

    @app.post('/status')
    async def heartbeat(user: Optional[str] = Header(None)):
        if not user:
            return Response(status_code=404)
        db = app.state.store
        try:
            if not await db.find_participant(user):
                return Response(status_code=422)
            matched = await db.touch_participant(user, now_ms())
        except Exception as e:
            return store_failure(e)
        if not matched:
            # evicted between the lookup and the update
            return Response(status_code=404)
        return Response(status_code=200)

    return app


app = create_app()

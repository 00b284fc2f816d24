from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Optional

import socketio
from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from . import config
from .db import init_db, make_engine, make_session_factory
from .dictionary import DictionaryService, DictionaryUnavailableError, MissingLettersError
from .managers.seeding import SeedFileMissingError, SeedInProgressError, SeedManager
from .schemas import ErrorPayload, SeedRequest, ValidateRequest
from .seed import IngestionError

logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
logger = logging.getLogger(__name__)

engine = make_engine(config.DATABASE_URL)
session_factory = make_session_factory(engine)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(engine)
    logger.info('Seed file: %s', config.SEED_FILE)
    yield
    engine.dispose()

# Socket.IO server (ASGI)
sio = socketio.AsyncServer(
    async_mode='asgi',
    cors_allowed_origins='*' if config.CORS_ORIGINS == ['*'] else config.CORS_ORIGINS,
)
app = FastAPI(title="Word Check Server", version="0.1.0", lifespan=lifespan)

# Mount Socket.IO ASGI application
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)

# CORS for REST
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

dict_service = DictionaryService(session_factory)
seeding = SeedManager(sio, session_factory, config.SEED_FILE)

def get_dictionary() -> DictionaryService:
    return dict_service

def get_seed_manager() -> SeedManager:
    return seeding

# Errors -> JSON payloads
def _error(status: int, message: str, start_batch: Optional[int] = None) -> JSONResponse:
    payload = ErrorPayload(error=message, startBatch=start_batch)
    return JSONResponse(payload.model_dump(exclude_none=True), status_code=status)

@app.exception_handler(MissingLettersError)
async def missing_letters_handler(request: Request, exc: MissingLettersError):
    return _error(400, str(exc))

@app.exception_handler(DictionaryUnavailableError)
async def dictionary_unavailable_handler(request: Request, exc: DictionaryUnavailableError):
    return _error(503, f'dictionary unavailable: {exc}')

@app.exception_handler(IngestionError)
async def ingestion_error_handler(request: Request, exc: IngestionError):
    return _error(500, str(exc), exc.start_batch)

@app.exception_handler(SeedInProgressError)
async def seed_in_progress_handler(request: Request, exc: SeedInProgressError):
    return _error(409, str(exc))

@app.exception_handler(SeedFileMissingError)
async def seed_file_missing_handler(request: Request, exc: SeedFileMissingError):
    return _error(500, str(exc))

# REST Endpoints
@app.post('/db/seed')
async def seed_dictionary(req: Optional[SeedRequest] = None, manager: SeedManager = Depends(get_seed_manager)):
    req = req or SeedRequest()
    result = await manager.run(req.batchSize, req.startBatch)
    return result.model_dump()

@app.get('/db/seed/status')
async def seed_status(
    manager: SeedManager = Depends(get_seed_manager),
    dictionary: DictionaryService = Depends(get_dictionary),
):
    size = await run_in_threadpool(dictionary.count)
    return manager.get_status(size).model_dump()

# Dictionary validation REST endpoint
@app.get('/dict/validate')
async def validate_word(word: str, letters: Optional[str] = None, dictionary: DictionaryService = Depends(get_dictionary)):
    if not letters:
        raise MissingLettersError('letters parameter is required')
    result = await run_in_threadpool(dictionary.validate, word, letters)
    return result.model_dump()

# Socket.IO Events
@sio.on('dict:validate')
async def dict_validate(sid, payload):
    try:
        req = ValidateRequest.model_validate(payload)
        result = await run_in_threadpool(get_dictionary().validate, req.word, req.letters)
    except (ValidationError, MissingLettersError, DictionaryUnavailableError) as exc:
        await sio.emit('dict:error', {'error': str(exc)}, to=sid)
        return
    await sio.emit('dict:validated', result.model_dump(), to=sid)

# Export ASGI app for uvicorn
application = asgi_app

# For local running: uvicorn app.main:application --reload --host 0.0.0.0 --port 8000

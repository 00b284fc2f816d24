from __future__ import annotations
import asyncio
import logging
from pathlib import Path
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import sessionmaker

from ..schemas import SeedProgress, SeedResult, SeedStatus
from ..seed import IngestionError, Seeder

logger = logging.getLogger(__name__)


class SeedInProgressError(RuntimeError):
    pass


class SeedFileMissingError(RuntimeError):
    pass


class SeedManager:
    """Runs one seed job at a time and broadcasts its progress over Socket.IO."""

    def __init__(self, sio, session_factory: sessionmaker, seed_file: Path | str):
        self.sio = sio
        self.session_factory = session_factory
        self.seed_file = Path(seed_file)
        self.status = SeedStatus()
        self._lock = asyncio.Lock()

    def _progress_callback(self, loop: asyncio.AbstractEventLoop):
        # called from the worker thread running the ingestion
        def on_progress(event: str, batch: int, size: int):
            if event == 'finish':
                self.status.lastBatch = batch
                self.status.committedBatches += 1
                self.status.committedWords += size
            payload = SeedProgress(event=event, batch=batch, size=size).model_dump()
            asyncio.run_coroutine_threadsafe(self.sio.emit('seed:progress', payload), loop).result()
        return on_progress

    async def _fail(self, message: str, start_batch: Optional[int]):
        self.status.error = message
        self.status.startBatch = start_batch
        await self.sio.emit('seed:failed', {'error': message, 'startBatch': start_batch})

    async def run(self, batch_size: int, start_batch: int = 0) -> SeedResult:
        if self._lock.locked():
            raise SeedInProgressError('a seed is already running')
        async with self._lock:
            self.status = SeedStatus(running=True)
            seeder = Seeder(self.session_factory, on_progress=self._progress_callback(asyncio.get_running_loop()))
            try:
                report = await run_in_threadpool(seeder.ingest_file, self.seed_file, batch_size, start_batch)
            except IngestionError as exc:
                await self._fail(str(exc), exc.start_batch)
                raise
            except FileNotFoundError as exc:
                await self._fail(f'word list not found: {exc}', None)
                raise SeedFileMissingError(f'word list not found: {exc}') from exc
            except Exception as exc:
                last = self.status.lastBatch
                resume_at = start_batch if last is None else last + 1
                logger.exception('Seed of %s failed', self.seed_file)
                await self._fail(f'{exc.__class__.__name__}: {exc}', resume_at)
                raise IngestionError(self.status.error, start_batch=resume_at,
                                     committed_batches=self.status.committedBatches) from exc
            finally:
                self.status.running = False

        logger.info('Seed of %s finished: %s words in %s batches', self.seed_file, report.words, report.batches)
        return SeedResult(
            message=f'Seed completed in {report.elapsedMs} ms',
            elapsedMs=report.elapsedMs,
            batches=report.batches,
            words=report.words,
            skippedLines=report.skippedLines,
        )

    def get_status(self, dictionary_size: Optional[int] = None) -> SeedStatus:
        return self.status.model_copy(update={'dictionarySize': dictionary_size})

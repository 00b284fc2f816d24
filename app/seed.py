"""
Batched, resumable dictionary ingestion.

A word list (one word per line) is read lazily and committed in batches of
``batch_size`` rows, each batch in its own transaction. A failed run can be
resumed by passing the failed batch index as ``start_batch``: the lines of the
earlier batches are read again but never buffered or inserted.

Command line:
    python -m app.seed temp/words.txt --batch-size 10000 --start-batch 3
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from itertools import islice
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional

from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .alphabet import encode
from .db import Word, init_db, make_engine, make_session_factory
from .schemas import IngestReport

logger = logging.getLogger(__name__)

# (event, batch index, batch size); event is 'start' or 'finish'
ProgressCallback = Callable[[str, int, int], None]


class IngestionError(RuntimeError):
    """Ingestion stopped at a batch. ``start_batch`` is where a rerun should resume."""

    def __init__(self, message: str, start_batch: int, committed_batches: int = 0):
        super().__init__(message)
        self.start_batch = start_batch
        self.committed_batches = committed_batches


class LineSource:
    """Forward-only view over a line-oriented text stream."""

    def __init__(self, lines: Iterable[str]):
        self._lines: Iterator[str] = iter(lines)
        self.position = 0

    def __iter__(self):
        return self

    def __next__(self) -> str:
        line = next(self._lines)
        self.position += 1
        return line.rstrip('\r\n')

    def skip(self, n: int) -> int:
        """Discard up to ``n`` lines; returns how many were actually consumed."""
        return sum(1 for _ in islice(self, n))

    def take(self, n: int) -> List[str]:
        return list(islice(self, n))


def _rows(batch: List[str]) -> List[dict]:
    words = (line.strip() for line in batch)
    return [{'word': w, 'letters': encode(w)} for w in words if w]


def _insert_stmt(session: Session, skip_duplicates: bool):
    if not skip_duplicates:
        return insert(Word.__table__)
    dialect = session.get_bind().dialect.name
    if dialect == 'postgresql':
        from sqlalchemy.dialects.postgresql import insert as pg_insert
        return pg_insert(Word.__table__).on_conflict_do_nothing(index_elements=['word'])
    if dialect == 'sqlite':
        from sqlalchemy.dialects.sqlite import insert as sqlite_insert
        return sqlite_insert(Word.__table__).on_conflict_do_nothing(index_elements=['word'])
    raise ValueError(f'skip_duplicates is not supported on {dialect}')


class Seeder:
    def __init__(
        self,
        session_factory: sessionmaker,
        skip_duplicates: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.session_factory = session_factory
        self.skip_duplicates = skip_duplicates
        self.on_progress = on_progress

    def _notify(self, event: str, batch_number: int, size: int):
        if self.on_progress is not None:
            self.on_progress(event, batch_number, size)

    def insert_batch(self, batch: List[str], batch_number: int) -> int:
        rows = _rows(batch)
        if not rows:
            logger.debug('Batch %s has no words, skipping', batch_number)
            return 0
        logger.info('Inserting batch %s...', batch_number)
        self._notify('start', batch_number, len(rows))
        with self.session_factory.begin() as session:
            session.execute(_insert_stmt(session, self.skip_duplicates), rows)
        logger.info('Batch %s inserted.', batch_number)
        return len(rows)

    def _failed(self, exc: Exception, resume_at: int, report: IngestReport) -> IngestionError:
        # SQL error text can carry a whole batch of parameters
        detail = exc.__class__.__name__
        if not isinstance(exc, SQLAlchemyError):
            detail = f'{detail}: {exc}'
        logger.error('Ingestion stopped, resume with start_batch=%s: %s', resume_at, detail)
        return IngestionError(
            f'ingestion stopped at batch {resume_at}: {detail}',
            start_batch=resume_at,
            committed_batches=report.batches,
        )

    def ingest(self, source: Iterable[str], batch_size: int = 100, start_batch: int = 0) -> IngestReport:
        if batch_size < 1:
            raise ValueError('batch_size must be a positive integer')
        if start_batch < 0:
            raise ValueError('start_batch must be non-negative')

        started = time.perf_counter()
        lines = source if isinstance(source, LineSource) else LineSource(source)
        report = IngestReport()

        try:
            report.skippedLines = lines.skip(start_batch * batch_size)
        except Exception as exc:
            raise self._failed(exc, start_batch, report) from exc
        if report.skippedLines:
            logger.debug('Skipped %s lines before batch %s', report.skippedLines, start_batch)

        current_batch = start_batch
        while True:
            try:
                batch = lines.take(batch_size)
                if not batch:
                    break
                inserted = self.insert_batch(batch, current_batch)
            except Exception as exc:
                raise self._failed(exc, current_batch, report) from exc
            if inserted:
                report.batches += 1
                report.words += inserted
                try:
                    self._notify('finish', current_batch, inserted)
                except Exception as exc:
                    # already committed, a rerun starts after it
                    raise self._failed(exc, current_batch + 1, report) from exc
            current_batch += 1

        report.elapsedMs = (time.perf_counter() - started) * 1000
        return report

    def ingest_file(self, path: Path | str, batch_size: int = 100, start_batch: int = 0) -> IngestReport:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(p)
        with p.open('r', encoding='utf-8') as f:
            return self.ingest(f, batch_size=batch_size, start_batch=start_batch)


def main(argv: Optional[List[str]] = None) -> int:
    from . import config

    ap = argparse.ArgumentParser(description='Load a word list into the dictionary store.')
    ap.add_argument('path', nargs='?', default=str(config.SEED_FILE), help='word list, one word per line')
    ap.add_argument('--batch-size', type=int, default=config.SEED_BATCH_SIZE)
    ap.add_argument('--start-batch', type=int, default=0, help='batch index to resume from')
    ap.add_argument('--database-url', default=config.DATABASE_URL)
    ap.add_argument('--skip-duplicates', action='store_true', help='ignore words already in the store')
    args = ap.parse_args(argv)

    logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    engine = make_engine(args.database_url)
    init_db(engine)
    seeder = Seeder(make_session_factory(engine), skip_duplicates=args.skip_duplicates)
    try:
        report = seeder.ingest_file(args.path, batch_size=args.batch_size, start_batch=args.start_batch)
    except FileNotFoundError as exc:
        print(f'word list not found: {exc}', file=sys.stderr)
        return 1
    except IngestionError as exc:
        print(f'{exc}; rerun with --start-batch {exc.start_batch}', file=sys.stderr)
        return 1
    finally:
        engine.dispose()

    print(f'Seed completed in {report.elapsedMs:.0f} ms ({report.words} words, {report.batches} batches)')
    return 0


if __name__ == '__main__':
    sys.exit(main())

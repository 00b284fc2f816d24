from __future__ import annotations
import logging
import time
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .alphabet import encode
from .db import Word, subset_of
from .schemas import ValidationResult

logger = logging.getLogger(__name__)


class MissingLettersError(ValueError):
    """The caller did not say which letters are available."""


class DictionaryUnavailableError(RuntimeError):
    """The store could not answer; the word is neither valid nor invalid."""


class DictionaryService:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def is_valid(self, word: str, letters: Optional[str]) -> bool:
        # Exact stored word AND every letter of it present in the pool, in one lookup.
        # Letter counts are not checked: the pool is treated as a set of letters.
        if not letters:
            raise MissingLettersError('letters parameter is required')
        pool = encode(letters)
        stmt = (
            select(Word.id)
            .where(Word.word == word, subset_of(Word.letters, pool))
            .limit(1)
        )
        try:
            with self.session_factory() as session:
                return session.execute(stmt).first() is not None
        except SQLAlchemyError as exc:
            logger.exception('Validation lookup failed for %r', word)
            raise DictionaryUnavailableError(exc.__class__.__name__) from exc

    def validate(self, word: str, letters: Optional[str]) -> ValidationResult:
        started = time.perf_counter()
        valid = self.is_valid(word, letters)
        elapsed = (time.perf_counter() - started) * 1000
        return ValidationResult(word=word, valid=valid, elapsedMs=elapsed)

    def count(self) -> int:
        try:
            with self.session_factory() as session:
                return session.execute(select(func.count(Word.id))).scalar_one()
        except SQLAlchemyError as exc:
            raise DictionaryUnavailableError(exc.__class__.__name__) from exc

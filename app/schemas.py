from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Literal, Optional

from .config import SEED_BATCH_SIZE

class ValidationResult(BaseModel):
    word: str
    valid: bool
    # time spent in the lookup, milliseconds
    elapsedMs: float = 0.0

class ValidateRequest(BaseModel):
    word: str
    letters: Optional[str] = None

class SeedRequest(BaseModel):
    batchSize: int = Field(SEED_BATCH_SIZE, gt=0)
    startBatch: int = Field(0, ge=0)

class IngestReport(BaseModel):
    batches: int = 0
    words: int = 0
    # lines read and discarded before start_batch
    skippedLines: int = 0
    elapsedMs: float = 0.0

class SeedResult(BaseModel):
    message: str
    elapsedMs: float
    batches: int
    words: int
    skippedLines: int = 0

class SeedProgress(BaseModel):
    event: Literal['start', 'finish']
    batch: int
    size: int

class SeedStatus(BaseModel):
    running: bool = False
    lastBatch: Optional[int] = None
    committedBatches: int = 0
    committedWords: int = 0
    dictionarySize: Optional[int] = None
    error: Optional[str] = None
    # where a rerun should resume after a failure
    startBatch: Optional[int] = None

class ErrorPayload(BaseModel):
    error: str
    startBatch: Optional[int] = None

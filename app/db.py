from __future__ import annotations
import logging

from sqlalchemy import BigInteger, Column, Index, Integer, String, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


class Word(Base):
    """Dictionary entry. ``letters`` is always ``alphabet.encode(word)``."""
    __tablename__ = 'words'

    id = Column(Integer, primary_key=True)
    word = Column(String(255), nullable=False, unique=True)
    letters = Column(BigInteger, nullable=False)

    __table_args__ = (
        Index('idx_word', 'word'),
        Index('idx_letters', 'letters'),
    )


def subset_of(column, mask: int):
    """SQL predicate: every bit set in ``column`` is also set in ``mask``."""
    return column.op('&')(mask) == column


def make_engine(url: str) -> Engine:
    if url in ('sqlite://', 'sqlite:///:memory:'):
        # one shared connection so every thread sees the same in-memory database
        return create_engine(
            url,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
        )
    if url.startswith('sqlite'):
        return create_engine(url, connect_args={'check_same_thread': False})
    return create_engine(url, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(engine)
    logger.info('Schema ready on %s', engine.url.render_as_string(hide_password=True))

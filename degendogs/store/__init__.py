"""Transactional document store for holder-gated posts, replies and votes."""

from typing import Optional

from .exceptions import StoreError, WriteRejected, PostNotFound, WriteFailed
from .models import Base, Post, Vote, Reply
from .session import create_db_engine, make_session_factory, init_database
from .board import Board, Writer, VoteResult

_board: Optional[Board] = None


def get_board() -> Board:
    """Get the process-wide board bound to DATABASE_URL.

    Tables are created on first use.
    """
    global _board
    if _board is None:
        engine = create_db_engine()
        init_database(engine)
        _board = Board(make_session_factory(engine))
    return _board


def reset_board() -> None:
    """Reset the board singleton (for testing)."""
    global _board
    _board = None


__all__ = [
    "StoreError",
    "WriteRejected",
    "PostNotFound",
    "WriteFailed",
    "Base",
    "Post",
    "Vote",
    "Reply",
    "create_db_engine",
    "make_session_factory",
    "init_database",
    "Board",
    "Writer",
    "VoteResult",
    "get_board",
    "reset_board",
]

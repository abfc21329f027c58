"""SQLAlchemy ORM models for the holder board.

This module defines the database schema for:
- Posts (created by holders, carry vote and reply counters)
- Votes (one per post and user; existence is the source of truth)
- Replies (thread items under a post)

Counters are only ever changed by degendogs.store.board inside the same
transaction as the row they count.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Post(Base):
    """Top-level board post."""

    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint("vote_count >= 0", name="ck_posts_vote_count"),
        CheckConstraint("thread_count >= 0", name="ck_posts_thread_count"),
        Index("ix_posts_created_at", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)  # UUID
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    fid = Column(Integer, nullable=False)
    uid = Column(String(128), nullable=False)
    username = Column(String(255), nullable=True)
    display_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    vote_count = Column(Integer, default=0, nullable=False)
    thread_count = Column(Integer, default=0, nullable=False)

    # Relationships
    votes = relationship("Vote", back_populates="post", cascade="all, delete-orphan")
    replies = relationship("Reply", back_populates="post", cascade="all, delete-orphan")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "fid": self.fid,
            "uid": self.uid,
            "username": self.username,
            "displayName": self.display_name,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "voteCount": self.vote_count,
            "threadCount": self.thread_count,
        }

    def __repr__(self) -> str:
        return f"<Post(id={self.id!r}, fid={self.fid!r}, votes={self.vote_count!r})>"


class Vote(Base):
    """A user's vote on a post, keyed by (post_id, uid)."""

    __tablename__ = "votes"

    post_id = Column(String(36), ForeignKey("posts.id"), primary_key=True)
    uid = Column(String(128), primary_key=True)
    fid = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    post = relationship("Post", back_populates="votes")

    def __repr__(self) -> str:
        return f"<Vote(post_id={self.post_id!r}, uid={self.uid!r})>"


class Reply(Base):
    """Thread item under a post."""

    __tablename__ = "replies"
    __table_args__ = (
        Index("ix_replies_post_created", "post_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)  # UUID
    post_id = Column(String(36), ForeignKey("posts.id"), nullable=False)
    body = Column(Text, nullable=False)
    fid = Column(Integer, nullable=False)
    uid = Column(String(128), nullable=False)
    username = Column(String(255), nullable=True)
    display_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    post = relationship("Post", back_populates="replies")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "postId": self.post_id,
            "body": self.body,
            "fid": self.fid,
            "uid": self.uid,
            "username": self.username,
            "displayName": self.display_name,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<Reply(id={self.id!r}, post_id={self.post_id!r})>"

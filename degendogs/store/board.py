"""Holder-gated board writes.

Every write requires a signed-in writer whose holder flag is set and a
configured store. Each operation is a single transaction:

- create_post:  insert post with zeroed counters
- create_reply: insert reply + thread_count += 1
- cast_vote:    read vote(post_id, uid); if absent insert it + vote_count += 1

A failed transaction leaves nothing behind (no reply without its counter
bump, no vote without its counter bump) and surfaces as WriteFailed.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from degendogs.core.config import (
    POST_BODY_MAX,
    POST_TITLE_MAX,
    POSTS_LIMIT,
    THREAD_BODY_MAX,
    THREADS_LIMIT,
)
from .exceptions import PostNotFound, WriteFailed, WriteRejected
from .models import Post, Reply, Vote
from .session import connection_lock

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Writer:
    """Identity and gate state of the caller.

    Attributes:
        fid: Verified Farcaster ID (None when not signed in).
        uid: Store-level user id the vote key is bound to.
        is_holder: Derived holder flag from degendogs.gate.
        username: Optional handle copied onto written documents.
        display_name: Optional display name copied onto written documents.
    """

    fid: Optional[int]
    uid: Optional[str]
    is_holder: bool
    username: Optional[str] = None
    display_name: Optional[str] = None


@dataclass(frozen=True)
class VoteResult:
    """Outcome of cast_vote(); recorded=False means "already voted"."""
    recorded: bool
    vote_count: int


class Board:
    """Posts, replies and votes backed by a transactional SQL store."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory
        engine = session_factory.kw.get("bind") if session_factory is not None else None
        self._lock = connection_lock(engine)

    @property
    def ready(self) -> bool:
        return self._session_factory is not None

    # -------------------------------------------------------------------------
    # Gated writes
    # -------------------------------------------------------------------------

    def create_post(self, writer: Writer, title: str, body: str) -> Post:
        """Create a post; counters start at zero."""
        self._require_writer(writer, "create posts")
        title = _require_text(title, "Title", POST_TITLE_MAX)
        body = _require_text(body, "Description", POST_BODY_MAX)

        post = Post(
            title=title,
            body=body,
            fid=writer.fid,
            uid=writer.uid,
            username=writer.username,
            display_name=writer.display_name,
            vote_count=0,
            thread_count=0,
        )
        try:
            with self._transaction() as session:
                session.add(post)
        except SQLAlchemyError as e:
            log.error(f"Posts: create failed: {e}")
            raise WriteFailed(f"Unable to create post: {e}") from e

        log.info(f"Posts: created {post.id}", extra={"fid": writer.fid})
        return post

    def create_reply(self, writer: Writer, post_id: str, body: str) -> Reply:
        """Insert a reply and bump the parent's thread_count atomically."""
        self._require_writer(writer, "reply")
        body = _require_text(body, "Reply", THREAD_BODY_MAX)

        reply = Reply(
            post_id=post_id,
            body=body,
            fid=writer.fid,
            uid=writer.uid,
            username=writer.username,
            display_name=writer.display_name,
        )
        try:
            with self._transaction() as session:
                if session.get(Post, post_id) is None:
                    raise PostNotFound(post_id)
                session.add(reply)
                session.flush()
                session.execute(
                    update(Post)
                    .where(Post.id == post_id)
                    .values(thread_count=Post.thread_count + 1)
                )
        except SQLAlchemyError as e:
            log.error(f"Threads: create failed for post {post_id}: {e}")
            raise WriteFailed(f"Unable to post reply: {e}") from e

        log.info(f"Threads: reply {reply.id} on {post_id}", extra={"fid": writer.fid})
        return reply

    def cast_vote(self, writer: Writer, post_id: str) -> VoteResult:
        """Record at most one vote per (post_id, uid).

        A repeat vote is not an error: it returns recorded=False. A
        concurrent duplicate that loses the race on the votes primary key
        is reported the same way.
        """
        self._require_writer(writer, "vote")

        try:
            with self._transaction() as session:
                if session.get(Post, post_id) is None:
                    raise PostNotFound(post_id)

                existing = session.get(Vote, (post_id, writer.uid))
                if existing is not None:
                    count = session.scalar(select(Post.vote_count).where(Post.id == post_id))
                    return VoteResult(recorded=False, vote_count=count)

                session.add(Vote(post_id=post_id, uid=writer.uid, fid=writer.fid))
                session.flush()
                session.execute(
                    update(Post)
                    .where(Post.id == post_id)
                    .values(vote_count=Post.vote_count + 1)
                )
                count = session.scalar(select(Post.vote_count).where(Post.id == post_id))
        except IntegrityError:
            log.info(f"Posts: concurrent duplicate vote on {post_id} by {writer.uid}")
            return VoteResult(recorded=False, vote_count=self._vote_count(post_id))
        except SQLAlchemyError as e:
            log.error(f"Posts: vote failed on {post_id}: {e}")
            raise WriteFailed(f"Unable to record vote: {e}") from e

        log.info(f"Posts: vote recorded on {post_id}", extra={"fid": writer.fid})
        return VoteResult(recorded=True, vote_count=count)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_posts(self, limit: int = POSTS_LIMIT) -> List[Post]:
        """Newest posts first."""
        self._require_store()
        with self._reading() as session:
            return list(
                session.scalars(
                    select(Post).order_by(Post.created_at.desc()).limit(limit)
                )
            )

    def list_replies(self, post_id: str, limit: int = THREADS_LIMIT) -> List[Reply]:
        """Oldest replies first."""
        self._require_store()
        with self._reading() as session:
            return list(
                session.scalars(
                    select(Reply)
                    .where(Reply.post_id == post_id)
                    .order_by(Reply.created_at.asc())
                    .limit(limit)
                )
            )

    def get_post(self, post_id: str) -> Optional[Post]:
        self._require_store()
        with self._reading() as session:
            return session.get(Post, post_id)

    def has_voted(self, post_id: str, uid: str) -> bool:
        self._require_store()
        with self._reading() as session:
            return session.get(Vote, (post_id, uid)) is not None

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        with self._lock, self._session_factory.begin() as session:
            yield session

    @contextmanager
    def _reading(self) -> Iterator[Session]:
        with self._lock, self._session_factory() as session:
            yield session

    def _require_store(self) -> None:
        if self._session_factory is None:
            raise WriteRejected.store_unavailable()

    def _require_writer(self, writer: Writer, action: str) -> None:
        self._require_store()
        if not writer.fid or not writer.uid:
            raise WriteRejected.not_signed_in()
        if not writer.is_holder:
            raise WriteRejected.not_holder(action)

    def _vote_count(self, post_id: str) -> int:
        with self._reading() as session:
            return session.scalar(select(Post.vote_count).where(Post.id == post_id)) or 0


def _require_text(value: Optional[str], what: str, limit: int) -> str:
    text = (value or "").strip()
    if not text:
        raise WriteRejected.empty(what)
    if len(text) > limit:
        raise WriteRejected.too_long(what, limit)
    return text

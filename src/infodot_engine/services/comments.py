"""Threaded comments on questions, answers and solutions."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from infodot_engine.core.errors import ForbiddenError, NotFoundError, ValidationError
from infodot_engine.core.settings import settings
from infodot_engine.db.time import isoformat, utcnow
from infodot_engine.models import Comment, User
from infodot_engine.models.subject import SubjectRef
from infodot_engine.services import events
from infodot_engine.services.broadcast import EventBroadcaster
from infodot_engine.services.cache import CacheCoordinator
from infodot_engine.services.subjects import require_subject, subject_exists
from infodot_engine.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)

CommentNode = dict[str, Any]


def _to_node(comment: Comment) -> CommentNode:
    return {
        "id": comment.id,
        "user_id": comment.user_id,
        "body": comment.body,
        "parent_id": comment.parent_id,
        "created_at": isoformat(comment.created_at),
        "children": [],
    }


class CommentStore:
    """Owns comment rows. Comments are soft-deleted and never shown once deleted."""

    def __init__(
        self,
        db: Session,
        cache: CacheCoordinator,
        broadcaster: EventBroadcaster | None = None,
        *,
        broadcast_comments: bool | None = None,
        max_length: int | None = None,
        cache_ttl: int | None = None,
    ) -> None:
        self.db = db
        self.cache = cache
        self.broadcaster = broadcaster
        self.broadcast_comments = (
            settings.broadcast_comments if broadcast_comments is None else broadcast_comments
        )
        self.max_length = max_length or settings.comment_max_length
        self.cache_ttl = cache_ttl

    def add(
        self,
        user_id: int,
        subject: SubjectRef,
        body: str,
        parent_id: int | None = None,
    ) -> Comment:
        """Post a comment, or a reply when ``parent_id`` is given."""
        text = (body or "").strip()
        if not text:
            raise ValidationError("Comment body is required")
        if len(text) > self.max_length:
            raise ValidationError(f"Comment cannot exceed {self.max_length} characters")

        def _apply() -> Comment:
            require_subject(self.db, subject)
            if parent_id is not None:
                parent = self.db.get(Comment, parent_id)
                if parent is None or parent.deleted_at is not None or parent.subject != subject:
                    raise NotFoundError("Parent comment not found")
                if parent.parent_id is not None:
                    raise ValidationError("Replies can only be nested one level deep")
            comment = Comment(
                user_id=user_id,
                subject_type=subject.subject_type,
                subject_id=subject.subject_id,
                body=text,
                parent_id=parent_id,
            )
            self.db.add(comment)
            self.db.flush()
            return comment

        comment = run_in_transaction(self.db, _apply, label="comment")
        self.cache.invalidate(subject.tag)

        if self.broadcast_comments and self.broadcaster is not None:
            self.broadcaster.publish(events.comment_posted(comment, self.db.get(User, user_id)))
        return comment

    def list_for(self, subject: SubjectRef) -> list[CommentNode]:
        """Return top-level comments with their replies nested, oldest first."""
        key = f"comments:tree:{subject.subject_type.value}:{subject.subject_id}"
        return self.cache.remember(key, [subject.tag], self.cache_ttl, lambda: self._tree(subject))

    def count_for(self, subject: SubjectRef) -> int:
        """Return the number of live comments (including replies) on ``subject``."""

        def _compute() -> int:
            if not subject_exists(self.db, subject):
                return 0
            return int(
                self.db.execute(
                    select(func.count(Comment.id)).where(
                        Comment.subject_type == subject.subject_type,
                        Comment.subject_id == subject.subject_id,
                        Comment.deleted_at.is_(None),
                    )
                ).scalar_one()
            )

        key = f"comments:count:{subject.subject_type.value}:{subject.subject_id}"
        return self.cache.remember(key, [subject.tag], self.cache_ttl, _compute)

    def remove(self, comment_id: int, requesting_user_id: int) -> None:
        """Soft-delete a comment and its direct replies. Only the author may do this."""
        holder: list[SubjectRef] = []

        def _apply() -> None:
            comment = self.db.get(Comment, comment_id)
            if comment is None or comment.deleted_at is not None:
                raise NotFoundError("Comment not found")
            if comment.user_id != requesting_user_id:
                raise ForbiddenError("Only the author can delete this comment")
            now = utcnow()
            comment.deleted_at = now
            self.db.execute(
                update(Comment)
                .where(Comment.parent_id == comment.id, Comment.deleted_at.is_(None))
                .values(deleted_at=now)
            )
            self.db.flush()
            holder.append(comment.subject)

        run_in_transaction(self.db, _apply, label="comment removal")
        self.cache.invalidate(holder[0].tag)

    def _tree(self, subject: SubjectRef) -> list[CommentNode]:
        if not subject_exists(self.db, subject):
            return []

        parents = list(
            self.db.execute(
                select(Comment)
                .where(
                    Comment.subject_type == subject.subject_type,
                    Comment.subject_id == subject.subject_id,
                    Comment.parent_id.is_(None),
                    Comment.deleted_at.is_(None),
                )
                .order_by(Comment.created_at, Comment.id)
            ).scalars()
        )
        if not parents:
            return []

        replies: dict[int, list[CommentNode]] = defaultdict(list)
        for reply in self.db.execute(
            select(Comment)
            .where(
                Comment.parent_id.in_([parent.id for parent in parents]),
                Comment.deleted_at.is_(None),
            )
            .order_by(Comment.created_at, Comment.id)
        ).scalars():
            replies[reply.parent_id].append(_to_node(reply))

        tree = []
        for parent in parents:
            node = _to_node(parent)
            node["children"] = replies.get(parent.id, [])
            tree.append(node)
        return tree

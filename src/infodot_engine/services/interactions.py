"""Like/dislike reactions on questions, answers and solutions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from infodot_engine.core.errors import ForbiddenError, NotFoundError, ValidationError
from infodot_engine.db.time import utcnow
from infodot_engine.models import Reaction, User
from infodot_engine.models.subject import SubjectRef
from infodot_engine.services import events
from infodot_engine.services.broadcast import EventBroadcaster
from infodot_engine.services.cache import CacheCoordinator
from infodot_engine.services.subjects import (
    find_subject,
    require_subject,
    subject_exists,
    subject_text,
)
from infodot_engine.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)

ACTION_ADDED: Final[str] = "added"
ACTION_UPDATED: Final[str] = "updated"
ACTION_REMOVED: Final[str] = "removed"


@dataclass(frozen=True)
class ToggleResult:
    """Outcome of a toggle together with the subject's fresh totals."""

    action: str
    polarity: bool
    likes_count: int
    dislikes_count: int

    def as_dict(self) -> dict[str, object]:
        return {
            "action": self.action,
            "likes_count": self.likes_count,
            "dislikes_count": self.dislikes_count,
        }


class InteractionStore:
    """Owns reaction rows and their derived like/dislike totals."""

    def __init__(
        self,
        db: Session,
        cache: CacheCoordinator,
        broadcaster: EventBroadcaster | None = None,
        *,
        cache_ttl: int | None = None,
    ) -> None:
        self.db = db
        self.cache = cache
        self.broadcaster = broadcaster
        self.cache_ttl = cache_ttl

    # --- Writes -----------------------------------------------------------------

    def toggle(self, user_id: int, subject: SubjectRef, polarity: bool) -> ToggleResult:
        """Add, flip or remove the user's top-level reaction on ``subject``.

        Reacting twice with the same polarity removes the reaction; reacting with
        the opposite polarity flips it in place.
        """

        def _apply() -> str:
            require_subject(self.db, subject)
            existing = self.db.execute(
                self._top_level(subject)
                .where(Reaction.user_id == user_id)
                .with_for_update()
            ).scalars().first()

            if existing is None:
                self.db.add(
                    Reaction(
                        user_id=user_id,
                        subject_type=subject.subject_type,
                        subject_id=subject.subject_id,
                        polarity=polarity,
                    )
                )
                self.db.flush()
                return ACTION_ADDED

            if existing.polarity == polarity:
                self._soft_delete(existing)
                return ACTION_REMOVED

            existing.polarity = polarity
            self.db.flush()
            return ACTION_UPDATED

        action = run_in_transaction(self.db, _apply, label="reaction toggle")
        self.cache.invalidate(subject.tag)

        likes, dislikes = self._count(subject)
        result = ToggleResult(
            action=action,
            polarity=polarity,
            likes_count=likes,
            dislikes_count=dislikes,
        )
        if self.broadcaster is not None:
            self.broadcaster.publish(
                events.reaction_toggled(
                    subject,
                    self.db.get(User, user_id),
                    user_id,
                    action=action,
                    polarity=polarity,
                    likes_count=likes,
                    dislikes_count=dislikes,
                    text=subject_text(find_subject(self.db, subject)),
                )
            )
        return result

    def add_child(self, parent_reaction_id: int, user_id: int, polarity: bool) -> Reaction:
        """Attach a meta-reaction to an existing top-level reaction."""

        def _apply() -> Reaction:
            parent = self.db.get(Reaction, parent_reaction_id)
            if parent is None or parent.deleted_at is not None:
                raise NotFoundError("Reaction not found")
            if parent.parent_id is not None:
                raise ValidationError("Reactions can only be nested one level deep")
            child = Reaction(
                user_id=user_id,
                subject_type=parent.subject_type,
                subject_id=parent.subject_id,
                polarity=polarity,
                parent_id=parent.id,
            )
            self.db.add(child)
            self.db.flush()
            return child

        child = run_in_transaction(self.db, _apply, label="child reaction")
        self.cache.invalidate(child.subject.tag)
        return child

    def remove(self, reaction_id: int, requesting_user_id: int) -> None:
        """Soft-delete a reaction owned by the requester, cascading to its children."""
        holder: list[SubjectRef] = []

        def _apply() -> None:
            reaction = self.db.get(Reaction, reaction_id)
            if reaction is None or reaction.deleted_at is not None:
                raise NotFoundError("Reaction not found")
            if reaction.user_id != requesting_user_id:
                raise ForbiddenError("Only the author can remove this reaction")
            holder.append(reaction.subject)
            self._soft_delete(reaction)

        run_in_transaction(self.db, _apply, label="reaction removal")
        self.cache.invalidate(holder[0].tag)

    # --- Reads ------------------------------------------------------------------

    def list_for(self, subject: SubjectRef) -> list[Reaction]:
        """Return live top-level reactions on ``subject`` in creation order."""
        if not subject_exists(self.db, subject):
            return []
        return list(
            self.db.execute(
                self._top_level(subject).order_by(Reaction.created_at, Reaction.id)
            ).scalars()
        )

    def children_of(self, reaction_id: int) -> list[Reaction]:
        return list(
            self.db.execute(
                select(Reaction)
                .where(Reaction.parent_id == reaction_id, Reaction.deleted_at.is_(None))
                .order_by(Reaction.created_at, Reaction.id)
            ).scalars()
        )

    def counts(self, subject: SubjectRef) -> dict[str, int]:
        """Return cached like/dislike totals for ``subject``."""

        def _compute() -> dict[str, int]:
            if not subject_exists(self.db, subject):
                return {"likes_count": 0, "dislikes_count": 0}
            likes, dislikes = self._count(subject)
            return {"likes_count": likes, "dislikes_count": dislikes}

        key = f"reactions:counts:{subject.subject_type.value}:{subject.subject_id}"
        return self.cache.remember(key, [subject.tag], self.cache_ttl, _compute)

    def user_reaction(self, user_id: int, subject: SubjectRef) -> bool | None:
        """Return the user's current polarity on ``subject`` or None."""
        return self.db.execute(
            select(Reaction.polarity).where(
                Reaction.user_id == user_id,
                Reaction.subject_type == subject.subject_type,
                Reaction.subject_id == subject.subject_id,
                Reaction.parent_id.is_(None),
                Reaction.deleted_at.is_(None),
            )
        ).scalar_one_or_none()

    # --- Helpers ----------------------------------------------------------------

    @staticmethod
    def _top_level(subject: SubjectRef):
        return select(Reaction).where(
            Reaction.subject_type == subject.subject_type,
            Reaction.subject_id == subject.subject_id,
            Reaction.parent_id.is_(None),
            Reaction.deleted_at.is_(None),
        )

    def _count(self, subject: SubjectRef) -> tuple[int, int]:
        rows = self.db.execute(
            select(Reaction.polarity, func.count(Reaction.id))
            .where(
                Reaction.subject_type == subject.subject_type,
                Reaction.subject_id == subject.subject_id,
                Reaction.parent_id.is_(None),
                Reaction.deleted_at.is_(None),
            )
            .group_by(Reaction.polarity)
        ).all()
        totals = {bool(polarity): int(count) for polarity, count in rows}
        return totals.get(True, 0), totals.get(False, 0)

    def _soft_delete(self, reaction: Reaction) -> None:
        now = utcnow()
        reaction.deleted_at = now
        self.db.execute(
            update(Reaction)
            .where(Reaction.parent_id == reaction.id, Reaction.deleted_at.is_(None))
            .values(deleted_at=now)
        )
        self.db.flush()

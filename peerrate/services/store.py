"""
Rating store, the query contract used by the selector, writer and recap.

Wraps one ``AsyncSession`` (passed in, never global) and turns SQLAlchemy
failures into ``FetchError`` / ``WriteError`` so callers only deal with the
application error taxonomy.
"""

import logging
from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from peerrate.exceptions import FetchError, WriteError
from peerrate.models.class_model import SchoolClass
from peerrate.models.participant import Participant
from peerrate.models.peer_rating import PeerRating
from peerrate.models.project_group import ProjectGroup
from peerrate.schemas.options import ClassOption, GroupOption, ParticipantOption
from peerrate.schemas.rating import PeerRatingCreate, PeerRatingOut
from peerrate.schemas.recap import RawRatingRow

logger = logging.getLogger(__name__)


class RatingStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ═══════════════════════════════════════════════════════════════
    #  Option lists
    # ═══════════════════════════════════════════════════════════════

    async def list_classes(self) -> List[ClassOption]:
        query = select(SchoolClass).order_by(SchoolClass.class_name, SchoolClass.class_id)
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.exception("Error fetching classes")
            raise FetchError("classes", str(e)) from e
        return [ClassOption.model_validate(c) for c in result.scalars().all()]

    async def list_groups(self, class_id: str) -> List[GroupOption]:
        query = (
            select(ProjectGroup)
            .where(ProjectGroup.class_id == class_id)
            .order_by(ProjectGroup.group_name, ProjectGroup.group_id)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.exception("Error fetching groups for class %s", class_id)
            raise FetchError("groups", str(e)) from e
        return [GroupOption.model_validate(g) for g in result.scalars().all()]

    async def list_participants(self, group_id: str) -> List[ParticipantOption]:
        query = (
            select(Participant)
            .where(Participant.group_id == group_id)
            .order_by(Participant.full_name, Participant.nrp)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.exception("Error fetching participants for group %s", group_id)
            raise FetchError("participants", str(e)) from e
        return [ParticipantOption.model_validate(p) for p in result.scalars().all()]

    # ═══════════════════════════════════════════════════════════════
    #  Ratings
    # ═══════════════════════════════════════════════════════════════

    async def insert_rating(self, payload: PeerRatingCreate) -> PeerRatingOut:
        """Insert exactly one rating row and return it with its timestamp."""
        rating = PeerRating(
            rater_id=payload.rater_id,
            ratee_id=payload.ratee_id,
            rating_score=payload.rating_score,
            rating_comment=payload.rating_comment,
        )
        self.db.add(rating)
        try:
            await self.db.commit()
            await self.db.refresh(rating)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception(
                "Error inserting rating %s -> %s", payload.rater_id, payload.ratee_id
            )
            raise WriteError(str(e)) from e
        return PeerRatingOut.model_validate(rating)

    async def list_ratings_with_joins(self) -> List[RawRatingRow]:
        """All ratings with rater/ratee participant and group data.

        Ordered by insertion (rating_id) so equal timestamps resolve to the
        most recent submission during recap reduction.
        """
        query = (
            select(PeerRating)
            .options(
                selectinload(PeerRating.rater).selectinload(Participant.group),
                selectinload(PeerRating.ratee).selectinload(Participant.group),
            )
            .order_by(PeerRating.rating_id)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.exception("Error fetching ratings")
            raise FetchError("ratings", str(e)) from e
        return [RawRatingRow.model_validate(r) for r in result.scalars().all()]

    async def count_entities(self) -> Dict[str, int]:
        """Row counts for the landing page."""
        counts = {}
        try:
            for key, column in (
                ("classes", SchoolClass.class_id),
                ("groups", ProjectGroup.group_id),
                ("participants", Participant.nrp),
                ("ratings", PeerRating.rating_id),
            ):
                counts[key] = (await self.db.execute(select(func.count(column)))).scalar() or 0
        except SQLAlchemyError as e:
            logger.exception("Error counting entities")
            raise FetchError("statistics", str(e)) from e
        return counts

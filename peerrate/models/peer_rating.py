"""Peer rating model. Append-only: one row per submission."""

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from peerrate.database import Base

MIN_RATING_SCORE = 1
MAX_RATING_SCORE = 5
DEFAULT_RATING_SCORE = 3


class PeerRating(Base):
    __tablename__ = "peer_ratings"
    __table_args__ = (
        CheckConstraint(
            f"rating_score >= {MIN_RATING_SCORE} AND rating_score <= {MAX_RATING_SCORE}",
            name="peer_ratings_rating_score_check",
        ),
        CheckConstraint("rater_id <> ratee_id", name="peer_ratings_rater_not_ratee_check"),
    )

    rating_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rater_id: Mapped[str] = mapped_column(
        ForeignKey("participants.nrp"), nullable=False, index=True
    )
    ratee_id: Mapped[str] = mapped_column(
        ForeignKey("participants.nrp"), nullable=False, index=True
    )
    rating_score: Mapped[int] = mapped_column(Integer, nullable=False)
    rating_comment: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # ── Relationships ──
    rater: Mapped["Participant"] = relationship(  # noqa: F821
        "Participant", foreign_keys=[rater_id]
    )
    ratee: Mapped["Participant"] = relationship(  # noqa: F821
        "Participant", foreign_keys=[ratee_id]
    )

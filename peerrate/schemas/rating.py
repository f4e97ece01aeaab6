"""Peer rating Pydantic schemas for form submission, insert payload and output."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from peerrate.models.peer_rating import MAX_RATING_SCORE, MIN_RATING_SCORE


class RatingSubmission(BaseModel):
    """Values assembled by the rating form.

    Field order is the validation order: the first failing field is the one
    reported back to the user.
    """

    model_config = {"str_strip_whitespace": True}

    class_id: str = Field(min_length=1)
    group_id: str = Field(min_length=1)
    rater_id: str = Field(min_length=1)
    ratee_id: str = Field(min_length=1)
    rating_score: int = Field(ge=MIN_RATING_SCORE, le=MAX_RATING_SCORE)
    rating_comment: Optional[str] = None

    @field_validator("rating_score", mode="before")
    @classmethod
    def _reject_bools(cls, value):
        # bool is an int subclass; a checkbox-ish True must not become score 1.
        if isinstance(value, bool):
            raise ValueError("Rating must be a whole number")
        return value

    @field_validator("rating_comment")
    @classmethod
    def _blank_comment_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    def to_record(self) -> "PeerRatingCreate":
        """Only rater, ratee, score and comment are persisted."""
        return PeerRatingCreate(
            rater_id=self.rater_id,
            ratee_id=self.ratee_id,
            rating_score=self.rating_score,
            rating_comment=self.rating_comment,
        )


class PeerRatingCreate(BaseModel):
    rater_id: str
    ratee_id: str
    rating_score: int
    rating_comment: Optional[str] = None


class PeerRatingOut(BaseModel):
    rating_id: int
    rater_id: str
    ratee_id: str
    rating_score: int
    rating_comment: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

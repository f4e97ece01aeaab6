"""Recap schemas: raw joined rating rows and flattened display rows."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, field_validator


class GroupInfo(BaseModel):
    group_id: str
    group_name: str

    model_config = {"from_attributes": True}


class ParticipantInfo(BaseModel):
    nrp: str
    full_name: str
    group_id: Optional[str] = None
    group: Optional[GroupInfo] = None

    model_config = {"from_attributes": True}


class RawRatingRow(BaseModel):
    """A rating joined with its rater's and ratee's participant + group data."""

    rating_id: int
    rater_id: str
    ratee_id: str
    rating_score: int
    rating_comment: Optional[str] = None
    created_at: datetime
    rater: ParticipantInfo
    ratee: ParticipantInfo

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive timestamps; compare everything as UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class RecapRow(BaseModel):
    group_id: str
    group_name: str
    ratee_id: str
    ratee_name: str
    rater_id: str
    rater_name: str
    rating_score: int
    rating_comment: Optional[str] = None
    created_at: datetime

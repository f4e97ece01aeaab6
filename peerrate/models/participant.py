"""Participant (student) model, keyed by NRP."""

from typing import Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from peerrate.database import Base


class Participant(Base):
    __tablename__ = "participants"

    nrp: Mapped[str] = mapped_column(String(50), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    # A participant belongs to at most one group at a time.
    group_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("project_groups.group_id"), index=True
    )

    group: Mapped[Optional["ProjectGroup"]] = relationship(  # noqa: F821
        "ProjectGroup", back_populates="members"
    )

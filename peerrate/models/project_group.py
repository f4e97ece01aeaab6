"""Project group (team) model; a class has many groups."""

from typing import List

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from peerrate.database import Base


class ProjectGroup(Base):
    __tablename__ = "project_groups"

    group_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    class_id: Mapped[str] = mapped_column(
        ForeignKey("classes.class_id"), nullable=False, index=True
    )
    group_name: Mapped[str] = mapped_column(Text, nullable=False)

    # ── Relationships ──
    school_class: Mapped["SchoolClass"] = relationship(  # noqa: F821
        "SchoolClass", back_populates="groups"
    )
    members: Mapped[List["Participant"]] = relationship(  # noqa: F821
        "Participant", back_populates="group"
    )

"""Academic class (course section) model, root of the selection hierarchy."""

from typing import List

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from peerrate.database import Base


class SchoolClass(Base):
    __tablename__ = "classes"

    class_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    class_name: Mapped[str] = mapped_column(String(200), nullable=False)

    # ── Relationships ──
    groups: Mapped[List["ProjectGroup"]] = relationship(  # noqa: F821
        "ProjectGroup", back_populates="school_class"
    )

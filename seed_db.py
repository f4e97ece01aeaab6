"""Seed a development database with one class, its groups, members and a few ratings.

    python seed_db.py
"""

import asyncio

import peerrate.models  # noqa: F401
from peerrate.database import Base, async_session, engine
from peerrate.models.class_model import SchoolClass
from peerrate.models.participant import Participant
from peerrate.models.peer_rating import PeerRating
from peerrate.models.project_group import ProjectGroup
from peerrate.models.user import User


async def async_main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        session.add_all([
            SchoolClass(class_id="C1", class_name="CS101"),
            SchoolClass(class_id="C2", class_name="CS202"),
        ])
        await session.flush()

        session.add_all([
            ProjectGroup(group_id="G1", class_id="C1", group_name="Team A"),
            ProjectGroup(group_id="G2", class_id="C1", group_name="Team B"),
            ProjectGroup(group_id="G3", class_id="C2", group_name="Team Orion"),
        ])
        await session.flush()

        session.add_all([
            Participant(nrp="S1", full_name="Alice", group_id="G1"),
            Participant(nrp="S2", full_name="Bob", group_id="G1"),
            Participant(nrp="S3", full_name="Charlie", group_id="G1"),
            Participant(nrp="S4", full_name="Diana", group_id="G2"),
            Participant(nrp="S5", full_name="Eve", group_id="G2"),
            Participant(nrp="S6", full_name="Frank", group_id="G3"),
            Participant(nrp="S7", full_name="Grace", group_id=None),
        ])
        await session.flush()

        session.add_all([
            PeerRating(rater_id="S1", ratee_id="S2", rating_score=3, rating_comment="Solid start"),
            PeerRating(rater_id="S2", ratee_id="S1", rating_score=5, rating_comment="Great work"),
            PeerRating(rater_id="S4", ratee_id="S5", rating_score=4),
        ])

        # Sign in with /mock-login/1 while developing.
        session.add(User(email="demo@example.com", full_name="Demo User"))

        await session.commit()
    await engine.dispose()
    print("Database seeded with demo classes, groups, participants and ratings.")


if __name__ == "__main__":
    asyncio.run(async_main())

"""
PeerRate – SQLAlchemy ORM models package.

Imports all model classes so the app can discover them through a single
``import peerrate.models`` before ``create_all``.
"""

from peerrate.models.user import User                        # noqa: F401
from peerrate.models.class_model import SchoolClass          # noqa: F401
from peerrate.models.project_group import ProjectGroup       # noqa: F401
from peerrate.models.participant import Participant          # noqa: F401
from peerrate.models.peer_rating import PeerRating           # noqa: F401

"""
Recap router: latest rating per rater/ratee pair as a table.

Endpoints:
    GET /recap → recap table (signed-in users only)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from peerrate.database import get_db
from peerrate.exceptions import FetchError
from peerrate.models.user import User
from peerrate.routers.auth import get_current_user, login_redirect
from peerrate.services.recap import load_recap
from peerrate.services.store import RatingStore
from peerrate.templating import templates

router = APIRouter(prefix="/recap", tags=["recap"])

COLUMNS = [
    ("group_id", "Group ID"),
    ("group_name", "Group Name"),
    ("ratee_id", "Ratee NRP"),
    ("ratee_name", "Ratee Name"),
    ("rater_id", "Rater NRP"),
    ("rater_name", "Rater Name"),
    ("rating_score", "Score"),
    ("rating_comment", "Comment"),
    ("created_at", "Timestamp"),
]


@router.get("", response_class=HTMLResponse)
async def recap_page(
    request: Request,
    current_user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Render the deduplicated, sorted recap table."""
    if not current_user:
        return login_redirect()

    rows, error = [], None
    try:
        rows = await load_recap(RatingStore(db))
    except FetchError as e:
        error = e.public_message

    return templates.TemplateResponse(
        request,
        "recap.html",
        {
            "current_user": current_user,
            "columns": COLUMNS,
            "rows": rows,
            "error": error,
        },
    )

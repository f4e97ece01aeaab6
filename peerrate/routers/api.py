"""
JSON API: option lists, rating submission and recap rows.

Endpoints:
    GET  /api/classes                            → class options
    GET  /api/classes/{class_id}/groups          → groups of a class
    GET  /api/groups/{group_id}/participants     → members of a group
    POST /api/ratings                            → submit one rating
    GET  /api/recap                              → recap rows
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from peerrate.database import get_db
from peerrate.exceptions import FetchError, PeerRateError, ValidationError, WriteError
from peerrate.models.user import User
from peerrate.routers.auth import require_api_user
from peerrate.schemas.options import ClassOption, GroupOption, ParticipantOption
from peerrate.schemas.rating import PeerRatingOut
from peerrate.schemas.recap import RecapRow
from peerrate.services.recap import load_recap
from peerrate.services.store import RatingStore
from peerrate.services.submission import SubmissionWriter

router = APIRouter(prefix="/api", tags=["api"])


def _unavailable(e: PeerRateError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.public_message)


# ═══════════════════════════════════════════════════════════════
#  Option lists
# ═══════════════════════════════════════════════════════════════

@router.get("/classes", response_model=List[ClassOption])
async def list_classes(
    _user: User = Depends(require_api_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await RatingStore(db).list_classes()
    except FetchError as e:
        raise _unavailable(e)


@router.get("/classes/{class_id}/groups", response_model=List[GroupOption])
async def list_groups(
    class_id: str,
    _user: User = Depends(require_api_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await RatingStore(db).list_groups(class_id)
    except FetchError as e:
        raise _unavailable(e)


@router.get("/groups/{group_id}/participants", response_model=List[ParticipantOption])
async def list_participants(
    group_id: str,
    _user: User = Depends(require_api_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await RatingStore(db).list_participants(group_id)
    except FetchError as e:
        raise _unavailable(e)


# ═══════════════════════════════════════════════════════════════
#  Ratings
# ═══════════════════════════════════════════════════════════════

@router.post("/ratings", response_model=PeerRatingOut, status_code=status.HTTP_201_CREATED)
async def create_rating(
    payload: Dict[str, Any] = Body(...),
    _user: User = Depends(require_api_user),
    db: AsyncSession = Depends(get_db),
):
    """Validate and insert one rating. 422 names the first offending field."""
    try:
        return await SubmissionWriter(RatingStore(db)).write(payload)
    except ValidationError as e:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"field": e.field, "detail": e.message},
        )
    except WriteError as e:
        raise _unavailable(e)


@router.get("/recap", response_model=List[RecapRow])
async def recap_rows(
    _user: User = Depends(require_api_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await load_recap(RatingStore(db))
    except FetchError as e:
        raise _unavailable(e)

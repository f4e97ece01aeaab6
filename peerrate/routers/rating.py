"""
Rating form router for the cascading Class → Group → Rater → Ratee form.

Endpoints:
    GET  /rate          → render the form from the session's selections
    POST /rate/select   → apply one selection change (clears downstream fields)
    POST /rate/submit   → validate and store the rating
    POST /rate/reset    → clear the form

The in-progress selections live in the signed session cookie; option lists
are refetched on every request by replaying the selections.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from peerrate.database import get_db
from peerrate.exceptions import ValidationError, WriteError
from peerrate.models.peer_rating import MAX_RATING_SCORE, MIN_RATING_SCORE
from peerrate.models.user import User
from peerrate.routers.auth import get_current_user, login_redirect
from peerrate.services.selector import CascadingSelector
from peerrate.services.store import RatingStore
from peerrate.services.submission import SubmissionWriter
from peerrate.templating import templates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rate", tags=["rating"])

SESSION_KEY = "rating_form"


# ═══════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════

async def _load_selector(request: Request, db: AsyncSession) -> CascadingSelector:
    return await CascadingSelector.restore(RatingStore(db), request.session.get(SESSION_KEY))


def _save_selector(request: Request, selector: CascadingSelector) -> None:
    request.session[SESSION_KEY] = selector.snapshot()


def _render(
    request: Request,
    selector: CascadingSelector,
    current_user: User,
    errors: Optional[dict] = None,
    alert: Optional[str] = None,
    status_code: int = 200,
):
    return templates.TemplateResponse(
        request,
        "rate.html",
        {
            "current_user": current_user,
            "form": selector.state,
            "selector": selector,
            "ratee_options": selector.ratee_options,
            "errors": errors or {},
            "alert": alert,
            "success": request.query_params.get("success"),
            "min_score": MIN_RATING_SCORE,
            "max_score": MAX_RATING_SCORE,
        },
        status_code=status_code,
    )


# ═══════════════════════════════════════════════════════════════
#  Routes
# ═══════════════════════════════════════════════════════════════

@router.get("", response_class=HTMLResponse)
async def rating_form(
    request: Request,
    current_user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Render the peer rating form."""
    if not current_user:
        return login_redirect()

    selector = await _load_selector(request, db)
    _save_selector(request, selector)
    return _render(request, selector, current_user)


@router.post("/select")
async def change_selection(
    request: Request,
    changed: str = Form(...),
    class_id: str = Form(""),
    group_id: str = Form(""),
    rater_id: str = Form(""),
    ratee_id: str = Form(""),
    rating_score: str = Form(""),
    rating_comment: str = Form(""),
    current_user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Apply the change of one cascading field, keeping typed score/comment."""
    if not current_user:
        return login_redirect()

    selector = await _load_selector(request, db)
    if changed == "class_id":
        await selector.select_class(class_id)
    elif changed == "group_id":
        await selector.select_group(group_id)
    elif changed == "rater_id":
        selector.select_rater(rater_id)
    elif changed == "ratee_id":
        selector.select_ratee(ratee_id)
    else:
        logger.debug("Ignoring change of unknown field %r", changed)

    selector.set_score(rating_score)
    selector.set_comment(rating_comment)

    _save_selector(request, selector)
    return RedirectResponse(url="/rate", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/submit", response_class=HTMLResponse)
async def submit_rating(
    request: Request,
    ratee_id: str = Form(""),
    rating_score: str = Form(""),
    rating_comment: str = Form(""),
    current_user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Validate the assembled form and write one rating."""
    if not current_user:
        return login_redirect()

    store = RatingStore(db)
    selector = await CascadingSelector.restore(store, request.session.get(SESSION_KEY))
    selector.select_ratee(ratee_id)
    selector.set_score(rating_score)
    selector.set_comment(rating_comment)

    try:
        await SubmissionWriter(store).submit(selector)
    except ValidationError as e:
        _save_selector(request, selector)
        return _render(
            request, selector, current_user,
            errors={e.field: e.message},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    except WriteError:
        _save_selector(request, selector)
        return _render(
            request, selector, current_user,
            alert="Failed to submit rating",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    _save_selector(request, selector)
    return RedirectResponse(
        url="/rate?success=Rating+submitted+successfully", status_code=status.HTTP_303_SEE_OTHER
    )


@router.post("/reset")
async def reset_form(
    request: Request,
    current_user: Optional[User] = Depends(get_current_user),
):
    """Drop the saved selections."""
    if not current_user:
        return login_redirect()

    request.session.pop(SESSION_KEY, None)
    return RedirectResponse(url="/rate", status_code=status.HTTP_303_SEE_OTHER)

"""
PeerRate — FastAPI application entry-point.

Run with:
    uvicorn peerrate.main:app --reload
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.middleware.sessions import SessionMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

import peerrate.models  # noqa: F401  (registers tables on Base.metadata)
from peerrate.config import settings
from peerrate.database import Base, engine, get_db
from peerrate.exceptions import FetchError
from peerrate.logging_config import setup_logging
from peerrate.models.user import User
from peerrate.routers import api, auth, rating, recap, users
from peerrate.routers.auth import get_current_user, set_auth_cookie
from peerrate.services.store import RatingStore
from peerrate.templating import STATIC_DIR, templates


# ── Lifespan: logging + create tables on startup ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Peer evaluation for project groups: rate your teammates and review the recap.",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Session middleware (OAuth state + in-progress rating form) ──
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    max_age=settings.SESSION_MAX_AGE_SECONDS,
    https_only=not settings.DEBUG,
)
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=("*",))

# ── Static files ──
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# ── Register routers ──
app.include_router(auth.router)
app.include_router(rating.router)
app.include_router(recap.router)
app.include_router(users.router)
app.include_router(api.router)


if not settings.is_production:

    @app.get("/mock-login/{user_id}")
    def mock_login(user_id: int):
        """Development shortcut: sign in as any existing user id."""
        resp = RedirectResponse(url="/rate", status_code=status.HTTP_303_SEE_OTHER)
        return set_auth_cookie(resp, user_id)


# ── Landing page ──
@app.get("/")
async def homepage(
    request: Request,
    current_user: Optional[User] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stats = None
    if current_user:
        try:
            stats = await RatingStore(db).count_entities()
        except FetchError:
            stats = None

    return templates.TemplateResponse(
        request,
        "home.html",
        {
            "current_user": current_user,
            "stats": stats,
            "success": request.query_params.get("success"),
        },
    )

"""Shared Jinja2 environment for all HTML routers."""

from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi.templating import Jinja2Templates

PACKAGE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"
STATIC_DIR = PACKAGE_DIR / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def format_timestamp(value: Optional[datetime]) -> str:
    """Render a timestamp as ``YYYY-MM-DD HH:MM``."""
    if not value:
        return ""
    return value.strftime("%Y-%m-%d %H:%M")


templates.env.filters["timestamp"] = format_timestamp

"""Web pages for capturing evaluations and reviewing them."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from fridgelens.server.templates import load as load_template

HOME_PAGE = load_template("index.html")
DASHBOARD_PAGE = load_template("dashboard.html")

router = APIRouter(include_in_schema=False)


@router.get("/", response_class=HTMLResponse)
def ui_home() -> str:
    """Serve the capture → detect → generate → rate page."""

    return HOME_PAGE


@router.get("/dashboard", response_class=HTMLResponse)
def ui_dashboard() -> str:
    """Serve the evaluation dashboard."""

    return DASHBOARD_PAGE

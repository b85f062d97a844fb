"""
FastAPI web application for herdstat.

Serves the contribution graph as SVG and the underlying calendar as JSON.
"""

from datetime import date

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response

from herdstat.color_quantizer import MAX_LEVELS, MIN_LEVELS, ColorQuantizer
from herdstat.config import GraphSettings, load_settings, validate_config
from herdstat.contribution_calendar import Calendar
from herdstat.contribution_events import collect_contributions, collect_repositories
from herdstat.github_client import GitHubClient, GitHubClientError
from herdstat.heatmap_renderer import HeatmapRenderer, HeatmapRenderError
from herdstat.svg_writer import SvgWriteError, finalize_svg

app = FastAPI(
    title="herdstat",
    description="GitHub-style contribution graphs for open source communities",
    version="0.1.0",
)

HEX_COLOR_QUERY = r"^#?[0-9A-Fa-f]{6}$"


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


def _collect_calendar(
    until: date | None, color: str | None, levels: int | None
) -> tuple[GraphSettings, Calendar]:
    """
    Load settings and aggregate the configured repositories.

    Raises:
        HTTPException: on configuration or GitHub API errors
    """
    try:
        settings = load_settings(last_date=until, color=color, levels=levels)
        validate_config(settings)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=f"Configuration error: {e}")

    client = GitHubClient(settings.github_token)
    calendar = Calendar(settings.last_date)

    try:
        repositories = collect_repositories(client, settings.repositories)
        collect_contributions(client, repositories, calendar, settings.commit_filters)
    except GitHubClientError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=500, detail=f"Configuration error: {e}")

    return settings, calendar


@app.get("/api/calendar")
def get_calendar(
    until: date | None = None,
    color: str | None = Query(None, pattern=HEX_COLOR_QUERY),
    levels: int | None = Query(None, ge=MIN_LEVELS, le=MAX_LEVELS),
):
    """
    Get the contribution calendar.

    Returns:
        JSON with the calendar window, totals and a {date, count, level}
        entry for each of the 364 days
    """
    settings, calendar = _collect_calendar(until, color, levels)
    quantizer = ColorQuantizer(settings.color_scheme, settings.levels)
    max_count = calendar.max_count()

    return {
        "first_date": calendar.first_date.isoformat(),
        "last_date": calendar.last_date.isoformat(),
        "total": calendar.total_count(),
        "max_count": max_count,
        "levels": settings.levels,
        "days": [
            {
                "date": record.date.isoformat(),
                "count": record.count,
                "level": quantizer.level_of(record, max_count),
            }
            for record in calendar
        ],
    }


@app.get("/contribution-graph.svg")
def get_contribution_graph(
    until: date | None = None,
    color: str | None = Query(None, pattern=HEX_COLOR_QUERY),
    levels: int | None = Query(None, ge=MIN_LEVELS, le=MAX_LEVELS),
):
    """Render the contribution graph as an SVG image."""
    settings, calendar = _collect_calendar(until, color, levels)
    quantizer = ColorQuantizer(settings.color_scheme, settings.levels)

    try:
        markup = HeatmapRenderer(quantizer).render(calendar)
        content = finalize_svg(markup, minify=settings.minify)
    except (HeatmapRenderError, SvgWriteError) as e:
        raise HTTPException(status_code=500, detail=str(e))

    return Response(content=content, media_type="image/svg+xml")

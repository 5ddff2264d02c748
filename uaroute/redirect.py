# uaroute/redirect.py

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from uaroute.classifier import classify_os_class_cached
from uaroute.errors import UaParserError, ZonesUnavailableError
from uaroute.registry import registry_state
from uaroute.schemas import RedirectStatsResponse
from uaroute.stats import redirect_stats
from uaroute.targets import HtmlPage, resolve_target
from uaroute.zones import zone_store
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """Simple health check endpoint"""
    return {
        "status": "healthy",
        "rules": registry_state().value,
        "zones": len(zone_store.zone_names()) if zone_store.loaded else None,
    }


@router.get("/stats/redirects", response_model=RedirectStatsResponse)
async def redirect_counts() -> RedirectStatsResponse:
    """Counters for the minute in progress"""
    stats = redirect_stats.snapshot()
    return RedirectStatsResponse(
        **stats["global"],
        by_route={
            f"{zone}/{route}": counts["redirects"] + counts["pages"]
            for (zone, route), counts in stats["by_route"].items()
        },
        by_os_class={
            os_class: counts["redirects"] + counts["pages"]
            for os_class, counts in stats["by_os_class"].items()
        },
    )


@router.get("/{zone_name}/{route_name}")
def follow_route(zone_name: str, route_name: str, request: Request) -> Response:
    """
    Resolve a zone/route to its target for this client.
    Redirects (307) or serves an HTML page.
    """
    try:
        target = zone_store.find_target(zone_name, route_name)
    except ZonesUnavailableError as e:
        logger.error(f"{zone_name}/{route_name}: {e}")
        redirect_stats.failed()
        raise HTTPException(status_code=500, detail="Zones unavailable")

    if target is None:
        redirect_stats.not_found()
        raise HTTPException(status_code=404, detail="Not Found")

    user_agent = request.headers.get("user-agent", "")
    try:
        os_class = classify_os_class_cached(user_agent)
    except UaParserError as e:
        logger.error(f"{zone_name}/{route_name}: user agent classification failed: {e}")
        redirect_stats.failed()
        raise HTTPException(status_code=500, detail="User agent classification failed")

    resolved = resolve_target(target, os_class)
    if resolved is None:
        redirect_stats.not_found()
        raise HTTPException(status_code=404, detail="Not Found")

    if isinstance(resolved, HtmlPage):
        logger.info(f"{zone_name}/{route_name} -> HTML")
        logger.debug(f"{zone_name}/{route_name} -> {resolved}")
        redirect_stats.served(zone_name, route_name, os_class, page=True)
        return HTMLResponse(resolved.html)

    logger.info(f"{zone_name}/{route_name} -> {resolved}")
    redirect_stats.served(zone_name, route_name, os_class)
    return RedirectResponse(resolved.url, status_code=307)

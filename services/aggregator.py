from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests

from providers import mock_local
from providers.ticketmaster import SearchParams, TicketmasterProvider, UpstreamError
from services.grouping import GroupedEvent

logger = logging.getLogger(__name__)


def _dedupe(items: List[GroupedEvent]) -> List[GroupedEvent]:
    seen, out = set(), []
    for e in items:
        if e.id in seen:
            continue
        seen.add(e.id)
        out.append(e)
    return out


async def _call_provider(
    provider: TicketmasterProvider, params: SearchParams
) -> tuple[List[GroupedEvent], Optional[str]]:
    try:
        items = await asyncio.to_thread(provider.search_grouped, params)
    except UpstreamError as exc:
        logger.warning("ticketmaster upstream failed: %s", exc)
        return [], str(exc)
    except requests.RequestException as exc:
        logger.warning("ticketmaster transport failed: %r", exc)
        return [], f"{type(exc).__name__}: {exc}"
    return items, None


async def search_events(
    params: SearchParams,
    *,
    provider: TicketmasterProvider,
    include_mock: bool = True,
) -> Dict[str, Any]:
    """
    Grouped Ticketmaster events plus local listings for the other platforms.

    Upstream failures are not fatal: the error is reported and every local
    listing (Ticketmaster samples included) is served instead.
    """
    tm_items, err = await _call_provider(provider, params)

    errors: List[str] = []
    items: List[GroupedEvent] = list(tm_items)
    if err:
        errors.append(err)
        items = mock_local.search(query=params.keyword, exclude_platforms=())
    elif include_mock:
        items.extend(mock_local.search(query=params.keyword))

    items = _dedupe(items)
    return {
        "count": len(items),
        "items": items,
        "errors": errors,
        "debug": {
            "ticketmaster_configured": provider.configured,
            "ticketmaster_count": len(tm_items),
            "fallback": bool(err),
        },
    }

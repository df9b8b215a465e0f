"""
Service package marker.

Intentionally empty to avoid heavy imports at package import time.
Import the concrete modules directly, e.g.:

    from services.grouping import group_events, normalize_title
    from services.storage import init_db, add_favourite, list_favourites
    from services.aggregator import search_events
"""
__all__: list[str] = []

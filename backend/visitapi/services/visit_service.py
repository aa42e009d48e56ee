"""
Current Visit API: Visit Service (Business Logic Orchestrator)
==============================================================

What:  Coordinates decoding, storage and fuzzy name matching for the visits
       endpoint.
How:   Composes the wire decoder, VisitStore and the name matcher.
Who:   Called by routes.visits; gets its store from the app factory.

Search Flow (GET ?userId=..&searchString=..):
    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐
    │ recent_names │───▶│  best_match  │───▶│  visits_of   │
    │   (store)    │    │  (matcher)   │    │   (store)    │
    └──────────────┘    └──────────────┘    └──────────────┘
    No qualifying name → empty result, the second query is skipped.
"""

import logging
from typing import List

from visitapi.schemas.visit import Visit
from visitapi.schemas.visit_json import parse_visit
from visitapi.services.name_matcher import best_match
from visitapi.services.visit_store import VisitStore

logger = logging.getLogger(__name__)


class VisitService:
    """
    Business logic layer for visit operations.

    Holds no per-request state; the store it wraps is safe to share between
    concurrent requests.
    """

    def __init__(self, store: VisitStore):
        self.store = store

    async def create_visit(self, body: str) -> Visit:
        """
        Decode a create body and record the visit.

        Raises:
            ValidationError: the body lacks userId or name (→ 400)
            StoreError: the insert failed (→ 503)
        """
        visit = parse_visit(body)
        return await self.store.insert(visit)

    async def find_by_id(self, visit_id: str) -> List[Visit]:
        """Zero or one visit, as a list so both read modes share an encoder."""
        visit = await self.store.by_id(visit_id)
        return [] if visit is None else [visit]

    async def search(self, user_id: str, search_string: str) -> List[Visit]:
        """
        Visits to the recently visited place best matching `search_string`.

        Returns:
            Every visit by `user_id` to the matched name, newest first, or an
            empty list when none of the recent names is close enough.
        """
        names = await self.store.recent_names(user_id)
        name = best_match(names, search_string)
        if name is None:
            logger.info("No recent place of user %s matches %r", user_id, search_string)
            return []
        return await self.store.visits_of(user_id, name)

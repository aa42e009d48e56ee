"""
Current Visit API: Visits Route Handlers
========================================

What:  GET and POST on /current, the only business endpoint.
How:   Parses the raw query string or body, delegates to VisitService and
       writes the hand-rolled wire format.
Who:   Called by API clients; faults are turned into 400/503 by the global
       exception handlers in main.py.

Read modes (GET):
    (no query)                          → HTML help page
    ?visitId=<v>                        → [<visit>] or []
    ?userId=<u>&searchString=<q>        → visits to the best-matching place
    anything else                       → 400 Invalid request

The query string is parsed by hand instead of through FastAPI's Query
parameters: duplicate keys, unknown keys and pairs without `=` must be
rejected, and only `searchString` is URL-decoded.
"""

import logging
from typing import NamedTuple, Optional
from urllib.parse import unquote_plus

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response

from visitapi.exceptions import ValidationError
from visitapi.middleware.logging import record_mode
from visitapi.schemas.visit_json import visit_id_json, visits_to_json
from visitapi.services.visit_service import VisitService

logger = logging.getLogger(__name__)

VISITS_PATH = "/current"
JSON_MEDIA_TYPE = "application/json"

HELP_PAGE = (
    "<h1>Current Visit API</h1><p>Please send well-formed requests: "
    "POST { userId: \"...\", name: \"...\" } to record a visit, "
    "GET ?visitId=... to fetch one, or "
    "GET ?userId=...&amp;searchString=... to search a user's recent places.</p>"
)

router = APIRouter(tags=["Visits"])


class ReadQuery(NamedTuple):
    """Either visit_id is set, or both user_id and search_string are."""

    visit_id: Optional[str] = None
    user_id: Optional[str] = None
    search_string: Optional[str] = None


def parse_read_query(query: str) -> ReadQuery:
    """
    Interpret a raw (still percent-encoded) query string.

    Raises:
        ValidationError: the query is not exactly `visitId=..` or
            `userId=..&searchString=..` in either order.
    """
    pairs = query.split("&")
    # Trailing empty pairs are dropped: `visitId=abc&` reads as `visitId=abc`.
    while pairs and not pairs[-1]:
        pairs.pop()

    if len(pairs) == 1:
        key, sep, value = pairs[0].partition("=")
        if key != "visitId" or not sep:
            raise ValidationError(context={"query": query})
        return ReadQuery(visit_id=value)

    if len(pairs) != 2:
        raise ValidationError(context={"query": query, "pairs": len(pairs)})

    user_id: Optional[str] = None
    search_string: Optional[str] = None
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValidationError(context={"query": query})
        if key == "userId" and user_id is None:
            user_id = value
        elif key == "searchString" and search_string is None:
            search_string = unquote_plus(value, encoding="utf-8")
        else:
            # Unknown key, or a second userId / searchString.
            raise ValidationError(context={"query": query, "key": key})
    return ReadQuery(user_id=user_id, search_string=search_string)


def get_visit_service(request: Request) -> VisitService:
    """FastAPI dependency: the VisitService built by create_app()."""
    return request.app.state.visit_service


@router.get(
    VISITS_PATH,
    response_class=Response,
    summary="Fetch a visit by id or search a user's recent places",
    responses={
        200: {"description": "Visit list in the hand-rolled format, or the help page"},
        400: {"description": "Malformed or unknown query parameters"},
        503: {"description": "Database unavailable"},
    },
)
async def read_visits(
    request: Request,
    service: VisitService = Depends(get_visit_service),
) -> Response:
    query = request.url.query
    if not query:
        record_mode(request, "help")
        return HTMLResponse(HELP_PAGE)

    read = parse_read_query(query)
    if read.visit_id is not None:
        record_mode(request, "by-id")
        visits = await service.find_by_id(read.visit_id)
    else:
        record_mode(request, "search")
        visits = await service.search(read.user_id, read.search_string)

    return Response(content=visits_to_json(visits), media_type=JSON_MEDIA_TYPE)


@router.post(
    VISITS_PATH,
    response_class=Response,
    summary="Record a visit",
    responses={
        200: {"description": "{ visitId: \"...\" } for the new visit"},
        400: {"description": "Body lacks userId or name"},
        503: {"description": "Database unavailable or insert failed"},
    },
)
async def create_visit(
    request: Request,
    service: VisitService = Depends(get_visit_service),
) -> Response:
    record_mode(request, "create")
    body = (await request.body()).decode("utf-8", errors="replace")
    visit = await service.create_visit(body)
    return Response(content=visit_id_json(visit), media_type=JSON_MEDIA_TYPE)

"""
Current Visit API: Hand-Rolled Wire Format
==========================================

What:  Decoder for create bodies and encoder for responses.
How:   Regex extraction on the way in, string formatting on the way out.

Wire shape (unquoted keys, double-quoted values):
    visit:        { userId: "u", name: "n", visitId: "v" }
    confirmation: { visitId: "v" }
    collection:   [<visit>, <visit>, ...]

This is NOT standard JSON. No escaping is performed in either direction, so
values containing `"` or backslashes produce ill-formed output. The decoder
tolerates arbitrary whitespace, field order and extra fields, and accepts a
quoted key (`"userId":`) as well as a bare one.
"""

import re
import uuid
from typing import Iterable, Optional, Tuple

from visitapi.exceptions import ValidationError
from visitapi.schemas.visit import Visit

_USER_ID_PATTERN = re.compile(r'\buserId"?\s*:\s*"([^"]*)"', re.DOTALL)
_NAME_PATTERN = re.compile(r'\bname"?\s*:\s*"([^"]*)"', re.DOTALL)


def extract_fields(body: str) -> Optional[Tuple[str, str]]:
    """Return (userId, name) from the first occurrence of each key, or None."""
    user_id_match = _USER_ID_PATTERN.search(body)
    name_match = _NAME_PATTERN.search(body)
    if user_id_match is None or name_match is None:
        return None
    return user_id_match.group(1), name_match.group(1)


def parse_visit(body: str) -> Visit:
    """
    Decode a create body into a new Visit with a fresh visit id.

    Raises:
        ValidationError: `userId` or `name` is missing.
    """
    fields = extract_fields(body)
    if fields is None:
        raise ValidationError(context={"body_length": len(body)})
    user_id, name = fields
    return Visit(user_id=user_id, name=name, visit_id=str(uuid.uuid4()))


def visit_to_json(visit: Visit) -> str:
    return '{ userId: "%s", name: "%s", visitId: "%s" }' % (
        visit.user_id,
        visit.name,
        visit.visit_id,
    )


def visit_id_json(visit: Visit) -> str:
    return '{ visitId: "%s" }' % visit.visit_id


def visits_to_json(visits: Iterable[Visit]) -> str:
    return "[" + ", ".join(visit_to_json(visit) for visit in visits) + "]"

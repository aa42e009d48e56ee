"""
Current Visit API: Application Package
======================================

What:  Records a user's visits to named places and answers two read queries:
       a visit by its identifier, and the most recent visits to the place whose
       name best matches a free-text search string.

Architecture Note:
    The backend keeps the same layering from HTTP down to storage:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← query parsing, status codes
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← fuzzy name matching, orchestration
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM, Visit, wire codec
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← async SQLAlchemy engine per store
    └─────────────────────────────────────┘

    The matcher in `services.name_matcher` is pure and performs no I/O; every
    fault source lives in the store or in request decoding.
"""

__version__ = "1.0.0"

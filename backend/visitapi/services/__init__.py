# Services package init
"""
Current Visit API: Services Layer
=================================

What:  Business logic between routes (HTTP) and the database.

Service Inventory:
    - name_matcher: normalization, edit distance, ratio and best-match selection
    - VisitStore: async SQLAlchemy access to the CurrentVisit table
    - VisitService: create / find-by-id / fuzzy search orchestration
"""

# Routes package init
"""
Current Visit API: API Routes Package
=====================================

Route Inventory:
    - visits.py:  GET  /current   (help page, visit by id, fuzzy search)
                  POST /current   (record a visit)
    - health.py:  GET  /health    (service health check)

Routes stay thin: they parse the request, call VisitService and format the
response. Status codes for faults come from the handlers in main.py.
"""

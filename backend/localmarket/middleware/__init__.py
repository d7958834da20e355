# Middleware package init
"""
LocalMarket Backend: Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID first so every later log line can carry it
    - Logging measures the full handler duration and logs the final status
"""

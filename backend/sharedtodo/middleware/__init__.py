# Middleware package init
"""
Shared Todo Backend — Middleware Package
=========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit: rejects over-limit /api/ traffic before any other work
    2. Request ID: correlation id for logs, error handlers and the response
    3. Logging: one access line per request, with status and duration
"""

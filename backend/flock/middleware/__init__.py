# Middleware package init
"""
Flock Backend — Middleware Package
===================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [Rate Limit] → [GZip] → [CORS] → Route

    1. Request ID first, so the access log line and a 429 both carry it
    2. Logging records every response, including rate-limited ones
    3. Rate Limit only inspects /api/auth/* (credential endpoints)
"""

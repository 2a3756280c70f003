# Middleware package init
"""
StackLite Backend — Middleware Package
========================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

Request ID runs first so every access-log line and error body carries the
same correlation id that is returned in X-Request-ID.
"""

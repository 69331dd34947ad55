"""
Finsolvz Backend — Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [Recovery] → [GZip]
            → [Request Limit] → [Rate Limit] → [CORS] → Route Handler

    1. Request ID: correlation id for logs and error bodies
    2. Logging: sees the final status, including recovered 500s
    3. Recovery: turns unhandled exceptions into a structured 500
    4. GZip: compresses responses above a minimum size
    5. Request Limit: 10 MiB body cap and 30 s deadline
    6. Rate Limit: per-IP fixed window, rejects before any route work
"""

"""
Finsolvz Backend — Application Package Initializer
===================================================

What: Marks the `finsolvz` directory as a Python package.
Why:  Enables module imports like `from finsolvz.config import settings`.
Who:  Used by uvicorn (`finsolvz.main:app`), pytest, and the bootstrap script.

Architecture Note:
    The backend is a multi-tenant financial-reporting API organised in layers:

    ┌─────────────────────────────────────┐
    │      Routes (HTTP delivery layer)   │  ← decoding, status codes, role guard
    ├─────────────────────────────────────┤
    │      Services (business rules)      │  ← uniqueness, normalization, auth
    ├─────────────────────────────────────┤
    │   Repositories (MongoDB adapters)   │  ← one per collection + assembler
    ├─────────────────────────────────────┤
    │   Models & Schemas (data shapes)    │  ← stored documents + API contracts
    └─────────────────────────────────────┘

    Cross-cutting pieces (middleware, TTL cache, rate limiter, security
    primitives) are constructed once by the application factory and injected
    where they are needed.
"""

__version__ = "1.0.0"

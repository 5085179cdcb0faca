"""
Flock Backend — Application Package Initializer
================================================

What: Marks the `flock` directory as a Python package.
Why:  Enables module imports like `from flock.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is layered the same way for every resource (auth, posts,
    users, notifications):

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns: cookies, status codes
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Validation rules, toggles, side effects
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes never query the database directly; services never touch the
    request or response objects.
"""

__version__ = "1.0.0"

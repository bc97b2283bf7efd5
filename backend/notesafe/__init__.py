"""
NoteSafe Backend — Application Package
========================================

Account deletion engine for the notes application.

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (cascade, cleanup, retry)│  ← Transaction orchestration
    ├─────────────────────────────────────┤
    │    Stores (records, files)          │  ← Session-scoped record access, blobs
    ├─────────────────────────────────────┤
    │   Models & Schemas (Data)           │  ← SQLAlchemy ORM + Pydantic records
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

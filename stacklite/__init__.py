"""
StackLite Backend — Application Package
=========================================

A question & answer service (users, questions, embedded answers, votes,
comments) behind a JSON REST API.

Layers:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (orchestration, storage) │
    ├─────────────────────────────────────┤
    │   Domain (thread state machine)     │  ← pure, no I/O
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

"""Services Layer: moderation commands, queries and the expiration sweep.

Invariants:
    - Commands own their transaction: commit on success, rollback then re-raise on failure
    - Queries never commit
    - Collaborators arrive as repository protocols (core/repository_protocols.py)

Design Decisions:
    - One use case per module; factories.py wires the SQLAlchemy stores
"""

"""Infrastructure Layer: database access, stores, logging and the background sweep.

Invariants:
    - Stores implement the Protocols in core/repository_protocols.py
    - SQLAlchemy errors surface as DatabaseError (core/errors.py)
"""

"""Pydantic Schemas: request validation for the moderation API.

Invariants:
    - Schemas validate at the system boundary; core re-validates command input
    - Domain enums from core/ used for enum fields

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""

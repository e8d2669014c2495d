"""Core Layer: sanction rules, permission hierarchy and flag projection.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - No IO, no async: callers pass records and the current time in

Design Decisions:
    - Functional core, imperative shell: services fetch, core decides, services persist
"""

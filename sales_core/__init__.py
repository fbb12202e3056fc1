"""Core (UI-agnostic) sales analytics logic.

This package contains:
- record ingestion and validation (raw dicts / pandas / CSV -> Transaction)
- filter construction and evaluation
- aggregation, top-N ranking and the rep x month pivot
- delimited-text export
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""

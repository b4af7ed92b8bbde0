"""Core (UI-agnostic) studio analytics logic.

This package contains:
- sheet fetching (Google Sheets values API -> immutable grid)
- multi-table sheet parsing and record normalization (grid -> pandas)
- filter normalization
- metric compute functions (JSON-serializable payloads)
"""

"""State/store layer.

This package is the single source of truth for how partial updates from
datagram ingestion and HTTP pushes are merged into the canonical snapshot.
"""

"""Ingestion layer.

This package contains adapters that receive telemetry (datagrams, HTTP
pushes) and emit normalized partial updates for the state store.
"""

from motionhub.ingestion.decoder import build_push_update, decode_datagram

__all__ = ["build_push_update", "decode_datagram"]

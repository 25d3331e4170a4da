"""
Ingestion: wiring from token discovery into the tracker store.
"""

from token_tracker.ingestion.handler import IngestResult, TokenIngestor

__all__ = ["IngestResult", "TokenIngestor"]

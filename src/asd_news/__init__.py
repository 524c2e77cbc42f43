"""ASD news digest: feed ingestion, dedup and LLM enrichment for parents."""

__version__ = "0.1.0"

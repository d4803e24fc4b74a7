from . import analysis, forwarder, ingestion

__all__ = ["analysis", "forwarder", "ingestion"]

"""MySideline ingestion pipeline for rugby-league Masters carnivals."""

__version__ = "0.1.0"

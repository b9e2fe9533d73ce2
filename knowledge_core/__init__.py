"""knowledge_core: ingest text, documents and crawled pages into retrievable passages."""

__version__ = "0.1.0"

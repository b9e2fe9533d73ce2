"""Business logic: ingestion, retrieval and crawling services."""

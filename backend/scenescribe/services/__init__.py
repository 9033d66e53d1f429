"""Provider-facing services: ingestion, text generation, video generation, storage."""

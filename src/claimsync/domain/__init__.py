"""Domain layer: pure ingestion, extraction and scoring logic."""

"""Listening-history ingestion.

This package detects export formats, parses them into canonical
listens, validates the corpus, and drives the import pipeline.
"""

"""Ingestion, retrieval and storage services for docchat."""

"""
Ingestion — PDF text extraction, chunking, and embedding into the vector store.

This module converts an uploaded PDF into embedded chunks stored under
the application's namespace. See :class:`IngestionPipeline`.
"""

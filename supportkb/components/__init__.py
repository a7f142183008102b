"""
Document ingestion, chunking and vector storage components.
"""

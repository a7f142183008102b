"""
Support-bot knowledge base: document ingestion and retrieval for grounded chat.
"""

__version__ = "1.0.0"

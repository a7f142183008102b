"""
Database models for document storage.
"""

from sqlalchemy import Column, String, Integer, Text, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import declarative_base, relationship
from pgvector.sqlalchemy import Vector

from ..config.settings import EMBEDDING_DIMENSION

Base = declarative_base()

class DocumentModel(Base):
    """One uploaded knowledge-base source."""
    __tablename__ = 'documents'

    id = Column(Integer, primary_key=True)
    title = Column(Text, nullable=False)
    filename = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    client_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    chunks = relationship(
        "DocumentChunk",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

class DocumentChunk(Base):
    """A slice of a document's text with its embedding vector."""
    __tablename__ = 'document_chunks'

    id = Column(Integer, primary_key=True)
    document_id = Column(
        Integer,
        ForeignKey('documents.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    content = Column(Text, nullable=False)
    embedding = Column(Vector(EMBEDDING_DIMENSION), nullable=True)
    chunk_index = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    document = relationship("DocumentModel", back_populates="chunks")

    __table_args__ = (
        CheckConstraint('length(trim(content)) > 0', name='content_not_empty'),
    )

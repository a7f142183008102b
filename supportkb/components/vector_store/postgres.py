"""
PostgreSQL + pgvector implementation of the chunk store.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import delete, func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from .base import VectorStore
from ...config.database import DatabaseConfig, IndexConfig
from ...config.settings import EMBEDDING_DIMENSION
from ...models.documents import Base, DocumentModel, DocumentChunk
from ...models.records import ChunkRecord, DocumentRecord, ParsedDocument, ScoredChunk
from ...services.database import create_async_db_engine, create_async_session_maker
from ...utils.errors import ConfigurationError, DatabaseError, ForeignKeyViolation, handle_exceptions
from ...utils.text import format_embedding_vector

logger = logging.getLogger(__name__)

FOREIGN_KEY_VIOLATION = '23503'

# Ordering by the raw distance expression lets PostgreSQL use the cosine index
NEAREST_NEIGHBORS_SQL = text("""
    SELECT
        dc.id AS chunk_id,
        dc.document_id,
        dc.content,
        1 - (dc.embedding <=> CAST(:embedding AS vector)) AS similarity
    FROM document_chunks dc
    WHERE dc.embedding IS NOT NULL
    ORDER BY dc.embedding <=> CAST(:embedding AS vector)
    LIMIT :limit
""")

NEAREST_NEIGHBORS_FOR_CLIENT_SQL = text("""
    SELECT
        dc.id AS chunk_id,
        dc.document_id,
        dc.content,
        1 - (dc.embedding <=> CAST(:embedding AS vector)) AS similarity
    FROM document_chunks dc
    JOIN documents d ON dc.document_id = d.id
    WHERE dc.embedding IS NOT NULL
      AND d.client_id = :client_id
    ORDER BY dc.embedding <=> CAST(:embedding AS vector)
    LIMIT :limit
""")

def _is_foreign_key_violation(error: IntegrityError) -> bool:
    orig = error.orig
    code = getattr(orig, 'sqlstate', None) or getattr(orig, 'pgcode', None)
    if code == FOREIGN_KEY_VIOLATION:
        return True
    return 'foreign key' in str(orig).lower()

def _document_record(model: DocumentModel, chunk_count: Optional[int] = None) -> DocumentRecord:
    return DocumentRecord(
        id=model.id,
        title=model.title,
        filename=model.filename,
        content=model.content,
        client_id=model.client_id,
        created_at=model.created_at,
        chunk_count=chunk_count
    )

def _chunk_record(model: DocumentChunk, has_embedding: bool) -> ChunkRecord:
    return ChunkRecord(
        id=model.id,
        document_id=model.document_id,
        content=model.content,
        chunk_index=model.chunk_index,
        has_embedding=has_embedding,
        created_at=model.created_at
    )

class PostgresVectorStore(VectorStore):
    """Stores documents and chunk vectors in PostgreSQL using pgvector.

    Every write runs in its own short transaction, so a chunk is durable as
    soon as ``create_chunk`` returns.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
        index_config: Optional[IndexConfig] = None,
        embedding_dimension: int = EMBEDDING_DIMENSION
    ):
        column_dimension = DocumentChunk.__table__.c.embedding.type.dim
        if embedding_dimension != column_dimension:
            raise ConfigurationError(
                f"EMBEDDING_DIMENSION={embedding_dimension} does not match the "
                f"vector({column_dimension}) column in document_chunks"
            )
        self.engine = engine
        self.async_session = session_maker or create_async_session_maker(engine)
        self.index_config = index_config or IndexConfig()
        self.embedding_dimension = embedding_dimension

    @classmethod
    def from_config(
        cls,
        db_config: DatabaseConfig,
        index_config: Optional[IndexConfig] = None,
        embedding_dimension: int = EMBEDDING_DIMENSION
    ) -> "PostgresVectorStore":
        engine = create_async_db_engine(db_config)
        return cls(engine, index_config=index_config, embedding_dimension=embedding_dimension)

    def _index_sql(self) -> str:
        if self.index_config.index_type == "ivfflat":
            return f"""
                CREATE INDEX IF NOT EXISTS document_chunks_embedding_idx
                ON document_chunks
                USING ivfflat (embedding vector_cosine_ops)
                WITH (lists = {int(self.index_config.ivfflat_lists)});
            """
        return """
            CREATE INDEX IF NOT EXISTS document_chunks_embedding_idx
            ON document_chunks
            USING hnsw (embedding vector_cosine_ops);
        """

    async def initialize(self) -> None:
        """Create the pgvector extension, tables and the cosine index."""
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector;"))
                await conn.run_sync(Base.metadata.create_all)
                await conn.execute(text(self._index_sql()))
            logger.info(f"✓ Database initialized ({self.index_config.index_type} cosine index)")
        except SQLAlchemyError as e:
            logger.error(f"Failed to initialize database: {str(e)}")
            raise DatabaseError(f"Failed to initialize database: {str(e)}") from e

    async def reset(self) -> None:
        """Drop and recreate all tables. Deletes every document and chunk."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.drop_all)
            logger.warning("Dropped documents and document_chunks tables")
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to reset database: {str(e)}") from e
        await self.initialize()

    async def close(self) -> None:
        await self.engine.dispose()

    async def create_document(
        self,
        parsed: ParsedDocument,
        client_id: Optional[str] = None
    ) -> DocumentRecord:
        try:
            async with self.async_session() as session:
                async with session.begin():
                    document = DocumentModel(
                        title=parsed.title,
                        filename=parsed.filename,
                        content=parsed.content,
                        client_id=client_id
                    )
                    session.add(document)
                    await session.flush()
                    await session.refresh(document)
            logger.info(f"Created document {document.id} ({parsed.filename})")
            return _document_record(document, chunk_count=0)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create document {parsed.filename}: {str(e)}")
            raise DatabaseError(f"Failed to create document: {str(e)}") from e

    @handle_exceptions(DatabaseError, "Failed to fetch document")
    async def get_document(self, document_id: int) -> Optional[DocumentRecord]:
        async with self.async_session() as session:
            document = await session.get(DocumentModel, document_id)
            if document is None:
                return None
            chunk_count = await session.scalar(
                select(func.count())
                .select_from(DocumentChunk)
                .where(DocumentChunk.document_id == document_id)
            )
            return _document_record(document, chunk_count=chunk_count or 0)

    @handle_exceptions(DatabaseError, "Failed to list documents")
    async def list_documents(self, client_id: Optional[str] = None) -> List[DocumentRecord]:
        chunk_counts = (
            select(DocumentChunk.document_id, func.count(DocumentChunk.id).label('chunk_count'))
            .group_by(DocumentChunk.document_id)
            .subquery()
        )
        query = (
            select(DocumentModel, func.coalesce(chunk_counts.c.chunk_count, 0))
            .outerjoin(chunk_counts, chunk_counts.c.document_id == DocumentModel.id)
            .order_by(DocumentModel.created_at.desc(), DocumentModel.id.desc())
        )
        if client_id is not None:
            query = query.where(DocumentModel.client_id == client_id)

        async with self.async_session() as session:
            result = await session.execute(query)
            return [_document_record(document, chunk_count=count) for document, count in result.all()]

    async def delete_document(self, document_id: int) -> bool:
        try:
            async with self.async_session() as session:
                async with session.begin():
                    # Chunks first, then the row itself; the FK cascade is a backstop
                    chunks_result = await session.execute(
                        delete(DocumentChunk).where(DocumentChunk.document_id == document_id)
                    )
                    document_result = await session.execute(
                        delete(DocumentModel).where(DocumentModel.id == document_id)
                    )
            existed = (document_result.rowcount or 0) > 0
            logger.info(
                f"Deleted document {document_id} "
                f"({chunks_result.rowcount or 0} chunks, existed={existed})"
            )
            return existed
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete document {document_id}: {str(e)}")
            raise DatabaseError(f"Failed to delete document: {str(e)}") from e

    async def create_chunk(
        self,
        document_id: int,
        content: str,
        embedding: Optional[Sequence[float]],
        chunk_index: Optional[int] = None
    ) -> ChunkRecord:
        if not content or not content.strip():
            raise ValueError("Chunk content must not be empty")
        if embedding is not None and len(embedding) != self.embedding_dimension:
            raise ValueError(
                f"Embedding has {len(embedding)} dimensions, expected {self.embedding_dimension}"
            )

        try:
            async with self.async_session() as session:
                async with session.begin():
                    chunk = DocumentChunk(
                        document_id=document_id,
                        content=content,
                        embedding=list(embedding) if embedding is not None else None,
                        chunk_index=chunk_index
                    )
                    session.add(chunk)
                    await session.flush()
                    await session.refresh(chunk, attribute_names=['id', 'created_at'])
            return _chunk_record(chunk, has_embedding=embedding is not None)
        except IntegrityError as e:
            if _is_foreign_key_violation(e):
                raise ForeignKeyViolation(document_id) from e
            logger.error(f"Integrity error inserting chunk for document {document_id}: {str(e)}")
            raise DatabaseError(f"Failed to insert chunk: {str(e)}") from e
        except SQLAlchemyError as e:
            logger.error(f"Failed to insert chunk for document {document_id}: {str(e)}")
            raise DatabaseError(f"Failed to insert chunk: {str(e)}") from e

    @handle_exceptions(DatabaseError, "Failed to fetch chunks")
    async def get_chunks(self, document_id: int) -> List[ChunkRecord]:
        query = (
            select(DocumentChunk, DocumentChunk.embedding.is_not(None))
            .where(DocumentChunk.document_id == document_id)
            .order_by(DocumentChunk.chunk_index, DocumentChunk.id)
        )
        async with self.async_session() as session:
            result = await session.execute(query)
            return [_chunk_record(chunk, has_embedding=bool(flag)) for chunk, flag in result.all()]

    @handle_exceptions(DatabaseError, "Failed to count chunks")
    async def count_chunks(self, document_id: Optional[int] = None) -> int:
        query = select(func.count()).select_from(DocumentChunk)
        if document_id is not None:
            query = query.where(DocumentChunk.document_id == document_id)
        async with self.async_session() as session:
            return (await session.scalar(query)) or 0

    @handle_exceptions(DatabaseError, "Failed to count documents")
    async def count_documents(self) -> int:
        async with self.async_session() as session:
            return (await session.scalar(select(func.count()).select_from(DocumentModel))) or 0

    async def delete_chunks_by_document(self, document_id: int) -> int:
        try:
            async with self.async_session() as session:
                async with session.begin():
                    result = await session.execute(
                        delete(DocumentChunk).where(DocumentChunk.document_id == document_id)
                    )
            deleted = result.rowcount or 0
            logger.info(f"Deleted {deleted} chunks of document {document_id}")
            return deleted
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to delete chunks: {str(e)}") from e

    async def nearest_neighbors(
        self,
        query_embedding: Sequence[float],
        k: int,
        client_id: Optional[str] = None
    ) -> List[ScoredChunk]:
        if k < 1:
            return []
        if len(query_embedding) != self.embedding_dimension:
            raise ValueError(
                f"Query embedding has {len(query_embedding)} dimensions, "
                f"expected {self.embedding_dimension}"
            )

        params = {
            "embedding": format_embedding_vector(query_embedding),
            "limit": k
        }
        sql = NEAREST_NEIGHBORS_SQL
        if client_id is not None:
            sql = NEAREST_NEIGHBORS_FOR_CLIENT_SQL
            params["client_id"] = client_id

        try:
            async with self.async_session() as session:
                result = await session.execute(sql, params)
                rows = result.all()
        except SQLAlchemyError as e:
            logger.error(f"Similarity search failed: {str(e)}")
            raise DatabaseError(f"Search query failed: {str(e)}") from e

        return [
            ScoredChunk(
                chunk_id=row.chunk_id,
                document_id=row.document_id,
                content=row.content,
                similarity=float(row.similarity)
            )
            for row in rows
        ]

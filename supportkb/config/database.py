"""
Database configuration settings.
"""

from dataclasses import dataclass
import os
from urllib.parse import quote_plus
from typing import Literal, Optional

from dotenv import load_dotenv

load_dotenv()

@dataclass
class DatabaseConfig:
    """Configuration for the PostgreSQL connection."""
    host: str = os.getenv('POSTGRES_HOST', 'localhost')
    port: int = int(os.getenv('POSTGRES_PORT', 5432))
    user: str = os.getenv('POSTGRES_USER', 'postgres')
    password: str = os.getenv('POSTGRES_PASSWORD', '')
    database: str = os.getenv('POSTGRES_DB', 'supportkb')
    url: Optional[str] = os.getenv('DATABASE_URL')
    pool_size: int = int(os.getenv('POSTGRES_POOL_SIZE', 5))
    max_overflow: int = int(os.getenv('POSTGRES_MAX_OVERFLOW', 10))
    pool_timeout: int = int(os.getenv('POSTGRES_POOL_TIMEOUT', 30))
    pool_recycle: int = int(os.getenv('POSTGRES_POOL_RECYCLE', 1800))  # 30 minutes
    pool_pre_ping: bool = True

    @property
    def connection_string(self) -> str:
        """SQLAlchemy URL using the asyncpg driver."""
        if self.url:
            scheme, rest = self.url.split('://', 1)
            if scheme in ('postgres', 'postgresql'):
                return f"postgresql+asyncpg://{rest}"
            return self.url
        return f"postgresql+asyncpg://{self.user}:{quote_plus(self.password)}@{self.host}:{self.port}/{self.database}"

@dataclass
class IndexConfig:
    """Configuration for the pgvector index on chunk embeddings."""
    index_type: Literal["hnsw", "ivfflat"] = os.getenv('VECTOR_INDEX_TYPE', 'hnsw')
    ivfflat_lists: int = int(os.getenv('IVFFLAT_LISTS', 100))

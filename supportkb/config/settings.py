"""
Application-wide configuration assembled from environment variables.
"""

from dataclasses import dataclass, field
from typing import Literal, Optional
import os

from dotenv import load_dotenv

from .database import DatabaseConfig, IndexConfig
from .processor import ChunkingConfig, ProcessorConfig, UploadConfig
from ..utils.errors import ConfigurationError

load_dotenv()

EMBEDDING_DIMENSION = 1536

@dataclass
class EmbeddingConfig:
    """Configuration for the embedding model."""
    api_key: Optional[str] = os.getenv('OPENAI_API_KEY')
    model_name: str = os.getenv('EMBEDDING_MODEL', 'text-embedding-ada-002')
    embedding_dimension: int = int(os.getenv('EMBEDDING_DIMENSION', EMBEDDING_DIMENSION))
    max_retries: int = int(os.getenv('EMBEDDING_MAX_RETRIES', 2))
    timeout: int = int(os.getenv('EMBEDDING_TIMEOUT', 60))

@dataclass
class ChatConfig:
    """Configuration for chat completions."""
    model: str = os.getenv('CHAT_MODEL', 'gpt-4o')
    max_tokens: int = int(os.getenv('CHAT_MAX_TOKENS', 500))
    temperature: float = float(os.getenv('CHAT_TEMPERATURE', 0.7))
    retriever_k: int = int(os.getenv('RETRIEVER_K', 3))
    system_prompt_template: str = (
        "You are a helpful customer service assistant. "
        "Use the following context to answer questions when relevant:\n\n{context}"
    )

@dataclass
class AppConfig:
    """Configuration for the API process."""
    vector_store_type: Literal["postgres", "memory"] = os.getenv('VECTOR_STORE_TYPE', 'postgres')
    admin_api_key: Optional[str] = os.getenv('ADMIN_API_KEY') or None
    log_level: str = os.getenv('LOG_LEVEL', 'INFO')
    log_dir: Optional[str] = os.getenv('LOG_DIR')
    cors_origins: str = os.getenv('CORS_ORIGINS', '*')

@dataclass
class Settings:
    """All configuration sections in one object, passed around explicitly."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    processor: ProcessorConfig = field(default_factory=ProcessorConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    app: AppConfig = field(default_factory=AppConfig)

    @property
    def chunking(self) -> ChunkingConfig:
        return self.processor.chunking_config

    def validate(self) -> "Settings":
        """Check cross-section constraints; returns self for chaining."""
        if self.app.vector_store_type not in ("postgres", "memory"):
            raise ConfigurationError(
                f"VECTOR_STORE_TYPE must be 'postgres' or 'memory', got '{self.app.vector_store_type}'"
            )
        if self.index.index_type not in ("hnsw", "ivfflat"):
            raise ConfigurationError(
                f"VECTOR_INDEX_TYPE must be 'hnsw' or 'ivfflat', got '{self.index.index_type}'"
            )
        if self.embedding.embedding_dimension <= 0:
            raise ConfigurationError("EMBEDDING_DIMENSION must be positive")
        if (
            self.app.vector_store_type == "postgres"
            and self.embedding.embedding_dimension != EMBEDDING_DIMENSION
        ):
            raise ConfigurationError(
                f"EMBEDDING_DIMENSION must be {EMBEDDING_DIMENSION} for the postgres store, "
                f"got {self.embedding.embedding_dimension}"
            )
        if self.chat.retriever_k < 1:
            raise ConfigurationError("RETRIEVER_K must be at least 1")
        return self

    @classmethod
    def from_env(cls) -> "Settings":
        """Build and validate settings from the current environment."""
        return cls().validate()

def load_settings() -> Settings:
    """Build and validate settings from the current environment."""
    return Settings.from_env()

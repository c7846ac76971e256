"""Configuration schema using Pydantic.

Why this exists:
- Type-safe configuration with validation
- Provider credentials picked up from the environment (Azure OpenAI, LlamaCloud)
- Multiple deployment profiles in a single TOML file

How to extend:
1. Add new fields to existing config classes
2. Create new config classes for new components
3. Document new settings in docindex.example.toml
"""

from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LLMProviderType(str, Enum):
    """Supported LLM providers."""

    OPENAI = "openai"
    AZURE = "azure"
    MOCK = "mock"


class EmbeddingProviderType(str, Enum):
    """Supported embedding providers."""

    OPENAI = "openai"
    AZURE = "azure"
    MOCK = "mock"


class ReaderType(str, Enum):
    """Supported PDF readers."""

    LLAMA_PARSE = "llama_parse"
    PYMUPDF = "pymupdf"


class ResultType(str, Enum):
    """Text flavour requested from the parsing service."""

    MARKDOWN = "markdown"
    TEXT = "text"


class VectorStoreType(str, Enum):
    """Supported vector stores."""

    MEMORY = "memory"
    CHROMA = "chroma"


class AzureOpenAISettings(BaseSettings):
    """Azure OpenAI credentials.

    Read from AZURE_OPENAI_KEY, AZURE_OPENAI_ENDPOINT, AZURE_OPENAI_DEPLOYMENT,
    AZURE_OPENAI_API_VERSION and AZURE_OPENAI_EMBEDDING_DEPLOYMENT.
    """

    model_config = SettingsConfigDict(
        env_prefix="AZURE_OPENAI_",
        case_sensitive=False,
        extra="ignore",
    )

    key: Optional[str] = None
    endpoint: Optional[str] = None
    deployment: Optional[str] = None
    api_version: str = "2024-06-01"
    embedding_deployment: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.key and self.endpoint and self.deployment)


class LlamaCloudSettings(BaseSettings):
    """LlamaCloud credentials (LLAMA_CLOUD_API_KEY, LLAMA_CLOUD_BASE_URL)."""

    model_config = SettingsConfigDict(
        env_prefix="LLAMA_CLOUD_",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: Optional[str] = None
    base_url: str = "https://api.cloud.llamaindex.ai"


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: LLMProviderType = LLMProviderType.OPENAI
    model_name: str = "gpt-4o"
    api_key: Optional[str] = None
    max_tokens: Optional[int] = Field(default=None, gt=0)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    timeout: float = Field(default=60.0, gt=0)
    extra_params: dict[str, Any] = Field(default_factory=dict)


class EmbeddingConfig(BaseModel):
    """Embedding provider configuration."""

    provider: EmbeddingProviderType = EmbeddingProviderType.OPENAI
    model_name: str = "text-embedding-3-small"
    api_key: Optional[str] = None
    batch_size: int = Field(default=32, gt=0)
    extra_params: dict[str, Any] = Field(default_factory=dict)


DEFAULT_ALT_TEXT_PROMPT = (
    "Describe the image as alt text. Mention any visible labels, numbers "
    "or axis titles so the description can be searched."
)


class ParserConfig(BaseModel):
    """Document parsing configuration."""

    reader: ReaderType = ReaderType.LLAMA_PARSE
    result_type: ResultType = ResultType.MARKDOWN
    language: str = "en"
    check_interval: float = Field(default=1.0, gt=0)
    max_timeout: float = Field(default=2000.0, gt=0)
    image_dir: Path = Path("images")
    alt_text_prompt: str = DEFAULT_ALT_TEXT_PROMPT
    llama_cloud: LlamaCloudSettings = Field(default_factory=LlamaCloudSettings)


class ChunkingConfig(BaseModel):
    """Document chunking configuration.

    Parsed pages and alt-text documents are short, so the minimum chunk
    size defaults to a single character.
    """

    chunk_size: int = Field(default=1024, gt=0, description="Target chunk size in characters")
    chunk_overlap: int = Field(default=200, ge=0, description="Overlap between chunks in characters")
    min_chunk_size: int = Field(default=1, gt=0, description="Minimum chunk size (smaller chunks are discarded)")


class VectorStoreConfig(BaseModel):
    """Vector store configuration."""

    store_type: VectorStoreType = VectorStoreType.MEMORY
    collection_name: str = "docindex"
    persist_directory: Optional[Path] = None
    extra_params: dict[str, Any] = Field(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        """Expand ~ in paths."""
        if self.persist_directory:
            self.persist_directory = self.persist_directory.expanduser()


DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions based on the provided context. "
    "If the context doesn't contain enough information to answer the question, say so."
)


class QueryConfig(BaseModel):
    """Retrieval and answer synthesis configuration."""

    similarity_top_k: int = Field(default=2, gt=0)
    max_context_length: int = Field(default=6000, gt=0)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    json_logs: bool = False
    log_dir: Optional[Path] = None
    enable_file: bool = False
    max_days: int = Field(default=30, gt=0)


class AppConfig(BaseSettings):
    """Main application configuration.

    Loads from:
    1. Config file (TOML), passed as init values
    2. Environment variables (prefixed with DOCINDEX_), including a .env file
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCINDEX_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    app_name: str = "docindex"
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    azure: AzureOpenAISettings = Field(default_factory=AzureOpenAISettings)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)

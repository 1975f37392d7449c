import os
from enum import Enum
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator


class IngestStrategyName(str, Enum):
    SINGLE = "single"
    BULK = "bulk"
    STAGED_BULK = "staged_bulk"


DEFAULT_STAGED_BATCH_SIZE = 200


def get_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    db = os.getenv("POSTGRES_DB", "spl-labels")
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"


class IngestSettings(BaseModel):
    database_url: str
    strategy: IngestStrategyName = IngestStrategyName.SINGLE
    staged_batch_size: int = Field(default=DEFAULT_STAGED_BATCH_SIZE, gt=0)
    echo_sql: bool = False

    @field_validator("strategy", mode="before")
    @classmethod
    def _normalize_strategy(cls, v):
        if isinstance(v, str):
            value = v.strip().lower().replace("-", "_")
            try:
                return IngestStrategyName(value)
            except ValueError:
                raise ValueError(
                    f"Unknown ingestion strategy '{v}'. "
                    f"Expected one of: {', '.join(s.value for s in IngestStrategyName)}"
                )
        return v


def load_settings(env_file: Optional[str] = None) -> IngestSettings:
    """Build settings from the environment, reading a .env file first when present."""
    load_dotenv(env_file, override=False)
    return IngestSettings(
        database_url=get_database_url(),
        strategy=os.getenv("SPL_INGEST_STRATEGY", IngestStrategyName.SINGLE.value),
        staged_batch_size=int(os.getenv("SPL_STAGED_BATCH_SIZE", DEFAULT_STAGED_BATCH_SIZE)),
        echo_sql=os.getenv("SQL_ECHO", "false").strip().lower() in ("1", "true", "yes"),
    )

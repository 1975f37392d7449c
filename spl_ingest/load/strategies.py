from typing import Optional, Union

from spl_ingest.config import DEFAULT_STAGED_BATCH_SIZE, IngestStrategyName
from spl_ingest.load.bulk import BulkStrategy, StagedBulkStrategy
from spl_ingest.load.ingest_strategy import ContentIngestResult, ContentIngestStrategy
from spl_ingest.load.walker import SingleNodeStrategy

__all__ = [
    "BulkStrategy",
    "ContentIngestResult",
    "ContentIngestStrategy",
    "SingleNodeStrategy",
    "StagedBulkStrategy",
    "get_strategy",
]


def get_strategy(
    name: Union[str, IngestStrategyName, None] = None,
    batch_size: Optional[int] = None,
) -> ContentIngestStrategy:
    """Strategy instance for a configured name; the default is single-node."""
    try:
        strategy = IngestStrategyName((name or IngestStrategyName.SINGLE.value).strip().lower().replace("-", "_"))
    except ValueError:
        choices = ", ".join(s.value for s in IngestStrategyName)
        raise ValueError(f"Unknown ingestion strategy {name!r}; expected one of: {choices}")

    if strategy is IngestStrategyName.BULK:
        return BulkStrategy()
    if strategy is IngestStrategyName.STAGED_BULK:
        return StagedBulkStrategy(batch_size or DEFAULT_STAGED_BATCH_SIZE)
    return SingleNodeStrategy()

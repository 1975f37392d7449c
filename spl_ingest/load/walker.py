import logging
from typing import Optional

from bs4 import Tag

from spl_ingest.load.content_nodes import get_or_create_content_node
from spl_ingest.load.context import IngestContext
from spl_ingest.load.ingest_strategy import ContentIngestResult, ContentIngestStrategy
from spl_ingest.load.schema import is_container_type
from spl_ingest.load.specialized import process_specialized_block
from spl_ingest.transform.content_tree import numbered_blocks

logger = logging.getLogger(__name__)


class SingleNodeStrategy(ContentIngestStrategy):
    """Resolve and store one block at a time, depth first."""

    name = "single"

    async def ingest(
        self,
        container: Optional[Tag],
        section_id: Optional[int],
        ctx: Optional[IngestContext],
        parent_id: Optional[int] = None,
        sequence: int = 1,
    ) -> ContentIngestResult:
        result = ContentIngestResult()
        if container is None or ctx is None or not section_id or section_id <= 0:
            logger.warning(f"Nothing to ingest for section {section_id}: missing container or context")
            return result

        await self._walk(container, section_id, ctx, parent_id, sequence, result)
        return result

    async def _walk(
        self,
        container: Tag,
        section_id: int,
        ctx: IngestContext,
        parent_id: Optional[int],
        sequence: int,
        result: ContentIngestResult,
    ) -> None:
        for seq, block in numbered_blocks(container, self.tree, sequence):
            node = await get_or_create_content_node(block, section_id, ctx, parent_id, seq)
            if node is None:
                continue
            result.nodes.append(node)
            result.descendant_count += await process_specialized_block(node, block, ctx)

            # lists and tables keep their contents in their own records
            if not is_container_type(node.content_type):
                await self._walk(block, section_id, ctx, node.id, 1, result)

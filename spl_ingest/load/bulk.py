"""Parse-first ingestion: the whole subtree is read into drafts, then written in batches.

Phases:
    1. parse every block to a ContentNodeDraft (no database access)
    2. load the section's stored nodes once, keyed by natural key
    3. insert missing top-level nodes, re-read them to map temp ids to real
       ids, then insert children one depth at a time so each wave can point
       at already-stored parents
    4. run list/table/excerpt/media processing for every resolved node
"""

import logging
from typing import Dict, Iterator, List, Optional, Sequence

from bs4 import Tag

from spl_ingest.config import DEFAULT_STAGED_BATCH_SIZE
from spl_ingest.extract.spl import child_blocks
from spl_ingest.load.content_nodes import load_section_nodes, parent_condition
from spl_ingest.load.context import IngestContext
from spl_ingest.load.ingest_strategy import ContentIngestResult, ContentIngestStrategy
from spl_ingest.load.schema import NaturalKey, SectionTextContent
from spl_ingest.load.specialized import process_specialized_block
from spl_ingest.transform.content_tree import (
    ChildBlocks,
    ContentNodeDraft,
    parse_content_blocks_to_memory,
)

logger = logging.getLogger(__name__)


def _record(draft: ContentNodeDraft) -> SectionTextContent:
    return SectionTextContent(
        section_id=draft.section_id,
        parent_id=draft.parent_id,
        content_type=draft.content_type,
        style_code=draft.style_code,
        sequence_number=draft.sequence_number,
        content_text=draft.content_text,
    )


class BulkStrategy(ContentIngestStrategy):
    name = "bulk"

    def _chunks(self, records: Sequence[SectionTextContent]) -> Iterator[Sequence[SectionTextContent]]:
        if records:
            yield records

    async def _insert(self, ctx: IngestContext, records: List[SectionTextContent]) -> None:
        for chunk in self._chunks(records):
            await ctx.store.bulk_insert(chunk)

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

        drafts = parse_content_blocks_to_memory(
            container, section_id, parent_id=parent_id, sequence=sequence, tree=self.tree
        )
        if not drafts:
            return result
        logger.debug(f"Parsed {len(drafts)} content blocks for section {section_id}")

        existing: Dict[NaturalKey, SectionTextContent] = {
            node.natural_key: node for node in await load_section_nodes(ctx, section_id)
        }
        resolved: Dict[str, SectionTextContent] = {}

        created = await self._commit_top_level(drafts, existing, resolved, section_id, parent_id, ctx)
        created += await self._commit_children(drafts, existing, resolved, ctx)
        logger.info(
            f"Section {section_id}: {created} content nodes created, "
            f"{len(drafts) - created} already present"
        )

        loaded: Dict[NaturalKey, SectionTextContent] = {
            node.natural_key: node for node in await load_section_nodes(ctx, section_id)
        }
        for draft in drafts:
            node = resolved.get(draft.temp_id)
            if node is None and (draft.is_top_level or draft.parent_temp_id in resolved):
                node = loaded.get(draft.natural_key)
            if node is None or node.id is None:
                continue
            result.nodes.append(node)
            result.descendant_count += await process_specialized_block(
                node, draft.source, ctx, batched=True
            )
        return result

    async def _commit_top_level(
        self,
        drafts: List[ContentNodeDraft],
        existing: Dict[NaturalKey, SectionTextContent],
        resolved: Dict[str, SectionTextContent],
        section_id: int,
        parent_id: Optional[int],
        ctx: IngestContext,
    ) -> int:
        top_level = [d for d in drafts if d.is_top_level]
        new_records = [_record(d) for d in top_level if d.natural_key not in existing]
        await self._insert(ctx, new_records)

        stored = await ctx.store.all(
            SectionTextContent,
            SectionTextContent.section_id == section_id,
            parent_condition(parent_id),
        )
        by_key = {node.natural_key: node for node in stored}
        for draft in top_level:
            node = by_key.get(draft.natural_key)
            if node is None:
                logger.warning(f"Top-level {draft.content_type} {draft.temp_id} was not found after insert")
                continue
            resolved[draft.temp_id] = node
            existing[draft.natural_key] = node
        return len(new_records)

    async def _commit_children(
        self,
        drafts: List[ContentNodeDraft],
        existing: Dict[NaturalKey, SectionTextContent],
        resolved: Dict[str, SectionTextContent],
        ctx: IngestContext,
    ) -> int:
        created = 0
        max_depth = max(d.depth for d in drafts)
        for depth in range(1, max_depth + 1):
            pending = []
            for draft in (d for d in drafts if d.depth == depth):
                parent = resolved.get(draft.parent_temp_id)
                if parent is None or parent.id is None:
                    logger.warning(
                        f"Excluding {draft.content_type} {draft.temp_id}: "
                        f"parent {draft.parent_temp_id} has no stored node"
                    )
                    continue
                draft.parent_id = parent.id
                found = existing.get(draft.natural_key)
                if found is not None:
                    resolved[draft.temp_id] = found
                    continue
                pending.append((draft, _record(draft)))

            await self._insert(ctx, [record for _, record in pending])
            for draft, record in pending:
                resolved[draft.temp_id] = record
                existing[draft.natural_key] = record
            created += len(pending)
        return created


class StagedBulkStrategy(BulkStrategy):
    """BulkStrategy with every write split into chunks of batch_size rows."""

    name = "staged_bulk"

    def __init__(self, batch_size: int = DEFAULT_STAGED_BATCH_SIZE, tree: ChildBlocks = child_blocks):
        super().__init__(tree)
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.batch_size = batch_size

    def _chunks(self, records: Sequence[SectionTextContent]) -> Iterator[Sequence[SectionTextContent]]:
        for start in range(0, len(records), self.batch_size):
            yield records[start:start + self.batch_size]

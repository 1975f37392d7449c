import logging

from bs4 import Tag

from spl_ingest.extract.spl import E, descendants_named
from spl_ingest.load.context import IngestContext
from spl_ingest.load.highlights import get_or_create_highlights
from spl_ingest.load.lists import get_or_create_text_list_and_items
from spl_ingest.load.schema import (
    EXCERPT,
    RENDER_MULTIMEDIA,
    ContainerType,
    SectionTextContent,
)
from spl_ingest.load.tables import get_or_create_text_table_and_children

logger = logging.getLogger(__name__)


async def process_specialized_block(
    node: SectionTextContent, block: Tag, ctx: IngestContext, batched: bool = False
) -> int:
    """Run the type-specific processing for a stored content node.

    Returns how many descendant records were created. Lists, tables and
    excerpt highlights are handled here, media goes through ctx.media.
    """
    if node.id is None:
        return 0

    created = 0
    content_type = node.content_type
    if content_type == ContainerType.LIST.value:
        created += await get_or_create_text_list_and_items(block, node.id, ctx, batched=batched)
    elif content_type == ContainerType.TABLE.value:
        created += await get_or_create_text_table_and_children(block, node.id, ctx, batched=batched)
    elif content_type == EXCERPT:
        _, highlights_created = await get_or_create_highlights(block, node.section_id, ctx)
        created += highlights_created

    if ctx.media is not None:
        if content_type == RENDER_MULTIMEDIA:
            created += await ctx.media.parse_rendered_media(
                block, node.id, node.section_id, ctx, False
            )
        elif descendants_named(block, E.RENDER_MULTIMEDIA):
            created += await ctx.media.parse_rendered_media(
                block, node.id, node.section_id, ctx, True
            )
    return created

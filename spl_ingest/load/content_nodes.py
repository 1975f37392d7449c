import logging
from typing import List, Optional

from bs4 import Tag
from sqlmodel import col

from spl_ingest.load.context import IngestContext
from spl_ingest.load.schema import SectionTextContent, is_container_type
from spl_ingest.transform.content_tree import read_block_attributes

logger = logging.getLogger(__name__)


def parent_condition(parent_id: Optional[int]):
    if parent_id is None:
        return col(SectionTextContent.parent_id).is_(None)
    return col(SectionTextContent.parent_id) == parent_id


def _text_condition(content_type: str, content_text: Optional[str]):
    if is_container_type(content_type) or content_text is None:
        return col(SectionTextContent.content_text).is_(None)
    return col(SectionTextContent.content_text) == content_text


async def find_content_node(
    ctx: IngestContext,
    section_id: int,
    content_type: str,
    sequence_number: int,
    parent_id: Optional[int],
    content_text: Optional[str],
) -> Optional[SectionTextContent]:
    """Look up a content node by its natural key."""
    return await ctx.store.first(
        SectionTextContent,
        SectionTextContent.section_id == section_id,
        SectionTextContent.content_type == content_type,
        SectionTextContent.sequence_number == sequence_number,
        parent_condition(parent_id),
        _text_condition(content_type, content_text),
    )


async def get_or_create_content_node(
    block: Tag,
    section_id: Optional[int],
    ctx: Optional[IngestContext],
    parent_id: Optional[int] = None,
    sequence: int = 1,
) -> Optional[SectionTextContent]:
    """Return the stored content node for a block, creating it when no match exists.

    Returns None, without raising, when the section id or context is missing or
    the block's attributes cannot be read. Store errors propagate.
    """
    if ctx is None or not section_id or section_id <= 0:
        logger.warning(f"Cannot resolve content node without a section/context (section_id={section_id})")
        return None

    try:
        attrs = read_block_attributes(block)
    except Exception as e:
        logger.error(
            f"Failed to read <{getattr(block, 'name', None)}> at sequence {sequence} "
            f"in section {section_id}: {e}"
        )
        return None

    existing = await find_content_node(
        ctx, section_id, attrs.content_type, sequence, parent_id, attrs.content_text
    )
    if existing is not None:
        return existing

    node = SectionTextContent(
        section_id=section_id,
        parent_id=parent_id,
        content_type=attrs.content_type,
        style_code=attrs.style_code,
        sequence_number=sequence,
        content_text=attrs.content_text,
    )
    await ctx.store.create(node)
    logger.debug(
        f"Created {attrs.content_type} #{sequence} (id={node.id}, parent={parent_id}) in section {section_id}"
    )
    return node


async def load_section_nodes(ctx: IngestContext, section_id: int) -> List[SectionTextContent]:
    return await ctx.store.all(
        SectionTextContent,
        SectionTextContent.section_id == section_id,
        order_by=SectionTextContent.id,
    )

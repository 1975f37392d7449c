import logging
from typing import Optional, Tuple

from bs4 import Tag

from spl_ingest.extract.spl import A, attr
from spl_ingest.load.context import IngestContext
from spl_ingest.load.schema import TextList, TextListItem
from spl_ingest.transform.structures import parse_list_items

logger = logging.getLogger(__name__)


async def get_or_create_text_list(
    list_el: Tag, content_node_id: int, ctx: IngestContext
) -> Tuple[TextList, bool]:
    existing = await ctx.store.first(
        TextList, TextList.section_text_content_id == content_node_id
    )
    if existing is not None:
        return existing, False

    text_list = TextList(
        section_text_content_id=content_node_id,
        list_type=attr(list_el, A.LIST_TYPE),
        style_code=attr(list_el, A.STYLE_CODE),
    )
    await ctx.store.create(text_list)
    return text_list, True


async def get_or_create_text_list_and_items(
    list_el: Optional[Tag],
    content_node_id: Optional[int],
    ctx: Optional[IngestContext],
    batched: bool = False,
) -> int:
    """Persist the list container and its non-empty items; returns records created.

    With batched=True existing items are read in one query and the missing
    ones written in one insert, otherwise each item is looked up and created
    on its own. Both produce the same rows.
    """
    if list_el is None or ctx is None or not content_node_id or content_node_id <= 0:
        logger.warning(f"Skipping list processing for content node {content_node_id}: missing input")
        return 0

    text_list, created = await get_or_create_text_list(list_el, content_node_id, ctx)
    created_count = 1 if created else 0
    if text_list.id is None:
        logger.error(f"Failed to create or retrieve TextList for content node {content_node_id}")
        return created_count

    items = parse_list_items(list_el)
    if not items:
        return created_count

    if batched:
        existing_seqs = {
            item.sequence_number
            for item in await ctx.store.all(TextListItem, TextListItem.text_list_id == text_list.id)
        }
        new_items = [
            TextListItem(text_list_id=text_list.id, **draft.model_dump())
            for draft in items
            if draft.sequence_number not in existing_seqs
        ]
        await ctx.store.bulk_insert(new_items)
        return created_count + len(new_items)

    for draft in items:
        existing = await ctx.store.first(
            TextListItem,
            TextListItem.text_list_id == text_list.id,
            TextListItem.sequence_number == draft.sequence_number,
        )
        if existing is None:
            await ctx.store.create(TextListItem(text_list_id=text_list.id, **draft.model_dump()))
            created_count += 1
    return created_count

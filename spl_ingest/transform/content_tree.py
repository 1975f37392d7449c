"""In-memory parse of a content subtree, ahead of any database work.

Every block gets a temporary id made from its parent's temporary id and its
own sequence number ("root.2.1" is the first child of the second top-level
block), so ids are unique within one parse without a global counter.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from bs4 import Tag

from spl_ingest.extract.spl import child_blocks, content_type_for, inner_markup
from spl_ingest.load.schema import (
    HIGHLIGHT,
    NaturalKey,
    is_container_type,
    natural_key,
)

logger = logging.getLogger(__name__)

ROOT_TEMP_ID = "root"

ChildBlocks = Callable[[Tag], List[Tag]]


@dataclass
class ContentBlockAttributes:
    content_type: str
    style_code: Optional[str]
    content_text: Optional[str]


def read_block_attributes(block: Tag) -> ContentBlockAttributes:
    """Canonical attributes of a block. Containers never carry inline text."""
    content_type = content_type_for(block)
    style_code = block.get("styleCode")
    if isinstance(style_code, str):
        style_code = style_code.strip() or None

    content_text: Optional[str] = None
    if not is_container_type(content_type):
        content_text = inner_markup(block) or None
    return ContentBlockAttributes(content_type, style_code, content_text)


def is_highlight(block: Tag) -> bool:
    return (block.name or "").lower() == HIGHLIGHT.lower()


def numbered_blocks(container: Tag, tree: ChildBlocks = child_blocks, start: int = 1):
    """Yield (sequence, block) for the container's blocks, highlights left out.

    Highlights belong to the highlight records of their excerpt, so they are
    dropped before numbering and do not hold a slot among their siblings.
    """
    seq = start
    for block in tree(container):
        if is_highlight(block):
            continue
        yield seq, block
        seq += 1


@dataclass
class ContentNodeDraft:
    temp_id: str
    parent_temp_id: Optional[str]
    depth: int
    section_id: int
    content_type: str
    style_code: Optional[str]
    sequence_number: int
    content_text: Optional[str]
    source: Tag
    # set for top-level drafts up front, for children once the parent is saved
    parent_id: Optional[int] = None

    @property
    def is_top_level(self) -> bool:
        return self.parent_temp_id is None

    @property
    def natural_key(self) -> NaturalKey:
        return natural_key(
            self.section_id,
            self.content_type,
            self.sequence_number,
            self.parent_id,
            self.content_text,
        )


def parse_content_blocks_to_memory(
    container: Optional[Tag],
    section_id: Optional[int],
    parent_id: Optional[int] = None,
    sequence: int = 1,
    tree: ChildBlocks = child_blocks,
    parent_temp_id: Optional[str] = None,
    depth: int = 0,
) -> List[ContentNodeDraft]:
    """Flatten a container's block hierarchy into drafts, parents before children."""
    drafts: List[ContentNodeDraft] = []
    if container is None or not section_id or section_id <= 0:
        return drafts

    for seq, block in numbered_blocks(container, tree, sequence):
        temp_id = f"{parent_temp_id or ROOT_TEMP_ID}.{seq}"
        try:
            attrs = read_block_attributes(block)
        except Exception as e:
            logger.error(
                f"Skipping <{block.name}> at sequence {seq} in section {section_id}: {e}"
            )
            continue

        drafts.append(
            ContentNodeDraft(
                temp_id=temp_id,
                parent_temp_id=parent_temp_id,
                depth=depth,
                section_id=section_id,
                content_type=attrs.content_type,
                style_code=attrs.style_code,
                sequence_number=seq,
                content_text=attrs.content_text,
                source=block,
                parent_id=parent_id if parent_temp_id is None else None,
            )
        )

        # Lists and tables own their children through their own records
        if not is_container_type(attrs.content_type):
            drafts.extend(
                parse_content_blocks_to_memory(
                    block,
                    section_id,
                    sequence=1,
                    tree=tree,
                    parent_temp_id=temp_id,
                    depth=depth + 1,
                )
            )
    return drafts

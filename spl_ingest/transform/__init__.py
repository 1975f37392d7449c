from spl_ingest.transform.content_tree import (
    ContentNodeDraft,
    numbered_blocks,
    parse_content_blocks_to_memory,
    read_block_attributes,
)
from spl_ingest.transform.structures import parse_columns, parse_list_items, parse_rows, parse_table

__all__ = [
    "ContentNodeDraft",
    "numbered_blocks",
    "parse_columns",
    "parse_content_blocks_to_memory",
    "parse_list_items",
    "parse_rows",
    "parse_table",
    "read_block_attributes",
]

import logging
from typing import Dict, List, Optional, Tuple

from bs4 import Tag
from sqlmodel import col

from spl_ingest.load.context import IngestContext
from spl_ingest.load.schema import (
    RowGroupType,
    TextTable,
    TextTableCell,
    TextTableColumn,
    TextTableRow,
)
from spl_ingest.transform.structures import (
    TableCellDraft,
    TableColumnDraft,
    TableRowDraft,
    parse_columns,
    parse_rows,
    parse_table,
)

logger = logging.getLogger(__name__)


def _cell_record(row_id: int, draft: TableCellDraft) -> TextTableCell:
    return TextTableCell(text_table_row_id=row_id, **draft.model_dump())


def _row_record(table_id: int, draft: TableRowDraft) -> TextTableRow:
    return TextTableRow(
        text_table_id=table_id,
        row_group_type=draft.row_group_type,
        sequence_number=draft.sequence_number,
        style_code=draft.style_code,
    )


async def get_or_create_text_table(
    table_el: Tag, content_node_id: int, ctx: IngestContext
) -> Tuple[TextTable, bool]:
    # One table element makes one Table content node, so the node id identifies it
    existing = await ctx.store.first(
        TextTable, TextTable.section_text_content_id == content_node_id
    )
    if existing is not None:
        return existing, False

    table = TextTable(section_text_content_id=content_node_id, **parse_table(table_el).model_dump())
    await ctx.store.create(table)
    return table, True


# --- one record at a time ---

async def _create_columns(table_id: int, columns: List[TableColumnDraft], ctx: IngestContext) -> int:
    created = 0
    for draft in columns:
        existing = await ctx.store.first(
            TextTableColumn,
            TextTableColumn.text_table_id == table_id,
            TextTableColumn.sequence_number == draft.sequence_number,
        )
        if existing is None:
            await ctx.store.create(TextTableColumn(text_table_id=table_id, **draft.model_dump()))
            created += 1
    return created


async def _create_rows(table_id: int, rows: List[TableRowDraft], ctx: IngestContext) -> int:
    created = 0
    for draft in rows:
        row = await ctx.store.first(
            TextTableRow,
            TextTableRow.text_table_id == table_id,
            TextTableRow.row_group_type == draft.row_group_type,
            TextTableRow.sequence_number == draft.sequence_number,
        )
        if row is None:
            row = await ctx.store.create(_row_record(table_id, draft))
            created += 1
        if row.id is None:
            continue

        for cell in draft.cells:
            existing = await ctx.store.first(
                TextTableCell,
                TextTableCell.text_table_row_id == row.id,
                TextTableCell.sequence_number == cell.sequence_number,
            )
            if existing is None:
                await ctx.store.create(_cell_record(row.id, cell))
                created += 1
    return created


# --- batched ---

async def _bulk_create_columns(table_id: int, columns: List[TableColumnDraft], ctx: IngestContext) -> int:
    if not columns:
        return 0
    existing = {
        c.sequence_number
        for c in await ctx.store.all(TextTableColumn, TextTableColumn.text_table_id == table_id)
    }
    new_columns = [
        TextTableColumn(text_table_id=table_id, **draft.model_dump())
        for draft in columns
        if draft.sequence_number not in existing
    ]
    await ctx.store.bulk_insert(new_columns)
    return len(new_columns)


async def _bulk_create_rows(table_id: int, rows: List[TableRowDraft], ctx: IngestContext) -> int:
    if not rows:
        return 0
    created = 0

    def row_key(group: RowGroupType, seq: int) -> Tuple[str, int]:
        return (RowGroupType(group).value, seq)

    row_ids: Dict[Tuple[str, int], int] = {
        row_key(r.row_group_type, r.sequence_number): r.id
        for r in await ctx.store.all(TextTableRow, TextTableRow.text_table_id == table_id)
    }
    new_rows = [
        _row_record(table_id, draft)
        for draft in rows
        if row_key(draft.row_group_type, draft.sequence_number) not in row_ids
    ]
    await ctx.store.bulk_insert(new_rows)
    created += len(new_rows)
    for r in new_rows:
        row_ids[row_key(r.row_group_type, r.sequence_number)] = r.id

    all_row_ids = [rid for rid in row_ids.values() if rid is not None]
    existing_cells = set()
    if all_row_ids:
        existing_cells = {
            (c.text_table_row_id, c.sequence_number)
            for c in await ctx.store.all(
                TextTableCell, col(TextTableCell.text_table_row_id).in_(all_row_ids)
            )
        }

    new_cells: List[TextTableCell] = []
    for draft in rows:
        row_id = row_ids.get(row_key(draft.row_group_type, draft.sequence_number))
        if row_id is None:
            continue
        new_cells.extend(
            _cell_record(row_id, cell)
            for cell in draft.cells
            if (row_id, cell.sequence_number) not in existing_cells
        )
    await ctx.store.bulk_insert(new_cells)
    return created + len(new_cells)


async def get_or_create_text_table_and_children(
    table_el: Optional[Tag],
    content_node_id: Optional[int],
    ctx: Optional[IngestContext],
    batched: bool = False,
) -> int:
    """Persist a table with its columns, rows and cells; returns records created."""
    if table_el is None or ctx is None or not content_node_id or content_node_id <= 0:
        logger.warning(f"Skipping table processing for content node {content_node_id}: missing input")
        return 0

    table, created = await get_or_create_text_table(table_el, content_node_id, ctx)
    created_count = 1 if created else 0
    if table.id is None:
        logger.error(f"Failed to create or retrieve TextTable for content node {content_node_id}")
        return created_count

    columns = parse_columns(table_el)
    rows = parse_rows(table_el)
    if batched:
        created_count += await _bulk_create_columns(table.id, columns, ctx)
        created_count += await _bulk_create_rows(table.id, rows, ctx)
    else:
        created_count += await _create_columns(table.id, columns, ctx)
        created_count += await _create_rows(table.id, rows, ctx)

    logger.debug(
        f"Table for content node {content_node_id}: {len(columns)} columns, {len(rows)} rows, "
        f"{created_count} records created"
    )
    return created_count

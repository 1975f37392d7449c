import copy
from typing import List, Optional

from bs4 import Tag
from pydantic import BaseModel, Field

from spl_ingest.extract.spl import (
    A,
    E,
    attr,
    child,
    child_elements,
    children_named,
    inner_markup,
    is_named,
    text_value,
)
from spl_ingest.load.schema import CellType, RowGroupType


# --- Lists ---

class ListItemDraft(BaseModel):
    sequence_number: int = Field(..., description="1-based, counts only items with text")
    item_caption: Optional[str] = None
    item_text: str


def item_markup(item_el: Tag) -> str:
    """Inner markup of an <item> without its <caption>, which is kept apart."""
    caption_el = child(item_el, E.CAPTION)
    if caption_el is None:
        return inner_markup(item_el)
    item_el = copy.copy(item_el)
    child(item_el, E.CAPTION).decompose()
    return inner_markup(item_el)


def parse_list_items(list_el: Tag) -> List[ListItemDraft]:
    items: List[ListItemDraft] = []
    seq = 1
    for item_el in children_named(list_el, E.ITEM):
        item_text = item_markup(item_el)
        if not item_text.strip():
            continue
        items.append(
            ListItemDraft(
                sequence_number=seq,
                item_caption=text_value(child(item_el, E.CAPTION)),
                item_text=item_text.strip(),
            )
        )
        seq += 1
    return items


# --- Tables ---

class TableDraft(BaseModel):
    section_table_link: Optional[str] = None
    width: Optional[str] = None
    caption: Optional[str] = None
    has_header: bool = False
    has_footer: bool = False


class TableColumnDraft(BaseModel):
    sequence_number: int
    colgroup_sequence_number: Optional[int] = None
    colgroup_style_code: Optional[str] = None
    colgroup_align: Optional[str] = None
    colgroup_valign: Optional[str] = None
    width: Optional[str] = None
    align: Optional[str] = None
    valign: Optional[str] = None
    style_code: Optional[str] = None


class TableCellDraft(BaseModel):
    cell_type: CellType
    sequence_number: int
    cell_text: Optional[str] = None
    row_span: Optional[int] = None
    col_span: Optional[int] = None
    style_code: Optional[str] = None
    align: Optional[str] = None
    valign: Optional[str] = None


class TableRowDraft(BaseModel):
    row_group_type: RowGroupType
    sequence_number: int
    style_code: Optional[str] = None
    cells: List[TableCellDraft] = Field(default_factory=list)


ROW_GROUPS = (
    (E.THEAD, RowGroupType.HEADER),
    (E.TBODY, RowGroupType.BODY),
    (E.TFOOT, RowGroupType.FOOTER),
)


def parse_span(value: Optional[str]) -> Optional[int]:
    """rowspan/colspan as a positive int, anything else as unset."""
    if value is None:
        return None
    try:
        span = int(value.strip())
    except (TypeError, ValueError):
        return None
    return span if span > 0 else None


def parse_table(table_el: Tag) -> TableDraft:
    caption_el = child(table_el, E.CAPTION)
    return TableDraft(
        section_table_link=attr(table_el, A.ID),
        width=attr(table_el, A.WIDTH),
        caption=inner_markup(caption_el) or None,
        has_header=child(table_el, E.THEAD) is not None,
        has_footer=child(table_el, E.TFOOT) is not None,
    )


def _column(col_el: Tag, seq: int, colgroup_el: Optional[Tag], colgroup_seq: Optional[int]) -> TableColumnDraft:
    return TableColumnDraft(
        sequence_number=seq,
        colgroup_sequence_number=colgroup_seq,
        colgroup_style_code=attr(colgroup_el, A.STYLE_CODE),
        colgroup_align=attr(colgroup_el, A.ALIGN),
        colgroup_valign=attr(colgroup_el, A.VALIGN),
        width=attr(col_el, A.WIDTH),
        align=attr(col_el, A.ALIGN),
        valign=attr(col_el, A.VALIGN),
        style_code=attr(col_el, A.STYLE_CODE),
    )


def parse_columns(table_el: Tag) -> List[TableColumnDraft]:
    """Grouped columns first, then standalone ones, on one running sequence."""
    columns: List[TableColumnDraft] = []
    seq = 1
    for colgroup_seq, colgroup_el in enumerate(children_named(table_el, E.COLGROUP), start=1):
        for col_el in children_named(colgroup_el, E.COL):
            columns.append(_column(col_el, seq, colgroup_el, colgroup_seq))
            seq += 1

    for col_el in children_named(table_el, E.COL):
        columns.append(_column(col_el, seq, None, None))
        seq += 1
    return columns


def parse_cells(row_el: Tag) -> List[TableCellDraft]:
    cells: List[TableCellDraft] = []
    seq = 1
    for cell_el in child_elements(row_el):
        if not (is_named(cell_el, E.TH) or is_named(cell_el, E.TD)):
            continue
        cells.append(
            TableCellDraft(
                cell_type=CellType(cell_el.name.lower()),
                sequence_number=seq,
                cell_text=inner_markup(cell_el) or None,
                row_span=parse_span(attr(cell_el, A.ROWSPAN)),
                col_span=parse_span(attr(cell_el, A.COLSPAN)),
                style_code=attr(cell_el, A.STYLE_CODE),
                align=attr(cell_el, A.ALIGN),
                valign=attr(cell_el, A.VALIGN),
            )
        )
        seq += 1
    return cells


def parse_rows(table_el: Tag) -> List[TableRowDraft]:
    """Rows of thead/tbody/tfoot, each group numbered from 1."""
    rows: List[TableRowDraft] = []
    for wrapper_name, group in ROW_GROUPS:
        wrapper = child(table_el, wrapper_name)
        if wrapper is None:
            continue
        for seq, row_el in enumerate(children_named(wrapper, E.TR), start=1):
            rows.append(
                TableRowDraft(
                    row_group_type=group,
                    sequence_number=seq,
                    style_code=attr(row_el, A.STYLE_CODE),
                    cells=parse_cells(row_el),
                )
            )
    return rows

"""
Unit tests for the memory-only parsing of lists, tables and content drafts.
"""

import pytest

from spl_ingest.load.schema import CellType, RowGroupType
from spl_ingest.transform.content_tree import (
    numbered_blocks,
    parse_content_blocks_to_memory,
    read_block_attributes,
)
from spl_ingest.transform.structures import (
    parse_columns,
    parse_list_items,
    parse_rows,
    parse_span,
    parse_table,
)
from tests.conftest import spl_element

TABLE = """
<table ID="t1" width="100%">
  <caption>Adverse <content styleCode="italics">reactions</content></caption>
  <colgroup align="center" valign="top" styleCode="Lrule">
    <col width="20%"/>
    <col align="left"/>
  </colgroup>
  <col width="10%"/>
  <thead>
    <tr><th>Reaction</th><th>Rate</th><th>n</th></tr>
  </thead>
  <tbody>
    <tr styleCode="Botrule"><td rowspan="0" colspan="-1">Nausea</td><th>5%</th><td>12</td></tr>
    <tr><td rowspan="2" colspan="abc">Headache</td><td>3%</td></tr>
  </tbody>
</table>
"""


class TestListItems:
    def test_empty_item_does_not_take_a_sequence(self):
        """Three items with an empty middle one give sequences 1 and 2."""
        list_el = spl_element(
            "<list listType='ordered'>"
            "<item>First</item><item>   </item><item>Third</item>"
            "</list>",
            "list",
        )

        items = parse_list_items(list_el)

        assert [(i.sequence_number, i.item_text) for i in items] == [(1, "First"), (2, "Third")]

    def test_caption_is_kept_out_of_item_text(self):
        list_el = spl_element(
            "<list><item><caption>a.</caption>Apply <content styleCode='bold'>twice</content> daily</item></list>",
            "list",
        )

        items = parse_list_items(list_el)

        assert items[0].item_caption == "a."
        assert items[0].item_text == 'Apply <content styleCode="bold">twice</content> daily'
        # the source tree still has its caption
        assert list_el.find("caption") is not None

    def test_caption_only_item_is_skipped(self):
        list_el = spl_element(
            "<list><item><caption>a.</caption></item><item>Rinse</item></list>", "list"
        )

        items = parse_list_items(list_el)

        assert [(i.sequence_number, i.item_caption, i.item_text) for i in items] == [(1, None, "Rinse")]


class TestTables:
    def test_table_attributes(self):
        draft = parse_table(spl_element(TABLE, "table"))

        assert draft.section_table_link == "t1"
        assert draft.width == "100%"
        assert draft.has_header is True
        assert draft.has_footer is False
        assert draft.caption == 'Adverse <content styleCode="italics">reactions</content>'

    def test_column_precedence(self):
        """Group alignment is inherited; a column's own alignment wins; both are kept."""
        columns = parse_columns(spl_element(TABLE, "table"))

        first, second, standalone = columns
        assert [c.sequence_number for c in columns] == [1, 2, 3]

        assert first.align is None
        assert first.colgroup_align == "center"
        assert second.align == "left"
        assert second.colgroup_align == "center"
        assert first.colgroup_sequence_number == second.colgroup_sequence_number == 1
        assert first.colgroup_style_code == "Lrule"

        assert standalone.colgroup_sequence_number is None
        assert standalone.colgroup_align is None
        assert standalone.width == "10%"

    def test_rows_are_numbered_per_group(self):
        rows = parse_rows(spl_element(TABLE, "table"))

        assert [(r.row_group_type, r.sequence_number) for r in rows] == [
            (RowGroupType.HEADER, 1),
            (RowGroupType.BODY, 1),
            (RowGroupType.BODY, 2),
        ]
        assert rows[1].style_code == "Botrule"

    def test_cells_keep_document_order(self):
        rows = parse_rows(spl_element(TABLE, "table"))

        body_row = rows[1]
        assert [(c.sequence_number, c.cell_type) for c in body_row.cells] == [
            (1, CellType.TD),
            (2, CellType.TH),
            (3, CellType.TD),
        ]

    def test_invalid_spans_are_unset(self):
        rows = parse_rows(spl_element(TABLE, "table"))

        nausea = rows[1].cells[0]
        headache = rows[2].cells[0]
        assert nausea.row_span is None
        assert nausea.col_span is None
        assert headache.row_span == 2
        assert headache.col_span is None

    @pytest.mark.parametrize(
        "value,expected",
        [("3", 3), (" 1 ", 1), ("0", None), ("-1", None), ("x", None), ("", None), (None, None)],
    )
    def test_parse_span(self, value, expected):
        assert parse_span(value) == expected


class TestContentDrafts:
    def test_container_types_have_no_text(self):
        attrs = read_block_attributes(spl_element("<list><item>x</item></list>", "list"))

        assert attrs.content_type == "List"
        assert attrs.content_text is None

    def test_style_code_is_trimmed(self):
        attrs = read_block_attributes(
            spl_element("<paragraph styleCode=' bold '>Hi</paragraph>", "paragraph")
        )

        assert attrs.style_code == "bold"
        assert attrs.content_text == "Hi"

    def test_highlights_do_not_take_a_slot(self):
        excerpt = spl_element(
            "<excerpt>"
            "<paragraph>Before</paragraph>"
            "<highlight><text><paragraph>Boxed</paragraph></text></highlight>"
            "<paragraph>After</paragraph>"
            "</excerpt>",
            "excerpt",
        )

        numbered = [(seq, block.get_text()) for seq, block in numbered_blocks(excerpt)]

        assert numbered == [(1, "Before"), (2, "After")]

    def test_temp_ids_and_depths(self):
        text = spl_element(
            "<text>"
            "<paragraph>One</paragraph>"
            "<paragraph>Two<paragraph>Two.one<paragraph>deep</paragraph></paragraph></paragraph>"
            "<list><item><paragraph>not a node</paragraph></item></list>"
            "</text>",
            "text",
        )

        drafts = parse_content_blocks_to_memory(text, section_id=7, parent_id=42)

        assert [(d.temp_id, d.parent_temp_id, d.depth) for d in drafts] == [
            ("root.1", None, 0),
            ("root.2", None, 0),
            ("root.2.1", "root.2", 1),
            ("root.2.1.1", "root.2.1", 2),
            ("root.3", None, 0),
        ]
        assert [d.parent_id for d in drafts] == [42, 42, None, None, 42]
        assert drafts[-1].content_type == "List"

    def test_invalid_section_gives_nothing(self):
        text = spl_element("<text><paragraph>One</paragraph></text>", "text")

        assert parse_content_blocks_to_memory(text, section_id=0) == []
        assert parse_content_blocks_to_memory(None, section_id=1) == []

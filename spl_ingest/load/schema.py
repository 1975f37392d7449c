from datetime import date
from enum import Enum
from typing import Optional, Tuple

from sqlalchemy import Text, UniqueConstraint
from sqlmodel import Column, Field, SQLModel


# Content types whose text lives in dedicated child records
class ContainerType(str, Enum):
    LIST = "List"
    TABLE = "Table"


CONTAINER_TYPES = frozenset(t.value for t in ContainerType)

PARAGRAPH = "Paragraph"
EXCERPT = "Excerpt"
HIGHLIGHT = "Highlight"
RENDER_MULTIMEDIA = "RenderMultimedia"


class RowGroupType(str, Enum):
    HEADER = "Header"
    BODY = "Body"
    FOOTER = "Footer"


class CellType(str, Enum):
    TH = "th"
    TD = "td"


# (section_id, content_type, sequence_number, parent_id, content_text)
NaturalKey = Tuple[int, str, int, Optional[int], Optional[str]]


def is_container_type(content_type: Optional[str]) -> bool:
    return (content_type or "") in CONTAINER_TYPES


def natural_key(
    section_id: int,
    content_type: str,
    sequence_number: int,
    parent_id: Optional[int],
    content_text: Optional[str],
) -> NaturalKey:
    # Containers are matched on position alone.
    # TODO: two different lists at the same parent/sequence collapse into one
    # record; include a structural fingerprint once re-ingestion of edited
    # labels needs to tell them apart.
    text = None if is_container_type(content_type) else content_text
    return (section_id, content_type, sequence_number, parent_id, text)


class Section(SQLModel, table=True):
    __tablename__ = "section"
    __table_args__ = (
        UniqueConstraint("document_id", "section_guid"),
        {"comment": "SPL sections, deduplicated by their <id root> GUID"},
    )

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    document_id: Optional[int] = Field(default=None, index=True)
    parent_section_id: Optional[int] = Field(
        default=None, foreign_key="section.id", index=True, ondelete="CASCADE"
    )
    section_guid: str = Field(max_length=36, index=True)
    section_code: Optional[str] = Field(default=None, max_length=50)
    section_code_system: Optional[str] = Field(default=None, max_length=100)
    section_code_system_name: Optional[str] = Field(default=None, max_length=100)
    section_display_name: Optional[str] = Field(default=None, max_length=500)
    title: Optional[str] = None
    effective_time: Optional[date] = None


class SectionTextContent(SQLModel, table=True):
    __tablename__ = "section_text_content"
    __table_args__ = {
        "comment": "One row per content block (paragraph, list, table, excerpt, media) in a section"
    }

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    section_id: int = Field(foreign_key="section.id", index=True, ondelete="CASCADE")
    parent_id: Optional[int] = Field(
        default=None, foreign_key="section_text_content.id", index=True, ondelete="CASCADE"
    )
    content_type: str = Field(max_length=50, index=True)
    style_code: Optional[str] = Field(default=None, max_length=256)
    sequence_number: int
    content_text: Optional[str] = Field(default=None, sa_column=Column(Text))

    @property
    def natural_key(self) -> NaturalKey:
        return natural_key(
            self.section_id,
            self.content_type,
            self.sequence_number,
            self.parent_id,
            self.content_text,
        )


class TextList(SQLModel, table=True):
    __tablename__ = "text_list"
    __table_args__ = {"comment": "List container, 1:1 with a List content node"}

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    section_text_content_id: int = Field(
        foreign_key="section_text_content.id", index=True, unique=True, ondelete="CASCADE"
    )
    list_type: Optional[str] = Field(default=None, max_length=50)
    style_code: Optional[str] = Field(default=None, max_length=256)


class TextListItem(SQLModel, table=True):
    __tablename__ = "text_list_item"
    __table_args__ = (
        UniqueConstraint("text_list_id", "sequence_number"),
        {"comment": "Ordered list items; empty items are never stored"},
    )

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    text_list_id: int = Field(foreign_key="text_list.id", index=True, ondelete="CASCADE")
    sequence_number: int
    item_caption: Optional[str] = None
    item_text: Optional[str] = Field(default=None, sa_column=Column(Text))


class TextTable(SQLModel, table=True):
    __tablename__ = "text_table"
    __table_args__ = {"comment": "Table container, 1:1 with a Table content node"}

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    section_text_content_id: int = Field(
        foreign_key="section_text_content.id", index=True, unique=True, ondelete="CASCADE"
    )
    section_table_link: Optional[str] = Field(default=None, max_length=100)
    width: Optional[str] = Field(default=None, max_length=20)
    caption: Optional[str] = Field(default=None, sa_column=Column(Text))
    has_header: bool = False
    has_footer: bool = False


class TextTableColumn(SQLModel, table=True):
    __tablename__ = "text_table_column"
    __table_args__ = (
        UniqueConstraint("text_table_id", "sequence_number"),
        {"comment": "Column definitions; colgroup values are kept next to the column's own"},
    )

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    text_table_id: int = Field(foreign_key="text_table.id", index=True, ondelete="CASCADE")
    sequence_number: int
    colgroup_sequence_number: Optional[int] = None
    colgroup_style_code: Optional[str] = Field(default=None, max_length=256)
    colgroup_align: Optional[str] = Field(default=None, max_length=20)
    colgroup_valign: Optional[str] = Field(default=None, max_length=20)
    width: Optional[str] = Field(default=None, max_length=20)
    align: Optional[str] = Field(default=None, max_length=20)
    valign: Optional[str] = Field(default=None, max_length=20)
    style_code: Optional[str] = Field(default=None, max_length=256)

    @property
    def effective_align(self) -> Optional[str]:
        return self.align or self.colgroup_align

    @property
    def effective_valign(self) -> Optional[str]:
        return self.valign or self.colgroup_valign

    @property
    def effective_style_code(self) -> Optional[str]:
        return self.style_code or self.colgroup_style_code


class TextTableRow(SQLModel, table=True):
    __tablename__ = "text_table_row"
    __table_args__ = (
        UniqueConstraint("text_table_id", "row_group_type", "sequence_number"),
        {"comment": "Rows, sequenced independently within Header/Body/Footer"},
    )

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    text_table_id: int = Field(foreign_key="text_table.id", index=True, ondelete="CASCADE")
    row_group_type: RowGroupType
    sequence_number: int
    style_code: Optional[str] = Field(default=None, max_length=256)


class TextTableCell(SQLModel, table=True):
    __tablename__ = "text_table_cell"
    __table_args__ = (
        UniqueConstraint("text_table_row_id", "sequence_number"),
        {"comment": "Header and data cells in document order"},
    )

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    text_table_row_id: int = Field(
        foreign_key="text_table_row.id", index=True, ondelete="CASCADE"
    )
    cell_type: CellType
    sequence_number: int
    cell_text: Optional[str] = Field(default=None, sa_column=Column(Text))
    row_span: Optional[int] = None
    col_span: Optional[int] = None
    style_code: Optional[str] = Field(default=None, max_length=256)
    align: Optional[str] = Field(default=None, max_length=20)
    valign: Optional[str] = Field(default=None, max_length=20)


class SectionExcerptHighlight(SQLModel, table=True):
    __tablename__ = "section_excerpt_highlight"
    __table_args__ = {"comment": "Verbatim highlight markup, owned by the section"}

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    section_id: int = Field(foreign_key="section.id", index=True, ondelete="CASCADE")
    highlight_text: str = Field(sa_column=Column(Text, nullable=False))


class ObservationMedia(SQLModel, table=True):
    __tablename__ = "observation_media"
    __table_args__ = (
        UniqueConstraint("section_id", "media_id"),
        {"comment": "Images declared in a section through <observationMedia>"},
    )

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    section_id: int = Field(foreign_key="section.id", index=True, ondelete="CASCADE")
    document_id: Optional[int] = Field(default=None, index=True)
    media_id: str = Field(max_length=100, index=True)
    description_text: Optional[str] = None
    media_type: Optional[str] = Field(default=None, max_length=100)
    xsi_type: Optional[str] = Field(default=None, max_length=50)
    file_name: Optional[str] = Field(default=None, max_length=500)


class RenderedMedia(SQLModel, table=True):
    __tablename__ = "rendered_media"
    __table_args__ = {"comment": "Placement of observation media inside a content block"}

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    section_text_content_id: int = Field(
        foreign_key="section_text_content.id", index=True, ondelete="CASCADE"
    )
    observation_media_id: int = Field(
        foreign_key="observation_media.id", index=True, ondelete="CASCADE"
    )
    document_id: Optional[int] = Field(default=None, index=True)
    sequence_in_content: int
    is_inline: bool = False

import logging
import uuid
from datetime import date, datetime
from typing import Optional

from bs4 import Tag
from sqlmodel import col

from spl_ingest.extract.spl import A, E, child, child_attr, text_value
from spl_ingest.load.context import IngestContext
from spl_ingest.load.schema import Section

logger = logging.getLogger(__name__)


def parse_effective_time(value: Optional[str]) -> Optional[date]:
    """HL7 TS value (YYYYMMDD, optionally followed by a time) as a date."""
    if not value:
        return None
    value = value.strip()
    formats = ["%Y%m%d", "%Y%m", "%Y"]  # 20240115  # 202401  # 2024
    for fmt, length in zip(formats, (8, 6, 4)):
        if len(value) < length:
            continue
        try:
            return datetime.strptime(value[:length], fmt).date()
        except ValueError:
            continue
    return None


def parse_section_guid(section_el: Tag) -> str:
    raw = child_attr(section_el, E.ID, A.ROOT)
    try:
        guid = uuid.UUID((raw or "").strip())
    except ValueError:
        raise ValueError(f"Section <id root> is missing or not a valid GUID: {raw!r}")
    if guid.int == 0:
        raise ValueError("Section <id root> is the empty GUID")
    return str(guid)


class SectionCreator:
    """Finds or creates the Section row for a <section> element, keyed by its GUID."""

    async def get_or_create(
        self, section_el: Tag, ctx: IngestContext, parent_section_id: Optional[int] = None
    ) -> Section:
        if section_el is None:
            raise ValueError("section_el is required")

        section_guid = parse_section_guid(section_el)
        document_condition = (
            col(Section.document_id).is_(None)
            if ctx.document_id is None
            else col(Section.document_id) == ctx.document_id
        )
        existing = await ctx.store.first(
            Section, Section.section_guid == section_guid, document_condition
        )
        if existing is not None:
            if parent_section_id is not None and existing.parent_section_id != parent_section_id:
                existing.parent_section_id = parent_section_id
                await ctx.store.create(existing)
            return existing

        section = Section(
            document_id=ctx.document_id,
            parent_section_id=parent_section_id,
            section_guid=section_guid,
            section_code=child_attr(section_el, E.CODE, A.CODE),
            section_code_system=child_attr(section_el, E.CODE, A.CODE_SYSTEM),
            section_code_system_name=child_attr(section_el, E.CODE, A.CODE_SYSTEM_NAME),
            section_display_name=child_attr(section_el, E.CODE, A.DISPLAY_NAME),
            title=text_value(child(section_el, E.TITLE)),
            effective_time=parse_effective_time(child_attr(section_el, E.EFFECTIVE_TIME, A.VALUE)),
        )
        await ctx.store.create(section)
        logger.info(f"Created section {section_guid} ({section.section_display_name or section.title})")
        return section

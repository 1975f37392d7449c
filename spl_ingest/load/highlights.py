import logging
from typing import List, Optional, Tuple

from bs4 import Tag

from spl_ingest.extract.spl import E, child, children_named, normalize_xml_whitespace
from spl_ingest.load.context import IngestContext
from spl_ingest.load.schema import SectionExcerptHighlight

logger = logging.getLogger(__name__)


def extract_highlight_text(highlight_el: Tag) -> Optional[str]:
    """Verbatim inner markup of the highlight's <text>, tags kept as written."""
    text_el = child(highlight_el, E.TEXT)
    if text_el is None:
        return None
    if text_el.contents:
        return normalize_xml_whitespace(text_el.decode_contents())
    return text_el.get_text().strip()


async def get_or_create_highlights(
    container: Optional[Tag],
    section_id: Optional[int],
    ctx: Optional[IngestContext],
) -> Tuple[List[SectionExcerptHighlight], int]:
    """Store every highlight sitting directly under an excerpt or section.

    Nested highlights (inside tables, lists...) are left alone. Returns the
    highlights found or created and how many were created.
    """
    highlights: List[SectionExcerptHighlight] = []
    created = 0
    if container is None or ctx is None or not section_id or section_id <= 0:
        logger.warning(f"Skipping highlight processing for section {section_id}: missing input")
        return highlights, created

    for highlight_el in children_named(container, E.HIGHLIGHT):
        if child(highlight_el, E.TEXT) is None:
            logger.warning(f"Highlight element without text child in section {section_id}")
            continue

        try:
            text = extract_highlight_text(highlight_el)
        except Exception as e:
            logger.error(f"Error extracting highlight markup for section {section_id}: {e}")
            continue

        if not text or not text.strip():
            logger.warning(f"Empty highlight text extracted for section {section_id}")
            continue

        existing = await ctx.store.first(
            SectionExcerptHighlight,
            SectionExcerptHighlight.section_id == section_id,
            SectionExcerptHighlight.highlight_text == text,
        )
        if existing is not None:
            highlights.append(existing)
            continue

        highlight = await ctx.store.create(
            SectionExcerptHighlight(section_id=section_id, highlight_text=text)
        )
        highlights.append(highlight)
        created += 1
        logger.info(f"Created highlight for section {section_id} with {len(text)} characters")

    return highlights, created

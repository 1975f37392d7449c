import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from bs4 import Tag

from spl_ingest.extract.spl import E, child, descendants_named, is_named, parse_spl
from spl_ingest.load.context import IngestContext
from spl_ingest.load.highlights import get_or_create_highlights
from spl_ingest.load.ingest_strategy import ContentIngestResult, ContentIngestStrategy
from spl_ingest.load.schema import Section, SectionExcerptHighlight
from spl_ingest.load.sections import SectionCreator
from spl_ingest.load.walker import SingleNodeStrategy

logger = logging.getLogger(__name__)


@dataclass
class SectionIngestOutcome:
    section_id: int
    content: ContentIngestResult = field(default_factory=ContentIngestResult)
    highlights: List[SectionExcerptHighlight] = field(default_factory=list)
    highlights_created: int = 0

    @property
    def nodes(self):
        return self.content.nodes

    @property
    def descendant_count(self) -> int:
        return self.content.descendant_count


@dataclass
class SectionFailure:
    position: int
    error: str


@dataclass
class DocumentIngestOutcome:
    sections: List[Section] = field(default_factory=list)
    outcomes: List[SectionIngestOutcome] = field(default_factory=list)
    failures: List[SectionFailure] = field(default_factory=list)

    @property
    def node_count(self) -> int:
        return sum(len(o.nodes) for o in self.outcomes)

    @property
    def descendant_count(self) -> int:
        return sum(o.descendant_count for o in self.outcomes)


async def ingest_section_content(
    section_el: Optional[Tag],
    section_id: Optional[int],
    ctx: Optional[IngestContext],
    strategy: Optional[ContentIngestStrategy] = None,
) -> SectionIngestOutcome:
    """Ingest a section's <text>, its <excerpt> and the highlights directly under it."""
    outcome = SectionIngestOutcome(section_id=section_id or 0)
    if section_el is None or ctx is None or not section_id or section_id <= 0:
        logger.warning(f"Skipping section content for section {section_id}: missing input")
        return outcome

    strategy = strategy or SingleNodeStrategy()

    text_el = child(section_el, E.TEXT)
    if text_el is not None:
        outcome.content.extend(await strategy.ingest(text_el, section_id, ctx))

    excerpt_el = child(section_el, E.EXCERPT)
    if excerpt_el is not None:
        outcome.content.extend(await strategy.ingest(excerpt_el, section_id, ctx))
        highlights, created = await get_or_create_highlights(excerpt_el, section_id, ctx)
        outcome.highlights.extend(highlights)
        outcome.highlights_created += created

    highlights, created = await get_or_create_highlights(section_el, section_id, ctx)
    outcome.highlights.extend(highlights)
    outcome.highlights_created += created
    return outcome


def enclosing_section(section_el: Tag) -> Optional[Tag]:
    for parent in section_el.parents:
        if is_named(parent, E.SECTION):
            return parent
    return None


async def ingest_document(
    source: Union[str, bytes, Tag],
    ctx: IngestContext,
    strategy: Optional[ContentIngestStrategy] = None,
) -> DocumentIngestOutcome:
    """Ingest every <section> of an SPL document, nested sections included.

    Subsections are linked to the section they sit in. A section whose
    <id root> is unusable is recorded as a failure (its subsections are stored
    without a parent) and the rest of the document carries on. Database errors
    propagate.
    """
    soup = source if isinstance(source, Tag) else parse_spl(source)
    creator = ctx.section_creator or SectionCreator()
    strategy = strategy or SingleNodeStrategy()
    outcome = DocumentIngestOutcome()
    # id() of each stored <section> element, for linking its subsections
    stored_ids = {}

    for position, section_el in enumerate(descendants_named(soup, E.SECTION), start=1):
        parent_el = enclosing_section(section_el)
        parent_section_id = stored_ids.get(id(parent_el)) if parent_el is not None else None
        try:
            section = await creator.get_or_create(section_el, ctx, parent_section_id=parent_section_id)
        except ValueError as e:
            logger.error(f"Skipping section #{position}: {e}")
            outcome.failures.append(SectionFailure(position=position, error=str(e)))
            continue

        stored_ids[id(section_el)] = section.id
        outcome.sections.append(section)
        if ctx.media is not None:
            await ctx.media.parse_observation_media(section_el, section.id, ctx)
        outcome.outcomes.append(await ingest_section_content(section_el, section.id, ctx, strategy))

    logger.info(
        f"Document {ctx.document_id}: {len(outcome.sections)} sections, "
        f"{outcome.node_count} content nodes, {outcome.descendant_count} descendant records created, "
        f"{len(outcome.failures)} failures"
    )
    return outcome

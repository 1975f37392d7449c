import logging
from typing import List, Optional

from bs4 import Tag
from sqlmodel import col

from spl_ingest.extract.spl import (
    A,
    E,
    attr,
    child,
    descendants_named,
    is_named,
    path,
    text_value,
)
from spl_ingest.load.context import IngestContext
from spl_ingest.load.schema import ObservationMedia, RenderedMedia

logger = logging.getLogger(__name__)


class MediaParser:
    """Stores <observationMedia> declarations and links <renderMultimedia> placements to them."""

    async def parse_observation_media(
        self, section_el: Optional[Tag], section_id: Optional[int], ctx: IngestContext
    ) -> List[ObservationMedia]:
        media: List[ObservationMedia] = []
        if section_el is None or not section_id or section_id <= 0:
            return media

        for media_el in path(section_el, E.COMPONENT, E.OBSERVATION_MEDIA):
            media_id = attr(media_el, A.ID)
            if not media_id or not media_id.strip():
                # nothing can reference it
                continue

            existing = await ctx.store.first(
                ObservationMedia,
                ObservationMedia.section_id == section_id,
                ObservationMedia.media_id == media_id,
            )
            if existing is not None:
                media.append(existing)
                continue

            value_el = child(media_el, E.VALUE)
            record = ObservationMedia(
                section_id=section_id,
                document_id=ctx.document_id,
                media_id=media_id,
                description_text=text_value(child(media_el, E.TEXT)),
                media_type=attr(value_el, A.MEDIA_TYPE),
                xsi_type=attr(value_el, A.XSI_TYPE),
                file_name=attr(child(value_el, E.REFERENCE), A.VALUE),
            )
            media.append(await ctx.store.create(record))
        return media


    async def _find_observation_media(
        self, referenced_object_id: str, section_id: int, ctx: IngestContext
    ) -> Optional[ObservationMedia]:
        media = await ctx.store.first(
            ObservationMedia,
            ObservationMedia.section_id == section_id,
            ObservationMedia.media_id == referenced_object_id,
        )
        if media is not None or ctx.document_id is None:
            return media
        # declared by another section of the same document
        return await ctx.store.first(
            ObservationMedia,
            ObservationMedia.media_id == referenced_object_id,
            col(ObservationMedia.document_id) == ctx.document_id,
        )

    async def parse_rendered_media(
        self,
        block: Tag,
        content_node_id: int,
        section_id: int,
        ctx: IngestContext,
        is_inline: bool,
    ) -> int:
        """Link each renderMultimedia in the block to its observation media; returns links created.

        References resolve against the media declared by the node's own
        section, or by any section of the same document when a document id
        is set.
        """
        if ctx is None or not content_node_id or not section_id:
            return 0

        if is_named(block, E.RENDER_MULTIMEDIA):
            rendered = [block]
        else:
            rendered = descendants_named(block, E.RENDER_MULTIMEDIA)
        if not rendered:
            return 0

        if ctx.document_id is None:
            document_condition = col(RenderedMedia.document_id).is_(None)
        else:
            document_condition = col(RenderedMedia.document_id) == ctx.document_id

        created = 0
        seq = 1
        for el in rendered:
            ref = attr(el, A.REFERENCED_OBJECT)
            if not ref or not ref.strip():
                logger.warning("Found <renderMultimedia> with no referencedObject attribute")
                continue

            media = await self._find_observation_media(ref, section_id, ctx)
            if media is None or media.id is None:
                logger.warning(
                    f"Dangling reference: <renderMultimedia referencedObject='{ref}'> "
                    f"has no matching <observationMedia>"
                )
                continue

            existing = await ctx.store.first(
                RenderedMedia,
                RenderedMedia.section_text_content_id == content_node_id,
                document_condition,
                RenderedMedia.observation_media_id == media.id,
                RenderedMedia.sequence_in_content == seq,
            )
            if existing is None:
                await ctx.store.create(
                    RenderedMedia(
                        section_text_content_id=content_node_id,
                        observation_media_id=media.id,
                        document_id=ctx.document_id,
                        sequence_in_content=seq,
                        is_inline=is_inline,
                    )
                )
                created += 1
            seq += 1
        return created

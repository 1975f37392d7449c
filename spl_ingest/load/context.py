from dataclasses import dataclass
from typing import Optional, Protocol

from bs4 import Tag

from spl_ingest.load.schema import Section
from spl_ingest.load.store import ContentStore


class MediaDelegate(Protocol):
    async def parse_observation_media(
        self, section_el: Tag, section_id: int, ctx: "IngestContext"
    ) -> list:
        ...

    async def parse_rendered_media(
        self,
        block: Tag,
        content_node_id: int,
        section_id: int,
        ctx: "IngestContext",
        is_inline: bool,
    ) -> int:
        ...


class SectionCreatorDelegate(Protocol):
    async def get_or_create(
        self, section_el: Tag, ctx: "IngestContext", parent_section_id: Optional[int] = None
    ) -> Section:
        ...


@dataclass
class IngestContext:
    """Everything one ingestion call needs, handed in by the caller.

    Built once per ingestion run; concurrent runs each get their own.
    """

    store: ContentStore
    section_creator: Optional[SectionCreatorDelegate] = None
    media: Optional[MediaDelegate] = None
    document_id: Optional[int] = None

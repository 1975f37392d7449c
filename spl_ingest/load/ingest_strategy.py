from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import Tag

from spl_ingest.extract.spl import child_blocks
from spl_ingest.load.context import IngestContext
from spl_ingest.load.schema import SectionTextContent
from spl_ingest.transform.content_tree import ChildBlocks


@dataclass
class ContentIngestResult:
    nodes: List[SectionTextContent] = field(default_factory=list)
    descendant_count: int = 0

    def extend(self, other: "ContentIngestResult") -> None:
        self.nodes.extend(other.nodes)
        self.descendant_count += other.descendant_count


class ContentIngestStrategy(ABC):
    """Turns the blocks under a container into stored content nodes.

    Every implementation must leave the database in the same state for the
    same input; they differ only in how many round trips they make.
    """

    name: str = ""

    def __init__(self, tree: ChildBlocks = child_blocks):
        self.tree = tree

    @abstractmethod
    async def ingest(
        self,
        container: Optional[Tag],
        section_id: Optional[int],
        ctx: Optional[IngestContext],
        parent_id: Optional[int] = None,
        sequence: int = 1,
    ) -> ContentIngestResult:
        ...

"""
Shared fixtures: a throwaway SQLite database per test and helpers that wrap
SPL snippets in a namespaced section so they parse like real label files.
"""

from typing import Dict, List, Tuple

import pytest
import pytest_asyncio
from bs4 import Tag

from spl_ingest.extract.spl import HL7_NAMESPACE, parse_spl
from spl_ingest.load.context import IngestContext
from spl_ingest.load.db import create_db_and_tables, make_engine, make_session_factory
from spl_ingest.load.media import MediaParser
from spl_ingest.load.schema import Section, SectionTextContent
from spl_ingest.load.sections import SectionCreator
from spl_ingest.load.store import ContentStore

XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
SECTION_GUID = "6f0c2a1e-8d3b-4c55-9a7e-2b1f0e4d3c21"


def spl_section(body: str, guid: str = SECTION_GUID) -> Tag:
    """Parse a <section> whose children are `body`."""
    xml = (
        f'<section xmlns="{HL7_NAMESPACE}" xmlns:xsi="{XSI_NAMESPACE}">'
        f'<id root="{guid}"/>{body}</section>'
    )
    return parse_spl(xml).find("section")


def spl_element(markup: str, name: str) -> Tag:
    """Parse a fragment inside a namespaced section and return its first `name` element."""
    return spl_section(markup).find(name)


def spl_document(*sections: str) -> str:
    components = "".join(f"<component>{s}</component>" for s in sections)
    return (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<document xmlns="{HL7_NAMESPACE}" xmlns:xsi="{XSI_NAMESPACE}">'
        f"<component><structuredBody>{components}</structuredBody></component>"
        f"</document>"
    )


def node_shapes(nodes: List[SectionTextContent]) -> set:
    """Natural keys with database ids swapped for the (type, sequence) path to the node.

    Two runs in different databases assign different ids, so this is what
    gets compared when checking that strategies agree.
    """
    by_id: Dict[int, SectionTextContent] = {n.id: n for n in nodes}

    def path_to(node: SectionTextContent) -> Tuple:
        steps = []
        current = node
        while current is not None:
            steps.append((current.content_type, current.sequence_number))
            current = by_id.get(current.parent_id) if current.parent_id else None
        return tuple(reversed(steps))

    return {(path_to(n), n.content_text) for n in nodes}


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'spl.db'}")
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    async with make_session_factory(engine)() as session:
        yield session


@pytest.fixture
def store(session) -> ContentStore:
    return ContentStore(session)


@pytest.fixture
def ctx(store) -> IngestContext:
    return IngestContext(store=store, section_creator=SectionCreator(), media=MediaParser())


@pytest_asyncio.fixture
async def section(store) -> Section:
    return await store.create(Section(section_guid=SECTION_GUID, title="Dosage and Administration"))

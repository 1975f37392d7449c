import logging
import re
from typing import Iterable, List, Optional, Union

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

HL7_NAMESPACE = "urn:hl7-org:v3"


class E:
    """SPL element local names."""
    DOCUMENT = "document"
    STRUCTURED_BODY = "structuredBody"
    COMPONENT = "component"
    SECTION = "section"
    ID = "id"
    CODE = "code"
    TITLE = "title"
    EFFECTIVE_TIME = "effectiveTime"
    TEXT = "text"
    EXCERPT = "excerpt"
    HIGHLIGHT = "highlight"
    PARAGRAPH = "paragraph"
    LIST = "list"
    ITEM = "item"
    CAPTION = "caption"
    TABLE = "table"
    COLGROUP = "colgroup"
    COL = "col"
    THEAD = "thead"
    TBODY = "tbody"
    TFOOT = "tfoot"
    TR = "tr"
    TH = "th"
    TD = "td"
    RENDER_MULTIMEDIA = "renderMultimedia"
    OBSERVATION_MEDIA = "observationMedia"
    VALUE = "value"
    REFERENCE = "reference"


class A:
    """SPL attribute names."""
    ID = "ID"
    ROOT = "root"
    CODE = "code"
    CODE_SYSTEM = "codeSystem"
    CODE_SYSTEM_NAME = "codeSystemName"
    DISPLAY_NAME = "displayName"
    VALUE = "value"
    STYLE_CODE = "styleCode"
    LIST_TYPE = "listType"
    WIDTH = "width"
    ALIGN = "align"
    VALIGN = "valign"
    ROWSPAN = "rowspan"
    COLSPAN = "colspan"
    REFERENCED_OBJECT = "referencedObject"
    MEDIA_TYPE = "mediaType"
    XSI_TYPE = "xsi:type"


# Tags that become content nodes when found under a section's text/excerpt
BLOCK_TAGS = frozenset(
    {E.PARAGRAPH, E.LIST, E.TABLE, E.RENDER_MULTIMEDIA, E.EXCERPT, E.HIGHLIGHT}
)
_BLOCK_TAGS_LOWER = frozenset(t.lower() for t in BLOCK_TAGS)

INLINE_TAGS = "sup|sub|em|strong|i|b|u|span|italics"


def parse_spl(source: Union[str, bytes]) -> BeautifulSoup:
    """Parse SPL XML into a soup that keeps element-name case (renderMultimedia etc.)."""
    return BeautifulSoup(source, "xml")


def local_name(el: Tag) -> str:
    return el.name or ""


def is_named(el: Tag, name: str) -> bool:
    return local_name(el).lower() == name.lower()


def child_elements(el: Tag) -> List[Tag]:
    return [c for c in el.children if isinstance(c, Tag)]


def child(el: Optional[Tag], name: str) -> Optional[Tag]:
    """First direct child element with the given local name."""
    if el is None:
        return None
    for c in child_elements(el):
        if is_named(c, name):
            return c
    return None


def children_named(el: Optional[Tag], name: str) -> List[Tag]:
    if el is None:
        return []
    return [c for c in child_elements(el) if is_named(c, name)]


def descendants_named(el: Tag, name: str) -> List[Tag]:
    return [d for d in el.descendants if isinstance(d, Tag) and is_named(d, name)]


def path(el: Optional[Tag], *names: str) -> List[Tag]:
    """Walk direct children name by name, e.g. path(section, "component", "observationMedia")."""
    current: List[Tag] = [el] if el is not None else []
    for name in names:
        current = [c for parent in current for c in children_named(parent, name)]
        if not current:
            return []
    return current


def attr(el: Optional[Tag], name: str) -> Optional[str]:
    if el is None:
        return None
    value = el.get(name)
    if isinstance(value, list):
        # bs4 splits multi-valued attributes like class; SPL has none we care about
        value = " ".join(value)
    return value


def child_attr(el: Optional[Tag], child_name: str, attr_name: str) -> Optional[str]:
    return attr(child(el, child_name), attr_name)


def child_blocks(container: Optional[Tag], block_tags: Iterable[str] = BLOCK_TAGS) -> List[Tag]:
    """Ordered immediate content blocks of a container.

    Non-block wrappers (captions, items, cells, <text> inside a highlight...) are
    looked through, so a paragraph wrapped in some other element is still
    reported as a child of the container. Block elements are returned as-is
    and can be passed back in to walk the next level.
    """
    if container is None:
        return []
    allowed = (
        _BLOCK_TAGS_LOWER if block_tags is BLOCK_TAGS else frozenset(t.lower() for t in block_tags)
    )

    blocks: List[Tag] = []
    for el in child_elements(container):
        if local_name(el).lower() in allowed:
            blocks.append(el)
        else:
            blocks.extend(child_blocks(el, block_tags))
    return blocks


def normalize_xml_whitespace(text: Optional[str]) -> Optional[str]:
    """Collapse incidental whitespace in serialized markup without touching tags."""
    if not text:
        return text

    normalized = re.sub(r"\s+", " ", text)
    # between consecutive tags
    normalized = re.sub(r">\s+<", "><", normalized)
    # right after an opening tag / right before a closing tag
    normalized = re.sub(r"(<[A-Za-z][^<>]*?(?<!/)>)\s+([^<])", r"\1\2", normalized)
    normalized = re.sub(r"([^>])\s+</", r"\1</", normalized)
    # inline formatting sits tight against surrounding text
    normalized = re.sub(
        rf"\s+(<(?:{INLINE_TAGS})[\s>])", r"\1", normalized, flags=re.IGNORECASE
    )
    normalized = re.sub(
        rf"(</(?:{INLINE_TAGS})>)\s+([.,;:!?\)\]\}}])", r"\1\2", normalized, flags=re.IGNORECASE
    )
    # keep a space between text and a following block-level opening tag
    normalized = re.sub(
        rf"([\w\).,;:!?\]\"'\-])(<(?![/!?])(?!br[\s/>])(?!(?:{INLINE_TAGS})[\s/>]))",
        r"\1 \2",
        normalized,
        flags=re.IGNORECASE,
    )
    normalized = re.sub(r"\s+(<br[\s/>])", r"\1", normalized, flags=re.IGNORECASE)
    return normalized.strip()


def inner_markup(el: Optional[Tag]) -> str:
    """Inner XML of an element with whitespace normalized; "" when there is none."""
    if el is None:
        return ""
    return normalize_xml_whitespace(el.decode_contents()) or ""


def text_value(el: Optional[Tag]) -> Optional[str]:
    if el is None:
        return None
    value = el.get_text().strip()
    return value or None


def content_type_for(el: Tag) -> str:
    """Content type tag for a block: its local name with the first letter upper-cased."""
    name = local_name(el)
    if not name:
        raise ValueError("Element has no tag name")
    return name[0].upper() + name[1:]

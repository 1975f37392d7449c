from spl_ingest.extract.spl import (
    A,
    BLOCK_TAGS,
    E,
    HL7_NAMESPACE,
    child_blocks,
    content_type_for,
    inner_markup,
    normalize_xml_whitespace,
    parse_spl,
)

__all__ = [
    "A",
    "BLOCK_TAGS",
    "E",
    "HL7_NAMESPACE",
    "child_blocks",
    "content_type_for",
    "inner_markup",
    "normalize_xml_whitespace",
    "parse_spl",
]

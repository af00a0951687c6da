# src/configweave/core/tree/__init__.py
"""
Modelo de árvore comum e codecs de formato do ConfigWeave.

Responsabilidades do pacote:
    - Tipos de nó (Document, Element, Text, Comment)
    - Parsing de XML e YAML para a árvore comum
    - Serialização XML e hashing canônico
"""

from .nodes import Comment, Container, Document, Element, Node, Text
from .xml_codec import canonical_xml, parse_xml, parse_xml_file, to_xml, write_xml
from .yaml_codec import YAML_ROOT_NAME, parse_yaml, parse_yaml_file
from .hashing import compute_document_hash

__all__ = [
    "Comment",
    "Container",
    "Document",
    "Element",
    "Node",
    "Text",
    "canonical_xml",
    "parse_xml",
    "parse_xml_file",
    "to_xml",
    "write_xml",
    "YAML_ROOT_NAME",
    "parse_yaml",
    "parse_yaml_file",
    "compute_document_hash",
]

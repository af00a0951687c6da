# src/configweave/core/tree/xml_codec.py
"""
Codec XML do ConfigWeave (formato primário).

Converte texto XML para o modelo de árvore comum e serializa a árvore de
volta para XML.

Decisões arquiteturais:
    - Parsing via `xml.etree.ElementTree.XMLParser` com um alvo próprio
      (`_TreeTarget`) que monta `Document` diretamente, inclusive
      comentários antes e depois do elemento raiz
    - Nomes qualificados (`xi:include`) e declarações `xmlns` são
      reconstruídos a partir dos eventos `start_ns`, então parse → serialize
      devolve XML bem-formado com os mesmos nomes
    - A serialização não reformata: nós `Text` de whitespace são emitidos
      como estão, então parse → serialize preserva o layout do arquivo

Limites explícitos:
    - Whitespace fora do elemento raiz não é reportado pelo expat e não
      vira nó `Text`
    - Instruções de processamento e DOCTYPE são descartados
    - Não valida schema
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List, Tuple, Union
from xml.sax.saxutils import escape, quoteattr

from configweave.core.errors import DocumentParseError

from .nodes import Comment, Container, Document, Element, Node, Text


XML_DECLARATION = '<?xml version="1.0"?>\n'
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


class _TreeTarget:
    """
    Alvo de parser que constrói a árvore comum a partir dos callbacks do expat.

    Invariantes:
        - `_stack[0]` é sempre o `Document`; o topo é o contêiner aberto
        - `_scopes` acompanha `_stack[1:]`: um mapa prefixo → URI por elemento
    """

    def __init__(self) -> None:
        self._document = Document()
        self._stack: List[Container] = [self._document]
        self._scopes: List[Dict[str, str]] = [{"xml": XML_NAMESPACE}]
        self._pending_ns: List[Tuple[str, str]] = []

    def start_ns(self, prefix: str, uri: str) -> None:
        self._pending_ns.append((prefix or "", uri))

    def start(self, tag: str, attrib: Dict[str, str]) -> None:
        scope = dict(self._scopes[-1])
        attributes: Dict[str, str] = {}
        for prefix, uri in self._pending_ns:
            # redeclaração move o prefixo para o fim (mais recente vence)
            scope.pop(prefix, None)
            scope[prefix] = uri
            attributes[f"xmlns:{prefix}" if prefix else "xmlns"] = uri
        self._pending_ns = []

        for name, value in attrib.items():
            attributes[_qualify(name, scope, attribute=True)] = value

        element = Element(name=_qualify(tag, scope, attribute=False), attributes=attributes)
        self._stack[-1].append(element)
        self._stack.append(element)
        self._scopes.append(scope)

    def end(self, tag: str) -> None:
        self._stack.pop()
        self._scopes.pop()

    def data(self, text: str) -> None:
        container = self._stack[-1]
        if container is self._document:
            return
        last = container.children[-1] if container.children else None
        if isinstance(last, Text):
            last.value += text
        else:
            container.append(Text(text))

    def comment(self, text: str) -> None:
        self._stack[-1].append(Comment(text))

    def close(self) -> Document:
        return self._document


def _qualify(name: str, scope: Dict[str, str], *, attribute: bool) -> str:
    if not name.startswith("{"):
        return name

    uri, _, local = name[1:].partition("}")
    for prefix in reversed(list(scope)):
        if scope[prefix] != uri:
            continue
        # atributos nunca herdam o namespace default
        if not prefix and attribute:
            continue
        return f"{prefix}:{local}" if prefix else local
    return local


def parse_xml(text: Union[str, bytes], *, source: str = "<string>") -> Document:
    """
    Converte um documento XML em `Document`.

    Raises:
        DocumentParseError: Se o XML for inválido.
    """
    parser = ET.XMLParser(target=_TreeTarget())
    try:
        parser.feed(text)
        return parser.close()
    except ET.ParseError as e:
        raise DocumentParseError(f"Cannot parse XML from '{source}': {e}") from e


def parse_xml_file(path: Path) -> Document:
    try:
        data = path.read_bytes()
    except OSError as e:
        raise DocumentParseError(f"Cannot read '{path}': {e}") from e
    return parse_xml(data, source=str(path))


# ---------------------------------------------------------------------------
# Serialização
# ---------------------------------------------------------------------------

def to_xml(node: Union[Document, Node], *, declaration: bool = True) -> str:
    parts: List[str] = []
    if isinstance(node, Document):
        if declaration:
            parts.append(XML_DECLARATION)
        for child in node.children:
            _write(child, parts)
    else:
        _write(node, parts)
    return "".join(parts)


def write_xml(document: Document, path: Path) -> None:
    path.write_text(to_xml(document), encoding="utf-8")


def _write(node: Node, parts: List[str]) -> None:
    if isinstance(node, Text):
        parts.append(escape(node.value))
    elif isinstance(node, Comment):
        parts.append(f"<!--{node.value}-->")
    elif isinstance(node, Element):
        attrs = "".join(f" {name}={quoteattr(value)}" for name, value in node.attributes.items())
        if not node.children:
            parts.append(f"<{node.name}{attrs}/>")
            return
        parts.append(f"<{node.name}{attrs}>")
        for child in node.children:
            _write(child, parts)
        parts.append(f"</{node.name}>")


def canonical_xml(container: Container) -> str:
    """
    Serialização canônica: atributos ordenados, sem declaração.

    Usada para hashing e comparação estrutural em testes.
    """
    parts: List[str] = []
    for child in container.children if isinstance(container, Document) else [container]:
        _write_canonical(child, parts)
    return "".join(parts)


def _write_canonical(node: Node, parts: List[str]) -> None:
    if isinstance(node, Element):
        attrs = "".join(f" {k}={quoteattr(v)}" for k, v in sorted(node.attributes.items()))
        parts.append(f"<{node.name}{attrs}>")
        for child in node.children:
            _write_canonical(child, parts)
        parts.append(f"</{node.name}>")
    else:
        _write(node, parts)

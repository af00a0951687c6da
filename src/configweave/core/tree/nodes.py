# src/configweave/core/tree/nodes.py
"""
Modelo de árvore comum do ConfigWeave.

Os dois formatos textuais aceitos (XML e YAML) são convertidos para este
modelo antes de qualquer merge ou resolução de includes.

Tipos de nó:
    - Element  → nome, atributos (conjunto não ordenado), filhos ordenados
    - Text     → valor textual
    - Comment  → valor textual de comentário
    - Document → contêiner de topo: exatamente um Element raiz mais
                 Comment/Text opcionais como irmãos

Invariantes:
    - Todo nó anexado conhece seu pai (`parent`)
    - Um nó pertence a no máximo um contêiner; anexá-lo em outro o move
    - `clone()` devolve sempre uma cópia profunda desanexada, sem aliasing
      com a árvore de origem

Limites explícitos:
    - Não faz parsing nem serialização (ver `xml_codec` / `yaml_codec`)
    - Não valida schema
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from configweave.core.errors import DocumentParseError


_PATH_SEGMENT = re.compile(r"^(?P<name>[^\[\]]+)(?:\[(?P<predicate>[^\]]*)\])?$")


class Node:
    """Base comum dos nós da árvore."""

    parent: Optional["Container"]

    def clone(self) -> "Node":
        raise NotImplementedError

    def detach(self) -> None:
        if self.parent is not None:
            self.parent.remove(self)


class Container:
    """Operações sobre a lista ordenada de filhos (Element e Document)."""

    children: List[Node]

    def _adopt(self, node: Node) -> None:
        if node.parent is not None:
            node.parent.remove(node)
        node.parent = self

    def index_of(self, node: Node) -> int:
        # identidade, não igualdade estrutural
        for i, child in enumerate(self.children):
            if child is node:
                return i
        raise ValueError("node is not a child of this container")

    def append(self, node: Node) -> Node:
        self._adopt(node)
        self.children.append(node)
        return node

    def insert_before(self, node: Node, reference: Node) -> Node:
        self._adopt(node)
        self.children.insert(self.index_of(reference), node)
        return node

    def prepend(self, node: Node) -> Node:
        self._adopt(node)
        self.children.insert(0, node)
        return node

    def remove(self, node: Node) -> None:
        del self.children[self.index_of(node)]
        node.parent = None

    def replace(self, new: Node, old: Node) -> None:
        self._adopt(new)
        index = self.index_of(old)
        self.children[index] = new
        old.parent = None

    def clear(self) -> None:
        for child in self.children:
            child.parent = None
        self.children = []

    def child_elements(self) -> List["Element"]:
        return [c for c in self.children if isinstance(c, Element)]


@dataclass(eq=False)
class Text(Node):
    value: str
    parent: Optional[Container] = field(default=None, repr=False)

    def clone(self) -> "Text":
        return Text(self.value)

    def is_whitespace(self) -> bool:
        return not self.value.strip(" \t\n\r")


@dataclass(eq=False)
class Comment(Node):
    value: str
    parent: Optional[Container] = field(default=None, repr=False)

    def clone(self) -> "Comment":
        return Comment(self.value)


@dataclass(eq=False)
class Element(Node, Container):
    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List[Node] = field(default_factory=list)
    parent: Optional[Container] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        for child in self.children:
            child.parent = self

    # -----------------------------
    # Atributos
    # -----------------------------
    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(name, default)

    def set_attribute(self, name: str, value: str) -> None:
        self.attributes[name] = value

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)

    # -----------------------------
    # Conteúdo
    # -----------------------------
    def iter_text(self) -> Iterator[Text]:
        for child in self.children:
            if isinstance(child, Text):
                yield child
            elif isinstance(child, Element):
                yield from child.iter_text()

    def text(self) -> str:
        """Texto interno: concatenação de todos os Text descendentes."""
        return "".join(t.value for t in self.iter_text())

    def find(self, path: str) -> Optional["Element"]:
        """
        Busca um elemento descendente por caminho relativo.

        Segmentos separados por `/`; cada segmento aceita um predicado opcional:
            - `name[@attr=value]` → primeiro filho `name` com o atributo igual
            - `name[@attr]`       → primeiro filho `name` que tem o atributo
            - `name[n]`           → n-ésimo filho `name` (base zero)
        """
        segments = [s for s in path.strip().split("/") if s]
        if not segments:
            return None

        current: Optional[Element] = self
        for segment in segments:
            current = _find_child(current, segment)
            if current is None:
                return None
        return current

    def clone(self) -> "Element":
        return Element(
            name=self.name,
            attributes=dict(self.attributes),
            children=[child.clone() for child in self.children],
        )


@dataclass(eq=False)
class Document(Container):
    children: List[Node] = field(default_factory=list)

    def __post_init__(self) -> None:
        for child in self.children:
            child.parent = self

    @property
    def root(self) -> Element:
        for child in self.children:
            if isinstance(child, Element):
                return child
        raise DocumentParseError("No root node in document")

    def clone(self) -> "Document":
        return Document(children=[child.clone() for child in self.children])


def _find_child(parent: Element, segment: str) -> Optional[Element]:
    match = _PATH_SEGMENT.match(segment)
    if match is None:
        return None

    name = match.group("name")
    predicate = match.group("predicate")
    candidates = [c for c in parent.child_elements() if c.name == name]

    if predicate is None:
        return candidates[0] if candidates else None

    predicate = predicate.strip()
    if predicate.isdigit():
        index = int(predicate)
        return candidates[index] if index < len(candidates) else None

    if predicate.startswith("@"):
        attr, sep, value = predicate[1:].partition("=")
        value = value.strip().strip("'\"")
        for candidate in candidates:
            if not candidate.has_attribute(attr):
                continue
            if not sep or candidate.get_attribute(attr) == value:
                return candidate

    return None

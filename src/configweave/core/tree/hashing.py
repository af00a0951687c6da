# src/configweave/core/tree/hashing.py
"""
Hashing canônico da árvore de configuração resolvida.

O hash representa a **identidade estrutural** do documento final e é usado
para rastreabilidade de recargas (duas resoluções com o mesmo conteúdo
produzem o mesmo hash).

Política de hashing:
    - Apenas o elemento raiz participa (irmãos de topo são ignorados)
    - Serialização XML canônica (atributos ordenados, sem declaração)
    - Comentários são ignorados, inclusive o de proveniência
    - Codificação UTF-8
    - Algoritmo SHA-256

Invariantes:
    - O valor gerado é sempre uma string hexadecimal de 64 caracteres
    - Um snapshot recarregado tem o mesmo hash da árvore que o gerou
    - Nenhuma mutação ocorre sobre o input
"""

import hashlib

from .nodes import Comment, Document, Element, Node
from .xml_codec import canonical_xml


def compute_document_hash(document: Document) -> str:
    if not isinstance(document, Document):
        raise TypeError(
            f"Document para hashing deve ser Document, recebido: {type(document).__name__}"
        )

    root = _without_comments(document.root)
    return hashlib.sha256(canonical_xml(root).encode("utf-8")).hexdigest()


def _without_comments(node: Node) -> Node:
    if not isinstance(node, Element):
        return node.clone()
    return Element(
        name=node.name,
        attributes=dict(node.attributes),
        children=[_without_comments(c) for c in node.children if not isinstance(c, Comment)],
    )

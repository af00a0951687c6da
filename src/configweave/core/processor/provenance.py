# src/configweave/core/processor/provenance.py
"""
Comentário de proveniência da configuração gerada.

O documento final recebe, antes do elemento raiz, um comentário listando
os arquivos e as chaves de coordenação que contribuíram para ele, seguido
de uma linha em branco.
"""

from typing import Iterable, List

from configweave.core.tree import Comment, Document, Text


GENERATED_NOTICE = (
    " This file was generated automatically.\n"
    "     Do not edit it: it is likely to be discarded and generated again before it's read next time.\n"
)


def provenance_comment(files: Iterable[str], keys: Iterable[str]) -> str:
    lines: List[str] = [GENERATED_NOTICE + "     Files used to generate this file:"]
    lines.extend(f"       {path}" for path in files)

    keys = list(keys)
    if keys:
        lines.append("     Coordination nodes used to generate this file:")
        lines.extend(f"       {key}" for key in keys)

    return "\n".join(lines) + "      "


def add_provenance(document: Document, *, files: Iterable[str], keys: Iterable[str]) -> None:
    """Insere o comentário de proveniência e a linha em branco no topo do documento."""
    document.prepend(Text("\n\n"))
    document.prepend(Comment(provenance_comment(files, keys)))


def restore_provenance_layout(document: Document) -> None:
    """
    Recoloca a linha em branco entre o comentário de proveniência e o restante.

    Whitespace fora do elemento raiz não sobrevive ao parse XML, então um
    snapshot relido chega como `[Comment, ..., Element]`.
    """
    children = document.children
    if len(children) < 2 or not isinstance(children[0], Comment):
        return
    if isinstance(children[1], Text):
        return
    document.insert_before(Text("\n\n"), children[1])

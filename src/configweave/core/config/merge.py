# src/configweave/core/config/merge.py
"""
Merge canônico de árvores de configuração (TreeMerger).

Este módulo implementa a política oficial de merge utilizada pelo ConfigWeave
para aplicar um fragmento de override sobre a árvore base.

Política de merge:
    - Elementos são pareados por identidade estrutural (`ElementIdentifier`):
      nome do elemento + pares (atributo, valor) ordenados, ignorando os
      atributos de controle (`replace`, `remove`) e de diretiva
      (`incl`, `from_zk`, `from_env`)
    - Entre irmãos duplicados, o primeiro ainda não consumido é pareado
      (fila FIFO por identidade); cada elemento base é consumido no máximo
      uma vez por passada
    - Pareado + `remove`  → o elemento base é removido
    - Pareado + `replace` → o elemento base é substituído pela cópia do override
    - Pareado, sem flags  → merge recursivo
    - Não pareado         → anexado (com atributos de controle limpos);
                            `remove` sem par é no-op
    - Texto não-whitespace da base é descartado antes da reconstrução, então
      o valor escalar de uma folha é substituído, nunca concatenado

Invariantes:
    - A árvore base é mutada in-place
    - Nada do override é compartilhado com a base: todo nó anexado é cópia
    - O override não é mutado

Limites explícitos:
    - Não carrega arquivos
    - Não resolve diretivas de include
"""

from collections import defaultdict, deque
from typing import Deque, Dict, Tuple

from configweave.core.errors import MergeConflictError, NameMismatchError
from configweave.core.tree import Document, Element, Text


REPLACE_ATTR = "replace"
REMOVE_ATTR = "remove"
OPTIONAL_ATTR = "optional"

DIRECTIVE_ATTRS = ("incl", "from_zk", "from_env")

# nomes de raiz legado/atual tratados como equivalentes
ROOT_SYNONYMS = frozenset({"yandex", "clickhouse"})

_IGNORED_IN_IDENTIFIER = frozenset({REPLACE_ATTR, REMOVE_ATTR, *DIRECTIVE_ATTRS})

ElementIdentifier = Tuple[str, Tuple[Tuple[str, str], ...]]


def element_identifier(element: Element) -> ElementIdentifier:
    """
    Chave de pareamento entre elementos base e override.

    Independente da ordem dos atributos e cega ao conteúdo textual.
    """
    attrs = sorted(
        (name, value)
        for name, value in element.attributes.items()
        if name not in _IGNORED_IN_IDENTIFIER
    )
    return element.name, tuple(attrs)


def merge_documents(base: Document, overlay: Document) -> None:
    """
    Aplica um documento de override sobre a árvore base (in-place).

    Raises:
        NameMismatchError: Se os elementos raiz tiverem nomes diferentes
            (exceto o par de sinônimos legado/atual).
        MergeConflictError: Se algum elemento declarar `remove` e `replace`.
    """
    base_root = base.root
    overlay_root = overlay.root

    if base_root.name != overlay_root.name and not (
        base_root.name in ROOT_SYNONYMS and overlay_root.name in ROOT_SYNONYMS
    ):
        raise NameMismatchError(
            "Root element doesn't have the corresponding root element as the config file. "
            f"It must be <{base_root.name}>, got <{overlay_root.name}>"
        )

    merge_recursive(base_root, overlay_root)


def merge_recursive(base_node: Element, overlay_node: Element) -> None:
    pending: Dict[ElementIdentifier, Deque[Element]] = defaultdict(deque)

    for child in list(base_node.children):
        if isinstance(child, Text) and not child.is_whitespace():
            base_node.remove(child)
        elif isinstance(child, Element):
            pending[element_identifier(child)].append(child)

    for overlay_child in overlay_node.children:
        if not isinstance(overlay_child, Element):
            base_node.append(overlay_child.clone())
            continue

        remove = overlay_child.has_attribute(REMOVE_ATTR)
        replace = overlay_child.has_attribute(REPLACE_ATTR)

        if remove and replace:
            raise MergeConflictError(
                f"both remove and replace attributes set for element <{overlay_child.name}>"
            )

        queue = pending.get(element_identifier(overlay_child))
        matched = queue.popleft() if queue else None

        if matched is not None:
            if remove:
                base_node.remove(matched)
            elif replace:
                replacement = overlay_child.clone()
                replacement.remove_attribute(REPLACE_ATTR)
                base_node.replace(replacement, matched)
            else:
                merge_recursive(matched, overlay_child)
            continue

        if remove:
            continue

        base_node.append(strip_control_attributes(overlay_child.clone()))


def strip_control_attributes(element: Element) -> Element:
    """
    Limpa uma subárvore que será anexada sem par na base.

    `replace` não tem significado fora de um pareamento e é removido em
    todos os níveis; descendentes marcados com `remove` são descartados.
    """
    element.remove_attribute(REPLACE_ATTR)

    for child in list(element.children):
        if not isinstance(child, Element):
            continue
        if child.has_attribute(REMOVE_ATTR):
            element.remove(child)
        else:
            strip_control_attributes(child)

    return element

# src/configweave/core/includes/directives.py
"""
Tipos canônicos de diretiva de include.

Uma diretiva é um atributo que nomeia a fonte externa do conteúdo de um
elemento. Cada elemento declara no máximo uma.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from configweave.core.errors import AmbiguousDirectiveError
from configweave.core.tree import Element


class Directive(str, Enum):
    """
    Diretivas suportadas.

    - INCL: caminho dentro do documento de include (`include_from`)
    - FROM_ZK: chave no serviço de coordenação
    - FROM_ENV: nome de variável de ambiente
    """

    INCL = "incl"
    FROM_ZK = "from_zk"
    FROM_ENV = "from_env"

    @property
    def not_found_message(self) -> str:
        return _NOT_FOUND[self]


_NOT_FOUND = {
    Directive.INCL: "Include not found: ",
    Directive.FROM_ZK: "Could not get coordination node: ",
    Directive.FROM_ENV: "Env variable is not set: ",
}


def directive_of(element: Element) -> Optional[Directive]:
    """
    Retorna a diretiva declarada no elemento, se houver.

    Raises:
        AmbiguousDirectiveError: Se mais de uma diretiva estiver presente.
    """
    present = [d for d in Directive if element.has_attribute(d.value)]
    if len(present) > 1:
        raise AmbiguousDirectiveError(
            f"More than one substitution attribute is set for element <{element.name}>"
        )
    return present[0] if present else None

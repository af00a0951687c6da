# src/configweave/core/includes/__init__.py
"""
Resolução de diretivas de include do ConfigWeave.

Responsabilidades do pacote:
    - Tipos de diretiva (`incl`, `from_zk`, `from_env`)
    - Contrato do cache do serviço de coordenação
    - Travessia de resolução sobre a árvore mesclada
"""

from .directives import Directive, directive_of
from .resolver import INCLUDE_TAG, IncludeResolver
from .sources import CoordinationCache

__all__ = ["Directive", "directive_of", "INCLUDE_TAG", "IncludeResolver", "CoordinationCache"]

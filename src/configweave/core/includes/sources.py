# src/configweave/core/includes/sources.py
"""
Contratos das fontes externas de conteúdo para diretivas.

O serviço de coordenação é um colaborador externo: este módulo só define o
protocolo mínimo que o resolver consome. Nenhum protocolo de rede é
definido aqui.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class CoordinationCache(Protocol):
    """
    Cache de nós do serviço de coordenação com notificação de mudança.

    Contrato:
        - `get` retorna o conteúdo do nó, ou `None` se o nó não existe
        - `change_signal` é um token opaco de assinatura; a implementação o
          associa ao nó consultado para notificar o chamador de mudanças
        - falhas do serviço são sinalizadas com `CoordinationError`
    """

    def get(self, path: str, change_signal: Any = None) -> Optional[str]:
        ...

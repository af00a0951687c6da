# src/configweave/core/config/__init__.py
"""
Camada de composição de configuração do ConfigWeave.

Este pacote contém as estruturas e utilitários responsáveis por carregar
documentos de configuração, descobrir fragmentos de override e mesclá-los
sobre a configuração base.

A composição no ConfigWeave é:
    - determinística (fragmentos aplicados em ordem de caminho)
    - baseada em identidade estrutural de elementos
    - explícita (remoção e substituição exigem atributos de controle)

Invariantes:
    - A mesma base e os mesmos fragmentos sempre produzem a mesma árvore
    - Conflitos estruturais são tratados como erro

Limites explícitos:
    - Não resolve diretivas de include (ver `configweave.core.includes`)
    - Não persiste snapshots
"""

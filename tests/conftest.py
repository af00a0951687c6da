# tests/conftest.py
"""
Fixtures compartilhados para testes do ConfigWeave.

Este módulo define fixtures reutilizáveis que fornecem:
- um cache de coordenação em memória (com simulação de falha)
- um helper para escrever árvores de configuração em `tmp_path`
- documentos XML mínimos e determinísticos

Decisões arquiteturais:
    - O serviço de coordenação é substituído por um fake explícito
    - Variáveis de ambiente são injetadas como dict, nunca via `os.environ`
    - Todo I/O de arquivo acontece dentro de `tmp_path`

Invariantes:
    - Nenhuma fixture acessa rede ou o ambiente real do processo
    - Dados retornados são determinísticos e isolados por teste
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from configweave.core.errors import CoordinationError


class FakeCoordinationCache:
    """Cache de coordenação em memória que registra cada consulta."""

    def __init__(self, nodes: Optional[Dict[str, str]] = None):
        self.nodes: Dict[str, str] = dict(nodes or {})
        self.calls: List[Tuple[str, Any]] = []
        self.failing = False

    def get(self, path: str, change_signal: Any = None) -> Optional[str]:
        self.calls.append((path, change_signal))
        if self.failing:
            raise CoordinationError(f"connection loss while reading {path}")
        return self.nodes.get(path)


# =====================================================
# Coordenação
# =====================================================

@pytest.fixture
def coordination_cache() -> FakeCoordinationCache:
    """
    Fixture que fornece um cache de coordenação vazio e funcional.

    Testes populam `cache.nodes` e podem ligar `cache.failing` para
    simular indisponibilidade do serviço.
    """
    return FakeCoordinationCache()


# =====================================================
# Filesystem
# =====================================================

@pytest.fixture
def write_config(tmp_path: Path):
    """
    Fixture que retorna um helper `write_config(relative_path, content)`.

    O helper cria diretórios intermediários e devolve o caminho absoluto
    do arquivo escrito.
    """

    def _write(relative_path: str, content: str) -> Path:
        path = tmp_path / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def server_config_xml() -> str:
    """
    XML de configuração base semelhante a uma configuração real de servidor.

    Contém:
        - valores escalares (`http_port`, `tcp_port`)
        - elementos repetidos com atributos (`listen_host`)
        - seção aninhada (`logger`)
    """
    return (
        "<clickhouse>"
        "<logger><level>information</level><size>1000M</size></logger>"
        "<http_port>8123</http_port>"
        "<tcp_port>9000</tcp_port>"
        '<listen_host kind="v4">127.0.0.1</listen_host>'
        '<listen_host kind="v6">::1</listen_host>'
        "</clickhouse>"
    )

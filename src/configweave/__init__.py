# src/configweave/__init__.py
"""
ConfigWeave: pré-processador de configuração de servidor.

Este pacote raiz define o namespace público do ConfigWeave, que constrói um
documento de configuração único, totalmente resolvido e reprodutível a
partir de um arquivo base, fragmentos de override descobertos por convenção
e substituições externas (serviço de coordenação, variáveis de ambiente e
documentos de include).

Arquitetura em alto nível:
    - core.tree       → modelo de árvore comum, codecs XML/YAML e hashing
    - core.config     → carregamento, descoberta de fragmentos e merge
    - core.includes   → resolução de diretivas `incl` / `from_zk` / `from_env`
    - core.processor  → pipeline completo e proveniência
    - persistence     → snapshot do último documento resolvido

Limites explícitos:
    - Não valida schema do documento resolvido
    - Não implementa cliente do serviço de coordenação
    - Não oferece acesso tipado aos valores da configuração
"""

from configweave.core.errors import ConfigError, CoordinationError
from configweave.core.includes import CoordinationCache
from configweave.core.processor import ConfigProcessor, LoadedConfig

__all__ = ["ConfigError", "CoordinationError", "CoordinationCache", "ConfigProcessor", "LoadedConfig"]

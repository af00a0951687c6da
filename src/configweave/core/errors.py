# src/configweave/core/errors.py
"""
Exceções canônicas do pré-processador de configuração do ConfigWeave.

Este módulo define a hierarquia oficial de exceções utilizadas durante o
carregamento, merge, resolução de includes e persistência de snapshots.

As exceções aqui definidas representam **violações explícitas** do
contrato de configuração, e não erros genéricos de execução.

Princípios fundamentais:
    - Exceções são tipadas e semânticas
    - Erros estruturais são tratados como falhas fatais
    - Falhas encapsuladas preservam a causa original (`__cause__`)

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - `CoordinationError` é o único tipo levantado por clientes externos
      do serviço de coordenação e NÃO herda de `ConfigError`

Limites explícitos:
    - Não decide política de fallback (responsabilidade do processor)
    - Não registra eventos
"""

from __future__ import annotations

from typing import Optional


class CoordinationError(Exception):
    """
    Erro levantado por um cliente do serviço de coordenação.

    Implementações de `CoordinationCache` devem levantar esta exceção
    (ou uma subclasse) quando o serviço está indisponível ou responde
    com erro. Um nó inexistente NÃO é erro: o cliente retorna `None`.
    """


class ConfigError(Exception):
    """
    Exceção base para erros relacionados ao pré-processamento de configuração.

    Todas as exceções levantadas durante load, merge e resolução de includes
    devem herdar desta classe, permitindo captura genérica pelo chamador.
    """


class ConfigFileMissingError(ConfigError):
    """
    O arquivo de configuração base não existe e não há configuração
    embutida correspondente ao seu nome.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    A extensão do arquivo não corresponde a nenhum formato suportado.

    Formatos suportados:
        - XML (.xml, .conf, sem extensão apenas para o arquivo base)
        - YAML (.yaml, .yml)
    """


class DocumentParseError(ConfigError):
    """O conteúdo de um documento não pôde ser convertido para a árvore comum."""


class NameMismatchError(ConfigError):
    """
    O elemento raiz de um fragmento não corresponde ao elemento raiz da
    configuração base (nem é sinônimo aceito dele).
    """


class MergeConflictError(ConfigError):
    """
    Um elemento do fragmento declara `remove` e `replace` simultaneamente.

    Decisões arquiteturais:
        - A combinação é ambígua e nunca é resolvida automaticamente
    """


class AmbiguousDirectiveError(ConfigError):
    """Um elemento declara mais de um atributo de diretiva (`incl`, `from_zk`, `from_env`)."""


class MalformedIncludeError(ConfigError):
    """Um elemento `<include>` possui filhos ou não declara exatamente uma diretiva."""


class UnresolvedReferenceError(ConfigError):
    """
    Uma diretiva não pôde ser resolvida em modo estrito.

    Atributos:
        directive: nome do atributo de diretiva (ex.: `from_env`)
        target: valor do atributo (caminho, chave ou nome de variável)
    """

    def __init__(self, message: str, *, directive: str, target: str):
        super().__init__(message)
        self.directive = directive
        self.target = target


class CoordinationFailureError(ConfigError):
    """
    Falha do serviço de coordenação durante a resolução de `from_zk`.

    Sempre encadeada (`__cause__`) ao `CoordinationError` original. É o único
    erro elegível ao fallback automático para o último snapshot.
    """

    def __init__(self, message: str, *, key: str):
        super().__init__(message)
        self.key = key


class FragmentMergeError(ConfigError):
    """
    Falha ao carregar ou mesclar um fragmento de override.

    Atributos:
        fragment_path: caminho do fragmento que falhou
        config_path: caminho da configuração base
    """

    def __init__(self, message: str, *, fragment_path: str, config_path: str):
        super().__init__(message)
        self.fragment_path = fragment_path
        self.config_path = config_path


class IncludeResolutionError(ConfigError):
    """Falha durante a fase de resolução de includes de uma configuração."""

    def __init__(self, message: str, *, config_path: str):
        super().__init__(message)
        self.config_path = config_path


class DynamicIncludesNotAllowedError(ConfigError):
    """A configuração referencia `from_zk`, mas includes dinâmicos não foram permitidos."""


def caused_by(exc: BaseException, error_type: type) -> Optional[BaseException]:
    """Percorre a cadeia `__cause__` e retorna o primeiro elo do tipo pedido."""
    current: Optional[BaseException] = exc
    seen = set()
    while current is not None and id(current) not in seen:
        if isinstance(current, error_type):
            return current
        seen.add(id(current))
        current = current.__cause__
    return None

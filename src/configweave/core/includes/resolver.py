# src/configweave/core/includes/resolver.py
"""
IncludeResolver: resolução de diretivas sobre a árvore mesclada.

Este módulo percorre a árvore de configuração resolvendo os atributos de
diretiva (`incl`, `from_zk`, `from_env`) contra fontes plugáveis e aplicando
a tabela de substituições literais sobre os nós de texto.

Política de resolução:
    - Um elemento declara no máximo uma diretiva
    - `<include>` deve ser vazio e declarar exatamente uma diretiva; quando
      resolvido, é substituído pelos filhos da fonte (splice)
    - Demais elementos recebem os filhos e os atributos da fonte; com
      `replace`, o conteúdo existente é descartado antes
    - Valores de coordenação e de ambiente são reparseados dentro de um
      elemento raiz sintético, então texto puro também é incluível
    - Fonte não encontrada, em ordem de prioridade:
        1. `optional` → o elemento é desanexado, sem erro
        2. modo estrito → `UnresolvedReferenceError`
        3. modo leniente → warning; `<include>` é desanexado, os demais
           elementos ficam intactos (com a diretiva)
    - Toda chave `from_zk` encontrada é registrada como contribuinte,
      resolvida ou não; sem cache de coordenação, o elemento fica intacto

Reentrância:
    - Após importar conteúdo para um elemento, a resolução é repetida sobre
      o mesmo elemento até não haver diretiva (includes encadeados)
    - Conteúdo inserido por splice de `<include>` é resolvido em seguida
    - A iteração de filhos usa um snapshot da lista, tolerando inserções e
      remoções feitas pela resolução de irmãos anteriores

Invariantes:
    - A árvore é mutada in-place
    - Todo conteúdo importado é cópia; a fonte nunca é referenciada pela árvore

Limites explícitos:
    - Não busca arquivos: o documento de include é fornecido pelo chamador
    - Não aguarda notificações de mudança: o sinal é repassado ao cache
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Set, Tuple

from configweave.core.config.loader import wrap_value
from configweave.core.config.merge import OPTIONAL_ATTR, REPLACE_ATTR
from configweave.core.context import ProcessingContext
from configweave.core.errors import (
    CoordinationError,
    CoordinationFailureError,
    MalformedIncludeError,
    UnresolvedReferenceError,
)
from configweave.core.tree import Document, Element, Node, Text

from .directives import Directive, directive_of
from .sources import CoordinationCache


INCLUDE_TAG = "include"

Substitution = Tuple[str, str]


class _Outcome(Enum):
    UNCHANGED = "unchanged"
    IMPORTED = "imported"
    DETACHED = "detached"


@dataclass(frozen=True)
class _Sources:
    include_source: Optional[Document]
    coordination_cache: Optional[CoordinationCache]
    change_signal: Any
    contributing_keys: Set[str]


class IncludeResolver:
    """
    Resolve diretivas de include sobre uma árvore (ou subárvore).

    Args:
        strict: Diretiva não encontrada (sem `optional`) é erro fatal.
        substitutions: Pares (padrão, substituição) aplicados aos textos.
        environ: Fonte de variáveis de ambiente (default: `os.environ`).
        context: Contexto onde warnings são registrados.
    """

    def __init__(
        self,
        *,
        strict: bool = True,
        substitutions: Sequence[Substitution] = (),
        environ: Optional[Mapping[str, str]] = None,
        context: Optional[ProcessingContext] = None,
    ):
        self.strict = strict
        self.substitutions = list(substitutions)
        self.environ = os.environ if environ is None else environ
        self.context = context if context is not None else ProcessingContext(config_path="")

        for pattern, _ in self.substitutions:
            if not isinstance(pattern, str) or not pattern:
                raise ValueError(f"Substitution pattern must be a non-empty string, got: {pattern!r}")

    def resolve_includes(
        self,
        node: Node,
        *,
        include_source: Optional[Document] = None,
        coordination_cache: Optional[CoordinationCache] = None,
        change_signal: Any = None,
        contributing_keys: Optional[Set[str]] = None,
    ) -> Set[str]:
        """
        Resolve todas as diretivas sob `node` (inclusive).

        Returns:
            Set[str]: O conjunto de chaves de coordenação referenciadas
            (o mesmo objeto de `contributing_keys`, quando fornecido).

        Raises:
            AmbiguousDirectiveError, MalformedIncludeError,
            UnresolvedReferenceError, CoordinationFailureError,
            DocumentParseError (valor externo inválido).
        """
        keys: Set[str] = set() if contributing_keys is None else contributing_keys
        sources = _Sources(
            include_source=include_source,
            coordination_cache=coordination_cache,
            change_signal=change_signal,
            contributing_keys=keys,
        )
        self._resolve(node, sources)
        return keys

    # ------------------------------------------------------------------
    # Travessia
    # ------------------------------------------------------------------
    def _resolve(self, node: Node, sources: _Sources) -> None:
        if isinstance(node, Text):
            self._substitute(node)
            return
        if not isinstance(node, Element):
            return

        outcome = self._resolve_directive(node, sources)
        while outcome is _Outcome.IMPORTED:
            outcome = self._resolve_directive(node, sources)

        if outcome is _Outcome.DETACHED:
            return

        for child in list(node.children):
            if child.parent is node:
                self._resolve(child, sources)

    def _substitute(self, text: Text) -> None:
        value = text.value
        for pattern, replacement in self.substitutions:
            # reinicia a busca do começo a cada troca; não pula o texto inserido
            position = value.find(pattern)
            while position != -1:
                value = value[:position] + replacement + value[position + len(pattern):]
                position = value.find(pattern)
        text.value = value

    # ------------------------------------------------------------------
    # Diretivas
    # ------------------------------------------------------------------
    def _resolve_directive(self, element: Element, sources: _Sources) -> _Outcome:
        directive = directive_of(element)

        if element.name == INCLUDE_TAG:
            if element.children:
                raise MalformedIncludeError("<include> element must have no children")
            if directive is None:
                raise MalformedIncludeError(
                    "No substitution attributes set for element <include>, must have exactly one"
                )

        if directive is None:
            return _Outcome.UNCHANGED

        target = element.attributes[directive.value]

        if directive is Directive.FROM_ZK:
            sources.contributing_keys.add(target)
            if sources.coordination_cache is None:
                return _Outcome.UNCHANGED

        found = self._lookup(directive, target, sources)
        if found is None:
            return self._not_found(element, directive, target)
        return self._import(element, found, sources)

    def _lookup(self, directive: Directive, target: str, sources: _Sources) -> Optional[Element]:
        if directive is Directive.INCL:
            if sources.include_source is None:
                return None
            return sources.include_source.root.find(target)

        if directive is Directive.FROM_ZK:
            try:
                value = sources.coordination_cache.get(target, sources.change_signal)
            except CoordinationError as e:
                raise CoordinationFailureError(
                    f"Could not get coordination node '{target}': {e}", key=target
                ) from e
            if value is None:
                return None
            return wrap_value(value, wrapper=Directive.FROM_ZK.value).root

        value = self.environ.get(target)
        if value is None:
            return None
        return wrap_value(value, wrapper=Directive.FROM_ENV.value).root

    def _not_found(self, element: Element, directive: Directive, target: str) -> _Outcome:
        message = directive.not_found_message + target

        if element.has_attribute(OPTIONAL_ATTR):
            element.detach()
            return _Outcome.DETACHED

        if self.strict:
            raise UnresolvedReferenceError(message, directive=directive.value, target=target)

        self.context.add_warning(message, directive=directive.value, target=target, element=element.name)

        if element.name == INCLUDE_TAG:
            element.detach()
            return _Outcome.DETACHED
        return _Outcome.UNCHANGED

    def _import(self, element: Element, source: Element, sources: _Sources) -> _Outcome:
        if element.name == INCLUDE_TAG:
            parent = element.parent
            inserted = [parent.insert_before(child.clone(), element) for child in source.children]
            parent.remove(element)
            for node in inserted:
                if node.parent is parent:
                    self._resolve(node, sources)
            return _Outcome.DETACHED

        for directive in Directive:
            element.remove_attribute(directive.value)

        if element.has_attribute(REPLACE_ATTR):
            element.clear()
            element.remove_attribute(REPLACE_ATTR)

        for child in source.children:
            element.append(child.clone())

        for name, value in source.attributes.items():
            element.set_attribute(name, value)

        return _Outcome.IMPORTED

# src/configweave/core/processor/processor.py
"""
Pipeline canônico de pré-processamento de configuração do ConfigWeave.

Este módulo orquestra a construção de um documento de configuração único,
totalmente resolvido e reprodutível, a partir de:
    - um arquivo base (ou configuração embutida, se o arquivo não existir)
    - fragmentos de override descobertos por convenção (`<nome>.d`, `conf.d`)
    - um documento de include (`include_from` ou caminho padrão)
    - serviço de coordenação (`from_zk`) e variáveis de ambiente (`from_env`)

Etapas:
    1. Carregar a base (formato pela extensão; sem extensão → XML)
    2. Mesclar os fragmentos em ordem de caminho
    3. Resolver a fonte de include (`include_from` tem suas próprias
       diretivas resolvidas antes de ser lido)
    4. Resolver diretivas sobre a árvore inteira
    5. Anotar proveniência (arquivos e chaves contribuintes)

Política de erros:
    - Falhas de fragmento são encapsuladas em `FragmentMergeError`
    - Falhas de resolução são encapsuladas em `IncludeResolutionError`
    - Falha do serviço de coordenação é o único caso recuperável: com opt-in
      e snapshot existente, o snapshot é carregado no lugar
    - Qualquer outro erro é propagado sem alteração

Concorrência:
    - Cada chamada constrói uma árvore e um contexto próprios
    - O único estado compartilhado entre chamadas é o caminho memorizado
      do snapshot (idempotente, protegido por lock)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, FrozenSet, List, Mapping, Optional, Sequence, Set, Tuple, Union

from configweave.core.config.discovery import discover_merge_files
from configweave.core.config.loader import load_document, load_embedded_document, EMBEDDED_CONFIGS
from configweave.core.config.merge import merge_documents
from configweave.core.context import DEBUG, INFO, ProcessingContext
from configweave.core.errors import (
    ConfigError,
    ConfigFileMissingError,
    CoordinationFailureError,
    DynamicIncludesNotAllowedError,
    FragmentMergeError,
    IncludeResolutionError,
    caused_by,
)
from configweave.core.includes import CoordinationCache, IncludeResolver
from configweave.core.tree import Document, compute_document_hash
from configweave.persistence.snapshot_store import SnapshotStore, is_preprocessed_file

from .provenance import add_provenance, restore_provenance_layout


DEFAULT_INCLUDE_PATH = "/etc/metrika.xml"
INCLUDE_FROM_TAG = "include_from"


@dataclass(frozen=True)
class LoadedConfig:
    """
    Resultado de uma carga de configuração.

    Campos canônicos:
    - document: árvore final resolvida (com comentário de proveniência)
    - has_dynamic_includes: a configuração referencia chaves de coordenação
    - loaded_from_fallback: o documento veio do último snapshot
    - config_path: arquivo base
    - contributing_files: arquivos contribuintes, na ordem de aplicação
    - contributing_keys: chaves de coordenação referenciadas
    - config_hash: SHA-256 canônico da árvore final
    - context: log estruturado da execução
    """

    document: Document
    has_dynamic_includes: bool
    loaded_from_fallback: bool
    config_path: str
    contributing_files: Tuple[str, ...] = ()
    contributing_keys: FrozenSet[str] = frozenset()
    config_hash: str = ""
    context: Optional[ProcessingContext] = field(default=None, repr=False, compare=False)


class ConfigProcessor:
    """Pipeline de pré-processamento para um arquivo de configuração base."""

    def __init__(
        self,
        path: Union[str, Path],
        *,
        strict_includes: bool = True,
        substitutions: Sequence[Tuple[str, str]] = (),
        main_config_path: Optional[Union[str, Path]] = None,
        preprocessed_dir: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
        default_include_path: Optional[str] = DEFAULT_INCLUDE_PATH,
        embedded_configs: Optional[Mapping[str, str]] = None,
    ):
        self.path = str(path)
        self.strict_includes = strict_includes
        self.substitutions = list(substitutions)
        self.environ = environ
        self.default_include_path = default_include_path
        self.embedded_configs = EMBEDDED_CONFIGS if embedded_configs is None else embedded_configs

        self.snapshots = SnapshotStore(
            config_path=self.path,
            main_config_path=main_config_path,
            preprocessed_dir=preprocessed_dir,
        )

        # valida a tabela de substituições já na construção
        self._new_resolver(ProcessingContext(config_path=self.path))

    # ------------------------------------------------------------------
    # API pública
    # ------------------------------------------------------------------
    def process_config(
        self,
        *,
        coordination_cache: Optional[CoordinationCache] = None,
        change_signal: Any = None,
    ) -> Tuple[Document, bool]:
        """Executa o pipeline e retorna (árvore resolvida, has_dynamic_includes)."""
        loaded = self._process(coordination_cache, change_signal)
        return loaded.document, loaded.has_dynamic_includes

    def load_config(self, *, allow_dynamic_includes: bool = True) -> LoadedConfig:
        """
        Carrega a configuração sem serviço de coordenação.

        Elementos `from_zk` permanecem intactos (resolução adiada), mas suas
        chaves são registradas.

        Raises:
            DynamicIncludesNotAllowedError: Se houver `from_zk` e
                `allow_dynamic_includes` for False.
        """
        loaded = self._process(None, None)
        if loaded.has_dynamic_includes and not allow_dynamic_includes:
            raise DynamicIncludesNotAllowedError(
                f"Error while loading config '{self.path}': from_zk includes are not allowed!"
            )
        return loaded

    def load_config_with_coordination(
        self,
        coordination_cache: CoordinationCache,
        change_signal: Any = None,
        *,
        fallback_to_snapshot: bool = True,
    ) -> LoadedConfig:
        """
        Carrega a configuração resolvendo `from_zk` pelo cache de coordenação.

        Se o processamento falhar por erro do serviço de coordenação, o
        fallback estiver habilitado e um snapshot desta configuração já
        tiver sido salvo, o snapshot é carregado e o resultado é marcado
        com `loaded_from_fallback=True`. Qualquer outra falha é propagada
        inalterada.
        """
        try:
            return self._process(coordination_cache, change_signal)
        except ConfigError as e:
            if not fallback_to_snapshot:
                raise
            failure = caused_by(e, CoordinationFailureError)
            if failure is None or not self.snapshots.exists():
                raise
            return self._load_snapshot(failure)

    def save_snapshot(
        self,
        loaded: LoadedConfig,
        *,
        preprocessed_dir: Optional[Union[str, Path]] = None,
    ) -> Optional[Path]:
        """Persiste a árvore resolvida como snapshot (best-effort)."""
        return self.snapshots.save(
            loaded.document,
            context=loaded.context,
            preprocessed_dir=preprocessed_dir,
        )

    @staticmethod
    def is_preprocessed_file(path: Union[str, Path]) -> bool:
        return is_preprocessed_file(path)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    def _new_resolver(self, ctx: ProcessingContext) -> IncludeResolver:
        return IncludeResolver(
            strict=self.strict_includes,
            substitutions=self.substitutions,
            environ=self.environ,
            context=ctx,
        )

    def _process(
        self,
        coordination_cache: Optional[CoordinationCache],
        change_signal: Any,
    ) -> LoadedConfig:
        ctx = ProcessingContext(config_path=self.path)
        ctx.log(level=DEBUG, message="Processing configuration file", path=self.path)

        document = self._load_base(ctx)
        contributing_files: List[str] = [self.path]

        for fragment in discover_merge_files(self.path):
            ctx.log(level=DEBUG, message="Merging configuration file", path=str(fragment))
            try:
                merge_documents(document, load_document(fragment))
            except ConfigError as e:
                raise FragmentMergeError(
                    f"Failed to merge config '{self.path}' with '{fragment}': {e}",
                    fragment_path=str(fragment),
                    config_path=self.path,
                ) from e
            contributing_files.append(str(fragment))

        keys: Set[str] = set()
        resolver = self._new_resolver(ctx)
        try:
            include_path = self._include_source_path(document, resolver, coordination_cache, change_signal, keys)
            include_source: Optional[Document] = None
            if include_path is not None:
                ctx.log(level=DEBUG, message="Including configuration file", path=include_path)
                contributing_files.append(include_path)
                include_source = load_document(include_path)

            resolver.resolve_includes(
                document.root,
                include_source=include_source,
                coordination_cache=coordination_cache,
                change_signal=change_signal,
                contributing_keys=keys,
            )
        except ConfigError as e:
            raise IncludeResolutionError(
                f"Failed to preprocess config '{self.path}': {e}",
                config_path=self.path,
            ) from e

        files = tuple(contributing_files)
        contributing_keys = frozenset(keys)
        add_provenance(document, files=files, keys=sorted(contributing_keys))

        config_hash = compute_document_hash(document)
        ctx.log(
            level=INFO,
            message="Configuration processed",
            files=list(files),
            keys=sorted(contributing_keys),
            config_hash=config_hash,
        )

        return LoadedConfig(
            document=document,
            has_dynamic_includes=bool(contributing_keys),
            loaded_from_fallback=False,
            config_path=self.path,
            contributing_files=files,
            contributing_keys=contributing_keys,
            config_hash=config_hash,
            context=ctx,
        )

    def _load_base(self, ctx: ProcessingContext) -> Document:
        if Path(self.path).exists():
            return load_document(self.path, allow_missing_extension=True)

        if self.path not in self.embedded_configs:
            raise ConfigFileMissingError(f"Configuration file {self.path} doesn't exist")

        document = load_embedded_document(self.path, embedded_configs=self.embedded_configs)
        if document is None:
            raise ConfigFileMissingError(
                f"Configuration file {self.path} doesn't exist and there is no embedded config"
            )

        ctx.log(level=DEBUG, message="There is no file, will use embedded config", path=self.path)
        return document

    def _include_source_path(
        self,
        document: Document,
        resolver: IncludeResolver,
        coordination_cache: Optional[CoordinationCache],
        change_signal: Any,
        keys: Set[str],
    ) -> Optional[str]:
        node = document.root.find(INCLUDE_FROM_TAG)

        if node is not None:
            # o próprio caminho pode vir de from_env / from_zk
            resolver.resolve_includes(
                node,
                coordination_cache=coordination_cache,
                change_signal=change_signal,
                contributing_keys=keys,
            )
            return node.text().strip() or None

        if self.default_include_path and Path(self.default_include_path).exists():
            return self.default_include_path
        return None

    def _load_snapshot(self, failure: BaseException) -> LoadedConfig:
        ctx = ProcessingContext(config_path=self.path)
        path = self.snapshots.snapshot_path
        cause = failure.__cause__ if failure.__cause__ is not None else failure
        ctx.add_warning(
            f"Error while processing from_zk config includes: {cause}. "
            f"Config will be loaded from preprocessed file: {path}",
            path=str(path),
        )

        document = self.snapshots.load()
        restore_provenance_layout(document)
        return LoadedConfig(
            document=document,
            # só há falha de coordenação quando a configuração usa from_zk
            has_dynamic_includes=True,
            loaded_from_fallback=True,
            config_path=self.path,
            config_hash=compute_document_hash(document),
            context=ctx,
        )

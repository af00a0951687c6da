"""Persistência do último snapshot resolvido da configuração.

O snapshot é a árvore final (já mesclada e com includes resolvidos)
serializada em XML. Ele serve de fallback quando uma recarga falha por erro
do serviço de coordenação.

Decisões:
- Formato: sempre XML (extensão `.xml`), mesmo para configurações YAML
- Caminho calculado uma única vez por store e memorizado; o cálculo é
  idempotente e protegido por lock
- Persistência é *best-effort*: falha de escrita vira warning, nunca erro

Convenção de nome:
- O caminho do arquivo base (sem o prefixo `main_config_path`) tem os
  separadores trocados por `_`
- Sem diretório fixado, usa `<path>/preprocessed_configs/` quando a
  configuração define `<path>`; senão, a pasta do próprio arquivo base com
  o sufixo `-preprocessed` antes da extensão
- Com diretório fixado, usa `<dir>/preprocessed_configs/`
"""

from __future__ import annotations

import os
import threading
from pathlib import Path, PurePath
from typing import Optional, Union

from configweave.core.config.loader import PRIMARY_EXTENSION
from configweave.core.context import DEBUG, ProcessingContext
from configweave.core.tree import Document, parse_xml_file, write_xml


PREPROCESSED_SUFFIX = "-preprocessed"
PREPROCESSED_DIR = "preprocessed_configs"
PATH_JOINER = "_"

PATH_SETTING = "path"


def is_preprocessed_file(path: Union[str, Path]) -> bool:
    """Reconhece um snapshot apenas pela convenção de nome."""
    return Path(path).stem.endswith(PREPROCESSED_SUFFIX)


class SnapshotStore:
    """Store do snapshot de uma configuração base."""

    def __init__(
        self,
        *,
        config_path: Union[str, Path],
        main_config_path: Optional[Union[str, Path]] = None,
        preprocessed_dir: Optional[Union[str, Path]] = None,
    ):
        self.config_path = str(config_path)
        self.main_config_path = None if main_config_path is None else str(main_config_path)
        self.preprocessed_dir = preprocessed_dir
        self._path: Optional[Path] = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    @property
    def snapshot_path(self) -> Optional[Path]:
        """Caminho memorizado, ou None se nenhum snapshot foi calculado ainda."""
        return self._path

    def resolve_path(
        self,
        document: Document,
        *,
        preprocessed_dir: Optional[Union[str, Path]] = None,
    ) -> Path:
        with self._lock:
            if self._path is None:
                self._path = self._compute_path(document, preprocessed_dir)
            return self._path

    def _flattened_name(self) -> str:
        name = self.config_path
        if self.main_config_path:
            prefix = self.main_config_path
            if not prefix.endswith("/"):
                prefix += "/"
            if name.startswith(prefix):
                name = name[len(prefix):]

        name = name.replace("/", PATH_JOINER)
        if os.sep != "/":
            name = name.replace(os.sep, PATH_JOINER)

        return str(PurePath(name).with_suffix(PRIMARY_EXTENSION))

    def _compute_path(
        self,
        document: Document,
        preprocessed_dir: Optional[Union[str, Path]],
    ) -> Path:
        name = self._flattened_name()
        directory = preprocessed_dir if preprocessed_dir is not None else self.preprocessed_dir

        if directory is not None:
            return Path(directory) / PREPROCESSED_DIR / name

        path_setting = _path_setting(document)
        if path_setting is not None:
            return Path(path_setting) / PREPROCESSED_DIR / name

        pure = PurePath(name)
        return Path(self.config_path).parent / f"{pure.stem}{PREPROCESSED_SUFFIX}{pure.suffix}"

    # ------------------------------------------------------------------
    # Persist / Load
    # ------------------------------------------------------------------
    def save(
        self,
        document: Document,
        *,
        context: Optional[ProcessingContext] = None,
        preprocessed_dir: Optional[Union[str, Path]] = None,
    ) -> Optional[Path]:
        """Salva o snapshot (best-effort).

        Returns:
            Optional[Path]: caminho escrito, ou None se a escrita falhou.
        """
        ctx = context if context is not None else ProcessingContext(config_path=self.config_path)

        path: Optional[Path] = None
        try:
            path = self.resolve_path(document, preprocessed_dir=preprocessed_dir)
            path.parent.mkdir(parents=True, exist_ok=True)
            write_xml(document, path)
        except OSError as e:
            ctx.add_warning(f"Couldn't save preprocessed config to {path}: {e}", path=str(path))
            return None

        ctx.log(level=DEBUG, message="Saved preprocessed configuration", path=str(path))
        return path

    def exists(self) -> bool:
        return self._path is not None and self._path.is_file()

    def load(self) -> Document:
        """Carrega o snapshot memorizado, sem reprocessar nada."""
        if self._path is None:
            raise FileNotFoundError("no snapshot path has been computed for this store")
        return parse_xml_file(self._path)


def _path_setting(document: Document) -> Optional[str]:
    element = document.root.find(PATH_SETTING)
    if element is None:
        return None
    value = element.text().strip()
    return value or None


__all__ = ["SnapshotStore", "is_preprocessed_file", "PREPROCESSED_SUFFIX", "PREPROCESSED_DIR"]

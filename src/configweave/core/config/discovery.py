# src/configweave/core/config/discovery.py
"""
Descoberta de fragmentos de override por convenção de nomes.

Para um arquivo base `dir/config.xml` são examinados dois diretórios irmãos:
    - `dir/config.d`
    - `dir/conf.d`

São candidatos os arquivos regulares com extensão de configuração
reconhecida (case-insensitive) cujo nome não começa com `.` (arquivos
temporários de editores). A lista final é ordenada pelo caminho completo.
"""

from pathlib import Path
from typing import List, Union

from .loader import CONFIG_EXTENSIONS


SHARED_MERGE_DIR = "conf.d"


def merge_dirs_for(config_path: Union[str, Path]) -> List[Path]:
    base = Path(config_path)
    dirs = {base.with_suffix(".d"), base.with_name(SHARED_MERGE_DIR)}
    return sorted(dirs, key=str)


def discover_merge_files(config_path: Union[str, Path]) -> List[Path]:
    files: List[Path] = []

    for merge_dir in merge_dirs_for(config_path):
        if not merge_dir.is_dir():
            continue

        for path in merge_dir.iterdir():
            if path.name.startswith("."):
                continue
            if path.suffix.lower() not in CONFIG_EXTENSIONS:
                continue
            if path.is_file():
                files.append(path)

    return sorted(files, key=str)

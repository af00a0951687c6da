# src/configweave/core/config/loader.py
"""
DocumentLoader canônico do ConfigWeave.

Este módulo é responsável por carregar arquivos de configuração (ou
recursos embutidos) de qualquer formato suportado para o modelo de árvore
comum.

Formatos suportados:
    - XML  (.xml, .conf; sem extensão apenas para o arquivo base)
    - YAML (.yaml, .yml)

Responsabilidades do módulo:
    - Determinar o formato a partir da extensão (case-insensitive)
    - Carregar arquivos do disco para `Document`
    - Carregar configurações embutidas no pacote quando o arquivo base
      não existe
    - Reparsear valores externos (coordenação, ambiente) envolvendo-os em
      um elemento raiz sintético

Invariantes:
    - O retorno é sempre um `Document` com exatamente um elemento raiz
    - Formatos desconhecidos geram erro explícito, nunca inferência

Limites explícitos:
    - Não realiza merge nem resolução de includes
    - Não descobre fragmentos de override
"""

from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from configweave.core.errors import UnsupportedConfigFormatError
from configweave.core.tree import Document, parse_xml, parse_xml_file, parse_yaml_file


class ConfigFormat(str, Enum):
    XML = "xml"
    YAML = "yaml"


XML_EXTENSIONS = frozenset({".xml", ".conf"})
YAML_EXTENSIONS = frozenset({".yaml", ".yml"})
CONFIG_EXTENSIONS = XML_EXTENSIONS | YAML_EXTENSIONS

PRIMARY_EXTENSION = ".xml"

# nome do arquivo base -> recurso embutido em configweave/embedded
EMBEDDED_CONFIGS: Dict[str, str] = {
    "config.xml": "embedded.xml",
    "keeper_config.xml": "keeper_embedded.xml",
}

EMBEDDED_PACKAGE = "configweave.embedded"


def detect_format(path: Union[str, Path], *, allow_missing_extension: bool = False) -> ConfigFormat:
    """
    Determina o formato de um arquivo de configuração pela extensão.

    Args:
        path: Caminho do arquivo.
        allow_missing_extension: Aceita arquivo sem extensão como XML
            (válido apenas para o arquivo base).

    Raises:
        UnsupportedConfigFormatError: Se a extensão não for reconhecida.
    """
    suffix = Path(path).suffix.lower()

    if suffix in YAML_EXTENSIONS:
        return ConfigFormat.YAML
    if suffix in XML_EXTENSIONS or (not suffix and allow_missing_extension):
        return ConfigFormat.XML

    raise UnsupportedConfigFormatError(f"Unknown format of '{path}' config")


def load_document(path: Union[str, Path], *, allow_missing_extension: bool = False) -> Document:
    """
    Carrega um arquivo de configuração do disco para a árvore comum.

    Raises:
        UnsupportedConfigFormatError: Se o formato não for suportado.
        DocumentParseError: Se o conteúdo for inválido ou ilegível.
    """
    file = Path(path)
    fmt = detect_format(file, allow_missing_extension=allow_missing_extension)

    if fmt is ConfigFormat.YAML:
        return parse_yaml_file(file)
    return parse_xml_file(file)


def load_embedded_document(
    config_path: str,
    *,
    embedded_configs: Optional[Mapping[str, str]] = None,
) -> Optional[Document]:
    """
    Retorna a configuração embutida correspondente ao nome do arquivo base.

    A correspondência é feita pelo caminho exatamente como informado
    (ex.: `config.xml`), não pelo nome resolvido no disco.

    Returns:
        Optional[Document]: `None` se não houver recurso para este nome
        ou se o recurso mapeado não existir no pacote.
    """
    mapping = EMBEDDED_CONFIGS if embedded_configs is None else embedded_configs
    resource_name = mapping.get(str(config_path))
    if not resource_name:
        return None

    resource = resources.files(EMBEDDED_PACKAGE).joinpath(resource_name)
    if not resource.is_file():
        return None

    return parse_xml(resource.read_bytes(), source=f"embedded:{resource_name}")


def wrap_value(value: str, *, wrapper: str) -> Document:
    """
    Reparseia um valor externo dentro de um elemento raiz sintético.

    Envolver o valor permite que texto puro (ex.: `8123`) e fragmentos XML
    (ex.: `<a/><b/>`) sejam tratados igualmente como conteúdo incluível.
    """
    return parse_xml(f"<{wrapper}>{value}</{wrapper}>", source=f"<{wrapper}>")

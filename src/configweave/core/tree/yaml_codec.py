# src/configweave/core/tree/yaml_codec.py
"""
Codec YAML do ConfigWeave (formato alternativo).

Converte um documento YAML para o mesmo modelo de árvore usado pelo XML,
de modo que fragmentos YAML e XML possam ser mesclados entre si.

Regras de conversão:
    - O elemento raiz é sempre `<clickhouse>`
    - Chave de mapping        → elemento filho
    - Chave iniciada por `@`  → atributo do elemento corrente
    - Chave `#text`           → nó Text do elemento corrente
    - Sequência sob uma chave → um elemento repetido por item
    - Escalar                 → texto (booleanos como `true`/`false`,
                                 `null` como elemento vazio)

Limites explícitos:
    - Não serializa de volta para YAML (snapshots são sempre XML)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml  # PyYAML

from configweave.core.errors import DocumentParseError

from .nodes import Document, Element, Text


YAML_ROOT_NAME = "clickhouse"


def parse_yaml(text: str, *, source: str = "<string>") -> Document:
    """
    Converte um documento YAML em `Document`.

    Raises:
        DocumentParseError: Se o YAML for inválido ou se o nível superior
            não for um mapping.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DocumentParseError(f"Cannot parse YAML from '{source}': {e}") from e

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise DocumentParseError(
            f"YAML config root must be a mapping in '{source}', got: {type(data).__name__}"
        )

    root = Element(name=YAML_ROOT_NAME)
    _fill(root, data, source)
    return Document(children=[root])


def parse_yaml_file(path: Path) -> Document:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentParseError(f"Cannot read '{path}': {e}") from e
    return parse_yaml(text, source=str(path))


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _fill(element: Element, mapping: dict, source: str) -> None:
    for raw_key, value in mapping.items():
        key = str(raw_key)

        if key.startswith("@"):
            if isinstance(value, (dict, list)):
                raise DocumentParseError(
                    f"Attribute '{key}' of <{element.name}> must be a scalar in '{source}'"
                )
            element.set_attribute(key[1:], "" if value is None else _scalar(value))
            continue

        if key == "#text":
            if value is not None:
                element.append(Text(_scalar(value)))
            continue

        items = value if isinstance(value, list) else [value]
        for item in items:
            element.append(_build(key, item, source))


def _build(name: str, value: Any, source: str) -> Element:
    child = Element(name=name)
    if isinstance(value, dict):
        _fill(child, value, source)
    elif isinstance(value, list):
        # sequência aninhada: cada item vira um novo <name> dentro deste
        for item in value:
            child.append(_build(name, item, source))
    elif value is not None:
        child.append(Text(_scalar(value)))
    return child

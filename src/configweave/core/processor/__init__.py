# src/configweave/core/processor/__init__.py
"""
Pipeline de pré-processamento do ConfigWeave.
"""

from .processor import DEFAULT_INCLUDE_PATH, INCLUDE_FROM_TAG, ConfigProcessor, LoadedConfig
from .provenance import GENERATED_NOTICE, add_provenance, provenance_comment, restore_provenance_layout

__all__ = [
    "DEFAULT_INCLUDE_PATH",
    "INCLUDE_FROM_TAG",
    "ConfigProcessor",
    "LoadedConfig",
    "GENERATED_NOTICE",
    "add_provenance",
    "provenance_comment",
    "restore_provenance_layout",
]

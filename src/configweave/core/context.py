# src/configweave/core/context.py
"""
ProcessingContext: log estruturado de uma execução do pré-processador.

Cada chamada do pipeline cria seu próprio contexto, que acumula:
- eventos estruturados (nível, mensagem, timestamp, campos extras)
- warnings não fatais (ex.: diretivas não resolvidas em modo leniente)

Princípios fundamentais:
- Isolamento por execução: nenhum contexto é compartilhado entre chamadas
- Diagnósticos são dados, não efeitos colaterais em stdout
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4


DEBUG = "DEBUG"
INFO = "INFO"
WARNING = "WARNING"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ProcessingContext:
    """
    Contexto de uma execução do pipeline de pré-processamento.

    Campos canônicos:
    - run_id: identificador único da execução
    - created_at: timestamp UTC de criação do contexto
    - config_path: arquivo base sendo processado
    - events: log estruturado de eventos
    - warnings: mensagens de warning na ordem em que ocorreram
    """

    config_path: str
    run_id: str = field(default_factory=lambda: uuid4().hex)
    created_at: str = field(default_factory=_now_iso)

    events: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def log(self, *, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "level": level,
            "message": message,
            "timestamp": _now_iso(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, message: str, **extra: Any) -> None:
        """Registra um warning e o evento WARNING correspondente."""
        self.warnings.append(message)
        self.log(level=WARNING, message=message, **extra)

    def events_at(self, level: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e["level"] == level]

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ConfigIssue:
    code: str
    message: str
    side: Optional[str] = None
    actor: Optional[str] = None
    entry_index: Optional[int] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def location(self) -> str:
        parts: list[str] = []
        if self.side is not None:
            parts.append(self.side)
        if self.actor is not None:
            parts.append(f"actor {self.actor!r}")
        if self.entry_index is not None:
            parts.append(f"apl[{self.entry_index}]")
        return " / ".join(parts)

    def as_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "side": self.side,
            "actor": self.actor,
            "entry_index": self.entry_index,
            "meta": self.meta,
        }


class ConfigurationError(ValueError):
    """
    Конфиг энкаунтера невалиден. Собираем ВСЕ проблемы сразу,
    чтобы пользователь поправил их за один проход.
    """

    def __init__(self, issues: List[ConfigIssue]):
        self.issues = list(issues)
        lines = []
        for issue in self.issues:
            loc = issue.location()
            lines.append(f"[{issue.code}] {loc}: {issue.message}" if loc else f"[{issue.code}] {issue.message}")
        super().__init__("Invalid encounter configuration:\n" + "\n".join(lines))


class DiceParseError(ValueError):
    def __init__(self, formula: str, reason: str = "expected NdM, NdM+K, NdM-K or an integer"):
        self.formula = formula
        self.reason = reason
        super().__init__(f"Unsupported dice formula {formula!r}: {reason}")


class EngineInvariantError(RuntimeError):
    """Баг движка (например, зона переполнена). Не пользовательская ошибка."""

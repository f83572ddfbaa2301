from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class AppError(Exception):
    """
    Унифицированная ошибка приложения.

    Поля:
        category: str
            Группа ошибки (usage/config/csv/api).
        code: str
            Машиночитаемый код.
        message: str
            Человекочитаемое описание.
        details: dict
            Диагностический контекст (без секретов).
    """

    category: str
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "code": self.code,
            "message": self.message,
            "details": self.details or {},
        }


__all__ = ["AppError"]

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping

RawRow = Dict[str, str]


@dataclass(frozen=True)
class NameRecord:
    """
    Назначение/ответственность:
        Нормализованная запись для set-names: имя, адрес и необязательные text_records.
    Инварианты/гарантии:
        - text_records не содержит ключей с пустыми значениями
          (API различает "нет ключа" и "пустая строка").
        - Неизменяема после построения.
    """

    name: str
    address: str
    text_records: Mapping[str, str] = field(default_factory=dict)
    line_no: int | None = field(default=None, compare=False)

    def to_payload(self) -> Dict[str, Any]:
        """Представление записи в теле запроса (без служебного line_no)."""
        return {
            "name": self.name,
            "address": self.address,
            "text_records": dict(self.text_records),
        }


@dataclass(frozen=True)
class ItemRejected:
    """
    Назначение:
        Отказ API по отдельной записи внутри успешно принятого пакета.
        Не фатален: логируется как предупреждение и попадает в отчёт.
    """

    batch_index: int
    name: str
    message: str


class RunState(str, Enum):
    """
    Назначение:
        Состояния одного запуска. Переходы только вперёд, без повторов.
    """

    IDLE = "idle"
    VALIDATING = "validating"
    READING = "reading"
    MAPPING = "mapping"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class UploadResult:
    """
    Назначение:
        Итог загрузки пакетов.
    """

    batches_total: int = 0
    batches_completed: int = 0
    records_sent: int = 0
    rejected: list[ItemRejected] = field(default_factory=list)
    dry_run: bool = False

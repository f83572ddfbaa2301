from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from namestone_sync.domain.models import RunState


@dataclass
class ReportMeta:
    """
    Назначение:
        Метаданные отчёта запуска команды.
    """

    run_id: str
    command: str
    started_at: str
    finished_at: str | None = None
    duration_ms: int | None = None
    state: str = RunState.IDLE.value
    csv_path: str | None = None
    dry_run: bool = False
    domain: str | None = None
    log_file: str | None = None
    report_dir: str | None = None
    config_sources: list[str] = field(default_factory=list)


@dataclass
class ReportSummary:
    """
    Назначение:
        Сводные счётчики запуска.
    """

    rows_total: int = 0
    records_mapped: int = 0
    records_missing_name: int = 0
    records_missing_address: int = 0
    batches_total: int = 0
    batches_completed: int = 0
    records_sent: int = 0
    items_rejected: int = 0


@dataclass
class Report:
    """
    Назначение:
        Корневой объект отчёта.

    Поля:
        meta: ReportMeta
        summary: ReportSummary
        items: list[dict]
            Отказы по записям, предупреждения валидации и фатальная ошибка (если была).
    """

    meta: ReportMeta
    summary: ReportSummary
    items: list[dict[str, Any]] = field(default_factory=list)

    def set_state(self, state: RunState) -> None:
        self.meta.state = state.value

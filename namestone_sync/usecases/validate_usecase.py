from __future__ import annotations

import logging

import typer

from namestone_sync.domain.models import NameRecord, RunState
from namestone_sync.domain.reporting.models import Report
from namestone_sync.domain.transform.mapper import mapProfileRow
from namestone_sync.errors import AppError
from namestone_sync.infra.logging.setup import logEvent
from namestone_sync.infra.sources.csv_reader import ProfileCsvSource, requireCsvFile
from namestone_sync.usecases.upload_usecase import EchoFn


def findMissingFields(record: NameRecord) -> list[str]:
    """Проверка наличия обязательных полей записи (name, address)."""
    missing = []
    if not record.name:
        missing.append("name")
    if not record.address:
        missing.append("address")
    return missing


class ValidateProfilesUseCase:
    """
    Назначение/ответственность:
        Локальная проверка CSV без обращения к API: чтение, маппинг
        и проверка наличия name/address. Пропуски — предупреждения, не ошибки.
    """

    def __init__(self, echo: EchoFn = typer.echo):
        self.echo = echo

    def run(self, csv_path: str, logger: logging.Logger, report: Report, run_id: str) -> int:
        report.meta.csv_path = csv_path
        try:
            report.set_state(RunState.VALIDATING)
            requireCsvFile(csv_path)

            report.set_state(RunState.READING)
            rows = list(ProfileCsvSource(csv_path))
        except AppError as exc:
            report.set_state(RunState.FAILED)
            report.items.append({"status": "FAILED", "error": exc.to_dict()})
            raise

        report.set_state(RunState.MAPPING)
        report.summary.rows_total = len(rows)
        warnings = 0
        for line_no, row in rows:
            record = mapProfileRow(row, line_no)
            report.summary.records_mapped += 1
            missing = findMissingFields(record)
            if "name" in missing:
                report.summary.records_missing_name += 1
            if "address" in missing:
                report.summary.records_missing_address += 1
            for field_name in missing:
                warnings += 1
                report.items.append({"status": "WARNING", "line_no": line_no, "field": field_name, "name": record.name})
                logEvent(logger, logging.WARNING, run_id, "validate", f"line={line_no} missing {field_name}")

        report.set_state(RunState.SUCCEEDED)
        self.echo(
            f"rows={report.summary.rows_total} missing_name={report.summary.records_missing_name} "
            f"missing_address={report.summary.records_missing_address} warnings={warnings}"
        )
        return 0

from __future__ import annotations

import logging
import time
from typing import Callable

import typer

from namestone_sync.common.sanitize import maskSecret
from namestone_sync.config.config import Settings, requireApiSettings
from namestone_sync.domain.exceptions import BatchUploadFailed
from namestone_sync.domain.models import NameRecord, RunState
from namestone_sync.domain.ports.api import NamesApiProtocol
from namestone_sync.domain.reporting.models import Report
from namestone_sync.domain.transform.batcher import chunkRecords
from namestone_sync.domain.transform.mapper import mapProfileRow
from namestone_sync.errors import AppError
from namestone_sync.infra.http.namestone_client import NamestoneApiClient
from namestone_sync.infra.logging.setup import logEvent
from namestone_sync.infra.sources.csv_reader import ProfileCsvSource, requireCsvFile
from namestone_sync.usecases.upload_usecase import EchoFn, UploadBatchesUseCase


def createApiClient(settings: Settings) -> NamestoneApiClient:
    """Строит HTTP-клиент set-names из настроек запуска."""
    return NamestoneApiClient(
        apiUrl=settings.api_url,
        apiKey=settings.api_key or "",
        authScheme=settings.auth_scheme,
        timeoutSeconds=settings.timeout_seconds,
    )


class ImportProfilesUseCase:
    """
    Назначение/ответственность:
        Оркестрация импорта: Validating -> Reading -> Mapping -> Uploading.
    Ограничения:
        - Строго последовательно, без повторов предыдущих стадий.
        - Фатальные ошибки (AppError) пробрасываются наверх; состояние FAILED
          фиксируется в отчёте до проброса.
        - CSV буферизуется целиком до начала загрузки: ошибка разбора
          прерывает запуск до отправки первого пакета.
    """

    def __init__(
        self,
        api_factory: Callable[[Settings], NamesApiProtocol] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        echo: EchoFn = typer.echo,
    ):
        self.api_factory = api_factory or createApiClient
        self.sleep = sleep
        self.echo = echo

    def run(
        self,
        csv_path: str,
        settings: Settings,
        dry_run: bool,
        logger: logging.Logger,
        report: Report,
        run_id: str,
    ) -> int:
        report.meta.csv_path = csv_path
        report.meta.dry_run = dry_run
        report.meta.domain = settings.domain
        try:
            self._run(csv_path, settings, dry_run, logger, report, run_id)
        except AppError as exc:
            report.set_state(RunState.FAILED)
            report.items.append({"status": "FAILED", "error": exc.to_dict()})
            raise
        report.set_state(RunState.SUCCEEDED)
        return 0

    def _run(
        self,
        csv_path: str,
        settings: Settings,
        dry_run: bool,
        logger: logging.Logger,
        report: Report,
        run_id: str,
    ) -> None:
        report.set_state(RunState.VALIDATING)
        requireApiSettings(settings)
        self.echo(f"Using domain: {settings.domain}")
        self.echo(f"API key loaded: {maskSecret(settings.api_key, keepPrefix=8)}")
        if dry_run:
            self.echo("DRY RUN MODE - No actual API calls will be made")
        requireCsvFile(csv_path)

        report.set_state(RunState.READING)
        self.echo(f"Reading CSV file: {csv_path}")
        rows = list(ProfileCsvSource(csv_path))
        report.summary.rows_total = len(rows)
        self.echo(f"Found {len(rows)} profiles to import")
        logEvent(logger, logging.INFO, run_id, "csv", f"CSV read: rows={len(rows)}")

        report.set_state(RunState.MAPPING)
        records: list[NameRecord] = [mapProfileRow(row, line_no) for line_no, row in rows]
        report.summary.records_mapped = len(records)
        report.summary.records_missing_name = sum(1 for r in records if not r.name)
        report.summary.records_missing_address = sum(1 for r in records if not r.address)
        batches = chunkRecords(records, settings.batch_size)
        report.summary.batches_total = len(batches)

        report.set_state(RunState.UPLOADING)
        api = None if dry_run else self.api_factory(settings)
        try:
            uploader = UploadBatchesUseCase(
                api=api,
                delay_seconds=settings.batch_delay_seconds,
                sleep=self.sleep,
                echo=self.echo,
            )
            result = uploader.upload(
                batches,
                domain=settings.domain or "",
                dry_run=dry_run,
                logger=logger,
                run_id=run_id,
            )
        except BatchUploadFailed as exc:
            report.summary.batches_completed = exc.batch_index - 1
            raise
        finally:
            close = getattr(api, "close", None)
            if callable(close):
                close()

        report.summary.batches_completed = result.batches_completed
        report.summary.records_sent = result.records_sent
        report.summary.items_rejected = len(result.rejected)
        for item in result.rejected:
            report.items.append(
                {
                    "status": "REJECTED",
                    "batch_index": item.batch_index,
                    "name": item.name,
                    "message": item.message,
                }
            )

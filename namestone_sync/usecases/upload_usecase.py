from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Sequence

import typer

from namestone_sync.common.sanitize import maskSecretsInObject, truncateText
from namestone_sync.domain.exceptions import BatchUploadFailed
from namestone_sync.domain.models import ItemRejected, NameRecord, UploadResult
from namestone_sync.domain.ports.api import NamesApiProtocol
from namestone_sync.infra.http.namestone_client import ApiError
from namestone_sync.infra.logging.setup import logEvent

EchoFn = Callable[..., None]


def extractItemErrors(response: Any, batch_index: int) -> list[ItemRejected]:
    """
    Назначение:
        Достаёт отказы по отдельным записям из тела ответа set-names.

    Поведение:
        - Ожидается dict с ключом errors: [{name, message}, ...].
        - Любая другая форма ответа — отказов нет.
    """
    if not isinstance(response, dict):
        return []
    errors = response.get("errors")
    if not isinstance(errors, list):
        return []
    rejected: list[ItemRejected] = []
    for entry in errors:
        if isinstance(entry, dict):
            name = str(entry.get("name") or "")
            message = str(entry.get("message") or "")
        else:
            name = ""
            message = str(entry)
        rejected.append(ItemRejected(batch_index=batch_index, name=name, message=message))
    return rejected


class UploadBatchesUseCase:
    """
    Назначение/ответственность:
        Последовательная отправка пакетов в реестр имён.
    Ограничения:
        - Пакеты не перекрываются во времени; ошибка всегда относится к одному пакету.
        - Ошибка пакета (не-2xx/сеть) прерывает загрузку: оставшиеся пакеты не отправляются.
        - Отказы по отдельным записям (errors[]) не фатальны.
        - Между пакетами пауза delay_seconds, после последнего — нет.
    """

    def __init__(
        self,
        api: NamesApiProtocol | None,
        delay_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        echo: EchoFn = typer.echo,
    ):
        self.api = api
        self.delay_seconds = delay_seconds
        self.sleep = sleep
        self.echo = echo

    def upload(
        self,
        batches: Sequence[Sequence[NameRecord]],
        domain: str,
        dry_run: bool,
        logger: logging.Logger,
        run_id: str,
    ) -> UploadResult:
        result = UploadResult(batches_total=len(batches), dry_run=dry_run)
        total_records = sum(len(batch) for batch in batches)
        self.echo(f"Processing {total_records} profiles in {len(batches)} batches...")

        for idx, batch in enumerate(batches, start=1):
            payload = [record.to_payload() for record in batch]
            self.echo(f"Processing batch {idx}/{len(batches)} ({len(batch)} profiles)...")

            if dry_run:
                self._report_dry_run(idx, payload, logger, run_id)
            else:
                if self.api is None:
                    raise ValueError("API client is not configured")
                response = self._send(idx, domain, payload, logger, run_id)
                self.echo(f"Batch {idx} completed successfully")
                logEvent(logger, logging.INFO, run_id, "upload", f"Batch {idx} accepted: size={len(batch)}")

                rejected = extractItemErrors(response, idx)
                if rejected:
                    self.echo("Some errors occurred:")
                    for item in rejected:
                        self.echo(f"  - {item.name}: {item.message}")
                        logEvent(
                            logger,
                            logging.WARNING,
                            run_id,
                            "upload",
                            f"Item rejected: batch={idx} name={item.name} message={item.message}",
                        )
                    result.rejected.extend(rejected)

            result.batches_completed += 1
            result.records_sent += len(batch)

            if idx < len(batches):
                self.sleep(self.delay_seconds)

        return result

    def _send(
        self,
        idx: int,
        domain: str,
        payload: list[dict[str, Any]],
        logger: logging.Logger,
        run_id: str,
    ) -> Any:
        try:
            return self.api.setNames(domain, payload)
        except ApiError as exc:
            detail = exc.details.get("response") or exc.body_snippet or exc.message
            detail_text = truncateText(
                json.dumps(maskSecretsInObject(detail), ensure_ascii=False) if not isinstance(detail, str) else detail
            )
            self.echo(f"Batch {idx} failed: {detail_text}", err=True)
            logEvent(
                logger,
                logging.ERROR,
                run_id,
                "upload",
                f"Batch {idx} failed: code={exc.code} status={exc.status_code} detail={detail_text}",
            )
            raise BatchUploadFailed(
                batch_index=idx,
                batch_size=len(payload),
                message=exc.message,
                status_code=exc.status_code,
                body_snippet=exc.body_snippet,
            ) from exc

    def _report_dry_run(
        self,
        idx: int,
        payload: list[dict[str, Any]],
        logger: logging.Logger,
        run_id: str,
    ) -> None:
        sample = json.dumps(payload[:1], ensure_ascii=False, indent=2)
        self.echo(f"DRY RUN: Batch {idx} ({len(payload)} profiles)")
        self.echo(f"Sample data: {sample}")
        logEvent(logger, logging.INFO, run_id, "upload", f"Dry run batch {idx}: size={len(payload)}")

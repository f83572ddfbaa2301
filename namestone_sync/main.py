from __future__ import annotations

import logging
import time

import typer

from namestone_sync.common.run_id import generate_run_id
from namestone_sync.common.sanitize import maskSecret
from namestone_sync.common.time import getDurationMs
from namestone_sync.config.config import Settings, load_settings
from namestone_sync.domain.exceptions import ConfigError, UsageError
from namestone_sync.errors import AppError
from namestone_sync.infra.artifacts.report_writer import createEmptyReport, finalizeReport, writeReportJson
from namestone_sync.infra.logging.setup import closeCommandLogger, createCommandLogger, logEvent, mapLogLevel, teeStdStreams
from namestone_sync.usecases.import_usecase import ImportProfilesUseCase
from namestone_sync.usecases.validate_usecase import ValidateProfilesUseCase

EXIT_FAILURE = 1

app = typer.Typer(no_args_is_help=True, add_completion=False)


def requireCsvArgument(commandName: str, csvPath: str | None) -> str:
    """
    Назначение:
        Проверяет, что путь к CSV передан в командной строке.

    Поведение:
        - Если аргумент не задан — печатает usage в stderr и завершает процесс с exit code 1.
          Ни лог, ни отчёт при этом не создаются.
    """
    if csvPath:
        return csvPath
    err = UsageError(f"missing CSV file argument for '{commandName}'")
    typer.echo(f"ERROR: {err.message}", err=True)
    typer.echo(f"Usage: namestone-sync {commandName} <csv-file> [--dry-run]", err=True)
    typer.echo(f"Example: namestone-sync {commandName} profiles.csv", err=True)
    typer.echo(f"Example (dry run): namestone-sync {commandName} profiles.csv --dry-run", err=True)
    typer.echo("Make sure to set NAMESTONE_DOMAIN and NAMESTONE_API_KEY (env or .env file)", err=True)
    raise typer.Exit(code=EXIT_FAILURE)


def printRunHeader(runId: str, command: str, settings: Settings, sources: list[str]) -> None:
    """
    Назначение:
        Печатает безопасную сводку параметров запуска (без секретов).
    """
    typer.echo(
        f"run_id={runId} command={command} "
        f"domain={settings.domain} api_key={maskSecret(settings.api_key)} "
        f"auth_scheme={settings.auth_scheme} batch_size={settings.batch_size} "
        f"sources={sources} log_level={settings.log_level}"
    )


def runWithReport(ctx: typer.Context, commandName: str, runner) -> None:
    """
    Назначение:
        Унифицированная обвязка выполнения команд:
        - создаёт логгер + файл лога
        - создаёт report.json skeleton
        - перенаправляет stdout/stderr в лог (tee)
        - переводит AppError в exit code 1 с кратким сообщением
        - гарантирует запись отчёта в finally

    Входные данные:
        ctx: typer.Context
        commandName: str
        runner: Callable[[logging.Logger, Report], int]
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    startMonotonic = time.monotonic()

    logger, logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
        secrets=[settings.api_key],
    )

    report = createEmptyReport(runId=runId, command=commandName, configSources=sources)

    exitCode = EXIT_FAILURE

    try:
        with teeStdStreams(logger):
            try:
                logEvent(logger, logging.INFO, runId, "core", "Command started")
                printRunHeader(runId, commandName, settings, sources)
                try:
                    exitCode = runner(logger, report)
                except AppError as exc:
                    logEvent(logger, logging.ERROR, runId, exc.category, f"{exc.code}: {exc.message}")
                    typer.echo(f"ERROR: {commandName} failed: {exc.message}", err=True)
                    exitCode = EXIT_FAILURE
            finally:
                durationMs = getDurationMs(startMonotonic, time.monotonic())
                finalizeReport(
                    report=report,
                    durationMs=durationMs,
                    logFile=logFilePath,
                    reportDir=settings.report_dir,
                )
                reportPath = writeReportJson(report, settings.report_dir, f"report_{commandName}_{runId}")
                logEvent(logger, logging.INFO, runId, "report", f"Report written: {reportPath}")
    finally:
        closeCommandLogger(logger)

    raise typer.Exit(code=exitCode)


def runImportCommand(ctx: typer.Context, csvPath: str, dryRun: bool) -> None:
    settings: Settings = ctx.obj["settings"]
    runId = ctx.obj["runId"]
    usecase = ImportProfilesUseCase()

    def execute(logger, report) -> int:
        code = usecase.run(
            csv_path=csvPath,
            settings=settings,
            dry_run=dryRun,
            logger=logger,
            report=report,
            run_id=runId,
        )
        if dryRun:
            typer.echo("DRY RUN completed - no changes were made")
        else:
            typer.echo("Import completed successfully!")
        return code

    runWithReport(ctx=ctx, commandName="import", runner=execute)


def runValidateCommand(ctx: typer.Context, csvPath: str) -> None:
    runId = ctx.obj["runId"]

    def execute(logger, report) -> int:
        return ValidateProfilesUseCase().run(csv_path=csvPath, logger=logger, report=report, run_id=runId)

    runWithReport(ctx=ctx, commandName="validate", runner=execute)


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    envFile: str | None = typer.Option(None, "--env-file", help="Path to .env file (default: ./.env if present)"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier (UUID). If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    reportDir: str | None = typer.Option(None, "--report-dir", help="Directory for reports."),
    domain: str | None = typer.Option(None, "--domain", help="Registry domain (overrides NAMESTONE_DOMAIN)"),
    apiKey: str | None = typer.Option(None, "--api-key", help="API key (avoid; use env/.env)"),
    apiUrl: str | None = typer.Option(None, "--api-url", help="set-names endpoint URL"),
    authScheme: str | None = typer.Option(None, "--auth-scheme", help="Authorization header format: raw|bearer"),
    batchSize: int | None = typer.Option(None, "--batch-size", help="Records per request"),
    batchDelaySeconds: float | None = typer.Option(None, "--batch-delay-seconds", help="Pause between batches"),
    timeoutSeconds: float | None = typer.Option(None, "--timeout-seconds", help="API timeout in seconds"),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV/.env > config > defaults)
        - сохраняет всё в ctx.obj для подкоманд

    Поведение:
        - Некорректный config/значение настройки — exit code 1.
        - Отсутствие domain/api_key здесь не проверяется: это делает import.
    """
    if not runId:
        runId = generate_run_id()

    cliOverrides = {
        "domain": domain,
        "api_key": apiKey,
        "api_url": apiUrl,
        "auth_scheme": authScheme,
        "batch_size": batchSize,
        "batch_delay_seconds": batchDelaySeconds,
        "timeout_seconds": timeoutSeconds,
        "log_level": logLevel,
        "log_dir": logDir,
        "report_dir": reportDir,
    }
    try:
        loaded = load_settings(config_path=config, cli_overrides=cliOverrides, dotenv_path=envFile)
        mapLogLevel(loaded.settings.log_level)
    except (ConfigError, ValueError) as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_FAILURE)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
    }


@app.command("import")
def importProfiles(
    ctx: typer.Context,
    csvFile: str | None = typer.Argument(None, help="Path to profiles CSV"),
    dryRun: bool = typer.Option(False, "--dry-run/--no-dry-run", help="Do not send API requests"),
):
    """Import profiles from CSV into the name registry."""
    csvPath = requireCsvArgument("import", csvFile)
    runImportCommand(ctx, csvPath, dryRun)


@app.command("validate")
def validate(
    ctx: typer.Context,
    csvFile: str | None = typer.Argument(None, help="Path to profiles CSV"),
):
    """Read and map CSV locally; report rows without name or address."""
    csvPath = requireCsvArgument("validate", csvFile)
    runValidateCommand(ctx, csvPath)

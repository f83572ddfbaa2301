from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, TextIO

from namestone_sync.common.sanitize import maskSecret

LOG_FORMAT = "%(asctime)s %(levelname)s runId=%(runId)s cmd=%(command)s comp=%(component)s msg=%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

LOG_LEVELS: dict[str, int] = {
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


class CommandContextFilter(logging.Filter):
    """
    Назначение:
        Проставляет в LogRecord поля runId/command/component (если их не передали в extra)
        и вырезает секреты из текста сообщения.

    Инварианты:
        - Значение API key никогда не попадает в файл лога, даже если оно оказалось
          в stdout (tee) или в теле ответа API.
    """

    def __init__(self, runId: str, command: str, secrets: Iterable[str | None] = (), defaultComponent: str = "core"):
        super().__init__()
        self.runId = runId
        self.command = command
        self.defaultComponent = defaultComponent
        # короткие значения не вырезаем: слишком много ложных совпадений
        self.secrets = [s for s in secrets if s and len(s) >= 4]

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "runId"):
            record.runId = self.runId
        if not hasattr(record, "component"):
            record.component = self.defaultComponent
        record.command = self.command

        if self.secrets:
            message = record.getMessage()
            redacted = message
            for secret in self.secrets:
                redacted = redacted.replace(secret, maskSecret(secret) or "")
            if redacted != message:
                record.msg = redacted
                record.args = None
        return True


class LoggedStream:
    """
    Назначение:
        Замена sys.stdout/sys.stderr на время команды: текст уходит в исходный поток
        без изменений и построчно — в лог команды.
    """

    def __init__(self, primary: TextIO, logger: logging.Logger, level: int, component: str):
        self.primary = primary
        self.logger = logger
        self.level = level
        self.component = component
        self.pending = ""

    def write(self, s: str) -> int:
        written = self.primary.write(s)
        self.pending += s
        while "\n" in self.pending:
            line, self.pending = self.pending.split("\n", 1)
            self._emit(line)
        return written

    def flush(self) -> None:
        self.primary.flush()
        if self.pending:
            self._emit(self.pending)
            self.pending = ""

    def isatty(self) -> bool:
        isatty = getattr(self.primary, "isatty", None)
        return bool(isatty()) if callable(isatty) else False

    def _emit(self, line: str) -> None:
        if line.strip():
            self.logger.log(self.level, line.rstrip(), extra={"component": self.component})


@contextmanager
def teeStdStreams(logger: logging.Logger) -> Iterator[None]:
    """
    Назначение:
        На время блока дублирует stdout (INFO) и stderr (ERROR) в лог команды.
        Исходные потоки восстанавливаются всегда, в том числе при исключении.
    """
    originalStdout, originalStderr = sys.stdout, sys.stderr
    sys.stdout = LoggedStream(originalStdout, logger, logging.INFO, "stdout")
    sys.stderr = LoggedStream(originalStderr, logger, logging.ERROR, "stderr")
    try:
        yield
    finally:
        sys.stdout.flush()
        sys.stderr.flush()
        sys.stdout, sys.stderr = originalStdout, originalStderr


def mapLogLevel(levelName: str) -> int:
    """ERROR|WARN|INFO|DEBUG (WARNING — синоним WARN) -> logging level; иначе ValueError."""
    level = LOG_LEVELS.get((levelName or "").strip().upper())
    if level is None:
        raise ValueError(f"Unsupported log level: {levelName}")
    return level


def createCommandLogger(
    commandName: str,
    logDir: str,
    runId: str,
    logLevel: str,
    secrets: Iterable[str | None] = (),
) -> tuple[logging.Logger, str]:
    """
    Назначение:
        Создаёт изолированный логгер команды с файлом {logDir}/{command}_{runId}.log.

    Входные данные:
        secrets: Iterable[str | None]
            Значения, которые нужно вырезать из всех записей (обычно API key).

    Выходные данные:
        (logger, logFilePath)
    """
    Path(logDir).mkdir(parents=True, exist_ok=True)
    logFilePath = str(Path(logDir) / f"{commandName}_{runId}.log")

    logger = logging.getLogger(f"namestoneSync.{commandName}.{runId}")
    logger.handlers.clear()
    logger.propagate = False
    level = mapLogLevel(logLevel)
    logger.setLevel(level)

    fileHandler = logging.FileHandler(logFilePath, encoding="utf-8")
    fileHandler.setLevel(level)
    fileHandler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    fileHandler.addFilter(CommandContextFilter(runId=runId, command=commandName, secrets=secrets))
    logger.addHandler(fileHandler)

    return logger, logFilePath


def closeCommandLogger(logger: logging.Logger) -> None:
    """Закрывает файловые хендлеры логгера команды (освобождает файл лога)."""
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def logEvent(logger: logging.Logger, level: int, runId: str, component: str, message: str) -> None:
    logger.log(level, message, extra={"runId": runId, "component": component})

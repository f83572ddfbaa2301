from __future__ import annotations

from namestone_sync.errors import AppError


class UsageError(AppError):
    def __init__(self, message: str):
        """
        Назначение:
            Неверный вызов CLI (например, не передан путь к CSV).
        """
        super().__init__(category="usage", code="USAGE_ERROR", message=message)


class ConfigError(AppError):
    def __init__(self, message: str, missing: list[str] | None = None):
        """
        Назначение:
            Отсутствуют или некорректны настройки запуска.
        Контракт:
            - missing: список имён отсутствующих настроек (если применимо).
        """
        super().__init__(
            category="config",
            code="CONFIG_ERROR",
            message=message,
            details={"missing": missing} if missing else {},
        )
        self.missing = missing or []


class BatchUploadFailed(AppError):
    def __init__(
        self,
        batch_index: int,
        batch_size: int,
        message: str,
        status_code: int | None = None,
        body_snippet: str | None = None,
    ):
        """
        Назначение:
            Пакет целиком отклонён (не-2xx ответ или сетевая ошибка).
        Инварианты/гарантии:
            - batch_index 1-based, указывает на единственный пакет "в полёте".
            - Оставшиеся пакеты после этой ошибки не отправляются.
        """
        super().__init__(
            category="api",
            code=f"HTTP_{status_code}" if status_code else "BATCH_UPLOAD_FAILED",
            message=f"Batch {batch_index} failed: {message}",
            details={
                "batch_index": batch_index,
                "batch_size": batch_size,
                "status_code": status_code,
                "body_snippet": body_snippet,
            },
        )
        self.batch_index = batch_index
        self.status_code = status_code
        self.body_snippet = body_snippet


__all__ = ["UsageError", "ConfigError", "BatchUploadFailed"]

from __future__ import annotations

from namestone_sync.errors import AppError


class CsvFileNotFoundError(AppError):
    def __init__(self, path: str):
        """
        Назначение:
            Входной CSV отсутствует или не является файлом.
        """
        super().__init__(
            category="csv",
            code="CSV_NOT_FOUND",
            message=f"CSV file '{path}' not found",
            details={"path": path},
        )
        self.path = path


class CsvFormatError(AppError):
    def __init__(self, message: str, line_no: int | None = None):
        """
        Назначение:
            Ошибка критического формата CSV (битые кавычки, лишние колонки и т.п.).
        """
        super().__init__(
            category="csv",
            code="CSV_FORMAT_ERROR",
            message=message,
            details={"line_no": line_no} if line_no is not None else {},
        )
        self.line_no = line_no


def cleanHeader(name: str | None) -> str:
    """
    Назначение:
        Убирает BOM из имени колонки (файл сохранён с двойным BOM или в кодировке,
        где utf-8-sig его не снял). Остальные символы не трогаются.
    """
    if name is None:
        return ""
    return name.replace("\ufeff", "")

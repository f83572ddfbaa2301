from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterator

from namestone_sync.domain.models import RawRow
from namestone_sync.infra.sources.csv_utils import CsvFileNotFoundError, CsvFormatError, cleanHeader


def requireCsvFile(csvPath: str) -> Path:
    """
    Назначение:
        Проверяет, что CSV существует и является файлом, до начала чтения.

    Выходные данные:
        Path

    Ошибки:
        CsvFileNotFoundError
    """
    p = Path(csvPath)
    if not p.exists() or not p.is_file():
        raise CsvFileNotFoundError(csvPath)
    return p


class ProfileCsvSource:
    """
    Назначение/ответственность:
        Потоковый источник строк CSV с заголовком. Каждая строка отдаётся как
        (line_no, RawRow), где ключи — имена колонок из заголовка.
    Ограничения:
        - Разделитель ','; кодировка utf-8-sig (BOM в первом заголовке снимается).
        - Пустые строки пропускаются.
        - Строка с числом ячеек больше, чем колонок в заголовке, — CsvFormatError.
        - Недостающие ячейки дополняются пустой строкой.
        - Байты не в UTF-8 — CsvFormatError.
    """

    def __init__(self, path: str, delimiter: str = ","):
        self.path = path
        self.delimiter = delimiter

    def __iter__(self) -> Iterator[tuple[int, RawRow]]:
        requireCsvFile(self.path)
        with open(self.path, "r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f, delimiter=self.delimiter, strict=True)
            try:
                fieldnames = reader.fieldnames
                if not fieldnames:
                    raise CsvFormatError("Missing header in source CSV", line_no=1)
                reader.fieldnames = [cleanHeader(name) for name in fieldnames]

                for row in reader:
                    csv_line_no = reader.line_num
                    if None in row:
                        extra = row.get(None) or []
                        got = len(reader.fieldnames) + len(extra)
                        raise CsvFormatError(
                            f"Invalid column count at line {csv_line_no}: expected {len(reader.fieldnames)}, got {got}",
                            line_no=csv_line_no,
                        )
                    values: RawRow = {key: (value if value is not None else "") for key, value in row.items()}
                    yield csv_line_no, values
            except csv.Error as exc:
                raise CsvFormatError(f"Malformed CSV at line {reader.line_num}: {exc}", line_no=reader.line_num) from exc
            except UnicodeDecodeError as exc:
                # декодер читает блоками: известна только последняя прочитанная строка
                raise CsvFormatError(
                    f"Invalid encoding in source CSV after line {reader.line_num}: {exc}",
                    line_no=reader.line_num,
                ) from exc


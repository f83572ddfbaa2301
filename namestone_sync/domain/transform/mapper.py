from __future__ import annotations

from typing import Mapping

from namestone_sync.domain.models import NameRecord, RawRow

ADDRESS_COLUMN = "ethereumAddress"
ADDRESS_FALLBACK_SUBSTRING = "address"

# Колонка CSV -> ключ text_records.
TEXT_RECORD_SOURCES: tuple[tuple[str, str], ...] = (
    ("profile_name", "display.name"),
    ("description", "description"),
    ("avatar", "avatar"),
    ("profile_created", "created"),
)


def findAddressValue(row: Mapping[str, str | None]) -> str:
    """
    Назначение:
        Находит адрес в строке CSV.

    Алгоритм:
        1. Если колонка ethereumAddress есть в строке, используется её значение
           (пустое значение остаётся пустым, подбор по подстроке не выполняется).
        2. Иначе — первая по порядку колонка, имя которой без учёта регистра
           содержит подстроку "address" (покрывает " Address", BOM в заголовке и т.п.).
        3. Иначе — пустая строка.
    """
    if ADDRESS_COLUMN in row:
        return row[ADDRESS_COLUMN] or ""

    for key, value in row.items():
        if key and ADDRESS_FALLBACK_SUBSTRING in key.lower():
            return value or ""
    return ""


def buildTextRecords(row: Mapping[str, str | None]) -> dict[str, str]:
    """Собирает text_records, пропуская пустые значения."""
    records: dict[str, str] = {}
    for column, key in TEXT_RECORD_SOURCES:
        value = row.get(column)
        if value:
            records[key] = value
    return records


def mapProfileRow(row: RawRow, line_no: int | None = None) -> NameRecord:
    """
    Назначение:
        Преобразует сырую строку CSV в NameRecord.

    Входные данные:
        row: RawRow
            Колонка -> значение.
        line_no: int | None
            Номер строки в CSV (для диагностики, в payload не попадает).

    Выходные данные:
        NameRecord

    Гарантии:
        Никогда не бросает исключений: отсутствующие поля превращаются
        в пустую строку (name/address) или не попадают в text_records.
        Формат адреса и уникальность имени не проверяются — это делает API.
    """
    return NameRecord(
        name=row.get("username") or "",
        address=findAddressValue(row),
        text_records=buildTextRecords(row),
        line_no=line_no,
    )

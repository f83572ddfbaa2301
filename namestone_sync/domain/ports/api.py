from __future__ import annotations

from typing import Any, Protocol, Sequence


class NamesApiProtocol(Protocol):
    """
    Назначение/ответственность:
        Порт записи имён в реестр. Use-case зависит только от протокола,
        реализации инкапсулируют HTTP.
    Ограничения:
        Синхронное выполнение, один пакет за вызов, без ретраев.
    """

    def setNames(self, domain: str, names: Sequence[dict[str, Any]]) -> Any:
        """
        Контракт (вход/выход):
            - Вход: домен и список payload-ов записей.
            - Выход: тело ответа (dict с необязательным errors[]).
        Ошибки/исключения:
            ApiError при не-2xx ответе или транспортной ошибке.
        """
        ...

from __future__ import annotations

from typing import Any, Sequence

import httpx

from namestone_sync.errors import AppError


class ApiError(AppError):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body_snippet: str | None = None,
        details: dict | None = None,
        code: str | None = None,
    ):
        """
        Назначение:
            Исключение для ошибок HTTP/API уровня NamestoneApiClient.
        Контракт:
            - code: строковый код (HTTP_*, NETWORK_ERROR).
            - status_code/body_snippet используются для диагностики.
        """
        super().__init__(
            category="api",
            code=code or (f"HTTP_{status_code}" if status_code else "API_ERROR"),
            message=message,
            details=details or {},
        )
        self.status_code = status_code
        self.body_snippet = body_snippet


def buildAuthorizationHeader(apiKey: str, authScheme: str = "raw") -> str:
    """
    Назначение:
        Значение заголовка Authorization.

    Поведение:
        - raw: ключ как есть (так его принимает публичный set-names).
        - bearer: "Bearer <key>".
    """
    if authScheme == "raw":
        return apiKey
    if authScheme == "bearer":
        return f"Bearer {apiKey}"
    raise ValueError(f"Unsupported auth scheme: {authScheme}")


class NamestoneApiClient:
    def __init__(
        self,
        apiUrl: str,
        apiKey: str,
        authScheme: str = "raw",
        timeoutSeconds: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Назначение:
            Клиент set-names API. Один POST на пакет, без ретраев:
            любая сетевая ошибка или не-2xx ответ — ApiError.
        """
        self.apiUrl = apiUrl
        self.authScheme = authScheme
        self._authorization = buildAuthorizationHeader(apiKey, authScheme)
        self.client = httpx.Client(timeout=timeoutSeconds, transport=transport)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "NamestoneApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": self._authorization,
            "Content-Type": "application/json",
            "accept": "application/json",
        }

    def setNames(self, domain: str, names: Sequence[dict[str, Any]]) -> Any:
        """
        Назначение:
            Отправляет пакет записей: POST {domain, names}.

        Выходные данные:
            Разобранный JSON ответа; текст, если тело не JSON; None для пустого тела.

        Ошибки:
            ApiError(NETWORK_ERROR) — транспортная ошибка/таймаут.
            ApiError(HTTP_<status>) — ответ вне 2xx.
        """
        body = {"domain": domain, "names": list(names)}
        try:
            resp = self.client.post(self.apiUrl, json=body, headers=self._headers())
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            raise ApiError(f"Network error: {exc}", status_code=None, code="NETWORK_ERROR") from exc

        body_snippet = resp.text[:200] if resp.text else None
        if not resp.is_success:
            details: dict[str, Any] = {"body_snippet": body_snippet}
            try:
                details["response"] = resp.json() if resp.text else None
            except ValueError:
                details["response"] = None
            raise ApiError(
                f"HTTP {resp.status_code}",
                status_code=resp.status_code,
                body_snippet=body_snippet,
                details=details,
            )

        if not resp.text:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

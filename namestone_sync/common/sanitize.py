def maskSecret(value: str | None, keepPrefix: int = 0) -> str | None:
    """
    Назначение:
        Маскирует секреты для безопасного вывода в stdout/logs.

    Входные данные:
        value: str | None
            Исходное значение (например, API key).
        keepPrefix: int
            Сколько первых символов оставить видимыми (для опознания ключа).
            Префикс показывается только если ключ заметно длиннее него.

    Выходные данные:
        str | None
            None, если значение отсутствует; иначе '***' или '<prefix>...'.
    """
    if value is None:
        return None
    if keepPrefix > 0 and len(value) > keepPrefix * 2:
        return value[:keepPrefix] + "..."
    return "***"


def truncateText(value: str | None, limit: int = 500) -> str | None:
    """
    Назначение:
        Ограничивает длину текста, чтобы избежать раздувания логов/отчётов.
    """
    if value is None:
        return None
    if len(value) <= limit:
        return value
    suffix = "..." if limit > 3 else ""
    head = limit - len(suffix)
    return value[:head] + suffix


def maskSecretsInObject(
    obj: object,
    sensitive_keys: tuple[str, ...] = (
        "password",
        "token",
        "authorization",
        "api_key",
        "apikey",
        "secret",
    ),
) -> object:
    """
    Назначение:
        Рекурсивно маскирует значения по заданным ключам в структурах dict/list.
    """
    sensitive = {key.lower() for key in sensitive_keys}
    if isinstance(obj, dict):
        masked: dict[str, object] = {}
        for k, v in obj.items():
            if str(k).lower() in sensitive:
                masked[k] = maskSecret(str(v) if v is not None else None)
            else:
                masked[k] = maskSecretsInObject(v, sensitive_keys)
        return masked
    if isinstance(obj, list):
        return [maskSecretsInObject(item, sensitive_keys) for item in obj]
    return obj

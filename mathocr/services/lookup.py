"""
Поиск первого непустого поля в ответе внешнего сервиса.

Сервис возвращает один и тот же смысл под разными ключами, поэтому
для каждого случая задан упорядоченный список путей. Путь с точкой
("data.value") означает вложенный ключ. Побеждает первое значение,
которое не None и не пустая строка.
"""

from typing import Any, Iterable, Optional

# Идентификатор задачи в ответе на загрузку
JOB_ID_FIELDS = ("job_id", "id", "pdf_id")

# Итоговая разметка в ответе со статусом completed
RESULT_FIELDS = ("data.value", "markdown", "html", "text")

# Текст ошибки в ответе прокси или сервиса
ERROR_FIELDS = ("detail.message", "error", "message")

_MISSING = object()


def _resolve(payload: Any, path: str) -> Any:
    current = payload
    for key in path.split("."):
        if not isinstance(current, dict):
            return _MISSING
        current = current.get(key, _MISSING)
        if current is _MISSING:
            return _MISSING
    return current


def first_present(payload: Any, paths: Iterable[str]) -> Optional[Any]:
    """
    Возвращает значение первого непустого пути из paths.

    Args:
        payload: разобранный JSON ответа (не dict -> всегда None)
        paths: пути в порядке приоритета

    Returns:
        Найденное значение или None
    """
    for path in paths:
        value = _resolve(payload, path)
        if value is _MISSING or value is None or value == "":
            continue
        return value
    return None


def find_job_id(payload: Any) -> Optional[str]:
    value = first_present(payload, JOB_ID_FIELDS)
    return None if value is None else str(value)


def find_result(payload: Any) -> Optional[str]:
    value = first_present(payload, RESULT_FIELDS)
    return None if value is None else str(value)


def find_error(payload: Any) -> Optional[str]:
    value = first_present(payload, ERROR_FIELDS)
    return None if value is None else str(value)

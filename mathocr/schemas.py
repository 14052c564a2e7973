"""
Схемы данных Math OCR.

Включает:
    - Состояния клиентского поллера (JobState)
    - Модель задачи конвертации (ConversionJob)
    - Pydantic модель запроса на рендеринг
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# Статусы, после которых опрос прекращается
TERMINAL_SUCCESS = "completed"
TERMINAL_FAILURES = frozenset({"error", "failed"})


class JobState(str, Enum):
    """Состояние клиентского цикла конвертации."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED)


def progress_fraction(
    num_pages: Optional[int],
    pages_processed: Optional[int],
) -> float:
    """
    Доля обработанных страниц в диапазоне [0, 1].

    Без num_pages (или при num_pages == 0) прогресс неизвестен и равен 0.
    """
    if not num_pages or num_pages <= 0 or not pages_processed:
        return 0.0
    return max(0.0, min(pages_processed / num_pages, 1.0))


def _as_count(value: Any) -> Optional[int]:
    """Неотрицательное целое из ответа сервиса или None."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


class ConversionJob(BaseModel):
    """
    Задача конвертации PDF во внешнем сервисе.

    Создаётся после успешной загрузки, когда известен job_id.
    Ответы статуса меняют только статус, счётчики страниц и результат.

    Attributes:
        job_id: идентификатор, выданный сервисом (неизменяем)
        status: последний статус ("queued", "processing", "completed", ...)
        num_pages: всего страниц в документе
        pages_processed: обработано страниц
        result: итоговая разметка (markdown с формулами)
        pdf_url: ссылка на восстановленный PDF, если есть
        error: сообщение об ошибке от сервиса
    """

    model_config = ConfigDict(validate_assignment=True)

    job_id: str = Field(frozen=True, min_length=1)
    status: str = ""
    num_pages: Optional[int] = Field(default=None, ge=0)
    pages_processed: Optional[int] = Field(default=None, ge=0)
    result: Optional[str] = None
    pdf_url: Optional[str] = None
    error: Optional[str] = None

    @property
    def progress(self) -> float:
        return progress_fraction(self.num_pages, self.pages_processed)

    def update_from(self, payload: dict) -> None:
        """
        Обновляет изменяемые поля из ответа статуса.

        Поля, которых нет в ответе, сохраняют прежние значения.
        Идентификатор из payload игнорируется.
        """
        status = payload.get("status")
        if isinstance(status, str):
            self.status = status

        if "num_pages" in payload:
            self.num_pages = _as_count(payload["num_pages"])
        if "pages_processed" in payload:
            self.pages_processed = _as_count(payload["pages_processed"])

        pdf_url = payload.get("pdf_url")
        if isinstance(pdf_url, str) and pdf_url:
            self.pdf_url = pdf_url

        error = payload.get("error")
        if isinstance(error, str) and error:
            self.error = error


class RenderRequest(BaseModel):
    """
    Запрос на рендеринг markdown в HTML.

    Attributes:
        markdown: текст markdown с формулами
        title: заголовок HTML страницы
    """

    markdown: str = Field(..., description="Markdown с формулами в $...$ / $$...$$")
    title: str = Field(default="Typeset Preview", max_length=200)

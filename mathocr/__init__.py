"""
Math OCR — прокси к Mathpix PDF API и клиент опроса конвертации.

Состав:
    - FastAPI прокси (загрузка PDF, статус задачи, рендеринг)
    - Клиентская сессия: загрузка и последовательный опрос статуса
    - Рендеринг markdown с формулами в HTML
"""

from mathocr.config import MissingCredentialsError, Settings, get_settings
from mathocr.schemas import ConversionJob, JobState, progress_fraction

__all__ = [
    "Settings",
    "get_settings",
    "MissingCredentialsError",
    "ConversionJob",
    "JobState",
    "progress_fraction",
]

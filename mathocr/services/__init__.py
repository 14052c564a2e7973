"""
Сервисы Math OCR.

Модули:
    - mathpix_client: запросы к внешнему OCR сервису
    - lookup: выбор первого непустого поля ответа
    - poller: клиентский цикл загрузки и опроса статуса
    - renderer: markdown с формулами -> HTML
"""

from mathocr.services.lookup import find_error, find_job_id, find_result, first_present
from mathocr.services.mathpix_client import MathpixClient, UpstreamReply
from mathocr.services.poller import ConversionSession
from mathocr.services.renderer import render_markdown, render_page

__all__ = [
    "MathpixClient",
    "UpstreamReply",
    "ConversionSession",
    "first_present",
    "find_job_id",
    "find_result",
    "find_error",
    "render_markdown",
    "render_page",
]

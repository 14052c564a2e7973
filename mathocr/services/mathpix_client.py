"""
HTTP клиент внешнего OCR сервиса (Mathpix PDF API).

Отправляет PDF как есть и запрашивает статус задачи.
Ответ сервиса не интерпретируется: статус и тело возвращаются
вызывающему коду для ретрансляции.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import httpx

from mathocr.config import Settings

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


@dataclass
class UpstreamReply:
    """
    Ответ внешнего сервиса.

    Attributes:
        status_code: HTTP статус ответа
        body: JSON (dict/list/...), сырой текст, или None если тело пустое
    """

    status_code: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def parse_body(text: str) -> Any:
    """JSON если тело разбирается, иначе исходный текст. Пустое тело -> None."""
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


class MathpixClient:
    """
    Клиент Mathpix PDF API.

    Учётные данные берутся из settings при каждом вызове, поэтому
    пустые значения дают MissingCredentialsError до сетевого запроса.

    Args:
        settings: настройки сервиса
        transport: подменяемый транспорт httpx (для тестов)
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.request_timeout_seconds),
            transport=self._transport,
        )

    def _auth_headers(self) -> dict[str, str]:
        app_id, app_key = self.settings.credentials()
        return {
            "Accept": "application/json",
            "app_id": app_id,
            "app_key": app_key,
        }

    async def submit_pdf(self, pdf_bytes: bytes) -> UpstreamReply:
        """
        Отправляет PDF в сервис без изменений.

        Args:
            pdf_bytes: содержимое файла

        Returns:
            UpstreamReply: ответ сервиса (обычно содержит pdf_id)
        """
        headers = self._auth_headers()
        headers["Content-Type"] = PDF_MEDIA_TYPE

        async with self._client() as client:
            response = await client.post(
                self.settings.api_url,
                headers=headers,
                content=pdf_bytes,
            )

        logger.info(f"Mathpix upload: HTTP {response.status_code}")
        return UpstreamReply(response.status_code, parse_body(response.text))

    async def fetch_status(self, job_id: str) -> UpstreamReply:
        """
        Запрашивает статус задачи конвертации.

        Args:
            job_id: идентификатор задачи (экранируется целиком, включая "/")

        Returns:
            UpstreamReply: ответ сервиса со статусом задачи
        """
        headers = self._auth_headers()
        url = f"{self.settings.api_url.rstrip('/')}/{quote(job_id, safe='')}"

        async with self._client() as client:
            response = await client.get(url, headers=headers)

        logger.info(f"Mathpix status {job_id}: HTTP {response.status_code}")
        return UpstreamReply(response.status_code, parse_body(response.text))

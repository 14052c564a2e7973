"""
Клиентский цикл конвертации: загрузка PDF и опрос статуса.

Работает поверх прокси (POST/GET /api/convert) через httpx.AsyncClient.
Состояния: idle -> submitting -> polling -> completed | failed.

Опрос последовательный: следующая проверка планируется только после
ответа на предыдущую. Отмена задачи (cancel или новая загрузка)
останавливает запланированную проверку, а поздний ответ отбрасывается
по номеру поколения.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from mathocr.schemas import (
    TERMINAL_FAILURES,
    TERMINAL_SUCCESS,
    ConversionJob,
    JobState,
)
from mathocr.services.lookup import find_error, find_job_id, find_result
from mathocr.services.mathpix_client import PDF_MEDIA_TYPE, parse_body

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 5.0
CONVERT_PATH = "/api/convert"

MSG_NO_FILE = "Attach a PDF to convert."
MSG_NOT_PDF = "Only PDF files are supported."
MSG_UPLOAD_FAILED = "Upload failed"
MSG_NO_JOB_ID = "Upload succeeded but no job id returned by Mathpix."
MSG_CONVERSION_FAILED = "Conversion failed. Check Mathpix dashboard for details."


class ConversionSession:
    """
    Отслеживает одну задачу конвертации за раз.

    Args:
        client: httpx.AsyncClient с base_url, указывающим на прокси
        poll_interval: пауза между проверками статуса в секундах
        sleep: функция ожидания (подменяется в тестах)

    Attributes:
        state: текущее состояние (JobState)
        job: задача, известная после успешной загрузки
        error: последнее сообщение об ошибке
        markdown: результат после completed
        raw_response: последний ответ прокси
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.poll_interval = poll_interval
        self._sleep = sleep

        self.state = JobState.IDLE
        self.job: Optional[ConversionJob] = None
        self.error: Optional[str] = None
        self.markdown = ""
        self.raw_response: Any = None

        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def progress(self) -> float:
        return self.job.progress if self.job else 0.0

    # ------------------------------------------------------------------
    # Загрузка
    # ------------------------------------------------------------------

    async def submit(
        self,
        data: Optional[bytes],
        content_type: Optional[str],
        filename: str = "document.pdf",
    ) -> JobState:
        """
        Загружает PDF через прокси и запускает опрос статуса.

        Без файла или с типом не application/pdf остаётся в idle
        и не обращается к сети.

        Returns:
            JobState: состояние после загрузки (polling или failed)
        """
        if not data:
            self.error = MSG_NO_FILE
            return self.state
        if content_type != PDF_MEDIA_TYPE:
            self.error = MSG_NOT_PDF
            return self.state

        self.cancel()
        self._reset()
        self.state = JobState.SUBMITTING
        generation = self._generation
        logger.info(f"Загрузка {filename}: {len(data)} байт")

        try:
            response = await self.client.post(
                CONVERT_PATH,
                files={"file": (filename, data, content_type)},
            )
        except httpx.HTTPError as e:
            return self._fail(str(e) or MSG_UPLOAD_FAILED, generation)

        if generation != self._generation:
            return self.state

        if not response.is_success:
            return self._fail(_upload_error(response), generation)

        payload = parse_body(response.text)
        job_id = find_job_id(payload)
        if not job_id:
            return self._fail(MSG_NO_JOB_ID, generation)

        self.job = ConversionJob(job_id=job_id)
        self.job.update_from(payload)
        self.raw_response = payload
        self.state = JobState.POLLING
        logger.info(f"Задача создана: job_id={job_id}, статус={self.job.status}")

        self._task = asyncio.create_task(self._poll_loop(generation))
        return self.state

    # ------------------------------------------------------------------
    # Опрос статуса
    # ------------------------------------------------------------------

    def apply_status(self, payload: dict) -> JobState:
        """
        Применяет один ответ статуса к текущей задаче.

        Решение принимается только по этому ответу: статус без учёта
        регистра (нет статуса = не терминальный). completed выбирает
        результат по RESULT_FIELDS; error/failed берёт сообщение сервиса.
        Любой другой статус оставляет сессию в polling.
        """
        if self.job is None or self.state is not JobState.POLLING:
            return self.state

        self.job.update_from(payload)
        self.raw_response = payload
        reported = payload.get("status")
        status = reported.strip().lower() if isinstance(reported, str) else ""

        if status == TERMINAL_SUCCESS:
            self.markdown = find_result(payload) or ""
            self.job.result = self.markdown
            self.state = JobState.COMPLETED
            logger.info(f"Задача {self.job.job_id} завершена")
        elif status in TERMINAL_FAILURES:
            error = payload.get("error")
            self.error = error if isinstance(error, str) and error else MSG_CONVERSION_FAILED
            self.state = JobState.FAILED
            logger.warning(f"Задача {self.job.job_id}: {self.error}")
        else:
            logger.info(
                f"Задача {self.job.job_id}: {status or 'unknown'}, "
                f"прогресс {self.progress:.0%}"
            )
        return self.state

    async def _poll_loop(self, generation: int) -> None:
        while True:
            await self._sleep(self.poll_interval)
            if generation != self._generation:
                return

            try:
                response = await self.client.get(
                    CONVERT_PATH,
                    params={"jobId": self.job.job_id},
                )
            except httpx.HTTPError as e:
                self._fail(str(e) or "Polling failed", generation)
                return

            if generation != self._generation:
                return

            if not response.is_success:
                self._fail(f"Polling failed: {response.status_code}", generation)
                return

            payload = parse_body(response.text)
            if not isinstance(payload, dict):
                self._fail("Polling failed: unexpected response", generation)
                return

            if self.apply_status(payload).is_terminal:
                return

    # ------------------------------------------------------------------
    # Отмена
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Прекращает отслеживание задачи. Поздние ответы игнорируются."""
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> JobState:
        """Ждёт, пока опрос дойдёт до терминального состояния или будет отменён."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})
            if not task.cancelled():
                task.result()
        return self.state

    def _reset(self) -> None:
        self.state = JobState.IDLE
        self.job = None
        self.error = None
        self.markdown = ""
        self.raw_response = None

    def _fail(self, message: str, generation: int) -> JobState:
        if generation == self._generation:
            self.error = message
            self.state = JobState.FAILED
            logger.error(f"Ошибка конвертации: {message}")
        return self.state


def _upload_error(response: httpx.Response) -> str:
    payload = parse_body(response.text)
    message = find_error(payload)
    if message:
        return message
    if isinstance(payload, str):
        return payload
    return response.text or MSG_UPLOAD_FAILED

"""
Math OCR — FastAPI прокси к Mathpix PDF API.

Принимает PDF от клиента, пересылает его во внешний сервис и
ретранслирует ответ (статус и тело) без изменений.

Эндпоинты:
    POST /api/convert — загрузка PDF (multipart, поле "file")
    GET  /api/convert?jobId=... — статус задачи конвертации
    POST /api/render — markdown с формулами -> HTML страница
    GET  /health — проверка работоспособности и конфигурации

Запуск:
    uvicorn mathocr.main:create_app --factory --host 0.0.0.0 --port 8000
"""

import logging
from typing import Any, Awaitable, Optional

import httpx
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from starlette.datastructures import UploadFile

from mathocr.config import MissingCredentialsError, Settings, get_settings
from mathocr.schemas import RenderRequest
from mathocr.services.mathpix_client import PDF_MEDIA_TYPE, MathpixClient, UpstreamReply
from mathocr.services.renderer import render_page

# Настройка логгера
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MathOCR] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"

router = APIRouter()


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mathpix_client(request: Request) -> MathpixClient:
    return request.app.state.mathpix


@router.get("/health")
async def health_check(settings: Settings = Depends(get_app_settings)) -> dict:
    """
    Проверка работоспособности сервиса.

    Секреты не раскрываются: только признак их наличия.

    Returns:
        dict: статус сервиса и текущая конфигурация
    """
    configured = settings.credentials_configured
    return {
        "status": "ok" if configured else "degraded",
        "service": "mathocr",
        "version": VERSION,
        "upstream": {
            "url": settings.api_url,
            "credentials_configured": configured,
        },
        "config": {
            "request_timeout_seconds": settings.request_timeout_seconds,
        },
    }


@router.post("/api/convert")
async def upload_pdf(
    request: Request,
    mathpix: MathpixClient = Depends(get_mathpix_client),
) -> Response:
    """
    Пересылает PDF во внешний сервис.

    Файл передаётся байт в байт. Статус и тело ответа сервиса
    возвращаются клиенту как есть, включая ошибки (401, 429, ...).

    Raises:
        HTTPException: 400 при отсутствии файла или неверном типе,
            500 без учётных данных или при сетевой ошибке
    """
    file = await _read_upload(request)
    file_bytes = await file.read()
    logger.info(f"Получен файл: {file.filename}, {len(file_bytes)} байт")

    reply = await _call_upstream(mathpix.submit_pdf(file_bytes))

    if not reply.ok:
        logger.warning(f"Mathpix отклонил загрузку: HTTP {reply.status_code}")
    return _relay(
        reply,
        failure_message="Mathpix rejected the request.",
        empty_success={"success": True},
    )


@router.get("/api/convert")
async def conversion_status(
    job_id: Optional[str] = Query(default=None, alias="jobId"),
    settings: Settings = Depends(get_app_settings),
    mathpix: MathpixClient = Depends(get_mathpix_client),
) -> Response:
    """
    Запрашивает статус задачи во внешнем сервисе.

    Args:
        job_id: идентификатор задачи из ответа на загрузку

    Raises:
        HTTPException: 400 без jobId, 500 без учётных данных
            или при сетевой ошибке
    """
    _require_credentials(settings)

    if not job_id:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "missing_job_id",
                "message": "jobId query parameter is required.",
            },
        )

    logger.info(f"Запрос статуса: job_id={job_id}")
    reply = await _call_upstream(mathpix.fetch_status(job_id))

    return _relay(
        reply,
        failure_message=f"Mathpix status lookup failed with {reply.status_code}.",
        empty_success={},
    )


@router.post("/api/render", response_class=HTMLResponse)
async def render_markdown_page(body: RenderRequest) -> HTMLResponse:
    """Рендерит markdown с формулами в HTML страницу для предпросмотра."""
    return HTMLResponse(render_page(body.markdown, body.title))


async def _read_upload(request: Request) -> UploadFile:
    """
    Достаёт PDF из multipart формы.

    Проверяет:
        - Наличие файла в поле "file"
        - Тип файла (если указан, только application/pdf)

    Raises:
        HTTPException: при ошибках валидации
    """
    form = await request.form()
    file = form.get("file")
    if not isinstance(file, UploadFile):
        raise HTTPException(
            status_code=400,
            detail={
                "error": "missing_file",
                "message": "Missing PDF file payload.",
            },
        )

    if file.content_type and file.content_type != PDF_MEDIA_TYPE:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "invalid_file_type",
                "message": "Only application/pdf uploads are supported, "
                f"got: {file.content_type}",
            },
        )

    return file


def _require_credentials(settings: Settings) -> None:
    try:
        settings.credentials()
    except MissingCredentialsError as e:
        logger.error(str(e))
        raise HTTPException(
            status_code=500,
            detail={"error": "missing_credentials", "message": str(e)},
        )


async def _call_upstream(call: Awaitable[UpstreamReply]) -> UpstreamReply:
    """
    Выполняет запрос к внешнему сервису, переводя сбои в HTTPException.

    Ответы сервиса с любым статусом возвращаются как есть.
    """
    try:
        return await call
    except MissingCredentialsError as e:
        logger.error(str(e))
        raise HTTPException(
            status_code=500,
            detail={"error": "missing_credentials", "message": str(e)},
        )
    except httpx.TimeoutException as e:
        logger.error(f"Таймаут ожидания Mathpix: {e!r}")
        raise HTTPException(
            status_code=504,
            detail={"error": "upstream_timeout", "message": str(e) or "Mathpix timed out"},
        )
    except httpx.HTTPError as e:
        logger.exception(f"Mathpix недоступен: {e!r}")
        raise HTTPException(
            status_code=500,
            detail={"error": "upstream_unreachable", "message": str(e) or repr(e)},
        )


def _relay(reply: UpstreamReply, failure_message: str, empty_success: Any) -> Response:
    """
    Возвращает ответ сервиса клиенту с исходным статусом.

    JSON тело уходит как JSON, остальное как text/plain.
    Пустое тело заменяется на failure_message (ошибка) или empty_success.
    """
    body = reply.body
    if body is None:
        body = empty_success if reply.ok else {"error": failure_message}

    if isinstance(body, str):
        return PlainTextResponse(body, status_code=reply.status_code)
    return JSONResponse(body, status_code=reply.status_code)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Создаёт приложение.

    Args:
        settings: настройки; по умолчанию читаются из окружения
            (без MATHPIX_APP_ID / MATHPIX_APP_KEY запуск падает)
        transport: транспорт httpx для запросов к Mathpix (для тестов)

    Returns:
        FastAPI: готовое приложение
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Math OCR Proxy",
        description="Прокси к Mathpix PDF API: загрузка PDF и опрос статуса конвертации",
        version=VERSION,
    )
    app.state.settings = settings
    app.state.mathpix = MathpixClient(settings, transport=transport)
    app.include_router(router)

    logger.info(f"Mathpix API: {settings.api_url}")
    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logger.info(f"Запуск Math OCR прокси на порту {settings.port}")

    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=settings.port,
        log_level="info",
    )

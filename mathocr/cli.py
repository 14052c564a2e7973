"""
Консольный клиент Math OCR.

Загружает PDF через прокси, опрашивает статус до завершения и
сохраняет markdown (и, по желанию, HTML предпросмотр).

Запуск:
    python -m mathocr.cli book.pdf --base-url http://localhost:8000 --out book.md
"""

import argparse
import asyncio
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Optional

import httpx

from mathocr.schemas import JobState
from mathocr.services.poller import POLL_INTERVAL_SECONDS, ConversionSession
from mathocr.services.renderer import render_page

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="mathocr-convert",
        description="Convert a math-heavy PDF to Markdown via the Math OCR proxy",
    )
    ap.add_argument("pdf", help="Path to the PDF file")
    ap.add_argument("--base-url", default="http://localhost:8000", help="Proxy base URL")
    ap.add_argument("--interval", type=float, default=POLL_INTERVAL_SECONDS,
                    help="Seconds between status checks")
    ap.add_argument("--out", default="", help="Write markdown here instead of stdout")
    ap.add_argument("--html", default="", help="Also write a typeset HTML preview")
    return ap


async def convert(
    path: Path,
    base_url: str,
    interval: float = POLL_INTERVAL_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ConversionSession:
    """
    Проводит один файл через полный цикл конвертации.

    Returns:
        ConversionSession: сессия в терминальном состоянии
    """
    content_type, _ = mimetypes.guess_type(path.name)
    data = path.read_bytes() if path.is_file() else None

    async with httpx.AsyncClient(base_url=base_url, transport=transport, timeout=None) as client:
        session = ConversionSession(client, poll_interval=interval)
        await session.submit(data, content_type, filename=path.name)
        await session.wait()
    return session


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [MathOCR] %(message)s",
        datefmt="%H:%M:%S",
    )
    args = build_parser().parse_args(argv)
    path = Path(args.pdf)

    session = asyncio.run(convert(path, args.base_url, args.interval))

    if session.state is not JobState.COMPLETED:
        logger.error(f"Конвертация не удалась: {session.error}")
        return 1

    if args.out:
        Path(args.out).write_text(session.markdown, encoding="utf-8")
        logger.info(f"Markdown сохранён: {args.out}")
    else:
        sys.stdout.write(session.markdown + "\n")

    if args.html:
        Path(args.html).write_text(render_page(session.markdown, title=path.name), encoding="utf-8")
        logger.info(f"HTML предпросмотр сохранён: {args.html}")

    if session.job and session.job.pdf_url:
        logger.info(f"Восстановленный PDF: {session.job.pdf_url}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

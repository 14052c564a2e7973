"""
Конфигурация Math OCR прокси.

Все значения читаются из .env файла (или переменных окружения).
Учётные данные Mathpix обязательны: без них Settings() падает при старте.

Единый префикс: MATHPIX_
Документация по параметрам: .env.example
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class MissingCredentialsError(RuntimeError):
    """Учётные данные Mathpix не заданы или пустые."""


class Settings(BaseSettings):
    """
    Настройки прокси к Mathpix PDF API.

    Читает переменные с префиксом MATHPIX_ из .env файла.
    """

    model_config = SettingsConfigDict(
        env_prefix="MATHPIX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Авторизация во внешнем сервисе ---
    # Передаются в заголовках app_id / app_key
    app_id: str
    app_key: str

    # --- Внешний сервис ---
    api_url: str = "https://api.mathpix.com/v3/pdf"
    # None = без таймаута
    request_timeout_seconds: Optional[float] = None

    # --- Сервер ---
    port: int = 8000

    def credentials(self) -> tuple[str, str]:
        """
        Возвращает пару (app_id, app_key).

        Raises:
            MissingCredentialsError: если хотя бы одно значение пустое
        """
        app_id = self.app_id.strip()
        app_key = self.app_key.strip()
        if not app_id or not app_key:
            raise MissingCredentialsError(
                "Mathpix credentials are missing. "
                "Set MATHPIX_APP_ID and MATHPIX_APP_KEY env vars."
            )
        return app_id, app_key

    @property
    def credentials_configured(self) -> bool:
        return bool(self.app_id.strip() and self.app_key.strip())


@lru_cache()
def get_settings() -> Settings:
    """Создаёт настройки один раз на процесс."""
    return Settings()

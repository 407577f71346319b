"""
Настройки модуля pricing.

Читаются из переменных окружения; .env в корне проекта подхватывается автоматически.
"""
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    seed_path: str = "data/seed.json"
    log_level: str = "INFO"
    page_size: int = 12  # товаров на странице каталога
    default_currency: str = "JOD"


def load_settings() -> Settings:
    """Собирает Settings из окружения, пустые значения заменяются дефолтами"""
    defaults = Settings()
    return Settings(
        seed_path=os.getenv("PRICING_SEED_PATH") or defaults.seed_path,
        log_level=(os.getenv("LOG_LEVEL") or defaults.log_level).upper(),
        page_size=int(os.getenv("PRICING_PAGE_SIZE") or defaults.page_size),
        default_currency=(
            os.getenv("PRICING_DEFAULT_CURRENCY") or defaults.default_currency
        ).upper(),
    )

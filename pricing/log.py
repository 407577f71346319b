import logging
import sys
from typing import Optional

from .config import load_settings

ROOT = "pricing"
FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Настраивает корневой логгер pricing: один stdout-обработчик,
    без проброса в root. Повторный вызов только меняет уровень.
    """
    level = (level or load_settings().log_level).upper()
    root = logging.getLogger(ROOT)
    root.setLevel(level)
    root.propagate = False

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
    for handler in root.handlers:
        handler.setLevel(level)
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Логгер pricing.<name> (или корневой pricing)"""
    root = logging.getLogger(ROOT)
    if not root.handlers:
        configure_logging()
    return logging.getLogger(f"{ROOT}.{name}") if name else root

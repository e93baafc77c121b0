#!/usr/bin/env python3
"""
Запуск бота проверки заявок на вступление в группу.

Использование:
    python start.py
"""

import sys
import asyncio
import traceback
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from config.settings import Settings, get_settings
from gatekeeper.app import BotApp

project_root = Path(__file__).parent


def setup_logging(settings: Settings) -> None:
    """Настройка логирования."""
    logger.remove()
    logger.add(sys.stderr, level=settings.LOG_LEVEL)
    if settings.LOG_FILE:
        logger.add(settings.LOG_FILE, level=settings.LOG_LEVEL, rotation="10 MB", retention=1)


def main():
    """Основная функция для запуска бота."""
    env_file = project_root / ".env"
    if not env_file.exists():
        print("❌ Ошибка: файл .env не найден!")
        print("💡 Создайте файл .env и укажите в нем BOT_TOKEN")
        sys.exit(1)

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"❌ Ошибка в настройках:\n{e}")
        sys.exit(1)

    try:
        setup_logging(settings)

        logger.info("🚀 Запуск бота проверки заявок...")
        logger.info("📋 Для остановки нажмите Ctrl+C")

        app = BotApp(settings)
        asyncio.run(app.run())

    except ImportError as e:
        logger.critical(f"❌ Ошибка импорта: {e}")
        traceback.print_exc()
        logger.info("💡 Установите зависимости: pip install -e .")
    except (KeyboardInterrupt, SystemExit):
        logger.info("✅ Бот остановлен.")
    except Exception as e:
        logger.critical(f"💥 Непредвиденная ошибка: {e}")
        traceback.print_exc()


if __name__ == "__main__":
    logger.info(f"Запуск на Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    if sys.version_info < (3, 12):
        logger.critical("Требуется Python 3.12 или выше.")
    else:
        main()

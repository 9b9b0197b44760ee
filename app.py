"""
Точка входа сервиса бронирования: БД и планировщик освобождения сессий
"""
import asyncio
import logging

from config import settings
from database.database import init_db
from database.repository import SqliteRepository
from utils.scheduler import start_scheduler

# Настройка логирования
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Основная функция запуска сервиса"""
    logger.info("Запуск сервиса бронирования...")

    # Инициализация БД
    init_db()
    logger.info(f"База данных инициализирована: {settings.DB_PATH}")

    repository = SqliteRepository(settings.DB_PATH)

    # Запуск планировщика освобождения истёкших сессий
    scheduler = await start_scheduler(repository)

    try:
        logger.info("Сервис успешно запущен")
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown()
        logger.info("Сервис остановлен")


if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Сервис остановлен пользователем")
    except Exception as e:
        logger.error(f"Критическая ошибка: {e}", exc_info=True)

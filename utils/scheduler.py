"""
Планировщик периодических задач
"""
import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import settings
from handlers.booking_handlers import update_reservation_status
from database.models import STATUS_CANCELLED

logger = logging.getLogger(__name__)


def release_expired_sessions(repository, now: Optional[datetime] = None) -> int:
    """Отмена неподтверждённых броней с истёкшей сессией, столы освобождаются"""
    now = now or datetime.now()
    released = 0
    for reservation in repository.list_expired_sessions(now):
        outcome = update_reservation_status(
            repository, reservation.id, STATUS_CANCELLED, changed_by='SESSION_EXPIRED'
        )
        if outcome.success:
            released += 1
    return released


async def release_expired_sessions_job(repository):
    """Задача освобождения столов по истёкшим сессиям"""
    try:
        released = release_expired_sessions(repository)
        if released > 0:
            logger.info(f"Освобождено {released} броней с истёкшей сессией")
    except Exception as e:
        logger.error(f"Ошибка при освобождении истёкших сессий: {e}", exc_info=True)


async def start_scheduler(repository) -> AsyncIOScheduler:
    """Запуск планировщика задач"""
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        release_expired_sessions_job,
        trigger=IntervalTrigger(minutes=settings.SESSION_CLEANUP_INTERVAL_MINUTES),
        args=[repository],
        id='release_expired_sessions',
        name='Освобождение истёкших сессий',
        replace_existing=True
    )

    scheduler.start()
    logger.info("Планировщик задач запущен")

    return scheduler

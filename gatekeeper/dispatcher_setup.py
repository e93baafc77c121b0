"""
Настройка и регистрация всех обработчиков и middleware для диспетчера.
"""
from aiogram import Dispatcher
from loguru import logger

from config.settings import Settings
from gatekeeper.handlers import admin_router, join_requests_router, private_messages_router
from gatekeeper.middleware.services import ServiceMiddleware
from gatekeeper.services.admin_service import AdminService
from gatekeeper.services.verification_service import VerificationService


def setup_dispatcher(
    dp: Dispatcher,
    verification_service: VerificationService,
    admin_service: AdminService,
    settings: Settings,
) -> None:
    """
    Настраивает диспетчер, регистрируя middleware и обработчики.

    Args:
        dp: Экземпляр Dispatcher.
        verification_service: Сервис проверки заявок.
        admin_service: Сервис административных команд.
        settings: Конфигурация бота.
    """
    service_middleware = ServiceMiddleware(
        verification_service=verification_service,
        admin_service=admin_service,
        settings=settings,
    )
    dp.update.middleware(service_middleware)

    # команды раньше обычных сообщений
    dp.include_router(admin_router)
    dp.include_router(join_requests_router)
    dp.include_router(private_messages_router)

    logger.info("Все обработчики успешно зарегистрированы.")

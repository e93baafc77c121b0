"""Middleware для передачи сервисов в обработчики."""

from typing import Callable, Dict, Any, Awaitable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from config.settings import Settings
from gatekeeper.services.admin_service import AdminService
from gatekeeper.services.verification_service import VerificationService


class ServiceMiddleware(BaseMiddleware):
    """
    Middleware для передачи сервисов в обработчики.

    Сервисы создаются один раз при запуске: в них хранятся открытые
    проверки, поэтому пересоздавать их на каждое событие нельзя.
    """

    def __init__(
        self,
        verification_service: VerificationService,
        admin_service: AdminService,
        settings: Settings,
    ):
        """Инициализация middleware."""
        super().__init__()
        self.verification_service = verification_service
        self.admin_service = admin_service
        self.settings = settings

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        """Выполнение middleware."""
        data["verification_service"] = self.verification_service
        data["admin_service"] = self.admin_service
        data["settings"] = self.settings
        return await handler(event, data)

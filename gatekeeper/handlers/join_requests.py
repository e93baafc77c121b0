"""
Обработчик заявок на вступление в группу.
"""
from aiogram import Router
from aiogram.types import ChatJoinRequest
from loguru import logger

from gatekeeper.platform.parsers import parse_join_request
from gatekeeper.services.verification_service import VerificationService

join_requests_router = Router(name="join_requests_router")


@join_requests_router.chat_join_request()
async def handle_chat_join_request(event: ChatJoinRequest, verification_service: VerificationService):
    """Передает заявку в сервис проверки."""
    request = parse_join_request("telegram", event)
    if request is None:
        logger.warning(f"Не удалось разобрать заявку в чате {event.chat.id}")
        return
    await verification_service.handle_join_request(request)

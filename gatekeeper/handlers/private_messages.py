"""
Обработчик личных сообщений: ответы заявителей на капчу.
"""
from aiogram import F, Router
from aiogram.types import Message

from gatekeeper.services.verification_service import Outcome, VerificationService

private_messages_router = Router(name="private_messages_router")
private_messages_router.message.filter(F.chat.type == "private")

WRONG_CODE_MSG = "❌ Неверный код, попробуйте еще раз"
PASSED_MSG = "✅ Проверка пройдена, заявка одобрена"


@private_messages_router.message(F.text)
async def handle_private_answer(message: Message, verification_service: VerificationService):
    """
    Передает ответ заявителя в сервис проверки.

    Капча приходит заявителю в личный чат, потому что в группу до
    одобрения заявки он писать не может.
    """
    if not message.from_user or message.text.startswith('/'):
        return

    outcome = await verification_service.handle_private_message(message.from_user.id, message.text)
    if outcome is Outcome.PENDING:
        await message.answer(WRONG_CODE_MSG)
    elif outcome is Outcome.APPROVED:
        await message.answer(PASSED_MSG)

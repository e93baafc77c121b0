"""Реализация порта платформы для Telegram через aiogram."""

from typing import Optional

from aiogram import Bot
from aiogram.enums import ChatMemberStatus
from aiogram.exceptions import TelegramAPIError
from aiogram.types import BufferedInputFile
from loguru import logger

from gatekeeper.exceptions import PlatformError
from .base import JoinRequest

MEMBER_STATUSES = {
    ChatMemberStatus.CREATOR,
    ChatMemberStatus.ADMINISTRATOR,
    ChatMemberStatus.MEMBER,
    ChatMemberStatus.RESTRICTED,
}


class TelegramPlatform:
    """
    Заявки на вступление и сообщения в группах Telegram.

    Заявитель еще не участник группы и писать в нее не может, поэтому
    капча и причина отказа уходят ему в личный чат по user_chat_id,
    который хранится во флаге заявки. Этот чат доступен боту только до
    обработки заявки.
    """

    def __init__(self, bot: Bot):
        self.bot = bot

    async def approve(self, group_id: int, user_id: int, flag: str) -> None:
        try:
            await self.bot.approve_chat_join_request(chat_id=group_id, user_id=user_id)
        except TelegramAPIError as e:
            raise PlatformError(f"Не удалось одобрить заявку: {e}", group_id, user_id) from e

    async def reject(self, group_id: int, user_id: int, flag: str, reason: str = "") -> None:
        # после decline_chat_join_request user_chat_id уже недействителен
        if reason and flag:
            try:
                await self.bot.send_message(chat_id=int(flag), text=reason)
            except (TelegramAPIError, ValueError) as e:
                logger.warning(f"Не удалось сообщить пользователю {user_id} причину отказа: {e}")

        try:
            await self.bot.decline_chat_join_request(chat_id=group_id, user_id=user_id)
        except TelegramAPIError as e:
            raise PlatformError(f"Не удалось отклонить заявку: {e}", group_id, user_id) from e

    async def is_member(self, group_id: int, user_id: int) -> bool:
        try:
            member = await self.bot.get_chat_member(chat_id=group_id, user_id=user_id)
        except TelegramAPIError as e:
            logger.warning(f"⚠️ Не удалось проверить участника {user_id} в группе {group_id}: {e}")
            return False
        return member.status in MEMBER_STATUSES

    async def send_message(self, group_id: int, text: str, image: Optional[bytes] = None) -> None:
        try:
            await self._send(group_id, text, image)
        except TelegramAPIError as e:
            raise PlatformError(f"Не удалось отправить сообщение: {e}", group_id) from e

    async def send_challenge(self, request: JoinRequest, text: str, image: Optional[bytes] = None) -> None:
        try:
            chat_id = int(request.flag) if request.flag else request.user_id
            await self._send(chat_id, text, image)
        except (TelegramAPIError, ValueError) as e:
            raise PlatformError(
                f"Не удалось отправить капчу заявителю: {e}", request.group_id, request.user_id
            ) from e

    async def _send(self, chat_id: int, text: str, image: Optional[bytes]) -> None:
        if image is not None:
            await self.bot.send_photo(
                chat_id=chat_id,
                photo=BufferedInputFile(image, filename="captcha.png"),
                caption=text,
            )
        else:
            await self.bot.send_message(chat_id=chat_id, text=text)

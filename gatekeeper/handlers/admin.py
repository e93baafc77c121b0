"""
Команда /verify для супер-администраторов.
"""
from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from loguru import logger

from gatekeeper.services.admin_service import AdminService

admin_router = Router(name="admin_router")

GROUP_CHAT_TYPES = ("group", "supergroup")


@admin_router.message(Command("verify"), F.from_user)
async def verify_command(message: Message, command: CommandObject, admin_service: AdminService):
    """Разбирает аргументы команды и передает их в AdminService."""
    args = command.args.split() if command.args else []
    action = args[0].lower() if args else None
    group_id = message.chat.id if message.chat.type in GROUP_CHAT_TYPES else None

    logger.debug(f"Команда verify {args} от {message.from_user.id} в чате {message.chat.id}")
    reply = await admin_service.execute(group_id, message.from_user.id, action, *args[1:])
    await message.reply(reply)

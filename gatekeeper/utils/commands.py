"""Module for setting up bot commands."""
from aiogram import Bot
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import BotCommand, BotCommandScopeAllGroupChats, BotCommandScopeDefault
from loguru import logger


async def set_bot_commands(bot: Bot):
    """
    Sets up the commands for the bot in the Telegram UI.

    The /verify command is shown in group chats only, where it acts on
    the current group.
    """
    try:
        await bot.delete_my_commands(scope=BotCommandScopeDefault())
        logger.info("Старые команды бота очищены")
    except TelegramBadRequest as e:
        logger.warning(f"Ошибка при очистке команд: {e}")

    group_commands = [
        BotCommand(command="verify", description="Управление проверкой заявок"),
    ]

    try:
        await bot.set_my_commands(group_commands, scope=BotCommandScopeAllGroupChats())
        logger.info("Команды бота настроены для групповых чатов")
    except TelegramBadRequest as e:
        logger.error(f"Не удалось установить команды бота: {e}")

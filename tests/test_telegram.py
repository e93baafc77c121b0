"""
Тесты адаптера Telegram и обработчиков aiogram.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.enums import ChatMemberStatus
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import CommandObject
from aiogram.types import BufferedInputFile

from gatekeeper.exceptions import PlatformError
from gatekeeper.handlers.admin import verify_command
from gatekeeper.handlers.private_messages import PASSED_MSG, WRONG_CODE_MSG, handle_private_answer
from gatekeeper.platform.base import JoinRequest
from gatekeeper.platform.telegram import TelegramPlatform
from gatekeeper.services.verification_service import Outcome


def api_error():
    return TelegramBadRequest(method=MagicMock(), message="Bad Request: USER_ALREADY_PARTICIPANT")


@pytest.fixture
def bot():
    return AsyncMock()


class TestTelegramPlatform:
    async def test_approve(self, bot):
        await TelegramPlatform(bot).approve(-1001, 42, "42")
        bot.approve_chat_join_request.assert_awaited_once_with(chat_id=-1001, user_id=42)

    async def test_approve_error_becomes_platform_error(self, bot):
        bot.approve_chat_join_request.side_effect = api_error()

        with pytest.raises(PlatformError) as exc_info:
            await TelegramPlatform(bot).approve(-1001, 42, "42")
        assert exc_info.value.group_id == -1001
        assert exc_info.value.user_id == 42

    async def test_reject_sends_reason_privately(self, bot):
        await TelegramPlatform(bot).reject(-1001, 42, "4242", "время истекло")

        bot.decline_chat_join_request.assert_awaited_once_with(chat_id=-1001, user_id=42)
        bot.send_message.assert_awaited_once_with(chat_id=4242, text="время истекло")

    async def test_reason_is_sent_before_decline(self, bot):
        calls = []
        bot.send_message.side_effect = lambda **kwargs: calls.append("dm")
        bot.decline_chat_join_request.side_effect = lambda **kwargs: calls.append("decline")

        await TelegramPlatform(bot).reject(-1001, 42, "4242", "нет")
        assert calls == ["dm", "decline"]

    async def test_reject_survives_private_message_failure(self, bot):
        bot.send_message.side_effect = api_error()
        await TelegramPlatform(bot).reject(-1001, 42, "4242", "нет")
        bot.decline_chat_join_request.assert_awaited_once()

    @pytest.mark.parametrize("status, expected", [
        (ChatMemberStatus.MEMBER, True),
        (ChatMemberStatus.ADMINISTRATOR, True),
        (ChatMemberStatus.LEFT, False),
        (ChatMemberStatus.KICKED, False),
    ])
    async def test_is_member(self, bot, status, expected):
        bot.get_chat_member.return_value = MagicMock(status=status)
        assert await TelegramPlatform(bot).is_member(-1001, 42) is expected

    async def test_is_member_error_means_not_member(self, bot):
        bot.get_chat_member.side_effect = api_error()
        assert await TelegramPlatform(bot).is_member(-1001, 42) is False

    async def test_send_text(self, bot):
        await TelegramPlatform(bot).send_message(-1001, "привет")
        bot.send_message.assert_awaited_once_with(chat_id=-1001, text="привет")

    async def test_send_image(self, bot):
        await TelegramPlatform(bot).send_message(-1001, "код на картинке", b"png")

        kwargs = bot.send_photo.await_args.kwargs
        assert kwargs["caption"] == "код на картинке"
        assert isinstance(kwargs["photo"], BufferedInputFile)

    async def test_send_error(self, bot):
        bot.send_message.side_effect = api_error()
        with pytest.raises(PlatformError):
            await TelegramPlatform(bot).send_message(-1001, "привет")

    async def test_challenge_goes_to_private_chat(self, bot):
        request = JoinRequest(platform="telegram", group_id=-1001, user_id=42, flag="4242")
        await TelegramPlatform(bot).send_challenge(request, "Введите код: AB3D")
        bot.send_message.assert_awaited_once_with(chat_id=4242, text="Введите код: AB3D")

    async def test_challenge_image_goes_to_private_chat(self, bot):
        request = JoinRequest(platform="telegram", group_id=-1001, user_id=42, flag="4242")
        await TelegramPlatform(bot).send_challenge(request, "код на картинке", b"png")
        assert bot.send_photo.await_args.kwargs["chat_id"] == 4242

    async def test_challenge_without_chat_id_uses_user_id(self, bot):
        request = JoinRequest(platform="telegram", group_id=-1001, user_id=42, flag="")
        await TelegramPlatform(bot).send_challenge(request, "код")
        bot.send_message.assert_awaited_once_with(chat_id=42, text="код")

    async def test_challenge_error_becomes_platform_error(self, bot):
        bot.send_message.side_effect = api_error()
        request = JoinRequest(platform="telegram", group_id=-1001, user_id=42, flag="4242")

        with pytest.raises(PlatformError) as exc_info:
            await TelegramPlatform(bot).send_challenge(request, "код")
        assert exc_info.value.user_id == 42


def make_message(text, chat_type="supergroup", user_id=42, is_bot=False):
    message = MagicMock()
    message.text = text
    message.chat.id = -1001
    message.chat.type = chat_type
    message.from_user.id = user_id
    message.from_user.is_bot = is_bot
    message.reply = AsyncMock()
    message.answer = AsyncMock()
    return message


class TestHandlers:
    @pytest.mark.parametrize("outcome, reply", [
        (Outcome.PENDING, WRONG_CODE_MSG),
        (Outcome.APPROVED, PASSED_MSG),
    ])
    async def test_private_answer_is_checked(self, outcome, reply):
        service = AsyncMock()
        service.handle_private_message.return_value = outcome
        message = make_message("AB3D", chat_type="private")

        await handle_private_answer(message, service)

        service.handle_private_message.assert_awaited_once_with(42, "AB3D")
        message.answer.assert_awaited_once_with(reply)

    async def test_private_message_without_verification_gets_no_reply(self):
        service = AsyncMock()
        service.handle_private_message.return_value = None
        message = make_message("привет", chat_type="private")

        await handle_private_answer(message, service)
        message.answer.assert_not_awaited()

    async def test_commands_are_ignored(self):
        service = AsyncMock()
        await handle_private_answer(make_message("/start", chat_type="private"), service)
        service.handle_private_message.assert_not_awaited()

    async def test_verify_command_in_group(self):
        admin_service = AsyncMock()
        admin_service.execute.return_value = "✅ Режим проверки: image-captcha"
        message = make_message("/verify MODE image-captcha")
        command = CommandObject(prefix="/", command="verify", args="MODE image-captcha")

        await verify_command(message, command, admin_service)

        admin_service.execute.assert_awaited_once_with(-1001, 42, "mode", "image-captcha")
        message.reply.assert_awaited_once_with("✅ Режим проверки: image-captcha")

    async def test_verify_command_in_private_chat(self):
        admin_service = AsyncMock()
        admin_service.execute.return_value = "Используйте эту команду в группе"
        message = make_message("/verify", chat_type="private")

        await verify_command(message, CommandObject(prefix="/", command="verify"), admin_service)
        admin_service.execute.assert_awaited_once_with(None, 42, None)

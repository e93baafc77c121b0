"""Сервис проверки заявок на вступление в группу."""

import asyncio
from enum import Enum
from typing import Optional, Tuple

from loguru import logger

from config.settings import Settings
from gatekeeper.database.manager import DatabaseManager
from gatekeeper.database.models import AuditRecord, GroupPolicy, VerifyMode, VerifyResult, VerifyType
from gatekeeper.exceptions import CaptchaRenderError, PlatformError, StorageError
from gatekeeper.platform.base import JoinRequest, PlatformPort
from gatekeeper.services.captcha_service import CaptchaService
from gatekeeper.services.policy_service import PolicyService
from gatekeeper.services.request_tracker import PendingVerification, RequestTracker, request_key

MESSAGE_PREFIX = "[Проверка]"


class Outcome(str, Enum):
    """Чем закончилась обработка события."""
    APPROVED = "approved"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"
    PENDING = "pending"
    FAILED = "failed"


class VerificationService:
    """
    Жизненный цикл заявки: NONE -> PENDING -> APPROVED | REJECTED | TIMED_OUT.

    Завершенные проверки не хранятся: запись снимается из RequestTracker,
    а итог остается только в журнале. Завершить проверку может только тот,
    кто успешно снял ее запись через tracker.end(key, entry), поэтому
    гонка ответа и таймаута не приводит к двойному решению.
    """

    def __init__(
        self,
        platform: PlatformPort,
        db_manager: DatabaseManager,
        policies: PolicyService,
        captcha: CaptchaService,
        tracker: RequestTracker,
        settings: Settings,
    ):
        self.platform = platform
        self.db = db_manager
        self.policies = policies
        self.captcha = captcha
        self.tracker = tracker
        self.settings = settings

    async def handle_join_request(self, request: JoinRequest) -> Outcome:
        """Обрабатывает новую заявку на вступление."""
        group_id, user_id = request.group_id, request.user_id
        policy = await self.policies.resolve(group_id)
        logger.info(f"📥 Заявка: группа {group_id}, пользователь {user_id}, режим {policy.mode.value}")

        if await self._is_whitelisted(user_id):
            return await self._approve(request, policy, VerifyType.WHITELIST)

        if policy.skip_in_group_user and await self._is_member(group_id, user_id):
            return await self._approve(request, policy, VerifyType.SKIP)

        if not policy.mode.is_captcha:
            return await self._reject(request, policy, VerifyType.WHITELIST_MODE, "нет в белом списке")

        return await self.issue_challenge(request, policy)

    async def issue_challenge(self, request: JoinRequest, policy: GroupPolicy) -> Outcome:
        """
        Отправляет капчу и открывает проверку.

        Повторная заявка от того же пользователя получает новый код, а
        предыдущая проверка вместе с ее таймером заменяется.
        """
        key = request_key(request.group_id, request.user_id)
        code, image = await self._mint(policy)

        shown = "код на картинке" if image is not None else code
        text = f"{MESSAGE_PREFIX} {request.user_id} {policy.render_waiting(shown)}"
        try:
            await self.platform.send_challenge(request, text, image)
        except PlatformError as e:
            # прежняя проверка по этому ключу, если она есть, остается в силе
            logger.error(f"❌ Не удалось отправить капчу заявителю {request.user_id} из группы {request.group_id}: {e}")
            return await self._reject(request, policy, self._captcha_type(policy), "не удалось отправить капчу")

        await self.captcha.register(key, code, policy.timeout)
        entry = PendingVerification(
            request=request,
            policy=policy,
            answer=code,
            issued_at=self.tracker.now(),
        )
        await self.tracker.begin(key, entry)
        self.tracker.schedule_timeout(key, entry, policy.timeout, self.handle_timeout)
        logger.info(f"🔐 Капча отправлена: группа {request.group_id}, пользователь {request.user_id}, "
                    f"таймаут {policy.timeout} с")
        return Outcome.PENDING

    async def handle_message(self, group_id: int, user_id: int, text: str) -> Optional[Outcome]:
        """
        Проверяет сообщение пользователя с открытой проверкой.

        Сообщения от пользователей без открытой проверки игнорируются.
        Неверный ответ проверку не закрывает.
        """
        key = request_key(group_id, user_id)
        entry = await self.tracker.get(key)
        if entry is None or not text:
            return None

        vtype = self._captcha_type(entry.policy)
        if not await self.tracker.record_attempt(key):
            if await self.tracker.end(key, entry) is None:
                return None
            await self.captcha.discard(key)
            return await self._reject(entry.request, entry.policy, vtype, "слишком много попыток")

        if await self.captcha.validate(key, text):
            if await self.tracker.end(key, entry) is None:
                return None
            await self.tracker.clear_attempts(key)
            return await self._approve(entry.request, entry.policy, vtype)

        attempts = await self.tracker.attempts(key)
        logger.info(f"❌ Неверный код: группа {group_id}, пользователь {user_id}, "
                    f"попытка {attempts}/{self.tracker.max_retry_count}")
        return Outcome.PENDING

    async def handle_private_message(self, user_id: int, text: str) -> Optional[Outcome]:
        """
        Проверяет ответ из личного чата с заявителем.

        Группа определяется по открытым проверкам пользователя: если их
        несколько, ответ относится к той, чей код совпал, иначе к самой
        свежей.
        """
        entries = await self.tracker.find_by_user(user_id)
        if not entries or not text:
            return None

        submitted = text.strip().upper()
        entry = next((e for e in entries if e.answer.upper() == submitted), entries[0])
        return await self.handle_message(entry.request.group_id, user_id, text)

    async def handle_timeout(self, entry: PendingVerification) -> Outcome:
        """Отклоняет заявку, на которую не ответили вовремя."""
        request, policy = entry.request, entry.policy
        await self.captcha.discard(entry.key)
        try:
            await self.platform.reject(request.group_id, request.user_id, request.flag, policy.timeout_msg)
        except PlatformError as e:
            logger.error(f"❌ Не удалось отклонить заявку по таймауту: группа {request.group_id}, "
                         f"пользователь {request.user_id}: {e}")
            return Outcome.FAILED

        await self._audit(request, VerifyType.TIMEOUT, VerifyResult.TIMEOUT)
        logger.info(f"⏰ Таймаут проверки: группа {request.group_id}, пользователь {request.user_id}")
        return Outcome.TIMED_OUT

    async def shutdown(self) -> None:
        """Снимает все открытые проверки и их таймеры."""
        await self.tracker.drain_all()

    async def _mint(self, policy: GroupPolicy) -> Tuple[str, Optional[bytes]]:
        if policy.mode is VerifyMode.IMAGE_CAPTCHA and self.settings.ENABLE_IMAGE_CAPTCHA:
            try:
                return await asyncio.to_thread(self.captcha.mint_image, policy.captcha_length)
            except CaptchaRenderError as e:
                logger.warning(f"⚠️ {e}, используется текстовая капча")
        return self.captcha.mint_text(policy.captcha_length), None

    @staticmethod
    def _captcha_type(policy: GroupPolicy) -> VerifyType:
        if policy.mode is VerifyMode.IMAGE_CAPTCHA:
            return VerifyType.IMAGE_CAPTCHA
        return VerifyType.CAPTCHA

    async def _is_whitelisted(self, user_id: int) -> bool:
        try:
            return await self.db.whitelist.exists(user_id)
        except StorageError as e:
            logger.error(f"Не удалось проверить белый список для {user_id}: {e}")
            return False

    async def _is_member(self, group_id: int, user_id: int) -> bool:
        try:
            return await self.platform.is_member(group_id, user_id)
        except PlatformError as e:
            logger.warning(f"⚠️ Не удалось проверить участника {user_id} в группе {group_id}: {e}")
            return False

    async def _approve(self, request: JoinRequest, policy: GroupPolicy, vtype: VerifyType) -> Outcome:
        try:
            await self.platform.approve(request.group_id, request.user_id, request.flag)
        except PlatformError as e:
            logger.error(f"❌ Не удалось одобрить заявку: группа {request.group_id}, "
                         f"пользователь {request.user_id}: {e}")
            return Outcome.FAILED

        await self._notify(request.group_id, f"{MESSAGE_PREFIX} {request.user_id} {policy.approve_msg}")
        await self._audit(request, vtype, VerifyResult.PASS)
        logger.info(f"✅ Заявка одобрена: группа {request.group_id}, пользователь {request.user_id}, "
                    f"тип {vtype.value}")
        return Outcome.APPROVED

    async def _reject(
        self, request: JoinRequest, policy: GroupPolicy, vtype: VerifyType, reason: str
    ) -> Outcome:
        try:
            await self.platform.reject(request.group_id, request.user_id, request.flag, policy.reject_msg)
        except PlatformError as e:
            logger.error(f"❌ Не удалось отклонить заявку: группа {request.group_id}, "
                         f"пользователь {request.user_id}: {e}")
            return Outcome.FAILED

        await self._notify(request.group_id, f"{MESSAGE_PREFIX} {request.user_id} {policy.reject_msg}")
        await self._audit(request, vtype, VerifyResult.FAIL)
        logger.info(f"🚫 Заявка отклонена: группа {request.group_id}, пользователь {request.user_id}, "
                    f"причина: {reason}")
        return Outcome.REJECTED

    async def _notify(self, group_id: int, text: str) -> None:
        try:
            await self.platform.send_message(group_id, text)
        except PlatformError as e:
            logger.warning(f"Не удалось отправить сообщение в группу {group_id}: {e}")

    async def _audit(self, request: JoinRequest, vtype: VerifyType, result: VerifyResult) -> None:
        if not self.settings.ENABLE_AUDIT:
            return
        record = AuditRecord(group_id=request.group_id, user_id=request.user_id, type=vtype, result=result)
        try:
            await self.db.audit.add(record)
        except StorageError as e:
            logger.error(f"Не удалось записать результат проверки в журнал: {e}")

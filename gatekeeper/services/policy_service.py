"""Сервис получения настроек проверки для группы."""

import asyncio
import time
from typing import Callable, Dict, List, Tuple

from loguru import logger

from config.settings import Settings
from gatekeeper.database.manager import DatabaseManager
from gatekeeper.database.models import GroupPolicy, VerifyMode
from gatekeeper.exceptions import StorageError


class PolicyService:
    """
    Настройки групп с коротким кэшем поверх хранилища.

    Группа, о которой хранилище ничего не знает, получает настройки по
    умолчанию, и они сразу сохраняются. Любое изменение настроек через
    save() сбрасывает кэш группы.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        settings: Settings,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.db = db_manager
        self.settings = settings
        self.cache_ttl = settings.POLICY_CACHE_TTL
        self._clock = clock
        self._cache: Dict[int, Tuple[GroupPolicy, float]] = {}
        self._lock = asyncio.Lock()

    def default_policy(self, group_id: int) -> GroupPolicy:
        """Настройки по умолчанию из конфигурации."""
        return GroupPolicy(
            group_id=group_id,
            mode=VerifyMode(self.settings.DEFAULT_VERIFY_MODE),
            captcha_length=self.settings.DEFAULT_CAPTCHA_LENGTH,
            timeout=self.settings.VERIFY_TIMEOUT,
            skip_in_group_user=self.settings.SKIP_IN_GROUP_USER,
            waiting_msg=self.settings.WAITING_MSG,
            approve_msg=self.settings.APPROVE_MSG,
            reject_msg=self.settings.REJECT_MSG,
            timeout_msg=self.settings.TIMEOUT_MSG,
        )

    async def _cached(self, group_id: int):
        async with self._lock:
            item = self._cache.get(group_id)
            if item is None:
                return None
            policy, fetched_at = item
            if self._clock() - fetched_at > self.cache_ttl:
                del self._cache[group_id]
                return None
            return policy

    async def resolve(self, group_id: int) -> GroupPolicy:
        """Возвращает действующие настройки группы."""
        policy = await self._cached(group_id)
        if policy is not None:
            return policy.model_copy()

        try:
            policy = await self.db.policies.get(group_id)
            if policy is None:
                policy = self.default_policy(group_id)
                if await self.db.policies.insert_if_absent(policy):
                    logger.info(f"Созданы настройки по умолчанию для группы {group_id}")
                else:
                    # запись успел создать параллельный запрос
                    policy = await self.db.policies.get(group_id) or policy
        except StorageError as e:
            logger.error(f"Не удалось прочитать настройки группы {group_id}, используются значения по умолчанию: {e}")
            return self.default_policy(group_id)

        async with self._lock:
            self._cache[group_id] = (policy, self._clock())
        return policy.model_copy()

    async def invalidate(self, group_id: int) -> None:
        """Сбрасывает кэш настроек группы."""
        async with self._lock:
            self._cache.pop(group_id, None)
        logger.debug(f"Кэш настроек группы {group_id} сброшен")

    async def save(self, policy: GroupPolicy) -> None:
        """Сохраняет настройки группы. Ошибки хранилища пробрасываются."""
        await self.db.policies.upsert(policy)
        await self.invalidate(policy.group_id)

    async def list_all(self) -> List[GroupPolicy]:
        return await self.db.policies.get_all()

"""Репозиторий для работы с таблицей group_policies."""

from typing import List, Optional

from .base import BaseRepository
from ..models.group_policy import GroupPolicy

_COLUMNS = (
    "group_id, mode, captcha_length, timeout, skip_in_group_user, "
    "waiting_msg, approve_msg, reject_msg, timeout_msg"
)


def _params(policy: GroupPolicy) -> tuple:
    return (
        policy.group_id, policy.mode.value, policy.captcha_length, policy.timeout,
        int(policy.skip_in_group_user), policy.waiting_msg, policy.approve_msg,
        policy.reject_msg, policy.timeout_msg,
    )


class PolicyRepository(BaseRepository):
    """Репозиторий для управления настройками групп."""

    async def get(self, group_id: int) -> Optional[GroupPolicy]:
        """Получение настроек группы по ID."""
        query = "SELECT * FROM group_policies WHERE group_id = ?"
        row = await self.fetchone(query, (group_id,))
        return GroupPolicy(**dict(row)) if row else None

    async def get_all(self) -> List[GroupPolicy]:
        """Получение настроек всех групп."""
        rows = await self.fetchall("SELECT * FROM group_policies ORDER BY group_id")
        return [GroupPolicy(**dict(row)) for row in rows]

    async def upsert(self, policy: GroupPolicy) -> None:
        """Добавление или обновление настроек группы."""
        query = f"""
            INSERT INTO group_policies ({_COLUMNS}, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, datetime('now'))
            ON CONFLICT(group_id) DO UPDATE SET
                mode = excluded.mode,
                captcha_length = excluded.captcha_length,
                timeout = excluded.timeout,
                skip_in_group_user = excluded.skip_in_group_user,
                waiting_msg = excluded.waiting_msg,
                approve_msg = excluded.approve_msg,
                reject_msg = excluded.reject_msg,
                timeout_msg = excluded.timeout_msg,
                updated_at = excluded.updated_at
        """
        await self.execute(query, _params(policy))

    async def insert_if_absent(self, policy: GroupPolicy) -> bool:
        """Создание настроек группы, если их еще нет. Возвращает True, если запись создана."""
        query = f"""
            INSERT INTO group_policies ({_COLUMNS}, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, datetime('now'))
            ON CONFLICT(group_id) DO NOTHING
        """
        cursor = await self.execute(query, _params(policy))
        return cursor.rowcount > 0

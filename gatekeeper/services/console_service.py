"""Операции для веб-консоли: чтение и запись настроек, белого списка и журнала."""

from typing import List, Optional

from gatekeeper.database.manager import DatabaseManager
from gatekeeper.database.models import AuditRecord, GroupPolicy, WhitelistEntry
from gatekeeper.services.policy_service import PolicyService


class ConsoleService:
    """
    Прямой доступ к хранилищу для консоли.

    Ошибки хранилища пробрасываются вызывающему как StorageError.
    """

    def __init__(self, db_manager: DatabaseManager, policies: PolicyService):
        self.db = db_manager
        self.policies = policies

    async def get_group_configs(self) -> List[GroupPolicy]:
        return await self.policies.list_all()

    async def save_group_config(self, data: dict) -> GroupPolicy:
        """Сохраняет настройки группы, присланные консолью."""
        policy = GroupPolicy.model_validate(data)
        await self.policies.save(policy)
        return policy

    async def get_whitelist(self) -> List[WhitelistEntry]:
        return await self.db.whitelist.get_all()

    async def add_to_whitelist(self, user_id: int, remark: Optional[str] = None) -> None:
        await self.db.whitelist.add(user_id, remark)

    async def remove_from_whitelist(self, user_id: int) -> bool:
        return await self.db.whitelist.remove(user_id)

    async def get_verify_records(
        self,
        group_id: Optional[int] = None,
        user_id: Optional[int] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[AuditRecord]:
        """Записи журнала с фильтром по группе и пользователю, сначала новые."""
        return await self.db.audit.query(group_id=group_id, user_id=user_id, limit=limit, offset=offset)

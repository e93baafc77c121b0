"""Сервис административных команд."""

from typing import Optional

from loguru import logger

from config.settings import Settings
from gatekeeper.database.manager import DatabaseManager
from gatekeeper.database.models import MAX_TIMEOUT, MIN_TIMEOUT, GroupPolicy, VerifyMode
from gatekeeper.exceptions import StorageError
from gatekeeper.services.policy_service import PolicyService

MODE_ALIASES = {"captcha": VerifyMode.TEXT_CAPTCHA}

HELP_TEXT = (
    "Использование: /verify <действие> [параметры]\n"
    "enable - включить проверку\n"
    "disable - выключить проверку (режим whitelist)\n"
    "mode <whitelist|text-captcha|image-captcha> - режим проверки\n"
    "timeout <60-3600> - время на ввод капчи в секундах\n"
    "whitelist add|remove <ID> [примечание] - белый список\n"
    "whitelist list - показать белый список\n"
    "admin add|remove <ID> [примечание] - супер-администраторы\n"
    "admin list - показать супер-администраторов\n"
    "audit - последние записи журнала"
)

ACCESS_DENIED = "❌ Недостаточно прав: команда доступна только супер-администраторам"
STORAGE_FAILED = "❌ Не удалось сохранить изменения, попробуйте позже"


def _parse_user_id(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class AdminService:
    """
    Команды управления проверкой.

    Каждая команда возвращает текст для пользователя. Ошибки ввода и
    ошибки записи в хранилище тоже возвращаются текстом, а не исключением.
    """

    def __init__(self, db_manager: DatabaseManager, policies: PolicyService, settings: Settings):
        self.db = db_manager
        self.policies = policies
        self.settings = settings

    async def is_operator(self, user_id: int) -> bool:
        """Супер-администратор из настроек или из базы."""
        if user_id in self.settings.OPERATOR_USER_IDS:
            return True
        try:
            return await self.db.operators.exists(user_id)
        except StorageError as e:
            logger.error(f"Не удалось проверить права пользователя {user_id}: {e}")
            return False

    async def execute(self, group_id: Optional[int], caller_id: int, action: Optional[str], *params: str) -> str:
        """Выполняет команду verify от имени caller_id."""
        if group_id is None:
            return "Используйте эту команду в группе"
        if not await self.is_operator(caller_id):
            logger.warning(f"🚫 Пользователь {caller_id} пытался выполнить verify {action} в группе {group_id}")
            return ACCESS_DENIED

        arg = params[0] if params else None
        remark = " ".join(params[2:]) or None

        if action == "enable":
            return await self.enable(group_id)
        if action == "disable":
            return await self.disable(group_id)
        if action == "mode":
            return await self.set_mode(group_id, arg)
        if action == "timeout":
            return await self.set_timeout(group_id, arg)
        if action in ("whitelist", "admin"):
            target = params[1] if len(params) > 1 else None
            if action == "whitelist":
                result = await self.manage_whitelist(arg, target, remark)
            else:
                result = await self.manage_operators(arg, target, remark)
            if arg in ("add", "remove"):
                await self.policies.invalidate(group_id)
            return result
        if action == "audit":
            return await self.audit(group_id)
        return HELP_TEXT

    async def _update_policy(self, group_id: int, **changes) -> Optional[GroupPolicy]:
        policy = await self.policies.resolve(group_id)
        updated = policy.model_copy(update=changes)
        try:
            await self.policies.save(updated)
        except StorageError as e:
            logger.error(f"Не удалось сохранить настройки группы {group_id}: {e}")
            await self.policies.invalidate(group_id)
            return None
        logger.info(f"⚙️ Настройки группы {group_id} изменены: {changes}")
        return updated

    async def enable(self, group_id: int) -> str:
        mode = VerifyMode(self.settings.DEFAULT_CAPTCHA_MODE)
        if await self._update_policy(group_id, mode=mode) is None:
            return STORAGE_FAILED
        return f"✅ Проверка включена, режим: {mode.value}"

    async def disable(self, group_id: int) -> str:
        if await self._update_policy(group_id, mode=VerifyMode.WHITELIST) is None:
            return STORAGE_FAILED
        return "✅ Проверка выключена: принимаются только пользователи из белого списка"

    async def set_mode(self, group_id: int, mode: Optional[str]) -> str:
        valid = ", ".join(m.value for m in VerifyMode)
        if mode is None:
            return f"❌ Укажите режим: {valid}"
        try:
            new_mode = MODE_ALIASES.get(mode) or VerifyMode(mode)
        except ValueError:
            return f"❌ Неизвестный режим, выберите: {valid}"

        if await self._update_policy(group_id, mode=new_mode) is None:
            return STORAGE_FAILED
        return f"✅ Режим проверки: {new_mode.value}"

    async def set_timeout(self, group_id: int, timeout: Optional[str]) -> str:
        try:
            seconds = int(timeout) if timeout is not None else None
        except ValueError:
            seconds = None
        if seconds is None or not MIN_TIMEOUT <= seconds <= MAX_TIMEOUT:
            return f"❌ Некорректное время, укажите от {MIN_TIMEOUT} до {MAX_TIMEOUT} секунд"

        if await self._update_policy(group_id, timeout=seconds) is None:
            return STORAGE_FAILED
        return f"✅ Время на ввод капчи: {seconds} с"

    async def manage_whitelist(self, action: Optional[str], target: Optional[str], remark: Optional[str] = None) -> str:
        if action == "list":
            return await self.whitelist_list()
        if action not in ("add", "remove"):
            return "❌ Неизвестное действие, используйте add/remove/list"

        user_id = _parse_user_id(target)
        if user_id is None:
            return "❌ Некорректный ID пользователя"
        if action == "add":
            return await self.whitelist_add(user_id, remark)
        return await self.whitelist_remove(user_id)

    async def whitelist_add(self, user_id: int, remark: Optional[str] = None) -> str:
        try:
            await self.db.whitelist.add(user_id, remark)
        except StorageError as e:
            logger.error(f"Не удалось добавить {user_id} в белый список: {e}")
            return STORAGE_FAILED
        logger.info(f"Пользователь {user_id} добавлен в белый список")
        return f"✅ Пользователь {user_id} добавлен в белый список"

    async def whitelist_remove(self, user_id: int) -> str:
        try:
            removed = await self.db.whitelist.remove(user_id)
        except StorageError as e:
            logger.error(f"Не удалось удалить {user_id} из белого списка: {e}")
            return STORAGE_FAILED
        if not removed:
            return f"ℹ️ Пользователя {user_id} нет в белом списке"
        logger.info(f"Пользователь {user_id} удален из белого списка")
        return f"✅ Пользователь {user_id} удален из белого списка"

    async def whitelist_list(self) -> str:
        try:
            entries = await self.db.whitelist.get_all()
        except StorageError as e:
            logger.error(f"Не удалось прочитать белый список: {e}")
            return "❌ Не удалось прочитать белый список"
        if not entries:
            return "📋 Белый список пуст"
        lines = [f"{e.user_id} ({e.remark})" if e.remark else str(e.user_id) for e in entries]
        return "📋 Белый список:\n" + "\n".join(lines)

    async def manage_operators(self, action: Optional[str], target: Optional[str], remark: Optional[str] = None) -> str:
        if action == "list":
            return await self.operator_list()
        if action not in ("add", "remove"):
            return "❌ Неизвестное действие, используйте add/remove/list"

        user_id = _parse_user_id(target)
        if user_id is None:
            return "❌ Некорректный ID пользователя"
        if action == "add":
            return await self.operator_add(user_id, remark)
        return await self.operator_remove(user_id)

    async def operator_add(self, user_id: int, remark: Optional[str] = None) -> str:
        try:
            await self.db.operators.add(user_id, remark)
        except StorageError as e:
            logger.error(f"Не удалось добавить супер-администратора {user_id}: {e}")
            return STORAGE_FAILED
        logger.info(f"Пользователь {user_id} назначен супер-администратором")
        return f"✅ Пользователь {user_id} назначен супер-администратором"

    async def operator_remove(self, user_id: int) -> str:
        try:
            removed = await self.db.operators.remove(user_id)
        except StorageError as e:
            logger.error(f"Не удалось удалить супер-администратора {user_id}: {e}")
            return STORAGE_FAILED
        if not removed:
            return f"ℹ️ Пользователь {user_id} не является супер-администратором"
        logger.info(f"Пользователь {user_id} больше не супер-администратор")
        return f"✅ Пользователь {user_id} больше не супер-администратор"

    async def operator_list(self) -> str:
        try:
            operators = await self.db.operators.get_all()
        except StorageError as e:
            logger.error(f"Не удалось прочитать список супер-администраторов: {e}")
            return "❌ Не удалось прочитать список супер-администраторов"

        lines = [f"{o.user_id} ({o.remark})" if o.remark else str(o.user_id) for o in operators]
        stored = {o.user_id for o in operators}
        lines.extend(f"{uid} (из настроек)" for uid in self.settings.OPERATOR_USER_IDS if uid not in stored)
        if not lines:
            return "📋 Супер-администраторов нет"
        return "📋 Супер-администраторы:\n" + "\n".join(lines)

    async def audit(self, group_id: int, limit: Optional[int] = None) -> str:
        limit = limit or self.settings.AUDIT_QUERY_LIMIT
        try:
            records = await self.db.audit.query(group_id=group_id, limit=limit)
        except StorageError as e:
            logger.error(f"Не удалось прочитать журнал группы {group_id}: {e}")
            return "❌ Не удалось прочитать журнал"
        if not records:
            return "📋 Записей о проверках нет"

        lines = [
            f"{r.created_at:%d.%m.%Y %H:%M:%S} - {r.user_id} - {r.type.value} - {r.result.value}"
            if r.created_at else f"{r.user_id} - {r.type.value} - {r.result.value}"
            for r in records
        ]
        return f"📋 Последние записи ({len(records)}):\n" + "\n".join(lines)

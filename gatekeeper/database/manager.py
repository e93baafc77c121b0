from pathlib import Path
from typing import Optional

from loguru import logger
import aiosqlite

from gatekeeper.database.repositories import (
    AuditRepository,
    OperatorRepository,
    PolicyRepository,
    WhitelistRepository,
)


class DatabaseManager:
    """
    Управление базой данных SQLite и репозиториями.

    Отвечает за инициализацию соединения и создание таблиц,
    а также предоставляет доступ к репозиториям для работы с данными.
    """

    def __init__(self, db_path: str):
        """Инициализация менеджера базы данных."""
        self.db_path = db_path
        self.conn: Optional[aiosqlite.Connection] = None
        self.policies: Optional[PolicyRepository] = None
        self.whitelist: Optional[WhitelistRepository] = None
        self.operators: Optional[OperatorRepository] = None
        self.audit: Optional[AuditRepository] = None

    async def init_database(self) -> None:
        """Инициализация соединения с базой данных и создание таблиц."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self.conn = await aiosqlite.connect(self.db_path)
        self.conn.row_factory = aiosqlite.Row
        await self._run_sql_scripts()
        self._init_repositories()
        logger.info("База данных и репозитории успешно инициализированы")

    def _init_repositories(self) -> None:
        """Инициализация всех репозиториев."""
        self.policies = PolicyRepository(self.conn)
        self.whitelist = WhitelistRepository(self.conn)
        self.operators = OperatorRepository(self.conn)
        self.audit = AuditRepository(self.conn)

    async def _run_sql_scripts(self) -> None:
        """
        Выполнение SQL-скриптов для создания таблиц.

        Скрипты читаются из директории gatekeeper/database/sql
        и выполняются в алфавитном порядке.
        """
        sql_dir = Path(__file__).parent / "sql"
        scripts = sorted(sql_dir.glob("*.sql"))

        async with self.conn.cursor() as cursor:
            for script_path in scripts:
                try:
                    sql_query = script_path.read_text(encoding="utf-8").strip()
                    await cursor.execute(sql_query)
                except Exception as e:
                    logger.error(f"❌ Ошибка выполнения SQL-скрипта {script_path.name}: {e}")
                    raise

        await self.conn.commit()
        logger.info(f"Инициализация БД завершена: выполнено {len(scripts)} SQL-скриптов")

    async def close(self) -> None:
        """Закрытие соединения с базой данных."""
        if self.conn:
            await self.conn.close()
            self.conn = None
            logger.info("Соединение с базой данных закрыто")

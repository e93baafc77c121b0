"""Основной класс приложения для управления ботом."""

from typing import Optional

from aiogram import Bot, Dispatcher
from loguru import logger

from config.settings import Settings
from gatekeeper.database.manager import DatabaseManager
from gatekeeper.dispatcher_setup import setup_dispatcher
from gatekeeper.platform.telegram import TelegramPlatform
from gatekeeper.services.admin_service import AdminService
from gatekeeper.services.captcha_service import CaptchaService
from gatekeeper.services.console_service import ConsoleService
from gatekeeper.services.policy_service import PolicyService
from gatekeeper.services.request_tracker import RequestTracker
from gatekeeper.services.verification_service import VerificationService
from gatekeeper.utils.commands import set_bot_commands
from gatekeeper.web import ConsoleServer, create_console_app


class BotApp:
    """
    Основной класс приложения, который инициализирует и координирует
    все компоненты бота: настройки, базу данных, диспетчер, сервисы.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.bot: Optional[Bot] = None
        self.dp: Optional[Dispatcher] = None
        self.db_manager: Optional[DatabaseManager] = None
        self.captcha: Optional[CaptchaService] = None
        self.verification_service: Optional[VerificationService] = None
        self.admin_service: Optional[AdminService] = None
        self.console_service: Optional[ConsoleService] = None
        self.console_server: Optional[ConsoleServer] = None
        self._stopped = False

    async def _setup_bot_and_dispatcher(self):
        """Инициализирует бота и диспетчер."""
        self.bot = Bot(token=self.settings.get_bot_token())
        self.dp = Dispatcher()
        logger.info("Бот и диспетчер успешно настроены.")

    async def _setup_database(self):
        """Инициализирует менеджер базы данных."""
        self.db_manager = DatabaseManager(self.settings.DATABASE_PATH)
        await self.db_manager.init_database()
        logger.info("База данных успешно инициализирована.")

    def _setup_services(self):
        """Создает сервисы, которые живут все время работы бота."""
        policies = PolicyService(self.db_manager, self.settings)
        self.captcha = CaptchaService(sweep_interval=self.settings.CAPTCHA_SWEEP_INTERVAL)
        tracker = RequestTracker(
            max_retry_count=self.settings.MAX_RETRY_COUNT,
            amnesty_seconds=self.settings.RETRY_AMNESTY_SECONDS,
        )
        self.verification_service = VerificationService(
            platform=TelegramPlatform(self.bot),
            db_manager=self.db_manager,
            policies=policies,
            captcha=self.captcha,
            tracker=tracker,
            settings=self.settings,
        )
        self.admin_service = AdminService(self.db_manager, policies, self.settings)
        self.console_service = ConsoleService(self.db_manager, policies)
        if self.settings.CONSOLE_ENABLED:
            app = create_console_app(self.console_service, self.settings.CONSOLE_TOKEN.get_secret_value())
            self.console_server = ConsoleServer(app, self.settings.CONSOLE_HOST, self.settings.CONSOLE_PORT)
        logger.info("Сервисы проверки созданы.")

    async def _setup_dispatcher(self):
        """Настраивает и регистрирует все компоненты в диспетчере."""
        setup_dispatcher(
            dp=self.dp,
            verification_service=self.verification_service,
            admin_service=self.admin_service,
            settings=self.settings,
        )
        logger.info("Диспетчер полностью настроен.")

    async def on_startup(self):
        """Выполняется при старте бота."""
        logger.info("Запуск бота...")
        try:
            await set_bot_commands(self.bot)
            logger.info("Команды бота успешно установлены")
        except Exception as e:
            logger.error(f"Ошибка при установке команд бота: {e}")

        self.captcha.start()
        if self.console_server:
            self.console_server.start()
        logger.info("Периодические задачи запущены.")

    async def on_shutdown(self):
        """Выполняется при остановке бота. Повторный вызов ничего не делает."""
        if self._stopped:
            return
        self._stopped = True

        logger.info("Остановка бота...")
        if self.verification_service:
            await self.verification_service.shutdown()
        if self.console_server:
            await self.console_server.stop()
        if self.captcha:
            await self.captcha.stop()
        if self.db_manager:
            await self.db_manager.close()
        if self.bot:
            await self.bot.session.close()
        logger.info("Все ресурсы освобождены. Бот остановлен.")

    async def run(self):
        """Главный метод для запуска бота."""
        try:
            await self._setup_bot_and_dispatcher()
            await self._setup_database()
            self._setup_services()
            await self._setup_dispatcher()

            self.dp.startup.register(self.on_startup)
            self.dp.shutdown.register(self.on_shutdown)

            allowed_updates = self.dp.resolve_used_update_types()
            if "chat_join_request" not in allowed_updates:
                allowed_updates.append("chat_join_request")

            logger.debug(f"Типы обновлений: {allowed_updates}")

            await self.dp.start_polling(
                self.bot,
                allowed_updates=allowed_updates,
            )
        except Exception as e:
            logger.opt(exception=e).critical(f"Критическая ошибка при запуске бота: {e}")
        finally:
            await self.on_shutdown()

"""
HTTP API консоли: настройки групп, белый список и журнал проверок.
"""
import asyncio
import contextlib
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from gatekeeper import __version__
from gatekeeper.database.models import GroupPolicy
from gatekeeper.exceptions import StorageError
from gatekeeper.services.console_service import ConsoleService


class WhitelistChange(BaseModel):
    """Тело запроса на изменение белого списка."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")
    remark: Optional[str] = None


def create_console_app(console: ConsoleService, token: str = "") -> FastAPI:
    """Создает приложение FastAPI с маршрутами консоли."""

    async def check_token(authorization: Optional[str] = Header(default=None)):
        if token and authorization != f"Bearer {token}":
            raise HTTPException(status_code=401, detail="unauthorized")

    app = FastAPI(title="Join Gatekeeper Console", version=__version__)
    router = APIRouter(prefix="/api", dependencies=[Depends(check_token)])

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(f"Ошибка хранилища в API консоли {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"success": False, "detail": str(exc)})

    @router.get("/group-configs")
    async def get_group_configs():
        return await console.get_group_configs()

    @router.post("/group-config")
    async def save_group_config(policy: GroupPolicy):
        await console.save_group_config(policy.model_dump())
        return {"success": True}

    @router.get("/whitelist")
    async def get_whitelist():
        return await console.get_whitelist()

    @router.post("/whitelist/add")
    async def add_to_whitelist(data: WhitelistChange):
        await console.add_to_whitelist(data.user_id, data.remark)
        return {"success": True}

    @router.post("/whitelist/remove")
    async def remove_from_whitelist(data: WhitelistChange):
        removed = await console.remove_from_whitelist(data.user_id)
        return {"success": True, "removed": removed}

    @router.get("/records")
    async def get_records(
        group_id: Optional[int] = Query(default=None, alias="groupId"),
        user_id: Optional[int] = Query(default=None, alias="userId"),
        limit: int = 50,
        offset: int = 0,
    ):
        return await console.get_verify_records(group_id=group_id, user_id=user_id, limit=limit, offset=offset)

    app.include_router(router)
    return app


class _EmbeddedServer(uvicorn.Server):
    """Сервер uvicorn без своих обработчиков сигналов: остановкой управляет бот."""

    @contextlib.contextmanager
    def capture_signals(self):
        yield


class ConsoleServer:
    """Запускает API консоли в том же цикле событий, что и polling бота."""

    def __init__(self, app: FastAPI, host: str, port: int):
        self._server = _EmbeddedServer(uvicorn.Config(app, host=host, port=port, log_level="warning"))
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._serve())
            logger.info(f"🌐 API консоли: http://{self._server.config.host}:{self._server.config.port}/api")

    async def _serve(self) -> None:
        try:
            await self._server.serve()
        except SystemExit:
            # uvicorn завершает процесс, если не смог занять порт
            logger.error("Не удалось запустить API консоли")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._server.should_exit = True
        await self._task
        self._task = None
        logger.info("API консоли остановлено")

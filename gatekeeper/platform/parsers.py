"""
Разбор заявок на вступление от разных платформ.

Каждая платформа присылает заявку в своем формате. Здесь они приводятся к
JoinRequest; дальше платформа нигде не различается.
"""
from typing import Any, Callable, Dict, Optional

from aiogram.types import ChatJoinRequest

from gatekeeper.exceptions import UnsupportedPlatformError
from .base import JoinRequest

Parser = Callable[[Any], Optional[JoinRequest]]


def _ids(group_id: Any, user_id: Any) -> Optional[tuple[int, int]]:
    try:
        return int(group_id), int(user_id)
    except (TypeError, ValueError):
        return None


def _parse_onebot(event: dict) -> Optional[JoinRequest]:
    standard = event.get("post_type") == "request" and event.get("request_type") == "group"
    legacy = event.get("post_type") == "notice" and event.get("notice_type") == "group_request"
    if not (standard or legacy) or event.get("sub_type", "add") != "add":
        return None
    ids = _ids(event.get("group_id"), event.get("user_id"))
    if ids is None:
        return None
    return JoinRequest(platform="onebot", group_id=ids[0], user_id=ids[1], flag=str(event.get("flag", "")))


def _parse_red(event: dict) -> Optional[JoinRequest]:
    if event.get("type") != "notice.group.request.add":
        return None
    ids = _ids(event.get("groupId"), event.get("userId"))
    if ids is None:
        return None
    return JoinRequest(platform="red", group_id=ids[0], user_id=ids[1], flag=str(event.get("flag", "")))


def _parse_milky(event: dict) -> Optional[JoinRequest]:
    if event.get("type") != "milky.group.request.add":
        return None
    ids = _ids(event.get("group_id"), event.get("user_id"))
    if ids is None:
        return None
    return JoinRequest(platform="milky", group_id=ids[0], user_id=ids[1], flag=str(event.get("flag", "")))


def _parse_guild_member_request(event: dict) -> Optional[JoinRequest]:
    if event.get("type") != "guild-member-request":
        return None
    ids = _ids(event.get("groupId", event.get("group_id")), event.get("userId", event.get("user_id")))
    if ids is None:
        return None
    return JoinRequest(
        platform="guild-member-request", group_id=ids[0], user_id=ids[1], flag=str(event.get("flag", ""))
    )


def _parse_telegram(event: ChatJoinRequest) -> Optional[JoinRequest]:
    if not isinstance(event, ChatJoinRequest):
        return None
    # в Telegram заявку однозначно определяют чат и пользователь, флаг - личный чат с заявителем
    return JoinRequest(
        platform="telegram",
        group_id=event.chat.id,
        user_id=event.from_user.id,
        flag=str(event.user_chat_id),
    )


JOIN_REQUEST_PARSERS: Dict[str, Parser] = {
    "onebot": _parse_onebot,
    "red": _parse_red,
    "milky": _parse_milky,
    "guild-member-request": _parse_guild_member_request,
    "telegram": _parse_telegram,
}


def parse_join_request(platform: str, raw: Any) -> Optional[JoinRequest]:
    """
    Приводит событие платформы к JoinRequest.

    Возвращает None, если событие не является заявкой на вступление.
    Для неизвестной платформы выбрасывает UnsupportedPlatformError.
    """
    parser = JOIN_REQUEST_PARSERS.get(platform)
    if parser is None:
        raise UnsupportedPlatformError(f"Платформа {platform} не поддерживается")
    if platform != "telegram" and not isinstance(raw, dict):
        return None
    return parser(raw)

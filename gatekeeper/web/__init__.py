from .console_api import ConsoleServer, create_console_app

__all__ = ["ConsoleServer", "create_console_app"]

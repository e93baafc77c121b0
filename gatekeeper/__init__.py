"""Проверка заявок на вступление в группу: белый список, капча, таймауты."""

__version__ = "1.0.0"

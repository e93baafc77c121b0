#!/usr/bin/env python3
"""
Валидация конфигурации бота проверки заявок

Проверяет:
- Наличие .env и обязательных полей
- Формат токена и реальное подключение к Telegram API
- Список супер-администраторов и режимы проверки
"""

import os
import re
import sys

import requests

VERIFY_MODES = ("whitelist", "text-captcha", "image-captcha")


def load_env_file(path='.env'):
    """Проверяем наличие и формат .env файла"""
    if not os.path.exists(path):
        print("❌ .env file not found!")
        print("Please create .env file with your configuration")
        return None

    env_vars = {}
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                env_vars[key.strip()] = value.strip()

    if not env_vars.get('BOT_TOKEN'):
        print("❌ Missing or empty BOT_TOKEN in .env file")
        return None

    return env_vars


def validate_telegram_token(token, timeout=10):
    """Проверяем формат и работоспособность Telegram токена"""
    if not re.match(r'^\d+:[a-zA-Z0-9_-]+$', token):
        print("❌ Invalid Telegram bot token format")
        print("   Should be like: 123456789:ABCdefGHI...")
        return False

    try:
        response = requests.get(f'https://api.telegram.org/bot{token}/getMe', timeout=timeout)
    except requests.exceptions.RequestException as e:
        print(f"❌ Network error connecting to Telegram: {e}")
        return False

    if response.status_code == 401:
        print("❌ Invalid bot token (401 Unauthorized)")
        return False
    if response.status_code != 200:
        print(f"❌ Telegram API error: {response.status_code}")
        return False

    data = response.json()
    if not data.get('ok'):
        print("❌ Invalid bot token (API returned error)")
        return False

    print(f"✅ Bot connected successfully: @{data.get('result', {}).get('username', 'unknown')}")
    return True


def validate_operator_ids(operator_ids):
    """Проверяем формат OPERATOR_USER_IDS"""
    if not operator_ids or not operator_ids.strip():
        print("⚠️ Operator IDs not specified (add operators with /verify admin add)")
        return True

    try:
        ids = [int(x.strip()) for x in operator_ids.split(',') if x.strip()]
    except ValueError:
        print("❌ Invalid OPERATOR_USER_IDS format")
        print("   Should be comma-separated numbers: 123456789,987654321")
        return False

    for user_id in ids:
        if user_id <= 0:
            print(f"❌ Invalid operator user ID: {user_id} (should be positive)")
            return False
    print(f"✅ Operator IDs format is valid ({len(ids)} operators)")
    return True


def validate_modes(env_vars):
    """Проверяем режимы проверки по умолчанию"""
    for field in ('DEFAULT_VERIFY_MODE', 'DEFAULT_CAPTCHA_MODE'):
        value = env_vars.get(field)
        if value and value not in VERIFY_MODES:
            print(f"❌ Invalid {field}: {value} (expected one of {', '.join(VERIFY_MODES)})")
            return False
    return True


def main():
    print("🔍 Join Gatekeeper - Configuration Validation")
    print("=" * 50)

    env_vars = load_env_file()
    if not env_vars:
        sys.exit(1)

    print("\n🔍 Validating configuration...")
    checks = [
        validate_telegram_token(env_vars['BOT_TOKEN']),
        validate_operator_ids(env_vars.get('OPERATOR_USER_IDS', '')),
        validate_modes(env_vars),
    ]

    if not all(checks):
        print("\n❌ Configuration validation failed!")
        print("Please fix the issues above before running the bot.")
        sys.exit(1)

    print("\n✅ All configuration checks passed!")
    print("Bot is ready to start.")


if __name__ == "__main__":
    main()

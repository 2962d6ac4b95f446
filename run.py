import asyncio
import logging
import os

import uvicorn
from dotenv import load_dotenv

from bot.bot import bot, dp, api, clear_cache_periodically

load_dotenv()

API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")

logging.basicConfig(level=LOG_LEVEL.upper())
logger = logging.getLogger(__name__)


async def start_bot():
    """Запускаем Telegram-бота (aiogram) через long polling."""
    try:
        # Если ранее был какой-то вебхук, удаляем
        await bot.delete_webhook(drop_pending_updates=True)
    except Exception as e:
        logger.exception("Не смог удалить предыдущий webhook: %s", e)

    asyncio.create_task(clear_cache_periodically())
    try:
        await dp.start_polling(bot, skip_updates=True)
    finally:
        await api.close()


async def main():
    # 1) API каталога (FastAPI) под Uvicorn, 2) бот — клиент этого API
    config = uvicorn.Config(
        "app.main:app",
        host=API_HOST,
        port=API_PORT,
        log_level=LOG_LEVEL,
    )
    server = uvicorn.Server(config)

    task_api = asyncio.create_task(server.serve())
    task_bot = asyncio.create_task(start_bot())

    await asyncio.wait([task_api, task_bot], return_when=asyncio.FIRST_COMPLETED)


if __name__ == "__main__":
    asyncio.run(main())

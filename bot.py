# bot.py
# -*- coding: utf-8 -*-
"""
ShillBot entry point: builds the Application, wires services into bot_data,
registers handlers and schedules the maintenance jobs.
Run with `python bot.py [--staging] [--debug]`.
"""

import logging
import sys
from typing import List
from telegram import Update
from telegram.ext import (
    Application, ApplicationBuilder, CommandHandler, MessageHandler,
    CallbackQueryHandler, InlineQueryHandler, ChosenInlineResultHandler,
    Defaults, filters,
)
from telegram.constants import ParseMode
import config
from api.storage_api import GcsBlobStore
from services.container import SERVICES_KEY, build_services
from services.maintenance import schedule_maintenance
from utils.telegram_helpers import make_membership_checker
from handlers import commands as command_handlers
from handlers import errors as error_handlers
from handlers import generation as generation_handlers
from handlers import callbacks as callback_handlers
from handlers import inline as inline_handlers

logger = logging.getLogger(__name__)


# ================================== register_handlers(): Adds all update handlers ==================================
def register_handlers(application: Application):
    application.add_error_handler(error_handlers.error_handler)

    # Group 0: Commands
    application.add_handler(CommandHandler("start", command_handlers.start, block=False), group=0)
    application.add_handler(CommandHandler("help", command_handlers.help_command, block=False), group=0)
    application.add_handler(CommandHandler("moods", command_handlers.moods_command, block=False), group=0)
    application.add_handler(CommandHandler("promo", command_handlers.promo_command, block=False), group=0)
    application.add_handler(CommandHandler("leaderboard", command_handlers.leaderboard_command, block=False), group=0)
    application.add_handler(CommandHandler("points", command_handlers.points_command, block=False), group=0)
    application.add_handler(CommandHandler("status", command_handlers.status_command, block=False), group=0)

    # Group 1: Prompts
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, generation_handlers.handle_text_message, block=False), group=1)

    # Group 10: Share buttons and inline sharing
    application.add_handler(CallbackQueryHandler(callback_handlers.handle_callback_query, block=False), group=10)
    application.add_handler(InlineQueryHandler(inline_handlers.handle_inline_query, block=False), group=10)
    application.add_handler(ChosenInlineResultHandler(inline_handlers.handle_chosen_inline_result, block=False), group=10)
    logger.info("Регистрация обработчиков завершена.")
# ================================== register_handlers() end ==================================


# ================================== build_application(): Creates Application with services ==================================
def build_application() -> Application:
    bot_defaults = Defaults(parse_mode=ParseMode.HTML)
    application = (ApplicationBuilder().token(config.TELEGRAM_BOT_TOKEN).defaults(bot_defaults)
                   .connect_timeout(30).read_timeout(30).write_timeout(60).pool_timeout(60).build())
    blob_store = GcsBlobStore() if config.STORAGE_BUCKET else None
    services = build_services(
        membership_checker=make_membership_checker(application.bot, config.REQUIRED_CHANNEL_ID),
        blob_store=blob_store,
    )
    application.bot_data[SERVICES_KEY] = services
    register_handlers(application)
    if application.job_queue is None:
        logger.critical("JobQueue недоступен: установите python-telegram-bot[job-queue].")
        sys.exit(1)
    schedule_maintenance(application.job_queue, services)
    return application
# ================================== build_application() end ==================================


# ================================== main(): Initializes and runs the bot ==================================
def main():
    logger.info("Инициализация бота...")
    problems: List[str] = config.validate_config()
    if problems:
        for problem in problems:
            logger.critical(f"Конфигурация: {problem}")
        sys.exit(1)
    application = build_application()
    logger.info("Запуск бота (run_polling)...")
    application.run_polling(allowed_updates=Update.ALL_TYPES, drop_pending_updates=True)
# ================================== main() end ==================================


if __name__ == "__main__":
    logger.info("Запуск основного скрипта...")
    try:
        main()
    except KeyboardInterrupt:
        logger.info("Получен KeyboardInterrupt.")
    finally:
        logger.info("Скрипт завершил работу.")

# bot.py end

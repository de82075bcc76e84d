import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage

from nutribot.config import load_config
from nutribot.db import DB
from nutribot.middleware import DBMiddleware
from nutribot.services.ai import AIService
from nutribot.handlers.start import router as start_router
from nutribot.handlers.misc import router as misc_router
from nutribot.handlers.tracking import router as tracking_router
from nutribot.handlers.supplements import router as supplements_router
from nutribot.handlers.exams import router as exams_router
from nutribot.handlers.ai import router as ai_router
from nutribot.handlers.food import router as food_router

logger = logging.getLogger(__name__)


async def main():
    cfg = load_config()
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    db = DB(cfg.db_path, cfg.tz)

    ai = None
    if cfg.ai_enabled:
        ai = AIService.from_key(cfg.openai_api_key, cfg.openai_model)
    else:
        logger.warning("OPENAI_API_KEY not set, meal plans and exam analysis are disabled")

    bot = Bot(token=cfg.bot_token)
    dp = Dispatcher(storage=MemoryStorage())

    mw = DBMiddleware(db, cfg, ai)
    dp.message.middleware(mw)
    dp.callback_query.middleware(mw)

    dp.include_router(start_router)
    dp.include_router(misc_router)
    dp.include_router(tracking_router)
    dp.include_router(supplements_router)
    dp.include_router(exams_router)
    dp.include_router(ai_router)
    # free-text meal logging catches everything else, so it goes last
    dp.include_router(food_router)

    logger.info("starting polling (db=%s, tz=%s)", cfg.db_path, cfg.tz)
    try:
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        db.close()
        logger.info("stopped")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()

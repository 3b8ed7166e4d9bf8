import asyncio
import logging
import traceback
from aiogram import Bot, Dispatcher
from .auth import AuthContext
from .config import load_settings
from .db import ensure_schema, make_engine, make_sessionmaker
from .handlers import register_handlers
from .lessons import list_lessons

async def _notify_admins(bot: Bot, admin_ids: list[int], message: str) -> None:
    chunk_size = 4000
    chunks = [message[i : i + chunk_size] for i in range(0, len(message), chunk_size)] or [message]
    for admin_id in admin_ids:
        for chunk in chunks:
            await bot.send_message(admin_id, chunk, parse_mode=None)

async def main():
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    log = logging.getLogger(__name__)
    bot = Bot(settings.bot_token)
    auth = AuthContext()
    engine = make_engine(settings)
    try:
        await ensure_schema(engine)
        sessionmaker = make_sessionmaker(engine)
        async with sessionmaker() as s:
            lessons = await list_lessons(s)
        empty = [lesson.id for lesson in lessons if lesson.question_count == 0]
        log.info("startup lessons=%s empty_lessons=%s", len(lessons), empty)

        dp = Dispatcher()
        register_handlers(dp, settings=settings, sessionmaker=sessionmaker, auth=auth)

        await dp.start_polling(bot)
    except Exception:
        error_text = traceback.format_exc()
        log.exception("bot_run_failed")
        try:
            await _notify_admins(
                bot,
                settings.admin_ids,
                f"Bot error detected:\n\n{error_text}",
            )
        except Exception:
            log.exception("failed_to_notify_admins")
        raise
    finally:
        auth.close()
        await engine.dispose()
        await bot.session.close()

if __name__ == "__main__":
    asyncio.run(main())

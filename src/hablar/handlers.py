from __future__ import annotations
import logging
from dataclasses import dataclass

from aiogram import Dispatcher, F
from aiogram.types import Message, CallbackQuery, User as TgUser
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.utils.formatting import Text, Bold, Code
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession

from .auth import AuthContext, AuthEvent, Identity, SIGNED_OUT
from .config import Settings
from .errors import EmptyAnswerSetError, NoAnswerSubmittedError
from .grader import GradeResult
from .i18n import t
from .keyboards import kb_lang, kb_lessons, kb_next, kb_results
from .lessons import (
    completed_lesson_ids,
    list_lessons,
    load_lesson,
    load_questions,
    media_url,
    record_progress,
)
from .models import Lesson, PracticeQuestion, User
from .session import COMPLETE, LessonSession

logger = logging.getLogger(__name__)

# ---------------- running lessons ----------------
@dataclass
class ActiveLesson:
    lesson_id: int
    title: str
    session: LessonSession

class SessionRegistry:
    """One running lesson per user, dropped when the user signs out or leaves."""

    def __init__(self) -> None:
        self._active: dict[int, ActiveLesson] = {}

    def get(self, user_id: int) -> ActiveLesson | None:
        return self._active.get(user_id)

    def start(self, user_id: int, active: ActiveLesson) -> None:
        self._active[user_id] = active

    def discard(self, user_id: int) -> bool:
        return self._active.pop(user_id, None) is not None

    def on_auth_event(self, event: AuthEvent) -> None:
        if event.kind == SIGNED_OUT and self.discard(event.identity.user_id):
            logger.info("lesson_discarded user_id=%s reason=signed_out", event.identity.user_id)

    def __len__(self) -> int:
        return len(self._active)

# ---------------- message builders ----------------
def score_band(percent: int) -> tuple[str, str]:
    if percent >= 90:
        return "🎉", "band_excellent"
    if percent >= 80:
        return "⭐", "band_great"
    if percent >= 70:
        return "👍", "band_well_done"
    if percent >= 50:
        return "📚", "band_good_effort"
    return "💪", "band_keep_practicing"

def build_question_message(active: ActiveLesson, ui_lang: str, media_base_url: str = "") -> dict[str, object]:
    session = active.session
    q = session.current_question
    if q is None:
        raise NoAnswerSubmittedError("lesson is already completed")
    parts: list[object] = [
        Bold(active.title),
        "\n",
        t("question_header", ui_lang, n=session.position + 1, total=len(session)),
        f" ({session.progress_percent()}%)",
        "\n\n",
        q.question,
    ]
    image = media_url(q.image, media_base_url)
    if image:
        parts.extend(["\n🖼 ", image])
    audio = media_url(q.audio, media_base_url)
    if audio:
        parts.extend(["\n🔊 ", audio])
    if len(q.answers) > 1:
        parts.extend(["\n\n", t("hint_available", ui_lang)])
    return Text(*parts).as_kwargs()

def build_feedback_message(result: GradeResult, user_answer: str, ui_lang: str) -> dict[str, object]:
    parts: list[object] = [t("correct", ui_lang) if result.correct else t("wrong", ui_lang)]
    if result.accent_hint and result.matched:
        parts.extend(["\n", t("accent_hint", ui_lang), " ", Code(result.matched)])
    parts.extend(
        [
            "\n",
            Bold(t("your_answer", ui_lang)),
            " ",
            Code(user_answer.strip() or "-"),
            "\n",
            Bold(t("correct_answer", ui_lang)),
            " ",
            Code(result.canonical or "-"),
            "\n\n",
            t("press_next", ui_lang),
        ]
    )
    return Text(*parts).as_kwargs()

def build_results_message(active: ActiveLesson, ui_lang: str) -> dict[str, object]:
    session = active.session
    percent = session.score_percent()
    emoji, band = score_band(percent)
    parts: list[object] = [
        f"{emoji} ",
        Bold(t("results_header", ui_lang, title=active.title)),
        "\n",
        t("score_line", ui_lang, score=session.score(), total=len(session)),
        "\n",
        t("percent_line", ui_lang, percent=percent),
        "\n",
        t(band, ui_lang),
    ]
    for i, r in enumerate(session.results(), start=1):
        parts.extend(
            [
                "\n\n",
                "✅ " if r.correct else "❌ ",
                f"{i}. {r.question}",
                "\n",
                Bold(t("your_answer", ui_lang)),
                " ",
                Code(r.user_answer.strip() or "-"),
            ]
        )
        if not r.correct:
            parts.extend(["\n", Bold(t("valid_answers", ui_lang)), " ", " / ".join(r.answers)])
    return Text(*parts).as_kwargs()

# ---------------- helpers ----------------
def _role_for(user_id: int, settings: Settings) -> str:
    return "admin" if user_id in settings.admin_ids else "user"

async def _get_or_create_user(s: AsyncSession, tg_user: TgUser, settings: Settings) -> User:
    role = _role_for(tg_user.id, settings)
    u = await s.get(User, tg_user.id)
    if u:
        if u.role != role or u.username != tg_user.username:
            u.role = role
            u.username = tg_user.username
            await s.commit()
        return u
    u = User(
        id=tg_user.id,
        username=tg_user.username,
        role=role,
        ui_lang=settings.ui_default_lang,
        onboarding_step="name",
    )
    s.add(u)
    await s.commit()
    logger.info("user_created user_id=%s role=%s", u.id, role)
    return u

async def _send_dashboard(target: Message, s: AsyncSession, user: User) -> None:
    lessons = await list_lessons(s)
    if not lessons:
        await target.answer(t("no_lessons", user.ui_lang))
        return
    done = await completed_lesson_ids(s, user.id)
    await target.answer(t("lessons_header", user.ui_lang), reply_markup=kb_lessons(lessons, done))

def register_handlers(
    dp: Dispatcher,
    *,
    settings: Settings,
    sessionmaker: async_sessionmaker[AsyncSession],
    auth: AuthContext,
    registry: SessionRegistry | None = None,
) -> SessionRegistry:
    registry = registry or SessionRegistry()
    auth.subscribe(registry.on_auth_event)

    async def _signed_in_user(s: AsyncSession, user_id: int) -> User | None:
        if not auth.is_signed_in(user_id):
            return None
        return await s.get(User, user_id)

    async def _send_question(target: Message, active: ActiveLesson, ui_lang: str) -> None:
        await target.answer(**build_question_message(active, ui_lang, settings.media_base_url))

    @dp.message(CommandStart())
    async def on_start(m: Message):
        async with sessionmaker() as s:
            user = await _get_or_create_user(s, m.from_user, settings)
            auth.sign_in(Identity(user_id=user.id, username=user.username, role=user.role))
            if user.onboarding_step == "name":
                await m.answer(t("ask_name", user.ui_lang))
                return
            if user.onboarding_step == "avatar":
                await m.answer(t("ask_avatar", user.ui_lang, name=user.name or ""))
                return
            await m.answer(t("welcome_back", user.ui_lang, name=user.name or ""))
            await _send_dashboard(m, s, user)

    @dp.message(Command("admin"))
    async def on_admin(m: Message):
        async with sessionmaker() as s:
            user = await s.get(User, m.from_user.id)
            lang = user.ui_lang if user else settings.ui_default_lang
            if not auth.is_admin(m.from_user.id):
                await m.answer(t("forbidden", lang))
                return
            logger.info("admin_action: open_admin_panel admin_id=%s", m.from_user.id)
            lessons = (await s.execute(select(func.count(Lesson.id)))).scalar_one()
            questions = (await s.execute(select(func.count(PracticeQuestion.id)))).scalar_one()
            users = (await s.execute(select(func.count(User.id)))).scalar_one()
        await m.answer(t("admin_panel", lang, lessons=lessons, questions=questions, users=users))

    @dp.message(Command("lessons"))
    async def on_lessons(m: Message):
        async with sessionmaker() as s:
            user = await _signed_in_user(s, m.from_user.id)
            if not user:
                await m.answer(t("sign_in_required", "en"))
                return
            registry.discard(user.id)
            await _send_dashboard(m, s, user)

    @dp.message(Command("skip"))
    async def on_skip(m: Message):
        async with sessionmaker() as s:
            user = await _signed_in_user(s, m.from_user.id)
            if not user or user.onboarding_step != "avatar":
                return
            user.onboarding_step = "done"
            await s.commit()
            logger.info("onboarding_done user_id=%s avatar=skipped", user.id)
            await _send_dashboard(m, s, user)

    @dp.message(Command("hint"))
    async def on_hint(m: Message):
        async with sessionmaker() as s:
            user = await _signed_in_user(s, m.from_user.id)
        if not user:
            await m.answer(t("sign_in_required", "en"))
            return
        active = registry.get(user.id)
        q = active.session.current_question if active else None
        if q is None:
            await m.answer(t("no_session", user.ui_lang))
            return
        if len(q.answers) <= 1:
            await m.answer(t("no_hint", user.ui_lang))
            return
        await m.answer(t("hint_header", user.ui_lang) + "\n" + "\n".join(f"• {a}" for a in q.answers))

    @dp.message(Command("profile"))
    async def on_profile(m: Message):
        async with sessionmaker() as s:
            user = await _signed_in_user(s, m.from_user.id)
            if not user:
                await m.answer(t("sign_in_required", "en"))
                return
            done = await completed_lesson_ids(s, user.id)
        lang = user.ui_lang
        content = Text(
            Bold(t("profile_header", lang)),
            "\n",
            t("profile_name", lang), " ", user.name or "-",
            "\n",
            t("profile_role", lang), " ", user.role,
            "\n",
            t("profile_avatar", lang), " ", t("yes" if user.avatar_file_id else "no", lang),
            "\n",
            t("profile_completed", lang), " ", str(len(done)),
            "\n\n",
            t("profile_edit", lang),
            "\n",
            t("profile_lang", lang),
        )
        await m.answer(**content.as_kwargs(), reply_markup=kb_lang())

    @dp.message(Command("name"))
    async def on_name(m: Message, command: CommandObject):
        new_name = (command.args or "").strip()[:128]
        async with sessionmaker() as s:
            user = await _signed_in_user(s, m.from_user.id)
            if not user:
                await m.answer(t("sign_in_required", "en"))
                return
            if not new_name:
                await m.answer(t("name_usage", user.ui_lang))
                return
            user.name = new_name
            await s.commit()
            await m.answer(t("name_updated", user.ui_lang))

    @dp.message(Command("logout"))
    async def on_logout(m: Message):
        async with sessionmaker() as s:
            user = await s.get(User, m.from_user.id)
        lang = user.ui_lang if user else settings.ui_default_lang
        auth.sign_out(m.from_user.id)
        await m.answer(t("signed_out", lang))

    @dp.callback_query(F.data.startswith("lang:"))
    async def on_lang(c: CallbackQuery):
        lang = c.data.split(":", 1)[1]
        if lang not in ("en", "es"):
            await c.answer()
            return
        async with sessionmaker() as s:
            user = await _signed_in_user(s, c.from_user.id)
            if not user:
                await c.answer()
                return
            user.ui_lang = lang
            await s.commit()
        await c.message.answer(t("lang_set", lang))
        await c.answer()

    @dp.callback_query(F.data == "lessons")
    async def on_lessons_button(c: CallbackQuery):
        async with sessionmaker() as s:
            user = await _signed_in_user(s, c.from_user.id)
            if not user:
                await c.answer()
                return
            registry.discard(user.id)
            await _send_dashboard(c.message, s, user)
        await c.answer()

    @dp.callback_query(F.data.startswith("lesson:"))
    async def on_pick_lesson(c: CallbackQuery):
        lesson_id = int(c.data.split(":", 1)[1])
        async with sessionmaker() as s:
            user = await _signed_in_user(s, c.from_user.id)
            if not user:
                await c.answer()
                return
            lesson = await load_lesson(s, lesson_id)
            if not lesson:
                await c.message.answer(t("lesson_missing", user.ui_lang))
                await c.answer()
                return
            questions = await load_questions(s, lesson_id)
        if not questions:
            await c.message.answer(t("lesson_empty", user.ui_lang))
            await c.answer()
            return
        active = ActiveLesson(lesson_id=lesson.id, title=lesson.title, session=LessonSession(questions))
        registry.start(user.id, active)
        logger.info("lesson_started user_id=%s lesson_id=%s questions=%s", user.id, lesson.id, len(questions))
        await _send_question(c.message, active, user.ui_lang)
        await c.answer()

    @dp.callback_query(F.data == "next")
    async def on_next(c: CallbackQuery):
        async with sessionmaker() as s:
            user = await _signed_in_user(s, c.from_user.id)
            active = registry.get(c.from_user.id) if user else None
            if not user or not active:
                await c.answer()
                return
            if active.session.completed:
                await c.answer(t("lesson_finished", user.ui_lang))
                return
            try:
                outcome = active.session.advance()
            except NoAnswerSubmittedError:
                await c.answer(t("answer_first", user.ui_lang))
                return
            if outcome == COMPLETE:
                await record_progress(
                    s,
                    user_id=user.id,
                    lesson_id=active.lesson_id,
                    score=active.session.score(),
                    total=len(active.session),
                )
                await c.message.answer(**build_results_message(active, user.ui_lang), reply_markup=kb_results(user.ui_lang))
            else:
                await _send_question(c.message, active, user.ui_lang)
        await c.answer()

    @dp.callback_query(F.data == "restart")
    async def on_restart(c: CallbackQuery):
        async with sessionmaker() as s:
            user = await _signed_in_user(s, c.from_user.id)
        active = registry.get(c.from_user.id) if user else None
        if not user or not active:
            await c.answer()
            return
        active.session.restart()
        logger.info("lesson_restarted user_id=%s lesson_id=%s", user.id, active.lesson_id)
        await _send_question(c.message, active, user.ui_lang)
        await c.answer()

    @dp.message(F.photo)
    async def on_photo(m: Message):
        async with sessionmaker() as s:
            user = await _signed_in_user(s, m.from_user.id)
            if not user or user.onboarding_step not in ("avatar", "done"):
                return
            onboarding = user.onboarding_step == "avatar"
            user.avatar_file_id = m.photo[-1].file_id
            user.onboarding_step = "done"
            await s.commit()
            if not onboarding:
                logger.info("avatar_updated user_id=%s", user.id)
                await m.answer(t("avatar_updated", user.ui_lang))
                return
            logger.info("onboarding_done user_id=%s avatar=set", user.id)
            await m.answer(t("avatar_saved", user.ui_lang))
            await _send_dashboard(m, s, user)

    @dp.message(F.text)
    async def on_text(m: Message):
        text = m.text or ""
        if text.startswith("/"):
            return
        async with sessionmaker() as s:
            user = await _signed_in_user(s, m.from_user.id)
            if not user:
                await m.answer(t("sign_in_required", "en"))
                return

            if user.onboarding_step == "name":
                name = text.strip()[:128]
                if not name:
                    await m.answer(t("ask_name_again", user.ui_lang))
                    return
                user.name = name
                user.onboarding_step = "avatar"
                await s.commit()
                await m.answer(t("ask_avatar", user.ui_lang, name=name))
                return
            if user.onboarding_step == "avatar":
                await m.answer(t("avatar_reminder", user.ui_lang))
                return

        active = registry.get(user.id)
        if not active:
            await m.answer(t("no_session", user.ui_lang))
            return
        session = active.session
        index = session.position
        if session.completed:
            await m.answer(t("use_buttons", user.ui_lang), reply_markup=kb_results(user.ui_lang))
            return
        if session.is_checked(index):
            await m.answer(t("use_buttons", user.ui_lang), reply_markup=kb_next(user.ui_lang))
            return

        session.submit_answer(index, text)
        try:
            correct = session.check_answer(index)
        except EmptyAnswerSetError:
            logger.exception(
                "question_misconfigured user_id=%s lesson_id=%s index=%s",
                user.id,
                active.lesson_id,
                index,
            )
            registry.discard(user.id)
            await m.answer(t("misconfigured", user.ui_lang))
            return
        logger.info(
            "answer_checked user_id=%s lesson_id=%s index=%s correct=%s",
            user.id,
            active.lesson_id,
            index,
            correct,
        )
        result = session.grade(index)
        await m.answer(**build_feedback_message(result, text, user.ui_lang), reply_markup=kb_next(user.ui_lang))

    return registry

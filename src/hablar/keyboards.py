from __future__ import annotations
from typing import Iterable
from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder
from .i18n import t
from .lessons import LessonSummary

def kb_lessons(lessons: Iterable[LessonSummary], completed_ids: set[int]) -> InlineKeyboardMarkup:
    b = InlineKeyboardBuilder()
    for lesson in lessons:
        mark = "✅ " if lesson.id in completed_ids else ""
        b.button(text=f"{mark}{lesson.title} ({lesson.question_count})", callback_data=f"lesson:{lesson.id}")
    b.adjust(1)
    return b.as_markup()

def kb_next(ui_lang: str) -> InlineKeyboardMarkup:
    b = InlineKeyboardBuilder()
    b.button(text=t("btn_next", ui_lang), callback_data="next")
    b.adjust(1)
    return b.as_markup()

def kb_results(ui_lang: str) -> InlineKeyboardMarkup:
    b = InlineKeyboardBuilder()
    b.button(text=t("btn_restart", ui_lang), callback_data="restart")
    b.button(text=t("btn_lessons", ui_lang), callback_data="lessons")
    b.adjust(2)
    return b.as_markup()

def kb_lang() -> InlineKeyboardMarkup:
    b = InlineKeyboardBuilder()
    b.button(text="English", callback_data="lang:en")
    b.button(text="Español", callback_data="lang:es")
    b.adjust(2)
    return b.as_markup()

import asyncio
import pytest

sqlalchemy = pytest.importorskip("sqlalchemy")
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from hablar.lessons import (
    LessonImportError,
    add_lessons,
    completed_lesson_ids,
    list_lessons,
    load_questions,
    media_url,
    parse_answers,
    record_progress,
    replace_lessons,
)
from hablar.models import Base

PAYLOAD = {
    "lessons": [
        {
            "title": "Comida",
            "order_index": 2,
            "questions": [
                {"question": "Translate: apple", "answers": ["manzana"], "order_index": 2},
                {"question": "Translate: bread", "answers": ["pan"], "order_index": 1, "image": "img/pan.png"},
            ],
        },
        {
            "title": "Saludos",
            "description": "Greetings",
            "order_index": 1,
            "questions": [{"question": "Translate: hello", "answers": ["hola", "buenas"]}],
        },
    ]
}

async def _setup_session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    Session = async_sessionmaker(engine, expire_on_commit=False)
    return engine, Session

def test_import_and_list_lessons_in_order():
    async def _run():
        engine, Session = await _setup_session()
        async with Session() as s:
            assert await replace_lessons(s, PAYLOAD) == 2
            lessons = await list_lessons(s)
            assert [l.title for l in lessons] == ["Saludos", "Comida"]
            assert [l.question_count for l in lessons] == [1, 2]
            assert lessons[0].description == "Greetings"

            questions = await load_questions(s, lessons[1].id)
            assert [q.question for q in questions] == ["Translate: bread", "Translate: apple"]
            assert questions[0].answers == ("pan",)
            assert questions[0].image == "img/pan.png"
            assert questions[0].audio is None
        await engine.dispose()
    asyncio.run(_run())

def test_reimport_replaces_lessons():
    async def _run():
        engine, Session = await _setup_session()
        async with Session() as s:
            await replace_lessons(s, PAYLOAD)
            await replace_lessons(s, {"lessons": [PAYLOAD["lessons"][1]]})
            lessons = await list_lessons(s)
            assert [l.title for l in lessons] == ["Saludos"]
        await engine.dispose()
    asyncio.run(_run())

def test_invalid_payload_is_refused():
    async def _run():
        engine, Session = await _setup_session()
        async with Session() as s:
            bad = {"lessons": [{"title": "Roto", "questions": [{"question": "?", "answers": []}]}]}
            with pytest.raises(LessonImportError) as exc:
                await replace_lessons(s, bad)
            assert exc.value.issues[0].severity == "error"
            assert await list_lessons(s) == []
        await engine.dispose()
    asyncio.run(_run())

def test_record_progress_keeps_best_score():
    async def _run():
        engine, Session = await _setup_session()
        async with Session() as s:
            await replace_lessons(s, PAYLOAD)
            lesson_id = (await list_lessons(s))[1].id
            assert await completed_lesson_ids(s, 5) == set()

            progress = await record_progress(s, user_id=5, lesson_id=lesson_id, score=2, total=2)
            assert progress.best_score == 2
            progress = await record_progress(s, user_id=5, lesson_id=lesson_id, score=1, total=2)
            assert progress.score == 1
            assert progress.best_score == 2
            assert progress.is_completed is True

            assert await completed_lesson_ids(s, 5) == {lesson_id}
            assert await completed_lesson_ids(s, 6) == set()
        await engine.dispose()
    asyncio.run(_run())

def test_media_url():
    assert media_url(None, "https://cdn") is None
    assert media_url("img/a.png", "") is None
    assert media_url("/img/a.png", "https://cdn/media/") == "https://cdn/media/img/a.png"
    assert media_url("https://x.test/a.png", "") == "https://x.test/a.png"

def test_parse_answers():
    assert parse_answers('["sí", "si"]') == ("sí", "si")
    assert parse_answers("") == ()
    assert parse_answers("not json") == ()
    assert parse_answers('{"a": 1}') == ()

def test_add_lessons_keeps_existing_lessons_and_progress():
    async def _run():
        engine, Session = await _setup_session()
        async with Session() as s:
            await replace_lessons(s, PAYLOAD)
            saludos = (await list_lessons(s))[0]
            await record_progress(s, user_id=5, lesson_id=saludos.id, score=1, total=1)

            added = await add_lessons(
                s, {"lessons": [{"title": "Números", "questions": [{"question": "Translate: one", "answers": ["uno"]}]}]}
            )
            assert added == 1

            lessons = await list_lessons(s)
            assert [l.title for l in lessons] == ["Saludos", "Comida", "Números"]
            assert lessons[0].id == saludos.id
            assert lessons[2].order_index == 3
            assert await completed_lesson_ids(s, 5) == {saludos.id}
        await engine.dispose()
    asyncio.run(_run())

def test_replace_lessons_drops_progress():
    async def _run():
        engine, Session = await _setup_session()
        async with Session() as s:
            await replace_lessons(s, PAYLOAD)
            lesson_id = (await list_lessons(s))[0].id
            await record_progress(s, user_id=5, lesson_id=lesson_id, score=1, total=1)
            await replace_lessons(s, PAYLOAD)
            assert await completed_lesson_ids(s, 5) == set()
        await engine.dispose()
    asyncio.run(_run())

@pytest.mark.parametrize("importer", [add_lessons, replace_lessons])
def test_bad_order_index_is_refused_before_any_change(importer):
    async def _run():
        engine, Session = await _setup_session()
        async with Session() as s:
            await replace_lessons(s, PAYLOAD)
            bad = {"lessons": [{"title": "A", "order_index": "first", "questions": [{"question": "?", "answers": ["sí"]}]}]}
            with pytest.raises(LessonImportError) as exc:
                await importer(s, bad)
            assert "order_index must be an integer" in exc.value.issues[0].message
            assert [l.title for l in await list_lessons(s)] == ["Saludos", "Comida"]
        await engine.dispose()
    asyncio.run(_run())

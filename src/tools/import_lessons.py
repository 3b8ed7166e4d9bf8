import argparse
import asyncio
import json
import logging
import sys

from hablar.config import load_settings
from hablar.db import ensure_schema, make_engine, make_sessionmaker
from hablar.lessons import LessonImportError, add_lessons, replace_lessons
from hablar.validation import format_issue

async def run(path: str, *, replace: bool = False) -> int:
    settings = load_settings()
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    engine = make_engine(settings)
    Session = make_sessionmaker(engine)
    try:
        await ensure_schema(engine)
        async with Session() as s:
            if replace:
                count = await replace_lessons(s, data)
            else:
                count = await add_lessons(s, data)
    except LessonImportError as exc:
        for issue in exc.issues:
            print(format_issue(issue))
        return 1
    finally:
        await engine.dispose()
    print(f"Replaced all lessons with {count} lessons" if replace else f"Added {count} lessons")
    return 0

def main(argv: list[str]) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    parser = argparse.ArgumentParser()
    parser.add_argument("path", nargs="?", default="data/lessons.json")
    parser.add_argument(
        "--replace",
        action="store_true",
        help="delete all lessons and learner progress before importing",
    )
    args = parser.parse_args(argv)
    return asyncio.run(run(args.path, replace=args.replace))

if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))

import argparse
import json
import sys

from hablar.validation import format_issue, has_errors, validate_lessons

def _load_json(path: str):
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)

def validate(path: str, *, strict: bool = False) -> int:
    issues = validate_lessons(_load_json(path))
    for issue in issues:
        print(format_issue(issue))
    if has_errors(issues) or (strict and issues):
        return 1
    print("OK")
    return 0

def main(argv: list[str]) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("path", nargs="?", default="data/lessons.json")
    parser.add_argument("--strict", action="store_true", help="treat warnings as errors")
    args = parser.parse_args(argv)
    return validate(args.path, strict=args.strict)

if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))

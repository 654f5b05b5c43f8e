from __future__ import annotations
import argparse, logging, os, sys, datetime

from k53_core import config
from k53_core.composer import build_session
from k53_core.errors import ConfigurationError
from k53_core.question_bank import load_bank
from k53_core.report_html import export_report_html
from k53_core.types import Category, Item, Result


def ask(item: Item, position: int, total: int, read=input) -> int:
    print(f"\nQuestion {position} of {total}  [{item.category.value}]")
    if item.title: print(f"{item.title}")
    if item.scenario: print(f"{item.scenario}\n")
    print(item.prompt)
    for i, opt in enumerate(item.options): print(f"  [{i}] {opt}")
    while True:
        v = read("Your choice (index): ").strip()
        if v.isdigit() and int(v) < len(item.options): return int(v)
        print(f"Enter a number between 0 and {len(item.options) - 1}.")


def print_result(result: Result) -> None:
    print("\n=== Result ===")
    for cat in result.categories:
        mark = "PASS" if cat.passed else "FAIL"
        print(f"  {cat.category.value:<9} {cat.correct:2d}/{cat.total:<2d} (need {cat.required:2d})  {mark}")
    print(f"Overall: {result.correct}/{result.total} ({result.percentage}%)  {'PASSED' if result.passed else 'FAILED'}")


def _parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="K53 learner's licence practice in the terminal.")
    p.add_argument("--type", dest="session_type", default="quick", choices=["full", "quick", "scenario"])
    p.add_argument("--count", type=int, default=None, help="scenario test length")
    p.add_argument("--difficulty", choices=["basic", "intermediate", "advanced"], default=None)
    p.add_argument("--category", choices=[c.value for c in Category], default=None)
    p.add_argument("--context", default=None, help="urban, rural, freeway or residential")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--policy", choices=list(config.QUOTA_POLICIES), default=None)
    p.add_argument("--html", default=None, help="write an HTML report to this path")
    return p


def main(argv: list[str] | None = None, read=input) -> int:
    args = _parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO), format="%(levelname)s %(name)s: %(message)s")
    cfg = config.load_config()
    seed = args.seed if args.seed is not None else cfg["SEED"]
    try:
        pool = load_bank(cfg["BANK_PATH"])
        session = build_session(
            args.session_type,
            pool,
            rng=config.make_rng(seed),
            policy=args.policy or cfg["QUOTA_POLICY"],
            count=args.count,
            difficulty=args.difficulty,
            category=Category(args.category) if args.category else None,
            context=args.context,
        )
    except ConfigurationError as exc:
        print(f"Cannot build test: {exc}", file=sys.stderr)
        return 2

    result = None
    while result is None:
        item = session.current_item
        choice = ask(item, session.current_index + 1, len(session.items), read=read)
        fb = session.submit_answer(choice)
        if fb.is_correct:
            print("Correct!")
        else:
            print(f"Incorrect. Answer: [{fb.correct_index}] {item.options[fb.correct_index]}")
        if fb.explanation: print(fb.explanation)
        result = session.advance()

    print_result(result)
    if args.html:
        os.makedirs(os.path.dirname(os.path.abspath(args.html)), exist_ok=True)
        export_report_html(result, args.html)
        print(f"Report saved to: {args.html}")
    else:
        ts = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        print(f"Finished {args.session_type} test at {ts}.")
    return 0 if result.passed else 1


if __name__ == "__main__":
    raise SystemExit(main())

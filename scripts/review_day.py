"""Plan a day from text, mark tasks done and review it, printing JSON."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from timeflow.adapters.json_adapter import dump_session, report_to_dict, task_to_dict
from timeflow.config import configure_logging, load_settings
from timeflow.controller import PlanningState, PlanReviewController, SessionContext

logger = logging.getLogger("review_day")


def _read(value: str | None, path: str | None) -> str:
    if path:
        return Path(path).read_text(encoding="utf-8")
    return value or ""


async def _run(args: argparse.Namespace) -> dict:
    controller = PlanReviewController(SessionContext.start(load_settings()))
    controller.set_plan_text(_read(args.plan, args.plan_file))
    if not await controller.generate():
        return {"error": controller.context.planning.error, "tasks": []}

    for task_id in args.complete:
        if controller.toggle_status(task_id) is None:
            logger.warning("No task with id %s", task_id)

    result: dict = {"tasks": [task_to_dict(task) for task in controller.tasks], "report": None}
    review_text = _read(args.review, args.review_file)
    if review_text.strip():
        controller.set_review_text(review_text)
        report = await controller.analyze()
        if report is None:
            result["error"] = controller.context.review.error
        else:
            result["report"] = report_to_dict(report)

    if args.save:
        dump_session(args.save, controller.tasks, controller.report)
        logger.info("Saved session to %s", args.save)
    return result


def main() -> None:
    parser = argparse.ArgumentParser(description="Turn a day plan into a timeline and review it")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--plan", help="Plan text")
    source.add_argument("--plan-file", help="Path to a file with the plan text")
    parser.add_argument("--complete", type=int, nargs="*", default=[], help="Task ids to mark completed")
    parser.add_argument("--review", help="Review narrative")
    parser.add_argument("--review-file", help="Path to a file with the review narrative")
    parser.add_argument("--save", help="Write the session to this JSON file")
    parser.add_argument("--log-level", default=None, help="Logging level (default from TIMEFLOW_LOG_LEVEL)")
    args = parser.parse_args()

    configure_logging(args.log_level)
    result = asyncio.run(_run(args))
    print(json.dumps(result, indent=2, ensure_ascii=False))
    if result.get("error"):
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Demo script for timeflow."""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from timeflow.config import configure_logging
from timeflow.controller import PlanReviewController, ScriptedSpeechCapture, SessionContext
from timeflow.metrics import compute_metrics

PLAN_TEXT = "今天上午9点要开个组会，大概一小时。然后我想花两个小时写完项目报告。中午休息一下，下午2点开始做竞品分析，4点去健身房跑个步，晚上读会儿书。"
REVIEW_TEXT = "组会按时开了，但是报告写得比较慢，拖到了下午1点。竞品分析做了一半，健身去了，晚上书读了30分钟。"


async def run() -> None:
    controller = PlanReviewController(SessionContext.start())
    await controller.capture_plan_speech(ScriptedSpeechCapture([PLAN_TEXT]))
    await controller.generate()
    for task in controller.tasks:
        print("Task:", task.window, task.category, task.title)

    for task_id in (1, 2, 3, 5):
        controller.toggle_status(task_id)
    print("Metrics:", compute_metrics(controller.tasks))

    await controller.capture_review_speech(ScriptedSpeechCapture([REVIEW_TEXT]))
    report = await controller.analyze()
    print("Score:", report.score)
    print("Highlights:", [item.title for item in report.highlights])
    print("Suggestions:", [item.title for item in report.suggestions])


def main() -> None:
    configure_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()

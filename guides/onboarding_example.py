"""Example showing a resumable onboarding flow with a pre-selected role."""

import asyncio
import sys

from tradeflow import load_config
from tradeflow.session import create_controller
from tradeflow.workflows import preselected_launch


async def main():
    role = sys.argv[1] if len(sys.argv) > 1 else "homeowner"
    user_type = "individual" if role in ("homeowner", "jobseeker") else "business"

    controller = create_controller("onboarding", "browser-session", config=load_config())
    await controller.start(**preselected_launch(user_type=user_type, role=role))
    print(f"Starting at step: {controller.current_step.title}")

    result = await controller.go_next(
        {"email": "pat@example.com", "password": "secret1", "confirm_password": "secret1"}
    )
    print(f"Outcome: {result.outcome.value}")
    if result.submission and result.submission.navigate_to:
        print(f"Continue at {result.submission.navigate_to}")


if __name__ == "__main__":
    asyncio.run(main())

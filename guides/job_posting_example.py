"""Simple example walking a company through the job posting wizard."""

import asyncio

from tradeflow import get_backend, load_config
from tradeflow.backends import InMemoryBackend
from tradeflow.contracts import AssetUpload
from tradeflow.session import create_controller


async def main():
    """Post a trades job end to end."""
    config = load_config()
    # Use the configured backend, or a local one with a small quota
    if config.backend.kind == "http":
        backend = get_backend(config=config)
    else:
        backend = InMemoryBackend(subscriptions={"user-123": (0, 3)})

    controller = create_controller(
        "job_posting", "session-1", "user-123", config=config, backend=backend
    )
    await controller.start(preset_fields={"poster_role": "company", "profile_id": "company-1"})

    await controller.go_next({"posting_type": "tradespeople"})
    await controller.go_next({"active_duration": "2_weeks"})
    print(f"💷 Price: {controller.price_preview().display_price}")
    print(f"📅 Active until: {controller.expiration_preview().expires_at:%d %B %Y}")

    await controller.go_next(
        {"profession": "Plumber", "short_description": "Fix a leaking kitchen sink"}
    )
    controller.attach_asset(AssetUpload(content=b"\xff\xd8\xff", filename="sink.jpg"))
    result = await controller.go_next(
        {"full_address": "2 Park Road, York", "location_coords": {"lat": 53.96, "lon": -1.08}}
    )

    if result.submission and result.submission.ok:
        print(f"✅ {result.submission.notification.title}")
        print(f"📋 {result.submission.notification.description}")
        print(f"🔗 Next: {result.submission.navigate_to}")
    else:
        print(f"❌ {result.outcome.value}: {result.errors or result.submission.error.message}")

    await backend.disconnect()


if __name__ == "__main__":
    asyncio.run(main())

#!/usr/bin/env python3
"""Profile demo — the full record lifecycle against a live Redis.

Run with a local Redis on the default port (override with ``REDMAP_*``
environment variables)::

    python examples/profile_demo.py

Steps:
    1. Register ``Profile`` and clear any previous run
    2. Save a profile and print its assigned id
    3. List all profiles, fetch the saved one by id
    4. Remove it and show the remaining count
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from redmap import Engine, get_settings
from redmap.logging import configure_logging, get_logger

logger = get_logger("examples.profile_demo")


@dataclass
class Profile:
    title: str = ""
    email: str = ""
    password: str = ""
    _id: str | None = None


async def main() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=False, service="profile-demo")

    async with await Engine.init(settings, [Profile]) as engine:
        profiles = engine.model(Profile)
        await profiles.clear()

        profile = Profile(title="Alex", email="test@test.ru", password="testingpas")
        await profiles.save(profile)
        logger.info("saved", record_id=profile._id)

        everyone = await (await profiles.find({})).get_all()
        logger.info("listed", count=len(everyone), records=[p.title for p in everyone])

        stored = await profiles.get(profile._id)
        logger.info("fetched", record=stored)

        logger.info("deleted", removed=await profiles.remove(stored))
        logger.info("remaining", count=(await profiles.find({})).count)


if __name__ == "__main__":
    asyncio.run(main())

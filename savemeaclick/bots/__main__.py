"""Usage: python -m savemeaclick.bots"""

import asyncio

from savemeaclick.bots.runner import run_bots
from savemeaclick.core.config import settings
from savemeaclick.core.logging import setup_logging
from savemeaclick.core.sentry import init_sentry


def main() -> None:
    setup_logging()
    init_sentry()
    asyncio.run(run_bots(settings))


if __name__ == "__main__":
    main()

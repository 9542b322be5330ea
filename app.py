"""
World Hex Miner backend: HTTP entry point.

Run with:
    python app.py

Settings come from the environment / .env (see core.config).
"""

import logging

from api import create_app
from core.config import GameSettings

log = logging.getLogger("hexminer")


def main():
    settings = GameSettings.from_env()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s │ %(name)-20s │ %(levelname)-8s │ %(message)s',
        datefmt='%H:%M:%S',
        handlers=[
            logging.StreamHandler()
        ]
    )

    app = create_app(settings)
    log.info(f"Hex miner API listening on port {settings.port}")
    app.run(host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()

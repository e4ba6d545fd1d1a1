"""
Hydration Tracker — run the reminder bot.

Configures root logging, then hands over to the Telegram front end, which
loads the stored state and arms the reminder and rollover jobs.
"""

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from hydration.bot.telegram_bot import main

if __name__ == "__main__":
    main()

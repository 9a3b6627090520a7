"""Run the bot server: python -m app"""

import uvicorn

from app.config import get_settings


def main():
    settings = get_settings()
    # log_config=None keeps the JSON handlers installed by setup_logging()
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, log_config=None)


if __name__ == "__main__":
    main()

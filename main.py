import logging
import os

import uvicorn

from catalog.config import get_config


def main() -> None:
    config = get_config()
    logging.basicConfig(
        level=config.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = int(os.getenv("PORT", 8000))
    uvicorn.run("catalog.api:app", host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()

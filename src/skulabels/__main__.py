import logging

import uvicorn

from skulabels.config import settings

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "skulabels.api:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bleenkz import __version__, config
from bleenkz.routes import api_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Bleenkz backend...")
    api_routes.init_services()
    for r in app.router.routes:
        logger.debug("ROUTE %s", getattr(r, "path", r))
    yield
    logger.info("Shutting down...")
    api_routes.shutdown_services()

app = FastAPI(title="Bleenkz Blink API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_routes.router, prefix="/api")


def main():
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("bleenkz.app:app", host=config.HOST, port=config.PORT, reload=False)


if __name__ == "__main__":
    main()

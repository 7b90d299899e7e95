import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config as C
from .api.deps import get_session, set_session
from .api.routes import router
from .state import GuidanceSession

log = logging.getLogger(__name__)


def create_app(session: GuidanceSession = None) -> FastAPI:
    app = FastAPI(title="Hand Guidance")

    # CORS (allow all origins; credentials False to keep wildcard)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    set_session(session or GuidanceSession())
    app.include_router(router)

    @app.on_event("shutdown")
    async def on_shutdown():
        get_session().close()

    return app


def main():
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    log.info("data directory: %s", C.DATA_DIR)
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()

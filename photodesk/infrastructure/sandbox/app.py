from __future__ import annotations

from fastapi import FastAPI

from photodesk.infrastructure.sandbox.middlewares import add_default_middlewares
from photodesk.infrastructure.sandbox.routes.auth_routes import router as auth_router
from photodesk.infrastructure.sandbox.routes.download_routes import router as download_router
from photodesk.infrastructure.sandbox.routes.file_routes import router as file_router
from photodesk.infrastructure.sandbox.routes.image_routes import router as image_router
from photodesk.infrastructure.sandbox.routes.processing_routes import router as processing_router
from photodesk.infrastructure.sandbox.routes.share_routes import router as share_router
from photodesk.infrastructure.sandbox.routes.watermark_routes import router as watermark_router
from photodesk.infrastructure.sandbox.store import SandboxStore


def create_sandbox_app(store: SandboxStore | None = None) -> FastAPI:
    app = FastAPI(
        title="PhotoDesk Sandbox Store",
        version="0.1.0",
        description="""
        ## PhotoDesk Sandbox Store

        In-memory implementation of the remote image store the PhotoDesk
        client talks to. Meant for local development and integration tests;
        nothing is persisted.

        ### Features
        - **Collection**: upload, query (filter/sort/paginate), fetch, delete
        - **Processing**: preset and manual adjustments, as preview or new image
        - **Downloads**: single images and ZIP archives
        - **Sharing**: share links with optional expiry, password and view limit
        - **Watermark**: per-user watermark image, settings and preview

        ### Authentication
        All endpoints except the file URLs, root and health require a bearer
        token. Tokens issued by the client's offline auth mode
        (`access-<user id>`) map to that user; any other token is taken as
        the user id itself.
        """,
    )
    app.state.store = store or SandboxStore()
    add_default_middlewares(app)

    @app.get("/", summary="API Root")
    def root():
        return {"status": "ok", "service": "photodesk-sandbox", "version": app.version}

    @app.get("/health", summary="Health Check")
    def health():
        return {"status": "healthy"}

    app.include_router(auth_router)
    app.include_router(image_router)
    app.include_router(processing_router)
    app.include_router(download_router)
    app.include_router(share_router)
    app.include_router(watermark_router)
    app.include_router(file_router)
    return app

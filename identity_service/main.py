from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from identity_service.api.routers import auth, profile
from identity_service.shared.config import Settings, get_settings


def create_app(settings: Settings) -> FastAPI:
    app = FastAPI(title="Identity API")
    # Credentialed requests only for an explicit origin list; "*" would be reflected per request.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials="*" not in settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(auth.router)
    app.include_router(profile.router)
    return app


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = create_app(settings)

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from fleetgate.api.router import api_router
from fleetgate.core.config import get_settings
from fleetgate.core.security import hash_password
from fleetgate.db.session import get_session_factory
from fleetgate.models.admin import Admin
from fleetgate.services.maintenance import RateLimitJanitor


def create_app() -> FastAPI:
    settings = get_settings()
    janitor = RateLimitJanitor(get_session_factory, settings.rate_limit_cleanup_interval_seconds)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if settings.auto_create_admin:
            session_factory = get_session_factory()
            with session_factory() as db:
                existing = db.scalar(select(Admin).where(Admin.login == settings.bootstrap_admin_login))
                if not existing:
                    admin = Admin(
                        login=settings.bootstrap_admin_login,
                        password_hash=hash_password(settings.bootstrap_admin_password),
                        role="admin",
                    )
                    db.add(admin)
                    db.commit()
        janitor.start()
        yield
        await janitor.stop()

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)
    app.state.rate_limit_janitor = janitor

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    return app


app = create_app()

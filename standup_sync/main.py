# standup_sync/main.py
import asyncio
import contextlib

from fastapi import FastAPI

from standup_sync.api.routes import employees, feedback, health, internal, navigation, onboarding
from standup_sync.api.routes.sessions import learning_hours_router, standups_router
from standup_sync.core.config import get_settings
from standup_sync.core.logging import configure_logging
from standup_sync.db.session import init_db_for_startup
from standup_sync.services.standup_automation import run_automation_loop


def create_app() -> FastAPI:
    """
    Application factory for the Standup Sync service.
    """
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Backend for the team operations app: scheduling and running daily\n"
            "standups and learning hours, recording attendance, per-employee\n"
            "feedback dashboards and the onboarding wizard."
        ),
        version="0.1.0",
    )

    # Routers
    app.include_router(health.router)
    app.include_router(navigation.router)
    app.include_router(employees.router)
    app.include_router(standups_router)
    app.include_router(learning_hours_router)
    app.include_router(feedback.router)
    app.include_router(onboarding.router)
    app.include_router(internal.router)

    @app.on_event("startup")
    async def on_startup() -> None:  # pragma: no cover
        await init_db_for_startup()
        if settings.STANDUP_AUTOMATION_ENABLED:
            app.state.automation_task = asyncio.create_task(
                run_automation_loop(settings.STANDUP_AUTOMATION_INTERVAL_SECONDS)
            )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:  # pragma: no cover
        task = getattr(app.state, "automation_task", None)
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    return app


app = create_app()

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.admin_service import AdminService
from ..application.services.meal_plan_service import MealPlanService
from ..application.services.subscription_service import SubscriptionService
from ..application.services.testimonial_service import TestimonialService
from ..application.services.user_service import UserService
from ..domain.errors import (
    AccountLockedError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    SubscriptionError,
)
from ..infrastructure.persistence.sqlite import SQLitePersistence
from ..presentation.api.routers import admin as admin_router
from ..presentation.api.routers import auth as auth_router
from ..presentation.api.routers import meal_plans as meal_plans_router
from ..presentation.api.routers import subscriptions as subscriptions_router
from ..presentation.api.routers import testimonials as testimonials_router

logger = logging.getLogger(__name__)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="Meal Kit Subscription API", lifespan=_create_lifespan(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials="*" not in settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    app.include_router(auth_router.router)
    app.include_router(subscriptions_router.router)
    app.include_router(meal_plans_router.router)
    app.include_router(testimonials_router.router)
    app.include_router(admin_router.router)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.app_env,
        }

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SubscriptionError)
    async def subscription_error(_: Request, exc: SubscriptionError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": exc.message, "kind": exc.kind},
        )

    @app.exception_handler(ConflictError)
    async def conflict_error(_: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error(_: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(PermissionDeniedError)
    async def permission_denied(_: Request, exc: PermissionDeniedError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})

    @app.exception_handler(AccountLockedError)
    async def account_locked(_: Request, exc: AccountLockedError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_423_LOCKED, content={"detail": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Validation Error", "errors": details},
        )


def _create_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        persistence = SQLitePersistence(settings.database_path)
        try:
            user_service = UserService(
                persistence,
                jwt_secret=settings.jwt_secret,
                jwt_algorithm=settings.jwt_algorithm,
                jwt_issuer=settings.jwt_issuer,
                jwt_audience=settings.jwt_audience,
                access_exp_minutes=settings.jwt_access_exp_minutes,
                refresh_exp_minutes=settings.jwt_refresh_exp_minutes,
            )
            user_service.ensure_default_admin(
                settings.admin_default_email,
                settings.admin_default_password,
                settings.admin_default_full_name,
            )

            container = ApplicationContainer(
                settings=settings,
                persistence=persistence,
                user_service=user_service,
                subscription_service=SubscriptionService(persistence),
                meal_plan_service=MealPlanService(persistence),
                testimonial_service=TestimonialService(persistence),
                admin_service=AdminService(persistence, user_service),
            )
            app.state.container = container  # type: ignore[attr-defined]
            logger.info("API ready (environment=%s, database=%s)", settings.app_env, settings.database_path)

            yield
        finally:
            persistence.close()

    return lifespan

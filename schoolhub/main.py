import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schoolhub.api.v1.auth.router import router as auth_router
from schoolhub.api.v1.classes.classes_router import router as classes_router
from schoolhub.api.v1.documents.router import router as documents_router
from schoolhub.api.v1.enrollments.router import router as enrollments_router
from schoolhub.api.v1.homework.router import router as homework_router
from schoolhub.api.v1.submissions.router import router as submissions_router
from schoolhub.api.v1.users.router import router as users_router
from schoolhub.core.config import settings
from schoolhub.core.responses import register_exception_handlers


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="SchoolHub Backend")

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Routers
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(classes_router)
    app.include_router(enrollments_router)
    app.include_router(homework_router)
    app.include_router(submissions_router)
    app.include_router(documents_router)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "success", "data": {"service": "schoolhub"}}

    return app


app = create_app()

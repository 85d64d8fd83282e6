from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from apps.api.api.errors import register_exception_handlers
from apps.api.api.routes import auth, comments, health, tickets, users
from apps.api.core.config import get_settings
from apps.api.core.logging import configure_logging, init_tracer, shutdown_tracer
from apps.api.metrics import metrics_registry
from apps.api.middleware import RBACMiddleware, RequestMetricsMiddleware
from apps.api.services.comments import CommentRepository, CommentService
from apps.api.services.tickets import TicketRepository, TicketService
from apps.api.services.users import UserRepository, UserService


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.settings = settings
    app.state.logger = logger
    app.state.tracer_provider = tracer_provider
    app.state.metrics = metrics_registry

    db_engine = create_async_engine(settings.async_database_url, echo=settings.database_echo, future=True)
    session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
    try:
        user_repository = UserRepository(session_factory, engine=db_engine)
        ticket_repository = TicketRepository(session_factory, engine=db_engine)
        comment_repository = CommentRepository(session_factory, engine=db_engine)
        await user_repository.ensure_schema()
        await ticket_repository.ensure_schema()
        await comment_repository.ensure_schema()

        user_service = UserService(user_repository, settings=settings)
        await user_service.ensure_default_manager(
            name=settings.default_manager_name,
            email=settings.default_manager_email,
            password=settings.default_manager_password,
        )

        app.state.db_engine = db_engine
        app.state.db_session_factory = session_factory
        app.state.user_service = user_service
        app.state.ticket_service = TicketService(ticket_repository, user_repository, metrics=metrics_registry)
        app.state.comment_service = CommentService(comment_repository, ticket_repository, metrics=metrics_registry)
        logger.info("%s started (%s)", settings.app_name, settings.environment)
        yield
    finally:
        await db_engine.dispose()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    register_exception_handlers(app)
    app.add_middleware(RBACMiddleware)
    app.add_middleware(RequestMetricsMiddleware, registry=metrics_registry)
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(tickets.router)
    app.include_router(comments.router)
    return app


app = create_app()

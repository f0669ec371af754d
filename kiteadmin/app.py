import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from kiteadmin.auth_utils import ensure_seed_admin
from kiteadmin.config import DEV_SESSION_SECRET, Settings, get_settings
from kiteadmin.database import Database, get_db, open_database
from kiteadmin.database_models import init_schema
from kiteadmin.errors import AppError, StoreError
from kiteadmin.sessions import open_session_store

# --- Importação dos Roteadores ---
from kiteadmin.routers import auth
from kiteadmin.routers.bookings import router as bookings_router
from kiteadmin.routers.clients import router as clients_router
from kiteadmin.routers.hotels import router as hotels_router
from kiteadmin.routers.trips import router as trips_router
from kiteadmin.routers.users import router as users_router

logger = logging.getLogger("kiteadmin")


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{field}: {first.get('msg')}" if field else str(first.get("msg"))


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if isinstance(exc, StoreError):
            logger.error("Erro no banco em %s %s: %r", request.method, request.url.path, exc.original)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Monta a aplicação: banco, esquema, admin padrão, sessões e rotas."""
    settings = settings or get_settings()

    # BANCO DE DADOS: um único recurso por processo, criado aqui
    db = open_database(settings)
    db.ping()
    logger.info("Conexão com o banco (%s) ok", db.kind)
    init_schema(db)
    ensure_seed_admin(db, settings.default_admin_password)
    sessions = open_session_store(db)

    if settings.is_production and settings.session_secret == DEV_SESSION_SECRET:
        logger.warning("SESSION_SECRET padrão em produção; defina um segredo forte.")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        db.dispose()
        logger.info("Conexões com o banco encerradas")

    app = FastAPI(title="Kitesurf - Administração de Reservas", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db
    app.state.sessions = sessions

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie_name,
        max_age=settings.session_max_age,
        same_site=settings.cookie_same_site,
        https_only=settings.is_production,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_error_handlers(app)

    # Inclui os roteadores (ordem não importa)
    app.include_router(auth.router)
    app.include_router(users_router)
    app.include_router(clients_router)
    app.include_router(hotels_router)
    app.include_router(trips_router)
    app.include_router(bookings_router)

    @app.get("/status")
    def status(db: Database = Depends(get_db)):
        db.ping()
        return {"status": "ok", "database": db.kind}

    return app

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from codedex.admin import mount_back_office
from codedex.api.api import api_router
from codedex.core.config import settings
from codedex.core.security import get_password_hash
from codedex.db.session import Database
from codedex.models.user.user_model import User, UserRole

# --- Logging configuration ---
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _sanitize_origin(origin: str | None) -> str | None:
    if not origin:
        return None
    value = origin.strip()
    if not value:
        return None
    if not value.startswith("http"):
        value = f"https://{value}"
    return value.rstrip("/")


def _cors_origins() -> list[str]:
    origins = sorted({o for o in (_sanitize_origin(v) for v in settings.BACKEND_CORS_ORIGINS) if o})
    logger.info("CORS origins: %s", origins)
    return origins


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": f"{location}: {message}" if location else message, "errors": errors},
    )


async def _database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Details stay in the logs; the client only learns that the request failed.
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


def _seed_default_admin(database: Database) -> None:
    email = settings.DEFAULT_ADMIN_EMAIL
    password = settings.DEFAULT_ADMIN_PASSWORD
    if not email or not password:
        return

    with database.session() as session:
        admin_user = session.query(User).filter(User.email == email).first()
        if admin_user is not None:
            logger.info("Default administrator already present.")
            return

        logger.info("Creating default administrator '%s'.", email)
        session.add(
            User(
                email=email,
                name="Admin",
                password_hash=get_password_hash(password),
                role=UserRole.ADMIN,
            )
        )
        session.commit()


def create_app(database: Database | None = None) -> FastAPI:
    """Build the application around ``database`` (configured from settings by default)."""

    database = database or Database.from_url()

    app = FastAPI(title="Codedex API", openapi_url="/api/openapi.json")
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, _database_exception_handler)

    mount_back_office(app, database, settings.SECRET_KEY)
    app.include_router(api_router, prefix="/api")

    @app.on_event("startup")
    def startup() -> None:
        logger.info("Checking database connectivity...")
        database.verify_connection()
        database.create_all()
        logger.info("Database tables are ready.")
        _seed_default_admin(database)

    @app.on_event("shutdown")
    def shutdown() -> None:
        database.dispose()
        logger.info("Database engines disposed.")

    @app.get("/")
    def read_root():
        return {"message": "Welcome to the Codedex API!"}

    return app


app = create_app()

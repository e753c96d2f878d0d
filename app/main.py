import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

# Importar la función de configuración de logging
from app.core.logging_config import setup_logging

# Llamar a la configuración de logging ANTES de importar/crear otros elementos
setup_logging()

# Ahora importar el resto
from app.api.v1.api import api_router
from app.core.config import get_settings
from app.core.exceptions import AuthorizationDenied, GymScheduleError, RepositoryError
from app.db.init_db import create_tables
from app.middleware.timing import TimingMiddleware
from app.middleware.rate_limit import limiter, custom_rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

# Obtener la instancia de configuración al inicio del módulo
settings_instance = get_settings()

# Cabeceras que nunca se escriben en claro en los logs
SENSITIVE_HEADERS = ("x-auth-key", "authorization", "cookie")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Lifespan: Startup iniciado...")
    create_tables()
    logger.info("Lifespan: Tablas verificadas.")

    yield # Aplicación en ejecución

    logger.info("Lifespan: Shutdown iniciado...")


app = FastAPI(
    title=settings_instance.PROJECT_NAME,
    description=settings_instance.PROJECT_DESCRIPTION,
    version=settings_instance.VERSION,
    openapi_url=f"{settings_instance.API_V1_STR}/openapi.json",
    docs_url=f"{settings_instance.API_V1_STR}/docs",
    redoc_url=f"{settings_instance.API_V1_STR}/redoc",
    lifespan=lifespan,
)

# Configurar rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_exceeded_handler)


@app.exception_handler(GymScheduleError)
async def gym_schedule_error_handler(request: Request, exc: GymScheduleError):
    if isinstance(exc, RepositoryError):
        logger.error(f"Error de datos en {request.method} {request.url.path}: {exc.message}", exc_info=exc)
    elif isinstance(exc, AuthorizationDenied):
        # Rechazo esperado, no es un fallo del sistema
        logger.info(f"Acceso denegado ({exc.reason}) en {request.method} {request.url.path}")
    else:
        logger.info(f"{type(exc).__name__} en {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Petición inválida en {request.method} {request.url.path}")
    return JSONResponse(
        status_code=422,
        content={"message": "Invalid request parameters", "errors": jsonable_encoder(exc.errors())},
    )


def mask_headers(headers) -> dict:
    """Copia de las cabeceras con las credenciales enmascaradas."""
    headers_dict = dict(headers)
    for key in SENSITIVE_HEADERS:
        value = headers_dict.get(key)
        if not value:
            continue
        if key == "authorization" and value.startswith("Bearer "):
            token = value[7:]
            headers_dict[key] = f"Bearer ****{token[-6:]}" if len(token) > 6 else "Bearer ****"
        else:
            headers_dict[key] = "***masked***"
    return headers_dict


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Middleware: Recibida petición: {request.method} {request.url.path}")
    if settings_instance.DEBUG_MODE:
        logger.debug(f"Middleware: Headers: {mask_headers(request.headers)}")

    response = await call_next(request)

    logger.info(f"Middleware: {request.method} {request.url.path} -> {response.status_code}")
    return response


# Añadir middleware para medir el tiempo de respuesta
app.add_middleware(TimingMiddleware)

# Configurar CORS para toda la aplicación
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings_instance.BACKEND_CORS_ORIGINS or [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
    max_age=86400,  # 24 horas en segundos
)

# Incluir routers
app.include_router(api_router, prefix=settings_instance.API_V1_STR)


# Ruta raíz
@app.get("/")
def root():
    return {
        "message": "Bienvenido a la API de reservas y exportaciones",
        "docs": f"{settings_instance.API_V1_STR}/docs",
    }


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=settings_instance.DEBUG_MODE)

# ewaste/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ewaste.core.config import settings
from ewaste.core.errors import ServiceError, ValidationError
from ewaste.core.log import configure_logging
from ewaste.deps import get_pickup_repo, get_user_repo
from ewaste.middleware.audit import AuditMiddleware
from ewaste.models.pickup import first_error_message
from ewaste.routers import admin as admin_router
from ewaste.routers import auth as auth_router
from ewaste.routers import pickups as pickups_router

configure_logging(settings.log_level)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.use_mongo:
        from ewaste.core.db import get_client

        try:
            await get_pickup_repo().ensure_indexes()
            await get_user_repo().ensure_indexes()
            log.info("connected to MongoDB database %s", settings.mongo_db)
            yield
        finally:
            get_client().close()
    else:
        log.info("using in-memory storage")
        yield


app = FastAPI(lifespan=lifespan, title=settings.app_name)

app.add_middleware(AuditMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# ---------------- Error handlers ----------------
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    err = ValidationError(first_error_message(exc))
    return JSONResponse(err.to_dict(), status_code=err.status_code)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception("unhandled error on %s %s", request.method, request.url.path)
    body = {"kind": "InternalError", "message": "Something went wrong!"}
    if settings.debug:
        body["error"] = str(exc)
    return JSONResponse(body, status_code=500)


# ---------------- Include routers ----------------
app.include_router(auth_router.router)        # /api/auth
app.include_router(pickups_router.router)     # /api/pickups
app.include_router(admin_router.router)       # /api/admin


@app.get("/")
def root():
    return {"message": f"{settings.app_name} is running"}


# Health
@app.get("/health")
def health():
    return {"ok": True}

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from billflow.core.config import settings
from billflow.core.errors import BillFlowError
from billflow.core.middleware import TenantMiddleware
from billflow.db.session import DATABASE_URL, init_db
from billflow.api import backup, email, health, months, state, web

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

init_db()

app = FastAPI(title=settings.PROJECT_NAME)
app.add_middleware(TenantMiddleware)

@app.exception_handler(BillFlowError)
async def billflow_error_handler(request: Request, exc: BillFlowError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies are client errors like any other validation failure
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    return JSONResponse(status_code=400, content={"detail": message})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})

# API routers
for module in (health, state, months, backup, email):
    app.include_router(module.router, prefix=settings.API_PREFIX)

# Frontend catch-all must stay last
app.include_router(web.router)

@app.on_event("startup")
async def startup_event():
    logger.info(f"{settings.PROJECT_NAME} running on :{settings.PORT}")
    logger.info(f"DB: {DATABASE_URL}")
    logger.info(f"Auth headers: {', '.join(settings.TENANT_HEADERS)} (fallback: {settings.DEFAULT_TENANT!r})")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from database import ensure_indexes
from errors import register_error_handlers

from . import auth, menu, orders, reports, tables, users
from .deps import get_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_indexes(get_db())
    yield


app = FastAPI(title="Restaurant Management API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    # 4xx are the caller's fault ("fail"), 5xx ours ("error")
    status = "fail" if exc.status_code < 500 else "error"
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": status, "message": exc.detail, "detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


for module in (auth, users, menu, orders, tables, reports):
    app.include_router(module.router)


@app.get("/")
def read_root():
    return {"message": "Restaurant Management API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "running",
        "database": config.RESTAURANT_DATABASE_NAME,
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        response["collections"] = get_db().list_collection_names()[:10]
        response["connection_status"] = "Connected"
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        response["connection_status"] = f"Error: {str(e)[:50]}"
    return response


if __name__ == "__main__":
    import uvicorn
    config.configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)

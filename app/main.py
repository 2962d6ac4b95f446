# app/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.exceptions import CatalogError, PersistenceError
from app.routers import coffees

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Coffee Catalog API",
    description="CRUD API for Coffee Catalog with price history",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(coffees.router)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    if isinstance(exc, PersistenceError):
        # Подробности уже записаны в crud, клиенту — общее сообщение
        logger.error("%s %s: ошибка хранилища", request.method, request.url.path)
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        # loc: ("body", "currentPrice") / ("query", "inStock") / ("path", "coffee_id")
        field = ".".join(str(p) for p in err.get("loc", ())[1:])
        parts.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return error_response(400, "; ".join(parts) or "Validation error")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return error_response(404, "Route not found")
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Необработанная ошибка %s %s: %s", request.method, request.url.path, exc)
    return error_response(500, "Internal Server Error")


@app.get("/")
async def root():
    return {"message": "Coffee Catalog API is running"}

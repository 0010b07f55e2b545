# order_intake/main.py

from contextlib import asynccontextmanager
from typing import Annotated
import logging

from fastapi import FastAPI, Depends, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from order_intake import settings
from order_intake.db import create_db_and_tables, get_session
from order_intake.errors import ErrorKind, IntakeError, OrderValidationError
from order_intake.repository import OrderRepository
from order_intake.schemas import OrderCreatedResponse, OrderListResponse, OrderOutput
from order_intake.service import OrderIntakeService, OrderQueryService
from order_intake.uploads import PAYMENT_FIELD, UploadStorage


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

STATUS_CODES = {
    ErrorKind.UNSUPPORTED_MEDIA_TYPE: 415,
    ErrorKind.PAYLOAD_TOO_LARGE: 413,
    ErrorKind.PERSISTENCE_ERROR: 500,
    ErrorKind.UPLOAD_STORAGE_ERROR: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan event to manage application startup and shutdown.
    """
    # Initialize the database and create tables
    create_db_and_tables()
    logger.info("Database created and tables ensured.")

    app.state.storage = UploadStorage(settings.UPLOAD_DIR)
    logger.info(f"Storing payment screenshots in {app.state.storage.root}")
    yield


app = FastAPI(lifespan=lifespan, title="Order Intake Service", version="1.0.0")
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


def get_storage(request: Request) -> UploadStorage:
    return request.app.state.storage


def get_repository(session: Annotated[Session, Depends(get_session)]) -> OrderRepository:
    return OrderRepository(session)


def get_intake_service(
    storage: Annotated[UploadStorage, Depends(get_storage)],
    repository: Annotated[OrderRepository, Depends(get_repository)],
) -> OrderIntakeService:
    return OrderIntakeService(storage, repository, max_bytes=settings.MAX_UPLOAD_BYTES)


def get_query_service(repository: Annotated[OrderRepository, Depends(get_repository)]) -> OrderQueryService:
    return OrderQueryService(repository)


@app.exception_handler(IntakeError)
async def intake_error_handler(request: Request, exc: IntakeError):
    content = {"success": False, "reason": exc.kind.value, "message": exc.message}
    if isinstance(exc, OrderValidationError):
        content["errors"] = [error.as_dict() for error in exc.errors]
    if not exc.client_fault:
        logger.error(f"{request.method} {request.url.path} failed: {exc.kind.value}: {exc.detail}")
        if settings.DEBUG:
            content["detail"] = exc.detail
    return JSONResponse(status_code=STATUS_CODES.get(exc.kind, 400), content=content)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} failed unexpectedly: {exc}")
    content = {"success": False, "reason": "InternalServerError", "message": "Something went wrong!"}
    if settings.DEBUG:
        content["detail"] = str(exc)
    return JSONResponse(status_code=500, content=content)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = "Endpoint not found" if exc.status_code == 404 else exc.detail
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": message})


@app.post("/api/orders", response_model=OrderCreatedResponse, status_code=201)
async def create_order(
    request: Request,
    service: Annotated[OrderIntakeService, Depends(get_intake_service)],
):
    async with request.form() as form:
        payload = {key: value for key, value in form.multi_items() if isinstance(value, str)}
        files = [value for value in form.getlist(PAYMENT_FIELD) if not isinstance(value, str)]
        order = await service.submit(payload, files)
    return OrderCreatedResponse(order=OrderOutput.from_record(order))


@app.get("/api/orders", response_model=OrderListResponse)
def list_orders(service: Annotated[OrderQueryService, Depends(get_query_service)]):
    orders = service.list_orders()
    return OrderListResponse(orders=[OrderOutput.from_record(order) for order in orders])


@app.get("/api/health")
def health(session: Annotated[Session, Depends(get_session)]):
    try:
        session.execute(text("SELECT 1"))
        database = "Connected"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        database = "Disconnected"
    return {"status": "OK", "database": database}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("order_intake.main:app", host="0.0.0.0", port=8000)

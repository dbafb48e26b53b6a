import json
from contextlib import asynccontextmanager

import firebase_admin
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from firebase_admin import credentials
from starlette import status

from api.common.config import (
    FIREBASE_CREDENTIALS_FILE, FIREBASE_CREDENTIALS_JSON_CONTENT, PORT, is_production
)
from api.common.errors import SalesError, error_response
from api.common.logger import setup_logging

logger = setup_logging()


def load_firebase_credentials():
    """
    Load Firebase credentials.
    Priority: FIREBASE_CREDENTIALS_JSON_CONTENT env var (for production)
    Fallback: local JSON file named by FIREBASE_CREDENTIALS_FILE (for local development)
    """
    if FIREBASE_CREDENTIALS_JSON_CONTENT:
        try:
            cred_dict = json.loads(FIREBASE_CREDENTIALS_JSON_CONTENT)
        except json.JSONDecodeError as e:
            logger.critical("FIREBASE_CREDENTIALS_JSON_CONTENT is set but contains invalid JSON: %s", e)
            raise
        logger.info("Initialized Firebase from FIREBASE_CREDENTIALS_JSON_CONTENT env var.")
        return credentials.Certificate(cred_dict)

    try:
        cred = credentials.Certificate(FIREBASE_CREDENTIALS_FILE)
    except FileNotFoundError:
        logger.critical("Local credentials file '%s' not found. It is required when "
                        "FIREBASE_CREDENTIALS_JSON_CONTENT is not set.", FIREBASE_CREDENTIALS_FILE)
        raise
    logger.info("Initialized Firebase from local JSON file: %s", FIREBASE_CREDENTIALS_FILE)
    return cred


def initialize_firebase():
    if firebase_admin._apps:
        return
    firebase_admin.initialize_app(load_firebase_credentials())


@asynccontextmanager
async def lifespan(_app: FastAPI):
    initialize_firebase()
    yield


app = FastAPI(title="Sales Tracking API", lifespan=lifespan)

from api.sales.routers import router as sales_router

app.include_router(sales_router, prefix="/sales", tags=["sales"])


@app.exception_handler(SalesError)
async def sales_error_handler(_request: Request, exc: SalesError):
    """Errors raised outside route bodies, e.g. by authentication dependencies."""
    return error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_request: Request, exc: RequestValidationError):
    body = {"success": False, "error": "Datos de entrada inválidos"}
    if not is_production():
        body["details"] = json.loads(json.dumps(exc.errors(), default=str))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


@app.get("/")
def read_root():
    """Root endpoint for the API.
    Returns:
        A simple message indicating the API is running.
    """
    return {"message": "Sales Tracking API"}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=PORT)

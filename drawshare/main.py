import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from drawshare.errors import (
    AuthFailure,
    LinkFailure,
    ShareError,
    UploadFailure,
    ValidationFailure,
)
from drawshare.logging import configure_logging
from drawshare.payload import decode_data_uri
from drawshare.schema import ErrorReturn, ImagePost, ImagePostReturn
from drawshare.service import ImageSharer, get_image_sharer
from drawshare.utils import get_settings

# --- ENVIRONMENT VARIABLES ---
if os.environ.get("ENV") == "development":
    print("Loading environment variables from .env file")
    load_dotenv()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    configure_logging(get_settings().log_level)
    if not get_settings().can_refresh:
        log.warning(
            "No Dropbox refresh token or app credentials configured, "
            "expired access tokens will not be refreshed"
        )
    yield


app = FastAPI(lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins_list,
    allow_origin_regex=get_settings().allowed_origins_regex,
    allow_credentials=True,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["*"],
)

log = logging.getLogger(__name__)

# status returned for each failure class; anything else is a 500
STATUS_CODES = {
    ValidationFailure: 400,
    UploadFailure: 502,
    LinkFailure: 502,
    AuthFailure: 502,
}


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorReturn.model_validate({"error": {"code": code, "message": message}})
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(ShareError)
async def share_error_handler(_request: Request, exc: ShareError):
    status_code = STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        log.error(f"Upload request failed: {exc.code}", exc_info=exc)
    return error_response(status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_request: Request, exc: RequestValidationError):
    log.debug(f"Rejected request body: {exc.errors()}")
    return error_response(400, "invalid_request", "Request body must be JSON with an image field.")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, "http_error", str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_error_handler(_request: Request, exc: Exception):
    log.exception("Unhandled exception during upload", exc_info=exc)
    return error_response(500, "internal_error", "An error occurred during upload.")


@app.post(
    "/api/upload",
    responses={
        400: {"model": ErrorReturn},
        502: {"model": ErrorReturn},
    },
)
def upload_image(
    data: ImagePost, sharer: ImageSharer = Depends(get_image_sharer)
) -> ImagePostReturn:
    image = decode_data_uri(data.image, max_size=get_settings().max_file_size)
    return ImagePostReturn(url=sharer.share(image))


@app.get("/health")
async def health_check():
    """
    Health check endpoint to verify the service is running
    """
    return {"status": "ok", "message": "Service is running"}


def run():
    """Serve the app with uvicorn, for the ``drawshare`` console script."""
    uvicorn.run(app, host=get_settings().host, port=get_settings().port)

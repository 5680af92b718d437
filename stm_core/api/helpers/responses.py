"""
Response helpers for the request pipeline.

Handlers return an ``ApiResult``; the pipeline turns it into the HTTP
response after the transaction has been committed or rolled back.
"""

from dataclasses import dataclass
from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


class APIResponse(BaseModel):
    """Body of every error response"""

    success: bool
    message: str
    data: Any | None = None
    errors: list[str] | None = None


@dataclass
class ApiResult:
    """Outcome of an operation handler. Only ``200`` leads to a commit."""

    status_code: int
    data: Any = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status_code == status.HTTP_200_OK


def json_result(data: Any) -> ApiResult:
    return ApiResult(status_code=status.HTTP_200_OK, data=data)


def empty_result() -> ApiResult:
    return ApiResult(status_code=status.HTTP_200_OK)


def bad_request_result(message: str) -> ApiResult:
    return ApiResult(status_code=status.HTTP_400_BAD_REQUEST, message=message)


def success_response(result: ApiResult) -> Response:
    if result.data is None:
        return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)
    return JSONResponse(
        content=jsonable_encoder(result.data, by_alias=True),
        status_code=status.HTTP_200_OK,
        headers=CORS_HEADERS,
    )


def error_response(
    message: str = "An error occurred",
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
) -> JSONResponse:
    body = APIResponse(success=False, message=message, errors=[])
    return JSONResponse(
        content=body.model_dump(),
        status_code=status_code,
        headers=CORS_HEADERS,
    )


def unauthorized_response(message: str = "No valid authentication token found") -> JSONResponse:
    return error_response(message=message, status_code=status.HTTP_401_UNAUTHORIZED)


def internal_error_response(message: str = "An error occurred") -> JSONResponse:
    return error_response(
        message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )

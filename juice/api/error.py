from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from juice.libs.result import Error

NOT_FOUND_CODES = {
    "PURCHASE_NOT_FOUND",
    "CASH_OUT_NOT_FOUND",
    "SPEND_NOT_FOUND",
}

CONFLICT_CODES = {
    "INVALID_STATE",
    "INVALID_PURCHASE_STATE",
    "SPEND_ALREADY_COMPLETED",
    "SPEND_REFUNDED",
}


class ClientError(Exception):
    """Business error surfaced to the HTTP caller"""

    def __init__(self, error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code


def status_code_for(error: Error) -> int:
    if error.code == "INSUFFICIENT_BALANCE":
        return status.HTTP_402_PAYMENT_REQUIRED
    if error.code in NOT_FOUND_CODES:
        return status.HTTP_404_NOT_FOUND
    if error.code in CONFLICT_CODES:
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def raise_for_error(error: Error):
    raise ClientError(error, status_code=status_code_for(error))


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    content = {"code": exc.error.code, "message": exc.error.message}
    if exc.error.reason:
        content["reason"] = exc.error.reason
    return JSONResponse(status_code=exc.status_code, content={"error": content})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request parameters",
                "details": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
                    for err in exc.errors()
                ],
            }
        },
    )

"""Mapping of rejection failures to HTTP errors."""

from fastapi import HTTPException

from promocodes.services.results import ErrorCode, Failure

STATUS_BY_CODE = {
    ErrorCode.VALIDATION_INPUT: 422,
    ErrorCode.CALCULATION_ERROR: 422,
    ErrorCode.CODE_NOT_FOUND: 404,
    ErrorCode.CODE_INACTIVE: 422,
    ErrorCode.CODE_EXPIRED: 422,
    ErrorCode.CODE_LIMIT_REACHED: 422,
    ErrorCode.ACCOUNT_INELIGIBLE: 422,
    ErrorCode.LOST_RACE: 409,
}


def failure_exception(failure: Failure) -> HTTPException:
    return HTTPException(
        status_code=STATUS_BY_CODE.get(failure.code, 422),
        detail={
            "error": failure.code.value,
            "message": failure.message,
            "hint": failure.hint,
            "reasons": failure.reasons,
        },
    )

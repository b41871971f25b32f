from fastapi import HTTPException, status


def get_user_exception(detail: str = "Not authorized, no token"):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
    )
    return credentials_exception


def get_unknown_entity_exception(entity: str = "Entity"):
    entity_exception = HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{entity} not found"
    )
    return entity_exception


class LeaveCalculationError(ValueError):
    """Base class for leave duration failures, answered with a 400."""


class InvalidDate(LeaveCalculationError):
    pass


class InvalidRange(LeaveCalculationError):
    pass


class InvalidDuration(LeaveCalculationError):
    pass

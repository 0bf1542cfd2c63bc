"""Helpers for translating domain errors into HTTP errors"""
from fastapi import HTTPException
from dispatchdesk.core.exceptions import NotFoundError


def not_found_response(exc: NotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))

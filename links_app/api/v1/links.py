"""
Authenticated link actions.

Every endpoint answers either {"success": true, ...} or {"error": message}.
Order of checks: identity, then payload validation, then the store.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from links_app.dependencies import get_current_user_id, get_link_service
from links_app.exceptions import DuplicateShortCodeError, LinkError, LinkNotFoundError
from links_app.schemas.link import (
    DeleteResult,
    ErrorResult,
    LinkCreate,
    LinkListResult,
    LinkResponse,
    LinkResult,
    LinkUpdate,
    first_error_message,
)
from links_app.services.link_service import LinkService
from links_app.services.sorting import SortOption


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/links", tags=["links"])

UNAUTHORIZED = "Unauthorized"

ERROR_RESPONSES = {
    401: {"model": ErrorResult},
    404: {"model": ErrorResult},
    409: {"model": ErrorResult},
    422: {"model": ErrorResult},
    500: {"model": ErrorResult},
}

_STATUS_BY_ERROR = {
    DuplicateShortCodeError: status.HTTP_409_CONFLICT,
    LinkNotFoundError: status.HTTP_404_NOT_FOUND,
}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def link_error_response(exc: LinkError) -> JSONResponse:
    status_code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return error_response(status_code, exc.message)


@router.get("/", response_model=LinkListResult, responses=ERROR_RESPONSES)
def list_links(
    sort: Optional[str] = Query(None, description="One of: " + ", ".join(o.value for o in SortOption)),
    user_id: Optional[str] = Depends(get_current_user_id),
    link_service: LinkService = Depends(get_link_service),
):
    """List the caller's links, newest first unless another sort is given"""
    if user_id is None:
        return error_response(status.HTTP_401_UNAUTHORIZED, UNAUTHORIZED)

    sort_option = None
    if sort:
        try:
            sort_option = SortOption(sort)
        except ValueError:
            return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid sort option")

    links = link_service.list_links(user_id, sort_option)
    return LinkListResult(data=[LinkResponse.model_validate(link) for link in links])


@router.post(
    "/",
    response_model=LinkResult,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
def create_link(
    payload: Any = Body(None),
    user_id: Optional[str] = Depends(get_current_user_id),
    link_service: LinkService = Depends(get_link_service),
):
    """Create a link owned by the caller"""
    if user_id is None:
        return error_response(status.HTTP_401_UNAUTHORIZED, UNAUTHORIZED)

    try:
        data = LinkCreate.model_validate(payload)
    except ValidationError as exc:
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, first_error_message(exc))

    try:
        link = link_service.create_link(user_id, data)
    except LinkError as exc:
        return link_error_response(exc)
    except Exception:
        logger.exception("Failed to create link (owner=%s)", user_id)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create link")

    return LinkResult(data=LinkResponse.model_validate(link))


@router.patch("/{link_id}", response_model=LinkResult, responses=ERROR_RESPONSES)
def update_link(
    link_id: int,
    payload: Any = Body(None),
    user_id: Optional[str] = Depends(get_current_user_id),
    link_service: LinkService = Depends(get_link_service),
):
    """Partially update one of the caller's links"""
    if user_id is None:
        return error_response(status.HTTP_401_UNAUTHORIZED, UNAUTHORIZED)

    try:
        data = LinkUpdate.model_validate(payload)
    except ValidationError as exc:
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, first_error_message(exc))

    try:
        link = link_service.update_link(user_id, link_id, data)
    except LinkError as exc:
        return link_error_response(exc)
    except Exception:
        logger.exception("Failed to update link %s (owner=%s)", link_id, user_id)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update link")

    return LinkResult(data=LinkResponse.model_validate(link))


@router.delete("/{link_id}", response_model=DeleteResult, responses=ERROR_RESPONSES)
def delete_link(
    link_id: int,
    user_id: Optional[str] = Depends(get_current_user_id),
    link_service: LinkService = Depends(get_link_service),
):
    """Permanently delete one of the caller's links"""
    if user_id is None:
        return error_response(status.HTTP_401_UNAUTHORIZED, UNAUTHORIZED)

    try:
        link_service.delete_link(user_id, link_id)
    except LinkError as exc:
        return link_error_response(exc)
    except Exception:
        logger.exception("Failed to delete link %s (owner=%s)", link_id, user_id)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to delete link")

    return DeleteResult()

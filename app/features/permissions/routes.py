"""
Feature permission API routes.

GET /feature reads a user's access flag, POST /feature sets it.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from starlette.responses import Response

from app.core import config
from app.core.database.engine import get_store
from app.core.database.store import DocumentStore
from app.core.errors import StoreError, ValidationError
from app.features.permissions.schemas import PermissionAccessResponse, PermissionWrite
from app.features.permissions.validators import query_params_error, validate_body
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter()


@router.get(
    "/feature",
    response_model=PermissionAccessResponse,
    responses={400: {"description": "Invalid email or featureName"}, 404: {"description": "No record"}},
)
async def get_permission(
    email: str | None = None,
    feature_name: str | None = Query(None, alias="featureName"),
    store: DocumentStore = Depends(get_store),
):
    """Return whether the user identified by email can access featureName."""
    error = query_params_error(email, feature_name)
    if error:
        log.info("Validation failed for get parameters: %s", error)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    log.info("Finding permission for email: %s & featureName: %s", email, feature_name)
    try:
        document = await store.find_one(
            config.PERMISSIONS_COLLECTION,
            {"email": email, "feature_name": feature_name},
        )
    except StoreError:
        log.exception("Something went wrong while searching for permission")
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if document is None:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    return PermissionAccessResponse(can_access=document["enabled"])


@router.post(
    "/feature",
    response_class=Response,
    responses={304: {"description": "Already up to date"}, 400: {"description": "Invalid body"}},
)
async def change_permission(
    request: Request,
    store: DocumentStore = Depends(get_store),
):
    """
    Add or change a user's access to a feature.

    Body: {"featureName": str, "email": str, "enable": bool}

    Responds 200 when a record was created or modified, 304 when the stored
    flag already had the requested value.
    """
    try:
        payload = await request.json()
    except ValueError:
        log.info("Validation failed: body is not valid JSON")
        return Response(status_code=status.HTTP_400_BAD_REQUEST)

    try:
        permission = validate_body(payload, PermissionWrite)
    except ValidationError as exc:
        log.info("Validation failed: %s", exc.cause)
        return Response(status_code=status.HTTP_400_BAD_REQUEST)

    try:
        outcome = await store.upsert(
            config.PERMISSIONS_COLLECTION,
            {"email": permission.email, "feature_name": permission.feature_name},
            {"enabled": permission.enabled},
        )
    except StoreError:
        log.exception("Something went wrong while updating permission")
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if outcome.changed:
        log.info("Permission %s: %s", outcome.status.value, outcome.id)
        return Response(status_code=status.HTTP_200_OK)

    log.info("Permission exists. No modification required.")
    return Response(status_code=status.HTTP_304_NOT_MODIFIED)

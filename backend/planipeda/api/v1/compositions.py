import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status

from planipeda.core.composition import mutate_composition
from planipeda.core.errors import BackendError, DocumentValidationError, NotFoundError
from planipeda.core.registry import DocumentKind
from planipeda.schemas.composition import CompositionItem, ItemRequest, MutationRequest, MutationResult
from planipeda.services.planning_service import PlanningDocumentService, get_planning_service

# Configure logger for this module
logger = logging.getLogger(__name__)

router = APIRouter()

@router.post(
    "/mutate",
    response_model=MutationResult,
    summary="Apply one editing operation to a composition",
    description="Pure operation on the submitted item list (append, remove, moveUp, moveDown, reorder); nothing is read or written. `changed` is false for no-ops, `duplicate` is true when an append was rejected."
)
def mutate(request: MutationRequest):
    """
    Apply an editing operation and return the new ordered list.

    Raises:
        HTTPException: 422 if the operation's arguments are missing or out of range.
    """
    logger.debug(f"API: Applying {request.op.value} to a composition of {len(request.items)} items.")
    try:
        return mutate_composition(
            request.items,
            request.op,
            item=request.item,
            local_key=request.local_key,
            from_index=request.from_index,
            to_index=request.to_index,
        )
    except (ValueError, IndexError) as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

@router.post(
    "/items",
    response_model=CompositionItem,
    summary="Build a composition item from a master record",
    description="Looks up an activity, evaluation or sequence by id and returns it as an item ready to append to a document of the given kind."
)
def build_item(
    *,
    request: ItemRequest,
    document_kind: DocumentKind = Query(..., description="The kind of document the item will be added to."),
    planning_service: PlanningDocumentService = Depends(get_planning_service)
):
    logger.debug(f"API: Building {request.child_kind.value} {request.child_id} item for a {document_kind.value}.")
    try:
        return planning_service.build_item(document_kind, request.child_kind, request.child_id)
    except DocumentValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.problems)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

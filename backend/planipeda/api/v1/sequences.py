import logging
from fastapi import APIRouter, Depends, HTTPException, status

# Import services, schemas, and dependencies
from planipeda.core.errors import BackendError, DocumentValidationError, NotFoundError, ParentSaveError
from planipeda.core.registry import DocumentKind
from planipeda.schemas.composition import DeleteReport, SaveReport
from planipeda.schemas.document import LoadedSequence, SaveSequenceRequest
from planipeda.services.planning_service import PlanningDocumentService, get_planning_service

# Configure logger for this module
logger = logging.getLogger(__name__)

# Create a new router for this module.
# All routes defined here will be prefixed with what's defined in main.py.
router = APIRouter()

@router.get(
    "/{sequence_id}",
    response_model=LoadedSequence,
    summary="Load a sequence with its activities and evaluations",
    description="Returns the sequence's own fields and its ordered list of activities and evaluations. Kinds that could not be loaded are listed in `errors`; links to deleted records are dropped and listed in `dangling`."
)
def load_sequence(
    *,
    sequence_id: int,
    planning_service: PlanningDocumentService = Depends(get_planning_service)
):
    """
    Load a sequence document for editing.

    Raises:
        HTTPException: 404 Not Found if the sequence does not exist.
    """
    logger.debug(f"API: Loading sequence {sequence_id}.")
    try:
        return planning_service.load(DocumentKind.SEQUENCE, sequence_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BackendError as e:
        logger.error(f"API: Loading sequence {sequence_id} failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

@router.put(
    "/",
    response_model=SaveReport,
    summary="Create or update a sequence and its composition",
    description="Upserts the sequence, then replaces its activity and evaluation links with the submitted order. A `partial-failure` status names the kinds that could not be synchronized; the others are saved."
)
def save_sequence(
    *,
    request: SaveSequenceRequest,
    planning_service: PlanningDocumentService = Depends(get_planning_service)
):
    """
    Save a sequence document and its ordered items.

    Raises:
        HTTPException: 422 if the document is incomplete, 404 if it refers to
        a missing sequence, 500 if the sequence row could not be written.
    """
    logger.debug(f"API: Saving sequence {request.document.id} with {len(request.items)} items.")
    try:
        return planning_service.save(DocumentKind.SEQUENCE, request.document, request.items)
    except DocumentValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.problems)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (ParentSaveError, BackendError) as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

@router.delete(
    "/{sequence_id}",
    response_model=DeleteReport,
    summary="Delete a sequence",
    description="Removes the sequence's activity and evaluation links, then the sequence itself. Link cleanup failures are reported without blocking the deletion."
)
def delete_sequence(
    *,
    sequence_id: int,
    planning_service: PlanningDocumentService = Depends(get_planning_service)
):
    """
    Delete a sequence document and its links.

    Raises:
        HTTPException: 404 Not Found if the sequence does not exist.
    """
    logger.debug(f"[DELETE] API: Deleting sequence {sequence_id}.")
    try:
        return planning_service.delete(DocumentKind.SEQUENCE, sequence_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

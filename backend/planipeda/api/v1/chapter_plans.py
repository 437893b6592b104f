import logging
from fastapi import APIRouter, Depends, HTTPException, status

# Import services, schemas, and dependencies
from planipeda.core.errors import BackendError, DocumentValidationError, NotFoundError, ParentSaveError
from planipeda.core.registry import DocumentKind
from planipeda.schemas.composition import DeleteReport, SaveReport
from planipeda.schemas.document import LoadedChapterPlan, SaveChapterPlanRequest
from planipeda.services.planning_service import PlanningDocumentService, get_planning_service

# Configure logger for this module
logger = logging.getLogger(__name__)

router = APIRouter()

@router.get(
    "/{chapter_plan_id}",
    response_model=LoadedChapterPlan,
    summary="Load a chapter plan with its progression",
    description="Returns the planning sheet, its reference chapter context (hierarchy ids and general objectives) and its ordered progression of sequences, activities and evaluations."
)
def load_chapter_plan(
    *,
    chapter_plan_id: int,
    planning_service: PlanningDocumentService = Depends(get_planning_service)
):
    logger.debug(f"API: Loading chapter plan {chapter_plan_id}.")
    try:
        return planning_service.load(DocumentKind.CHAPTER_PLAN, chapter_plan_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BackendError as e:
        logger.error(f"API: Loading chapter plan {chapter_plan_id} failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

@router.put(
    "/",
    response_model=SaveReport,
    summary="Create or update a chapter plan and its progression",
    description="Upserts the planning sheet, then replaces its sequence, activity and evaluation links with the submitted order."
)
def save_chapter_plan(
    *,
    request: SaveChapterPlanRequest,
    planning_service: PlanningDocumentService = Depends(get_planning_service)
):
    logger.debug(f"API: Saving chapter plan {request.document.id} with {len(request.items)} items.")
    try:
        return planning_service.save(DocumentKind.CHAPTER_PLAN, request.document, request.items)
    except DocumentValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.problems)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (ParentSaveError, BackendError) as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

@router.delete(
    "/{chapter_plan_id}",
    response_model=DeleteReport,
    summary="Delete a chapter plan",
    description="Removes every progression link of the planning sheet, then the sheet itself."
)
def delete_chapter_plan(
    *,
    chapter_plan_id: int,
    planning_service: PlanningDocumentService = Depends(get_planning_service)
):
    logger.debug(f"[DELETE] API: Deleting chapter plan {chapter_plan_id}.")
    try:
        return planning_service.delete(DocumentKind.CHAPTER_PLAN, chapter_plan_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BackendError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

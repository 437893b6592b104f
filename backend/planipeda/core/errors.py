from typing import List, Optional


class PlanningError(Exception):
    """Base class for errors raised by the planning composition engine."""


class NotFoundError(PlanningError):
    """
    Raised when a parent document (or a master record requested by id) does
    not exist. Distinct from a parent with zero children, which loads as an
    empty composition.
    """

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class DocumentValidationError(PlanningError):
    """
    Raised before any I/O when a document cannot be saved as submitted
    (missing chapter selection, duplicate children, ...).
    """

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        self.problems = problems or [message]
        super().__init__(message)


class BackendError(PlanningError):
    """Raised by a relational backend primitive when the store rejects a query."""


class ParentSaveError(PlanningError):
    """
    Raised when upserting the parent row fails. Association work is never
    started after this error.
    """


class DanglingReferenceError(PlanningError):
    """
    An association row points at a master record that no longer exists.
    Only surfaced (as a per-kind hydration error) under the strict policy.
    """

    def __init__(self, kind: str, child_ids: List[int]):
        self.kind = kind
        self.child_ids = child_ids
        super().__init__(f"{kind} references missing master records: {child_ids}")

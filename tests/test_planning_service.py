"""Tests for the load/save/delete lifecycle of planning documents."""

import pytest

from planipeda.core.errors import DocumentValidationError, NotFoundError, ParentSaveError
from planipeda.core.registry import ChildKind, DocumentKind
from planipeda.schemas.composition import CompositionItem, SyncStatus
from planipeda.schemas.document import (
    ChapterPlanDocument,
    ChapterPlanStatus,
    LoadedChapterPlan,
    SequenceDocument,
    SequenceStatus,
)


def item(kind, child_id):
    return CompositionItem(child_kind=kind, child_id=child_id)


def pairs(loaded):
    return [(entry.child_kind, entry.child_id) for entry in loaded.items]


class TestLoad:
    def test_missing_parent_raises_not_found(self, planning_service):
        with pytest.raises(NotFoundError):
            planning_service.load(DocumentKind.SEQUENCE, 999)

    def test_parent_without_children_loads_empty(self, planning_service):
        loaded = planning_service.load(DocumentKind.SEQUENCE, 42)
        assert loaded.document.title == "Dynamics"
        assert loaded.items == []

    def test_unknown_status_is_normalized_to_draft(self, planning_service):
        assert planning_service.load(DocumentKind.SEQUENCE, 43).document.status == SequenceStatus.DRAFT

    def test_chapter_plan_resolves_its_chapter_context(self, planning_service):
        loaded = planning_service.load(DocumentKind.CHAPTER_PLAN, 7)
        assert isinstance(loaded, LoadedChapterPlan)
        assert loaded.context.chapter_title == "Newton's laws"
        assert (loaded.context.unit_id, loaded.context.option_id, loaded.context.level_id) == (1, 1, 1)
        assert loaded.context.objective_ids == [11, 12]
        assert loaded.context.general_objectives == "11. State the three laws\n\n12. Apply the second law"


class TestSave:
    def test_scenario_round_trip_keeps_edited_order(self, planning_service, backend):
        document = SequenceDocument(id=42, chapter_id=3, title="Dynamics")
        report = planning_service.save(DocumentKind.SEQUENCE, document, [item("activity", 5), item("evaluation", 9)])

        assert report.status == SyncStatus.SUCCESS
        assert report.parent_id == 42
        activity_rows = backend.select_where("sequence_activities", {"sequence_id": 42})
        evaluation_rows = backend.select_where("sequence_evaluations", {"sequence_id": 42})
        assert [(row["sequence_id"], row["activity_id"], row["order"]) for row in activity_rows] == [(42, 5, 1)]
        assert [(row["sequence_id"], row["evaluation_id"], row["order"]) for row in evaluation_rows] == [(42, 9, 2)]

        loaded = planning_service.load(DocumentKind.SEQUENCE, 42)
        assert pairs(loaded) == [(ChildKind.ACTIVITY, 5), (ChildKind.EVALUATION, 9)]

    def test_chapter_plan_round_trip(self, planning_service):
        items = [item("evaluation", 10), item("sequence", 42), item("activity", 6), item("sequence", 43)]
        document = ChapterPlanDocument(id=7, chapter_id=3, name="Plan A", status=ChapterPlanStatus.PUBLISHED)

        planning_service.save(DocumentKind.CHAPTER_PLAN, document, items)
        loaded = planning_service.load(DocumentKind.CHAPTER_PLAN, 7)

        assert pairs(loaded) == [(entry.child_kind, entry.child_id) for entry in items]
        assert [entry.order for entry in loaded.items] == [1, 2, 3, 4]
        assert loaded.document.status == ChapterPlanStatus.PUBLISHED

    def test_new_document_gets_an_id(self, planning_service):
        document = SequenceDocument(chapter_id=3, title="  Kinematics  ")
        report = planning_service.save(DocumentKind.SEQUENCE, document, [item("activity", 6)])

        loaded = planning_service.load(DocumentKind.SEQUENCE, report.parent_id)
        assert loaded.document.title == "Kinematics"
        assert pairs(loaded) == [(ChildKind.ACTIVITY, 6)]

    def test_document_may_be_given_as_a_dict(self, planning_service):
        report = planning_service.save(DocumentKind.SEQUENCE, {"id": 42, "chapter_id": 3, "title": "Dynamics II"}, [])
        assert planning_service.load(DocumentKind.SEQUENCE, report.parent_id).document.title == "Dynamics II"

    def test_updating_a_missing_document_raises_not_found(self, planning_service):
        with pytest.raises(NotFoundError):
            planning_service.save(DocumentKind.SEQUENCE, SequenceDocument(id=999, chapter_id=3, title="Ghost"), [])


class TestValidation:
    @pytest.mark.parametrize(
        "document, items",
        [
            (SequenceDocument(title="No chapter"), []),
            (SequenceDocument(chapter_id=3, title="   "), []),
            (SequenceDocument(chapter_id=3, title="Twice"), [item("activity", 5), item("activity", 5)]),
            (SequenceDocument(chapter_id=3, title="Nested"), [item("sequence", 43)]),
        ],
        ids=["missing-chapter", "blank-title", "duplicate-item", "kind-not-allowed"],
    )
    def test_invalid_documents_fail_before_any_io(self, memory_backend, service_factory, document, items):
        service = service_factory(memory_backend)
        with pytest.raises(DocumentValidationError) as excinfo:
            service.save(DocumentKind.SEQUENCE, document, items)
        assert excinfo.value.problems
        assert memory_backend.calls == []

    def test_every_problem_is_listed(self, memory_planning_service):
        with pytest.raises(DocumentValidationError) as excinfo:
            memory_planning_service.save(DocumentKind.SEQUENCE, SequenceDocument(), [])
        assert len(excinfo.value.problems) == 2


class TestFailures:
    def test_parent_save_failure_starts_no_association_work(self, memory_backend, memory_planning_service):
        memory_backend.fail_on("upsert", "sequences")
        with pytest.raises(ParentSaveError):
            memory_planning_service.save(
                DocumentKind.SEQUENCE,
                SequenceDocument(id=42, chapter_id=3, title="Dynamics"),
                [item("activity", 5)],
            )
        assert not [call for call in memory_backend.calls if call[1].startswith("sequence_")]

    def test_channel_failure_is_returned_not_raised(self, memory_backend, memory_planning_service):
        memory_backend.fail_on("insert", "sequence_evaluations")
        report = memory_planning_service.save(
            DocumentKind.SEQUENCE,
            SequenceDocument(id=42, chapter_id=3, title="Dynamics"),
            [item("activity", 5), item("evaluation", 9)],
        )
        assert report.status == SyncStatus.PARTIAL_FAILURE
        assert report.failed_kinds == [ChildKind.EVALUATION]
        loaded = memory_planning_service.load(DocumentKind.SEQUENCE, 42)
        assert pairs(loaded) == [(ChildKind.ACTIVITY, 5)]


class TestDelete:
    def test_delete_removes_links_and_parent(self, planning_service, backend):
        planning_service.save(
            DocumentKind.CHAPTER_PLAN,
            ChapterPlanDocument(id=7, chapter_id=3),
            [item("sequence", 42), item("evaluation", 9)],
        )

        report = planning_service.delete(DocumentKind.CHAPTER_PLAN, 7)

        assert report.status == SyncStatus.SUCCESS
        assert report.parent_id == 7
        assert backend.get_by_id("chapter_plans", 7) is None
        assert backend.select_where("chapter_plan_sequences", {"chapter_plan_id": 7}) == []
        assert backend.get_by_id("sequences", 42) is not None

    def test_delete_missing_parent_raises_not_found(self, planning_service):
        with pytest.raises(NotFoundError):
            planning_service.delete(DocumentKind.SEQUENCE, 999)

    def test_link_cleanup_failure_does_not_block_deletion(self, memory_backend, memory_planning_service):
        memory_backend.fail_on("delete", "sequence_evaluations")
        report = memory_planning_service.delete(DocumentKind.SEQUENCE, 42)
        assert report.status == SyncStatus.PARTIAL_FAILURE
        assert report.failed_kinds == [ChildKind.EVALUATION]
        assert memory_backend.get_by_id("sequences", 42) is None

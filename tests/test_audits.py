"""Internal audit lifecycle, derived views and statistics."""

from datetime import date

import pytest

from application import (
    AddFindingCommand,
    AddFindingUseCase,
    ApplicationError,
    AuditStatisticsUseCase,
    AuditsDueUseCase,
    CompleteAuditCommand,
    CompleteAuditUseCase,
    CreateAuditCommand,
    CreateAuditUseCase,
    NotFoundError,
    OverdueFindingsUseCase,
    StartAuditCommand,
    StartAuditUseCase,
    parse_audit_type,
    parse_finding_severity,
)
from model import (
    Audit,
    AuditFinding,
    AuditScope,
    AuditStatus,
    AuditType,
    FindingSeverity,
    FindingStatus,
)
from service import AuditService


@pytest.fixture
def audits():
    return AuditService()


def _audit(audit_id="aud-1", **overrides):
    values = dict(id=audit_id, title="Fabrication process audit", scope=AuditScope(description="Clause 8.5"))
    values.update(overrides)
    return Audit(**values)


def _create(uow, audit_id, planned_start=None, audit_type=None):
    return CreateAuditUseCase().execute(
        CreateAuditCommand(
            id=audit_id,
            title=f"Audit {audit_id}",
            scope_description="Production",
            type=audit_type,
            planned_start_date=planned_start,
            auditors=["Lead auditor"],
        ),
        uow,
    )


# --- Service -----------------------------------------------------------------

def test_create_audit_preconditions(audits):
    with pytest.raises(ValueError, match="title"):
        audits.create_audit(_audit(title=""))
    with pytest.raises(ValueError, match="scope"):
        audits.create_audit(_audit(scope=AuditScope()))

    audit = audits.create_audit(_audit(status=AuditStatus.COMPLETED))
    assert audit.status is AuditStatus.PLANNED


def test_only_planned_audits_can_start(audits):
    audit = audits.start_audit(_audit(), date(2026, 5, 4))
    assert audit.status is AuditStatus.IN_PROGRESS
    assert audit.actual_start_date == date(2026, 5, 4)

    with pytest.raises(ValueError, match="planned"):
        audits.start_audit(audit, date(2026, 5, 5))
    assert audit.actual_start_date == date(2026, 5, 4)


def test_findings_and_completion_are_unguarded(audits):
    audit = _audit()
    audits.add_finding(audit, AuditFinding(id="f1", clause="8.5.1"))
    audit = audits.complete_audit(audit, date(2026, 5, 8), None)
    assert audit.status is AuditStatus.COMPLETED
    assert [f.id for f in audit.findings] == ["f1"]
    assert audit.findings[0].created is not None


def test_audits_due(audits):
    stored = [
        _audit("due", planned_start_date=date(2026, 5, 1)),
        _audit("future", planned_start_date=date(2026, 7, 1)),
        _audit("started", planned_start_date=date(2026, 5, 1), status=AuditStatus.IN_PROGRESS),
        _audit("unscheduled"),
    ]
    assert [a.id for a in audits.audits_due(stored, today=date(2026, 6, 1))] == ["due"]


def test_overdue_findings(audits):
    audit = _audit(findings=[
        AuditFinding(id="open-late", due_date=date(2026, 5, 1)),
        AuditFinding(id="closed-late", due_date=date(2026, 5, 1), status=FindingStatus.CLOSED),
        AuditFinding(id="open-future", due_date=date(2026, 9, 1)),
    ])
    assert [f.id for f in audits.overdue_findings([audit], today=date(2026, 6, 1))] == ["open-late"]


def test_statistics(audits):
    stored = [
        _audit("a", findings=[
            AuditFinding(id="f1", severity=FindingSeverity.MAJOR),
            AuditFinding(id="f2", severity=FindingSeverity.OBSERVATION),
        ]),
        _audit("b", status=AuditStatus.COMPLETED, findings=[AuditFinding(id="f3")]),
    ]
    stats = audits.statistics(stored)
    assert (stats.planned, stats.completed) == (1, 1)
    assert (stats.major_findings, stats.minor_findings, stats.observations) == (1, 1, 1)


def test_free_text_arguments_fall_back_to_defaults():
    assert parse_audit_type("certification") is AuditType.CERTIFICATION
    assert parse_audit_type("Internal") is AuditType.INTERNAL
    assert parse_finding_severity("blocker") is FindingSeverity.MINOR


# --- Use cases ---------------------------------------------------------------

def test_audit_lifecycle(uow):
    dto = _create(uow, "aud-1", audit_type="supplier")
    assert (dto.status, dto.type, dto.auditors) == ("planned", "supplier", ["Lead auditor"])

    StartAuditUseCase().execute(StartAuditCommand(audit_id="aud-1", start_date=date(2026, 5, 4)), uow)
    with pytest.raises(ApplicationError):
        StartAuditUseCase().execute(StartAuditCommand(audit_id="aud-1"), uow)

    dto = AddFindingUseCase().execute(
        AddFindingCommand(
            audit_id="aud-1",
            id="f1",
            clause="7.5",
            description="Work instruction out of date",
            severity="major",
            due_date=date(2026, 5, 20),
        ),
        uow,
    )
    assert [(f.severity, f.category) for f in dto.findings] == [("major", "nonconformance")]

    dto = CompleteAuditUseCase().execute(
        CompleteAuditCommand(audit_id="aud-1", end_date=date(2026, 5, 8), summary="One major finding"),
        uow,
    )
    assert dto.status == "completed"
    assert dto.actual_end_date == "2026-05-08"
    assert dto.report.summary == "One major finding"

    overdue = OverdueFindingsUseCase().execute(uow, today=date(2026, 6, 1))
    assert [f.id for f in overdue] == ["f1"]

    stats = AuditStatisticsUseCase().execute(uow)
    assert (stats.completed, stats.major_findings) == (1, 1)


def test_audits_due_use_case(uow):
    _create(uow, "a", planned_start=date(2026, 4, 1))
    _create(uow, "b", planned_start=date(2026, 8, 1))
    assert [a.id for a in AuditsDueUseCase().execute(uow, today=date(2026, 6, 1))] == ["a"]


def test_unknown_audit(uow):
    with pytest.raises(NotFoundError):
        StartAuditUseCase().execute(StartAuditCommand(audit_id="ghost"), uow)

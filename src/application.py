"""
application.py

Application layer for the ISO 9001:2015 Quality Management System
compliance service.

Overview
--------
The application layer sits between the presentation layer (API / MCP tools)
and the domain / service layer.  It is responsible for:

  1. Defining clean output DTOs (dataclasses) that carry only the data
     the presentation layer needs; raw domain objects never leak upward.
  2. Mapping free-text arguments onto the closed enum sets and
     deserializing Organization snapshots from JSON-shaped payloads.
  3. Declaring abstract Repository interfaces so that the application layer
     remains fully persistence-agnostic (implementations live in
     infrastructure.py).
  4. Declaring the UnitOfWork abstraction so that multiple repository
     mutations inside a single use case are wrapped in one atomic step.
  5. Implementing Use Case handlers (one class per user-facing operation)
     that orchestrate service calls, repository reads/writes and the risk
     register refresh in the correct order.

Structure
---------
DTOs
    ValidationFindingDTO, ValidationResultDTO, ComplianceScoreDTO,
    ComplianceReportDTO
    ActionDTO, RiskDTO, OpportunityDTO, RiskEntryDTO, RiskRegisterDTO,
    RiskHeatMapDTO, RiskStatisticsDTO
    ObjectiveDTO, ObjectiveProgressDTO, ObjectiveAchievementDTO,
    ProgressUpdateDTO, ObjectiveSummaryDTO
    AuditDTO, AuditFindingDTO, AuditStatisticsDTO

Repository interfaces
    AbstractRiskRepository
    AbstractOpportunityRepository
    AbstractRiskRegisterRepository
    AbstractObjectiveRepository
    AbstractObjectiveProgressRepository
    AbstractObjectiveAchievementRepository
    AbstractAuditRepository

Unit of Work
    AbstractUnitOfWork

Use Cases
    --- Compliance ---
    ValidateOrganizationUseCase
    ComplianceScoreUseCase
    ComplianceReportUseCase
    CheckComplianceUseCase

    --- Risks & opportunities ---
    IdentifyRiskUseCase
    AssessRiskUseCase
    MitigateRiskUseCase
    MonitorRiskUseCase
    GetRiskUseCase, ListRisksUseCase
    IdentifyOpportunityUseCase
    RealizeOpportunityUseCase
    ListOpportunitiesUseCase
    GetRiskRegisterUseCase
    CriticalRisksUseCase, HighPriorityRisksUseCase, OverdueMitigationsUseCase
    RiskHeatMapUseCase, RiskStatisticsUseCase

    --- Quality objectives ---
    CreateObjectiveUseCase
    UpdateObjectiveProgressUseCase
    GetObjectiveUseCase, ListObjectivesUseCase
    AchievedObjectivesUseCase, OverdueObjectivesUseCase
    ObjectivesByResponsibleUseCase, ObjectiveSummaryUseCase

    --- Audits ---
    CreateAuditUseCase
    StartAuditUseCase
    AddFindingUseCase
    CompleteAuditUseCase
    GetAuditUseCase, ListAuditsUseCase
    AuditsDueUseCase, OverdueFindingsUseCase, AuditStatisticsUseCase

Design notes
------------
- Use cases receive commands and return DTOs only; no domain objects cross
  the application boundary.
- Each stateful use case accepts a UnitOfWork as its sole dependency.  The
  UoW exposes all repositories and handles commit/rollback.
- Compliance use cases are stateless: they take an Organization payload and
  never touch a repository.
- All timestamps flowing out are ISO-8601 strings (UTC) for easy JSON
  serialisation.
- Errors bubble up as NotFoundError (unknown id) or ApplicationError
  (business rule violated).
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PayloadValidationError

from model import (
    Action,
    ActionStatus,
    ActionType,
    Audit,
    AuditFinding,
    AuditParticipant,
    AuditReport,
    AuditScope,
    AuditStatistics,
    AuditType,
    ComplianceReport,
    FindingCategory,
    FindingSeverity,
    ObjectiveAchievement,
    ObjectiveProgress,
    ObjectiveProgressSummary,
    ObjectiveTarget,
    ObjectiveTimeline,
    Opportunity,
    Organization,
    Priority,
    QualityObjective,
    Risk,
    RiskEntry,
    RiskHeatMap,
    RiskLevel,
    RiskRegister,
    RiskStatistics,
    RiskStatus,
    ValidationFinding,
    ValidationResult,
)
from service import (
    AuditService,
    ComplianceService,
    NonCompliantError,
    ObjectiveService,
    RiskService,
    ValidationService,
)

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ApplicationError(Exception):
    """Raised when a use case cannot complete due to a business rule violation."""


class NotFoundError(ApplicationError):
    """Raised when a requested entity does not exist."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _fmt(dt: Optional[datetime]) -> Optional[str]:
    """Convert a datetime to an ISO-8601 UTC string, or None."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def _fmt_date(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d else None


def _value(member: Optional[Enum]) -> Optional[str]:
    return member.value if member is not None else None


def _today() -> date:
    return datetime.now(timezone.utc).date()


# ---------------------------------------------------------------------------
# Enum argument parsing
# ---------------------------------------------------------------------------

E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: Type[E], value: Optional[str], default: E) -> E:
    """
    Map a free-text argument onto a closed enum.

    Matching is exact and case-sensitive on the enum value; anything else
    (including None) yields `default`.
    """
    for member in enum_cls:
        if member.value == value:
            return member
    return default


def parse_risk_level(value: Optional[str]) -> RiskLevel:
    return parse_enum(RiskLevel, value, RiskLevel.MEDIUM)


def parse_priority(value: Optional[str]) -> Priority:
    return parse_enum(Priority, value, Priority.LOW)


def parse_risk_status(value: Optional[str]) -> RiskStatus:
    return parse_enum(RiskStatus, value, RiskStatus.IDENTIFIED)


def parse_audit_type(value: Optional[str]) -> AuditType:
    return parse_enum(AuditType, value, AuditType.INTERNAL)


def parse_finding_severity(value: Optional[str]) -> FindingSeverity:
    return parse_enum(FindingSeverity, value, FindingSeverity.MINOR)


def parse_action_type(value: Optional[str]) -> ActionType:
    return parse_enum(ActionType, value, ActionType.MITIGATION)


def parse_action_status(value: Optional[str]) -> ActionStatus:
    return parse_enum(ActionStatus, value, ActionStatus.PLANNED)


# ---------------------------------------------------------------------------
# Organization deserialization
# ---------------------------------------------------------------------------

_organization_adapter = TypeAdapter(Organization)


def load_organization(payload: Mapping[str, Any]) -> Organization:
    """
    Build an Organization snapshot from a JSON-shaped mapping.

    The graph is validated strictly against the domain dataclasses: an
    unknown enum value or a malformed date is rejected rather than
    defaulted.
    """
    try:
        return _organization_adapter.validate_python(dict(payload))
    except PayloadValidationError as exc:
        raise ApplicationError(f"Invalid organization payload: {exc}") from exc


# ===========================================================================
# DTO DEFINITIONS
# ===========================================================================

# ---------------------------------------------------------------------------
# Compliance DTOs
# ---------------------------------------------------------------------------

@dataclass
class ValidationFindingDTO:
    clause: str
    field: str
    message: str
    severity: str


@dataclass
class ValidationResultDTO:
    valid: bool
    errors: List[ValidationFindingDTO]
    warnings: List[ValidationFindingDTO]
    infos: List[ValidationFindingDTO]
    total_findings: int


@dataclass
class ComplianceScoreDTO:
    organization_id: str
    score: float
    text: str                               # "Compliance Score: 87.5%"
    overall_compliance: str


@dataclass
class ComplianceGapDTO:
    clause: str
    description: str
    severity: str
    priority: str


@dataclass
class ImprovementAreaDTO:
    area: str
    description: str
    priority: str


@dataclass
class ComplianceReportDTO:
    organization_id: str
    assessment_date: str
    overall_compliance: str
    compliance_score: float
    critical_gaps: List[ComplianceGapDTO]
    improvement_areas: List[ImprovementAreaDTO]
    strengths: List[str]
    recommendations: List[str]


# ---------------------------------------------------------------------------
# Risk DTOs
# ---------------------------------------------------------------------------

@dataclass
class ActionDTO:
    id: str
    description: str
    type: str
    responsible: str
    timeline: Optional[str]
    status: str
    created: Optional[str]


@dataclass
class RiskDTO:
    id: str
    description: str
    causes: List[str]
    effects: List[str]
    likelihood: Optional[str]
    impact: Optional[str]
    priority: Optional[str]
    risk_score: int
    mitigation: List[ActionDTO]
    status: str
    created: Optional[str]


@dataclass
class OpportunityDTO:
    id: str
    description: str
    benefits: List[str]
    likelihood: Optional[str]
    impact: Optional[str]
    priority: int
    actions: List[ActionDTO]
    status: str
    created: Optional[str]


@dataclass
class RiskEntryDTO:
    risk_id: str
    description: str
    type: str
    process_id: Optional[str]
    probability: Optional[str]
    impact: Optional[str]
    risk_score: int
    priority: Optional[str]
    status: str
    last_assessed: str


@dataclass
class RiskRegisterDTO:
    organization_risks: List[RiskEntryDTO]
    critical_risks: List[RiskEntryDTO]
    last_updated: Optional[str]


@dataclass
class RiskHeatMapDTO:
    """impact → likelihood → count; every level appears as a row."""
    cells: Dict[str, Dict[str, int]]


@dataclass
class RiskStatisticsDTO:
    identified: int
    assessed: int
    mitigated: int
    monitored: int
    critical: int
    high: int
    medium: int
    low: int
    opportunities_identified: int
    opportunities_planned: int
    opportunities_implemented: int
    opportunities_realized: int


# ---------------------------------------------------------------------------
# Objective DTOs
# ---------------------------------------------------------------------------

@dataclass
class ObjectiveTargetDTO:
    id: str
    metric: str
    value: str
    unit: str


@dataclass
class ObjectiveDTO:
    id: str
    name: str
    description: str
    measurable: bool
    targets: List[ObjectiveTargetDTO]
    responsible: str
    start_date: Optional[str]
    target_date: Optional[str]
    review_date: Optional[str]
    status: str
    created: Optional[str]


@dataclass
class ObjectiveProgressDTO:
    objective_id: str
    report_date: Optional[str]
    progress: float
    status: str
    comments: str


@dataclass
class ObjectiveAchievementDTO:
    objective_id: str
    achieved_date: Optional[str]
    evidence: str
    celebrated: bool


@dataclass
class ProgressUpdateDTO:
    """Result of recording progress: the objective plus any new achievement."""
    objective: ObjectiveDTO
    progress: ObjectiveProgressDTO
    achievement: Optional[ObjectiveAchievementDTO]


@dataclass
class ObjectiveSummaryDTO:
    total_objectives: int
    planned: int
    in_progress: int
    achieved: int
    not_achieved: int
    achievement_rate: float


# ---------------------------------------------------------------------------
# Audit DTOs
# ---------------------------------------------------------------------------

@dataclass
class AuditFindingDTO:
    id: str
    clause: str
    description: str
    evidence: str
    severity: str
    category: str
    root_cause: str
    process: str
    responsible: str
    due_date: Optional[str]
    status: str
    created: Optional[str]


@dataclass
class AuditReportDTO:
    id: str
    summary: str
    conclusions: str
    effectiveness: str
    issued_date: Optional[str]
    reviewed_by: str
    approved_by: str


@dataclass
class AuditDTO:
    id: str
    title: str
    type: str
    scope_description: str
    scope_processes: List[str]
    scope_clauses: List[str]
    planned_start_date: Optional[str]
    planned_end_date: Optional[str]
    actual_start_date: Optional[str]
    actual_end_date: Optional[str]
    auditors: List[str]
    auditees: List[str]
    findings: List[AuditFindingDTO]
    report: Optional[AuditReportDTO]
    status: str
    created: Optional[str]
    modified: Optional[str]


@dataclass
class AuditStatisticsDTO:
    planned: int
    in_progress: int
    completed: int
    closed: int
    critical_findings: int
    major_findings: int
    minor_findings: int
    observations: int


# ===========================================================================
# DTO ASSEMBLERS
# ===========================================================================

class _Assembler:
    """Converts domain model instances into DTOs."""

    @staticmethod
    def finding(f: ValidationFinding) -> ValidationFindingDTO:
        return ValidationFindingDTO(
            clause=f.clause, field=f.field, message=f.message, severity=f.severity.value
        )

    @staticmethod
    def validation(r: ValidationResult) -> ValidationResultDTO:
        return ValidationResultDTO(
            valid=r.valid,
            errors=[_Assembler.finding(f) for f in r.errors],
            warnings=[_Assembler.finding(f) for f in r.warnings],
            infos=[_Assembler.finding(f) for f in r.infos],
            total_findings=r.total_findings,
        )

    @staticmethod
    def report(r: ComplianceReport) -> ComplianceReportDTO:
        return ComplianceReportDTO(
            organization_id=r.organization_id,
            assessment_date=_fmt(r.assessment_date),
            overall_compliance=r.overall_compliance.value,
            compliance_score=round(r.compliance_score, 2),
            critical_gaps=[
                ComplianceGapDTO(g.clause, g.description, g.severity, g.priority.value)
                for g in r.critical_gaps
            ],
            improvement_areas=[
                ImprovementAreaDTO(a.area, a.description, a.priority.value)
                for a in r.improvement_areas
            ],
            strengths=list(r.strengths),
            recommendations=list(r.recommendations),
        )

    @staticmethod
    def action(a: Action) -> ActionDTO:
        return ActionDTO(
            id=a.id,
            description=a.description,
            type=a.type.value,
            responsible=a.responsible,
            timeline=_fmt_date(a.timeline),
            status=a.status.value,
            created=_fmt(a.created),
        )

    @staticmethod
    def risk(r: Risk) -> RiskDTO:
        return RiskDTO(
            id=r.id,
            description=r.description,
            causes=list(r.causes),
            effects=list(r.effects),
            likelihood=_value(r.likelihood),
            impact=_value(r.impact),
            priority=_value(r.priority),
            risk_score=_risk_svc.risk_score(r.likelihood, r.impact),
            mitigation=[_Assembler.action(a) for a in r.mitigation],
            status=r.status.value,
            created=_fmt(r.created),
        )

    @staticmethod
    def opportunity(o: Opportunity) -> OpportunityDTO:
        return OpportunityDTO(
            id=o.id,
            description=o.description,
            benefits=list(o.benefits),
            likelihood=_value(o.likelihood),
            impact=_value(o.impact),
            priority=o.priority,
            actions=[_Assembler.action(a) for a in o.actions],
            status=o.status.value,
            created=_fmt(o.created),
        )

    @staticmethod
    def entry(e: RiskEntry) -> RiskEntryDTO:
        return RiskEntryDTO(
            risk_id=e.risk_id,
            description=e.description,
            type=e.type.value,
            process_id=e.process_id,
            probability=_value(e.probability),
            impact=_value(e.impact),
            risk_score=e.risk_score,
            priority=_value(e.priority),
            status=e.status.value,
            last_assessed=_fmt(e.last_assessed),
        )

    @staticmethod
    def register(reg: RiskRegister) -> RiskRegisterDTO:
        return RiskRegisterDTO(
            organization_risks=[_Assembler.entry(e) for e in reg.organization_risks],
            critical_risks=[_Assembler.entry(e) for e in reg.critical_risks],
            last_updated=_fmt(reg.last_updated),
        )

    @staticmethod
    def heat_map(hm: RiskHeatMap) -> RiskHeatMapDTO:
        return RiskHeatMapDTO(
            cells={
                impact.value: {likelihood.value: n for likelihood, n in row.items()}
                for impact, row in hm.cells.items()
            }
        )

    @staticmethod
    def risk_statistics(s: RiskStatistics) -> RiskStatisticsDTO:
        return RiskStatisticsDTO(**vars(s))

    @staticmethod
    def objective(o: QualityObjective) -> ObjectiveDTO:
        return ObjectiveDTO(
            id=o.id,
            name=o.name,
            description=o.description,
            measurable=o.measurable,
            targets=[ObjectiveTargetDTO(t.id, t.metric, t.value, t.unit) for t in o.targets],
            responsible=o.responsible,
            start_date=_fmt_date(o.timeline.start_date),
            target_date=_fmt_date(o.timeline.target_date),
            review_date=_fmt_date(o.timeline.review_date),
            status=o.status.value,
            created=_fmt(o.created),
        )

    @staticmethod
    def progress(p: ObjectiveProgress) -> ObjectiveProgressDTO:
        return ObjectiveProgressDTO(
            objective_id=p.objective_id,
            report_date=_fmt_date(p.report_date),
            progress=p.progress,
            status=p.status,
            comments=p.comments,
        )

    @staticmethod
    def achievement(a: ObjectiveAchievement) -> ObjectiveAchievementDTO:
        return ObjectiveAchievementDTO(
            objective_id=a.objective_id,
            achieved_date=_fmt_date(a.achieved_date),
            evidence=a.evidence,
            celebrated=a.celebrated,
        )

    @staticmethod
    def objective_summary(s: ObjectiveProgressSummary) -> ObjectiveSummaryDTO:
        return ObjectiveSummaryDTO(
            total_objectives=s.total_objectives,
            planned=s.planned,
            in_progress=s.in_progress,
            achieved=s.achieved,
            not_achieved=s.not_achieved,
            achievement_rate=round(s.achievement_rate, 2),
        )

    @staticmethod
    def audit_finding(f: AuditFinding) -> AuditFindingDTO:
        return AuditFindingDTO(
            id=f.id,
            clause=f.clause,
            description=f.description,
            evidence=f.evidence,
            severity=f.severity.value,
            category=f.category.value,
            root_cause=f.root_cause,
            process=f.process,
            responsible=f.responsible,
            due_date=_fmt_date(f.due_date),
            status=f.status.value,
            created=_fmt(f.created),
        )

    @staticmethod
    def audit(a: Audit) -> AuditDTO:
        report = None
        if a.report is not None:
            r = a.report
            report = AuditReportDTO(
                id=r.id,
                summary=r.summary,
                conclusions=r.conclusions,
                effectiveness=r.effectiveness,
                issued_date=_fmt_date(r.issued_date),
                reviewed_by=r.reviewed_by,
                approved_by=r.approved_by,
            )
        return AuditDTO(
            id=a.id,
            title=a.title,
            type=a.type.value,
            scope_description=a.scope.description,
            scope_processes=list(a.scope.processes),
            scope_clauses=list(a.scope.clauses),
            planned_start_date=_fmt_date(a.planned_start_date),
            planned_end_date=_fmt_date(a.planned_end_date),
            actual_start_date=_fmt_date(a.actual_start_date),
            actual_end_date=_fmt_date(a.actual_end_date),
            auditors=[p.name for p in a.auditors],
            auditees=[p.name for p in a.auditees],
            findings=[_Assembler.audit_finding(f) for f in a.findings],
            report=report,
            status=a.status.value,
            created=_fmt(a.created),
            modified=_fmt(a.modified),
        )

    @staticmethod
    def audit_statistics(s: AuditStatistics) -> AuditStatisticsDTO:
        return AuditStatisticsDTO(**vars(s))


# ===========================================================================
# REPOSITORY INTERFACES
# ===========================================================================

class AbstractRiskRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, risk_id: str) -> Optional[Risk]: ...
    @abc.abstractmethod
    def list_all(self) -> List[Risk]: ...
    @abc.abstractmethod
    def save(self, risk: Risk) -> None: ...


class AbstractOpportunityRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, opportunity_id: str) -> Optional[Opportunity]: ...
    @abc.abstractmethod
    def list_all(self) -> List[Opportunity]: ...
    @abc.abstractmethod
    def save(self, opportunity: Opportunity) -> None: ...


class AbstractRiskRegisterRepository(abc.ABC):
    @abc.abstractmethod
    def get(self) -> RiskRegister: ...
    @abc.abstractmethod
    def save(self, register: RiskRegister) -> None: ...


class AbstractObjectiveRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, objective_id: str) -> Optional[QualityObjective]: ...
    @abc.abstractmethod
    def list_all(self) -> List[QualityObjective]: ...
    @abc.abstractmethod
    def save(self, objective: QualityObjective) -> None: ...


class AbstractObjectiveProgressRepository(abc.ABC):
    @abc.abstractmethod
    def list_for_objective(self, objective_id: str) -> List[ObjectiveProgress]: ...
    @abc.abstractmethod
    def save(self, progress: ObjectiveProgress) -> None: ...


class AbstractObjectiveAchievementRepository(abc.ABC):
    @abc.abstractmethod
    def list_all(self) -> List[ObjectiveAchievement]: ...
    @abc.abstractmethod
    def save(self, achievement: ObjectiveAchievement) -> None: ...


class AbstractAuditRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, audit_id: str) -> Optional[Audit]: ...
    @abc.abstractmethod
    def list_all(self) -> List[Audit]: ...
    @abc.abstractmethod
    def save(self, audit: Audit) -> None: ...


# ===========================================================================
# UNIT OF WORK
# ===========================================================================

class AbstractUnitOfWork(abc.ABC):
    """
    Groups all repositories under a single transactional boundary.
    Use as a context manager:

        with uow:
            uow.risks.save(risk)
            uow.commit()
    """
    risks: AbstractRiskRepository
    opportunities: AbstractOpportunityRepository
    risk_register: AbstractRiskRegisterRepository
    objectives: AbstractObjectiveRepository
    progress_reports: AbstractObjectiveProgressRepository
    achievements: AbstractObjectiveAchievementRepository
    audits: AbstractAuditRepository

    def __enter__(self) -> "AbstractUnitOfWork":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        else:
            self.commit()

    @abc.abstractmethod
    def commit(self) -> None: ...

    @abc.abstractmethod
    def rollback(self) -> None: ...


# ===========================================================================
# SERVICE SINGLETONS (shared across use cases)
# ===========================================================================

_validation_svc = ValidationService()
_compliance_svc = ComplianceService(_validation_svc)
_risk_svc = RiskService()
_objective_svc = ObjectiveService()
_audit_svc = AuditService()


# ===========================================================================
# USE CASE HELPERS
# ===========================================================================

def _get_risk_or_raise(uow: AbstractUnitOfWork, risk_id: str) -> Risk:
    risk = uow.risks.get(risk_id)
    if risk is None:
        raise NotFoundError(f"Risk {risk_id} not found.")
    return risk


def _get_opportunity_or_raise(uow: AbstractUnitOfWork, opportunity_id: str) -> Opportunity:
    opportunity = uow.opportunities.get(opportunity_id)
    if opportunity is None:
        raise NotFoundError(f"Opportunity {opportunity_id} not found.")
    return opportunity


def _get_objective_or_raise(uow: AbstractUnitOfWork, objective_id: str) -> QualityObjective:
    objective = uow.objectives.get(objective_id)
    if objective is None:
        raise NotFoundError(f"Objective {objective_id} not found.")
    return objective


def _get_audit_or_raise(uow: AbstractUnitOfWork, audit_id: str) -> Audit:
    audit = uow.audits.get(audit_id)
    if audit is None:
        raise NotFoundError(f"Audit {audit_id} not found.")
    return audit


def _refresh_risk_register(uow: AbstractUnitOfWork) -> RiskRegister:
    """Rebuild and persist the register from every stored risk."""
    register = _risk_svc.build_register(uow.risks.list_all())
    uow.risk_register.save(register)
    logger.debug(
        "risk_register_rebuilt",
        entries=len(register.organization_risks),
        critical=len(register.critical_risks),
    )
    return register


@dataclass
class ActionInput:
    """Plain action arguments; enum fields are free text."""
    id: str
    description: str = ""
    type: Optional[str] = None
    responsible: str = ""
    timeline: Optional[date] = None
    status: Optional[str] = None


def _build_actions(inputs: List[ActionInput]) -> List[Action]:
    return [
        Action(
            id=a.id,
            description=a.description,
            type=parse_action_type(a.type),
            responsible=a.responsible,
            timeline=a.timeline,
            status=parse_action_status(a.status),
        )
        for a in inputs
    ]


# ===========================================================================
# USE CASES: COMPLIANCE
# ===========================================================================

class ValidateOrganizationUseCase:
    """Run every clause checker over an Organization snapshot."""

    def execute(self, payload: Mapping[str, Any]) -> ValidationResultDTO:
        org = load_organization(payload)
        result = _validation_svc.validate_organization(org)
        logger.info(
            "organization_validated",
            organization_id=org.id,
            valid=result.valid,
            errors=len(result.errors),
            warnings=len(result.warnings),
            infos=len(result.infos),
        )
        return _Assembler.validation(result)


class ComplianceScoreUseCase:
    def execute(self, payload: Mapping[str, Any]) -> ComplianceScoreDTO:
        org = load_organization(payload)
        score = _compliance_svc.compliance_score(org)
        logger.info("compliance_scored", organization_id=org.id, score=score)
        return ComplianceScoreDTO(
            organization_id=org.id,
            score=score,
            text=f"Compliance Score: {score:.1f}%",
            overall_compliance=_compliance_svc.compliance_level(score).value,
        )


class ComplianceReportUseCase:
    def execute(self, payload: Mapping[str, Any]) -> ComplianceReportDTO:
        org = load_organization(payload)
        report = _compliance_svc.generate_report(org)
        logger.info(
            "compliance_report_generated",
            organization_id=org.id,
            score=report.compliance_score,
            overall=report.overall_compliance.value,
        )
        return _Assembler.report(report)


class CheckComplianceUseCase:
    """Assert compliance; a non-compliant QMS is a business-rule failure."""

    def execute(self, payload: Mapping[str, Any]) -> ValidationResultDTO:
        org = load_organization(payload)
        try:
            result = _compliance_svc.ensure_compliant(org)
        except NonCompliantError as exc:
            logger.info("compliance_check_failed", organization_id=org.id)
            raise ApplicationError(str(exc)) from exc
        return _Assembler.validation(result)


# ===========================================================================
# USE CASES: RISKS & OPPORTUNITIES
# ===========================================================================

@dataclass
class IdentifyRiskCommand:
    id: str
    description: str
    causes: List[str] = field(default_factory=list)
    effects: List[str] = field(default_factory=list)


class IdentifyRiskUseCase:
    """Record a new risk (or replace one with the same id)."""

    def execute(self, cmd: IdentifyRiskCommand, uow: AbstractUnitOfWork) -> RiskDTO:
        with uow:
            try:
                risk = _risk_svc.identify_risk(
                    Risk(
                        id=cmd.id,
                        description=cmd.description,
                        causes=list(cmd.causes),
                        effects=list(cmd.effects),
                    )
                )
            except ValueError as exc:
                raise ApplicationError(str(exc)) from exc
            uow.risks.save(risk)
            _refresh_risk_register(uow)
            uow.commit()
            logger.info("risk_identified", risk_id=risk.id)
            return _Assembler.risk(risk)


@dataclass
class AssessRiskCommand:
    risk_id: str
    likelihood: Optional[str]
    impact: Optional[str]


class AssessRiskUseCase:
    def execute(self, cmd: AssessRiskCommand, uow: AbstractUnitOfWork) -> RiskDTO:
        with uow:
            risk = _get_risk_or_raise(uow, cmd.risk_id)
            risk = _risk_svc.assess_risk(
                risk,
                likelihood=parse_risk_level(cmd.likelihood),
                impact=parse_risk_level(cmd.impact),
            )
            uow.risks.save(risk)
            _refresh_risk_register(uow)
            uow.commit()
            logger.info(
                "risk_assessed",
                risk_id=risk.id,
                likelihood=risk.likelihood.value,
                impact=risk.impact.value,
                priority=risk.priority.value,
            )
            return _Assembler.risk(risk)


@dataclass
class MitigateRiskCommand:
    risk_id: str
    actions: List[ActionInput] = field(default_factory=list)


class MitigateRiskUseCase:
    def execute(self, cmd: MitigateRiskCommand, uow: AbstractUnitOfWork) -> RiskDTO:
        with uow:
            risk = _get_risk_or_raise(uow, cmd.risk_id)
            risk = _risk_svc.mitigate_risk(risk, _build_actions(cmd.actions))
            uow.risks.save(risk)
            _refresh_risk_register(uow)
            uow.commit()
            logger.info("risk_mitigated", risk_id=risk.id, actions=len(cmd.actions))
            return _Assembler.risk(risk)


@dataclass
class MonitorRiskCommand:
    risk_id: str
    status: Optional[str]


class MonitorRiskUseCase:
    def execute(self, cmd: MonitorRiskCommand, uow: AbstractUnitOfWork) -> RiskDTO:
        with uow:
            risk = _get_risk_or_raise(uow, cmd.risk_id)
            risk = _risk_svc.monitor_risk(risk, parse_risk_status(cmd.status))
            uow.risks.save(risk)
            _refresh_risk_register(uow)
            uow.commit()
            logger.info("risk_status_updated", risk_id=risk.id, status=risk.status.value)
            return _Assembler.risk(risk)


class GetRiskUseCase:
    def execute(self, risk_id: str, uow: AbstractUnitOfWork) -> RiskDTO:
        with uow:
            return _Assembler.risk(_get_risk_or_raise(uow, risk_id))


class ListRisksUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> List[RiskDTO]:
        with uow:
            risks = sorted(uow.risks.list_all(), key=lambda r: r.id)
            return [_Assembler.risk(r) for r in risks]


@dataclass
class IdentifyOpportunityCommand:
    id: str
    description: str
    benefits: List[str] = field(default_factory=list)


class IdentifyOpportunityUseCase:
    def execute(self, cmd: IdentifyOpportunityCommand, uow: AbstractUnitOfWork) -> OpportunityDTO:
        with uow:
            try:
                opportunity = _risk_svc.identify_opportunity(
                    Opportunity(id=cmd.id, description=cmd.description, benefits=list(cmd.benefits))
                )
            except ValueError as exc:
                raise ApplicationError(str(exc)) from exc
            uow.opportunities.save(opportunity)
            _refresh_risk_register(uow)
            uow.commit()
            logger.info("opportunity_identified", opportunity_id=opportunity.id)
            return _Assembler.opportunity(opportunity)


@dataclass
class RealizeOpportunityCommand:
    opportunity_id: str
    actions: List[ActionInput] = field(default_factory=list)


class RealizeOpportunityUseCase:
    def execute(self, cmd: RealizeOpportunityCommand, uow: AbstractUnitOfWork) -> OpportunityDTO:
        with uow:
            opportunity = _get_opportunity_or_raise(uow, cmd.opportunity_id)
            opportunity = _risk_svc.realize_opportunity(opportunity, _build_actions(cmd.actions))
            uow.opportunities.save(opportunity)
            _refresh_risk_register(uow)
            uow.commit()
            logger.info("opportunity_planned", opportunity_id=opportunity.id, actions=len(cmd.actions))
            return _Assembler.opportunity(opportunity)


class ListOpportunitiesUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> List[OpportunityDTO]:
        with uow:
            opportunities = sorted(uow.opportunities.list_all(), key=lambda o: o.id)
            return [_Assembler.opportunity(o) for o in opportunities]


class GetRiskRegisterUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> RiskRegisterDTO:
        with uow:
            return _Assembler.register(uow.risk_register.get())


class CriticalRisksUseCase:
    """Risks with very_high impact and high or very_high likelihood."""

    def execute(self, uow: AbstractUnitOfWork) -> List[RiskDTO]:
        with uow:
            return [_Assembler.risk(r) for r in _risk_svc.critical_risks(uow.risks.list_all())]


class HighPriorityRisksUseCase:
    def execute(self, min_priority: Optional[str], uow: AbstractUnitOfWork) -> List[RiskDTO]:
        with uow:
            risks = _risk_svc.high_priority_risks(uow.risks.list_all(), parse_priority(min_priority))
            return [_Assembler.risk(r) for r in risks]


class OverdueMitigationsUseCase:
    def execute(self, uow: AbstractUnitOfWork, today: Optional[date] = None) -> List[RiskDTO]:
        with uow:
            risks = _risk_svc.overdue_mitigations(uow.risks.list_all(), today or _today())
            return [_Assembler.risk(r) for r in risks]


class RiskHeatMapUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> RiskHeatMapDTO:
        with uow:
            return _Assembler.heat_map(_risk_svc.heat_map(uow.risks.list_all()))


class RiskStatisticsUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> RiskStatisticsDTO:
        with uow:
            stats = _risk_svc.statistics(uow.risks.list_all(), uow.opportunities.list_all())
            return _Assembler.risk_statistics(stats)


# ===========================================================================
# USE CASES: QUALITY OBJECTIVES
# ===========================================================================

@dataclass
class TargetInput:
    metric: str
    value: str
    unit: str = ""
    id: str = ""


@dataclass
class CreateObjectiveCommand:
    id: str
    name: str
    responsible: str
    measurable: bool
    targets: List[TargetInput] = field(default_factory=list)
    description: str = ""
    start_date: Optional[date] = None
    target_date: Optional[date] = None
    review_date: Optional[date] = None


class CreateObjectiveUseCase:
    def execute(self, cmd: CreateObjectiveCommand, uow: AbstractUnitOfWork) -> ObjectiveDTO:
        with uow:
            objective = QualityObjective(
                id=cmd.id,
                name=cmd.name,
                description=cmd.description,
                measurable=cmd.measurable,
                targets=[
                    ObjectiveTarget(id=t.id or f"{cmd.id}-target-{i + 1}", metric=t.metric, value=t.value, unit=t.unit)
                    for i, t in enumerate(cmd.targets)
                ],
                responsible=cmd.responsible,
                timeline=ObjectiveTimeline(
                    start_date=cmd.start_date,
                    target_date=cmd.target_date,
                    review_date=cmd.review_date,
                ),
            )
            try:
                objective = _objective_svc.create_objective(objective)
            except ValueError as exc:
                raise ApplicationError(str(exc)) from exc
            uow.objectives.save(objective)
            uow.commit()
            logger.info("objective_created", objective_id=objective.id, responsible=objective.responsible)
            return _Assembler.objective(objective)


@dataclass
class UpdateObjectiveProgressCommand:
    objective_id: str
    progress: float
    comments: str = ""
    status: str = ""
    report_date: Optional[date] = None


class UpdateObjectiveProgressUseCase:
    """
    Append a progress report and derive the objective's new status.

    Reaching 100 % records an ObjectiveAchievement once; an achieved
    objective keeps its status whatever is reported afterwards.
    """

    def execute(self, cmd: UpdateObjectiveProgressCommand, uow: AbstractUnitOfWork) -> ProgressUpdateDTO:
        with uow:
            objective = _get_objective_or_raise(uow, cmd.objective_id)
            report = ObjectiveProgress(
                objective_id=objective.id,
                report_date=cmd.report_date,
                progress=cmd.progress,
                status=cmd.status,
                comments=cmd.comments,
            )
            try:
                objective, report, achievement = _objective_svc.update_progress(objective, report)
            except ValueError as exc:
                raise ApplicationError(str(exc)) from exc
            uow.progress_reports.save(report)
            uow.objectives.save(objective)
            if achievement is not None:
                uow.achievements.save(achievement)
                logger.info("objective_achieved", objective_id=objective.id)
            uow.commit()
            logger.info(
                "objective_progress_recorded",
                objective_id=objective.id,
                progress=report.progress,
                status=objective.status.value,
            )
            return ProgressUpdateDTO(
                objective=_Assembler.objective(objective),
                progress=_Assembler.progress(report),
                achievement=_Assembler.achievement(achievement) if achievement else None,
            )


class GetObjectiveUseCase:
    def execute(self, objective_id: str, uow: AbstractUnitOfWork) -> ObjectiveDTO:
        with uow:
            return _Assembler.objective(_get_objective_or_raise(uow, objective_id))


class ListObjectivesUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> List[ObjectiveDTO]:
        with uow:
            objectives = sorted(uow.objectives.list_all(), key=lambda o: o.id)
            return [_Assembler.objective(o) for o in objectives]


class ListObjectiveProgressUseCase:
    def execute(self, objective_id: str, uow: AbstractUnitOfWork) -> List[ObjectiveProgressDTO]:
        with uow:
            _get_objective_or_raise(uow, objective_id)
            return [_Assembler.progress(p) for p in uow.progress_reports.list_for_objective(objective_id)]


class AchievedObjectivesUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> List[ObjectiveDTO]:
        with uow:
            return [_Assembler.objective(o) for o in _objective_svc.achieved(uow.objectives.list_all())]


class OverdueObjectivesUseCase:
    def execute(self, uow: AbstractUnitOfWork, today: Optional[date] = None) -> List[ObjectiveDTO]:
        with uow:
            overdue = _objective_svc.overdue(uow.objectives.list_all(), today or _today())
            return [_Assembler.objective(o) for o in overdue]


class ObjectivesByResponsibleUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> Dict[str, List[ObjectiveDTO]]:
        with uow:
            grouped = _objective_svc.by_responsible(uow.objectives.list_all())
            return {
                responsible: [_Assembler.objective(o) for o in objectives]
                for responsible, objectives in grouped.items()
            }


class ObjectiveSummaryUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> ObjectiveSummaryDTO:
        with uow:
            summary = _objective_svc.progress_summary(uow.objectives.list_all())
            return _Assembler.objective_summary(summary)


# ===========================================================================
# USE CASES: AUDITS
# ===========================================================================

@dataclass
class CreateAuditCommand:
    id: str
    title: str
    scope_description: str
    type: Optional[str] = None
    scope_processes: List[str] = field(default_factory=list)
    scope_clauses: List[str] = field(default_factory=list)
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None
    auditors: List[str] = field(default_factory=list)
    auditees: List[str] = field(default_factory=list)


class CreateAuditUseCase:
    def execute(self, cmd: CreateAuditCommand, uow: AbstractUnitOfWork) -> AuditDTO:
        with uow:
            audit = Audit(
                id=cmd.id,
                title=cmd.title,
                type=parse_audit_type(cmd.type),
                scope=AuditScope(
                    description=cmd.scope_description,
                    processes=list(cmd.scope_processes),
                    clauses=list(cmd.scope_clauses),
                ),
                planned_start_date=cmd.planned_start_date,
                planned_end_date=cmd.planned_end_date,
                auditors=[AuditParticipant(name=n, role="auditor") for n in cmd.auditors],
                auditees=[AuditParticipant(name=n, role="auditee") for n in cmd.auditees],
            )
            try:
                audit = _audit_svc.create_audit(audit)
            except ValueError as exc:
                raise ApplicationError(str(exc)) from exc
            uow.audits.save(audit)
            uow.commit()
            logger.info("audit_created", audit_id=audit.id, type=audit.type.value)
            return _Assembler.audit(audit)


@dataclass
class StartAuditCommand:
    audit_id: str
    start_date: Optional[date] = None


class StartAuditUseCase:
    def execute(self, cmd: StartAuditCommand, uow: AbstractUnitOfWork) -> AuditDTO:
        with uow:
            audit = _get_audit_or_raise(uow, cmd.audit_id)
            try:
                audit = _audit_svc.start_audit(audit, cmd.start_date or _today())
            except ValueError as exc:
                raise ApplicationError(str(exc)) from exc
            uow.audits.save(audit)
            uow.commit()
            logger.info("audit_started", audit_id=audit.id)
            return _Assembler.audit(audit)


@dataclass
class AddFindingCommand:
    audit_id: str
    id: str
    clause: str
    description: str
    severity: Optional[str] = None
    evidence: str = ""
    root_cause: str = ""
    process: str = ""
    responsible: str = ""
    due_date: Optional[date] = None


class AddFindingUseCase:
    def execute(self, cmd: AddFindingCommand, uow: AbstractUnitOfWork) -> AuditDTO:
        with uow:
            audit = _get_audit_or_raise(uow, cmd.audit_id)
            severity = parse_finding_severity(cmd.severity)
            finding = AuditFinding(
                id=cmd.id,
                clause=cmd.clause,
                description=cmd.description,
                evidence=cmd.evidence,
                severity=severity,
                category=(
                    FindingCategory.OPPORTUNITY
                    if severity == FindingSeverity.OBSERVATION
                    else FindingCategory.NONCONFORMANCE
                ),
                root_cause=cmd.root_cause,
                process=cmd.process,
                responsible=cmd.responsible,
                due_date=cmd.due_date,
            )
            audit = _audit_svc.add_finding(audit, finding)
            uow.audits.save(audit)
            uow.commit()
            logger.info(
                "audit_finding_added", audit_id=audit.id, finding_id=finding.id, severity=severity.value
            )
            return _Assembler.audit(audit)


@dataclass
class CompleteAuditCommand:
    audit_id: str
    end_date: Optional[date] = None
    summary: str = ""
    conclusions: str = ""
    effectiveness: str = ""


class CompleteAuditUseCase:
    def execute(self, cmd: CompleteAuditCommand, uow: AbstractUnitOfWork) -> AuditDTO:
        with uow:
            audit = _get_audit_or_raise(uow, cmd.audit_id)
            end_date = cmd.end_date or _today()
            report = None
            if cmd.summary or cmd.conclusions or cmd.effectiveness:
                report = AuditReport(
                    id=f"{audit.id}-report",
                    summary=cmd.summary,
                    conclusions=cmd.conclusions,
                    effectiveness=cmd.effectiveness,
                    issued_date=end_date,
                )
            audit = _audit_svc.complete_audit(audit, end_date, report)
            uow.audits.save(audit)
            uow.commit()
            logger.info("audit_completed", audit_id=audit.id, findings=len(audit.findings))
            return _Assembler.audit(audit)


class GetAuditUseCase:
    def execute(self, audit_id: str, uow: AbstractUnitOfWork) -> AuditDTO:
        with uow:
            return _Assembler.audit(_get_audit_or_raise(uow, audit_id))


class ListAuditsUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> List[AuditDTO]:
        with uow:
            audits = sorted(uow.audits.list_all(), key=lambda a: a.id)
            return [_Assembler.audit(a) for a in audits]


class AuditsDueUseCase:
    def execute(self, uow: AbstractUnitOfWork, today: Optional[date] = None) -> List[AuditDTO]:
        with uow:
            due = _audit_svc.audits_due(uow.audits.list_all(), today or _today())
            return [_Assembler.audit(a) for a in due]


class OverdueFindingsUseCase:
    def execute(self, uow: AbstractUnitOfWork, today: Optional[date] = None) -> List[AuditFindingDTO]:
        with uow:
            findings = _audit_svc.overdue_findings(uow.audits.list_all(), today or _today())
            return [_Assembler.audit_finding(f) for f in findings]


class AuditStatisticsUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> AuditStatisticsDTO:
        with uow:
            return _Assembler.audit_statistics(_audit_svc.statistics(uow.audits.list_all()))

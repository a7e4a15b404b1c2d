"""
model.py

Domain models for the ISO 9001:2015 Quality Management System
compliance service.

Entities
--------
- Organization
- OrganizationalContext, Issue, InterestedParty
- Leadership, QualityPolicy, OrganizationalRole, Person
- QualityManagementSystem, QMSScope, Exclusion
- Process (+ inputs, outputs, criteria, resources)
- Risk, Opportunity, Action
- QualityObjective, ObjectiveTarget, ObjectiveTimeline
- ObjectiveProgress, ObjectiveAchievement, ObjectiveProgressSummary
- RiskEntry, RiskRegister, RiskHeatMap, RiskStatistics
- Audit, AuditScope, AuditParticipant, AuditFinding, AuditReport,
  AuditStatistics
- ValidationFinding, ValidationResult
- ComplianceReport, ComplianceGap, ImprovementArea

All models use Python dataclasses for clean, framework-agnostic definitions.
Identifiers are opaque strings supplied by the caller.
Timestamps are always stored in UTC; calendar fields use `date` and
`None` stands for "not set".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Optional


STANDARD_VERSION = "ISO 9001:2015"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class IssueType(str, Enum):
    """Whether a context issue originates outside or inside the organization."""
    EXTERNAL = "external"
    INTERNAL = "internal"


class Impact(str, Enum):
    """Qualitative impact of a context issue on the organization."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Status(str, Enum):
    """Generic tracking status for context issues."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    RESOLVED = "resolved"
    MITIGATED = "mitigated"


class LeadershipCommitment(str, Enum):
    """
    Commitments top management must demonstrate under clause 5.1.

    Every one of these twelve tags is required for clause 5.1 to pass.
    """
    QMS_EFFECTIVENESS = "qms_effectiveness"
    QUALITY_POLICY = "quality_policy"
    QMS_INTEGRATION = "qms_integration"
    PROCESS_APPROACH = "process_approach"
    RISK_BASED_THINKING = "risk_based_thinking"
    RESOURCES_AVAILABLE = "resources_available"
    IMPORTANCE_QMS = "importance_qms"
    CONFORMITY_REQUIREMENTS = "conformity_requirements"
    QMS_RESULTS = "qms_results"
    PERSONNEL_ENGAGEMENT = "personnel_engagement"
    IMPROVEMENT = "improvement"
    CUSTOMER_FOCUS = "customer_focus"


class ProcessStatus(str, Enum):
    """Maturity of a QMS process."""
    PLANNED = "planned"
    IMPLEMENTED = "implemented"
    MONITORED = "monitored"
    IMPROVED = "improved"


class ResourceType(str, Enum):
    """Resource categories from clause 7.1."""
    PEOPLE = "people"
    INFRASTRUCTURE = "infrastructure"
    ENVIRONMENT = "environment"
    MONITORING = "monitoring"
    ORGANIZATIONAL_KNOWLEDGE = "organizational_knowledge"


class RiskLevel(str, Enum):
    """
    Ordinal five-point scale used for both likelihood and impact.

    Declaration order is the ordinal order (very_low lowest).
    """
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class Priority(str, Enum):
    """Four-tier priority derived from a risk score."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskStatus(str, Enum):
    """
    Where a risk sits in its treatment cycle.

    identified → assessed → mitigated → monitored; the order is not
    enforced, callers may set any status.
    """
    IDENTIFIED = "identified"
    ASSESSED = "assessed"
    MITIGATED = "mitigated"
    MONITORED = "monitored"


class RiskType(str, Enum):
    """Classification used on risk register entries."""
    STRATEGIC = "strategic"
    OPERATIONAL = "operational"
    COMPLIANCE = "compliance"
    FINANCIAL = "financial"
    REPUTATIONAL = "reputational"
    TECHNICAL = "technical"


class OpportunityStatus(str, Enum):
    """Realization progress of an opportunity."""
    IDENTIFIED = "identified"
    PLANNED = "planned"
    IMPLEMENTED = "implemented"
    REALIZED = "realized"


class ActionType(str, Enum):
    """Purpose of an action raised against a risk or opportunity."""
    PREVENTIVE = "preventive"
    CORRECTIVE = "corrective"
    IMPROVEMENT = "improvement"
    MITIGATION = "mitigation"


class ActionStatus(str, Enum):
    """Execution status of an action."""
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    VERIFIED = "verified"


class ObjectiveStatus(str, Enum):
    """Status of a quality objective, derived from reported progress."""
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    ACHIEVED = "achieved"
    NOT_ACHIEVED = "not_achieved"


class Severity(str, Enum):
    """
    Severity of a validation finding.

    Only ERROR findings make a ValidationResult invalid.
    """
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ComplianceLevel(str, Enum):
    """Overall compliance label, bucketed from the compliance score."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    SATISFACTORY = "Satisfactory"
    NEEDS_IMPROVEMENT = "Needs Improvement"
    CRITICAL_GAPS = "Critical Gaps"


class AuditType(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    CERTIFICATION = "certification"
    SUPPLIER = "supplier"
    PROCESS = "process"
    SYSTEM = "system"


class AuditStatus(str, Enum):
    """
    Lifecycle of an audit.

    Only PLANNED → IN_PROGRESS is guarded (see AuditService.start_audit).
    """
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REPORTED = "reported"
    CLOSED = "closed"


class FindingSeverity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    OBSERVATION = "observation"


class FindingCategory(str, Enum):
    NONCONFORMANCE = "nonconformance"
    OPPORTUNITY = "opportunity"
    COMPLIANCE = "compliance"
    SYSTEM = "system"
    PROCESS = "process"
    DOCUMENTATION = "documentation"


class FindingStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"
    ACCEPTED = "accepted"


# ---------------------------------------------------------------------------
# Context Entities (clauses 4.1 / 4.2)
# ---------------------------------------------------------------------------


@dataclass
class Issue:
    """An external or internal issue relevant to the organization's purpose."""
    id: str = ""
    description: str = ""
    type: Optional[IssueType] = None        # Required; None fails clause 4.1
    impact: Impact = Impact.MEDIUM
    status: Status = Status.ACTIVE
    created: Optional[datetime] = None


@dataclass
class InterestedParty:
    """
    A party whose needs and expectations the QMS must determine.

    `type` is free text; the clause 4.2 checker only recognises
    customer, supplier / external_provider and regulator / authority.
    """
    id: str = ""
    name: str = ""
    type: str = ""
    requirements: List[str] = field(default_factory=list)


@dataclass
class OrganizationalContext:
    external_issues: List[Issue] = field(default_factory=list)
    internal_issues: List[Issue] = field(default_factory=list)
    interested_parties: List[InterestedParty] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Leadership Entities (clause 5)
# ---------------------------------------------------------------------------


@dataclass
class Person:
    id: str = ""
    name: str = ""
    role: str = ""
    competence: List[str] = field(default_factory=list)
    training: List[str] = field(default_factory=list)


@dataclass
class QualityPolicy:
    """Clause 5.2 quality policy; every text field and both flags are required."""
    id: str = ""
    statement: str = ""
    objectives: str = ""
    commitment: str = ""
    improvement: str = ""
    communicated: bool = False
    available: bool = False
    created: Optional[datetime] = None
    updated: Optional[datetime] = None


@dataclass
class OrganizationalRole:
    id: str = ""
    name: str = ""
    responsibilities: List[str] = field(default_factory=list)
    authorities: List[str] = field(default_factory=list)
    assigned_to: str = ""                   # Person.id


@dataclass
class Leadership:
    top_management: List[Person] = field(default_factory=list)
    quality_policy: Optional[QualityPolicy] = None
    roles: List[OrganizationalRole] = field(default_factory=list)
    commitment: List[LeadershipCommitment] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Risk & Opportunity Entities (clause 6.1)
# ---------------------------------------------------------------------------


@dataclass
class Action:
    """An action raised to treat a risk or realize an opportunity."""
    id: str = ""
    description: str = ""
    type: ActionType = ActionType.MITIGATION
    responsible: str = ""
    timeline: Optional[date] = None         # Due date
    status: ActionStatus = ActionStatus.PLANNED
    created: Optional[datetime] = None


@dataclass
class Risk:
    """
    A risk to the QMS achieving its intended results.

    likelihood / impact / priority stay None until the risk is assessed.
    """
    id: str = ""
    description: str = ""
    causes: List[str] = field(default_factory=list)
    effects: List[str] = field(default_factory=list)
    likelihood: Optional[RiskLevel] = None
    impact: Optional[RiskLevel] = None
    priority: Optional[Priority] = None     # Derived on assessment
    mitigation: List[Action] = field(default_factory=list)
    status: RiskStatus = RiskStatus.IDENTIFIED
    created: Optional[datetime] = None


@dataclass
class Opportunity:
    id: str = ""
    description: str = ""
    benefits: List[str] = field(default_factory=list)
    likelihood: Optional[RiskLevel] = None
    impact: Optional[RiskLevel] = None
    priority: int = 0
    actions: List[Action] = field(default_factory=list)
    status: OpportunityStatus = OpportunityStatus.IDENTIFIED
    created: Optional[datetime] = None


# ---------------------------------------------------------------------------
# QMS Entities (clauses 4.3 / 4.4 / 6.2)
# ---------------------------------------------------------------------------


@dataclass
class Exclusion:
    """A clause declared not applicable, with its justification."""
    clause: str = ""
    description: str = ""
    justification: str = ""


@dataclass
class QMSScope:
    description: str = ""
    products: List[str] = field(default_factory=list)
    services: List[str] = field(default_factory=list)
    exclusions: List[Exclusion] = field(default_factory=list)
    justification: str = ""


@dataclass
class ProcessInput:
    id: str = ""
    name: str = ""
    type: str = ""
    source: str = ""


@dataclass
class ProcessOutput:
    id: str = ""
    name: str = ""
    type: str = ""
    destination: str = ""


@dataclass
class ProcessCriteria:
    id: str = ""
    name: str = ""
    description: str = ""
    metric: str = ""
    target: str = ""


@dataclass
class Resource:
    id: str = ""
    type: ResourceType = ResourceType.PEOPLE
    name: str = ""
    description: str = ""
    quantity: str = ""
    available: bool = False


@dataclass
class Process:
    """
    A QMS process (clause 4.4).

    Carries its own risk and opportunity lists; these are independent
    copies, never references to the QMS-level records.
    """
    id: str = ""
    name: str = ""
    description: str = ""
    inputs: List[ProcessInput] = field(default_factory=list)
    outputs: List[ProcessOutput] = field(default_factory=list)
    resources: List[Resource] = field(default_factory=list)
    responsibilities: List[str] = field(default_factory=list)
    criteria: List[ProcessCriteria] = field(default_factory=list)
    risks: List[Risk] = field(default_factory=list)
    opportunities: List[Opportunity] = field(default_factory=list)
    status: ProcessStatus = ProcessStatus.PLANNED
    created: Optional[datetime] = None


@dataclass
class ObjectiveTarget:
    id: str = ""
    metric: str = ""
    value: str = ""
    unit: str = ""


@dataclass
class ObjectiveTimeline:
    start_date: Optional[date] = None
    target_date: Optional[date] = None      # The only date clause 6.2 requires
    review_date: Optional[date] = None


@dataclass
class QualityObjective:
    id: str = ""
    name: str = ""
    description: str = ""
    measurable: bool = False
    targets: List[ObjectiveTarget] = field(default_factory=list)
    responsible: str = ""
    timeline: ObjectiveTimeline = field(default_factory=ObjectiveTimeline)
    status: ObjectiveStatus = ObjectiveStatus.PLANNED
    created: Optional[datetime] = None


@dataclass
class QualityManagementSystem:
    id: str = ""
    scope: Optional[QMSScope] = None
    processes: List[Process] = field(default_factory=list)
    objectives: List[QualityObjective] = field(default_factory=list)
    risks: List[Risk] = field(default_factory=list)
    opportunities: List[Opportunity] = field(default_factory=list)
    created: Optional[datetime] = None


@dataclass
class Organization:
    """
    Root aggregate: the snapshot handed to the validation engine.

    The organization exclusively owns its context, leadership and QMS
    trees. Validation only ever reads it.
    """
    id: str = ""
    name: str = ""
    context: Optional[OrganizationalContext] = None
    leadership: Optional[Leadership] = None
    qms: Optional[QualityManagementSystem] = None
    created: Optional[datetime] = None
    modified: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Objective Tracking Entities
# ---------------------------------------------------------------------------


@dataclass
class ObjectiveProgress:
    """A progress snapshot reported against an objective (0 – 100+ %)."""
    objective_id: str = ""
    report_date: Optional[date] = None
    progress: float = 0.0
    status: str = ""
    comments: str = ""


@dataclass
class ObjectiveAchievement:
    objective_id: str = ""
    achieved_date: Optional[date] = None
    evidence: str = ""
    celebrated: bool = False


@dataclass
class ObjectiveProgressSummary:
    total_objectives: int = 0
    planned: int = 0
    in_progress: int = 0
    achieved: int = 0
    not_achieved: int = 0
    achievement_rate: float = 0.0           # Percentage of objectives achieved


# ---------------------------------------------------------------------------
# Risk Register Projections
# ---------------------------------------------------------------------------


@dataclass
class RiskEntry:
    """One row of the risk register, snapshotted at recomputation time."""
    risk_id: str = ""
    description: str = ""
    type: RiskType = RiskType.OPERATIONAL
    process_id: Optional[str] = None
    probability: Optional[RiskLevel] = None
    impact: Optional[RiskLevel] = None
    risk_score: int = 1                     # likelihood weight × impact weight
    priority: Optional[Priority] = None
    status: RiskStatus = RiskStatus.IDENTIFIED
    last_assessed: datetime = field(default_factory=_utcnow)


@dataclass
class RiskRegister:
    """
    Ranked projection of every known risk.

    Rebuilt from scratch after each write; `critical_risks` is the top ten
    entries by score, independent of their priority tier.
    """
    organization_risks: List[RiskEntry] = field(default_factory=list)
    critical_risks: List[RiskEntry] = field(default_factory=list)
    last_updated: Optional[datetime] = None


@dataclass
class RiskHeatMap:
    """Risk counts keyed impact row → likelihood column."""
    cells: Dict[RiskLevel, Dict[RiskLevel, int]] = field(default_factory=dict)

    def count(self, impact: RiskLevel, likelihood: RiskLevel) -> int:
        return self.cells.get(impact, {}).get(likelihood, 0)


@dataclass
class RiskStatistics:
    identified: int = 0
    assessed: int = 0
    mitigated: int = 0
    monitored: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    opportunities_identified: int = 0
    opportunities_planned: int = 0
    opportunities_implemented: int = 0
    opportunities_realized: int = 0


# ---------------------------------------------------------------------------
# Audit Entities (clause 9.2)
# ---------------------------------------------------------------------------


@dataclass
class AuditScope:
    description: str = ""
    processes: List[str] = field(default_factory=list)
    locations: List[str] = field(default_factory=list)
    departments: List[str] = field(default_factory=list)
    clauses: List[str] = field(default_factory=list)
    exclusions: List[str] = field(default_factory=list)
    objectives: List[str] = field(default_factory=list)


@dataclass
class AuditParticipant:
    id: str = ""
    name: str = ""
    role: str = ""
    competence: List[str] = field(default_factory=list)


@dataclass
class AuditFinding:
    id: str = ""
    clause: str = ""
    description: str = ""
    evidence: str = ""
    severity: FindingSeverity = FindingSeverity.MINOR
    category: FindingCategory = FindingCategory.NONCONFORMANCE
    root_cause: str = ""
    process: str = ""
    responsible: str = ""
    due_date: Optional[date] = None
    status: FindingStatus = FindingStatus.OPEN
    created: Optional[datetime] = None


@dataclass
class AuditReport:
    id: str = ""
    summary: str = ""
    conclusions: str = ""
    effectiveness: str = ""
    issued_date: Optional[date] = None
    reviewed_by: str = ""
    approved_by: str = ""


@dataclass
class Audit:
    id: str = ""
    title: str = ""
    type: AuditType = AuditType.INTERNAL
    scope: AuditScope = field(default_factory=AuditScope)
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None
    actual_start_date: Optional[date] = None
    actual_end_date: Optional[date] = None
    auditors: List[AuditParticipant] = field(default_factory=list)
    auditees: List[AuditParticipant] = field(default_factory=list)
    findings: List[AuditFinding] = field(default_factory=list)
    report: Optional[AuditReport] = None
    status: AuditStatus = AuditStatus.PLANNED
    created: Optional[datetime] = None
    modified: Optional[datetime] = None


@dataclass
class AuditStatistics:
    planned: int = 0
    in_progress: int = 0
    completed: int = 0
    closed: int = 0
    critical_findings: int = 0
    major_findings: int = 0
    minor_findings: int = 0
    observations: int = 0


# ---------------------------------------------------------------------------
# Validation & Compliance Entities
# ---------------------------------------------------------------------------


@dataclass
class ValidationFinding:
    """A single (clause, field, message, severity) outcome of validation."""
    clause: str
    field: str
    message: str
    severity: Severity

    def __str__(self) -> str:
        return f"[{self.severity.value}] Clause {self.clause} - {self.field}: {self.message}"


@dataclass
class ValidationResult:
    """
    Findings grouped by severity plus an overall validity flag.

    `valid` is False as soon as one error finding is recorded.
    """
    valid: bool = True
    errors: List[ValidationFinding] = field(default_factory=list)
    warnings: List[ValidationFinding] = field(default_factory=list)
    infos: List[ValidationFinding] = field(default_factory=list)

    @property
    def total_findings(self) -> int:
        return len(self.errors) + len(self.warnings) + len(self.infos)

    def add_error(self, clause: str, field_name: str, message: str) -> None:
        self.errors.append(ValidationFinding(clause, field_name, message, Severity.ERROR))
        self.valid = False

    def add_warning(self, clause: str, field_name: str, message: str) -> None:
        self.warnings.append(ValidationFinding(clause, field_name, message, Severity.WARNING))

    def add_info(self, clause: str, field_name: str, message: str) -> None:
        self.infos.append(ValidationFinding(clause, field_name, message, Severity.INFO))

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.infos.extend(other.infos)
        self.valid = self.valid and other.valid
        return self


@dataclass
class ComplianceGap:
    clause: str = ""
    description: str = ""
    severity: str = "Critical"
    priority: Priority = Priority.HIGH


@dataclass
class ImprovementArea:
    area: str = ""
    description: str = ""
    priority: Priority = Priority.MEDIUM


@dataclass
class ComplianceReport:
    """Compliance assessment derived from a ValidationResult and its score."""
    organization_id: str = ""
    assessment_date: datetime = field(default_factory=_utcnow)
    overall_compliance: ComplianceLevel = ComplianceLevel.CRITICAL_GAPS
    compliance_score: float = 0.0
    critical_gaps: List[ComplianceGap] = field(default_factory=list)
    improvement_areas: List[ImprovementArea] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

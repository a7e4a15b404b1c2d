"""
service.py

Service layer for the ISO 9001:2015 Quality Management System
compliance service.

Responsibilities
----------------
Each service class encapsulates all business logic for its domain.
Services receive and return domain model instances (from model.py).
No persistence is handled here; use cases in application.py store
and retrieve models through the repository layer.

Services
--------
- ValidationService   – Clause 4.1 – 6.2 checkers and the aggregate validator
- ComplianceService   – Compliance score, overall label and compliance report
- RiskService         – Risk scoring, priority tiers, register, heat map, statistics
- ObjectiveService    – Quality objective creation and progress tracking
- AuditService        – Audit creation, start/complete transitions and statistics

Design notes
------------
- Validation and scoring are pure: they never mutate the Organization and
  never raise for any Organization instance.  Every deficiency is reported
  as a finding.
- Manager-style operations (risks, objectives, audits) raise a ValueError
  with a descriptive message when a precondition fails, before touching
  any state.
- UTC datetimes are used for timestamps; "today" is passed in by callers
  for date-based queries so results stay deterministic.
- Methods that would normally persist data return the mutated object(s)
  so the caller can hand them to a repository.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from model import (
    Action,
    ActionStatus,
    Audit,
    AuditFinding,
    AuditReport,
    AuditStatistics,
    AuditStatus,
    ComplianceGap,
    ComplianceLevel,
    ComplianceReport,
    FindingSeverity,
    FindingStatus,
    ImprovementArea,
    LeadershipCommitment,
    ObjectiveAchievement,
    ObjectiveProgress,
    ObjectiveProgressSummary,
    ObjectiveStatus,
    Opportunity,
    OpportunityStatus,
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
    RiskType,
    ValidationResult,
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# ValidationService
# ---------------------------------------------------------------------------

# Clause 5.1 commitments, in the order missing ones are reported.
REQUIRED_COMMITMENTS: List[LeadershipCommitment] = [
    LeadershipCommitment.QMS_EFFECTIVENESS,
    LeadershipCommitment.QUALITY_POLICY,
    LeadershipCommitment.QMS_INTEGRATION,
    LeadershipCommitment.PROCESS_APPROACH,
    LeadershipCommitment.RISK_BASED_THINKING,
    LeadershipCommitment.RESOURCES_AVAILABLE,
    LeadershipCommitment.IMPORTANCE_QMS,
    LeadershipCommitment.CONFORMITY_REQUIREMENTS,
    LeadershipCommitment.QMS_RESULTS,
    LeadershipCommitment.PERSONNEL_ENGAGEMENT,
    LeadershipCommitment.IMPROVEMENT,
    LeadershipCommitment.CUSTOMER_FOCUS,
]

CUSTOMER_PARTY_TYPES = {"customer"}
SUPPLIER_PARTY_TYPES = {"supplier", "external_provider"}
REGULATOR_PARTY_TYPES = {"regulator", "authority"}


class ValidationService:
    """
    Validates an Organization snapshot clause by clause.

    Each `validate_*` checker is independently callable and returns its
    own ValidationResult.  A checker whose required substructure is absent
    records a single error and returns early; otherwise every record-level
    check runs, none short-circuits another.
    """

    def validate_organization(self, org: Organization) -> ValidationResult:
        """Run all nine clause checkers and merge them in clause order."""
        result = ValidationResult()
        for checker in (
            self.validate_context,
            self.validate_interested_parties,
            self.validate_qms_scope,
            self.validate_qms_processes,
            self.validate_leadership,
            self.validate_quality_policy,
            self.validate_roles_responsibilities,
            self.validate_risks_opportunities,
            self.validate_quality_objectives,
        ):
            result.merge(checker(org))
        return result

    # --- Clause 4 -----------------------------------------------------------

    def validate_context(self, org: Organization) -> ValidationResult:
        """Clause 4.1: understanding the organization and its context."""
        result = ValidationResult()
        context = org.context
        if context is None:
            result.add_error("4.1", "context", "Organizational context must be defined")
            return result

        if not context.external_issues:
            result.add_warning(
                "4.1",
                "external_issues",
                "No external issues identified - consider reviewing legal, technological, "
                "competitive, market, cultural, social and economic environments",
            )
        if not context.internal_issues:
            result.add_warning(
                "4.1",
                "internal_issues",
                "No internal issues identified - consider reviewing values, culture, "
                "knowledge and performance",
            )

        issues = list(context.external_issues) + list(context.internal_issues)
        for i, issue in enumerate(issues):
            if not issue.description:
                result.add_error("4.1", f"issue_{i}_description", "Issue must have a description")
            if issue.type is None:
                result.add_error("4.1", f"issue_{i}_type", "Issue must have a type (external/internal)")
        return result

    def validate_interested_parties(self, org: Organization) -> ValidationResult:
        """Clause 4.2: needs and expectations of interested parties."""
        result = ValidationResult()
        if org.context is None or not org.context.interested_parties:
            result.add_error(
                "4.2",
                "interested_parties",
                "Interested parties must be identified and their requirements determined",
            )
            return result

        has_customers = has_suppliers = has_regulators = False
        for party in org.context.interested_parties:
            if not party.name:
                result.add_error("4.2", "party_name", "Interested party must have a name")
            if not party.requirements:
                result.add_warning(
                    "4.2",
                    f"party_{party.name}_requirements",
                    "No requirements specified for interested party",
                )
            if party.type in CUSTOMER_PARTY_TYPES:
                has_customers = True
            elif party.type in SUPPLIER_PARTY_TYPES:
                has_suppliers = True
            elif party.type in REGULATOR_PARTY_TYPES:
                has_regulators = True

        if not has_customers:
            result.add_warning("4.2", "customers", "No customers identified as interested parties")
        if not has_suppliers:
            result.add_warning(
                "4.2", "suppliers", "No suppliers/external providers identified as interested parties"
            )
        if not has_regulators:
            result.add_info(
                "4.2", "regulators", "Consider identifying regulatory authorities as interested parties"
            )
        return result

    def validate_qms_scope(self, org: Organization) -> ValidationResult:
        """Clause 4.3: determining the scope of the QMS."""
        result = ValidationResult()
        if org.qms is None or org.qms.scope is None:
            result.add_error("4.3", "scope", "QMS scope must be determined and documented")
            return result

        scope = org.qms.scope
        if not scope.description:
            result.add_error(
                "4.3",
                "scope_description",
                "Scope must include a description of products and services covered",
            )
        if not scope.products and not scope.services:
            result.add_error(
                "4.3",
                "scope_coverage",
                "Scope must specify the types of products and services covered",
            )
        for i, exclusion in enumerate(scope.exclusions):
            if not exclusion.clause:
                result.add_error(
                    "4.3", f"exclusion_{i}_clause", "Exclusion must specify which clause is not applicable"
                )
            if not exclusion.justification:
                result.add_error(
                    "4.3",
                    f"exclusion_{i}_justification",
                    "Exclusion must be justified and not affect organization's ability to meet requirements",
                )
        return result

    def validate_qms_processes(self, org: Organization) -> ValidationResult:
        """Clause 4.4: QMS processes and their interactions."""
        result = ValidationResult()
        if org.qms is None or not org.qms.processes:
            result.add_error(
                "4.4",
                "processes",
                "QMS processes must be established, implemented, maintained and continually improved",
            )
            return result

        for i, process in enumerate(org.qms.processes):
            if not process.name:
                result.add_error("4.4", f"process_{i}_name", "Process must have a name")
            if not process.inputs:
                result.add_warning("4.4", f"process_{process.name}_inputs", "Process inputs should be defined")
            if not process.outputs:
                result.add_warning("4.4", f"process_{process.name}_outputs", "Process outputs should be defined")
            if not process.responsibilities:
                result.add_error(
                    "4.4",
                    f"process_{process.name}_responsibilities",
                    "Process responsibilities and authorities must be assigned",
                )
            if not process.criteria:
                result.add_error(
                    "4.4",
                    f"process_{process.name}_criteria",
                    "Process criteria and methods for monitoring must be determined",
                )
            if not process.risks:
                result.add_info(
                    "4.4",
                    f"process_{process.name}_risks",
                    "Consider identifying risks and opportunities for this process",
                )
        return result

    # --- Clause 5 -----------------------------------------------------------

    def validate_leadership(self, org: Organization) -> ValidationResult:
        """Clause 5.1: leadership and commitment."""
        result = ValidationResult()
        leadership = org.leadership
        if leadership is None:
            result.add_error("5.1", "leadership", "Top management must demonstrate leadership and commitment")
            return result

        if not leadership.top_management:
            result.add_error("5.1", "top_management", "Top management must be identified")

        demonstrated = set(leadership.commitment)
        for required in REQUIRED_COMMITMENTS:
            if required not in demonstrated:
                result.add_error(
                    "5.1", "leadership_commitment", f"Missing leadership commitment: {required.value}"
                )
        return result

    def validate_quality_policy(self, org: Organization) -> ValidationResult:
        """Clause 5.2: quality policy."""
        result = ValidationResult()
        if org.leadership is None or org.leadership.quality_policy is None:
            result.add_error("5.2", "quality_policy", "Quality policy must be established and maintained")
            return result

        policy = org.leadership.quality_policy
        if not policy.statement:
            result.add_error("5.2", "policy_statement", "Quality policy must include a statement of intent")
        if not policy.objectives:
            result.add_error(
                "5.2",
                "policy_objectives",
                "Quality policy must provide a framework for setting quality objectives",
            )
        if not policy.commitment:
            result.add_error(
                "5.2",
                "policy_commitment",
                "Quality policy must include commitment to satisfy applicable requirements",
            )
        if not policy.improvement:
            result.add_error(
                "5.2", "policy_improvement", "Quality policy must include commitment to continual improvement"
            )
        if not policy.communicated:
            result.add_error(
                "5.2",
                "policy_communication",
                "Quality policy must be communicated and understood within the organization",
            )
        if not policy.available:
            result.add_error(
                "5.2", "policy_availability", "Quality policy must be available to relevant interested parties"
            )
        return result

    def validate_roles_responsibilities(self, org: Organization) -> ValidationResult:
        """Clause 5.3: organizational roles, responsibilities and authorities."""
        result = ValidationResult()
        if org.leadership is None or not org.leadership.roles:
            result.add_error(
                "5.3",
                "roles_responsibilities",
                "Organizational roles, responsibilities and authorities must be assigned and communicated",
            )
            return result

        for i, role in enumerate(org.leadership.roles):
            if not role.name:
                result.add_error("5.3", f"role_{i}_name", "Role must have a name")
            if not role.responsibilities:
                result.add_error(
                    "5.3", f"role_{role.name}_responsibilities", "Role must have defined responsibilities"
                )
            if not role.authorities:
                result.add_error("5.3", f"role_{role.name}_authorities", "Role must have defined authorities")
            if not role.assigned_to:
                result.add_error("5.3", f"role_{role.name}_assignment", "Role must be assigned to a person")
        return result

    # --- Clause 6 -----------------------------------------------------------

    def validate_risks_opportunities(self, org: Organization) -> ValidationResult:
        """
        Clause 6.1: actions to address risks and opportunities.

        Totals are flattened across the QMS-level lists and every process's
        own lists; records are counted, not deduplicated.
        """
        result = ValidationResult()
        qms = org.qms
        if qms is None:
            result.add_error("6.1", "qms", "QMS must be defined to validate risks and opportunities")
            return result

        total_risks = len(qms.risks) + sum(len(p.risks) for p in qms.processes)
        total_opportunities = len(qms.opportunities) + sum(len(p.opportunities) for p in qms.processes)

        if total_risks == 0:
            result.add_warning(
                "6.1", "risks", "No risks identified - risk-based thinking should be applied to planning"
            )
        if total_opportunities == 0:
            result.add_info("6.1", "opportunities", "Consider identifying opportunities for improvement")

        for i, risk in enumerate(qms.risks):
            if not risk.mitigation and risk.status != RiskStatus.MITIGATED:
                result.add_warning(
                    "6.1", f"risk_{i}_mitigation", "Risk should have mitigation actions defined"
                )
        for i, opportunity in enumerate(qms.opportunities):
            if not opportunity.actions and opportunity.status != OpportunityStatus.REALIZED:
                result.add_info(
                    "6.1", f"opportunity_{i}_actions", "Opportunity should have actions defined for realization"
                )
        return result

    def validate_quality_objectives(self, org: Organization) -> ValidationResult:
        """Clause 6.2: quality objectives and planning to achieve them."""
        result = ValidationResult()
        if org.qms is None or not org.qms.objectives:
            result.add_error(
                "6.2",
                "quality_objectives",
                "Quality objectives must be established at relevant functions and levels",
            )
            return result

        for i, objective in enumerate(org.qms.objectives):
            name = objective.name
            if not name:
                result.add_error("6.2", f"objective_{i}_name", "Quality objective must have a name")
            if not objective.measurable:
                result.add_error("6.2", f"objective_{name}_measurable", "Quality objectives must be measurable")
            if not objective.targets:
                result.add_error("6.2", f"objective_{name}_targets", "Quality objectives must have specific targets")
            if not objective.responsible:
                result.add_error(
                    "6.2",
                    f"objective_{name}_responsible",
                    "Quality objectives must have responsible parties assigned",
                )
            # Start and review dates are optional; only the target date counts.
            if objective.timeline.target_date is None:
                result.add_error("6.2", f"objective_{name}_timeline", "Quality objectives must have target dates")
        return result


# ---------------------------------------------------------------------------
# ComplianceService
# ---------------------------------------------------------------------------

ERROR_WEIGHT = 3
WARNING_WEIGHT = 1
# Applied to the info count once, then truncated with int() rather than rounded.
INFO_WEIGHT = 0.5


class NonCompliantError(ValueError):
    """Raised by ComplianceService.ensure_compliant for an invalid QMS."""


class ComplianceService:
    """
    Reduces validation results to a compliance score and report.
    """

    def __init__(self, validator: Optional[ValidationService] = None):
        self._validator = validator or ValidationService()

    def score(self, result: ValidationResult) -> float:
        """
        Weighted error-rate score in [0, 100].

        Every finding is normalised as if it were an error, so a result
        with only warnings and infos still scores below 100.  Info points
        are truncated once over the whole count, not per finding.
        """
        errors, warnings, infos = len(result.errors), len(result.warnings), len(result.infos)
        total = errors + warnings + infos
        if total == 0:
            return 100.0

        penalty = errors * ERROR_WEIGHT + warnings * WARNING_WEIGHT + int(infos * INFO_WEIGHT)
        max_possible = total * ERROR_WEIGHT
        score = 100.0 * (1.0 - penalty / max_possible)
        return max(score, 0.0)

    def compliance_score(self, org: Organization) -> float:
        return self.score(self._validator.validate_organization(org))

    def ensure_compliant(self, org: Organization) -> ValidationResult:
        """Return the validation result, or raise NonCompliantError if it has errors."""
        result = self._validator.validate_organization(org)
        if not result.valid:
            raise NonCompliantError("QMS is not compliant with ISO 9001:2015 requirements")
        return result

    @staticmethod
    def compliance_level(score: float) -> ComplianceLevel:
        if score >= 90:
            return ComplianceLevel.EXCELLENT
        if score >= 80:
            return ComplianceLevel.GOOD
        if score >= 70:
            return ComplianceLevel.SATISFACTORY
        if score >= 60:
            return ComplianceLevel.NEEDS_IMPROVEMENT
        return ComplianceLevel.CRITICAL_GAPS

    def generate_report(self, org: Organization) -> ComplianceReport:
        """
        Build a ComplianceReport for the organization.

        Critical gaps map 1:1 from error findings, improvement areas 1:1
        from warnings.  Recommendations and strengths are fixed phrases
        selected by what the organization has and lacks.
        """
        result = self._validator.validate_organization(org)
        score = self.score(result)

        report = ComplianceReport(
            organization_id=org.id,
            assessment_date=_utcnow(),
            overall_compliance=self.compliance_level(score),
            compliance_score=score,
        )
        report.critical_gaps = [
            ComplianceGap(clause=f.clause, description=f.message, severity="Critical", priority=Priority.HIGH)
            for f in result.errors
        ]
        report.improvement_areas = [
            ImprovementArea(area=f.field, description=f.message, priority=Priority.MEDIUM)
            for f in result.warnings
        ]

        if report.critical_gaps:
            report.recommendations.extend([
                "Address critical compliance gaps immediately",
                "Implement corrective actions for identified nonconformities",
                "Strengthen QMS documentation and procedures",
            ])
        if report.improvement_areas:
            report.recommendations.extend([
                "Develop action plans for improvement areas",
                "Enhance monitoring and measurement processes",
                "Provide additional training where needed",
            ])

        if org.qms is not None and org.qms.processes:
            report.strengths.append("Processes are defined and documented")
        if org.leadership is not None and org.leadership.quality_policy is not None:
            report.strengths.append("Quality policy is established and communicated")
        return report


# ---------------------------------------------------------------------------
# RiskService
# ---------------------------------------------------------------------------

# very_low and low deliberately share weight 1.
LEVEL_WEIGHTS: Dict[RiskLevel, int] = {
    RiskLevel.VERY_LOW: 1,
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
    RiskLevel.VERY_HIGH: 4,
}

PRIORITY_RANK: Dict[Priority, int] = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.CRITICAL: 4,
}

CRITICAL_RISK_LIMIT = 10
CRITICAL_LIKELIHOODS = {RiskLevel.HIGH, RiskLevel.VERY_HIGH}


class RiskService:
    """
    Manages the risk & opportunity lifecycle and the likelihood × impact model.

    Scoring: each level maps to a weight (very_low/low 1, medium 2, high 3,
    very_high 4) and the risk score is the product, 1 – 16.
    """

    # --- Scoring ------------------------------------------------------------

    @staticmethod
    def level_weight(level: Optional[RiskLevel]) -> int:
        """Weight of a level; an unassessed (None) level weighs 1."""
        if level is None:
            return 1
        return LEVEL_WEIGHTS[level]

    def risk_score(self, likelihood: Optional[RiskLevel], impact: Optional[RiskLevel]) -> int:
        return self.level_weight(likelihood) * self.level_weight(impact)

    def calculate_priority(self, likelihood: Optional[RiskLevel], impact: Optional[RiskLevel]) -> Priority:
        score = self.risk_score(likelihood, impact)
        if score >= 16:
            return Priority.CRITICAL
        if score >= 9:
            return Priority.HIGH
        if score >= 4:
            return Priority.MEDIUM
        return Priority.LOW

    @staticmethod
    def compare_priority(a: Optional[Priority], b: Optional[Priority]) -> int:
        """Negative, zero or positive as `a` ranks below, level with or above `b`."""
        return PRIORITY_RANK.get(a, 0) - PRIORITY_RANK.get(b, 0)

    # --- Lifecycle ----------------------------------------------------------

    def identify_risk(self, risk: Risk) -> Risk:
        """Validate and stamp a newly identified risk (unsaved)."""
        if not risk.id:
            raise ValueError("risk must have an ID")
        if not risk.description:
            raise ValueError("risk must have a description")
        risk.created = _utcnow()
        risk.status = RiskStatus.IDENTIFIED
        return risk

    def assess_risk(self, risk: Risk, likelihood: RiskLevel, impact: RiskLevel) -> Risk:
        risk.likelihood = likelihood
        risk.impact = impact
        risk.priority = self.calculate_priority(likelihood, impact)
        risk.status = RiskStatus.ASSESSED
        return risk

    def mitigate_risk(self, risk: Risk, actions: List[Action]) -> Risk:
        """Append mitigation actions and mark the risk mitigated."""
        now = _utcnow()
        for action in actions:
            if action.created is None:
                action.created = now
        risk.mitigation.extend(actions)
        risk.status = RiskStatus.MITIGATED
        return risk

    def monitor_risk(self, risk: Risk, status: RiskStatus) -> Risk:
        risk.status = status
        return risk

    def identify_opportunity(self, opportunity: Opportunity) -> Opportunity:
        if not opportunity.id:
            raise ValueError("opportunity must have an ID")
        if not opportunity.description:
            raise ValueError("opportunity must have a description")
        opportunity.created = _utcnow()
        opportunity.status = OpportunityStatus.IDENTIFIED
        return opportunity

    def realize_opportunity(self, opportunity: Opportunity, actions: List[Action]) -> Opportunity:
        """Replace the opportunity's actions with a realization plan."""
        opportunity.actions = list(actions)
        opportunity.status = OpportunityStatus.PLANNED
        return opportunity

    # --- Derived projections ------------------------------------------------

    def build_register(self, risks: Iterable[Risk]) -> RiskRegister:
        """
        Recompute the register from scratch.

        Entries are sorted by score descending, then risk id ascending so
        equal scores always come out in the same order.  The critical view
        is the first CRITICAL_RISK_LIMIT entries regardless of tier.
        """
        now = _utcnow()
        entries = [
            RiskEntry(
                risk_id=risk.id,
                description=risk.description,
                type=RiskType.OPERATIONAL,
                probability=risk.likelihood,
                impact=risk.impact,
                risk_score=self.risk_score(risk.likelihood, risk.impact),
                priority=risk.priority,
                status=risk.status,
                last_assessed=now,
            )
            for risk in risks
        ]
        entries.sort(key=lambda e: (-e.risk_score, e.risk_id))
        return RiskRegister(
            organization_risks=entries,
            critical_risks=entries[:CRITICAL_RISK_LIMIT],
            last_updated=now,
        )

    def critical_risks(self, risks: Iterable[Risk]) -> List[Risk]:
        """Risks with very_high impact and at least high likelihood."""
        return sorted(
            (
                r for r in risks
                if r.impact == RiskLevel.VERY_HIGH and r.likelihood in CRITICAL_LIKELIHOODS
            ),
            key=lambda r: r.id,
        )

    def high_priority_risks(self, risks: Iterable[Risk], min_priority: Priority) -> List[Risk]:
        return sorted(
            (r for r in risks if self.compare_priority(r.priority, min_priority) >= 0),
            key=lambda r: r.id,
        )

    def overdue_mitigations(self, risks: Iterable[Risk], today: date) -> List[Risk]:
        """Risks with at least one unfinished mitigation action past its due date."""
        overdue = []
        for risk in risks:
            for action in risk.mitigation:
                if (
                    action.status != ActionStatus.COMPLETED
                    and action.timeline is not None
                    and action.timeline < today
                ):
                    overdue.append(risk)
                    break
        return sorted(overdue, key=lambda r: r.id)

    def heat_map(self, risks: Iterable[Risk]) -> RiskHeatMap:
        """Count assessed risks per (impact, likelihood) cell."""
        cells: Dict[RiskLevel, Dict[RiskLevel, int]] = {level: {} for level in RiskLevel}
        for risk in risks:
            if risk.impact is None or risk.likelihood is None:
                continue
            row = cells[risk.impact]
            row[risk.likelihood] = row.get(risk.likelihood, 0) + 1
        return RiskHeatMap(cells=cells)

    def statistics(self, risks: Iterable[Risk], opportunities: Iterable[Opportunity]) -> RiskStatistics:
        stats = RiskStatistics()
        for risk in risks:
            if risk.status == RiskStatus.IDENTIFIED:
                stats.identified += 1
            elif risk.status == RiskStatus.ASSESSED:
                stats.assessed += 1
            elif risk.status == RiskStatus.MITIGATED:
                stats.mitigated += 1
            elif risk.status == RiskStatus.MONITORED:
                stats.monitored += 1

            if risk.priority == Priority.CRITICAL:
                stats.critical += 1
            elif risk.priority == Priority.HIGH:
                stats.high += 1
            elif risk.priority == Priority.MEDIUM:
                stats.medium += 1
            elif risk.priority == Priority.LOW:
                stats.low += 1

        for opportunity in opportunities:
            if opportunity.status == OpportunityStatus.IDENTIFIED:
                stats.opportunities_identified += 1
            elif opportunity.status == OpportunityStatus.PLANNED:
                stats.opportunities_planned += 1
            elif opportunity.status == OpportunityStatus.IMPLEMENTED:
                stats.opportunities_implemented += 1
            elif opportunity.status == OpportunityStatus.REALIZED:
                stats.opportunities_realized += 1
        return stats


# ---------------------------------------------------------------------------
# ObjectiveService
# ---------------------------------------------------------------------------

class ObjectiveService:
    """
    Manages quality objectives and their progress tracking (clause 6.2).
    """

    def create_objective(self, objective: QualityObjective) -> QualityObjective:
        """Validate and stamp a new objective (unsaved)."""
        if not objective.id:
            raise ValueError("objective must have an ID")
        if not objective.name:
            raise ValueError("objective must have a name")
        if not objective.measurable:
            raise ValueError("quality objectives must be measurable")
        if not objective.targets:
            raise ValueError("objective must have targets")
        if not objective.responsible:
            raise ValueError("objective must have a responsible party")
        objective.created = _utcnow()
        objective.status = ObjectiveStatus.PLANNED
        return objective

    def update_progress(
        self,
        objective: QualityObjective,
        progress: ObjectiveProgress,
    ) -> Tuple[QualityObjective, ObjectiveProgress, Optional[ObjectiveAchievement]]:
        """
        Record a progress report and derive the objective's status.

        Returns (objective, progress, achievement-or-None).

        Business rules enforced:
        - progress must not be negative; values above 100 count as achieved.
        - 0 → planned, (0, 100) → in_progress, ≥ 100 → achieved.
        - An achieved objective never regresses.
        """
        if progress.progress < 0:
            raise ValueError("progress must not be negative.")

        progress.objective_id = objective.id
        if progress.report_date is None:
            progress.report_date = _utcnow().date()

        achievement = None
        if objective.status == ObjectiveStatus.ACHIEVED:
            return objective, progress, achievement

        if progress.progress >= 100:
            objective.status = ObjectiveStatus.ACHIEVED
            achievement = ObjectiveAchievement(
                objective_id=objective.id,
                achieved_date=progress.report_date,
                evidence=progress.comments,
            )
        elif progress.progress > 0:
            objective.status = ObjectiveStatus.IN_PROGRESS
        else:
            objective.status = ObjectiveStatus.PLANNED
        return objective, progress, achievement

    def achieved(self, objectives: Iterable[QualityObjective]) -> List[QualityObjective]:
        return sorted(
            (o for o in objectives if o.status == ObjectiveStatus.ACHIEVED), key=lambda o: o.id
        )

    def overdue(self, objectives: Iterable[QualityObjective], today: date) -> List[QualityObjective]:
        """Objectives past their target date that are not achieved."""
        return sorted(
            (
                o for o in objectives
                if o.status != ObjectiveStatus.ACHIEVED
                and o.timeline.target_date is not None
                and o.timeline.target_date < today
            ),
            key=lambda o: o.id,
        )

    def by_responsible(self, objectives: Iterable[QualityObjective]) -> Dict[str, List[QualityObjective]]:
        grouped: Dict[str, List[QualityObjective]] = {}
        for objective in sorted(objectives, key=lambda o: o.id):
            grouped.setdefault(objective.responsible, []).append(objective)
        return grouped

    def progress_summary(self, objectives: Iterable[QualityObjective]) -> ObjectiveProgressSummary:
        objectives = list(objectives)
        summary = ObjectiveProgressSummary(total_objectives=len(objectives))
        for objective in objectives:
            if objective.status == ObjectiveStatus.PLANNED:
                summary.planned += 1
            elif objective.status == ObjectiveStatus.IN_PROGRESS:
                summary.in_progress += 1
            elif objective.status == ObjectiveStatus.ACHIEVED:
                summary.achieved += 1
            elif objective.status == ObjectiveStatus.NOT_ACHIEVED:
                summary.not_achieved += 1
        if summary.total_objectives:
            summary.achievement_rate = summary.achieved / summary.total_objectives * 100
        return summary


# ---------------------------------------------------------------------------
# AuditService
# ---------------------------------------------------------------------------

class AuditService:
    """
    Manages internal audits (clause 9.2).

    Only the planned → in_progress transition is guarded; findings can be
    added and audits completed from any status.
    """

    def create_audit(self, audit: Audit) -> Audit:
        if not audit.id:
            raise ValueError("audit must have an ID")
        if not audit.title:
            raise ValueError("audit must have a title")
        if not audit.scope.description:
            raise ValueError("audit must have a defined scope")
        audit.created = _utcnow()
        audit.modified = audit.created
        audit.status = AuditStatus.PLANNED
        return audit

    def start_audit(self, audit: Audit, start_date: date) -> Audit:
        if audit.status != AuditStatus.PLANNED:
            raise ValueError("audit is not in planned status")
        audit.actual_start_date = start_date
        audit.status = AuditStatus.IN_PROGRESS
        audit.modified = _utcnow()
        return audit

    def add_finding(self, audit: Audit, finding: AuditFinding) -> Audit:
        finding.created = _utcnow()
        audit.findings.append(finding)
        audit.modified = finding.created
        return audit

    def complete_audit(self, audit: Audit, end_date: date, report: Optional[AuditReport]) -> Audit:
        audit.actual_end_date = end_date
        audit.report = report
        audit.status = AuditStatus.COMPLETED
        audit.modified = _utcnow()
        return audit

    def audits_due(self, audits: Iterable[Audit], today: date) -> List[Audit]:
        """Planned audits whose planned start date has passed."""
        return sorted(
            (
                a for a in audits
                if a.status == AuditStatus.PLANNED
                and a.planned_start_date is not None
                and a.planned_start_date < today
            ),
            key=lambda a: a.id,
        )

    def overdue_findings(self, audits: Iterable[Audit], today: date) -> List[AuditFinding]:
        overdue = []
        for audit in sorted(audits, key=lambda a: a.id):
            for finding in audit.findings:
                if (
                    finding.status != FindingStatus.CLOSED
                    and finding.due_date is not None
                    and finding.due_date < today
                ):
                    overdue.append(finding)
        return overdue

    def statistics(self, audits: Iterable[Audit]) -> AuditStatistics:
        stats = AuditStatistics()
        for audit in audits:
            if audit.status == AuditStatus.PLANNED:
                stats.planned += 1
            elif audit.status == AuditStatus.IN_PROGRESS:
                stats.in_progress += 1
            elif audit.status == AuditStatus.COMPLETED:
                stats.completed += 1
            elif audit.status == AuditStatus.CLOSED:
                stats.closed += 1

            for finding in audit.findings:
                if finding.severity == FindingSeverity.CRITICAL:
                    stats.critical_findings += 1
                elif finding.severity == FindingSeverity.MAJOR:
                    stats.major_findings += 1
                elif finding.severity == FindingSeverity.MINOR:
                    stats.minor_findings += 1
                elif finding.severity == FindingSeverity.OBSERVATION:
                    stats.observations += 1
        return stats

"""Compliance score, overall label and compliance report."""

import pytest

from model import ComplianceLevel, Organization, Priority, ValidationResult
from service import ComplianceService, NonCompliantError


@pytest.fixture
def compliance():
    return ComplianceService()


def _result(errors=0, warnings=0, infos=0):
    result = ValidationResult()
    for i in range(errors):
        result.add_error("4.1", f"e{i}", "error")
    for i in range(warnings):
        result.add_warning("4.1", f"w{i}", "warning")
    for i in range(infos):
        result.add_info("4.1", f"i{i}", "info")
    return result


def test_no_findings_scores_100(compliance):
    assert compliance.score(ValidationResult()) == 100.0


@pytest.mark.parametrize(
    "errors, warnings, infos, expected",
    [
        (1, 0, 0, 0.0),
        (0, 1, 0, 100.0 * (1 - 1 / 3)),
        (0, 0, 1, 100.0),               # int(0.5) == 0
        (0, 0, 3, 100.0 * (1 - 1 / 9)),  # int(1.5) == 1
        (1, 1, 1, 100.0 * (1 - 4 / 9)),
        (0, 2, 0, 100.0 * (1 - 2 / 6)),
    ],
)
def test_score_formula(compliance, errors, warnings, infos, expected):
    assert compliance.score(_result(errors, warnings, infos)) == pytest.approx(expected)


def test_warnings_only_score_below_100(compliance):
    assert compliance.score(_result(warnings=5)) < 100


def test_score_stays_within_bounds(compliance):
    for e in range(4):
        for w in range(4):
            for i in range(4):
                assert 0.0 <= compliance.score(_result(e, w, i)) <= 100.0


def test_adding_an_error_never_raises_the_score(compliance):
    for e in range(4):
        for w in range(4):
            for i in range(4):
                before = compliance.score(_result(e, w, i))
                after = compliance.score(_result(e + 1, w, i))
                assert after <= before


def test_empty_organization_scores_below_50(compliance):
    assert compliance.compliance_score(Organization(id="org-empty")) < 50


def test_compliant_organization_scores_100(compliance, organization):
    assert compliance.compliance_score(organization) == 100.0


@pytest.mark.parametrize(
    "score, level",
    [
        (100.0, ComplianceLevel.EXCELLENT),
        (90.0, ComplianceLevel.EXCELLENT),
        (89.99, ComplianceLevel.GOOD),
        (80.0, ComplianceLevel.GOOD),
        (70.0, ComplianceLevel.SATISFACTORY),
        (60.0, ComplianceLevel.NEEDS_IMPROVEMENT),
        (59.9, ComplianceLevel.CRITICAL_GAPS),
        (0.0, ComplianceLevel.CRITICAL_GAPS),
    ],
)
def test_compliance_level_buckets(score, level):
    assert ComplianceService.compliance_level(score) is level


def test_report_for_compliant_organization(compliance, organization):
    report = compliance.generate_report(organization)
    assert report.organization_id == "org-1"
    assert report.compliance_score == 100.0
    assert report.overall_compliance is ComplianceLevel.EXCELLENT
    assert report.critical_gaps == []
    assert report.improvement_areas == []
    assert report.recommendations == []
    assert report.strengths == [
        "Processes are defined and documented",
        "Quality policy is established and communicated",
    ]


def test_report_maps_errors_to_critical_gaps(compliance):
    report = compliance.generate_report(Organization(id="org-empty"))
    assert len(report.critical_gaps) == 9
    assert all(g.severity == "Critical" and g.priority is Priority.HIGH for g in report.critical_gaps)
    assert report.critical_gaps[0].clause == "4.1"
    assert report.critical_gaps[0].description == "Organizational context must be defined"
    assert report.overall_compliance is ComplianceLevel.CRITICAL_GAPS
    assert report.recommendations == [
        "Address critical compliance gaps immediately",
        "Implement corrective actions for identified nonconformities",
        "Strengthen QMS documentation and procedures",
    ]
    assert report.strengths == []


def test_report_maps_warnings_to_improvement_areas(compliance, organization):
    organization.context.interested_parties = [
        p for p in organization.context.interested_parties if p.type != "supplier"
    ]
    report = compliance.generate_report(organization)
    assert report.critical_gaps == []
    assert [(a.area, a.priority) for a in report.improvement_areas] == [("suppliers", Priority.MEDIUM)]
    assert report.recommendations == [
        "Develop action plans for improvement areas",
        "Enhance monitoring and measurement processes",
        "Provide additional training where needed",
    ]


def test_ensure_compliant(compliance, organization):
    assert compliance.ensure_compliant(organization).valid

    with pytest.raises(NonCompliantError):
        compliance.ensure_compliant(Organization(id="org-empty"))

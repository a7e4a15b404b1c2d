"""Risk scoring model, register and the risk/opportunity use cases."""

import itertools
import threading
from datetime import date

import pytest

from application import (
    ActionInput,
    ApplicationError,
    AssessRiskCommand,
    AssessRiskUseCase,
    GetRiskRegisterUseCase,
    IdentifyOpportunityCommand,
    IdentifyOpportunityUseCase,
    IdentifyRiskCommand,
    IdentifyRiskUseCase,
    MitigateRiskCommand,
    MitigateRiskUseCase,
    MonitorRiskCommand,
    MonitorRiskUseCase,
    NotFoundError,
    RealizeOpportunityCommand,
    RealizeOpportunityUseCase,
    parse_priority,
    parse_risk_level,
    parse_risk_status,
)
from model import (
    Action,
    ActionStatus,
    Opportunity,
    OpportunityStatus,
    Priority,
    Risk,
    RiskLevel,
    RiskStatus,
)
from service import RiskService

WEIGHTS = {
    RiskLevel.VERY_LOW: 1,
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
    RiskLevel.VERY_HIGH: 4,
}


@pytest.fixture
def risks():
    return RiskService()


def _assessed(risk_id, likelihood, impact, svc=RiskService()):
    return svc.assess_risk(Risk(id=risk_id, description=risk_id), likelihood, impact)


# --- Scoring -----------------------------------------------------------------

@pytest.mark.parametrize("likelihood, impact", list(itertools.product(RiskLevel, RiskLevel)))
def test_score_is_product_of_weights(risks, likelihood, impact):
    score = risks.risk_score(likelihood, impact)
    assert score == WEIGHTS[likelihood] * WEIGHTS[impact]
    assert 1 <= score <= 16

    priority = risks.calculate_priority(likelihood, impact)
    if score >= 16:
        assert priority is Priority.CRITICAL
    elif score >= 9:
        assert priority is Priority.HIGH
    elif score >= 4:
        assert priority is Priority.MEDIUM
    else:
        assert priority is Priority.LOW


@pytest.mark.parametrize(
    "likelihood, impact, score, priority",
    [
        (RiskLevel.VERY_HIGH, RiskLevel.VERY_HIGH, 16, Priority.CRITICAL),
        (RiskLevel.HIGH, RiskLevel.VERY_HIGH, 12, Priority.HIGH),
        (RiskLevel.HIGH, RiskLevel.HIGH, 9, Priority.HIGH),
        (RiskLevel.MEDIUM, RiskLevel.VERY_HIGH, 8, Priority.MEDIUM),
        (RiskLevel.MEDIUM, RiskLevel.MEDIUM, 4, Priority.MEDIUM),
        (RiskLevel.LOW, RiskLevel.VERY_HIGH, 4, Priority.MEDIUM),
        (RiskLevel.VERY_LOW, RiskLevel.HIGH, 3, Priority.LOW),
        (RiskLevel.VERY_LOW, RiskLevel.LOW, 1, Priority.LOW),
    ],
)
def test_known_scores(risks, likelihood, impact, score, priority):
    assert risks.risk_score(likelihood, impact) == score
    assert risks.calculate_priority(likelihood, impact) is priority


def test_unassessed_levels_weigh_one(risks):
    assert risks.level_weight(None) == 1
    assert risks.risk_score(None, None) == 1


def test_compare_priority_orders_tiers(risks):
    ordered = [None, Priority.LOW, Priority.MEDIUM, Priority.HIGH, Priority.CRITICAL]
    for lower, higher in zip(ordered, ordered[1:]):
        assert risks.compare_priority(lower, higher) < 0
        assert risks.compare_priority(higher, lower) > 0
    assert risks.compare_priority(Priority.HIGH, Priority.HIGH) == 0


# --- Register ----------------------------------------------------------------

def test_register_ranks_by_score_not_insertion_order(risks):
    mediums = [_assessed(f"m-{i:02d}", RiskLevel.MEDIUM, RiskLevel.MEDIUM) for i in range(11)]
    severe = _assessed("z-severe", RiskLevel.HIGH, RiskLevel.VERY_HIGH)

    register = risks.build_register(mediums + [severe])

    assert len(register.organization_risks) == 12
    assert register.organization_risks[0].risk_id == "z-severe"
    assert register.organization_risks[0].risk_score == 12
    assert len(register.critical_risks) == 10
    assert register.critical_risks[0].risk_id == "z-severe"


def test_register_breaks_ties_by_id(risks):
    register = risks.build_register([
        _assessed("b", RiskLevel.MEDIUM, RiskLevel.MEDIUM),
        _assessed("a", RiskLevel.MEDIUM, RiskLevel.MEDIUM),
        _assessed("c", RiskLevel.HIGH, RiskLevel.HIGH),
    ])
    assert [e.risk_id for e in register.organization_risks] == ["c", "a", "b"]


def test_register_rebuild_is_idempotent(risks):
    stored = [
        _assessed("r1", RiskLevel.LOW, RiskLevel.HIGH),
        _assessed("r2", RiskLevel.VERY_HIGH, RiskLevel.MEDIUM),
        Risk(id="r3", description="unassessed"),
    ]
    first = risks.build_register(stored)
    second = risks.build_register(stored)
    assert [(e.risk_id, e.risk_score) for e in first.organization_risks] == [
        (e.risk_id, e.risk_score) for e in second.organization_risks
    ]


def test_register_entries_are_sorted_and_critical_is_prefix(risks):
    stored = [
        _assessed(f"r{i}", likelihood, impact)
        for i, (likelihood, impact) in enumerate(itertools.product(RiskLevel, RiskLevel))
    ]
    register = risks.build_register(stored)
    scores = [e.risk_score for e in register.organization_risks]
    assert scores == sorted(scores, reverse=True)
    assert register.critical_risks == register.organization_risks[:10]


def test_small_register_critical_view_holds_everything(risks):
    register = risks.build_register([_assessed("only", RiskLevel.LOW, RiskLevel.LOW)])
    assert [e.risk_id for e in register.critical_risks] == ["only"]
    assert risks.build_register([]).critical_risks == []


# --- Queries -----------------------------------------------------------------

def test_critical_risks_use_ordinal_likelihood(risks):
    stored = [
        _assessed("vh-vh", RiskLevel.VERY_HIGH, RiskLevel.VERY_HIGH),
        _assessed("h-vh", RiskLevel.HIGH, RiskLevel.VERY_HIGH),
        _assessed("m-vh", RiskLevel.MEDIUM, RiskLevel.VERY_HIGH),
        _assessed("vh-h", RiskLevel.VERY_HIGH, RiskLevel.HIGH),
    ]
    assert [r.id for r in risks.critical_risks(stored)] == ["h-vh", "vh-vh"]


def test_critical_query_and_register_top_ten_can_disagree(risks):
    # Eleven risks all score 12; the id tie-break pushes "z" to eleventh place.
    stored = [_assessed(f"a{i:02d}", RiskLevel.VERY_HIGH, RiskLevel.HIGH) for i in range(10)]
    stored.append(_assessed("z", RiskLevel.HIGH, RiskLevel.VERY_HIGH))

    register = risks.build_register(stored)

    assert [e.risk_id for e in register.critical_risks] == [f"a{i:02d}" for i in range(10)]
    assert "z" not in [e.risk_id for e in register.critical_risks]
    assert [r.id for r in risks.critical_risks(stored)] == ["z"]


def test_high_priority_risks(risks):
    stored = [
        _assessed("crit", RiskLevel.VERY_HIGH, RiskLevel.VERY_HIGH),
        _assessed("high", RiskLevel.HIGH, RiskLevel.HIGH),
        _assessed("low", RiskLevel.LOW, RiskLevel.LOW),
        Risk(id="new", description="unassessed"),
    ]
    assert [r.id for r in risks.high_priority_risks(stored, Priority.HIGH)] == ["crit", "high"]
    assert len(risks.high_priority_risks(stored, Priority.LOW)) == 3


def test_overdue_mitigations(risks):
    late = Risk(id="late", description="x", mitigation=[Action(id="a", timeline=date(2026, 1, 1))])
    done = Risk(
        id="done",
        description="x",
        mitigation=[Action(id="b", timeline=date(2026, 1, 1), status=ActionStatus.COMPLETED)],
    )
    future = Risk(id="future", description="x", mitigation=[Action(id="c", timeline=date(2026, 12, 1))])
    undated = Risk(id="undated", description="x", mitigation=[Action(id="d")])

    overdue = risks.overdue_mitigations([late, done, future, undated], today=date(2026, 6, 1))
    assert [r.id for r in overdue] == ["late"]


def test_heat_map_counts_assessed_risks(risks):
    stored = [
        _assessed("a", RiskLevel.HIGH, RiskLevel.VERY_HIGH),
        _assessed("b", RiskLevel.HIGH, RiskLevel.VERY_HIGH),
        _assessed("c", RiskLevel.LOW, RiskLevel.MEDIUM),
        Risk(id="d", description="unassessed"),
    ]
    heat_map = risks.heat_map(stored)
    assert heat_map.count(RiskLevel.VERY_HIGH, RiskLevel.HIGH) == 2
    assert heat_map.count(RiskLevel.MEDIUM, RiskLevel.LOW) == 1
    assert heat_map.count(RiskLevel.LOW, RiskLevel.LOW) == 0
    assert sum(sum(row.values()) for row in heat_map.cells.values()) == 3


def test_heat_map_skips_risk_without_likelihood(risks):
    partial = Risk(id="p", description="impact only", impact=RiskLevel.HIGH)
    heat_map = risks.heat_map([partial, _assessed("q", RiskLevel.LOW, RiskLevel.HIGH)])
    assert heat_map.cells[RiskLevel.HIGH] == {RiskLevel.LOW: 1}


def test_statistics(risks):
    stored = [
        _assessed("a", RiskLevel.VERY_HIGH, RiskLevel.VERY_HIGH),
        _assessed("b", RiskLevel.LOW, RiskLevel.LOW),
        Risk(id="c", description="new"),
    ]
    opportunities = [
        Opportunity(id="o1", status=OpportunityStatus.IDENTIFIED),
        Opportunity(id="o2", status=OpportunityStatus.REALIZED),
    ]
    stats = risks.statistics(stored, opportunities)
    assert (stats.identified, stats.assessed) == (1, 2)
    assert (stats.critical, stats.low, stats.high) == (1, 1, 0)
    assert (stats.opportunities_identified, stats.opportunities_realized) == (1, 1)


# --- Lifecycle ---------------------------------------------------------------

def test_identify_requires_id_and_description(risks):
    with pytest.raises(ValueError, match="ID"):
        risks.identify_risk(Risk(id="", description="x"))
    with pytest.raises(ValueError, match="description"):
        risks.identify_risk(Risk(id="r", description=""))


def test_identified_risk_is_unassessed(risks):
    risk = risks.identify_risk(Risk(id="r", description="x"))
    assert risk.status is RiskStatus.IDENTIFIED
    assert risk.created is not None
    assert (risk.likelihood, risk.impact, risk.priority) == (None, None, None)


def test_mitigate_appends_actions(risks):
    risk = Risk(id="r", description="x", mitigation=[Action(id="a1")])
    risk = risks.mitigate_risk(risk, [Action(id="a2")])
    assert [a.id for a in risk.mitigation] == ["a1", "a2"]
    assert risk.status is RiskStatus.MITIGATED


def test_realize_opportunity_replaces_actions(risks):
    opportunity = Opportunity(id="o", description="x", actions=[Action(id="old")])
    opportunity = risks.realize_opportunity(opportunity, [Action(id="new")])
    assert [a.id for a in opportunity.actions] == ["new"]
    assert opportunity.status is OpportunityStatus.PLANNED


# --- Enum argument parsing ---------------------------------------------------

def test_enum_arguments_match_exactly_with_defaults():
    assert parse_risk_level("very_high") is RiskLevel.VERY_HIGH
    assert parse_risk_level("HIGH") is RiskLevel.MEDIUM
    assert parse_risk_level(None) is RiskLevel.MEDIUM
    assert parse_priority("critical") is Priority.CRITICAL
    assert parse_priority("urgent") is Priority.LOW
    assert parse_risk_status("closed") is RiskStatus.IDENTIFIED


# --- Use cases ---------------------------------------------------------------

def test_register_is_rebuilt_after_every_write(uow):
    IdentifyRiskUseCase().execute(IdentifyRiskCommand(id="r1", description="Late steel"), uow)
    register = GetRiskRegisterUseCase().execute(uow)
    assert [(e.risk_id, e.risk_score, e.priority) for e in register.organization_risks] == [("r1", 1, None)]

    AssessRiskUseCase().execute(AssessRiskCommand(risk_id="r1", likelihood="high", impact="very_high"), uow)
    entry = GetRiskRegisterUseCase().execute(uow).organization_risks[0]
    assert (entry.risk_score, entry.priority, entry.status) == (12, "high", "assessed")

    MitigateRiskUseCase().execute(
        MitigateRiskCommand(risk_id="r1", actions=[ActionInput(id="a1", description="Second mill")]), uow
    )
    assert GetRiskRegisterUseCase().execute(uow).organization_risks[0].status == "mitigated"

    MonitorRiskUseCase().execute(MonitorRiskCommand(risk_id="r1", status="monitored"), uow)
    assert GetRiskRegisterUseCase().execute(uow).organization_risks[0].status == "monitored"


def test_identify_with_same_id_replaces_record(uow):
    IdentifyRiskUseCase().execute(IdentifyRiskCommand(id="r1", description="first"), uow)
    IdentifyRiskUseCase().execute(IdentifyRiskCommand(id="r1", description="second"), uow)
    register = GetRiskRegisterUseCase().execute(uow)
    assert [e.description for e in register.organization_risks] == ["second"]


def test_unknown_levels_default_to_medium(uow):
    IdentifyRiskUseCase().execute(IdentifyRiskCommand(id="r1", description="x"), uow)
    dto = AssessRiskUseCase().execute(AssessRiskCommand(risk_id="r1", likelihood="Huge", impact="?"), uow)
    assert (dto.likelihood, dto.impact, dto.risk_score, dto.priority) == ("medium", "medium", 4, "medium")


def test_use_case_errors(uow):
    with pytest.raises(ApplicationError):
        IdentifyRiskUseCase().execute(IdentifyRiskCommand(id="", description="x"), uow)
    with pytest.raises(NotFoundError):
        AssessRiskUseCase().execute(AssessRiskCommand(risk_id="ghost", likelihood="low", impact="low"), uow)
    with pytest.raises(NotFoundError):
        RealizeOpportunityUseCase().execute(RealizeOpportunityCommand(opportunity_id="ghost"), uow)


def test_failed_use_case_releases_the_lock(db, uow):
    with pytest.raises(NotFoundError):
        MonitorRiskUseCase().execute(MonitorRiskCommand(risk_id="ghost", status="monitored"), uow)

    acquired = []

    def probe():
        got = db.lock.acquire(blocking=False)
        acquired.append(got)
        if got:
            db.lock.release()

    worker = threading.Thread(target=probe)
    worker.start()
    worker.join()
    assert acquired == [True]


def test_opportunity_use_cases(uow):
    IdentifyOpportunityUseCase().execute(
        IdentifyOpportunityCommand(id="o1", description="Robot cell", benefits=["Less rework"]), uow
    )
    dto = RealizeOpportunityUseCase().execute(
        RealizeOpportunityCommand(
            opportunity_id="o1",
            actions=[ActionInput(id="a1", description="Pilot", type="improvement", status="in_progress")],
        ),
        uow,
    )
    assert dto.status == "planned"
    assert [(a.type, a.status) for a in dto.actions] == [("improvement", "in_progress")]

"""Shared fixtures: a fully compliant Organization and fresh in-memory state."""

from __future__ import annotations

from datetime import date

import pytest
from fastapi.testclient import TestClient

from api import create_app
from config import Settings
from infrastructure import InMemoryDatabase, InMemoryUnitOfWork
from model import (
    Action,
    Exclusion,
    InterestedParty,
    Issue,
    IssueType,
    Leadership,
    LeadershipCommitment,
    ObjectiveTarget,
    ObjectiveTimeline,
    Opportunity,
    Organization,
    OrganizationalContext,
    OrganizationalRole,
    Person,
    Process,
    ProcessCriteria,
    ProcessInput,
    ProcessOutput,
    QMSScope,
    QualityManagementSystem,
    QualityObjective,
    QualityPolicy,
    Risk,
    RiskLevel,
)


def make_compliant_organization() -> Organization:
    """An Organization that passes every clause check with zero findings."""
    context = OrganizationalContext(
        external_issues=[
            Issue(id="ext-1", description="New regulation on product labelling", type=IssueType.EXTERNAL),
        ],
        internal_issues=[
            Issue(id="int-1", description="Loss of key welding expertise", type=IssueType.INTERNAL),
        ],
        interested_parties=[
            InterestedParty(id="p-1", name="Retail buyers", type="customer", requirements=["On-time delivery"]),
            InterestedParty(id="p-2", name="Steel mill", type="supplier", requirements=["Stable forecasts"]),
            InterestedParty(id="p-3", name="Safety agency", type="regulator", requirements=["Annual inspection"]),
        ],
    )
    leadership = Leadership(
        top_management=[Person(id="ceo", name="Dana Reyes", role="CEO")],
        quality_policy=QualityPolicy(
            id="qp-1",
            statement="We deliver defect-free products on time.",
            objectives="Objectives are set yearly per department.",
            commitment="We meet customer and statutory requirements.",
            improvement="We continually improve the QMS.",
            communicated=True,
            available=True,
        ),
        roles=[
            OrganizationalRole(
                id="r-1",
                name="Quality Manager",
                responsibilities=["Maintain the QMS"],
                authorities=["Stop shipment"],
                assigned_to="ceo",
            )
        ],
        commitment=list(LeadershipCommitment),
    )
    qms = QualityManagementSystem(
        id="qms-1",
        scope=QMSScope(
            description="Design and manufacture of steel enclosures",
            products=["Enclosures"],
            exclusions=[
                Exclusion(clause="8.3", description="Design", justification="Customer supplies designs"),
            ],
        ),
        processes=[
            Process(
                id="proc-1",
                name="Fabrication",
                inputs=[ProcessInput(id="in-1", name="Steel sheet")],
                outputs=[ProcessOutput(id="out-1", name="Enclosure")],
                responsibilities=["Production lead"],
                criteria=[ProcessCriteria(id="c-1", name="Scrap rate", metric="%", target="<2")],
                risks=[Risk(id="pr-1", description="Press breakdown")],
            )
        ],
        objectives=[
            QualityObjective(
                id="obj-1",
                name="Reduce scrap",
                measurable=True,
                targets=[ObjectiveTarget(id="t-1", metric="scrap rate", value="2", unit="%")],
                responsible="Production lead",
                timeline=ObjectiveTimeline(target_date=date(2027, 12, 31)),
            )
        ],
        risks=[
            Risk(
                id="risk-1",
                description="Supplier delay",
                likelihood=RiskLevel.MEDIUM,
                impact=RiskLevel.HIGH,
                mitigation=[Action(id="a-1", description="Second source")],
            )
        ],
        opportunities=[
            Opportunity(
                id="opp-1",
                description="Automate deburring",
                actions=[Action(id="a-2", description="Pilot robot cell")],
            )
        ],
    )
    return Organization(id="org-1", name="Acme Enclosures", context=context, leadership=leadership, qms=qms)


@pytest.fixture
def organization() -> Organization:
    return make_compliant_organization()


@pytest.fixture
def db() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture
def uow(db) -> InMemoryUnitOfWork:
    return InMemoryUnitOfWork(db)


@pytest.fixture
def settings() -> Settings:
    return Settings(mcp_enabled=False, log_format="console")


@pytest.fixture
def client(settings) -> TestClient:
    return TestClient(create_app(settings))

"""
api.py

REST API layer for the ISO 9001:2015 Quality Management System
compliance service.

Framework : FastAPI (+ fastapi-mcp, which exposes every route as an MCP tool)
State     : one InMemoryDatabase per app instance, created by create_app()
            and reached through the get_uow dependency.

Structure
---------
  Routers (all prefixed under settings.api_prefix, default /api/v1)
  ├── /compliance       validate, score, report and check an Organization
  ├── /risks            risk lifecycle, register and derived views
  ├── /opportunities    opportunity identification and realization
  ├── /objectives       quality objectives and progress tracking
  └── /audits           internal audits, findings and statistics
  /health               liveness probe
  /mcp                  MCP endpoint (when settings.mcp_enabled)

Error handling
--------------
  NotFoundError      → 404
  ApplicationError   → 422
  ValueError         → 422
  Request body       → 422 (FastAPI default)
  Unhandled          → 500 (FastAPI default)

Response envelope
-----------------
  Success  : { "data": <payload> }
  Error    : { "detail": "<message>" }

Enum arguments
--------------
  Likelihood, impact, statuses, audit type and finding severity are
  accepted as free text.  An unrecognised value (exact, case-sensitive
  match) falls back to a documented default instead of failing; see
  application.parse_enum.

Running
-------
  uvicorn api:app --reload
"""

from __future__ import annotations

import dataclasses
from datetime import date
from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Body, Depends, FastAPI, Path, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_mcp import FastApiMCP
from pydantic import BaseModel, Field, field_validator

from application import (
    # Exceptions
    ApplicationError,
    NotFoundError,
    # Use-case commands
    ActionInput,
    AddFindingCommand,
    AssessRiskCommand,
    CompleteAuditCommand,
    CreateAuditCommand,
    CreateObjectiveCommand,
    IdentifyOpportunityCommand,
    IdentifyRiskCommand,
    MitigateRiskCommand,
    MonitorRiskCommand,
    RealizeOpportunityCommand,
    StartAuditCommand,
    TargetInput,
    UpdateObjectiveProgressCommand,
    # Use-case classes
    AchievedObjectivesUseCase,
    AddFindingUseCase,
    AssessRiskUseCase,
    AuditStatisticsUseCase,
    AuditsDueUseCase,
    CheckComplianceUseCase,
    CompleteAuditUseCase,
    ComplianceReportUseCase,
    ComplianceScoreUseCase,
    CreateAuditUseCase,
    CreateObjectiveUseCase,
    CriticalRisksUseCase,
    GetAuditUseCase,
    GetObjectiveUseCase,
    GetRiskRegisterUseCase,
    GetRiskUseCase,
    HighPriorityRisksUseCase,
    IdentifyOpportunityUseCase,
    IdentifyRiskUseCase,
    ListAuditsUseCase,
    ListObjectiveProgressUseCase,
    ListObjectivesUseCase,
    ListOpportunitiesUseCase,
    ListRisksUseCase,
    MitigateRiskUseCase,
    MonitorRiskUseCase,
    ObjectiveSummaryUseCase,
    ObjectivesByResponsibleUseCase,
    OverdueFindingsUseCase,
    OverdueMitigationsUseCase,
    OverdueObjectivesUseCase,
    RealizeOpportunityUseCase,
    RiskHeatMapUseCase,
    RiskStatisticsUseCase,
    StartAuditUseCase,
    UpdateObjectiveProgressUseCase,
    ValidateOrganizationUseCase,
    AbstractUnitOfWork,
)
from config import Settings, get_settings
from infrastructure import InMemoryDatabase, InMemoryUnitOfWork
from model import STANDARD_VERSION

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_uow(request: Request) -> AbstractUnitOfWork:
    """Returns an in-memory Unit of Work over this app's database."""
    return InMemoryUnitOfWork(request.app.state.db)


# ---------------------------------------------------------------------------
# Envelope helper
# ---------------------------------------------------------------------------

def _jsonable(data: Any) -> Any:
    if dataclasses.is_dataclass(data):
        return dataclasses.asdict(data)
    if isinstance(data, list):
        return [_jsonable(item) for item in data]
    if isinstance(data, dict):
        return {key: _jsonable(value) for key, value in data.items()}
    return data


def _ok(data: Any) -> Dict:
    """Wrap a DTO, list or mapping of DTOs in the standard success envelope."""
    return {"data": _jsonable(data)}


# ===========================================================================
# REQUEST BODY SCHEMAS  (Pydantic v2)
# ===========================================================================

# An Organization snapshot is accepted as raw JSON and validated against
# the domain model by the compliance use cases.
OrganizationBody = Body(
    ...,
    description="Organization snapshot (context, leadership, qms) as JSON.",
    examples=[{"id": "org-1", "name": "Acme Ltd", "context": None, "leadership": None, "qms": None}],
)


# ---------------------------------------------------------------------------
# Risk & opportunity schemas
# ---------------------------------------------------------------------------

class ActionRequest(BaseModel):
    id: str = Field(..., min_length=1)
    description: str = Field(default="")
    type: Optional[str] = Field(
        default=None, description="preventive | corrective | improvement | mitigation (default)"
    )
    responsible: str = Field(default="")
    timeline: Optional[date] = Field(default=None, description="Due date of the action.")
    status: Optional[str] = Field(
        default=None, description="planned (default) | in_progress | completed | verified"
    )

    def to_input(self) -> ActionInput:
        return ActionInput(
            id=self.id,
            description=self.description,
            type=self.type,
            responsible=self.responsible,
            timeline=self.timeline,
            status=self.status,
        )


class IdentifyRiskRequest(BaseModel):
    id: str
    description: str
    causes: List[str] = Field(default_factory=list)
    effects: List[str] = Field(default_factory=list)


class AssessRiskRequest(BaseModel):
    likelihood: str = Field(..., description="very_low | low | medium | high | very_high")
    impact: str = Field(..., description="very_low | low | medium | high | very_high")


class MitigateRiskRequest(BaseModel):
    actions: List[ActionRequest] = Field(default_factory=list)


class UpdateRiskStatusRequest(BaseModel):
    status: str = Field(..., description="identified | assessed | mitigated | monitored")


class IdentifyOpportunityRequest(BaseModel):
    id: str
    description: str
    benefits: List[str] = Field(default_factory=list)


class RealizeOpportunityRequest(BaseModel):
    actions: List[ActionRequest] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Objective schemas
# ---------------------------------------------------------------------------

class ObjectiveTargetRequest(BaseModel):
    metric: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1)
    unit: str = Field(default="")


class CreateObjectiveRequest(BaseModel):
    id: str
    name: str
    description: str = Field(default="")
    measurable: bool = Field(default=True)
    targets: List[ObjectiveTargetRequest] = Field(default_factory=list)
    responsible: str
    start_date: Optional[date] = None
    target_date: Optional[date] = None
    review_date: Optional[date] = None

    @field_validator("target_date")
    @classmethod
    def validate_target_date(cls, v: Optional[date], info) -> Optional[date]:
        start = info.data.get("start_date")
        if v is not None and start is not None and v < start:
            raise ValueError("target_date must not be before start_date")
        return v


class RecordProgressRequest(BaseModel):
    progress: float = Field(..., ge=0.0, description="Percent complete; 100 or more means achieved.")
    comments: str = Field(default="")
    status: str = Field(default="")
    report_date: Optional[date] = None


# ---------------------------------------------------------------------------
# Audit schemas
# ---------------------------------------------------------------------------

class CreateAuditRequest(BaseModel):
    id: str
    title: str
    type: str = Field(
        default="internal",
        description="internal | external | certification | supplier | process | system",
    )
    scope_description: str
    scope_processes: List[str] = Field(default_factory=list)
    scope_clauses: List[str] = Field(default_factory=list)
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None
    auditors: List[str] = Field(default_factory=list)
    auditees: List[str] = Field(default_factory=list)

    @field_validator("planned_end_date")
    @classmethod
    def validate_planned_end(cls, v: Optional[date], info) -> Optional[date]:
        start = info.data.get("planned_start_date")
        if v is not None and start is not None and v < start:
            raise ValueError("planned_end_date must not be before planned_start_date")
        return v


class StartAuditRequest(BaseModel):
    start_date: Optional[date] = None


class AddFindingRequest(BaseModel):
    id: str = Field(..., min_length=1)
    clause: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    severity: str = Field(default="minor", description="critical | major | minor | observation")
    evidence: str = Field(default="")
    root_cause: str = Field(default="")
    process: str = Field(default="")
    responsible: str = Field(default="")
    due_date: Optional[date] = None


class CompleteAuditRequest(BaseModel):
    end_date: Optional[date] = None
    summary: str = Field(default="")
    conclusions: str = Field(default="")
    effectiveness: str = Field(default="")


# ===========================================================================
# ROUTERS
# ===========================================================================

# ---------------------------------------------------------------------------
# Compliance
# ---------------------------------------------------------------------------

compliance_router = APIRouter(prefix="/compliance", tags=["Compliance"])


@compliance_router.post("/validate", summary="Validate an organization against ISO 9001:2015")
def validate_organization(organization: Dict[str, Any] = OrganizationBody):
    """
    Runs all nine clause checkers (4.1 – 6.2) and returns every error,
    warning and info finding.  `valid` is false when any error is found.
    """
    return _ok(ValidateOrganizationUseCase().execute(organization))


@compliance_router.post("/score", summary="Compute the compliance score")
def compliance_score(organization: Dict[str, Any] = OrganizationBody):
    return _ok(ComplianceScoreUseCase().execute(organization))


@compliance_router.post("/report", summary="Generate a compliance report")
def compliance_report(organization: Dict[str, Any] = OrganizationBody):
    """
    Score plus overall label, one critical gap per error finding, one
    improvement area per warning, strengths and recommendations.
    """
    return _ok(ComplianceReportUseCase().execute(organization))


@compliance_router.post("/check", summary="Assert that an organization is compliant")
def check_compliance(organization: Dict[str, Any] = OrganizationBody):
    """Returns the validation result, or 422 when any error finding exists."""
    return _ok(CheckComplianceUseCase().execute(organization))


# ---------------------------------------------------------------------------
# Risks
# (static paths are declared before /{risk_id})
# ---------------------------------------------------------------------------

risk_router = APIRouter(prefix="/risks", tags=["Risks"])


@risk_router.post("", status_code=status.HTTP_201_CREATED, summary="Identify a risk")
def identify_risk(
    body: IdentifyRiskRequest,
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = IdentifyRiskCommand(
        id=body.id, description=body.description, causes=body.causes, effects=body.effects
    )
    return _ok(IdentifyRiskUseCase().execute(cmd, uow))


@risk_router.get("", summary="List all risks")
def list_risks(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(ListRisksUseCase().execute(uow))


@risk_router.get("/register", summary="Get the risk register")
def get_risk_register(uow: AbstractUnitOfWork = Depends(get_uow)):
    """
    Every risk ranked by score (likelihood weight × impact weight), highest
    first; `critical_risks` holds the top ten entries.
    """
    return _ok(GetRiskRegisterUseCase().execute(uow))


@risk_router.get("/critical", summary="Risks with very high impact and high likelihood")
def get_critical_risks(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(CriticalRisksUseCase().execute(uow))


@risk_router.get("/high-priority", summary="Risks at or above a priority tier")
def get_high_priority_risks(
    min_priority: str = Query("high", description="low | medium | high | critical"),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(HighPriorityRisksUseCase().execute(min_priority, uow))


@risk_router.get("/overdue-mitigations", summary="Risks with overdue mitigation actions")
def get_overdue_mitigations(
    today: Optional[date] = Query(None, description="Reference date; defaults to today (UTC)."),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(OverdueMitigationsUseCase().execute(uow, today=today))


@risk_router.get("/heat-map", summary="Risk counts per impact × likelihood")
def get_heat_map(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(RiskHeatMapUseCase().execute(uow))


@risk_router.get("/statistics", summary="Risk and opportunity statistics")
def get_risk_statistics(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(RiskStatisticsUseCase().execute(uow))


@risk_router.get("/{risk_id}", summary="Get a risk by ID")
def get_risk(
    risk_id: str = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(GetRiskUseCase().execute(risk_id, uow))


@risk_router.post("/{risk_id}/assessment", summary="Assess likelihood and impact")
def assess_risk(
    body: AssessRiskRequest,
    risk_id: str = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """
    Sets likelihood and impact and derives the priority tier.  An
    unrecognised level is read as `medium`.
    """
    cmd = AssessRiskCommand(risk_id=risk_id, likelihood=body.likelihood, impact=body.impact)
    return _ok(AssessRiskUseCase().execute(cmd, uow))


@risk_router.post("/{risk_id}/mitigation", summary="Add mitigation actions")
def mitigate_risk(
    body: MitigateRiskRequest,
    risk_id: str = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = MitigateRiskCommand(risk_id=risk_id, actions=[a.to_input() for a in body.actions])
    return _ok(MitigateRiskUseCase().execute(cmd, uow))


@risk_router.patch("/{risk_id}/status", summary="Set a risk's monitoring status")
def update_risk_status(
    body: UpdateRiskStatusRequest,
    risk_id: str = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = MonitorRiskCommand(risk_id=risk_id, status=body.status)
    return _ok(MonitorRiskUseCase().execute(cmd, uow))


# ---------------------------------------------------------------------------
# Opportunities
# ---------------------------------------------------------------------------

opportunity_router = APIRouter(prefix="/opportunities", tags=["Opportunities"])


@opportunity_router.post("", status_code=status.HTTP_201_CREATED, summary="Identify an opportunity")
def identify_opportunity(
    body: IdentifyOpportunityRequest,
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = IdentifyOpportunityCommand(id=body.id, description=body.description, benefits=body.benefits)
    return _ok(IdentifyOpportunityUseCase().execute(cmd, uow))


@opportunity_router.get("", summary="List all opportunities")
def list_opportunities(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(ListOpportunitiesUseCase().execute(uow))


@opportunity_router.post("/{opportunity_id}/realization", summary="Plan an opportunity's realization")
def realize_opportunity(
    body: RealizeOpportunityRequest,
    opportunity_id: str = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = RealizeOpportunityCommand(
        opportunity_id=opportunity_id, actions=[a.to_input() for a in body.actions]
    )
    return _ok(RealizeOpportunityUseCase().execute(cmd, uow))


# ---------------------------------------------------------------------------
# Quality objectives
# ---------------------------------------------------------------------------

objective_router = APIRouter(prefix="/objectives", tags=["Quality Objectives"])


@objective_router.post("", status_code=status.HTTP_201_CREATED, summary="Create a quality objective")
def create_objective(
    body: CreateObjectiveRequest,
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = CreateObjectiveCommand(
        id=body.id,
        name=body.name,
        description=body.description,
        measurable=body.measurable,
        targets=[TargetInput(metric=t.metric, value=t.value, unit=t.unit) for t in body.targets],
        responsible=body.responsible,
        start_date=body.start_date,
        target_date=body.target_date,
        review_date=body.review_date,
    )
    return _ok(CreateObjectiveUseCase().execute(cmd, uow))


@objective_router.get("", summary="List all quality objectives")
def list_objectives(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(ListObjectivesUseCase().execute(uow))


@objective_router.get("/summary", summary="Objective progress summary")
def get_objective_summary(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(ObjectiveSummaryUseCase().execute(uow))


@objective_router.get("/achieved", summary="Achieved objectives")
def get_achieved_objectives(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(AchievedObjectivesUseCase().execute(uow))


@objective_router.get("/overdue", summary="Objectives past their target date")
def get_overdue_objectives(
    today: Optional[date] = Query(None, description="Reference date; defaults to today (UTC)."),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(OverdueObjectivesUseCase().execute(uow, today=today))


@objective_router.get("/by-responsible", summary="Objectives grouped by responsible party")
def get_objectives_by_responsible(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(ObjectivesByResponsibleUseCase().execute(uow))


@objective_router.get("/{objective_id}", summary="Get a quality objective by ID")
def get_objective(
    objective_id: str = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(GetObjectiveUseCase().execute(objective_id, uow))


@objective_router.post("/{objective_id}/progress", summary="Record objective progress")
def record_progress(
    body: RecordProgressRequest,
    objective_id: str = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """
    0 → planned, between 0 and 100 → in_progress, 100 or more → achieved.
    An achieved objective never moves back.
    """
    cmd = UpdateObjectiveProgressCommand(
        objective_id=objective_id,
        progress=body.progress,
        comments=body.comments,
        status=body.status,
        report_date=body.report_date,
    )
    return _ok(UpdateObjectiveProgressUseCase().execute(cmd, uow))


@objective_router.get("/{objective_id}/progress", summary="Progress reports for an objective")
def list_progress(
    objective_id: str = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(ListObjectiveProgressUseCase().execute(objective_id, uow))


# ---------------------------------------------------------------------------
# Audits
# ---------------------------------------------------------------------------

audit_router = APIRouter(prefix="/audits", tags=["Audits"])


@audit_router.post("", status_code=status.HTTP_201_CREATED, summary="Plan an audit")
def create_audit(
    body: CreateAuditRequest,
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = CreateAuditCommand(
        id=body.id,
        title=body.title,
        type=body.type,
        scope_description=body.scope_description,
        scope_processes=body.scope_processes,
        scope_clauses=body.scope_clauses,
        planned_start_date=body.planned_start_date,
        planned_end_date=body.planned_end_date,
        auditors=body.auditors,
        auditees=body.auditees,
    )
    return _ok(CreateAuditUseCase().execute(cmd, uow))


@audit_router.get("", summary="List all audits")
def list_audits(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(ListAuditsUseCase().execute(uow))


@audit_router.get("/due", summary="Planned audits whose start date has passed")
def get_audits_due(
    today: Optional[date] = Query(None, description="Reference date; defaults to today (UTC)."),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(AuditsDueUseCase().execute(uow, today=today))


@audit_router.get("/findings/overdue", summary="Open findings past their due date")
def get_overdue_findings(
    today: Optional[date] = Query(None, description="Reference date; defaults to today (UTC)."),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(OverdueFindingsUseCase().execute(uow, today=today))


@audit_router.get("/statistics", summary="Audit statistics")
def get_audit_statistics(uow: AbstractUnitOfWork = Depends(get_uow)):
    return _ok(AuditStatisticsUseCase().execute(uow))


@audit_router.get("/{audit_id}", summary="Get an audit by ID")
def get_audit(
    audit_id: str = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    return _ok(GetAuditUseCase().execute(audit_id, uow))


@audit_router.post("/{audit_id}/start", summary="Start a planned audit")
def start_audit(
    body: StartAuditRequest,
    audit_id: str = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """Only an audit in `planned` status can be started."""
    cmd = StartAuditCommand(audit_id=audit_id, start_date=body.start_date)
    return _ok(StartAuditUseCase().execute(cmd, uow))


@audit_router.post("/{audit_id}/findings", status_code=status.HTTP_201_CREATED, summary="Record a finding")
def add_finding(
    body: AddFindingRequest,
    audit_id: str = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = AddFindingCommand(
        audit_id=audit_id,
        id=body.id,
        clause=body.clause,
        description=body.description,
        severity=body.severity,
        evidence=body.evidence,
        root_cause=body.root_cause,
        process=body.process,
        responsible=body.responsible,
        due_date=body.due_date,
    )
    return _ok(AddFindingUseCase().execute(cmd, uow))


@audit_router.post("/{audit_id}/complete", summary="Complete an audit")
def complete_audit(
    body: CompleteAuditRequest,
    audit_id: str = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = CompleteAuditCommand(
        audit_id=audit_id,
        end_date=body.end_date,
        summary=body.summary,
        conclusions=body.conclusions,
        effectiveness=body.effectiveness,
    )
    return _ok(CompleteAuditUseCase().execute(cmd, uow))


# ===========================================================================
# OPENAPI CUSTOMISATION: tag order and descriptions
# ===========================================================================

tags_metadata = [
    {
        "name": "Health",
        "description": "Liveness probe.",
    },
    {
        "name": "Compliance",
        "description": (
            "Validate an Organization snapshot against ISO 9001:2015 clauses 4.1 – 6.2, "
            "reduce the findings to a 0 – 100 compliance score and build a compliance "
            "report.  Stateless: nothing is stored."
        ),
    },
    {
        "name": "Risks",
        "description": (
            "Clause 6.1 risk lifecycle: identify, assess (likelihood × impact), mitigate "
            "and monitor.  The risk register is rebuilt after every change."
        ),
    },
    {
        "name": "Opportunities",
        "description": "Identify opportunities and plan the actions that realize them.",
    },
    {
        "name": "Quality Objectives",
        "description": (
            "Clause 6.2 quality objectives.  Objectives must be measurable, have targets "
            "and a responsible party; progress reports drive their status."
        ),
    },
    {
        "name": "Audits",
        "description": (
            "Clause 9.2 internal audits: plan, start, record findings and complete.  "
            "Due audits, overdue findings and statistics are derived views."
        ),
    },
]


# ===========================================================================
# APP FACTORY
# ===========================================================================

def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        logger.warning("not_found", path=request.url.path, detail=str(exc))
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ApplicationError)
    async def application_error_handler(request: Request, exc: ApplicationError):
        logger.warning("application_error", path=request.url.path, detail=str(exc))
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        logger.warning("value_error", path=request.url.path, detail=str(exc))
        return JSONResponse(status_code=422, content={"detail": str(exc)})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build a FastAPI app with its own empty in-memory database.

    Each call returns an independent app; tests create one per test.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        description=(
            f"REST API for validating a Quality Management System against {STANDARD_VERSION}: "
            "clause validation, compliance scoring and reports, risk register, quality "
            "objectives and internal audits."
        ),
        openapi_tags=tags_metadata,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.db = InMemoryDatabase()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_exception_handlers(app)

    @app.get("/health", tags=["Health"], summary="Service health check")
    def health():
        return {"status": "ok", "standard": STANDARD_VERSION}

    api_v1 = APIRouter(prefix=settings.api_prefix)
    api_v1.include_router(compliance_router)
    api_v1.include_router(risk_router)
    api_v1.include_router(opportunity_router)
    api_v1.include_router(objective_router)
    api_v1.include_router(audit_router)
    app.include_router(api_v1)

    # -----------------------------------------------------------------------
    # MCP Server: exposes all API routes as MCP tools
    # Accessible at: http://<host>:<port>/mcp
    # -----------------------------------------------------------------------
    if settings.mcp_enabled:
        mcp = FastApiMCP(
            app,
            name="iso9001-qms",
            description=f"{STANDARD_VERSION} QMS validation, risk and audit tools",
        )
        mcp.mount_http()

    logger.info(
        "app_created",
        api_prefix=settings.api_prefix,
        mcp_enabled=settings.mcp_enabled,
    )
    return app


app = create_app()

"""
infrastructure.py

In-memory implementation of all repository interfaces and the Unit of Work.

This is a self-contained backend that stores everything in plain Python
dicts keyed by record id.  It is intentionally simple: suitable for
local development, demos, and integration testing without needing a real
database.

One InMemoryDatabase is created per application instance (see
api.create_app); nothing here is a process-wide singleton.  The database
carries a re-entrant lock which each InMemoryUnitOfWork holds for the
duration of its `with` block, so use cases running on FastAPI's threadpool
never interleave.

To swap in a real database later, implement the same Abstract* interfaces
from application.py and override get_uow() in api.py:

    app.dependency_overrides[get_uow] = lambda: SqlAlchemyUnitOfWork(session)

Nothing in service.py, application.py, or api.py needs to change.
"""

from __future__ import annotations

import threading
from typing import Dict, List

from application import (
    AbstractAuditRepository,
    AbstractObjectiveAchievementRepository,
    AbstractObjectiveProgressRepository,
    AbstractObjectiveRepository,
    AbstractOpportunityRepository,
    AbstractRiskRegisterRepository,
    AbstractRiskRepository,
    AbstractUnitOfWork,
)
from model import ObjectiveAchievement, ObjectiveProgress, RiskRegister


# ---------------------------------------------------------------------------
# Generic in-memory store
# ---------------------------------------------------------------------------

class _Store(dict):
    """A plain dict with typed get/save helpers, keyed by `obj.id`."""

    def fetch(self, key: str):
        return self.get(key)

    def put(self, obj) -> None:
        self[obj.id] = obj

    def all(self) -> list:
        return list(self.values())


# ---------------------------------------------------------------------------
# Shared in-memory database (one per application instance)
# Lives as long as its app; restarting uvicorn resets it.
# ---------------------------------------------------------------------------

class InMemoryDatabase:
    def __init__(self):
        self.lock = threading.RLock()
        self.risks:            _Store = _Store()
        self.opportunities:    _Store = _Store()
        self.objectives:       _Store = _Store()
        self.audits:           _Store = _Store()
        # Append-only logs, in arrival order
        self.progress_reports: Dict[str, List[ObjectiveProgress]] = {}
        self.achievements:     List[ObjectiveAchievement] = []
        self.risk_register:    RiskRegister = RiskRegister()


# ---------------------------------------------------------------------------
# Repository implementations
# ---------------------------------------------------------------------------

class InMemoryRiskRepository(AbstractRiskRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, risk_id):           return self._s.fetch(risk_id)
    def list_all(self):               return self._s.all()
    def save(self, risk):             self._s.put(risk)


class InMemoryOpportunityRepository(AbstractOpportunityRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, opportunity_id):    return self._s.fetch(opportunity_id)
    def list_all(self):               return self._s.all()
    def save(self, opportunity):      self._s.put(opportunity)


class InMemoryRiskRegisterRepository(AbstractRiskRegisterRepository):
    def __init__(self, db: InMemoryDatabase): self._db = db
    def get(self):                    return self._db.risk_register
    def save(self, register):         self._db.risk_register = register


class InMemoryObjectiveRepository(AbstractObjectiveRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, objective_id):      return self._s.fetch(objective_id)
    def list_all(self):               return self._s.all()
    def save(self, objective):        self._s.put(objective)


class InMemoryObjectiveProgressRepository(AbstractObjectiveProgressRepository):
    def __init__(self, log: Dict[str, List[ObjectiveProgress]]): self._log = log
    def list_for_objective(self, objective_id):
        return list(self._log.get(objective_id, []))
    def save(self, progress):
        self._log.setdefault(progress.objective_id, []).append(progress)


class InMemoryObjectiveAchievementRepository(AbstractObjectiveAchievementRepository):
    def __init__(self, log: List[ObjectiveAchievement]): self._log = log
    def list_all(self):               return list(self._log)
    def save(self, achievement):      self._log.append(achievement)


class InMemoryAuditRepository(AbstractAuditRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, audit_id):          return self._s.fetch(audit_id)
    def list_all(self):               return self._s.all()
    def save(self, audit):            self._s.put(audit)


# ---------------------------------------------------------------------------
# Unit of Work
# ---------------------------------------------------------------------------

class InMemoryUnitOfWork(AbstractUnitOfWork):
    """
    Wraps all in-memory repositories.  commit() and rollback() are no-ops
    because dict mutations are immediate and there is no transaction to manage.
    Entering the UoW acquires the database lock; leaving releases it.
    """

    def __init__(self, db: InMemoryDatabase):
        self._db = db
        self.risks            = InMemoryRiskRepository(db.risks)
        self.opportunities    = InMemoryOpportunityRepository(db.opportunities)
        self.risk_register    = InMemoryRiskRegisterRepository(db)
        self.objectives       = InMemoryObjectiveRepository(db.objectives)
        self.progress_reports = InMemoryObjectiveProgressRepository(db.progress_reports)
        self.achievements     = InMemoryObjectiveAchievementRepository(db.achievements)
        self.audits           = InMemoryAuditRepository(db.audits)

    def __enter__(self) -> "InMemoryUnitOfWork":
        self._db.lock.acquire()
        return super().__enter__()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            super().__exit__(exc_type, exc_val, exc_tb)
        finally:
            self._db.lock.release()

    def commit(self)   -> None: pass   # no-op for in-memory
    def rollback(self) -> None: pass   # no-op for in-memory

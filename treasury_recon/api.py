"""
FastAPI application exposing the per-family reconciliation operations.
"""

import logging
import sys
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .categorization import CategorizationChain, build_default_chain
from .config import Settings, get_settings
from .exceptions import (
    CandidateNotFound,
    InvalidTransition,
    ItemNotFound,
    ReconciliationError,
    RepositoryFailure,
)
from .models import (
    RECORD_TYPES,
    Criticality,
    Family,
    Obligation,
    ReconciliationStatus,
    ReferenceVariant,
    Transaction,
)
from .planning import BusinessCalendar, InvestmentSuggestionEngine
from .reconciliation import (
    Matcher,
    ReconciliationOrchestrator,
    build_family_definitions,
    build_scorers,
)
from .storage import (
    InMemoryCandidateRepository,
    ItemRepository,
    JsonFileItemRepository,
)
from .utils import AuditLogger, InProcessEventBus

logger = structlog.get_logger()


def setup_logging(settings: Optional[Settings] = None):
    """Configure logging to file and console."""
    settings = settings or get_settings()

    settings.log_dir.mkdir(parents=True, exist_ok=True)
    log_file = settings.log_dir / "treasury.log"

    logging.basicConfig(
        level=getattr(logging, settings.app_log_level.upper(), logging.INFO),
        format="%(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Request/Response models
class TransactionIn(BaseModel):
    id: str
    transaction_date: date
    description: str = ""
    debit_cents: int = Field(default=0, ge=0)
    credit_cents: int = Field(default=0, ge=0)
    balance_cents: Optional[int] = None
    reference: Optional[str] = None
    account_id: Optional[str] = None

    def to_transaction(self) -> Transaction:
        return Transaction(**self.model_dump())


class ExtractRequest(BaseModel):
    account_id: Optional[str] = None
    transactions: List[TransactionIn]


class ManualReconcileRequest(BaseModel):
    candidate_id: str
    variant: ReferenceVariant
    notes: str = ""
    actor: str = "user"


class ConfirmRequest(BaseModel):
    verified_by: str
    observations: Optional[str] = None


class ReopenRequest(BaseModel):
    actor: str
    reason: str


class AmendRequest(BaseModel):
    observations: Optional[str] = None
    verified_by: Optional[str] = None
    actor: str = "user"


class CandidatesRequest(BaseModel):
    records: List[Dict[str, Any]]


class ObligationIn(BaseModel):
    amount_cents: int = Field(ge=0)
    due_date: date
    criticality: Criticality = Criticality.NORMAL
    description: str = ""


class SuggestionsRequest(BaseModel):
    account_id: str
    balance_cents: int
    buffer_cents: Optional[int] = None
    as_of: Optional[date] = None
    obligations: List[ObligationIn] = []
    holidays: List[date] = []
    weekend_days: Optional[List[int]] = None


def create_app(
    candidates: Optional[InMemoryCandidateRepository] = None,
    items: Optional[ItemRepository] = None,
    audit: Optional[AuditLogger] = None,
    event_bus: Optional[InProcessEventBus] = None,
    categorizer: Optional[CategorizationChain] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Wire one orchestrator per family over shared collaborators."""
    settings = settings or get_settings()
    candidates = candidates if candidates is not None else InMemoryCandidateRepository()
    items = items if items is not None else JsonFileItemRepository(settings.data_dir / "items.json")
    audit = audit or AuditLogger(session_id=datetime.utcnow().strftime("%Y%m%d_%H%M%S"))
    event_bus = event_bus or InProcessEventBus()
    categorizer = categorizer or build_default_chain(settings)
    matcher = Matcher(build_scorers(settings))

    app = FastAPI(
        title="Treasury Reconciliation",
        description="Bank transaction matching and verification",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.candidates = candidates
    app.state.audit = audit
    app.state.event_bus = event_bus
    app.state.orchestrators = {
        family: ReconciliationOrchestrator(
            definition=definition,
            candidates=candidates,
            items=items,
            audit_sink=audit,
            event_bus=event_bus,
            categorizer=categorizer,
            matcher=matcher,
            settings=settings,
        )
        for family, definition in build_family_definitions(settings).items()
    }
    app.state.planner = InvestmentSuggestionEngine(event_bus=event_bus, settings=settings)

    _register_error_handlers(app)
    _register_routes(app)
    return app


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(InvalidTransition)
    async def invalid_transition(request: Request, exc: InvalidTransition):
        return JSONResponse(
            status_code=409,
            content={"success": False, "reason": exc.message, **exc.details},
        )

    @app.exception_handler(ItemNotFound)
    @app.exception_handler(CandidateNotFound)
    async def not_found(request: Request, exc: ReconciliationError):
        return JSONResponse(status_code=404, content={"success": False, "reason": exc.message})

    @app.exception_handler(RepositoryFailure)
    async def repository_failure(request: Request, exc: RepositoryFailure):
        logger.error("Repository failure", path=request.url.path, error=exc.message)
        return JSONResponse(status_code=503, content={"success": False, "reason": exc.message})

    @app.exception_handler(ReconciliationError)
    async def reconciliation_error(request: Request, exc: ReconciliationError):
        return JSONResponse(status_code=400, content={"success": False, "reason": exc.message})


def get_orchestrator(family: Family, request: Request) -> ReconciliationOrchestrator:
    return request.app.state.orchestrators[family]


def _register_routes(app: FastAPI) -> None:

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}

    @app.post("/api/{family}/extract")
    def extract(
        body: ExtractRequest,
        orchestrator: ReconciliationOrchestrator = Depends(get_orchestrator),
    ):
        report = orchestrator.extract(
            [t.to_transaction() for t in body.transactions],
            account_id=body.account_id,
        )
        return {
            "success": True,
            "created": report.created,
            "failed": report.failed,
            "items": [item.to_dict() for item in report.items],
            "results": [
                {
                    "transaction_id": r.transaction_id,
                    "status": r.status.value,
                    "item_id": r.item_id,
                    "outcome": r.outcome.value if r.outcome else None,
                    "error": r.error,
                }
                for r in report.results
            ],
        }

    @app.get("/api/{family}/items")
    def list_items(
        account_id: Optional[str] = None,
        status: Optional[ReconciliationStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        orchestrator: ReconciliationOrchestrator = Depends(get_orchestrator),
    ):
        items = orchestrator.list_items(account_id, status, date_from, date_to)
        return {"total": len(items), "items": [i.to_dict() for i in items]}

    @app.get("/api/{family}/items/{item_id}")
    def get_item(
        item_id: str,
        orchestrator: ReconciliationOrchestrator = Depends(get_orchestrator),
    ):
        return orchestrator.get_item(item_id).to_dict()

    @app.post("/api/{family}/items/{item_id}/auto-reconcile")
    def auto_reconcile(
        item_id: str,
        orchestrator: ReconciliationOrchestrator = Depends(get_orchestrator),
    ):
        outcome = orchestrator.perform_auto_reconciliation(item_id)
        return {
            "success": True,
            "outcome": outcome.kind.value,
            "score": outcome.score,
            "match": outcome.match.to_dict() if outcome.match else None,
            "item": orchestrator.get_item(item_id).to_dict(),
        }

    @app.post("/api/{family}/items/{item_id}/manual-reconcile")
    def manual_reconcile(
        item_id: str,
        body: ManualReconcileRequest,
        orchestrator: ReconciliationOrchestrator = Depends(get_orchestrator),
    ):
        item = orchestrator.perform_manual_reconciliation(
            item_id, body.candidate_id, body.variant, notes=body.notes, actor=body.actor
        )
        return {"success": True, "item": item.to_dict()}

    @app.post("/api/{family}/items/{item_id}/confirm")
    def confirm(
        item_id: str,
        body: ConfirmRequest,
        orchestrator: ReconciliationOrchestrator = Depends(get_orchestrator),
    ):
        item = orchestrator.confirm(item_id, body.verified_by, body.observations)
        return {"success": True, "item": item.to_dict()}

    @app.post("/api/{family}/items/{item_id}/reopen")
    def reopen(
        item_id: str,
        body: ReopenRequest,
        orchestrator: ReconciliationOrchestrator = Depends(get_orchestrator),
    ):
        item = orchestrator.reopen(item_id, body.actor, body.reason)
        return {"success": True, "item": item.to_dict()}

    @app.patch("/api/{family}/items/{item_id}")
    def amend(
        item_id: str,
        body: AmendRequest,
        orchestrator: ReconciliationOrchestrator = Depends(get_orchestrator),
    ):
        item = orchestrator.amend(item_id, body.observations, body.verified_by, body.actor)
        return {"success": True, "item": item.to_dict()}

    @app.get("/api/{family}/summary")
    def summary(
        account_id: Optional[str] = None,
        orchestrator: ReconciliationOrchestrator = Depends(get_orchestrator),
    ):
        return orchestrator.get_summary(account_id).to_dict()

    @app.put("/api/candidates/{variant}")
    def replace_candidates(variant: ReferenceVariant, body: CandidatesRequest, request: Request):
        record_type = RECORD_TYPES[variant]
        try:
            records = [record_type.from_dict(r) for r in body.records]
        except (TypeError, ValueError) as e:
            raise HTTPException(422, f"Invalid {variant.value} record: {e}")

        request.app.state.candidates.replace(variant, records)
        logger.info("Candidates replaced", variant=variant.value, count=len(records))
        return {"success": True, "variant": variant.value, "count": len(records)}

    @app.get("/api/audit")
    def audit_entries(
        request: Request,
        entity_id: Optional[str] = None,
        action: Optional[str] = None,
    ):
        audit: AuditLogger = request.app.state.audit
        entries = audit.get_entries(action_filter=action, entity_id=entity_id)
        return {
            "summary": audit.summary(),
            "entries": [e.to_dict() for e in entries],
        }

    @app.post("/api/investments/suggestions")
    def investment_suggestions(body: SuggestionsRequest, request: Request):
        planner: InvestmentSuggestionEngine = request.app.state.planner
        settings: Settings = request.app.state.settings
        if body.holidays or body.weekend_days is not None:
            weekend_days = body.weekend_days
            if weekend_days is None:
                weekend_days = settings.weekend_days
            try:
                calendar = BusinessCalendar(weekend_days=weekend_days, holidays=body.holidays)
            except ValueError as e:
                raise HTTPException(422, str(e))
            planner = InvestmentSuggestionEngine(
                calendar=calendar,
                event_bus=request.app.state.event_bus,
                settings=settings,
            )

        suggestions = planner.generate(
            account_id=body.account_id,
            balance_cents=body.balance_cents,
            obligations=[Obligation(**o.model_dump()) for o in body.obligations],
            as_of=body.as_of,
            buffer_cents=body.buffer_cents,
        )
        return {
            "success": True,
            "count": len(suggestions),
            "suggestions": [s.to_dict() for s in suggestions],
        }

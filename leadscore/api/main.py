"""
FastAPI application for the LeadScore REST API.
Exposes lead prioritization, score distribution and engagement tracking.
"""

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional, Any
from contextlib import asynccontextmanager
import logging
from datetime import datetime
import uvicorn

from ..core.config_manager import get_config
from ..core.exceptions import ContactNotFoundError, DependencyFailure, PrioritizationError
from ..data.models import Contact, ScoredLead
from ..services.lead_scoring_service import LeadScoringService

# Configure logging
_logging_config = get_config().get_logging_config()
logging.basicConfig(
    level=_logging_config.get('level', 'INFO'),
    format=_logging_config.get('format')
)
logger = logging.getLogger(__name__)

PRIORITIZATION_UNAVAILABLE = "Unable to prioritize leads right now"

# Global service instance
_service: Optional[LeadScoringService] = None
_app_start_time = datetime.now()


def get_service() -> LeadScoringService:
    """Get or create the lead scoring service."""
    global _service
    if _service is None:
        try:
            _service = LeadScoringService.from_config(get_config())
            logger.info("Loaded lead scoring service from mock data")
        except Exception as e:
            logger.error(f"Failed to load lead scoring service: {str(e)}")
            raise HTTPException(status_code=503, detail=f"Failed to load CRM data: {str(e)}")

    return _service


def set_service(service: Optional[LeadScoringService]) -> None:
    """Replace the service instance (used to inject repositories)."""
    global _service
    _service = service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info("Starting LeadScore API...")
    try:
        get_service()
        logger.info("API startup completed successfully")
    except HTTPException as e:
        logger.error(f"API startup failed: {e.detail}")

    yield

    logger.info("Shutting down LeadScore API...")


# Initialize FastAPI app
app = FastAPI(
    title="LeadScore API",
    description="REST API for CRM lead scoring and prioritization",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Pydantic models for request/response
class ScoredLeadResponse(BaseModel):
    """A contact ranked by live lead score. Custom profile fields are passed through."""
    model_config = ConfigDict(extra='allow')

    id: int
    name: str
    email: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    status: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    lead_score: int = Field(..., description="Cached score stored on the contact")
    last_score_update: Optional[datetime] = None
    score: int = Field(..., description="Live score from this prioritization pass")
    temperature: str = Field(..., description="hot/warm/cold")
    priority: int = Field(..., description="1 for hot, 2 for warm, 3 for cold")


class ScoreDistributionResponse(BaseModel):
    hot: int
    warm: int
    cold: int
    average_score: float
    total_leads: int


class ScoreBreakdownResponse(BaseModel):
    email_open_score: float
    website_visit_score: float
    form_submission_score: float
    deal_size_score: float
    recency_bonus: float
    frequency_bonus: float


class ContactScoreResponse(BaseModel):
    """Live score for one contact with its itemised terms."""
    contact_id: int
    score: int
    temperature: str
    priority: int
    breakdown: ScoreBreakdownResponse
    deal_size_potential: Optional[Dict[str, Optional[float]]] = Field(
        None, description="Omitted when the deal directory is unavailable"
    )
    scored_at: datetime = Field(default_factory=datetime.now)


class ScoreUpdateRequest(BaseModel):
    score: int = Field(..., ge=0, description="Lead score to persist")
    temperature: Optional[str] = Field(None, description="Must match the score when given")


class ContactResponse(BaseModel):
    id: int
    name: str
    lead_score: int
    temperature: str
    last_score_update: Optional[datetime] = None


class EngagementSummaryResponse(BaseModel):
    contact_id: int
    total_engagements: int
    email_opens: int
    website_visits: int
    form_submissions: int
    last_engagement: Optional[datetime] = None


class EngagementRequest(BaseModel):
    type: str = Field(..., description="Engagement type, e.g. email_open")
    details: Dict[str, Any] = Field(default_factory=dict)


class EngagementResponse(BaseModel):
    id: int
    contact_id: int
    type: str
    timestamp: datetime
    details: Dict[str, Any]
    source: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: datetime = Field(default_factory=datetime.now)
    version: str = "1.0.0"
    contacts_available: int
    uptime_seconds: float


def _lead_response(lead: ScoredLead) -> ScoredLeadResponse:
    return ScoredLeadResponse(**lead.to_dict())


def _contact_response(contact: Contact) -> ContactResponse:
    return ContactResponse(
        id=contact.id,
        name=contact.name,
        lead_score=contact.lead_score,
        temperature=contact.temperature.value,
        last_score_update=contact.last_score_update
    )


# API Endpoints

@app.get("/", response_model=Dict[str, str])
async def root():
    """Root endpoint with API information."""
    return {
        "message": "LeadScore API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    uptime = (datetime.now() - _app_start_time).total_seconds()
    try:
        contacts = await get_service().contacts.list_all()
        return HealthResponse(
            status="healthy" if contacts else "degraded",
            contacts_available=len(contacts),
            uptime_seconds=uptime
        )
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return HealthResponse(status="unhealthy", contacts_available=0, uptime_seconds=uptime)


@app.get("/leads/prioritized", response_model=List[ScoredLeadResponse])
async def prioritized_leads():
    """Every contact ranked by live score, highest first."""
    try:
        leads = await get_service().get_prioritized_leads()
    except PrioritizationError:
        raise HTTPException(status_code=503, detail=PRIORITIZATION_UNAVAILABLE)
    return [_lead_response(lead) for lead in leads]


@app.get("/leads/top", response_model=List[ScoredLeadResponse])
async def top_leads(limit: int = Query(10, ge=0, description="Number of leads to return")):
    """Highest scoring leads."""
    try:
        leads = await get_service().get_top_performing_leads(limit)
    except PrioritizationError:
        raise HTTPException(status_code=503, detail=PRIORITIZATION_UNAVAILABLE)
    return [_lead_response(lead) for lead in leads]


@app.get("/leads/distribution", response_model=ScoreDistributionResponse)
async def score_distribution():
    """Lead counts per temperature and the average live score."""
    try:
        distribution = await get_service().get_lead_score_distribution()
    except PrioritizationError:
        raise HTTPException(status_code=503, detail=PRIORITIZATION_UNAVAILABLE)
    return ScoreDistributionResponse(total_leads=distribution.total, **distribution.to_dict())


@app.get("/leads/report", response_model=Dict[str, Any])
async def priority_report():
    """Detailed temperature report with score statistics and top leads."""
    try:
        return await get_service().generate_priority_report()
    except PrioritizationError:
        raise HTTPException(status_code=503, detail=PRIORITIZATION_UNAVAILABLE)


@app.post("/leads/refresh", response_model=List[ScoredLeadResponse])
async def refresh_scores():
    """Recompute every lead score and persist it onto the contacts."""
    try:
        leads = await get_service().refresh_contact_scores()
    except PrioritizationError:
        raise HTTPException(status_code=503, detail=PRIORITIZATION_UNAVAILABLE)
    return [_lead_response(lead) for lead in leads]


@app.get("/contacts/{contact_id}/score", response_model=ContactScoreResponse)
async def contact_score(contact_id: int):
    """Live score, temperature and itemised terms for a contact."""
    service = get_service()
    try:
        await service.contacts.get(contact_id)
    except ContactNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    breakdown = await service.explain_lead_score(contact_id)
    temperature = service.get_lead_temperature(breakdown.total)
    try:
        potential = (await service.get_deal_size_potential(contact_id)).to_dict()
    except DependencyFailure as e:
        logger.warning(f"Deal size potential unavailable for contact {contact_id}: {e}")
        potential = None

    return ContactScoreResponse(
        contact_id=contact_id,
        score=breakdown.total,
        temperature=temperature.value,
        priority=service.calculate_priority(breakdown.total, temperature),
        breakdown=ScoreBreakdownResponse(**{
            k: v for k, v in breakdown.to_dict().items() if k not in ('contact_id', 'total')
        }),
        deal_size_potential=potential
    )


@app.put("/contacts/{contact_id}/score", response_model=ContactResponse)
async def update_contact_score(contact_id: int, request: ScoreUpdateRequest):
    """Persist a score and its temperature onto a contact."""
    try:
        contact = await get_service().update_contact_score(
            contact_id, request.score, request.temperature
        )
    except ContactNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _contact_response(contact)


@app.get("/contacts/{contact_id}/engagement", response_model=EngagementSummaryResponse)
async def engagement_summary(contact_id: int):
    """Engagement totals for a contact."""
    summary = await get_service().get_engagement_summary(contact_id)
    return EngagementSummaryResponse(**summary.to_dict())


@app.post("/contacts/{contact_id}/engagement", response_model=EngagementResponse, status_code=201)
async def track_engagement(contact_id: int, request: EngagementRequest):
    """Record an engagement event for a contact."""
    event = await get_service().track_engagement(contact_id, request.type, request.details)
    return EngagementResponse(**event.to_dict())


if __name__ == "__main__":
    api_config = get_config().get_api_config()
    uvicorn.run(
        "leadscore.api.main:app",
        host=api_config.get('host', '0.0.0.0'),
        port=int(api_config.get('port', 8000)),
        reload=bool(api_config.get('debug', False)),
        log_level="info"
    )

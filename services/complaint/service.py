"""Complaint Service - HTTP API for grievance intake, triage and login."""
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))


from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Dict, List, Optional
import time

from civicpulse.services.auth import (
    InvalidMobileNumber,
    OtpVerificationError,
    Role,
    SimulatedOtpAuthenticator,
)
from civicpulse.services.classifier import ClassificationGateway
from civicpulse.services.complaint import (
    Complaint,
    ComplaintNotFound,
    ComplaintService,
    ComplaintStatus,
    ComplaintValidationError,
    InvalidStatusTransition,
    Location,
    build_store,
)
from civicpulse.utils.logger import ServiceLogger
from civicpulse.utils.metrics import MetricsCollector

from services.complaint import config

app = FastAPI(title="Complaint Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize logger and metrics
logger = ServiceLogger(config.SERVICE_NAME, level=config.LOG_LEVEL, log_dir=config.LOG_DIR)
metrics = MetricsCollector(config.SERVICE_NAME)
logger.info(f"Complaint service starting up on port {config.PORT}")

classifier = ClassificationGateway(
    api_key=config.GEMINI_API_KEY or None,
    model_name=config.GEMINI_MODEL,
    logger=logger,
)
complaint_svc = ComplaintService(
    build_store(seed=config.SEED_DEMO_DATA),
    classifier,
    strict_transitions=config.ENFORCE_STATUS_TRANSITIONS,
)
authenticator = SimulatedOtpAuthenticator()

if config.SEED_DEMO_DATA:
    logger.info(f"Seeded {len(complaint_svc.store)} demo complaints")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LocationModel(CamelModel):
    latitude: float
    longitude: float
    address: Optional[str] = None


class AIAnalysisModel(CamelModel):
    category: str
    priority: str
    summary: str
    suggested_action: str


class SubmitComplaintRequest(CamelModel):
    title: str
    description: str
    user_id: str
    image_base64: Optional[str] = None
    location: Optional[LocationModel] = None


class UpdateStatusRequest(CamelModel):
    status: ComplaintStatus


class ComplaintResponse(CamelModel):
    id: str
    user_id: str
    title: str
    description: str
    image_base64: Optional[str]
    location: Optional[LocationModel]
    status: ComplaintStatus
    created_at: int
    ai_analysis: Optional[AIAnalysisModel]


class StatsResponse(CamelModel):
    total: int
    by_status: Dict[str, int]
    by_category: Dict[str, int]


class OtpRequest(CamelModel):
    mobile: str


class OtpResponse(CamelModel):
    mobile: str
    sent_to: str


class VerifyOtpRequest(CamelModel):
    mobile: str
    otp: str
    role: Role = Role.citizen


class UserResponse(CamelModel):
    id: str
    name: str
    mobile: str
    role: Role


def to_response(c: Complaint) -> ComplaintResponse:
    location = None
    if c.location is not None:
        location = LocationModel(latitude=c.location.latitude, longitude=c.location.longitude,
                                 address=c.location.address)
    analysis = None
    if c.ai_analysis is not None:
        analysis = AIAnalysisModel(**c.ai_analysis.to_dict())
    return ComplaintResponse(
        id=c.id,
        user_id=c.user_id,
        title=c.title,
        description=c.description,
        image_base64=c.image_base64,
        location=location,
        status=c.status,
        created_at=c.created_at,
        ai_analysis=analysis,
    )


@app.get("/api/complaints", response_model=List[ComplaintResponse])
def list_complaints():
    return [to_response(c) for c in complaint_svc.list_all()]


@app.post("/api/complaints", response_model=ComplaintResponse, status_code=201)
def submit_complaint(req: SubmitComplaintRequest):
    start_time = time.time()
    logger.info(f"Processing complaint from user {req.user_id}", user=req.user_id)
    metrics.increment("submissions_total")

    location = None
    if req.location is not None:
        location = Location(req.location.latitude, req.location.longitude, req.location.address)

    try:
        complaint = complaint_svc.submit(
            title=req.title,
            description=req.description,
            user_id=req.user_id,
            image_base64=req.image_base64,
            location=location,
        )
    except ComplaintValidationError as e:
        metrics.increment("submissions_rejected")
        logger.warning(f"Rejected complaint from user {req.user_id}: {e}", user=req.user_id)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        metrics.increment("submissions_failed")
        logger.exception(f"Server error processing complaint: {e}")
        raise HTTPException(status_code=500, detail="Server error processing complaint")

    elapsed = time.time() - start_time
    metrics.timing("submission_duration", elapsed * 1000)
    if complaint.ai_analysis is not None and complaint.ai_analysis.fallback:
        metrics.increment("classifications_fallback")
    else:
        metrics.increment("classifications_model")
    metrics.gauge("complaints_stored", len(complaint_svc.store))
    logger.info(
        f"Stored complaint {complaint.id} ({complaint.ai_analysis.category}/{complaint.ai_analysis.priority})",
        complaint=complaint.id, duration=elapsed,
    )
    return to_response(complaint)


@app.get("/api/complaints/{complaint_id}", response_model=ComplaintResponse)
def get_complaint(complaint_id: str):
    try:
        return to_response(complaint_svc.get(complaint_id))
    except ComplaintNotFound:
        metrics.increment("complaints_not_found")
        raise HTTPException(status_code=404, detail="Complaint not found")


@app.patch("/api/complaints/{complaint_id}", response_model=ComplaintResponse)
def update_status(complaint_id: str, req: UpdateStatusRequest):
    try:
        complaint = complaint_svc.update_status(complaint_id, req.status)
    except ComplaintNotFound:
        metrics.increment("complaints_not_found")
        logger.warning(f"Status update for unknown complaint {complaint_id}", complaint=complaint_id)
        raise HTTPException(status_code=404, detail="Complaint not found")
    except InvalidStatusTransition as e:
        logger.warning(str(e), complaint=complaint_id)
        raise HTTPException(status_code=409, detail=str(e))

    metrics.increment("status_updates", tags={"status": req.status.value})
    logger.info(f"Complaint {complaint_id} moved to {req.status.value}", complaint=complaint_id, status=req.status.value)
    return to_response(complaint)


@app.get("/api/users/{user_id}/complaints", response_model=List[ComplaintResponse])
def list_user_complaints(user_id: str):
    return [to_response(c) for c in complaint_svc.list_for_user(user_id)]


@app.get("/api/stats", response_model=StatsResponse)
def complaint_stats():
    s = complaint_svc.stats()
    return StatsResponse(total=s.total, by_status=s.by_status, by_category=s.by_category)


@app.post("/api/auth/otp", response_model=OtpResponse)
def request_otp(req: OtpRequest):
    try:
        challenge = authenticator.request_otp(req.mobile)
    except InvalidMobileNumber as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info(f"OTP requested for {challenge.sent_to}")
    metrics.increment("otp_requests")
    return OtpResponse(mobile=challenge.mobile, sent_to=challenge.sent_to)


@app.post("/api/auth/verify", response_model=UserResponse)
def verify_otp(req: VerifyOtpRequest):
    try:
        user = authenticator.verify_otp(req.mobile, req.otp, req.role)
    except InvalidMobileNumber as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OtpVerificationError as e:
        metrics.increment("otp_failures")
        raise HTTPException(status_code=401, detail=str(e))
    logger.info(f"User {user.id} logged in as {user.role.value}", user=user.id, role=user.role.value)
    return UserResponse(id=user.id, name=user.name, mobile=user.mobile, role=user.role)


@app.get("/health")
def health():
    return {
        "status": "ok",
        "service": config.SERVICE_NAME,
        "classifier": "gemini" if complaint_svc.classifier.enabled else "fallback",
    }


@app.get("/logs")
def get_logs(limit: int = 100):
    """Get recent logs from this service."""
    return logger.get_recent_logs(limit=limit)


@app.get("/metrics")
def get_metrics(period: Optional[int] = None):
    """Get metrics from this service."""
    return metrics.get_all_metrics(time_period_minutes=period)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)

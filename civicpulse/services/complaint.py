from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
import threading
import time
import uuid

from civicpulse.services.classifier import Classification, ClassificationGateway

DAY_MS = 86_400_000


class ComplaintStatus(str, Enum):
    pending = "Pending"
    in_progress = "In Progress"
    resolved = "Resolved"
    rejected = "Rejected"


# Used only when strict transitions are switched on
ALLOWED_TRANSITIONS = {
    ComplaintStatus.pending: {ComplaintStatus.in_progress, ComplaintStatus.resolved, ComplaintStatus.rejected},
    ComplaintStatus.in_progress: {ComplaintStatus.resolved, ComplaintStatus.rejected},
    ComplaintStatus.resolved: set(),
    ComplaintStatus.rejected: set(),
}


class ComplaintError(Exception):
    pass


class ComplaintValidationError(ComplaintError):
    pass


class ComplaintNotFound(ComplaintError):
    def __init__(self, complaint_id: str) -> None:
        super().__init__(f"Complaint not found: {complaint_id}")
        self.complaint_id = complaint_id


class DuplicateComplaintId(ComplaintError):
    pass


class InvalidStatusTransition(ComplaintError):
    def __init__(self, current: ComplaintStatus, target: ComplaintStatus) -> None:
        super().__init__(f"Cannot move complaint from {current.value} to {target.value}")
        self.current = current
        self.target = target


@dataclass
class Location:
    latitude: float
    longitude: float
    address: Optional[str] = None


@dataclass
class Complaint:
    id: str
    user_id: str
    title: str
    description: str
    image_base64: Optional[str]
    location: Optional[Location]
    status: ComplaintStatus
    created_at: int  # epoch milliseconds
    ai_analysis: Optional[Classification] = None


@dataclass
class ComplaintStats:
    total: int
    by_status: Dict[str, int] = field(default_factory=dict)
    by_category: Dict[str, int] = field(default_factory=dict)


def now_ms() -> int:
    return int(time.time() * 1000)


def new_complaint_id() -> str:
    return f"c-{now_ms()}-{uuid.uuid4().hex[:6]}"


class InMemoryComplaintStore:
    """Newest-first complaint collection. Lives as long as the process."""

    def __init__(self) -> None:
        self._complaints: List[Complaint] = []
        self._lock = threading.Lock()

    def insert(self, complaint: Complaint) -> Complaint:
        with self._lock:
            if any(c.id == complaint.id for c in self._complaints):
                raise DuplicateComplaintId(complaint.id)
            self._complaints.insert(0, complaint)
        return complaint

    def find_by_id(self, complaint_id: str) -> Optional[Complaint]:
        with self._lock:
            return next((c for c in self._complaints if c.id == complaint_id), None)

    def list(self) -> List[Complaint]:
        with self._lock:
            return list(self._complaints)

    def update_status(self, complaint_id: str, status: ComplaintStatus, strict: bool = False) -> Complaint:
        with self._lock:
            complaint = next((c for c in self._complaints if c.id == complaint_id), None)
            if complaint is None:
                raise ComplaintNotFound(complaint_id)
            if strict and status != complaint.status and status not in ALLOWED_TRANSITIONS[complaint.status]:
                raise InvalidStatusTransition(complaint.status, status)
            complaint.status = status
            return complaint

    def __len__(self) -> int:
        with self._lock:
            return len(self._complaints)


def seed_demo_complaints(store: InMemoryComplaintStore) -> None:
    """Pre-populate the store so the admin dashboard is not empty on first load."""
    created = now_ms()
    # Oldest first so the store ends up newest-first
    store.insert(Complaint(
        id="c-102",
        user_id="u-2",
        title="Broken Streetlight",
        description="Streetlight pole #45 is flickering and mostly off at night.",
        image_base64=None,
        location=Location(28.6239, 77.2190, "Market Road, Sector 4"),
        status=ComplaintStatus.in_progress,
        created_at=created - DAY_MS * 5,
        ai_analysis=Classification(
            category="Electricity/Streetlights",
            priority="Medium",
            summary="Faulty street lighting reported affecting visibility.",
            suggested_action="Assign electrical maintenance crew.",
        ),
    ))
    store.insert(Complaint(
        id="c-101",
        user_id="u-1",
        title="Overflowing Garbage Bin",
        description="The garbage bin near the central park entrance has been overflowing for 3 days. Bad smell.",
        image_base64=None,
        location=Location(28.6139, 77.2090, "Central Park Gate 2"),
        status=ComplaintStatus.pending,
        created_at=created - DAY_MS * 2,
        ai_analysis=Classification(
            category="Garbage Collection",
            priority="High",
            summary="Reports of overflowing garbage causing hygiene issues.",
            suggested_action="Dispatch sanitation truck immediately.",
        ),
    ))


def build_store(seed: bool = False) -> InMemoryComplaintStore:
    store = InMemoryComplaintStore()
    if seed:
        seed_demo_complaints(store)
    return store


class ComplaintService:
    """Submission, status update and query handlers over one store."""

    def __init__(self, store: InMemoryComplaintStore, classifier: ClassificationGateway,
                 strict_transitions: bool = False) -> None:
        self.store = store
        self.classifier = classifier
        self.strict_transitions = strict_transitions

    def submit(self, title: str, description: str, user_id: str,
               image_base64: Optional[str] = None, location: Optional[Location] = None) -> Complaint:
        title = (title or "").strip()
        description = (description or "").strip()
        if not title:
            raise ComplaintValidationError("title is required")
        if not description:
            raise ComplaintValidationError("description is required")

        analysis = self.classifier.classify(description, image_base64)

        complaint = Complaint(
            id=new_complaint_id(),
            user_id=user_id,
            title=title,
            description=description,
            image_base64=image_base64,
            location=location,
            status=ComplaintStatus.pending,
            created_at=now_ms(),
            ai_analysis=analysis,
        )
        return self.store.insert(complaint)

    def update_status(self, complaint_id: str, status: ComplaintStatus) -> Complaint:
        return self.store.update_status(complaint_id, ComplaintStatus(status), strict=self.strict_transitions)

    def get(self, complaint_id: str) -> Complaint:
        complaint = self.store.find_by_id(complaint_id)
        if complaint is None:
            raise ComplaintNotFound(complaint_id)
        return complaint

    def list_all(self) -> List[Complaint]:
        return self.store.list()

    def list_for_user(self, user_id: str) -> List[Complaint]:
        mine = [c for c in self.store.list() if c.user_id == user_id]
        return sorted(mine, key=lambda c: c.created_at, reverse=True)

    def stats(self) -> ComplaintStats:
        complaints = self.store.list()
        by_status = {s.value: 0 for s in ComplaintStatus}
        by_status.update(Counter(c.status.value for c in complaints))
        by_category = Counter(
            c.ai_analysis.category if c.ai_analysis else "Uncategorized" for c in complaints
        )
        return ComplaintStats(total=len(complaints), by_status=by_status, by_category=dict(by_category))

"""Tests for the complaint store and handlers."""
from dataclasses import asdict
import threading

import pytest

from civicpulse.services.classifier import FALLBACK_CLASSIFICATION, Classification
from civicpulse.services.complaint import (
    Complaint,
    ComplaintNotFound,
    ComplaintService,
    ComplaintStatus,
    ComplaintValidationError,
    DuplicateComplaintId,
    InMemoryComplaintStore,
    InvalidStatusTransition,
    Location,
    build_store,
)


class RecordingClassifier:
    def __init__(self, result=FALLBACK_CLASSIFICATION):
        self.result = result
        self.calls = []

    def classify(self, description, image_base64=None):
        self.calls.append((description, image_base64))
        return self.result


@pytest.fixture
def classifier():
    return RecordingClassifier()


@pytest.fixture
def svc(classifier):
    return ComplaintService(build_store(), classifier)


def test_submit_builds_pending_complaint(svc, classifier):
    loc = Location(28.6, 77.2)
    c = svc.submit("Leaking pipe", "Water everywhere", "u-5", image_base64="abc", location=loc)
    assert c.id.startswith("c-")
    assert c.status == ComplaintStatus.pending
    assert c.ai_analysis is FALLBACK_CLASSIFICATION
    assert c.location is loc
    assert classifier.calls == [("Water everywhere", "abc")]
    assert svc.list_all() == [c]


def test_submit_attaches_model_classification():
    analysis = Classification("Water Supply", "High", "Pipe burst.", "Send plumbers.")
    svc = ComplaintService(build_store(), RecordingClassifier(analysis))
    assert svc.submit("Leak", "Pipe burst", "u-1").ai_analysis == analysis


@pytest.mark.parametrize("title,description", [("", "text"), ("title", ""), ("  ", "text"), ("title", None)])
def test_validation_happens_before_classification(svc, classifier, title, description):
    with pytest.raises(ComplaintValidationError):
        svc.submit(title, description, "u-1")
    assert classifier.calls == []
    assert svc.list_all() == []


def test_list_is_newest_first(svc):
    ids = [svc.submit(f"Issue {i}", "details", "u-1").id for i in range(5)]
    assert [c.id for c in svc.list_all()] == list(reversed(ids))
    assert len(set(ids)) == 5


def test_update_status_touches_only_status(svc):
    c = svc.submit("Pothole", "Deep pothole", "u-1")
    before = asdict(c)
    updated = svc.update_status(c.id, ComplaintStatus.resolved)
    after = asdict(updated)
    assert after.pop("status") == ComplaintStatus.resolved
    before.pop("status")
    assert after == before


def test_update_unknown_id_raises_and_leaves_store(svc):
    c = svc.submit("Pothole", "Deep pothole", "u-1")
    with pytest.raises(ComplaintNotFound):
        svc.update_status("missing", ComplaintStatus.resolved)
    assert svc.list_all() == [c]
    assert c.status == ComplaintStatus.pending


def test_update_accepts_plain_status_string(svc):
    c = svc.submit("Pothole", "Deep pothole", "u-1")
    assert svc.update_status(c.id, "In Progress").status == ComplaintStatus.in_progress


def test_strict_transitions(classifier):
    svc = ComplaintService(build_store(), classifier, strict_transitions=True)
    c = svc.submit("Pothole", "Deep pothole", "u-1")
    svc.update_status(c.id, ComplaintStatus.in_progress)
    with pytest.raises(InvalidStatusTransition):
        svc.update_status(c.id, ComplaintStatus.pending)
    svc.update_status(c.id, ComplaintStatus.resolved)
    # re-applying the current status is allowed
    assert svc.update_status(c.id, ComplaintStatus.resolved).status == ComplaintStatus.resolved
    with pytest.raises(InvalidStatusTransition):
        svc.update_status(c.id, ComplaintStatus.rejected)


def test_duplicate_insert_rejected():
    store = build_store(seed=True)
    seeded = store.find_by_id("c-101")
    with pytest.raises(DuplicateComplaintId):
        store.insert(Complaint(**{**asdict(seeded), "ai_analysis": None}))
    assert len(store) == 2


def test_seeded_store_order():
    store = build_store(seed=True)
    c101, c102 = store.list()
    assert (c101.id, c102.id) == ("c-101", "c-102")
    assert c101.created_at > c102.created_at
    assert c102.status == ComplaintStatus.in_progress


def test_get_and_list_for_user(svc):
    mine = [svc.submit("A", "a", "u-7"), svc.submit("B", "b", "u-7")]
    svc.submit("C", "c", "u-8")
    assert svc.get(mine[0].id) is mine[0]
    assert [c.title for c in svc.list_for_user("u-7")] == ["B", "A"]
    with pytest.raises(ComplaintNotFound):
        svc.get("nope")


def test_stats(classifier):
    svc = ComplaintService(build_store(seed=True), classifier)
    svc.submit("Noise", "Loud music", "u-3")
    store_only = Complaint("c-x", "u-4", "t", "d", None, None, ComplaintStatus.rejected, 1)
    svc.store.insert(store_only)
    s = svc.stats()
    assert s.total == 4
    assert s.by_status == {"Pending": 2, "In Progress": 1, "Resolved": 0, "Rejected": 1}
    assert s.by_category["Uncategorized"] == 1
    assert s.by_category["General"] == 1


def test_concurrent_submissions_are_all_stored(svc):
    def worker(n):
        for i in range(20):
            svc.submit(f"t{n}-{i}", "d", f"u-{n}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    complaints = svc.list_all()
    assert len(complaints) == 80
    assert len({c.id for c in complaints}) == 80


def test_empty_store_has_no_records():
    assert InMemoryComplaintStore().list() == []

"""Tests for the service logger's recent-entries buffer."""
import threading

from civicpulse.utils.logger import ServiceLogger


def test_buffer_keeps_latest_entries():
    logger = ServiceLogger("buffer-order", log_dir=None)
    for i in range(150):
        logger.info(f"entry {i}", n=i)
    recent = logger.get_recent_logs(limit=200)
    assert len(recent) == logger.max_buffer_size
    assert recent[0]["message"] == "entry 50"
    assert recent[-1]["extra"] == {"n": 149}
    assert [e["message"] for e in logger.get_recent_logs(limit=2)] == ["entry 148", "entry 149"]


def test_concurrent_writers_fill_buffer_exactly():
    logger = ServiceLogger("buffer-threads", log_dir=None)

    def worker(n):
        for i in range(200):
            logger.debug(f"worker {n} entry {i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(logger.get_recent_logs(limit=1000)) == logger.max_buffer_size


def test_clear_logs():
    logger = ServiceLogger("buffer-clear", log_dir=None)
    logger.warning("something odd")
    logger.clear_logs()
    assert logger.get_recent_logs() == []
    assert logger.get_recent_logs(limit=0) == []

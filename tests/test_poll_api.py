import threading

from print_dispatch import create_app
from print_dispatch.core.config import Settings
from print_dispatch.dispatch.errors import StorageError
from print_dispatch.dispatch.jobs import DeliveryResult, MemoryJobStore


def _enqueue(client, printer_id, payload, **extra):
    body = {"printer_id": printer_id, "payload": payload}
    body.update(extra)
    resp = client.post("/print-jobs", json=body)
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["jobId"]


def _assert_no_cache(resp):
    assert resp.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
    assert resp.headers["Pragma"] == "no-cache"
    assert resp.headers["Expires"] == "0"


def test_availability_then_fetch(client):
    job_id = _enqueue(client, "kitchen-1", "Hello", content_type="text/plain")

    resp = client.post("/printers/kitchen-1/job", json={"status": "23 6 0 0 0 0 0 0 0", "printerMAC": "00:11:62"})
    assert resp.status_code == 200
    assert resp.get_json() == {"jobReady": True, "mediaTypes": ["text/plain"], "jobToken": job_id}
    _assert_no_cache(resp)

    # Availability checks are read-only.
    again = client.post("/printers/kitchen-1/job")
    assert again.get_json()["jobToken"] == job_id

    resp = client.get("/printers/kitchen-1/job?type=text/plain&device=00:11:62")
    assert resp.status_code == 200
    assert resp.data == b"Hello"
    assert resp.headers["Content-Type"] == "text/plain"
    _assert_no_cache(resp)

    assert client.post("/printers/kitchen-1/job").get_json() == {"jobReady": False}


def test_fetch_with_nothing_queued_is_204(client):
    resp = client.get("/printers/bar/job?type=text/plain&mac=aa:bb")
    assert resp.status_code == 204
    assert resp.data == b""
    _assert_no_cache(resp)


def test_three_jobs_are_delivered_in_order(client):
    for payload in ("first", "second", "third"):
        _enqueue(client, "p1", payload)
    _enqueue(client, "p2", "not yours")

    bodies = [client.get("/printers/p1/job").data for _ in range(3)]
    assert bodies == [b"first", b"second", b"third"]
    assert client.post("/printers/p1/job", json={}).get_json() == {"jobReady": False}
    assert client.get("/printers/p1/job").status_code == 204
    assert client.get("/printers/p2/job").data == b"not yours"


def test_control_codes_reach_the_printer_intact(client):
    stream = "\x1b@\x1ba\x01ORDER 12\n\x1dV\x01"
    _enqueue(client, "p1", stream, content_type="application/vnd.star.starprnt")

    resp = client.get("/printers/p1/job?type=application/vnd.star.starprnt")
    assert resp.status_code == 200
    assert resp.data == stream.encode("latin-1")
    assert resp.headers["Content-Type"] == "application/vnd.star.starprnt"


def test_corrupt_payload_is_delivered_raw(app, store):
    job = store.enqueue("p1", "%%%garbage%%%", "text/plain", encoding="base64")
    client = app.test_client()

    resp = client.get("/printers/p1/job")
    assert resp.status_code == 200
    assert resp.data == b"%%%garbage%%%"
    assert store.mark_delivered(job.id) is DeliveryResult.ALREADY_DELIVERED


def test_parallel_fetches_hand_out_one_payload(app):
    client = app.test_client()
    _enqueue(client, "p1", "only once")
    results = []
    barrier = threading.Barrier(2)

    def fetch():
        c = app.test_client()
        barrier.wait()
        resp = c.get("/printers/p1/job")
        results.append((resp.status_code, resp.data))

    threads = [threading.Thread(target=fetch) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(results) == [(200, b"only once"), (204, b"")]


class _BrokenStore(MemoryJobStore):
    def peek_oldest_queued(self, printer_id):
        raise StorageError("database is locked", operation="peek_oldest_queued", printer_id=printer_id, code="SQLITE_BUSY")


class _DeliveryFailsStore(MemoryJobStore):
    def mark_delivered(self, job_id):
        raise StorageError("disk I/O error", operation="mark_delivered", code="SQLITE_IOERR")


def _client_for(store):
    app = create_app(settings=Settings(enabled=True), store=store)
    app.config.update(TESTING=True)
    return app.test_client()


def test_availability_degrades_to_not_ready_on_storage_error():
    client = _client_for(_BrokenStore())
    resp = client.post("/printers/p1/job", json={})
    assert resp.status_code == 200
    assert resp.get_json() == {"jobReady": False}


def test_fetch_surfaces_storage_error():
    client = _client_for(_BrokenStore())
    resp = client.get("/printers/p1/job")
    assert resp.status_code == 500
    _assert_no_cache(resp)


def test_failed_delivery_transition_hands_out_nothing():
    store = _DeliveryFailsStore()
    store.enqueue("p1", "must not leak", "text/plain")
    client = _client_for(store)

    resp = client.get("/printers/p1/job")
    assert resp.status_code == 500
    assert b"must not leak" not in resp.data
    assert store.peek_oldest_queued("p1") is not None

import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from httpbrute import Prober, Reported, build_session, run
from tests.helpers.fakes import RecordingEvent, lines_of, make_reporter

BROKEN_LOCATION = "http://[::1/broken"


class _Handler(BaseHTTPRequestHandler):
    # /bad sends an unparseable redirect the first time, then a plain 200
    bad_hits = 0
    lock = threading.Lock()

    def do_GET(self):
        if self.path == "/bad":
            with self.lock:
                type(self).bad_hits += 1
                first = type(self).bad_hits == 1
            if first:
                self._reply(302, {"Location": BROKEN_LOCATION})
            else:
                self._reply(200)
        elif self.path == "/ok":
            self._reply(200)
        else:
            self._reply(404)

    def _reply(self, status, headers=None):
        self.send_response(status)
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, *args):
        pass


@pytest.fixture
def server():
    _Handler.bad_hits = 0
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{httpd.server_address[1]}"
    httpd.shutdown()
    httpd.server_close()


def test_unparseable_redirect_is_retried_not_raised(server):
    stop = RecordingEvent()
    with build_session(1) as session:
        prober = Prober(session, make_reporter(), retry_wait=0.0, stop_event=stop)

        outcome = prober.probe(f"{server}/bad")

    assert isinstance(outcome, Reported)
    assert outcome.status == 200
    assert stop.waits == [0.0]
    notice = lines_of(prober.reporter.log)
    assert len(notice) == 1
    assert "(ValueError: Invalid IPv6 URL)" in notice[0]


def test_run_survives_unparseable_redirect(server):
    reporter = make_reporter()
    with build_session(1) as session:
        tried = run(
            target=server,
            suffixes=[""],
            lines=["bad", "ok", "x"],
            session=session,
            reporter=reporter,
            workers=1,
            retry_wait=0.0,
            stop_event=RecordingEvent(),
        )

    assert tried == 3
    assert lines_of(reporter.out) == [
        f"[200 OK] {server}/bad",
        f"[200 OK] {server}/ok",
    ]
    assert lines_of(reporter.log)[-1].startswith("Tried 3 URLs in ")

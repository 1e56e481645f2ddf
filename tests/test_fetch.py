import requests

from clearance.fetch import fetch_with_retry


class FakeResponse:
    def __init__(self, status_code: int, text: str = "") -> None:
        self.status_code = status_code
        self.text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    def __init__(self, outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def fetch(session, max_attempts=3):
    delays = []
    body = fetch_with_retry(
        "https://shop.test/clearance?page=1",
        max_attempts,
        session=session,
        timeout=5,
        retry_delay=0.25,
        sleep=delays.append,
    )
    return body, delays


class TestFetchWithRetry:
    def test_success_on_first_attempt(self):
        session = FakeSession([FakeResponse(200, "<html>ok</html>")])
        body, delays = fetch(session)

        assert body == "<html>ok</html>"
        assert delays == []
        assert session.calls == [("https://shop.test/clearance?page=1", 5)]

    def test_success_on_final_attempt(self):
        session = FakeSession(
            [
                requests.Timeout("read timed out"),
                FakeResponse(503),
                FakeResponse(200, "<html>finally</html>"),
            ]
        )
        body, delays = fetch(session)

        assert body == "<html>finally</html>"
        assert delays == [0.25, 0.25]

    def test_exhausted_attempts_return_none(self):
        session = FakeSession(
            [requests.ConnectionError("refused"), FakeResponse(404), FakeResponse(500)]
        )
        body, delays = fetch(session)

        assert body is None
        assert len(session.calls) == 3
        assert delays == [0.25, 0.25]

    def test_at_least_one_attempt(self):
        session = FakeSession([FakeResponse(500)])
        body, _ = fetch(session, max_attempts=0)

        assert body is None
        assert len(session.calls) == 1

from typing import List

import httpx


class UpstreamStub:
    """
    Scripted upstream for httpx.MockTransport.

    Each call consumes the next outcome (a response or an exception to raise)
    and records the request it saw.
    """

    def __init__(self, outcomes: List):
        self.outcomes = list(outcomes)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        assert self.outcomes, f"unexpected upstream call #{len(self.requests)}"
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def calls(self) -> int:
        return len(self.requests)


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def upstream_response(status_code=200, headers=None, body=b"") -> httpx.Response:
    # A streamed body, as a real transport would hand it back
    return httpx.Response(
        status_code, headers=headers or {}, stream=httpx.ByteStream(body)
    )

"""
Test helper functions and factory methods for the odds proxy.
"""

from typing import Dict, Any, List


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class RecordingSleep:
    """Async sleep stand-in that records durations and advances a clock."""

    def __init__(self, clock: FakeClock = None):
        self.clock = clock
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


class TestDataFactory:
    """Factory for creating upstream payloads."""

    __test__ = False

    @staticmethod
    def create_seasons_payload() -> Dict[str, Any]:
        """Create an actual-seasons listing."""
        return {
            "items": [
                {"id": "18417", "name": "Virtual League 2026/41", "status": "RUNNING"},
                {"id": "18418", "name": "Virtual League 2026/42", "status": "UPCOMING"},
            ]
        }

    @staticmethod
    def create_round_events_payload(round_id: str = "2231") -> Dict[str, Any]:
        """Create the events of one virtual round."""
        return {
            "roundId": round_id,
            "events": [
                {
                    "id": "evt-1",
                    "participants": ["Virtual Lions", "Virtual Eagles"],
                    "markets": [{"name": "1X2", "prices": [2.1, 3.3, 3.4]}],
                },
                {
                    "id": "evt-2",
                    "participants": ["Virtual Sharks", "Virtual Bulls"],
                    "markets": [{"name": "1X2", "prices": [1.5, 4.0, 6.5]}],
                },
            ],
        }

    @staticmethod
    def create_blocking_page(marker: str = "captcha") -> str:
        """Create an HTML bot-check page containing ``marker``."""
        return (
            "<!DOCTYPE html><html><head><title>Checking your browser</title></head>"
            f"<body><div class=\"{marker}\">Please complete the {marker} to continue.</div>"
            "</body></html>"
        )

import asyncio
from unittest.mock import Mock

import pytest

from voicewake.forward.config import ForwardConfig
from voicewake.forward.dispatcher import ForwardDispatcher


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is awaited."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def dispatcher():
    mock = Mock(spec=ForwardDispatcher)
    mock.forward.return_value = None
    return mock


@pytest.fixture
def forward_config():
    return ForwardConfig(
        enabled=True,
        target="me@studio",
        identity_path=None,
        command_template='agent --message "${text}"',
    )

"""
Widget engine test configuration.

Engine tests need no database: persistence goes through MemoryGateway and
time through ManualScheduler.
"""

import pytest

from engine.widget.gateway import MemoryGateway
from engine.widget.scheduler import ManualScheduler


@pytest.fixture
def gateway():
    return MemoryGateway()


@pytest.fixture
def scheduler():
    return ManualScheduler()

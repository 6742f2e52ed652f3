"""Shared helpers for the session tests."""
from typing import Iterable, List

from sensor_communication.communicator.session import SensorSession
from sensor_communication.models import BytesReceived, PortOpened, SendBytes, StartTimer, TimerFired
from sensor_communication.param_types import TimerKind

IDENTITY = b"ANRITSU,MA24106A,SER42,R1,FW9.9\n"


def sent(effects: Iterable) -> List[bytes]:
    return [effect.data for effect in effects if isinstance(effect, SendBytes)]


def of_type(effects: Iterable, kind: type) -> list:
    return [effect for effect in effects if isinstance(effect, kind)]


def started(effects: Iterable, timer: TimerKind) -> List[StartTimer]:
    return [effect for effect in of_type(effects, StartTimer) if effect.kind is timer]


def reply(session: SensorSession, text: str) -> list:
    return session.handle(BytesReceived(text.encode("latin-1") + b"\n"))


def fire(session: SensorSession, start: StartTimer) -> list:
    return session.handle(TimerFired(start.kind, start.generation))


def ready_session(**settings) -> SensorSession:
    """An open, identified session with an idle queue."""
    session = SensorSession(settings or None)
    session.handle(PortOpened("COM1"))
    session.handle(BytesReceived(IDENTITY))
    session.handle(BytesReceived(b"25.0\n"))
    assert session.queue.in_flight is None
    return session

from sensor_communication.communicator.command_queue import CommandQueue
from sensor_communication.models import LogEntry, SendBytes
from sensor_communication.param_types import CommandTag
from sensor_communication.protocols.anritsu_protocol import AnritsuProtocol

PROTOCOL = AnritsuProtocol()
POWER = PROTOCOL.create_command(CommandTag.POWER)
TEMPERATURE = PROTOCOL.create_command(CommandTag.TEMPERATURE)


def test_dispatch_sends_head_and_occupies_slot() -> None:
    queue = CommandQueue()
    queue.enqueue(POWER)
    queue.enqueue(TEMPERATURE)

    assert queue.try_dispatch() == [SendBytes(b"POW?\n"), LogEntry("CMD: POW?")]
    assert queue.in_flight == POWER
    assert queue.busy
    assert len(queue) == 1


def test_dispatch_waits_while_a_command_is_in_flight() -> None:
    queue = CommandQueue()
    queue.enqueue(POWER)
    queue.try_dispatch()
    queue.enqueue(TEMPERATURE)

    assert queue.try_dispatch() == []
    assert queue.release() == POWER
    assert queue.try_dispatch()[0] == SendBytes(b"TEMP?\n")


def test_dispatch_on_empty_queue_is_noop() -> None:
    queue = CommandQueue()
    assert queue.try_dispatch() == []
    assert queue.in_flight is None


def test_bounded_enqueue_refuses_at_limit() -> None:
    queue = CommandQueue()
    results = [queue.enqueue_bounded(POWER, 5) for _ in range(8)]
    assert results == [True] * 5 + [False] * 3
    assert len(queue) == 5
    # Unbounded producers are not limited
    queue.enqueue(TEMPERATURE)
    assert len(queue) == 6


def test_flush_drops_pending_and_in_flight() -> None:
    queue = CommandQueue()
    queue.enqueue(POWER)
    queue.enqueue(TEMPERATURE)
    queue.try_dispatch()
    queue.flush()
    assert len(queue) == 0
    assert not queue.busy

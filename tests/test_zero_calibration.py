from helpers import IDENTITY, fire, of_type, ready_session, reply, sent, started

from sensor_communication.communicator.session import SensorSession
from sensor_communication.models import (
    BytesReceived, ControlsEnabled, LogEntry, MeasuringChanged, Notification, PortOpened, StopTimer, UserAction
)
from sensor_communication.param_types import TimerKind, UserActionKind, ZeroState


def act(session, kind, value=None):
    return session.handle(UserAction(kind, value))


def measuring_session(**settings):
    session = ready_session(**settings)
    start = started(act(session, UserActionKind.TOGGLE_MEASUREMENT), TimerKind.POWER_POLL)[0]
    return session, start


def test_zero_sequence_while_measuring() -> None:
    session, poll = measuring_session()

    effects = act(session, UserActionKind.REQUEST_ZERO)
    assert StopTimer(TimerKind.POWER_POLL) in effects
    assert MeasuringChanged(False) in effects
    assert ControlsEnabled(False) in effects
    assert sent(effects) == []
    delay = started(effects, TimerKind.ZERO_DELAY)[0]
    assert delay.interval_ms == 1000 and delay.single_shot
    assert session.zero.state is ZeroState.PENDING_DELAY
    assert not session.controls_enabled

    # Stale power fire from before the request
    assert fire(session, poll) == []

    assert sent(fire(session, delay)) == [b"ZERO\n"]
    assert session.zero.state is ZeroState.AWAITING_ACK

    effects = reply(session, "OK")
    assert ControlsEnabled(True) in effects
    assert Notification("info", "Success", "Zero calibration completed successfully!") in effects
    assert MeasuringChanged(True) in effects
    assert len(started(effects, TimerKind.POWER_POLL)) == 1
    assert session.measuring
    assert session.zero.state is ZeroState.IDLE


def test_zero_without_measurement_does_not_resume_polling() -> None:
    session = ready_session()
    delay = started(act(session, UserActionKind.REQUEST_ZERO), TimerKind.ZERO_DELAY)[0]
    fire(session, delay)
    effects = reply(session, "ok")
    assert started(effects, TimerKind.POWER_POLL) == []
    assert not session.measuring
    assert ControlsEnabled(True) in effects


def test_zero_drops_queued_commands() -> None:
    session, poll = measuring_session()
    for _ in range(3):
        fire(session, poll)
    assert len(session.queue) == 2

    delay = started(act(session, UserActionKind.REQUEST_ZERO), TimerKind.ZERO_DELAY)[0]
    assert len(session.queue) == 0
    # The in-flight POW? is still answered
    assert sent(reply(session, "-10")) == []
    assert sent(fire(session, delay)) == [b"ZERO\n"]


def test_empty_lines_do_not_disturb_zero() -> None:
    session = ready_session()
    delay = started(act(session, UserActionKind.REQUEST_ZERO), TimerKind.ZERO_DELAY)[0]
    fire(session, delay)

    effects = session.handle(BytesReceived(b"\n\n"))
    assert effects == [LogEntry("RSP: [empty message]"), LogEntry("RSP: [empty message]")]
    assert session.zero.state is ZeroState.AWAITING_ACK
    assert session.queue.in_flight is not None

    effects = reply(session, "OK")
    assert ControlsEnabled(True) in effects


def test_actions_are_locked_during_zero() -> None:
    session = ready_session()
    act(session, UserActionKind.REQUEST_ZERO)
    for kind, value in [(UserActionKind.TOGGLE_MEASUREMENT, None),
                        (UserActionKind.SET_FREQUENCY, 1000),
                        (UserActionKind.SET_ATTENUATION, 3),
                        (UserActionKind.REQUEST_ZERO, None)]:
        effects = act(session, kind, value)
        assert effects == [Notification("warning", "Warning", "Zero calibration in progress!")]
    assert not session.measuring
    assert session.power.attenuation_db == 0.0


def test_disconnect_during_zero() -> None:
    session = ready_session()
    act(session, UserActionKind.REQUEST_ZERO)
    effects = act(session, UserActionKind.DISCONNECT)
    assert StopTimer(TimerKind.ZERO_DELAY) in effects
    assert session.zero.state is ZeroState.IDLE
    assert session.controls_enabled


def test_zero_cancels_pending_frequency_change() -> None:
    session = ready_session()
    frequency = started(act(session, UserActionKind.SET_FREQUENCY, 2400), TimerKind.FREQUENCY_DELAY)[0]
    effects = act(session, UserActionKind.REQUEST_ZERO)
    assert StopTimer(TimerKind.FREQUENCY_DELAY) in effects
    assert fire(session, frequency) == []


def test_non_ok_reply_keeps_waiting_by_default() -> None:
    session = ready_session()
    delay = started(act(session, UserActionKind.REQUEST_ZERO), TimerKind.ZERO_DELAY)[0]
    fire(session, delay)
    effects = reply(session, "BUSY")
    assert sent(effects) == []
    assert session.zero.state is ZeroState.AWAITING_ACK
    assert session.queue.in_flight is None
    # A late OK no longer matches anything in flight
    assert of_type(reply(session, "OK"), ControlsEnabled) == []


def test_non_ok_reply_with_retry_policy() -> None:
    session = ready_session(zero_ack_policy="retry")
    delay = started(act(session, UserActionKind.REQUEST_ZERO), TimerKind.ZERO_DELAY)[0]
    fire(session, delay)
    assert sent(reply(session, "BUSY")) == [b"ZERO\n"]
    assert ControlsEnabled(True) in reply(session, "OK")


def test_timeout_policy_gives_up() -> None:
    session, _ = measuring_session(zero_ack_policy="timeout", zero_ack_timeout_ms=2000)
    delay = started(act(session, UserActionKind.REQUEST_ZERO), TimerKind.ZERO_DELAY)[0]
    effects = fire(session, delay)
    timeout = started(effects, TimerKind.ZERO_TIMEOUT)[0]
    assert timeout.interval_ms == 2000

    effects = fire(session, timeout)
    assert ControlsEnabled(True) in effects
    assert of_type(effects, Notification)[0].level == "error"
    assert session.zero.state is ZeroState.IDLE
    assert session.queue.in_flight is None
    assert session.measuring


def test_timeout_is_cancelled_by_ack() -> None:
    session = ready_session(zero_ack_policy="timeout")
    delay = started(act(session, UserActionKind.REQUEST_ZERO), TimerKind.ZERO_DELAY)[0]
    timeout = started(fire(session, delay), TimerKind.ZERO_TIMEOUT)[0]
    effects = reply(session, "OK")
    assert StopTimer(TimerKind.ZERO_TIMEOUT) in effects
    assert fire(session, timeout) == []


def test_temperature_polling_continues_during_zero() -> None:
    session = SensorSession()
    session.handle(PortOpened("COM1"))
    temperature = started(session.handle(BytesReceived(IDENTITY)), TimerKind.TEMPERATURE_POLL)[0]
    reply(session, "25.0")

    delay = started(act(session, UserActionKind.REQUEST_ZERO), TimerKind.ZERO_DELAY)[0]
    assert sent(fire(session, temperature)) == [b"TEMP?\n"]
    reply(session, "24.0")
    assert sent(fire(session, delay)) == [b"ZERO\n"]

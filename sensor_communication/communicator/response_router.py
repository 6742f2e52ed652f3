"""
response_router.py

Defines the ResponseRouter class that classifies a reply line against the
command currently in flight. The router does not touch session state; it
returns a RouteResult that the session applies.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from sensor_communication.models import SensorCommand
from sensor_communication.param_types import CommandTag, ZeroAckPolicy
from sensor_communication.protocols.sensor_protocol import SensorProtocol


class Disposition(Enum):
    ACCEPT = "accept"    # reply settles the in-flight command
    RETRY = "retry"      # resend the identical command from the tail of the queue
    IGNORE = "ignore"    # nothing to match against; no state change


@dataclass(frozen=True)
class RouteResult:
    """
    Outcome of routing one line.

    Attributes:
        disposition: What happens to the in-flight slot.
        tag: Tag of the command the line answered, if any.
        identity: (id, firmware) for a well-formed identity reply.
        value: Parsed number for TEMP?/POW? replies; None if unparseable.
        acknowledged: True when CFFREQ/ZERO got OK.
    """
    disposition: Disposition
    tag: Optional[CommandTag] = None
    identity: Optional[Tuple[str, str]] = None
    value: Optional[float] = None
    acknowledged: bool = False


IGNORED = RouteResult(Disposition.IGNORE)


class ResponseRouter:
    """
    Matches reply lines to the in-flight command.
    """

    def __init__(self, protocol: SensorProtocol,
                 zero_ack_policy: ZeroAckPolicy = ZeroAckPolicy.WAIT,
                 logger: Optional[logging.Logger] = None):
        """
        Args:
            protocol: Protocol used to classify and parse replies.
            zero_ack_policy: Handling of non-OK replies to ZERO.
            logger: Optional logger.
        """
        self.protocol = protocol
        self.zero_ack_policy = zero_ack_policy
        self.logger = logger or logging.getLogger(__name__)

    def route(self, line: str, in_flight: Optional[SensorCommand]) -> RouteResult:
        """
        Classifies one framed line.

        Args:
            line: The reply, already stripped. Empty lines are never replies.
            in_flight: The command awaiting a reply, or None.

        Returns:
            A RouteResult describing the disposition and what was learned.
        """
        if not line or in_flight is None:
            return IGNORED

        tag = in_flight.tag
        if self.protocol.definition(tag).retry_on_no_term and self.protocol.is_retry_request(line):
            return self._retry(in_flight)

        if tag is CommandTag.IDENTIFY:
            identity = self.protocol.parse_identity(line)
            if identity is None:
                self.logger.info(f"Unexpected identity reply: {line}")
            return RouteResult(Disposition.ACCEPT, tag, identity=identity)

        if tag is CommandTag.TEMPERATURE:
            return RouteResult(Disposition.ACCEPT, tag, value=self.protocol.parse_decimal(line))

        if tag is CommandTag.POWER:
            value = self.protocol.parse_decimal(line)
            if value is None:
                self.logger.debug(f"Ignoring unparseable power reply: {line}")
            return RouteResult(Disposition.ACCEPT, tag, value=value)

        if tag is CommandTag.SET_FREQUENCY:
            if self.protocol.is_ok(line):
                return RouteResult(Disposition.ACCEPT, tag, acknowledged=True)
            return self._retry(in_flight)

        if tag is CommandTag.ZERO:
            if self.protocol.is_ok(line):
                return RouteResult(Disposition.ACCEPT, tag, acknowledged=True)
            if self.zero_ack_policy is ZeroAckPolicy.RETRY:
                return self._retry(in_flight)
            self.logger.info(f"Zero calibration still pending (reply: {line})")
            return RouteResult(Disposition.ACCEPT, tag)

        return IGNORED

    def _retry(self, command: SensorCommand) -> RouteResult:
        self.logger.warning(f"Retrying command: {command.text}")
        return RouteResult(Disposition.RETRY, command.tag)

"""
__init__.py

Maps each command tag to its definition.
"""

from sensor_communication.commands.anritsu_commands import AnritsuCommand
from sensor_communication.param_types import CommandDefinition, CommandTag

__all__ = [
    'AnritsuCommand',
    'COMMAND_MAP',
    'get_command_definition'
]

COMMAND_MAP = {
    CommandTag.IDENTIFY: AnritsuCommand.IDENTIFY,
    CommandTag.TEMPERATURE: AnritsuCommand.TEMPERATURE,
    CommandTag.POWER: AnritsuCommand.POWER,
    CommandTag.SET_FREQUENCY: AnritsuCommand.SET_FREQUENCY,
    CommandTag.ZERO: AnritsuCommand.ZERO,
}


def get_command_definition(tag: CommandTag) -> CommandDefinition:
    """
    Retrieves the definition for a command tag.

    Args:
        tag: The command kind.

    Returns:
        The corresponding CommandDefinition.

    Raises:
        ValueError: If the tag is unknown.
    """
    if tag not in COMMAND_MAP:
        raise ValueError(f"Unknown command: {tag}")
    return COMMAND_MAP[tag]

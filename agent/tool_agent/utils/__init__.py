"""
Utility functions for the Tool Agent.
"""
from tool_agent.utils.logger import get_logger, setup_logger, get_file_logging_status
from tool_agent.utils.process import CommandResult, CommandRunner, run_command

__all__ = [
    'get_logger',
    'setup_logger',
    'get_file_logging_status',
    'CommandResult',
    'CommandRunner',
    'run_command'
]

"""
Console session access for the Tool Agent.
"""
from tool_agent.session.console_session import ConsoleSessionBridge

__all__ = [
    'ConsoleSessionBridge'
]

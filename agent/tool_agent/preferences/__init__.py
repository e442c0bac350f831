"""
Per-user preference propagation.
"""
from tool_agent.preferences.preferences_writer import PreferencesWriter, args_to_pairs

__all__ = [
    'PreferencesWriter',
    'args_to_pairs'
]

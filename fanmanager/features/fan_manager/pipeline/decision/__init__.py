"""
Decision package for the fan manager.

Picks one next-best action per relationship and maps it to display copy.
"""

from .engine import (
    Decision,
    RuleContext,
    build_rule_context,
    decide_next_best_action,
    to_manager_action,
)

__all__ = [
    "Decision",
    "RuleContext",
    "build_rule_context",
    "decide_next_best_action",
    "to_manager_action",
]

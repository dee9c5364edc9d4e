from __future__ import annotations
"""Simple finite state machine utility for enforcing allowed status transitions.

Usage:
    from vansupport.utils.fsm import TransitionValidator
    TICKET_FSM = TransitionValidator({
        'open': {'assigned', 'in_progress'},
        'assigned': {'in_progress'},
        'in_progress': set(),
    })
    TICKET_FSM.assert_can_transition(current_status, target_status)

Raises 400 abort if invalid; callers run the check before touching the row.
"""
from typing import Dict, Set
from flask import abort

class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status'):
        self.graph = graph
        self.field_name = field_name

    def allowed_from(self, current: str) -> Set[str]:
        return set(self.graph.get(current, set()))

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            abort(400, description=f"Invalid {self.field_name} transition {current} -> {target}")
        return True

    def states(self):
        """All states in declaration order (targets not declared as sources appended last)."""
        seen = list(self.graph.keys())
        for targets in self.graph.values():
            for t in sorted(targets):
                if t not in seen:
                    seen.append(t)
        return seen

__all__ = ['TransitionValidator']

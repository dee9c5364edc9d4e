from vansupport.utils.fsm import TransitionValidator
from vansupport.services.ticket_lifecycle import TICKET_FSM
from werkzeug.exceptions import BadRequest
import pytest


def test_transition_validator_allows_valid():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()})
    assert fsm.assert_can_transition('A', 'B') is True


def test_transition_validator_blocks_invalid():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()})
    with pytest.raises(BadRequest) as exc:
        fsm.assert_can_transition('A', 'C')
    assert 'A -> C' in exc.value.description


def test_ticket_graph():
    assert TICKET_FSM.allowed_from('open') == {'assigned', 'in_progress', 'cancelled', 'resolved'}
    for active in ('open', 'assigned', 'in_progress', 'waiting_customer'):
        assert TICKET_FSM.can_transition(active, 'resolved')
    assert TICKET_FSM.can_transition('assigned', 'waiting_customer')
    assert TICKET_FSM.can_transition('in_progress', 'waiting_customer')
    # reopening is a fork, never an in-place edge
    assert not TICKET_FSM.can_transition('closed', 'open')
    assert not TICKET_FSM.can_transition('resolved', 'open')
    assert TICKET_FSM.allowed_from('cancelled') == set()
    assert TICKET_FSM.states()[0] == 'open'


def test_openapi_exposes_ticket_transitions(client):
    resp = client.get('/openapi.json')
    body = resp.get_json()
    transitions = body['components']['schemas']['Ticket']['x-transitions']
    assert transitions['resolved'] == ['closed']
    assert transitions['closed'] == []

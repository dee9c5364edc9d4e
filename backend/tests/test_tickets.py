from vansupport.constants.ticketing import PRIORITY_ORDER
from tests.test_lifecycle_helpers import (
    file_ticket, tech_headers, admin_headers, seed_user_headers, assert_transition,
)


def _queue(client, url, headers):
    resp = client.get(url, query_string={'limit': 100}, headers=headers)
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()


def test_ticket_endpoints_require_tech_role(client, app_instance):
    tid = file_ticket(client)['ticket_id']
    with app_instance.app_context():
        _, viewer = seed_user_headers(['viewer'])
    resp = client.get('/api/tickets/unassigned')
    assert resp.status_code == 401
    assert resp.get_json()['error']['status'] == 401
    assert client.get('/api/tickets/unassigned', headers=viewer).status_code == 403
    assert client.get(f'/api/tickets/{tid}', headers=viewer).status_code == 403
    assert client.put(f'/api/tickets/{tid}/status', json={'status': 'cancelled'}, headers=viewer).status_code == 403


def test_unassigned_queue_orders_by_priority_then_age(client, app_instance):
    low = file_ticket(client, priority='low')['ticket_id']
    urgent = file_ticket(client, priority='urgent')['ticket_id']
    with app_instance.app_context():
        _, headers = tech_headers()
    body = _queue(client, '/api/tickets/unassigned', headers)
    ranks = [PRIORITY_ORDER[t['priority']] for t in body['tickets']]
    assert ranks == sorted(ranks)
    ids = [t['id'] for t in body['tickets']]
    assert urgent in ids
    if low in ids:
        assert ids.index(urgent) < ids.index(low)
    assert all(t['assigned_to'] is None for t in body['tickets'])
    assert all(t['status'] in ('open', 'assigned', 'in_progress', 'waiting_customer') for t in body['tickets'])
    assert set(body['pagination']) == {'page', 'limit', 'totalCount', 'totalPages', 'hasNextPage', 'hasPreviousPage'}


def test_assign_moves_ticket_between_queues(client, app_instance):
    tid = file_ticket(client, priority='urgent')['ticket_id']
    with app_instance.app_context():
        tech, headers = tech_headers()
    resp = client.post(f'/api/tickets/{tid}/assign', json={}, headers=headers)
    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()
    assert body['status'] == 'assigned'
    assert body['assigned_to'] == tech.id
    assert body['assigned_to_name'] == tech.display_name

    mine = _queue(client, '/api/tickets/my-tickets', headers)
    assert [t['id'] for t in mine['tickets']] == [tid]
    unassigned = _queue(client, '/api/tickets/unassigned', headers)
    assert tid not in [t['id'] for t in unassigned['tickets']]


def test_assign_to_another_tech_and_reject_viewer(client, app_instance):
    tid = file_ticket(client)['ticket_id']
    with app_instance.app_context():
        _, headers = tech_headers()
        other, _ = tech_headers()
        viewer, _ = seed_user_headers(['viewer'])
    resp = client.post(f'/api/tickets/{tid}/assign', json={'assigned_to': viewer.id}, headers=headers)
    assert resp.status_code == 400
    resp = client.post(f'/api/tickets/{tid}/assign', json={'assigned_to': other.id}, headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()['assigned_to'] == other.id
    # reassignment keeps the status
    resp = client.post(f'/api/tickets/{tid}/assign', json={}, headers=headers)
    assert resp.get_json()['status'] == 'assigned'


def test_full_status_lifecycle(client, app_instance):
    tid = file_ticket(client)['ticket_id']
    with app_instance.app_context():
        _, headers = tech_headers()
    client.post(f'/api/tickets/{tid}/assign', json={}, headers=headers)
    assert_transition(client, tid, headers, 'in_progress')
    assert_transition(client, tid, headers, 'waiting_customer', reason='Need photos')
    assert_transition(client, tid, headers, 'in_progress')
    assert_transition(client, tid, headers, 'resolved', resolution='Swapped the battery')
    assert_transition(client, tid, headers, 'closed')
    resp = assert_transition(client, tid, headers, 'open', expected_status=400)
    assert resp.get_json()['error']['detail'] == 'Invalid status transition closed -> open'

    detail = client.get(f'/api/tickets/{tid}', headers=headers).get_json()
    assert detail['resolution'] == 'Swapped the battery'
    texts = [c['comment_text'] for c in detail['comments'] if c['author_type'] == 'system']
    assert any(t.startswith('Status changed from assigned to in_progress') for t in texts)
    assert any(t.endswith(': Need photos') for t in texts)


def test_invalid_transitions_are_rejected_before_writes(client, app_instance):
    tid = file_ticket(client)['ticket_id']
    with app_instance.app_context():
        _, headers = tech_headers()
    assert_transition(client, tid, headers, 'waiting_customer', expected_status=400)
    assert_transition(client, tid, headers, 'bogus', expected_status=400)
    before = client.get(f'/api/tickets/{tid}', headers=headers).get_json()
    assert before['status'] == 'open'
    assert len(before['comments']) == 1
    assert_transition(client, tid, headers, 'cancelled')
    assert_transition(client, tid, headers, 'resolved', expected_status=400)
    resp = client.post(f'/api/tickets/{tid}/assign', json={}, headers=headers)
    assert resp.status_code == 400


def test_tech_comments_and_priority(client, app_instance):
    tid = file_ticket(client)['ticket_id']
    with app_instance.app_context():
        _, headers = tech_headers()
    resp = client.post(f'/api/tickets/{tid}/comments', json={'comment_text': 'Ordering parts'}, headers=headers)
    assert resp.status_code == 201
    assert resp.get_json()['author_type'] == 'tech'
    assert client.post(f'/api/tickets/{tid}/comments', json={}, headers=headers).status_code == 400

    resp = client.put(f'/api/tickets/{tid}/priority', json={'priority': 'critical'}, headers=headers)
    assert resp.status_code == 400
    resp = client.put(f'/api/tickets/{tid}/priority', json={'priority': 'high'}, headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()['priority'] == 'high'

    public = client.get(f'/api/tickets/public/{tid}').get_json()
    texts = [c['comment_text'] for c in public['comments']]
    assert 'Ordering parts' in texts
    assert any('Priority changed from normal to high' in t for t in texts)


def test_detail_not_found(client, app_instance):
    with app_instance.app_context():
        _, headers = tech_headers()
    resp = client.get('/api/tickets/00000000-0000-4000-8000-000000000000', headers=headers)
    assert resp.status_code == 404
    assert resp.get_json()['error']['detail'] == 'Ticket not found'


def test_all_tickets_is_admin_only(client, app_instance):
    tid = file_ticket(client, priority='low')['ticket_id']
    with app_instance.app_context():
        _, manager = tech_headers()
        _, admin = admin_headers()
    assert client.get('/api/tickets/all', headers=manager).status_code == 403
    resp = client.get('/api/tickets/all', query_string={'priority': 'low', 'limit': 100}, headers=admin)
    assert resp.status_code == 200
    body = resp.get_json()
    assert all(t['priority'] == 'low' for t in body['tickets'])
    assert tid in [t['id'] for t in body['tickets']]

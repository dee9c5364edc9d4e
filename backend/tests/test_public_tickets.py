import io
import uuid
from tests.test_utils_seed import create_owner, create_van, category_id, unique_phone
from tests.test_lifecycle_helpers import file_ticket, tech_headers, assert_transition, resolve_publicly, VALID_TICKET


def test_create_ticket_scenario(client):
    body = file_ticket(client, subject='Flat tire', description='Rear left tire went flat.')
    assert len('Rear left tire went flat.') == 25
    assert isinstance(body['ticket_number'], int) and body['ticket_number'] > 0
    assert str(uuid.UUID(body['ticket_id'])) == body['ticket_id']
    assert body['status'] == 'open'
    assert body['priority'] == 'normal'
    assert body['phone'] == '+1 (555) 123-4567'


def test_ticket_numbers_are_sequential(client):
    first = file_ticket(client)['ticket_number']
    second = file_ticket(client)['ticket_number']
    assert second == first + 1


def test_create_rejects_invalid_fields(client):
    resp = client.post('/api/tickets/create', json=dict(VALID_TICKET, subject='abcd', email='bad', description='too short'))
    assert resp.status_code == 400
    err = resp.get_json()['error']
    assert set(err['fields']) == {'subject', 'email', 'description'}
    resp = client.post('/api/tickets/create', json=dict(VALID_TICKET, priority='asap'))
    assert resp.status_code == 400
    assert 'priority' in resp.get_json()['error']['detail']


def test_create_for_existing_owner_and_van(client, app_instance):
    with app_instance.app_context():
        owner = create_owner(name='Kim Carrier', email='kim@example.com')
        van = create_van(owner_id=owner.id)
        other_van = create_van(owner_id=create_owner().id)
        cat = category_id('Mechanical')
    payload = {'owner_id': owner.id, 'van_id': van.id, 'category_id': cat,
               'subject': 'Brakes squeal', 'description': 'Front brakes squeal when stopping.'}
    resp = client.post('/api/tickets/create', json=payload)
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    # contact snapshot comes from the owner record
    assert body['owner_name'] == 'Kim Carrier'
    assert body['email'] == 'kim@example.com'
    detail = client.get(f"/api/tickets/public/{body['ticket_id']}").get_json()
    assert detail['van_id'] == van.id
    assert detail['category_name'] == 'Mechanical'

    resp = client.post('/api/tickets/create', json=dict(payload, van_id=other_van.id))
    assert resp.status_code == 400
    assert 'does not belong' in resp.get_json()['error']['detail']


def test_create_without_owner_files_new_owner(client, app_instance):
    phone = unique_phone()
    body = file_ticket(client, owner_name='New Person', phone=phone)
    detail = client.get(f"/api/tickets/public/{body['ticket_id']}").get_json()
    assert detail['owner_id'] is not None
    again = file_ticket(client, owner_name='New Person', phone=phone)
    detail2 = client.get(f"/api/tickets/public/{again['ticket_id']}").get_json()
    assert detail2['owner_id'] == detail['owner_id']


def test_public_detail_includes_system_comment(client):
    body = file_ticket(client)
    resp = client.get(f"/api/tickets/public/{body['ticket_id']}")
    assert resp.status_code == 200
    detail = resp.get_json()
    assert detail['ticket_number'] == body['ticket_number']
    assert detail['comments'][0]['author_type'] == 'system'
    assert 'assigned_to' not in detail
    assert client.get(f'/api/tickets/public/{uuid.uuid4()}').status_code == 404


def test_comment_polling_with_since(client):
    tid = file_ticket(client)['ticket_id']
    resp = client.post(f'/api/tickets/public/{tid}/comments', json={'comment_text': 'Any update?', 'author_name': 'Dana'})
    assert resp.status_code == 201
    assert resp.get_json()['author_type'] == 'customer'
    feed = client.get(f'/api/tickets/public/{tid}/comments').get_json()
    assert [c['comment_text'] for c in feed['comments']][-1] == 'Any update?'
    since = feed['comments'][-1]['created_at']
    client.post(f'/api/tickets/public/{tid}/comments', json={'comment_text': 'Still waiting'})
    newer = client.get(f'/api/tickets/public/{tid}/comments', query_string={'since': since}).get_json()
    assert [c['comment_text'] for c in newer['comments']] == ['Still waiting']
    assert client.get(f'/api/tickets/public/{tid}/comments?since=yesterday').status_code == 400
    assert client.post(f'/api/tickets/public/{tid}/comments', json={'comment_text': '  '}).status_code == 400


def test_customer_resolve(client):
    tid = file_ticket(client)['ticket_id']
    detail = resolve_publicly(client, tid, 'Tire replaced at the shop')
    assert detail['status'] == 'resolved'
    assert detail['resolution'] == 'Tire replaced at the shop'
    assert detail['resolved_at'] is not None
    assert detail['resolved_by'] == 'Dana Driver'
    resolution_comments = [c for c in detail['comments'] if c['is_resolution']]
    assert len(resolution_comments) == 1
    assert detail['comments'][-1]['author_type'] == 'system'
    # resolved -> resolved is not an edge
    resp = client.put(f'/api/tickets/public/{tid}/resolve', json={'resolution': 'again'})
    assert resp.status_code == 400
    assert client.put(f'/api/tickets/public/{tid}/resolve', json={}).status_code == 400


def test_reopen_closed_ticket_forks(client, app_instance):
    original = file_ticket(client, priority='high', urgency='medium')
    tid = original['ticket_id']
    with app_instance.app_context():
        _, headers = tech_headers()
    resolve_publicly(client, tid)
    assert_transition(client, tid, headers, 'closed')

    resp = client.post(f'/api/tickets/public/{tid}/reopen', json={'reason': 'Tire went flat again'})
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert body['original_ticket_id'] == tid
    assert body['new_ticket_id'] != tid
    assert body['new_ticket_number'] > original['ticket_number']

    # the original keeps its terminal status and resolution
    orig = client.get(f'/api/tickets/public/{tid}').get_json()
    assert orig['status'] == 'closed'
    assert orig['resolution'] == 'Replaced the tire, all good'
    assert 'Reopened by' in orig['comments'][-1]['comment_text']

    fork = client.get(f"/api/tickets/public/{body['new_ticket_id']}").get_json()
    assert fork['status'] == 'open'
    assert fork['reopened_from_id'] == tid
    assert fork['subject'] == 'Reopened: Flat tire'
    assert fork['priority'] == 'high' and fork['urgency'] == 'medium'
    assert fork['resolution'] is None
    assert 'Tire went flat again' in fork['description']


def test_reopen_requires_resolved_or_closed(client):
    tid = file_ticket(client)['ticket_id']
    resp = client.post(f'/api/tickets/public/{tid}/reopen', json={'reason': 'why not'})
    assert resp.status_code == 400
    resolve_publicly(client, tid)
    assert client.post(f'/api/tickets/public/{tid}/reopen', json={}).status_code == 400
    # resolved (not yet closed) tickets can be reopened too
    assert client.post(f'/api/tickets/public/{tid}/reopen', json={'reason': 'not fixed'}).status_code == 201
    assert client.get(f'/api/tickets/public/{tid}').get_json()['status'] == 'resolved'


def test_no_customer_comments_on_closed_ticket(client, app_instance):
    tid = file_ticket(client)['ticket_id']
    with app_instance.app_context():
        _, headers = tech_headers()
    resolve_publicly(client, tid)
    assert_transition(client, tid, headers, 'closed')
    resp = client.post(f'/api/tickets/public/{tid}/comments', json={'comment_text': 'hello?'})
    assert resp.status_code == 400


def test_attachment_upload_rules(client, app_instance):
    tid = file_ticket(client)['ticket_id']
    resp = client.post(f'/api/tickets/public/{tid}/attachments',
                       data={'file': (io.BytesIO(b'\x89PNG fake image'), 'tire.png', 'image/png')},
                       content_type='multipart/form-data')
    assert resp.status_code == 201, resp.get_json()
    att = resp.get_json()
    assert att['mime_type'] == 'image/png'
    assert att['comment_id'] is None
    assert att['public_url'].startswith(f'/uploads/{tid}/')
    assert att['public_url'].endswith('tire.png')

    resp = client.post(f'/api/tickets/public/{tid}/attachments',
                       data={'file': (io.BytesIO(b'plain text'), 'notes.txt', 'text/plain')},
                       content_type='multipart/form-data')
    assert resp.status_code == 400

    big = io.BytesIO(b'0' * (10 * 1024 * 1024 + 1))
    resp = client.post(f'/api/tickets/public/{tid}/attachments',
                       data={'file': (big, 'huge.jpg', 'image/jpeg')},
                       content_type='multipart/form-data')
    assert resp.status_code == 413

    assert client.post(f'/api/tickets/public/{tid}/attachments', data={}, content_type='multipart/form-data').status_code == 400

    detail = client.get(f'/api/tickets/public/{tid}').get_json()
    assert [a['file_name'] for a in detail['attachments']] == ['tire.png']


def test_attachment_linked_to_comment(client):
    tid = file_ticket(client)['ticket_id']
    other = file_ticket(client)['ticket_id']
    comment = client.post(f'/api/tickets/public/{tid}/comments', json={'comment_text': 'Photo attached'}).get_json()
    resp = client.post(f'/api/tickets/public/{tid}/attachments',
                       data={'file': (io.BytesIO(b'video bytes'), 'clip.mp4', 'video/mp4'), 'comment_id': comment['id']},
                       content_type='multipart/form-data')
    assert resp.status_code == 201
    assert resp.get_json()['comment_id'] == comment['id']
    resp = client.post(f'/api/tickets/public/{other}/attachments',
                       data={'file': (io.BytesIO(b'video bytes'), 'clip.mp4', 'video/mp4'), 'comment_id': comment['id']},
                       content_type='multipart/form-data')
    assert resp.status_code == 400


def _closed_ticket(client, app_instance, **overrides):
    tid = file_ticket(client, **overrides)['ticket_id']
    with app_instance.app_context():
        _, headers = tech_headers()
    resolve_publicly(client, tid)
    assert_transition(client, tid, headers, 'closed')
    return tid, headers


def test_reopen_after_van_changed_owner(client, app_instance):
    with app_instance.app_context():
        first_owner = create_owner(name='First Owner')
        second_owner = create_owner(name='Second Owner')
        van = create_van(owner_id=first_owner.id)
    tid, headers = _closed_ticket(client, app_instance, owner_id=first_owner.id, van_id=van.id)
    resp = client.put(f'/api/vans/{van.id}', json={'owner_id': second_owner.id}, headers=headers)
    assert resp.status_code == 200

    resp = client.post(f'/api/tickets/public/{tid}/reopen', json={'reason': 'Still leaking oil'})
    assert resp.status_code == 201, resp.get_json()
    fork = client.get(f"/api/tickets/public/{resp.get_json()['new_ticket_id']}").get_json()
    # the fork keeps the original's owner and van
    assert fork['owner_id'] == first_owner.id
    assert fork['van_id'] == van.id


def test_reopen_credits_reopened_by_name(client, app_instance):
    tid, _ = _closed_ticket(client, app_instance)
    original_number = client.get(f'/api/tickets/public/{tid}').get_json()['ticket_number']
    resp = client.post(f'/api/tickets/public/{tid}/reopen',
                       json={'reason': 'Tire went flat again', 'reopened_by_name': 'Robin Fixer'})
    assert resp.status_code == 201
    body = resp.get_json()

    orig = client.get(f'/api/tickets/public/{tid}').get_json()
    assert orig['comments'][-1]['comment_text'] == f"Reopened by Robin Fixer as ticket #{body['new_ticket_number']}"

    fork = client.get(f"/api/tickets/public/{body['new_ticket_id']}").get_json()
    system_texts = [c['comment_text'] for c in fork['comments'] if c['author_type'] == 'system']
    assert f'Reopened from ticket #{original_number} by Robin Fixer' in system_texts
    customer = [c for c in fork['comments'] if c['author_type'] == 'customer']
    assert customer[-1]['author_name'] == 'Robin Fixer'
    assert customer[-1]['comment_text'] == 'Tire went flat again'


def test_reopen_description_stays_within_limit(client, app_instance):
    tid, _ = _closed_ticket(client, app_instance, description='d' * 2000)
    resp = client.post(f'/api/tickets/public/{tid}/reopen', json={'reason': 'r' * 501})
    assert resp.status_code == 400
    resp = client.post(f'/api/tickets/public/{tid}/reopen', json={'reason': 'r' * 500})
    assert resp.status_code == 201, resp.get_json()
    fork = client.get(f"/api/tickets/public/{resp.get_json()['new_ticket_id']}").get_json()
    assert len(fork['description']) == 2000
    assert fork['description'].startswith('Reopened from ticket #')


def test_numeric_names_are_coerced(client):
    body = file_ticket(client, owner_name=12)
    assert body['owner_name'] == '12'
    resp = client.post(f"/api/tickets/public/{body['ticket_id']}/comments",
                       json={'comment_text': 404, 'author_name': 7})
    assert resp.status_code == 201, resp.get_json()
    assert resp.get_json()['author_name'] == '7'
    assert resp.get_json()['comment_text'] == '404'


def test_upload_removed_when_commit_fails(client, app_instance, monkeypatch):
    import os
    from sqlalchemy.exc import OperationalError
    from sqlalchemy.orm import Session
    tid = file_ticket(client)['ticket_id']

    def failing_commit(self):
        raise OperationalError('INSERT INTO ticket_attachments', {}, Exception('disk I/O error'))

    monkeypatch.setattr(Session, 'commit', failing_commit)
    resp = client.post(f'/api/tickets/public/{tid}/attachments',
                       data={'file': (io.BytesIO(b'\x89PNG fake image'), 'tire.png', 'image/png')},
                       content_type='multipart/form-data')
    monkeypatch.undo()
    assert resp.status_code == 500
    assert resp.get_json()['error']['detail'] == 'Failed to save attachment'
    folder = os.path.join(app_instance.config['UPLOAD_FOLDER'], tid)
    assert os.listdir(folder) == []
    assert client.get(f'/api/tickets/public/{tid}').get_json()['attachments'] == []

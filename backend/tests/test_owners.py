from tests.test_utils_seed import create_owner, create_van, unique
from tests.test_lifecycle_helpers import tech_headers, seed_user_headers, file_ticket


def test_create_owner_validates_and_formats_phone(client, app_instance):
    with app_instance.app_context():
        _, headers = tech_headers()
    resp = client.post('/api/owners', json={'name': 'A', 'phone': '555-12', 'email': 'x'}, headers=headers)
    assert resp.status_code == 400
    assert set(resp.get_json()['error']['fields']) == {'name', 'phone', 'email'}
    resp = client.post('/api/owners', json={'name': 'Acme Logistics', 'phone': '(555) 987-6543', 'company': 'Acme'}, headers=headers)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['phone'] == '+1 (555) 987-6543'
    assert body['van_count'] == 0


def test_viewer_reads_but_cannot_write(client, app_instance):
    with app_instance.app_context():
        owner = create_owner()
        _, viewer = seed_user_headers(['viewer'])
    assert client.get(f'/api/owners/{owner.id}', headers=viewer).status_code == 200
    assert client.post('/api/owners', json={'name': 'No Way', 'phone': '5551112222'}, headers=viewer).status_code == 403
    assert client.delete(f'/api/owners/{owner.id}', headers=viewer).status_code == 403
    assert client.get('/api/owners').status_code == 401


def test_list_sorted_by_name_with_van_counts(client, app_instance):
    tag = unique('Sort')
    with app_instance.app_context():
        zed = create_owner(name=f'{tag} Zed')
        amy = create_owner(name=f'{tag} Amy')
        create_van(owner_id=zed.id)
        create_van(owner_id=zed.id)
        _, headers = seed_user_headers(['viewer'])
    body = client.get('/api/owners', query_string={'search': tag}, headers=headers).get_json()
    assert [o['name'] for o in body['owners']] == [f'{tag} Amy', f'{tag} Zed']
    assert [o['van_count'] for o in body['owners']] == [0, 2]
    assert body['pagination']['totalCount'] == 2
    detail = client.get(f'/api/owners/{zed.id}', headers=headers).get_json()
    assert len(detail['vans']) == 2


def test_update_owner_partial(client, app_instance):
    with app_instance.app_context():
        owner = create_owner(name='Old Name')
        _, headers = tech_headers()
    resp = client.put(f'/api/owners/{owner.id}', json={'name': 'New Name'}, headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()['name'] == 'New Name'
    assert resp.get_json()['phone'] == owner.phone
    assert client.put(f'/api/owners/{owner.id}', json={'phone': '12'}, headers=headers).status_code == 400
    assert client.put(f'/api/owners/{owner.id}', json={}, headers=headers).status_code == 400
    assert client.put('/api/owners/999999', json={'name': 'Ghost'}, headers=headers).status_code == 404


def test_check_dependencies_and_refused_delete(client, app_instance):
    with app_instance.app_context():
        owner = create_owner()
        _, headers = tech_headers()
    deps = client.get(f'/api/owners/{owner.id}/check-dependencies', headers=headers).get_json()
    assert deps == {'hasDependencies': False, 'ticketCount': 0, 'vanCount': 0, 'message': 'No dependencies'}

    with app_instance.app_context():
        create_van(owner_id=owner.id)
    file_ticket(client, owner_id=owner.id)
    deps = client.get(f'/api/owners/{owner.id}/check-dependencies', headers=headers).get_json()
    assert deps['hasDependencies'] is True
    assert deps['vanCount'] == 1 and deps['ticketCount'] == 1
    assert deps['message'] == 'Has 1 van and 1 ticket'

    resp = client.delete(f'/api/owners/{owner.id}', headers=headers)
    assert resp.status_code == 409
    assert 'Has 1 van and 1 ticket' in resp.get_json()['error']['detail']
    # nothing removed
    assert client.get(f'/api/owners/{owner.id}', headers=headers).status_code == 200


def test_delete_owner_without_dependencies(client, app_instance):
    with app_instance.app_context():
        owner = create_owner()
        _, headers = tech_headers()
    resp = client.delete(f'/api/owners/{owner.id}', headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()['deleted'] is True
    assert client.get(f'/api/owners/{owner.id}', headers=headers).status_code == 404

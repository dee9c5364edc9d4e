def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    # Flask default 404 should be wrapped by error handler
    assert resp.status_code == 404
    body = resp.get_json()
    assert 'error' in body
    assert body['error']['status'] == 404
    assert 'detail' in body['error']


def test_missing_token_shape(client):
    resp = client.get('/api/owners')
    assert resp.status_code == 401
    assert resp.get_json() == {'error': {'status': 401, 'title': 'Unauthorized', 'detail': 'Authentication required'}}


def test_validation_error_lists_fields(client):
    resp = client.post('/api/tickets/create', json={})
    assert resp.status_code == 400
    err = resp.get_json()['error']
    assert err['title'] == 'Bad Request'
    assert err['detail'] == 'Validation failed'
    assert {'subject', 'description', 'owner_name', 'phone'} <= set(err['fields'])


def test_internal_error_shape(client, monkeypatch):
    import vansupport.routes.categories as categories_mod

    class BoomSession:
        def execute(self, *a, **k):
            raise RuntimeError('explode')

    monkeypatch.setattr(categories_mod, 'get_db', lambda: BoomSession())
    resp = client.get('/api/categories')
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['error']['status'] == 500
    assert body['error']['title'] == 'Internal Server Error'
    assert body['error']['detail'] == 'Unexpected error'


def test_database_failure_surfaces_failed_to(client, app_instance, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from vansupport import get_db
    from tests.test_lifecycle_helpers import VALID_TICKET

    session_cls = type(get_db())

    def failing_commit(self):
        raise OperationalError('COMMIT', {}, Exception('disk I/O error'))

    monkeypatch.setattr(session_cls, 'commit', failing_commit)
    resp = client.post('/api/tickets/create', json=VALID_TICKET)
    monkeypatch.undo()
    assert resp.status_code == 500
    assert resp.get_json()['error']['detail'] == 'Failed to create ticket'


def test_categories_are_public(client):
    resp = client.get('/api/categories')
    assert resp.status_code == 200
    names = [c['name'] for c in resp.get_json()['categories']]
    assert 'Electrical' in names
    assert names == sorted(names)

import math
from vansupport.config.pagination import normalize_pagination, PAGE_SIZES
from vansupport.utils.listing import build_pagination, paginate_sequence
from tests.test_utils_seed import create_owner, create_van
from tests.test_lifecycle_helpers import seed_user_headers


def test_limit_outside_allowed_set_falls_back_to_default():
    for raw in ('7', '11', '0', '-10', '1000', 'abc', None, '24'):
        assert normalize_pagination('1', raw)[1] == 25
    for size in PAGE_SIZES:
        assert normalize_pagination('1', str(size))[1] == size


def test_page_below_one_is_one():
    assert normalize_pagination('0', '10')[0] == 1
    assert normalize_pagination('-3', '10')[0] == 1
    assert normalize_pagination('x', '10')[0] == 1
    assert normalize_pagination(None, None) == (1, 25)


def test_envelope_math():
    for total in (0, 1, 9, 10, 11, 99, 101):
        for limit in PAGE_SIZES:
            for page in (1, 2, 3):
                meta = build_pagination(page, limit, total)
                assert meta['totalPages'] == math.ceil(total / limit)
                assert meta['hasNextPage'] == (page < meta['totalPages'])
                assert meta['hasPreviousPage'] == (page > 1)


def test_page_past_the_end_is_empty_and_echoed():
    rows, meta = paginate_sequence(list(range(15)), 4, 10)
    assert rows == []
    assert meta['page'] == 4
    assert meta['hasNextPage'] is False


def test_vans_second_page_of_fifteen(client, app_instance):
    with app_instance.app_context():
        owner = create_owner(name='Fifteen Vans Co')
        for _ in range(15):
            create_van(owner_id=owner.id)
        _, headers = seed_user_headers(['viewer'])
    resp = client.get(f'/api/vans?owner_id={owner.id}&page=2&limit=10', headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert len(body['vans']) == 5
    meta = body['pagination']
    assert meta == {
        'page': 2, 'limit': 10, 'totalCount': 15, 'totalPages': 2,
        'hasNextPage': False, 'hasPreviousPage': True,
    }
    # unsupported limit silently becomes 25
    resp = client.get(f'/api/vans?owner_id={owner.id}&limit=7', headers=headers)
    body = resp.get_json()
    assert body['pagination']['limit'] == 25
    assert len(body['vans']) == 15
    numbers = [v['van_number'] for v in body['vans']]
    assert numbers == sorted(numbers)

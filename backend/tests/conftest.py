import os, sys, pytest
# Ensure the backend directory is on path so 'vansupport' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from vansupport import create_app, get_db
from vansupport.models import Base  # registers every table
from vansupport.services.seeding import ensure_roles, ensure_categories


@pytest.fixture(scope='session', autouse=True)
def app_instance(tmp_path_factory):
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app({
        'TESTING': True,
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp('uploads')),
    })
    with app.app_context():
        session = get_db()
        Base.metadata.create_all(session.get_bind())
        ensure_roles(session)
        ensure_categories(session)
        session.commit()
    yield app


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance

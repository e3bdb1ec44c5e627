# tests/conftest.py
import io
import os
from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from bson import ObjectId
from werkzeug.datastructures import FileStorage

os.environ['FLASK_ENV'] = 'testing'

from app import create_app
from app.config.database import close_db_connection, set_db_connection
from app.models.enums import ProduceStatus, UserRole
from app.models.produce import ProduceRecord
from app.models.user import CurrentUser, User
from app.utils.database_helpers import PRODUCE_COLLECTION, USER_COLLECTION, init_database_indexes
from app.utils.password_utils import hash_password
from app.utils.token_utils import generate_token

ONE_ETHER = 10 ** 18
TEST_PASSWORD = 'harvest-season-1'


def _fresh_database():
    client = mongomock.MongoClient(tz_aware=True)
    database = client['farm_marketplace_test']
    init_database_indexes(database)
    set_db_connection(database, client)
    return database


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create test app backed by an in-memory database"""
    _fresh_database()
    app = create_app({
        'TESTING': True,
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp('uploads')),
        'ASSET_BASE_URL': 'http://testserver/uploads',
        'FRONTEND_URL': 'http://frontend.test',
        'JWT_SECRET_KEY': 'test-jwt-secret',
        'RATELIMIT_ENABLED': False,
    })
    return app


@pytest.fixture
def db(app):
    """Fresh database per test, installed as the app-wide connection"""
    database = _fresh_database()
    yield database
    close_db_connection()


@pytest.fixture
def app_ctx(app, db):
    with app.app_context():
        yield app


@pytest.fixture
def client(app, db):
    """Create test client"""
    return app.test_client()


def _create_user(db, username, role):
    user = User(
        username=username,
        email=f"{username}@greenfarm.io",
        full_name=username.title(),
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
    )
    doc = user.to_dict()
    db[USER_COLLECTION].insert_one(doc)
    return CurrentUser(id=doc['_id'], role=role, username=username)


@pytest.fixture
def farmer(db):
    return _create_user(db, 'tom', UserRole.FARMER)


@pytest.fixture
def other_farmer(db):
    return _create_user(db, 'jerry', UserRole.FARMER)


@pytest.fixture
def consumer(db):
    return _create_user(db, 'alice', UserRole.CONSUMER)


@pytest.fixture
def admin(db):
    return _create_user(db, 'root', UserRole.ADMIN)


@pytest.fixture
def auth_headers(app):
    """Build authorization headers for a CurrentUser"""
    def build(user):
        with app.app_context():
            token = generate_token(str(user.id), user.role.value, user.username)
        return {'Authorization': f'Bearer {token}'}
    return build


@pytest.fixture
def image_file():
    """Build a fresh uploaded image, since each upload consumes its stream"""
    def build(filename='tomato.png', content=b'\x89PNG fake image bytes'):
        return FileStorage(stream=io.BytesIO(content), filename=filename, content_type='image/png')
    return build


@pytest.fixture
def seed_produce(db):
    """Insert a produce record directly into the store"""
    def seed(chain_id, owner=None, name='Tomato', origin_farm='Sunny Acres', price_in_wei=ONE_ETHER,
             status=ProduceStatus.HARVESTED, created_at=None, view_count=0):
        record = ProduceRecord(
            chain_id=chain_id,
            registration_tx_hash=f"0x{chain_id:064x}",
            name=name,
            origin_farm=origin_farm,
            original_farmer_name=owner.username if owner else 'tom',
            current_seller_name=owner.username if owner else 'tom',
            farmer_owner_id=owner.id if owner else ObjectId(),
            price_in_wei=str(price_in_wei),
            status=status,
            produce_image_url=f"http://testserver/uploads/produce/{chain_id}.png",
            view_count=view_count,
        )
        if created_at is not None:
            record.created_at = created_at
            record.updated_at = created_at
        doc = record.to_dict()
        db[PRODUCE_COLLECTION].insert_one(doc)
        return doc
    return seed


@pytest.fixture
def base_time():
    return datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
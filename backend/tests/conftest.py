"""
Test Suite Configuration
"""
import os

# Settings are read once at import; point them at throwaway values first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from callboard.database import get_db
from callboard.dependencies import get_session_factory
from callboard.models import (
    Account,
    Base,
    Location,
    Role,
    RolePermissionSet,
    User,
    UserRolePermission,
)
from callboard.config.permissions import ROLE_TIERS
from callboard.utils.security import create_access_token, hash_password

PASSWORD = "password123"


@pytest.fixture(scope="session")
def password_hash() -> str:
    """Hash once; bcrypt is deliberately slow"""
    return hash_password(PASSWORD)


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so worker threads see the same data"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'callboard.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def _user(db, email, password_hash, display_name=None):
    user = User(email=email, display_name=display_name, password_hash=password_hash)
    db.add(user)
    db.flush()
    return user


def _grant(db, user, location, role_set, offset=0):
    db.add(UserRolePermission(
        user_id=user.id,
        location_id=location.location_id,
        role_permission_id=role_set.role_permission_id,
        created_at=datetime(2024, 1, 1) + timedelta(seconds=offset),
    ))


@pytest.fixture
def seed(db, password_hash):
    """
    Two accounts, five role tiers with nested permission sets, and a user per tier.

    Account 1 ("Pasta Place") has New York (10) and Chicago (11).
    Account 2 ("Taco Town") has Austin (20).
    """
    for tier, info in ROLE_TIERS.items():
        db.add(Role(role_id=tier, name=info["label"], description=info["description"]))
    db.flush()

    role_sets = {}
    for tier in sorted(ROLE_TIERS):
        role_set = RolePermissionSet(
            role_permission_id=tier,
            name=f"{ROLE_TIERS[tier]['label']} (standard)",
            role_id=tier,
            permission_ids=list(range(1, tier + 1)),
        )
        db.add(role_set)
        role_sets[tier] = role_set

    pasta = Account(account_id=1, name="Pasta Place")
    tacos = Account(account_id=2, name="Taco Town")
    db.add_all([pasta, tacos])
    db.flush()

    new_york = Location(location_id=10, account_id=1, name="Pasta Place NYC", time_zone="America/New_York")
    chicago = Location(location_id=11, account_id=1, name="Pasta Place Chicago", time_zone="America/Chicago")
    austin = Location(location_id=20, account_id=2, name="Taco Town Austin", time_zone="America/Chicago")
    db.add_all([new_york, chicago, austin])
    db.flush()

    owner = _user(db, "owner@pastaplace.com", password_hash, "Olivia Owner")
    admin = _user(db, "admin@pastaplace.com", password_hash, "Adam Admin")
    manager = _user(db, "manager@pastaplace.com", password_hash, "Mona Manager")
    support = _user(db, "support@pastaplace.com", password_hash)
    other_owner = _user(db, "owner@tacotown.com", password_hash)
    orphan = _user(db, "orphan@pastaplace.com", password_hash)

    _grant(db, owner, new_york, role_sets[5], 0)
    _grant(db, owner, chicago, role_sets[5], 1)
    _grant(db, admin, new_york, role_sets[4], 2)
    _grant(db, manager, new_york, role_sets[2], 3)
    _grant(db, support, chicago, role_sets[1], 4)
    _grant(db, other_owner, austin, role_sets[5], 5)
    db.commit()

    return SimpleNamespace(
        role_sets=role_sets,
        pasta=pasta,
        tacos=tacos,
        new_york=new_york,
        chicago=chicago,
        austin=austin,
        owner=owner,
        admin=admin,
        manager=manager,
        support=support,
        other_owner=other_owner,
        orphan=orphan,
    )


def auth_headers(user) -> dict:
    token = create_access_token({"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(session_factory):
    """TestClient wired to the per-test database"""
    from callboard.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    """Bearer headers for a seeded user"""
    return auth_headers

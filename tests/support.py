"""Shared fixtures for API tests: fresh schema per test, direct user creation, auth headers."""

import unittest

from fastapi.testclient import TestClient

from inkwell.core.database import SessionLocal, engine
from inkwell.core.roles import Role
from inkwell.core.security import create_access_token, hash_password
from inkwell.main import app
from inkwell.models import Base, User

PASSWORD = "Str0ng!pass"


class ApiTestCase(unittest.TestCase):
    """Creates every table before each test and drops them after."""

    def setUp(self) -> None:
        Base.metadata.create_all(bind=engine)
        self.client = TestClient(app)

    def tearDown(self) -> None:
        self.client.close()
        Base.metadata.drop_all(bind=engine)

    def make_user(
        self,
        username: str,
        role: Role = Role.USER,
        is_active: bool = True,
        password: str = PASSWORD,
    ) -> int:
        """Insert a user directly and return its id."""
        with SessionLocal() as db:
            user = User(
                email=f"{username}@example.com",
                username=username,
                first_name=username.capitalize(),
                last_name="Tester",
                password_hash=hash_password(password),
                role=role.value,
                is_active=is_active,
            )
            db.add(user)
            db.commit()
            return user.id

    def auth_headers(self, user_id: int) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    def fetch_user(self, user_id: int) -> User | None:
        with SessionLocal() as db:
            user = db.get(User, user_id)
            if user is not None:
                db.expunge(user)
            return user

import os

# settings are read at import time by app.db.session / app.main
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date, datetime, timezone
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# FORCE model registration
import app.models  # noqa

from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.main import app as fastapi_app
from app.models.enums import ActorRole, ProgramStatus, ProgramType
from app.models.phase import Phase
from app.models.program import Program, ProgramMentor
from app.models.submission import Form, Submission
from app.models.user import StartupProfile, User

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def _now():
    return datetime.now(timezone.utc)


@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    def _get_db():
        yield db

    fastapi_app.dependency_overrides[get_db] = _get_db
    try:
        with TestClient(fastapi_app) as c:
            yield c
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user_id: int, role: str, display_name: str = "Tester"):
        token = create_access_token(
            subject=str(user_id),
            claims={"user_id": user_id, "role": role, "display_name": display_name},
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


class Factory:
    """Row builders for tests; every builder commits."""

    def __init__(self, db):
        self.db = db
        self._seq = count(1)

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        return row

    def user(self, role: ActorRole = ActorRole.STARTUP, company_name=None) -> User:
        n = next(self._seq)
        u = self._save(
            User(
                email=f"user{n}@example.com",
                role=role.value,
                first_name=f"First{n}",
                last_name=f"Last{n}",
                created_at=_now(),
            )
        )
        if company_name is not None:
            self._save(StartupProfile(user_id=u.id, company_name=company_name))
        return u

    def program(self, status: ProgramStatus = ProgramStatus.DRAFT, name: str = "Spring Cohort") -> Program:
        return self._save(
            Program(
                name=name,
                description="test program",
                type=ProgramType.ACCELERATION.value,
                start_date=date(2026, 1, 1),
                end_date=date(2026, 12, 31),
                status=status.value,
                is_template=False,
                created_at=_now(),
                updated_at=_now(),
            )
        )

    def phase(self, program: Program, start: date, end: date, name: str = None) -> Phase:
        return self._save(
            Phase(
                program_id=program.id,
                name=name or f"Phase {start.isoformat()}",
                description=None,
                start_date=start,
                end_date=end,
            )
        )

    def form(self, program: Program) -> Form:
        return self._save(Form(program_id=program.id, title="Application"))

    def submission(self, form: Form, user: User = None, role: ActorRole = ActorRole.STARTUP) -> Submission:
        user = user or self.user(role)
        return self._save(
            Submission(form_id=form.id, user_id=user.id, role=role.value, created_at=_now())
        )

    def mentor(self, program: Program) -> User:
        m = self.user(ActorRole.MENTOR)
        self._save(ProgramMentor(program_id=program.id, mentor_id=m.id, added_at=_now()))
        return m


@pytest.fixture
def factory(db):
    return Factory(db)

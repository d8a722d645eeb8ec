import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from schoolhub.auth.models import User
from schoolhub.auth.security import create_access_token, hash_password
from schoolhub.core.models import Enrollment, Homework, SchoolClass
from schoolhub.db.session import build_engine, build_sessionmaker, create_tables, get_db
from schoolhub.main import app

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
PASSWORD = "StrongPass123"

_seq = count(1)


def auth_headers(user: User) -> dict:
    token = create_access_token(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; the FastAPI dependency shares this session."""
    engine = build_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    session_factory = build_sessionmaker(engine)

    async with session_factory() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.clear()
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def make_user(db_session: AsyncSession):
    async def _make(role: str = "student", **fields) -> User:
        n = next(_seq)
        user = User(
            first_name=fields.pop("first_name", role.title()),
            last_name=fields.pop("last_name", f"No{n}"),
            email=fields.pop("email", f"{role}{n}@example.com"),
            password_hash=hash_password(fields.pop("password", PASSWORD)),
            role=role,
            is_active=fields.pop("is_active", True),
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
async def admin(make_user) -> User:
    return await make_user("admin")


@pytest.fixture()
async def teacher(make_user) -> User:
    return await make_user("teacher")


@pytest.fixture()
def make_class(db_session: AsyncSession):
    async def _make(teacher: User = None, max_students: int = 30, **fields) -> SchoolClass:
        n = next(_seq)
        obj = SchoolClass(
            name=fields.pop("name", f"Class {n}"),
            code=fields.pop("code", f"C{n}"),
            description=fields.pop("description", ""),
            homeroom_teacher_id=teacher.id if teacher else None,
            max_students=max_students,
            is_active=fields.pop("is_active", True),
        )
        db_session.add(obj)
        await db_session.flush()
        if teacher is not None:
            teacher.teaching_class_id = obj.id
        await db_session.commit()
        await db_session.refresh(obj)
        return obj

    return _make


@pytest.fixture()
def enroll(db_session: AsyncSession):
    """Put a student straight into a class, bypassing the capacity gate."""

    async def _enroll(student: User, school_class: SchoolClass) -> Enrollment:
        row = Enrollment(student_id=student.id, class_id=school_class.id, status="enrolled")
        db_session.add(row)
        student.current_class_id = school_class.id
        await db_session.commit()
        await db_session.refresh(row)
        return row

    return _enroll


@pytest.fixture()
def make_homework(db_session: AsyncSession):
    """Insert a homework row directly, so past due dates are possible."""

    async def _make(
        school_class: SchoolClass, teacher: User, due_in: timedelta = timedelta(hours=1), **fields
    ) -> Homework:
        hw = Homework(
            class_id=school_class.id,
            teacher_id=teacher.id,
            title=fields.pop("title", "Fractions worksheet"),
            description=fields.pop("description", "Exercises 1 to 10"),
            due_date=datetime.now(timezone.utc) + due_in,
            status=fields.pop("status", "published"),
            **fields,
        )
        db_session.add(hw)
        await db_session.commit()
        await db_session.refresh(hw)
        return hw

    return _make


@pytest.fixture()
def auth():
    return auth_headers

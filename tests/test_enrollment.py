import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.api.v1.classes.schemas import ClassUpdate
from schoolhub.api.v1.classes.service import ClassService
from schoolhub.api.v1.enrollments.schemas import EnrollmentUpdate
from schoolhub.api.v1.enrollments.service import EnrollmentService
from schoolhub.core.enums import EnrollmentStatus
from schoolhub.core.exceptions import (
    AlreadyEnrolledError,
    CapacityExceededError,
    NotFoundError,
    RoleMismatchError,
    StateError,
)
from schoolhub.core.models import Enrollment


@pytest.mark.asyncio
async def test_enroll_below_capacity_grows_roster_by_one(db_session: AsyncSession, make_user, make_class) -> None:
    service = EnrollmentService(db_session)
    cls = await make_class(max_students=2)
    student = await make_user("student")

    assert await service.enrolled_count(cls.id) == 0
    enrollment = await service.enroll(student.id, cls.id, "first term")

    assert enrollment.status == "enrolled"
    assert enrollment.notes == "first term"
    assert await service.enrolled_count(cls.id) == 1
    assert student.current_class_id == cls.id


@pytest.mark.asyncio
async def test_enroll_at_capacity_fails_and_roster_unchanged(
    db_session: AsyncSession, make_user, make_class, enroll
) -> None:
    service = EnrollmentService(db_session)
    cls = await make_class(max_students=1)
    await enroll(await make_user("student"), cls)
    second = await make_user("student")

    with pytest.raises(CapacityExceededError):
        await service.enroll(second.id, cls.id)

    assert await service.enrolled_count(cls.id) == 1
    assert second.current_class_id is None


@pytest.mark.asyncio
async def test_enroll_rejects_student_enrolled_elsewhere(db_session: AsyncSession, make_user, make_class, enroll) -> None:
    service = EnrollmentService(db_session)
    student = await make_user("student")
    await enroll(student, await make_class())

    with pytest.raises(AlreadyEnrolledError):
        await service.enroll(student.id, (await make_class()).id)


@pytest.mark.asyncio
async def test_enroll_validates_student_and_class(db_session: AsyncSession, make_user, make_class, teacher) -> None:
    service = EnrollmentService(db_session)
    cls = await make_class()

    with pytest.raises(RoleMismatchError):
        await service.enroll(teacher.id, cls.id)

    student = await make_user("student")
    with pytest.raises(NotFoundError):
        await service.enroll(student.id, student.id)

    inactive = await make_class(is_active=False)
    with pytest.raises(StateError):
        await service.enroll(student.id, inactive.id)


@pytest.mark.asyncio
async def test_reenroll_flips_existing_row(db_session: AsyncSession, make_user, make_class) -> None:
    service = EnrollmentService(db_session)
    cls = await make_class()
    student = await make_user("student")
    first = await service.enroll(student.id, cls.id)

    dropped = await service.update_status(first.id, EnrollmentUpdate(status=EnrollmentStatus.DROPPED))
    assert dropped.status == "dropped"
    assert dropped.dropped_at is not None
    assert student.current_class_id is None

    again = await service.enroll(student.id, cls.id)
    assert again.id == first.id
    assert again.status == "enrolled"
    assert again.dropped_at is None

    rows = (await db_session.execute(select(Enrollment).where(Enrollment.student_id == student.id))).scalars().all()
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_transfer_completes_old_and_enrolls_new(db_session: AsyncSession, make_user, make_class, enroll) -> None:
    service = EnrollmentService(db_session)
    old_cls = await make_class(name="Grade 5A")
    new_cls = await make_class(name="Grade 5B")
    student = await make_user("student")
    await enroll(student, old_cls)

    result = await service.transfer(student.id, new_cls.id, "parents moved")

    assert result.completed_enrollment.status == "completed"
    assert result.completed_enrollment.completed_at is not None
    assert result.completed_enrollment.notes.endswith("Transferred to Grade 5B")
    assert result.new_enrollment.status == "enrolled"
    assert result.new_enrollment.notes == "Transferred from previous class | parents moved"
    assert student.current_class_id == new_cls.id
    assert await service.enrolled_count(old_cls.id) == 0
    assert await service.enrolled_count(new_cls.id) == 1


@pytest.mark.asyncio
async def test_transfer_into_full_class_leaves_current_enrollment(
    db_session: AsyncSession, make_user, make_class, enroll
) -> None:
    service = EnrollmentService(db_session)
    old_cls = await make_class()
    full_cls = await make_class(max_students=1)
    await enroll(await make_user("student"), full_cls)
    student = await make_user("student")
    current = await enroll(student, old_cls)

    with pytest.raises(CapacityExceededError):
        await service.transfer(student.id, full_cls.id)

    await db_session.refresh(current)
    assert current.status == "enrolled"
    assert student.current_class_id == old_cls.id


@pytest.mark.asyncio
async def test_transfer_requires_current_enrollment_and_new_class(
    db_session: AsyncSession, make_user, make_class, enroll
) -> None:
    service = EnrollmentService(db_session)
    cls = await make_class()
    student = await make_user("student")

    with pytest.raises(StateError):
        await service.transfer(student.id, cls.id)

    await enroll(student, cls)
    with pytest.raises(AlreadyEnrolledError):
        await service.transfer(student.id, cls.id)


@pytest.mark.asyncio
async def test_moving_back_to_enrolled_goes_through_capacity_gate(
    db_session: AsyncSession, make_user, make_class, enroll
) -> None:
    service = EnrollmentService(db_session)
    cls = await make_class(max_students=1)
    student = await make_user("student")
    row = await service.enroll(student.id, cls.id)
    await service.update_status(row.id, EnrollmentUpdate(status=EnrollmentStatus.SUSPENDED))
    await enroll(await make_user("student"), cls)

    with pytest.raises(CapacityExceededError):
        await service.update_status(row.id, EnrollmentUpdate(status=EnrollmentStatus.ENROLLED))


@pytest.mark.asyncio
async def test_class_capacity_cannot_drop_below_enrolled(db_session: AsyncSession, make_user, make_class, enroll) -> None:
    cls = await make_class(max_students=3)
    await enroll(await make_user("student"), cls)
    await enroll(await make_user("student"), cls)
    service = ClassService(db_session)

    with pytest.raises(StateError):
        await service.update_class(cls.id, ClassUpdate(max_students=1))
    with pytest.raises(StateError):
        await service.delete_class(cls.id)

    updated = await service.update_class(cls.id, ClassUpdate(max_students=2))
    assert updated.max_students == 2
    assert updated.student_count == 2


@pytest.mark.asyncio
async def test_enroll_endpoint_is_admin_only(client, auth, admin, teacher, make_user, make_class) -> None:
    cls = await make_class(max_students=1)
    student = await make_user("student")
    payload = {"student_id": str(student.id), "class_id": str(cls.id)}

    denied = await client.post("/api/v1/enrollments", json=payload, headers=auth(teacher))
    assert denied.status_code == 403
    assert denied.json()["status"] == "fail"

    resp = await client.post("/api/v1/enrollments", json=payload, headers=auth(admin))
    assert resp.status_code == 201
    assert resp.json()["status"] == "success"
    assert resp.json()["data"]["status"] == "enrolled"

    other = await make_user("student")
    full = await client.post(
        "/api/v1/enrollments",
        json={"student_id": str(other.id), "class_id": str(cls.id)},
        headers=auth(admin),
    )
    assert full.status_code == 409
    assert full.json() == {"status": "fail", "message": "Class has reached its maximum number of students"}

    roster = await client.get(f"/api/v1/classes/{cls.id}/students", headers=auth(admin))
    assert [s["id"] for s in roster.json()["data"]] == [str(student.id)]

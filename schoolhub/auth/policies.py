"""Ownership and visibility rules, one predicate per entity action.

Services call these once per operation; routers only guard on the role tag.
"""

from typing import Optional
from uuid import UUID

from schoolhub.auth.schemas import CurrentUser
from schoolhub.core.enums import HomeworkStatus, UserRole


def is_admin(user: CurrentUser) -> bool:
    return user.role == UserRole.ADMIN


def is_teacher(user: CurrentUser) -> bool:
    return user.role == UserRole.TEACHER


def is_student(user: CurrentUser) -> bool:
    return user.role == UserRole.STUDENT


def can_manage_class(user: CurrentUser, school_class) -> bool:
    """Homeroom teacher of the class (authoring homework, uploading documents)."""
    return is_teacher(user) and school_class.homeroom_teacher_id == user.id


def can_view_class(user: CurrentUser, school_class, student_class_id: Optional[UUID]) -> bool:
    if is_admin(user) or can_manage_class(user, school_class):
        return True
    return is_student(user) and student_class_id == school_class.id


def can_modify_homework(user: CurrentUser, homework) -> bool:
    return is_teacher(user) and homework.teacher_id == user.id


def can_view_homework(user: CurrentUser, homework, student_class_id: Optional[UUID]) -> bool:
    if is_admin(user) or can_modify_homework(user, homework):
        return True
    if is_student(user):
        return student_class_id == homework.class_id and homework.status != HomeworkStatus.DRAFT
    return False


def can_review_homework(user: CurrentUser, homework) -> bool:
    """Submissions list and analytics."""
    return is_admin(user) or can_modify_homework(user, homework)


def can_grade(user: CurrentUser, homework) -> bool:
    return can_modify_homework(user, homework)


def can_view_submission(user: CurrentUser, submission, homework) -> bool:
    if is_admin(user) or can_modify_homework(user, homework):
        return True
    return is_student(user) and submission.student_id == user.id


def owns_submission(user: CurrentUser, submission) -> bool:
    return is_student(user) and submission.student_id == user.id


def can_modify_document(user: CurrentUser, document) -> bool:
    return is_teacher(user) and document.teacher_id == user.id


def can_view_document(user: CurrentUser, document, student_class_id: Optional[UUID]) -> bool:
    if is_admin(user) or can_modify_document(user, document):
        return True
    return is_student(user) and student_class_id == document.class_id

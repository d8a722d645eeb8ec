from schoolhub.auth.models import User
from schoolhub.core.models.class_model import SchoolClass
from schoolhub.core.models.document import Document
from schoolhub.core.models.enrollment import Enrollment
from schoolhub.core.models.homework import Homework
from schoolhub.core.models.submission import Submission

__all__ = [
    "Document",
    "Enrollment",
    "Homework",
    "SchoolClass",
    "Submission",
    "User",
]

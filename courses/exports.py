"""Flat CSV rows for feedback exports.

`feedback_rows` turns a feedback queryset into dictionaries keyed by the
column titles below; `write_feedback_csv` writes them to any text stream.
The API streams the result from a temporary file.
"""
from __future__ import annotations

import csv
from typing import IO, Iterable, Iterator

from django.db.models import QuerySet

from .models_feedback import Feedback

ANONYMOUS = "Anonymous"
NOT_AVAILABLE = "N/A"

EXPORT_COLUMNS = (
    "Feedback ID",
    "Student Name",
    "Student Email",
    "Course Name",
    "Course Code",
    "Instructor",
    "Department",
    "Rating",
    "Message",
    "Tags",
    "Is Anonymous",
    "Status",
    "Created At",
    "Updated At",
)


def _student_name(feedback: Feedback) -> str:
    profile = getattr(feedback.student, "profile", None)
    return getattr(profile, "name", "") or feedback.student.get_full_name() or feedback.student.username


def feedback_row(feedback: Feedback) -> dict[str, object]:
    course = feedback.course
    anonymous = feedback.is_anonymous
    return {
        "Feedback ID": str(feedback.pk),
        "Student Name": ANONYMOUS if anonymous else _student_name(feedback),
        "Student Email": ANONYMOUS if anonymous else feedback.student.email,
        "Course Name": course.name,
        "Course Code": course.code,
        "Instructor": course.instructor or NOT_AVAILABLE,
        "Department": course.department or NOT_AVAILABLE,
        "Rating": feedback.rating,
        "Message": feedback.message,
        "Tags": ", ".join(feedback.tags or []),
        "Is Anonymous": "Yes" if anonymous else "No",
        "Status": feedback.status,
        "Created At": feedback.created_at.isoformat(),
        "Updated At": feedback.updated_at.isoformat(),
    }


def feedback_rows(queryset: QuerySet) -> Iterator[dict[str, object]]:
    qs = queryset.select_related("course", "student", "student__profile")
    for feedback in qs.iterator(chunk_size=500):
        yield feedback_row(feedback)


def write_feedback_csv(rows: Iterable[dict[str, object]], stream: IO[str]) -> int:
    """Write a header plus `rows` to `stream`; return the number of rows."""
    writer = csv.DictWriter(stream, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    count = 0
    for row in rows:
        writer.writerow(row)
        count += 1
    return count

"""Score to grade conversion and grade point averages."""
from __future__ import annotations

from typing import Iterable

from portal.models import Result

GRADE_BOUNDARIES = (
    (70, 'A'),
    (60, 'B'),
    (50, 'C'),
    (45, 'D'),
    (40, 'E'),
)
GRADE_POINTS = {'A': 5, 'B': 4, 'C': 3, 'D': 2, 'E': 1, 'F': 0}


def calculate_grade(score: float) -> str:
    for floor, grade in GRADE_BOUNDARIES:
        if score >= floor:
            return grade
    return 'F'


def grade_points(grade: str) -> int:
    return GRADE_POINTS.get(grade, 0)


def calculate_gpa(entries: Iterable[tuple[int, int]]) -> float:
    """GPA over ``(grade_points, credits)`` pairs, rounded to 2 places."""
    total_points = 0
    total_credits = 0
    for points, credits in entries:
        total_points += points * credits
        total_credits += credits
    if total_credits <= 0:
        return 0.0
    return round(total_points / total_credits, 2)


def student_cgpa(student) -> float:
    """CGPA over a student's published results."""
    rows = Result.objects.filter(student=student, is_published=True).values_list('grade_points', 'course__credits')
    return calculate_gpa(rows)

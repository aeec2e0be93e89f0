"""
Typed list filters read from the query string
"""
from dataclasses import dataclass, fields
from typing import Dict, Optional

from accounts.models import normalize_grade

QUERY_PARAMS = {
    'category': 'category',
    'difficulty': 'difficulty',
    'grade_level': 'gradeLevel',
    'status': 'status',
    'student_id': 'studentId',
    'module_id': 'moduleId',
    'quiz_id': 'quizId',
}


@dataclass(frozen=True)
class QueryFilters:
    category: Optional[str] = None
    difficulty: Optional[str] = None
    grade_level: Optional[str] = None
    status: Optional[str] = None
    student_id: Optional[str] = None
    module_id: Optional[str] = None
    quiz_id: Optional[str] = None

    @classmethod
    def from_request(cls, request):
        params = request.query_params
        values = {name: params.get(param) or None for name, param in QUERY_PARAMS.items()}
        if values['grade_level']:
            values['grade_level'] = normalize_grade(values['grade_level'])
        return cls(**values)

    def apply(self, queryset, lookups: Dict[str, str]):
        """Filter ``queryset`` by every set attribute listed in ``lookups`` (attribute -> ORM lookup)."""
        for field in fields(self):
            value = getattr(self, field.name)
            if value is not None and field.name in lookups:
                queryset = queryset.filter(**{lookups[field.name]: value})
        return queryset

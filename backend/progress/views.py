"""
Progress views - recording learning progress and reporting on it
"""
import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.generics import get_object_or_404
from rest_framework.response import Response

from accounts.models import ROLE_ADMIN, ROLE_STUDENT, User
from accounts.permissions import CanAccessStudentRecord, IsStudent, IsTeacherOrAdmin
from content.filters import QueryFilters
from content.models import Module, Quiz
from lexilearn.pagination import CollectionResponseMixin

from .models import Progress
from .serializers import (
    ExerciseResultSerializer, ProgressSerializer, ProgressUpdateSerializer,
    RecordProgressSerializer,
)
from .services import reporting
from .services.tracking import add_exercise_result, record_progress, update_progress

logger = logging.getLogger(__name__)

PROGRESS_FILTERS = {
    'student_id': 'student_id',
    'module_id': 'module_id',
    'quiz_id': 'quiz_id',
    'status': 'status',
}


class ProgressViewSet(CollectionResponseMixin,
                      mixins.ListModelMixin,
                      viewsets.GenericViewSet):
    """
    Students read and write their own records, teachers those of their
    students, admins all of them.
    """
    serializer_class = ProgressSerializer
    permission_classes = [CanAccessStudentRecord]
    collection_key = 'progress'

    def get_queryset(self):
        return (
            Progress.objects.visible_to(self.request.user)
            .select_related('student', 'module', 'quiz')
            .order_by('-last_activity')
        )

    def filter_queryset(self, queryset):
        if self.action == 'list':
            queryset = QueryFilters.from_request(self.request).apply(queryset, PROGRESS_FILTERS)
        return queryset

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, 'progress': self.get_serializer(self.get_object()).data})

    def create(self, request, *args, **kwargs):
        """Record progress on a module the student can see."""
        if request.user.role != ROLE_STUDENT:
            self.permission_denied(request, message=IsStudent.message)

        serializer = RecordProgressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        module = get_object_or_404(Module.objects.visible_to(request.user), pk=data['moduleId'])
        exercise_result = data.get('exerciseResult')
        progress, created = record_progress(
            request.user,
            module,
            data['currentStep'],
            score=data.get('score'),
            time_spent=data.get('timeSpent'),
            exercise_result=dict(exercise_result) if exercise_result is not None else None,
            reset=data['reset'],
        )
        return Response({
            'success': True,
            'message': 'Progress updated successfully',
            'progress': self.get_serializer(progress).data,
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    def update(self, request, *args, **kwargs):
        progress = self.get_object()
        serializer = ProgressUpdateSerializer(data=request.data, partial=kwargs.pop('partial', False))
        serializer.is_valid(raise_exception=True)
        progress = update_progress(progress, request.user, serializer.validated_data)
        return Response({
            'success': True,
            'message': 'Progress updated successfully',
            'progress': self.get_serializer(progress).data,
        })

    def partial_update(self, request, *args, **kwargs):
        kwargs['partial'] = True
        return self.update(request, *args, **kwargs)

    @action(detail=True, methods=['post'], permission_classes=[IsStudent, CanAccessStudentRecord])
    def exercise(self, request, pk=None):
        progress = self.get_object()
        serializer = ExerciseResultSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        progress = add_exercise_result(progress, dict(serializer.validated_data))
        return Response({
            'success': True,
            'message': 'Exercise result added successfully',
            'progress': self.get_serializer(progress).data,
        })

    @action(detail=False, methods=['get'])
    def summary(self, request):
        """Own summary for students, class roster for teachers (admins pass ?teacherId=)."""
        user = request.user
        if user.role == ROLE_STUDENT:
            return Response({'success': True, 'summary': reporting.summarize_student(user)})

        teacher = user
        if user.role == ROLE_ADMIN:
            teacher_id = request.query_params.get('teacherId')
            if not teacher_id:
                raise ValidationError({'teacherId': 'teacherId is required for admins'})
            teacher = get_object_or_404(User.objects.teachers(), pk=teacher_id)

        return Response({'success': True, 'summary': reporting.summarize_teacher_roster(teacher)})

    @action(
        detail=False, methods=['get'], permission_classes=[IsTeacherOrAdmin],
        url_path=r'student/(?P<student_id>[^/.]+)',
    )
    def student(self, request, student_id=None):
        student = get_object_or_404(User.objects.students_of(request.user), pk=student_id)
        return Response({
            'success': True,
            'student': {'id': str(student.id), 'name': student.name, 'grade': student.grade},
            'summary': reporting.summarize_student(student),
            'recentActivity': ProgressSerializer(reporting.recent_activity(student), many=True).data,
        })

    @action(
        detail=False, methods=['get'], permission_classes=[IsTeacherOrAdmin],
        url_path=r'module/(?P<module_id>[^/.]+)',
    )
    def module(self, request, module_id=None):
        module = get_object_or_404(Module.objects.visible_to(request.user), pk=module_id)
        rows = reporting.module_rows(module, request.user)
        return Response({
            'success': True,
            'stats': reporting.summarize_rows(rows),
            'studentProgress': ProgressSerializer(
                rows.select_related('student', 'module', 'quiz'), many=True
            ).data,
        })

    @action(
        detail=False, methods=['get'], permission_classes=[IsTeacherOrAdmin],
        url_path=r'quiz/(?P<quiz_id>[^/.]+)',
    )
    def quiz(self, request, quiz_id=None):
        quiz = get_object_or_404(Quiz.objects.visible_to(request.user), pk=quiz_id)
        rows = reporting.quiz_rows(quiz, request.user)
        return Response({
            'success': True,
            'stats': reporting.summarize_rows(rows),
            'studentProgress': ProgressSerializer(
                rows.select_related('student', 'module', 'quiz'), many=True
            ).data,
        })

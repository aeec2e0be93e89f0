"""
Content views - module, quiz and assignment management plus the student
facing quiz endpoints
"""
import logging

from django.conf import settings
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.generics import get_object_or_404
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from accounts.models import ROLE_STUDENT, User
from accounts.permissions import CanManageContent, IsStudent, IsTeacher, IsTeacherOrAdmin
from lexilearn.pagination import CollectionResponseMixin
from progress.models import Progress, QuizSubmission
from progress.serializers import (
    ProgressSerializer, QuizSubmissionSerializer, QuizSubmitSerializer,
)
from progress.services.submissions import submit_assignment_quiz
from progress.services.tracking import start_quiz, submit_quiz

from .filters import QueryFilters
from .models import Assignment, Module, Quiz, question_points
from .serializers import (
    AssignmentSerializer, AssignStudentsSerializer, ModuleSerializer, QuizSerializer,
    without_answers,
)
from .uploads import store_uploaded_media

logger = logging.getLogger(__name__)

CONTENT_FILTERS = {
    'category': 'category',
    'difficulty': 'difficulty',
    'grade_level': 'grade_level',
}


class LearningContentViewSet(CollectionResponseMixin, viewsets.ModelViewSet):
    """
    CRUD shared by modules, quizzes and assignments.

    Reads go through a principal-scoped queryset, so content outside the
    caller's scope answers 404 exactly like missing content. Deleting only
    deactivates the row.
    """
    model = None
    entity_key = None
    entity_label = None
    upload_max_size = None
    filter_lookups = CONTENT_FILTERS
    manage_actions = ('update', 'partial_update', 'destroy', 'assign')
    http_method_names = ['get', 'post', 'put', 'patch', 'delete']

    def get_permissions(self):
        if self.action == 'create':
            return [IsTeacher()]
        if self.action in self.manage_actions:
            return [CanManageContent()]
        return super().get_permissions()

    def get_queryset(self):
        return (
            self.model.objects.visible_to(self.request.user)
            .active()
            .select_related('created_by')
            .prefetch_related('assigned_to')
        )

    def filter_queryset(self, queryset):
        if self.action == 'list':
            queryset = QueryFilters.from_request(self.request).apply(queryset, self.filter_lookups)
        return queryset

    def store_media(self, request, instance=None):
        """Save uploaded photos/videos; returns model field values to set."""
        if self.upload_max_size is None:
            return {}
        media = store_uploaded_media(request.FILES, self.upload_max_size)
        if instance is not None:
            media = {field: list(getattr(instance, field)) + files for field, files in media.items()}
        return media

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        media = self.store_media(request)
        instance = serializer.save(created_by=request.user, **media)
        logger.info(f'{self.entity_label} {instance.id} created by {request.user.id}')
        return Response({
            'success': True,
            'message': f'{self.entity_label} created successfully',
            self.entity_key: self.get_serializer(instance).data,
        }, status=status.HTTP_201_CREATED)

    def retrieve(self, request, *args, **kwargs):
        return Response({'success': True, self.entity_key: self.get_serializer(self.get_object()).data})

    def update(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=kwargs.pop('partial', False))
        serializer.is_valid(raise_exception=True)
        media = self.store_media(request, instance)
        instance = serializer.save(**media)
        logger.info(f'{self.entity_label} {instance.id} updated by {request.user.id}')
        return Response({
            'success': True,
            'message': f'{self.entity_label} updated successfully',
            self.entity_key: self.get_serializer(instance).data,
        })

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        instance.is_active = False
        instance.save(update_fields=['is_active', 'updated_at'])
        logger.info(f'{self.entity_label} {instance.id} deactivated by {request.user.id}')
        return Response({'success': True, 'message': f'{self.entity_label} deleted successfully'})

    @action(detail=True, methods=['post', 'delete'])
    def assign(self, request, pk=None):
        """POST assigns, DELETE unassigns the given ``studentIds``."""
        instance = self.get_object()
        serializer = AssignStudentsSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        students = serializer.validated_data['studentIds']

        if request.method == 'POST':
            instance.assigned_to.add(*students)
            verb = 'assigned to'
        else:
            instance.assigned_to.remove(*students)
            verb = 'unassigned from'

        logger.info(f'{self.entity_label} {instance.id} {verb} {len(students)} students by {request.user.id}')
        instance = self.get_queryset().get(pk=instance.pk)
        return Response({
            'success': True,
            'message': f'{self.entity_label} {verb} {len(students)} students',
            self.entity_key: self.get_serializer(instance).data,
        })


class ModuleViewSet(LearningContentViewSet):
    model = Module
    serializer_class = ModuleSerializer
    entity_key = 'module'
    entity_label = 'Module'
    collection_key = 'modules'
    parser_classes = (JSONParser, MultiPartParser, FormParser)

    @property
    def upload_max_size(self):
        return settings.MODULE_UPLOAD_MAX_SIZE


class QuizViewSet(LearningContentViewSet):
    model = Quiz
    serializer_class = QuizSerializer
    entity_key = 'quiz'
    entity_label = 'Quiz'
    collection_key = 'quizzes'

    @action(detail=True, methods=['post'], permission_classes=[IsStudent])
    def start(self, request, pk=None):
        quiz = self.get_object()
        progress, created = start_quiz(request.user, quiz)
        return Response({
            'success': True,
            'message': 'Quiz started' if created else 'Quiz already started',
            'progress': ProgressSerializer(progress).data,
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    @action(detail=True, methods=['post'], permission_classes=[IsStudent])
    def submit(self, request, pk=None):
        quiz = self.get_object()
        serializer = QuizSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        progress, result = submit_quiz(
            request.user, quiz,
            serializer.validated_data['answers'],
            serializer.validated_data['timeSpent'],
        )
        return Response({
            'success': True,
            'message': 'Quiz submitted successfully',
            'results': dict(result.summary(), answers=[a.as_exercise_result() for a in result.answers]),
            'progress': ProgressSerializer(progress).data,
        })

    @action(detail=True, methods=['get'], permission_classes=[IsStudent])
    def results(self, request, pk=None):
        quiz = self.get_object()
        progress = Progress.objects.filter(student=request.user, quiz=quiz).first()
        if progress is None:
            raise NotFound('No results found for this quiz')
        return Response({'success': True, 'results': ProgressSerializer(progress).data})

    @action(
        detail=False, methods=['get'], permission_classes=[IsTeacherOrAdmin],
        url_path=r'student/(?P<student_id>[^/.]+)',
    )
    def student_results(self, request, student_id=None):
        student = get_object_or_404(User.objects.students_of(request.user), pk=student_id)
        rows = (
            Progress.objects.filter(student=student, quiz__isnull=False)
            .select_related('quiz', 'student')
            .order_by('-last_activity')
        )
        return Response({'success': True, 'results': ProgressSerializer(rows, many=True).data})


class AssignmentViewSet(LearningContentViewSet):
    model = Assignment
    serializer_class = AssignmentSerializer
    entity_key = 'assignment'
    entity_label = 'Assignment'
    collection_key = 'assignments'
    parser_classes = (JSONParser, MultiPartParser, FormParser)
    filter_lookups = dict(CONTENT_FILTERS, status='status')

    @property
    def upload_max_size(self):
        return settings.ASSIGNMENT_UPLOAD_MAX_SIZE

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        if self.action == 'list' and self.request.user.role == ROLE_STUDENT:
            queryset = queryset.filter(status='active')
        return queryset

    @action(detail=True, methods=['get'])
    def quiz(self, request, pk=None):
        """The assignment's quiz questions with answers withheld."""
        assignment = self.get_object()
        questions = [
            dict(without_answers(question), questionIndex=index)
            for index, question in enumerate(assignment.quiz_questions())
        ]
        return Response({
            'success': True,
            'quiz': {
                'assignmentId': str(assignment.id),
                'title': assignment.title,
                'questions': questions,
                'totalQuestions': len(questions),
                'maxScore': sum(question_points(q) for q in questions),
            },
        })

    @action(detail=True, methods=['post'], permission_classes=[IsStudent], url_path='quiz/submit')
    def quiz_submit(self, request, pk=None):
        assignment = self.get_object()
        serializer = QuizSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        submission, result = submit_assignment_quiz(
            request.user, assignment,
            serializer.validated_data['answers'],
            serializer.validated_data['timeSpent'],
        )
        return Response({
            'success': True,
            'message': 'Quiz submitted successfully',
            'submission': QuizSubmissionSerializer(submission).data,
            'results': result.summary(),
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'], url_path='quiz/results')
    def quiz_results(self, request, pk=None):
        """Students get their best attempt; owners get every attempt."""
        assignment = self.get_object()

        if request.user.role == ROLE_STUDENT:
            best = QuizSubmission.objects.best_for(assignment, request.user)
            if best is None:
                raise NotFound('No quiz submission found')
            return Response({'success': True, 'submission': QuizSubmissionSerializer(best).data})

        submissions = (
            QuizSubmission.objects.filter(assignment=assignment)
            .select_related('student', 'assignment')
            .order_by('-completed_at')
        )
        return Response({
            'success': True,
            'submissions': QuizSubmissionSerializer(submissions, many=True).data,
        })

    @action(
        detail=False, methods=['get'], permission_classes=[IsTeacherOrAdmin],
        url_path=r'student/(?P<student_id>[^/.]+)/submissions',
    )
    def student_submissions(self, request, student_id=None):
        student = get_object_or_404(User.objects.students_of(request.user), pk=student_id)
        submissions = (
            QuizSubmission.objects.filter(student=student)
            .select_related('student', 'assignment')
            .order_by('-completed_at')
        )
        return Response({
            'success': True,
            'submissions': QuizSubmissionSerializer(submissions, many=True).data,
        })

"""
Progress models - per-student learning records and quiz submissions
"""
import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from accounts.models import ROLE_ADMIN, ROLE_TEACHER

STATUS_NOT_STARTED = 'not-started'
STATUS_IN_PROGRESS = 'in-progress'
STATUS_COMPLETED = 'completed'
STATUS_PAUSED = 'paused'

STATUS_CHOICES = [
    (STATUS_NOT_STARTED, 'Not started'),
    (STATUS_IN_PROGRESS, 'In progress'),
    (STATUS_COMPLETED, 'Completed'),
    (STATUS_PAUSED, 'Paused'),
]


def percent(part, whole):
    """Whole-number percentage with halves rounded up; 0 when ``whole`` is 0."""
    if not whole:
        return 0
    return int(part * 100 / whole + 0.5)


class ProgressQuerySet(models.QuerySet):
    def visible_to(self, principal):
        if principal.role == ROLE_ADMIN:
            return self
        if principal.role == ROLE_TEACHER:
            return self.filter(student__teacher=principal)
        return self.filter(student=principal)

    def for_modules(self):
        return self.filter(module__isnull=False)

    def for_quizzes(self):
        return self.filter(quiz__isnull=False)


class Progress(models.Model):
    """
    One student's record for one module or one quiz.

    There is at most one row per (student, module) and per (student,
    quiz); rows are never deleted.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    student = models.ForeignKey('accounts.User', on_delete=models.PROTECT, related_name='progress_records')
    module = models.ForeignKey('content.Module', on_delete=models.PROTECT, null=True, blank=True, related_name='progress_records')
    quiz = models.ForeignKey('content.Quiz', on_delete=models.PROTECT, null=True, blank=True, related_name='progress_records')

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_NOT_STARTED)
    current_step = models.PositiveIntegerField(default=0)
    total_steps = models.PositiveIntegerField(default=0)
    score = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(100)])
    time_spent = models.PositiveIntegerField(default=0, help_text='Seconds')
    attempts = models.PositiveIntegerField(default=0)
    exercise_results = models.JSONField(default=list, blank=True)

    start_date = models.DateTimeField(default=timezone.now)
    last_activity = models.DateTimeField(default=timezone.now)
    completion_date = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(max_length=500, blank=True, default='')
    teacher_feedback = models.TextField(max_length=1000, blank=True, default='')
    difficulty_rating = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    enjoyment_rating = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )

    objects = ProgressQuerySet.as_manager()

    class Meta:
        db_table = 'progress'
        ordering = ['-last_activity']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'module'],
                condition=Q(module__isnull=False),
                name='unique_progress_student_module',
            ),
            models.UniqueConstraint(
                fields=['student', 'quiz'],
                condition=Q(quiz__isnull=False),
                name='unique_progress_student_quiz',
            ),
            models.CheckConstraint(
                condition=(
                    Q(module__isnull=False, quiz__isnull=True)
                    | Q(module__isnull=True, quiz__isnull=False)
                ),
                name='progress_module_xor_quiz',
            ),
            models.CheckConstraint(
                condition=Q(current_step__lte=models.F('total_steps')),
                name='progress_step_within_total',
            ),
        ]
        indexes = [
            models.Index(fields=['student', 'status']),
            models.Index(fields=['module', 'status']),
            models.Index(fields=['quiz', 'status']),
        ]

    def __str__(self):
        target = self.module or self.quiz
        return f'{self.student} - {target} ({self.status})'

    @property
    def is_completed(self):
        return self.status == STATUS_COMPLETED

    @property
    def completion_percentage(self):
        return percent(self.current_step, self.total_steps)

    @property
    def average_score(self):
        return self.score

    @property
    def exercise_accuracy(self):
        """Share of exercise points answered correctly."""
        results = self.exercise_results or []
        possible = sum(r.get('points') or 0 for r in results)
        earned = sum(r.get('points') or 0 for r in results if r.get('isCorrect'))
        return percent(earned, possible)


class QuizSubmissionQuerySet(models.QuerySet):
    def best_for(self, assignment, student):
        """Highest scoring attempt; ties go to the most recent one."""
        return (
            self.filter(assignment=assignment, student=student)
            .order_by('-total_score', '-completed_at')
            .first()
        )


class QuizSubmission(models.Model):
    """One graded attempt at an assignment's quiz. Immutable once written."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    assignment = models.ForeignKey('content.Assignment', on_delete=models.PROTECT, related_name='submissions')
    student = models.ForeignKey('accounts.User', on_delete=models.PROTECT, related_name='quiz_submissions')
    answers = models.JSONField(default=list)
    total_score = models.PositiveIntegerField(default=0)
    max_score = models.PositiveIntegerField(default=0)
    percentage = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(100)])
    time_spent = models.PositiveIntegerField(default=0, help_text='Seconds')
    completed_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = QuizSubmissionQuerySet.as_manager()

    class Meta:
        db_table = 'quiz_submissions'
        ordering = ['-completed_at']
        indexes = [
            models.Index(fields=['assignment', 'student']),
            models.Index(fields=['student', 'completed_at']),
        ]

    def __str__(self):
        return f'{self.student} - {self.assignment} ({self.percentage}%)'

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError('Quiz submissions cannot be modified')
        super().save(*args, **kwargs)

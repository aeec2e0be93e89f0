"""
Progress tracking service.

Keeps the single Progress row of each (student, module) and (student,
quiz) pair up to date. Every write happens inside a transaction holding a
row lock, and row creation leans on the unique constraints, so concurrent
updates for the same pair end up on one row.
"""
import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from accounts.models import ROLE_STUDENT
from progress.models import (
    STATUS_COMPLETED, STATUS_IN_PROGRESS, STATUS_NOT_STARTED, Progress,
)

from .grading import grade_submission

logger = logging.getLogger(__name__)


def next_status(status, current_step, total_steps):
    """Status after moving to ``current_step``. Completion is never undone."""
    if status == STATUS_COMPLETED:
        return STATUS_COMPLETED
    if current_step >= total_steps:
        return STATUS_COMPLETED
    if status == STATUS_NOT_STARTED and current_step > 0:
        return STATUS_IN_PROGRESS
    return status


def apply_step(progress, current_step, now=None):
    """Move ``progress`` to ``current_step`` (clamped to the step range)."""
    if progress.status == STATUS_COMPLETED:
        progress.current_step = progress.total_steps
        return progress

    progress.current_step = max(0, min(current_step, progress.total_steps))
    progress.status = next_status(progress.status, progress.current_step, progress.total_steps)
    if progress.status == STATUS_COMPLETED:
        progress.completion_date = now or timezone.now()
    return progress


def upsert_exercise_result(results, result):
    """Replace the entry with the same exerciseIndex, or append."""
    merged = list(results or [])
    for position, existing in enumerate(merged):
        if existing.get('exerciseIndex') == result['exerciseIndex']:
            merged[position] = result
            return merged
    merged.append(result)
    return merged


def record_progress(student, module, current_step, score=None, time_spent=None,
                    exercise_result=None, reset=False):
    """
    Create or update the student's progress on ``module``.

    ``reset`` overwrites the time spent and clears exercise results; used
    when a student restarts a module.

    Returns:
        tuple: (Progress, created)
    """
    now = timezone.now()
    with transaction.atomic():
        progress, created = Progress.objects.select_for_update().get_or_create(
            student=student,
            module=module,
            defaults={
                'status': STATUS_NOT_STARTED,
                'total_steps': module.total_steps,
                'start_date': now,
            },
        )
        was_completed = progress.is_completed

        apply_step(progress, current_step, now)

        if score is not None:
            progress.score = score

        if reset:
            progress.time_spent = time_spent or 0
            progress.exercise_results = []
        elif time_spent:
            progress.time_spent += time_spent

        if exercise_result is not None:
            progress.exercise_results = upsert_exercise_result(progress.exercise_results, exercise_result)

        progress.last_activity = now
        progress.save()

    if progress.is_completed and not was_completed:
        logger.info(f'Student {student.id} completed module {module.id}')
    return progress, created


def add_exercise_result(progress, exercise_result):
    """Record one exercise attempt on an existing progress row."""
    with transaction.atomic():
        progress = Progress.objects.select_for_update().get(pk=progress.pk)
        progress.exercise_results = upsert_exercise_result(progress.exercise_results, exercise_result)
        progress.attempts += 1
        progress.last_activity = timezone.now()
        progress.save(update_fields=['exercise_results', 'attempts', 'last_activity'])
    return progress


def update_progress(progress, principal, changes):
    """
    Apply a manual edit.

    ``changes`` holds validated model field values. Teacher feedback is
    reserved for teachers and admins; a completed record keeps its status.
    """
    if 'teacher_feedback' in changes and principal.role == ROLE_STUDENT:
        raise PermissionDenied('Only teachers can leave feedback')

    with transaction.atomic():
        progress = Progress.objects.select_for_update().get(pk=progress.pk)

        if 'current_step' in changes:
            apply_step(progress, changes['current_step'])

        if 'status' in changes and changes['status'] != progress.status:
            if progress.is_completed:
                raise ValidationError({'status': 'Completed progress cannot change status'})
            progress.status = changes['status']

        for field in ('score', 'notes', 'teacher_feedback', 'difficulty_rating', 'enjoyment_rating'):
            if field in changes:
                setattr(progress, field, changes[field])

        progress.last_activity = timezone.now()
        progress.save()

    logger.info(f'Progress {progress.id} updated by {principal.id}')
    return progress


def start_quiz(student, quiz):
    """Open the student's quiz record; calling it again returns the existing one."""
    with transaction.atomic():
        progress, created = Progress.objects.select_for_update().get_or_create(
            student=student,
            quiz=quiz,
            defaults={
                'status': STATUS_IN_PROGRESS,
                'total_steps': quiz.total_steps,
            },
        )
    if created:
        logger.info(f'Student {student.id} started quiz {quiz.id}')
    return progress, created


def submit_quiz(student, quiz, answers, time_spent=0):
    """
    Grade a quiz attempt and store it on the student's quiz record.

    Returns:
        tuple: (Progress, GradingResult)
    """
    result = grade_submission(quiz.questions, answers, time_spent)
    now = timezone.now()

    with transaction.atomic():
        progress, _ = Progress.objects.select_for_update().get_or_create(
            student=student,
            quiz=quiz,
            defaults={
                'status': STATUS_IN_PROGRESS,
                'total_steps': quiz.total_steps,
            },
        )
        progress.exercise_results = [answer.as_exercise_result() for answer in result.answers]
        progress.score = result.percentage
        progress.current_step = progress.total_steps
        progress.status = STATUS_COMPLETED
        progress.completion_date = now
        progress.time_spent += int(time_spent or 0)
        progress.attempts += 1
        progress.last_activity = now
        progress.save()

    logger.info(
        f'Student {student.id} submitted quiz {quiz.id}: '
        f'{result.total_score}/{result.max_score} ({result.percentage}%)'
    )
    return progress, result

"""
Progress tracking tests - upserts, completion and quiz attempts
"""
import threading

from django.db import IntegrityError, connection, transaction
from django.test import TransactionTestCase, override_settings, skipUnlessDBFeature
from rest_framework.exceptions import PermissionDenied, ValidationError

from accounts.models import User
from content.models import Module
from lexilearn.testing import PASSWORD, LexiLearnAPITestCase, module_steps, quiz_item

from .models import STATUS_COMPLETED, STATUS_IN_PROGRESS, STATUS_NOT_STARTED, STATUS_PAUSED, Progress
from .services.tracking import (
    add_exercise_result, next_status, record_progress, start_quiz, submit_quiz, update_progress,
)


def exercise(index, correct, points=10):
    return {'exerciseIndex': index, 'isCorrect': correct, 'points': points}


class NextStatusTest(LexiLearnAPITestCase):

    def test_transitions(self):
        self.assertEqual(next_status(STATUS_NOT_STARTED, 0, 4), STATUS_NOT_STARTED)
        self.assertEqual(next_status(STATUS_NOT_STARTED, 1, 4), STATUS_IN_PROGRESS)
        self.assertEqual(next_status(STATUS_IN_PROGRESS, 4, 4), STATUS_COMPLETED)
        self.assertEqual(next_status(STATUS_PAUSED, 2, 4), STATUS_PAUSED)
        self.assertEqual(next_status(STATUS_COMPLETED, 0, 4), STATUS_COMPLETED)


class RecordProgressTest(LexiLearnAPITestCase):

    def setUp(self):
        super().setUp()
        self.teacher = self.create_teacher()
        self.student = self.create_student(self.teacher)
        self.module = self.create_module(self.teacher, steps=4)

    def test_first_call_creates(self):
        progress, created = record_progress(self.student, self.module, 1, time_spent=30)
        self.assertTrue(created)
        self.assertEqual(progress.status, STATUS_IN_PROGRESS)
        self.assertEqual(progress.total_steps, 4)
        self.assertEqual(progress.completion_percentage, 25)
        self.assertEqual(progress.time_spent, 30)

    def test_repeated_calls_keep_one_row(self):
        record_progress(self.student, self.module, 1, time_spent=30)
        progress, created = record_progress(self.student, self.module, 2, time_spent=20)
        self.assertFalse(created)
        self.assertEqual(Progress.objects.filter(student=self.student, module=self.module).count(), 1)
        self.assertEqual(progress.current_step, 2)
        self.assertEqual(progress.time_spent, 50)

    def test_reaching_last_step_completes(self):
        progress, _ = record_progress(self.student, self.module, 4)
        self.assertEqual(progress.status, STATUS_COMPLETED)
        self.assertIsNotNone(progress.completion_date)
        self.assertEqual(progress.completion_percentage, 100)

    def test_step_is_clamped(self):
        progress, _ = record_progress(self.student, self.module, 99)
        self.assertEqual(progress.current_step, 4)

    def test_completion_is_permanent(self):
        progress, _ = record_progress(self.student, self.module, 4)
        completed_at = progress.completion_date
        progress, _ = record_progress(self.student, self.module, 1)
        self.assertEqual(progress.status, STATUS_COMPLETED)
        self.assertEqual(progress.current_step, 4)
        self.assertEqual(progress.completion_date, completed_at)

    def test_score_is_stored(self):
        progress, _ = record_progress(self.student, self.module, 2, score=80)
        self.assertEqual(progress.score, 80)
        self.assertEqual(progress.average_score, 80)

    def test_exercise_results_upserted_by_index(self):
        record_progress(self.student, self.module, 1, exercise_result=exercise(0, False))
        record_progress(self.student, self.module, 1, exercise_result=exercise(1, True))
        progress, _ = record_progress(self.student, self.module, 1, exercise_result=exercise(0, True))
        self.assertEqual(len(progress.exercise_results), 2)
        self.assertTrue(all(r['isCorrect'] for r in progress.exercise_results))
        self.assertEqual(progress.exercise_accuracy, 100)

    def test_reset_restarts_counters(self):
        record_progress(self.student, self.module, 2, time_spent=100, exercise_result=exercise(0, True))
        progress, _ = record_progress(self.student, self.module, 0, time_spent=5, reset=True)
        self.assertEqual(progress.time_spent, 5)
        self.assertEqual(progress.exercise_results, [])
        self.assertEqual(progress.current_step, 0)

    def test_duplicate_row_rejected_by_database(self):
        record_progress(self.student, self.module, 1)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Progress.objects.create(student=self.student, module=self.module, total_steps=4)

    def test_row_needs_exactly_one_target(self):
        quiz = self.create_quiz(self.teacher)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Progress.objects.create(student=self.student, module=self.module, quiz=quiz, total_steps=4)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Progress.objects.create(student=self.student, total_steps=4)

    def test_add_exercise_result_counts_attempts(self):
        progress, _ = record_progress(self.student, self.module, 1)
        add_exercise_result(progress, exercise(0, False))
        progress = add_exercise_result(progress, exercise(1, True, points=30))
        self.assertEqual(progress.attempts, 2)
        self.assertEqual(progress.exercise_accuracy, 75)


class UpdateProgressTest(LexiLearnAPITestCase):

    def setUp(self):
        super().setUp()
        self.teacher = self.create_teacher()
        self.student = self.create_student(self.teacher)
        self.module = self.create_module(self.teacher, steps=4)
        self.progress, _ = record_progress(self.student, self.module, 1)

    def test_pause(self):
        progress = update_progress(self.progress, self.student, {'status': STATUS_PAUSED, 'notes': 'Break'})
        self.assertEqual(progress.status, STATUS_PAUSED)
        self.assertEqual(progress.notes, 'Break')

    def test_teacher_feedback(self):
        progress = update_progress(self.progress, self.teacher, {'teacher_feedback': 'Well done'})
        self.assertEqual(progress.teacher_feedback, 'Well done')

    def test_student_cannot_leave_feedback(self):
        with self.assertRaises(PermissionDenied):
            update_progress(self.progress, self.student, {'teacher_feedback': 'Great job me'})

    def test_completed_keeps_status(self):
        update_progress(self.progress, self.student, {'current_step': 4})
        with self.assertRaises(ValidationError):
            update_progress(self.progress, self.student, {'status': STATUS_IN_PROGRESS})
        self.progress.refresh_from_db()
        self.assertEqual(self.progress.status, STATUS_COMPLETED)


class QuizAttemptTest(LexiLearnAPITestCase):

    def setUp(self):
        super().setUp()
        self.teacher = self.create_teacher()
        self.student = self.create_student(self.teacher)
        self.quiz = self.create_quiz(self.teacher, questions=[
            quiz_item('Which one says meow?', 'cat'),
            quiz_item('Which one barks?', 'dog'),
            quiz_item('Which one sings?', 'bird'),
            quiz_item('Which one swims?', 'fish'),
        ])

    def test_start_is_idempotent(self):
        progress, created = start_quiz(self.student, self.quiz)
        self.assertTrue(created)
        self.assertEqual(progress.status, STATUS_IN_PROGRESS)
        again, created = start_quiz(self.student, self.quiz)
        self.assertFalse(created)
        self.assertEqual(again.pk, progress.pk)

    def test_submit_scores_and_completes(self):
        progress, result = submit_quiz(self.student, self.quiz, ['cat', 'dog', 'cow', None], time_spent=40)
        self.assertEqual(result.percentage, 50)
        self.assertEqual(progress.score, 50)
        self.assertEqual(progress.status, STATUS_COMPLETED)
        self.assertEqual(progress.current_step, 4)
        self.assertEqual(progress.attempts, 1)
        self.assertEqual(progress.time_spent, 40)
        self.assertEqual(len(progress.exercise_results), 4)

    def test_resubmission_updates_same_row(self):
        start_quiz(self.student, self.quiz)
        submit_quiz(self.student, self.quiz, ['cat'])
        progress, _ = submit_quiz(self.student, self.quiz, ['cat', 'dog', 'bird', 'fish'])
        self.assertEqual(Progress.objects.filter(student=self.student, quiz=self.quiz).count(), 1)
        self.assertEqual(progress.attempts, 2)
        self.assertEqual(progress.score, 100)


@skipUnlessDBFeature('has_select_for_update')
@override_settings(PASSWORD_HASHERS=['django.contrib.auth.hashers.MD5PasswordHasher'])
class ConcurrentRecordProgressTest(TransactionTestCase):
    """Overlapping writes for one student and module land on a single row."""

    def setUp(self):
        teacher = User.objects.create_teacher(
            name='Test Teacher', email='teacher@test.com', password=PASSWORD,
            grade_level='3', subject='Reading',
        )
        self.student = User.objects.create_student(name='Test Student', grade='3', teacher=teacher)
        self.module = Module.objects.create(
            created_by=teacher, grade_level='3', content=module_steps(4),
            title='Reading Basics', description='Short stories', category='Reading',
        )

    def test_simultaneous_first_writes(self):
        barrier = threading.Barrier(2)
        errors = []

        def write(time_spent):
            try:
                barrier.wait()
                record_progress(self.student, self.module, 1, time_spent=time_spent)
            except Exception as exc:
                errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=write, args=(seconds,)) for seconds in (10, 20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        self.assertEqual(errors, [])
        progress = Progress.objects.get(student=self.student, module=self.module)
        self.assertEqual(Progress.objects.count(), 1)
        self.assertEqual(progress.time_spent, 30)
        self.assertEqual(progress.status, STATUS_IN_PROGRESS)

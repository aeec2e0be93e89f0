"""
Reporting aggregate tests
"""
from lexilearn.testing import LexiLearnAPITestCase

from .services import reporting
from .services.tracking import record_progress, submit_quiz


class ReportingTest(LexiLearnAPITestCase):

    def setUp(self):
        super().setUp()
        self.teacher = self.create_teacher()
        self.alice = self.create_student(self.teacher, name='Alice')
        self.bob = self.create_student(self.teacher, name='Bob')
        self.idle = self.create_student(self.teacher, name='Cara')
        self.module = self.create_module(self.teacher, steps=2)
        self.quiz = self.create_quiz(self.teacher)

        record_progress(self.alice, self.module, 2, score=90, time_spent=100)
        record_progress(self.bob, self.module, 1, score=60, time_spent=50)
        submit_quiz(self.alice, self.quiz, ['cat', 'dog'], time_spent=20)

    def test_student_summary(self):
        summary = reporting.summarize_student(self.alice)
        self.assertEqual(summary['totalModules'], 1)
        self.assertEqual(summary['completedModules'], 1)
        self.assertEqual(summary['totalQuizzes'], 1)
        self.assertEqual(summary['completedQuizzes'], 1)
        self.assertEqual(summary['averageScore'], 95)
        self.assertEqual(summary['totalTimeSpent'], 120)

    def test_empty_student_summary(self):
        summary = reporting.summarize_student(self.idle)
        self.assertEqual(summary['totalModules'], 0)
        self.assertEqual(summary['averageScore'], 0)
        self.assertEqual(summary['totalTimeSpent'], 0)

    def test_module_summary(self):
        summary = reporting.summarize_rows(reporting.module_rows(self.module, self.teacher))
        self.assertEqual(summary['totalStudents'], 2)
        self.assertEqual(summary['completedStudents'], 1)
        self.assertEqual(summary['averageScore'], 75)
        self.assertEqual(summary['averageTimeSpent'], 75)

    def test_quiz_summary(self):
        summary = reporting.summarize_rows(reporting.quiz_rows(self.quiz, self.teacher))
        self.assertEqual(summary['totalStudents'], 1)
        self.assertEqual(summary['averageScore'], 100)

    def test_rows_limited_to_own_students(self):
        other = self.create_teacher(name='Other Teacher', email='other@test.com')
        outsider = self.create_student(other, name='Zed')
        record_progress(outsider, self.module, 2, score=10)
        submit_quiz(outsider, self.quiz, ['cow', 'hen'], time_spent=5)

        summary = reporting.summarize_rows(reporting.module_rows(self.module, self.teacher))
        self.assertEqual(summary['totalStudents'], 2)
        self.assertEqual(summary['averageScore'], 75)
        summary = reporting.summarize_rows(reporting.quiz_rows(self.quiz, self.teacher))
        self.assertEqual(summary['totalStudents'], 1)

        summary = reporting.summarize_rows(reporting.module_rows(self.module, self.create_admin()))
        self.assertEqual(summary['totalStudents'], 3)

    def test_teacher_roster(self):
        roster = reporting.summarize_teacher_roster(self.teacher)
        self.assertEqual(roster['totalStudents'], 3)
        self.assertEqual(roster['activeStudents'], 2)
        self.assertEqual(roster['completedCount'], 2)
        self.assertEqual([s['name'] for s in roster['students']], ['Alice', 'Bob', 'Cara'])
        cara = roster['students'][2]
        self.assertEqual(cara['records'], 0)
        self.assertEqual(cara['averageScore'], 0)
        alice = roster['students'][0]
        self.assertEqual(alice['records'], 2)
        self.assertEqual(alice['completed'], 2)

    def test_roster_of_other_teacher_is_empty(self):
        other = self.create_teacher(name='Other Teacher', email='other@test.com')
        roster = reporting.summarize_teacher_roster(other)
        self.assertEqual(roster['totalStudents'], 0)
        self.assertEqual(roster['students'], [])

    def test_recent_activity_limit(self):
        for n in range(6):
            module = self.create_module(self.teacher, title=f'Extra Module {n}')
            record_progress(self.alice, module, 1)
        self.assertEqual(len(reporting.recent_activity(self.alice)), 5)

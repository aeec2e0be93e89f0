"""
Shared fixtures for the API test suites
"""
from django.core.cache import cache
from django.test import override_settings
from rest_framework.test import APIClient, APITestCase

from accounts.models import User
from accounts.tokens import generate_token
from content.models import Assignment, Module, Quiz

PASSWORD = 'test123'


def module_steps(count):
    return [{'type': 'text', 'title': f'Step {n + 1}', 'content': f'Read part {n + 1}'} for n in range(count)]


def quiz_item(question, correct, points=None):
    item = {
        'type': 'multiple-choice',
        'question': question,
        'options': ['cat', 'dog', 'bird', 'fish'],
        'correctAnswer': correct,
        'explanation': f'The answer is {correct}',
    }
    if points is not None:
        item['points'] = points
    return item


@override_settings(PASSWORD_HASHERS=['django.contrib.auth.hashers.MD5PasswordHasher'])
class LexiLearnAPITestCase(APITestCase):
    """APITestCase with user and content factories and token login."""

    def setUp(self):
        cache.clear()
        self.client = APIClient()

    def create_teacher(self, name='Test Teacher', email='teacher@test.com', **extra):
        extra.setdefault('grade_level', '3')
        extra.setdefault('subject', 'Reading')
        return User.objects.create_teacher(name=name, email=email, password=PASSWORD, **extra)

    def create_admin(self, name='Test Admin', email='admin@test.com'):
        return User.objects.create_admin(name=name, email=email, password=PASSWORD)

    def create_student(self, teacher, name='Test Student', grade='3', **extra):
        return User.objects.create_student(name=name, grade=grade, teacher=teacher, **extra)

    def authenticate(self, user):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {generate_token(user)}')

    def logout(self):
        self.client.credentials()

    def create_module(self, teacher, steps=4, grade_level='3', **extra):
        extra.setdefault('title', 'Reading Basics')
        extra.setdefault('description', 'Short stories for early readers')
        extra.setdefault('category', 'Reading')
        return Module.objects.create(
            created_by=teacher, grade_level=grade_level, content=module_steps(steps), **extra
        )

    def create_quiz(self, teacher, questions=None, grade_level='3', **extra):
        extra.setdefault('title', 'Animal Words')
        extra.setdefault('description', 'Pick the right animal')
        extra.setdefault('category', 'vocabulary')
        if questions is None:
            questions = [quiz_item('Which one says meow?', 'cat'), quiz_item('Which one barks?', 'dog')]
        return Quiz.objects.create(created_by=teacher, grade_level=grade_level, questions=questions, **extra)

    def create_assignment(self, teacher, items=None, grade_level='3', **extra):
        extra.setdefault('title', 'Weekly Vocabulary')
        extra.setdefault('description', 'Vocabulary practice for this week')
        extra.setdefault('category', 'Vocabulary')
        if items is None:
            items = [
                {'type': 'text', 'content': 'Read the word list'},
                {'type': 'quiz', 'quizData': quiz_item('Which one says meow?', 'cat', points=5)},
                {'type': 'quiz', 'quizData': quiz_item('Which one barks?', 'dog', points=5)},
                {'type': 'quiz', 'quizData': quiz_item('Which one sings?', 'bird', points=5)},
            ]
        return Assignment.objects.create(created_by=teacher, grade_level=grade_level, content=items, **extra)

"""
Content serializers - modules, quizzes, assignments and their embedded items
"""
from rest_framework import serializers

from accounts.models import ROLE_STUDENT, User
from accounts.serializers import GradeField

from .models import (
    CATEGORY_CHOICES, DEFAULT_POINTS, DIFFICULTY_CHOICES, QUIZ_CATEGORY_CHOICES,
    Assignment, Module, Quiz,
)

MODULE_ITEM_TYPES = {'text', 'image', 'audio', 'video', 'interactive', 'quiz'}
ASSIGNMENT_ITEM_TYPES = {'text', 'interactive', 'quiz'}
EXERCISE_TYPES = {'multiple-choice', 'fill-blank', 'matching', 'drag-drop', 'typing'}
QUESTION_TYPES = {'multiple-choice', 'true-false', 'fill-blank', 'matching', 'short-answer'}
ACCESSIBILITY_FLAGS = {'audioSupport', 'visualSupport', 'textToSpeech', 'highContrast', 'dyslexiaFriendly'}

# Keys withheld from students on graded items
ANSWER_KEYS = ('correctAnswer', 'explanation')


def validate_items(items, allowed_types, label, require_items=False):
    if not isinstance(items, list):
        raise serializers.ValidationError(f'{label} must be a list')
    if require_items and not items:
        raise serializers.ValidationError(f'{label} must contain at least one item')
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise serializers.ValidationError(f'{label} item {position} must be an object')
        if item.get('type') not in allowed_types:
            raise serializers.ValidationError(
                f'{label} item {position} has invalid type "{item.get("type")}"'
            )
    return items


def validate_question(question, label):
    """A gradable question: text, a correct answer and positive integer points."""
    if not isinstance(question, dict):
        raise serializers.ValidationError(f'{label} must be an object')
    if not str(question.get('question', '')).strip():
        raise serializers.ValidationError(f'{label} needs question text')
    if 'correctAnswer' not in question:
        raise serializers.ValidationError(f'{label} needs a correctAnswer')
    points = question.setdefault('points', DEFAULT_POINTS)
    if isinstance(points, bool) or not isinstance(points, int) or points < 1:
        raise serializers.ValidationError(f'{label} points must be a positive integer')
    if len(str(question.get('explanation') or '')) > 200:
        raise serializers.ValidationError(f'{label} explanation cannot exceed 200 characters')
    options = question.get('options')
    if options is not None and not isinstance(options, list):
        raise serializers.ValidationError(f'{label} options must be a list')
    return question


def without_answers(item):
    return {key: value for key, value in item.items() if key not in ANSWER_KEYS}


class PersonSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name']


class LearningContentSerializer(serializers.ModelSerializer):
    """Shared camelCase fields of modules, quizzes and assignments."""
    gradeLevel = GradeField(source='grade_level')
    learningObjectives = serializers.ListField(
        source='learning_objectives', child=serializers.CharField(max_length=200), required=False
    )
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    difficulty = serializers.ChoiceField(choices=DIFFICULTY_CHOICES, required=False)
    createdBy = PersonSerializer(source='created_by', read_only=True)
    assignedTo = PersonSerializer(source='assigned_to', many=True, read_only=True)
    isActive = serializers.BooleanField(source='is_active', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    common_fields = [
        'id', 'title', 'description', 'category', 'difficulty', 'gradeLevel',
        'tags', 'learningObjectives', 'createdBy', 'assignedTo', 'isActive',
        'createdAt', 'updatedAt',
    ]

    def is_student_view(self):
        request = self.context.get('request')
        return bool(request and getattr(request.user, 'role', None) == ROLE_STUDENT)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if self.is_student_view():
            # Students do not see who else a piece of content is assigned to
            data.pop('assignedTo', None)
        return data

    def validate_title(self, value):
        value = value.strip()
        if len(value) < 3:
            raise serializers.ValidationError('Title must be at least 3 characters')
        return value

    def validate_accessibility(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Accessibility must be an object')
        unknown = set(value) - ACCESSIBILITY_FLAGS
        if unknown:
            raise serializers.ValidationError(f'Unknown accessibility flags: {", ".join(sorted(unknown))}')
        return {flag: bool(enabled) for flag, enabled in value.items()}


class ModuleSerializer(LearningContentSerializer):
    category = serializers.ChoiceField(choices=CATEGORY_CHOICES)
    content = serializers.JSONField()
    exercises = serializers.JSONField(required=False)
    estimatedDuration = serializers.IntegerField(source='estimated_duration', min_value=1, required=False)
    objectives = serializers.JSONField(required=False)
    prerequisites = serializers.JSONField(required=False)
    materials = serializers.JSONField(required=False)
    accessibility = serializers.JSONField(required=False)
    totalSteps = serializers.IntegerField(source='total_steps', read_only=True)

    class Meta:
        model = Module
        fields = LearningContentSerializer.common_fields + [
            'content', 'exercises', 'estimatedDuration', 'objectives', 'prerequisites',
            'materials', 'instructions', 'assessment', 'accessibility', 'photos',
            'videos', 'totalSteps',
        ]
        read_only_fields = ['photos', 'videos']

    def validate_content(self, value):
        validate_items(value, MODULE_ITEM_TYPES, 'Content', require_items=True)
        for position, item in enumerate(value):
            if item.get('type') == 'quiz' and item.get('quizData') is not None:
                validate_question(item['quizData'], f'Content item {position} quizData')
        return value

    def validate_exercises(self, value):
        validate_items(value, EXERCISE_TYPES, 'Exercises')
        for position, exercise in enumerate(value):
            validate_question(exercise, f'Exercise {position}')
        return value


class QuizSerializer(LearningContentSerializer):
    category = serializers.ChoiceField(choices=QUIZ_CATEGORY_CHOICES)
    questions = serializers.JSONField()
    estimatedDuration = serializers.IntegerField(source='estimated_duration', min_value=1, required=False)
    accessibility = serializers.JSONField(required=False)
    totalQuestions = serializers.IntegerField(source='total_steps', read_only=True)
    totalPoints = serializers.IntegerField(source='total_points', read_only=True)

    class Meta:
        model = Quiz
        fields = LearningContentSerializer.common_fields + [
            'questions', 'estimatedDuration', 'accessibility', 'totalQuestions', 'totalPoints',
        ]

    def validate_questions(self, value):
        validate_items(value, QUESTION_TYPES, 'Questions', require_items=True)
        for position, question in enumerate(value):
            validate_question(question, f'Question {position}')
        return value

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if self.is_student_view():
            data['questions'] = [without_answers(q) for q in data.get('questions') or []]
        return data


class AssignmentSerializer(LearningContentSerializer):
    category = serializers.ChoiceField(choices=CATEGORY_CHOICES)
    content = serializers.JSONField()
    status = serializers.ChoiceField(choices=Assignment.STATUS_CHOICES, required=False)
    dueDate = serializers.DateTimeField(source='due_date', required=False, allow_null=True)
    estimatedTime = serializers.IntegerField(source='estimated_time', min_value=1, required=False)
    objectives = serializers.JSONField(required=False)
    prerequisites = serializers.JSONField(required=False)
    materials = serializers.JSONField(required=False)

    class Meta:
        model = Assignment
        fields = LearningContentSerializer.common_fields + [
            'content', 'photos', 'videos', 'status', 'dueDate', 'estimatedTime',
            'objectives', 'prerequisites', 'materials', 'instructions', 'assessment',
        ]
        read_only_fields = ['photos', 'videos']

    def validate_content(self, value):
        validate_items(value, ASSIGNMENT_ITEM_TYPES, 'Content', require_items=True)
        for position, item in enumerate(value):
            if item.get('type') != 'quiz':
                continue
            if not isinstance(item.get('quizData'), dict):
                raise serializers.ValidationError(f'Content item {position} needs quizData')
            validate_question(item['quizData'], f'Content item {position} quizData')
        return value

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if self.is_student_view():
            content = []
            for item in data.get('content') or []:
                if isinstance(item.get('quizData'), dict):
                    item = dict(item, quizData=without_answers(item['quizData']))
                content.append(item)
            data['content'] = content
        return data


class AssignStudentsSerializer(serializers.Serializer):
    """Resolve ``studentIds`` to active students the caller may assign work to."""
    studentIds = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)

    def validate_studentIds(self, value):
        principal = self.context['request'].user
        wanted = set(value)
        students = list(User.objects.students_of(principal).active().filter(pk__in=wanted))
        missing = wanted - {student.pk for student in students}
        if missing:
            raise serializers.ValidationError(
                f'Unknown students: {", ".join(sorted(str(pk) for pk in missing))}'
            )
        return students

"""
Progress serializers
"""
from django.utils import timezone
from rest_framework import serializers

from .models import STATUS_IN_PROGRESS, STATUS_PAUSED, Progress, QuizSubmission
from .services.grading import normalize_answers


class ProgressSerializer(serializers.ModelSerializer):
    studentId = serializers.UUIDField(source='student_id', read_only=True)
    studentName = serializers.CharField(source='student.name', read_only=True)
    moduleId = serializers.UUIDField(source='module_id', read_only=True)
    quizId = serializers.UUIDField(source='quiz_id', read_only=True)
    title = serializers.SerializerMethodField()
    currentStep = serializers.IntegerField(source='current_step', read_only=True)
    totalSteps = serializers.IntegerField(source='total_steps', read_only=True)
    timeSpent = serializers.IntegerField(source='time_spent', read_only=True)
    exerciseResults = serializers.JSONField(source='exercise_results', read_only=True)
    startDate = serializers.DateTimeField(source='start_date', read_only=True)
    lastActivity = serializers.DateTimeField(source='last_activity', read_only=True)
    completionDate = serializers.DateTimeField(source='completion_date', read_only=True)
    teacherFeedback = serializers.CharField(source='teacher_feedback', read_only=True)
    difficultyRating = serializers.IntegerField(source='difficulty_rating', read_only=True)
    enjoymentRating = serializers.IntegerField(source='enjoyment_rating', read_only=True)
    completionPercentage = serializers.IntegerField(source='completion_percentage', read_only=True)
    averageScore = serializers.IntegerField(source='average_score', read_only=True)
    exerciseAccuracy = serializers.IntegerField(source='exercise_accuracy', read_only=True)

    class Meta:
        model = Progress
        fields = [
            'id', 'studentId', 'studentName', 'moduleId', 'quizId', 'title', 'status',
            'currentStep', 'totalSteps', 'score', 'timeSpent', 'attempts',
            'exerciseResults', 'startDate', 'lastActivity', 'completionDate', 'notes',
            'teacherFeedback', 'difficultyRating', 'enjoymentRating',
            'completionPercentage', 'averageScore', 'exerciseAccuracy',
        ]
        read_only_fields = fields

    def get_title(self, obj):
        target = obj.module if obj.module_id else obj.quiz
        return target.title if target else None


class QuizSubmissionSerializer(serializers.ModelSerializer):
    assignmentId = serializers.UUIDField(source='assignment_id', read_only=True)
    studentId = serializers.UUIDField(source='student_id', read_only=True)
    studentName = serializers.CharField(source='student.name', read_only=True)
    totalScore = serializers.IntegerField(source='total_score', read_only=True)
    maxScore = serializers.IntegerField(source='max_score', read_only=True)
    timeSpent = serializers.IntegerField(source='time_spent', read_only=True)
    completedAt = serializers.DateTimeField(source='completed_at', read_only=True)

    class Meta:
        model = QuizSubmission
        fields = [
            'id', 'assignmentId', 'studentId', 'studentName', 'answers', 'totalScore',
            'maxScore', 'percentage', 'timeSpent', 'completedAt',
        ]
        read_only_fields = fields


class ExerciseResultSerializer(serializers.Serializer):
    """One exercise attempt reported by the client."""
    exerciseIndex = serializers.IntegerField(min_value=0)
    exerciseKey = serializers.CharField(max_length=32, required=False, allow_blank=True)
    exerciseType = serializers.CharField(max_length=30, required=False)
    question = serializers.CharField(required=False, allow_blank=True)
    userAnswer = serializers.JSONField(required=False, allow_null=True)
    correctAnswer = serializers.JSONField(required=False, allow_null=True)
    isCorrect = serializers.BooleanField()
    points = serializers.IntegerField(min_value=0, default=0)
    timeSpent = serializers.FloatField(min_value=0, default=0)

    def validate(self, attrs):
        attrs['completedAt'] = timezone.now().isoformat()
        return attrs


class RecordProgressSerializer(serializers.Serializer):
    moduleId = serializers.UUIDField()
    currentStep = serializers.IntegerField(min_value=0)
    score = serializers.IntegerField(min_value=0, max_value=100, required=False)
    timeSpent = serializers.IntegerField(min_value=0, required=False)
    exerciseResult = ExerciseResultSerializer(required=False)
    reset = serializers.BooleanField(default=False)


class ProgressUpdateSerializer(serializers.Serializer):
    currentStep = serializers.IntegerField(source='current_step', min_value=0, required=False)
    score = serializers.IntegerField(min_value=0, max_value=100, required=False)
    status = serializers.ChoiceField(choices=[STATUS_IN_PROGRESS, STATUS_PAUSED], required=False)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)
    teacherFeedback = serializers.CharField(source='teacher_feedback', max_length=1000, required=False, allow_blank=True)
    difficultyRating = serializers.IntegerField(source='difficulty_rating', min_value=1, max_value=5, required=False, allow_null=True)
    enjoymentRating = serializers.IntegerField(source='enjoyment_rating', min_value=1, max_value=5, required=False, allow_null=True)


class QuizSubmitSerializer(serializers.Serializer):
    answers = serializers.JSONField()
    timeSpent = serializers.IntegerField(min_value=0, default=0)

    def validate_answers(self, value):
        try:
            normalize_answers(value)
        except ValueError as e:
            raise serializers.ValidationError(str(e))
        return value

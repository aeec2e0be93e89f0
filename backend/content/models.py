"""
Content models - modules, quizzes and assignments authored by teachers

Embedded items (module content, exercises, quiz questions, assignment
items) are stored as JSON documents on their parent row. Each item keeps
a stable ``key`` so records pointing at an item survive reordering.
"""
import uuid

from django.db import models
from django.db.models import Q

from accounts.models import GRADE_CHOICES, ROLE_ADMIN, ROLE_TEACHER

DEFAULT_POINTS = 10

DIFFICULTY_CHOICES = [
    ('Beginner', 'Beginner'),
    ('Intermediate', 'Intermediate'),
    ('Advanced', 'Advanced'),
]

CATEGORY_CHOICES = [
    ('Reading', 'Reading'),
    ('Writing', 'Writing'),
    ('Grammar', 'Grammar'),
    ('Vocabulary', 'Vocabulary'),
    ('Comprehension', 'Comprehension'),
    ('Phonics', 'Phonics'),
    ('Literature', 'Literature'),
    ('Creative Writing', 'Creative Writing'),
]

QUIZ_CATEGORY_CHOICES = [
    ('reading', 'Reading'),
    ('spelling', 'Spelling'),
    ('comprehension', 'Comprehension'),
    ('writing', 'Writing'),
    ('vocabulary', 'Vocabulary'),
]


def ensure_item_keys(items):
    """Give every embedded item without a key a new one. Mutates and returns ``items``."""
    for item in items or []:
        if isinstance(item, dict) and not item.get('key'):
            item['key'] = uuid.uuid4().hex[:12]
    return items


def question_points(question):
    points = question.get('points')
    return DEFAULT_POINTS if points is None else points


class ContentQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def visible_to(self, principal):
        """
        Rows the principal may read: everything for admins, own content for
        teachers, and for students active rows that are assigned to them or,
        where the model allows it, match their grade.
        """
        if principal.role == ROLE_ADMIN:
            return self
        if principal.role == ROLE_TEACHER:
            return self.filter(created_by=principal)

        assigned = self.model.objects.filter(assigned_to=principal).values('pk')
        visible = Q(pk__in=assigned)
        if self.model.GRADE_VISIBLE:
            visible |= Q(grade_level=principal.grade)
        return self.filter(visible, is_active=True)


class LearningContent(models.Model):
    """Fields shared by everything a teacher authors and assigns."""
    GRADE_VISIBLE = True

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=100)
    description = models.TextField(max_length=500)
    difficulty = models.CharField(max_length=20, choices=DIFFICULTY_CHOICES, default='Beginner')
    grade_level = models.CharField(max_length=2, choices=GRADE_CHOICES)
    tags = models.JSONField(default=list, blank=True)
    learning_objectives = models.JSONField(default=list, blank=True)
    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='authored_%(class)s',
    )
    assigned_to = models.ManyToManyField(
        'accounts.User',
        blank=True,
        related_name='assigned_%(class)s',
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ContentQuerySet.as_manager()

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    def is_assigned_to(self, user):
        return self.assigned_to.filter(pk=user.pk).exists()

    def is_visible_to_student(self, student):
        if not self.is_active:
            return False
        if self.GRADE_VISIBLE and self.grade_level == student.grade:
            return True
        return self.is_assigned_to(student)


class Module(LearningContent):
    """An ordered sequence of learning steps with optional exercises."""
    category = models.CharField(max_length=30, choices=CATEGORY_CHOICES)
    content = models.JSONField(default=list)
    exercises = models.JSONField(default=list, blank=True)
    estimated_duration = models.PositiveIntegerField(default=30, help_text='Minutes')
    objectives = models.JSONField(default=list, blank=True)
    prerequisites = models.JSONField(default=list, blank=True)
    materials = models.JSONField(default=list, blank=True)
    instructions = models.TextField(blank=True, default='')
    assessment = models.TextField(blank=True, default='')
    accessibility = models.JSONField(default=dict, blank=True)
    photos = models.JSONField(default=list, blank=True)
    videos = models.JSONField(default=list, blank=True)

    class Meta(LearningContent.Meta):
        db_table = 'modules'
        indexes = [
            models.Index(fields=['created_by', 'is_active']),
            models.Index(fields=['grade_level', 'is_active']),
        ]

    @property
    def total_steps(self):
        return len(self.content or [])

    def save(self, *args, **kwargs):
        ensure_item_keys(self.content)
        ensure_item_keys(self.exercises)
        super().save(*args, **kwargs)


class Quiz(LearningContent):
    """A graded list of questions."""
    category = models.CharField(max_length=30, choices=QUIZ_CATEGORY_CHOICES)
    questions = models.JSONField(default=list)
    estimated_duration = models.PositiveIntegerField(default=10, help_text='Minutes')
    accessibility = models.JSONField(default=dict, blank=True)

    class Meta(LearningContent.Meta):
        db_table = 'quizzes'
        verbose_name_plural = 'quizzes'
        indexes = [
            models.Index(fields=['created_by', 'is_active']),
            models.Index(fields=['grade_level', 'is_active']),
        ]

    @property
    def total_steps(self):
        return len(self.questions or [])

    @property
    def total_points(self):
        return sum(question_points(q) for q in self.questions or [])

    def save(self, *args, **kwargs):
        ensure_item_keys(self.questions)
        super().save(*args, **kwargs)


class Assignment(LearningContent):
    """
    Teacher-assigned work. Only explicitly assigned students see it; its
    quiz items are graded into QuizSubmission records.
    """
    GRADE_VISIBLE = False

    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('active', 'Active'),
        ('completed', 'Completed'),
    ]

    category = models.CharField(max_length=30, choices=CATEGORY_CHOICES)
    content = models.JSONField(default=list)
    photos = models.JSONField(default=list, blank=True)
    videos = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    due_date = models.DateTimeField(null=True, blank=True)
    estimated_time = models.PositiveIntegerField(default=30, help_text='Minutes')
    objectives = models.JSONField(default=list, blank=True)
    prerequisites = models.JSONField(default=list, blank=True)
    materials = models.JSONField(default=list, blank=True)
    instructions = models.TextField(blank=True, default='')
    assessment = models.TextField(blank=True, default='')

    class Meta(LearningContent.Meta):
        db_table = 'assignments'
        indexes = [
            models.Index(fields=['created_by', 'is_active']),
            models.Index(fields=['status', 'is_active']),
        ]

    def save(self, *args, **kwargs):
        ensure_item_keys(self.content)
        super().save(*args, **kwargs)

    def quiz_questions(self):
        """The quiz items of this assignment as gradable questions, in content order."""
        questions = []
        for item in self.content or []:
            if item.get('type') != 'quiz' or not item.get('quizData'):
                continue
            question = dict(item['quizData'])
            question.setdefault('key', item.get('key'))
            questions.append(question)
        return questions

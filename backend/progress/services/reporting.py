"""
Reporting service - progress aggregates computed on demand from Progress rows
"""
from django.db.models import Avg, Count, Q, Sum

from accounts.models import User
from progress.models import STATUS_COMPLETED, Progress

RECENT_ACTIVITY_LIMIT = 5

COMPLETED = Q(status=STATUS_COMPLETED)
MODULE_ROWS = Q(module__isnull=False)
QUIZ_ROWS = Q(quiz__isnull=False)


def rounded(value):
    return round(value or 0, 2)


def summarize_student(student):
    """Totals over every module and quiz record of one student."""
    stats = Progress.objects.filter(student=student).aggregate(
        total_modules=Count('id', filter=MODULE_ROWS),
        total_quizzes=Count('id', filter=QUIZ_ROWS),
        completed_modules=Count('id', filter=MODULE_ROWS & COMPLETED),
        completed_quizzes=Count('id', filter=QUIZ_ROWS & COMPLETED),
        average_score=Avg('score'),
        total_time_spent=Sum('time_spent'),
    )
    return {
        'totalModules': stats['total_modules'],
        'totalQuizzes': stats['total_quizzes'],
        'completedModules': stats['completed_modules'],
        'completedQuizzes': stats['completed_quizzes'],
        'averageScore': rounded(stats['average_score']),
        'totalTimeSpent': stats['total_time_spent'] or 0,
    }


def summarize_rows(rows):
    """Totals over an already scoped set of Progress rows."""
    stats = rows.aggregate(
        total_students=Count('student', distinct=True),
        completed_students=Count('student', filter=COMPLETED, distinct=True),
        average_score=Avg('score'),
        average_time_spent=Avg('time_spent'),
    )
    return {
        'totalStudents': stats['total_students'],
        'completedStudents': stats['completed_students'],
        'averageScore': rounded(stats['average_score']),
        'averageTimeSpent': rounded(stats['average_time_spent']),
    }


def module_rows(module, principal):
    """Progress on ``module`` limited to the students ``principal`` may see."""
    return Progress.objects.visible_to(principal).filter(module=module)


def quiz_rows(quiz, principal):
    return Progress.objects.visible_to(principal).filter(quiz=quiz)


def summarize_teacher_roster(teacher):
    """
    Class overview for one teacher.

    Returns:
        dict: roster totals plus a per-student breakdown in name order
    """
    rows = Progress.objects.filter(student__teacher=teacher)
    stats = rows.aggregate(
        active_students=Count('student', distinct=True),
        completed_count=Count('id', filter=COMPLETED),
        average_score=Avg('score'),
        average_time_spent=Avg('time_spent'),
    )

    per_student = {
        row['student']: row
        for row in rows.order_by().values('student').annotate(
            records=Count('id'),
            completed=Count('id', filter=COMPLETED),
            average_score=Avg('score'),
            time_spent=Sum('time_spent'),
        )
    }

    roster = User.objects.students().active().filter(teacher=teacher).order_by('name')
    students = []
    for student in roster:
        row = per_student.get(student.pk, {})
        students.append({
            'id': str(student.pk),
            'name': student.name,
            'grade': student.grade,
            'records': row.get('records', 0),
            'completed': row.get('completed', 0),
            'averageScore': rounded(row.get('average_score')),
            'totalTimeSpent': row.get('time_spent') or 0,
        })

    return {
        'totalStudents': len(students),
        'activeStudents': stats['active_students'],
        'completedCount': stats['completed_count'],
        'averageScore': rounded(stats['average_score']),
        'averageTimeSpent': rounded(stats['average_time_spent']),
        'students': students,
    }


def recent_activity(student, limit=RECENT_ACTIVITY_LIMIT):
    return (
        Progress.objects.filter(student=student)
        .select_related('module', 'quiz', 'student')
        .order_by('-last_activity')[:limit]
    )

"""
Assignment quiz submissions - every attempt is stored as its own record
"""
import logging

from rest_framework.exceptions import ValidationError

from progress.models import QuizSubmission

from .grading import grade_submission

logger = logging.getLogger(__name__)


def submit_assignment_quiz(student, assignment, answers, time_spent=0):
    """
    Grade the assignment's quiz items and store the attempt.

    Returns:
        tuple: (QuizSubmission, GradingResult)
    """
    questions = assignment.quiz_questions()
    if not questions:
        raise ValidationError('This assignment has no quiz questions')

    result = grade_submission(questions, answers, time_spent)
    submission = QuizSubmission.objects.create(
        assignment=assignment,
        student=student,
        answers=[answer.as_submission_answer() for answer in result.answers],
        total_score=result.total_score,
        max_score=result.max_score,
        percentage=result.percentage,
        time_spent=int(time_spent or 0),
    )
    logger.info(
        f'Student {student.id} submitted assignment {assignment.id} quiz: '
        f'{result.total_score}/{result.max_score} ({result.percentage}%)'
    )
    return submission, result

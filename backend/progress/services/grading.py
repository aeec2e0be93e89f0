"""
Quiz grading.

``grade_submission`` is a pure function of the questions and the submitted
answers. Persisting the outcome is done by ``tracking.submit_quiz`` (quiz
progress) and ``submissions.submit_assignment_quiz`` (assignment attempts).
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from content.models import question_points
from progress.models import percent


@dataclass(frozen=True)
class GradedAnswer:
    question_index: int
    question_key: Optional[str]
    question: str
    selected_answer: Any
    correct_answer: Any
    is_correct: bool
    points: int
    time_spent: float
    explanation: str = ''

    @property
    def earned(self):
        return self.points if self.is_correct else 0

    def as_submission_answer(self):
        return {
            'questionIndex': self.question_index,
            'questionKey': self.question_key,
            'selectedAnswer': self.selected_answer,
            'isCorrect': self.is_correct,
            'points': self.earned,
        }

    def as_exercise_result(self):
        return {
            'exerciseIndex': self.question_index,
            'exerciseKey': self.question_key,
            'question': self.question,
            'userAnswer': self.selected_answer,
            'correctAnswer': self.correct_answer,
            'isCorrect': self.is_correct,
            'points': self.points,
            'timeSpent': self.time_spent,
            'explanation': self.explanation,
        }


@dataclass(frozen=True)
class GradingResult:
    answers: Tuple[GradedAnswer, ...]
    total_score: int
    max_score: int
    percentage: int

    @property
    def correct_answers(self):
        return sum(1 for answer in self.answers if answer.is_correct)

    @property
    def total_questions(self):
        return len(self.answers)

    def summary(self):
        return {
            'totalScore': self.total_score,
            'maxScore': self.max_score,
            'percentage': self.percentage,
            'correctAnswers': self.correct_answers,
            'totalQuestions': self.total_questions,
        }


def normalize_answers(answers) -> Dict[int, Any]:
    """
    Map question index -> submitted answer.

    Accepts a positional list (``None`` meaning unanswered), a list of
    ``{"questionIndex", "selectedAnswer"}`` objects, or a dict keyed by index.
    Raises ValueError for anything else.
    """
    if answers is None:
        return {}
    if isinstance(answers, dict):
        try:
            return {int(index): answer for index, answer in answers.items()}
        except (TypeError, ValueError):
            raise ValueError('Answer keys must be question indexes')
    if not isinstance(answers, list):
        raise ValueError('Answers must be a list')

    if answers and all(isinstance(a, dict) and 'questionIndex' in a for a in answers):
        normalized = {}
        for answer in answers:
            index = answer['questionIndex']
            if isinstance(index, bool) or not isinstance(index, int) or index < 0:
                raise ValueError('questionIndex must be a non-negative integer')
            normalized[index] = answer.get('selectedAnswer')
        return normalized

    return {index: answer for index, answer in enumerate(answers) if answer is not None}


def same_answer(selected, expected):
    # True == 1 in Python; a boolean never matches a number here
    return selected == expected and isinstance(selected, bool) == isinstance(expected, bool)


def is_correct_answer(selected, correct):
    """Exact match, or membership when ``correct`` lists several accepted answers."""
    if isinstance(correct, list):
        if isinstance(selected, list):
            return (
                len(selected) == len(correct)
                and all(any(same_answer(s, c) for c in correct) for s in selected)
                and all(any(same_answer(s, c) for s in selected) for c in correct)
            )
        return any(same_answer(selected, c) for c in correct)
    return same_answer(selected, correct)


def grade_submission(questions: Sequence[dict], answers, time_spent=0) -> GradingResult:
    """
    Grade ``answers`` against ``questions``.

    Unanswered questions score 0. Time is split evenly across questions.
    """
    answered = normalize_answers(answers)
    count = len(questions)
    per_question = (time_spent or 0) / count if count else 0

    graded = []
    for index, question in enumerate(questions):
        present = index in answered
        selected = answered.get(index)
        correct = question.get('correctAnswer')
        graded.append(GradedAnswer(
            question_index=index,
            question_key=question.get('key'),
            question=question.get('question', ''),
            selected_answer=selected,
            correct_answer=correct,
            is_correct=present and is_correct_answer(selected, correct),
            points=question_points(question),
            time_spent=per_question,
            explanation=question.get('explanation') or '',
        ))

    total_score = sum(answer.earned for answer in graded)
    max_score = sum(answer.points for answer in graded)
    return GradingResult(
        answers=tuple(graded),
        total_score=total_score,
        max_score=max_score,
        percentage=percent(total_score, max_score),
    )

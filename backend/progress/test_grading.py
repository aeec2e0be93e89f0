"""
Quiz grading tests
"""
from django.test import SimpleTestCase

from .models import percent
from .services.grading import grade_submission, is_correct_answer, normalize_answers


def question(correct, points=None):
    item = {'question': 'Pick one', 'correctAnswer': correct}
    if points is not None:
        item['points'] = points
    return item


class PercentTest(SimpleTestCase):

    def test_rounds_half_up(self):
        self.assertEqual(percent(1, 8), 13)
        self.assertEqual(percent(1, 3), 33)
        self.assertEqual(percent(2, 3), 67)
        self.assertEqual(percent(1, 200), 1)

    def test_zero_whole(self):
        self.assertEqual(percent(0, 0), 0)
        self.assertEqual(percent(5, 0), 0)


class NormalizeAnswersTest(SimpleTestCase):

    def test_positional_list(self):
        self.assertEqual(normalize_answers(['a', None, 'c']), {0: 'a', 2: 'c'})

    def test_indexed_objects(self):
        answers = [{'questionIndex': 2, 'selectedAnswer': 'x'}, {'questionIndex': 0, 'selectedAnswer': 'y'}]
        self.assertEqual(normalize_answers(answers), {2: 'x', 0: 'y'})

    def test_dict_keys(self):
        self.assertEqual(normalize_answers({'1': 'b'}), {1: 'b'})

    def test_rejects_other_shapes(self):
        with self.assertRaises(ValueError):
            normalize_answers('abc')
        with self.assertRaises(ValueError):
            normalize_answers({'first': 'a'})
        with self.assertRaises(ValueError):
            normalize_answers([{'questionIndex': -1, 'selectedAnswer': 'a'}])


class AnswerMatchingTest(SimpleTestCase):

    def test_exact(self):
        self.assertTrue(is_correct_answer('cat', 'cat'))
        self.assertFalse(is_correct_answer('Cat', 'cat'))
        self.assertTrue(is_correct_answer(2, 2))

    def test_boolean_never_matches_number(self):
        self.assertFalse(is_correct_answer(True, 1))
        self.assertFalse(is_correct_answer(0, False))
        self.assertTrue(is_correct_answer(True, True))

    def test_any_of_several(self):
        self.assertTrue(is_correct_answer('colour', ['color', 'colour']))
        self.assertFalse(is_correct_answer('colr', ['color', 'colour']))

    def test_list_against_list(self):
        self.assertTrue(is_correct_answer(['b', 'a'], ['a', 'b']))
        self.assertFalse(is_correct_answer(['a'], ['a', 'b']))
        self.assertFalse(is_correct_answer(['a', 'b', 'c'], ['a', 'b']))


class GradeSubmissionTest(SimpleTestCase):

    def test_all_correct(self):
        questions = [question('a', 5), question('b', 5), question('c', 5)]
        result = grade_submission(questions, ['a', 'b', 'c'])
        self.assertEqual(result.total_score, 15)
        self.assertEqual(result.max_score, 15)
        self.assertEqual(result.percentage, 100)
        self.assertEqual(result.correct_answers, 3)

    def test_default_points(self):
        result = grade_submission([question('a'), question('b')], ['a'])
        self.assertEqual(result.max_score, 20)
        self.assertEqual(result.total_score, 10)
        self.assertEqual(result.percentage, 50)

    def test_unanswered_scores_zero(self):
        result = grade_submission([question(None)], [])
        self.assertFalse(result.answers[0].is_correct)
        self.assertEqual(result.total_score, 0)

    def test_one_of_eight(self):
        questions = [question(n, 1) for n in range(8)]
        result = grade_submission(questions, [0])
        self.assertEqual(result.percentage, 13)

    def test_no_questions(self):
        result = grade_submission([], ['a'])
        self.assertEqual(result.max_score, 0)
        self.assertEqual(result.percentage, 0)
        self.assertEqual(result.total_questions, 0)

    def test_answers_beyond_questions_ignored(self):
        result = grade_submission([question('a')], ['a', 'b', 'c'])
        self.assertEqual(result.total_questions, 1)
        self.assertEqual(result.percentage, 100)

    def test_time_split_evenly(self):
        result = grade_submission([question('a'), question('b')], ['a', 'b'], time_spent=30)
        self.assertEqual([a.time_spent for a in result.answers], [15, 15])

    def test_same_input_same_result(self):
        questions = [question('a', 3), question(['x', 'y'], 4)]
        first = grade_submission(questions, ['a', 'y'], 10)
        second = grade_submission(questions, ['a', 'y'], 10)
        self.assertEqual(first, second)

    def test_exercise_result_shape(self):
        questions = [dict(question('a', 5), key='q1', explanation='Because')]
        entry = grade_submission(questions, ['b']).answers[0].as_exercise_result()
        self.assertEqual(entry['exerciseIndex'], 0)
        self.assertEqual(entry['exerciseKey'], 'q1')
        self.assertEqual(entry['userAnswer'], 'b')
        self.assertEqual(entry['correctAnswer'], 'a')
        self.assertFalse(entry['isCorrect'])
        self.assertEqual(entry['points'], 5)

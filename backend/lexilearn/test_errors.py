"""
Cross-cutting API behaviour - health check, error envelope, rate limiting
and request ids
"""
from unittest import mock

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.test import SimpleTestCase
from rest_framework import status

from .config_log import ScrubFilter, scrub_for_log
from .exceptions import api_exception_handler, first_message
from .testing import LexiLearnAPITestCase
from .throttling import RequestRateThrottle


class HealthCheckTest(LexiLearnAPITestCase):

    def test_health(self):
        response = self.client.get('/api/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'OK')
        self.assertEqual(response.data['database']['status'], 'healthy')
        self.assertIn('timestamp', response.data)


class ErrorEnvelopeTest(LexiLearnAPITestCase):

    def test_unknown_route(self):
        response = self.client.get('/api/does-not-exist/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json(), {'error': 'Route not found'})

    def test_missing_token(self):
        response = self.client.get('/api/progress/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(set(response.data), {'error'})

    def test_validation_carries_field_errors(self):
        response = self.client.post('/api/auth/login/', {'email': 'not-an-email'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data['errors'])
        self.assertIn('password', response.data['errors'])
        self.assertTrue(response.data['error'])

    def test_validation_log_masks_credentials(self):
        with self.assertLogs('lexilearn.exceptions', level='INFO') as logs:
            self.client.post('/api/auth/login/', {'email': 'not-an-email', 'password': 'hunter22'})
        record = next(r for r in logs.records if r.msg.startswith('Validation failed'))

        ScrubFilter().filter(record)
        message = record.getMessage()
        self.assertIn('/api/auth/login/', message)
        self.assertIn('not-an-email', message)
        self.assertIn('***', message)
        self.assertNotIn('hunter22', message)

    def test_request_id_echoed(self):
        response = self.client.get('/api/health/', HTTP_X_REQUEST_ID='abc123')
        self.assertEqual(response['X-Request-ID'], 'abc123')
        response = self.client.get('/api/health/')
        self.assertTrue(response['X-Request-ID'])


class ExceptionHandlerTest(SimpleTestCase):

    def test_integrity_error_is_conflict(self):
        response = api_exception_handler(IntegrityError('duplicate key'), {})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data, {'error': 'Resource already exists.'})

    def test_model_validation_is_bad_request(self):
        response = api_exception_handler(DjangoValidationError({'grade': ['Bad grade']}), {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'grade: Bad grade')

    def test_unhandled_error_hides_details(self):
        with self.settings(DEBUG=False):
            response = api_exception_handler(RuntimeError('boom'), {})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {'error': 'Internal server error'})

    def test_unhandled_error_details_in_debug(self):
        with self.settings(DEBUG=True):
            response = api_exception_handler(RuntimeError('boom'), {})
        self.assertEqual(response.data['details'], 'boom')

    def test_first_message(self):
        self.assertEqual(first_message({'non_field_errors': ['Nope']}), 'Nope')
        self.assertEqual(first_message({'name': ['Too short']}), 'name: Too short')
        self.assertEqual(first_message(['One', 'Two']), 'One')


class RateLimitTest(LexiLearnAPITestCase):

    def test_parse_rate(self):
        throttle = RequestRateThrottle()
        self.assertEqual(throttle.parse_rate('100/15m'), (100, 900))
        self.assertEqual(throttle.parse_rate('10/hour'), (10, 3600))
        self.assertEqual(throttle.parse_rate('5/s'), (5, 1))
        with self.assertRaises(ValueError):
            throttle.parse_rate('lots')

    def test_limit_enforced(self):
        teacher = self.create_teacher()
        self.authenticate(teacher)
        with mock.patch.object(RequestRateThrottle, 'THROTTLE_RATES', {'requests': '2/15m'}):
            self.assertEqual(self.client.get('/api/auth/me/').status_code, status.HTTP_200_OK)
            self.assertEqual(self.client.get('/api/auth/me/').status_code, status.HTTP_200_OK)
            response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertIn('error', response.data)


class ScrubTest(SimpleTestCase):

    def test_credentials_masked(self):
        scrubbed = scrub_for_log({'email': 'a@b.c', 'password': 'x', 'nested': {'secretCode': 'ABC123XYZ'}})
        self.assertEqual(scrubbed['email'], 'a@b.c')
        self.assertEqual(scrubbed['password'], '***')
        self.assertEqual(scrubbed['nested']['secretCode'], '***')

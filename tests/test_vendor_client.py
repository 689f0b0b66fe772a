import unittest
from unittest.mock import MagicMock, call, patch

import requests

from msp_doc_exporter.auth import ApiKeyAuth, BearerTokenAuth, OAuth2ClientCredentials
from msp_doc_exporter.errors import (
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
    TransportError
)
from msp_doc_exporter.pagination import PageNumberPaginator
from msp_doc_exporter.vendor_client import VendorApiClient


def make_response(status_code=200, payload=None, headers=None, text=''):
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


def make_session(*responses):
    session = MagicMock()
    session.headers = {}
    session.get.side_effect = list(responses)
    return session


class TestVendorApiClient(unittest.TestCase):

    def make_client(self, session, **kwargs):
        kwargs.setdefault('request_delay', 0)
        return VendorApiClient(
            'https://api.example.com/v3/',
            ApiKeyAuth('key-123'),
            paginator=PageNumberPaginator(),
            session=session,
            **kwargs
        )

    def test_get_json_builds_url_and_applies_auth(self):
        session = make_session(make_response(payload={'ok': True}))
        client = self.make_client(session, timeout=12)

        self.assertEqual(client.get_json('/customers', {'page': 1}), {'ok': True})
        session.get.assert_called_once_with(
            'https://api.example.com/v3/customers', params={'page': 1}, timeout=12
        )
        self.assertEqual(session.headers['X-API-KEY'], 'key-123')
        self.assertEqual(session.headers['Accept'], 'application/json')
        self.assertTrue(client.authenticated)

    def test_absolute_urls_are_used_as_is(self):
        session = make_session(make_response(payload=[]))
        client = self.make_client(session)
        client.get_json('https://other.example.com/next?page=2')
        self.assertEqual(session.get.call_args[0][0], 'https://other.example.com/next?page=2')

    def test_default_timeout_is_thirty_seconds(self):
        session = make_session(make_response(payload=[]))
        client = self.make_client(session)
        client.get_json('customers')
        self.assertEqual(session.get.call_args[1]['timeout'], 30)

    def test_403_raises_permission_denied(self):
        session = make_session(make_response(403, {'message': 'Knowledge base disabled'}))
        client = self.make_client(session)

        with self.assertRaises(PermissionDeniedError) as ctx:
            client.get_json('knowledgebase')

        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.endpoint, 'https://api.example.com/v3/knowledgebase')
        self.assertIn('Knowledge base disabled', str(ctx.exception))

    def test_429_raises_rate_limit_with_retry_after(self):
        session = make_session(make_response(429, ValueError(), headers={'Retry-After': '7'}, text='slow down'))
        client = self.make_client(session)

        with self.assertRaises(RateLimitError) as ctx:
            client.get_json('customers')

        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(ctx.exception.retry_after, 7.0)
        self.assertIsInstance(ctx.exception, TransportError)

    def test_other_status_raises_transport_error(self):
        session = make_session(make_response(500, ValueError(), text='Internal Server Error'))
        client = self.make_client(session)

        with self.assertRaises(TransportError) as ctx:
            client.get_json('customers')

        self.assertEqual(ctx.exception.status_code, 500)
        self.assertNotIsInstance(ctx.exception, PermissionDeniedError)

    def test_network_failure_raises_transport_error(self):
        session = make_session(requests.exceptions.ConnectionError('refused'))
        client = self.make_client(session)

        with self.assertRaises(TransportError) as ctx:
            client.get_json('customers')

        self.assertIsNone(ctx.exception.status_code)

    def test_invalid_json_raises_transport_error(self):
        session = make_session(make_response(200, ValueError('bad json'), text='<html>'))
        client = self.make_client(session)

        with self.assertRaises(TransportError):
            client.get_json('customers')

    @patch('msp_doc_exporter.vendor_client.time.sleep')
    def test_fixed_delay_before_every_request(self, mock_sleep):
        session = make_session(make_response(payload=[]), make_response(payload=[]))
        client = self.make_client(session, request_delay=0.5)

        client.get_json('customers')
        client.get_json('contacts')

        self.assertEqual(mock_sleep.call_args_list, [call(0.5), call(0.5)])
        self.assertEqual(client.request_count, 2)

    @patch('msp_doc_exporter.vendor_client.time.sleep')
    def test_rate_limit_retries_honour_retry_after(self, mock_sleep):
        session = make_session(
            make_response(429, {'message': 'slow'}, headers={'Retry-After': '3'}),
            make_response(payload={'ok': True})
        )
        client = self.make_client(session, rate_limit_retries=2)

        self.assertEqual(client.get_json('customers'), {'ok': True})
        self.assertIn(call(3.0), mock_sleep.call_args_list)
        self.assertEqual(session.get.call_count, 2)

    @patch('msp_doc_exporter.vendor_client.time.sleep')
    def test_rate_limit_retries_exhausted(self, mock_sleep):
        session = make_session(*[make_response(429, {}) for _ in range(3)])
        client = self.make_client(session, rate_limit_retries=2)

        with self.assertRaises(RateLimitError):
            client.get_json('customers')
        self.assertEqual(session.get.call_count, 3)

    def test_paginate_yields_all_records(self):
        session = make_session(
            make_response(payload=[{'id': 1}, {'id': 2}]),
            make_response(payload=[{'id': 3}])
        )
        client = self.make_client(session)

        records = list(client.paginate('customers', page_size=2))

        self.assertEqual([r['id'] for r in records], [1, 2, 3])
        self.assertEqual(session.get.call_count, 2)

    def test_paginate_is_lazy(self):
        session = make_session(make_response(payload=[{'id': 1}]))
        client = self.make_client(session)

        iterator = client.paginate('customers', page_size=5)
        session.get.assert_not_called()
        self.assertEqual(next(iterator), {'id': 1})

    def test_paginate_failure_aborts_sequence(self):
        session = make_session(
            make_response(payload=[{'id': 1}, {'id': 2}]),
            make_response(502, ValueError(), text='Bad Gateway')
        )
        client = self.make_client(session)

        seen = []
        with self.assertRaises(TransportError):
            for record in client.paginate('customers', page_size=2):
                seen.append(record)
        self.assertEqual(len(seen), 2)


class TestAuthStrategies(unittest.TestCase):

    def test_api_key_requires_key(self):
        with self.assertRaises(ValueError):
            ApiKeyAuth('')

    def test_bearer_header(self):
        session = MagicMock()
        session.headers = {}
        BearerTokenAuth('tok').apply(session)
        self.assertEqual(session.headers['Authorization'], 'Bearer tok')

    def test_oauth_exchanges_token_once(self):
        session = make_session(make_response(payload=[]), make_response(payload=[]))
        session.post.return_value = make_response(payload={'access_token': 'abc', 'expires_in': 3600})
        auth = OAuth2ClientCredentials('https://app.example.com/ws/oauth/token', 'cid', 'csecret', scope='monitoring')
        client = VendorApiClient('https://app.example.com', auth, request_delay=0, session=session)

        client.get_json('v2/organizations')
        client.get_json('v2/devices')

        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        self.assertEqual(args[0], 'https://app.example.com/ws/oauth/token')
        self.assertEqual(kwargs['data'], {
            'grant_type': 'client_credentials',
            'client_id': 'cid',
            'client_secret': 'csecret',
            'scope': 'monitoring'
        })
        self.assertEqual(session.headers['Authorization'], 'Bearer abc')
        self.assertEqual(auth.access_token, 'abc')

    def test_oauth_rejected_credentials(self):
        session = MagicMock()
        session.headers = {}
        session.post.return_value = make_response(401, {'error': 'invalid_client'})
        auth = OAuth2ClientCredentials('https://app.example.com/ws/oauth/token', 'cid', 'wrong')

        with self.assertRaises(AuthenticationError):
            auth.apply(session, timeout=30)
        self.assertNotIn('Authorization', session.headers)

    def test_oauth_response_without_token(self):
        session = MagicMock()
        session.headers = {}
        session.post.return_value = make_response(200, {'token_type': 'bearer'})
        auth = OAuth2ClientCredentials('https://app.example.com/ws/oauth/token', 'cid', 'secret')

        with self.assertRaises(AuthenticationError):
            auth.apply(session)

    def test_oauth_network_failure(self):
        session = MagicMock()
        session.headers = {}
        session.post.side_effect = requests.exceptions.Timeout('timed out')
        auth = OAuth2ClientCredentials('https://app.example.com/ws/oauth/token', 'cid', 'secret')

        with self.assertRaises(AuthenticationError):
            auth.apply(session)


if __name__ == '__main__':
    unittest.main()

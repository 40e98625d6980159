import unittest
from itertools import islice
from unittest.mock import MagicMock, patch

import requests

from libwebnovel import __version__
from libwebnovel.errors import NetworkError, RateLimitExhausted, RequestFailed
from libwebnovel.fetch_client import FetchClient, fibonacci_backoff


def response(status_code, text="", content=b""):
    return MagicMock(status_code=status_code, text=text, content=content)


class TestFibonacciBackoff(unittest.TestCase):
    def test_sequence(self):
        self.assertEqual(
            list(islice(fibonacci_backoff(), 12)),
            [0, 1, 1, 2, 3, 5, 8, 13, 21, 34, 55, 89],
        )

    def test_each_call_restarts(self):
        first = fibonacci_backoff()
        for _ in range(5):
            next(first)
        self.assertEqual(list(islice(fibonacci_backoff(), 3)), [0, 1, 1])


class TestFetchClient(unittest.TestCase):
    def setUp(self):
        self.session = MagicMock()
        self.client = FetchClient(user_agent="libwebnovel/test", timeout=5, max_backoff_wait=60,
                                  session=self.session)

    def test_default_headers(self):
        client = FetchClient(session=requests.Session())
        self.assertEqual(client.session.headers['User-Agent'], f"libwebnovel/{__version__}")
        self.assertIn('Accept', client.session.headers)

    def test_headers_set_on_shared_session(self):
        self.session.headers.update.assert_called_once()
        headers = self.session.headers.update.call_args[0][0]
        self.assertEqual(headers['User-Agent'], "libwebnovel/test")

    @patch('time.sleep')
    def test_success_returned_immediately(self, mock_sleep):
        ok = response(200, "hello")
        self.session.get.return_value = ok

        self.assertIs(self.client.get("http://example.com"), ok)
        self.session.get.assert_called_once_with("http://example.com", timeout=5, allow_redirects=True)
        mock_sleep.assert_not_called()

    @patch('time.sleep')
    def test_error_status_not_retried(self, mock_sleep):
        self.session.get.return_value = response(500, "oops")

        result = self.client.get("http://example.com")
        self.assertEqual(result.status_code, 500)
        self.assertEqual(self.session.get.call_count, 1)
        mock_sleep.assert_not_called()

    @patch('time.sleep')
    def test_rate_limit_waits_follow_fibonacci(self, mock_sleep):
        for limited in range(1, 8):
            self.session.get.reset_mock()
            mock_sleep.reset_mock()
            self.session.get.side_effect = [response(429)] * limited + [response(200)]

            result = self.client.get("http://example.com")

            self.assertEqual(result.status_code, 200)
            self.assertEqual(self.session.get.call_count, limited + 1)
            waits = [c[0][0] for c in mock_sleep.call_args_list]
            self.assertEqual(waits, list(islice(fibonacci_backoff(), limited)))
            self.assertEqual(sum(waits), sum(islice(fibonacci_backoff(), limited)))

    @patch('time.sleep')
    def test_rate_limit_gives_up_past_ceiling(self, mock_sleep):
        self.session.get.return_value = response(429)

        with self.assertRaises(RateLimitExhausted) as ctx:
            self.client.get("http://example.com")

        # waits 0..55 are allowed, 89 is not: 12 requests, 11 waits
        self.assertEqual(self.session.get.call_count, 12)
        waits = [c[0][0] for c in mock_sleep.call_args_list]
        self.assertEqual(waits, [0, 1, 1, 2, 3, 5, 8, 13, 21, 34, 55])
        self.assertEqual(ctx.exception.attempts, 12)
        self.assertEqual(ctx.exception.waited, 143)

    @patch('time.sleep')
    def test_custom_ceiling(self, mock_sleep):
        self.session.get.return_value = response(429)
        client = FetchClient(max_backoff_wait=2, session=self.session)

        with self.assertRaises(RateLimitExhausted):
            client.get("http://example.com")
        self.assertEqual(self.session.get.call_count, 5)
        self.assertEqual([c[0][0] for c in mock_sleep.call_args_list], [0, 1, 1, 2])

    @patch('time.sleep')
    def test_network_error_not_retried(self, mock_sleep):
        self.session.get.side_effect = requests.ConnectionError("connection reset")

        with self.assertRaises(NetworkError) as ctx:
            self.client.get("http://example.com")
        self.assertEqual(self.session.get.call_count, 1)
        self.assertEqual(ctx.exception.url, "http://example.com")
        self.assertIsInstance(ctx.exception.__cause__, requests.ConnectionError)
        mock_sleep.assert_not_called()

    def test_get_ok_raises_request_failed(self):
        self.session.get.return_value = response(404, "missing page")

        with self.assertRaises(RequestFailed) as ctx:
            self.client.get_ok("http://example.com", "could not get page")
        self.assertEqual(ctx.exception.status, 404)
        self.assertEqual(ctx.exception.body, "missing page")
        self.assertEqual(ctx.exception.message, "could not get page")

    def test_get_bytes(self):
        self.session.get.return_value = response(200, content=b"\x89PNG")
        self.assertEqual(self.client.get_bytes("http://example.com/cover.png", "no cover"), b"\x89PNG")


if __name__ == '__main__':
    unittest.main()

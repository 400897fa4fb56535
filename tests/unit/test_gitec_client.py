"""
Tests for GitecClient
Checks retries, backoff waits and the fetch error kinds
"""

from unittest.mock import Mock, call, patch

import pytest
import requests

from gitec_sync.exceptions import FetchError
from gitec_sync.integrations.gitec.client import GitecClient
from gitec_sync.models.config import SyncSettings
from gitec_sync.services.recorders import InMemoryOperationalLog

CATALOG = [{"Sku": "A", "ProductPrice": {"PriceValue": "1.00"}}]


def ok_response(data=CATALOG):
    return Mock(status_code=200, json=Mock(return_value=data))


def status_response(status_code):
    return Mock(status_code=status_code, text=f"HTTP {status_code}")


class TestGitecClient:
    """Test suite for GitecClient"""

    def setup_method(self):
        self.oplog = InMemoryOperationalLog()
        self.client = GitecClient(
            username="user",
            password="secret",
            oplog=self.oplog,
            base_url="https://b2b.gitec.ge/restapi",
        )

    def test_initialization(self):
        assert self.client.products_url == "https://b2b.gitec.ge/restapi/products"
        assert self.client.session.headers["username"] == "user"
        assert self.client.session.headers["password"] == "secret"
        assert self.client.max_attempts == 5

    def test_from_settings(self):
        settings = SyncSettings(api_username="u", api_password="p", language="en", max_attempts=3)
        client = GitecClient.from_settings(settings, self.oplog)

        assert client.language == "en"
        assert client.max_attempts == 3
        assert client.session.headers["username"] == "u"

    def test_successful_fetch(self):
        with patch.object(self.client.session, 'request') as mock_request:
            mock_request.return_value = ok_response()

            assert self.client.fetch_all() == CATALOG

            mock_request.assert_called_once_with(
                'GET',
                "https://b2b.gitec.ge/restapi/products",
                params={'language': 'ge'},
                timeout=(30.0, 120.0),
                verify=False,
            )
        messages = [entry.message for entry in self.oplog.entries]
        assert "API request attempt 1/5" in messages
        assert "Successfully loaded 1 products" in messages

    def test_retries_with_exponential_backoff(self):
        """503 four times, then 200: five calls and waits of 10, 15, 22.5, 33.75 seconds."""
        with patch.object(self.client.session, 'request') as mock_request:
            mock_request.side_effect = [status_response(503)] * 4 + [ok_response()]

            with patch('time.sleep') as mock_sleep:
                result = self.client.fetch_all()

        assert result == CATALOG
        assert mock_request.call_count == 5
        assert mock_sleep.call_args_list == [call(10.0), call(15.0), call(22.5), call(33.75)]

    def test_waits_are_announced_in_the_log(self):
        with patch.object(self.client.session, 'request') as mock_request:
            mock_request.side_effect = [status_response(503), status_response(503), ok_response()]

            with patch('time.sleep'):
                self.client.fetch_all()

        messages = [entry.message for entry in self.oplog.entries]
        assert [m for m in messages if m.startswith("Next attempt")] == [
            "Next attempt in 10 seconds",
            "Next attempt in 15 seconds",
        ]
        assert [m for m in messages if m.startswith("API request attempt")] == [
            "API request attempt 1/5",
            "API request attempt 2/5",
            "API request attempt 3/5",
        ]

    def test_zero_attempts_is_a_configuration_error(self):
        self.client.max_attempts = 0

        with patch.object(self.client.session, 'request') as mock_request:
            with pytest.raises(FetchError) as exc_info:
                self.client.fetch_all()

        assert exc_info.value.kind == FetchError.CONFIGURATION
        mock_request.assert_not_called()

    @pytest.mark.parametrize("status_code", [408, 504])
    def test_other_retryable_codes(self, status_code):
        with patch.object(self.client.session, 'request') as mock_request:
            mock_request.side_effect = [status_response(status_code), ok_response()]

            with patch('time.sleep') as mock_sleep:
                assert self.client.fetch_all() == CATALOG

        assert mock_request.call_count == 2
        mock_sleep.assert_called_once_with(10.0)

    def test_retries_exhausted(self):
        with patch.object(self.client.session, 'request') as mock_request:
            mock_request.return_value = status_response(503)

            with patch('time.sleep') as mock_sleep:
                with pytest.raises(FetchError) as exc_info:
                    self.client.fetch_all()

        assert exc_info.value.kind == FetchError.RETRY_EXHAUSTED
        assert exc_info.value.status_code == 503
        assert exc_info.value.attempts == 5
        assert mock_request.call_count == 5
        # No wait after the last attempt
        assert mock_sleep.call_count == 4

    @pytest.mark.parametrize("status_code", [400, 401, 404, 500])
    def test_non_retryable_status_fails_immediately(self, status_code):
        with patch.object(self.client.session, 'request') as mock_request:
            mock_request.return_value = status_response(status_code)

            with patch('time.sleep') as mock_sleep:
                with pytest.raises(FetchError) as exc_info:
                    self.client.fetch_all()

        assert exc_info.value.kind == FetchError.HTTP_STATUS
        assert exc_info.value.status_code == status_code
        mock_request.assert_called_once()
        mock_sleep.assert_not_called()

    def test_connection_error_is_retried(self):
        with patch.object(self.client.session, 'request') as mock_request:
            mock_request.side_effect = [requests.exceptions.ConnectionError("reset"), ok_response()]

            with patch('time.sleep'):
                assert self.client.fetch_all() == CATALOG

        assert mock_request.call_count == 2

    def test_timeout_exhausts_attempts(self):
        with patch.object(self.client.session, 'request') as mock_request:
            mock_request.side_effect = requests.exceptions.Timeout("read timed out")

            with patch('time.sleep'):
                with pytest.raises(FetchError) as exc_info:
                    self.client.fetch_all()

        assert exc_info.value.kind == FetchError.TRANSPORT
        assert exc_info.value.attempts == 5
        assert mock_request.call_count == 5

    def test_unsendable_request_is_not_retried(self):
        with patch.object(self.client.session, 'request') as mock_request:
            mock_request.side_effect = requests.exceptions.InvalidURL("bad url")

            with pytest.raises(FetchError) as exc_info:
                self.client.fetch_all()

        assert exc_info.value.kind == FetchError.TRANSPORT
        mock_request.assert_called_once()

    def test_invalid_json(self):
        with patch.object(self.client.session, 'request') as mock_request:
            mock_request.return_value = Mock(status_code=200, json=Mock(side_effect=ValueError("Expecting value")))

            with pytest.raises(FetchError) as exc_info:
                self.client.fetch_all()

        assert exc_info.value.kind == FetchError.PARSE

    def test_non_list_payload(self):
        with patch.object(self.client.session, 'request') as mock_request:
            mock_request.return_value = ok_response({"error": "maintenance"})

            with pytest.raises(FetchError) as exc_info:
                self.client.fetch_all()

        assert exc_info.value.kind == FetchError.PARSE

    def test_empty_catalog(self):
        with patch.object(self.client.session, 'request') as mock_request:
            mock_request.return_value = ok_response([])

            with pytest.raises(FetchError) as exc_info:
                self.client.fetch_all()

        assert exc_info.value.kind == FetchError.EMPTY
        assert self.oplog.entries[-1].message == "No products found"

    def test_missing_credentials(self):
        client = GitecClient(username="", password="", oplog=self.oplog)

        with patch.object(client.session, 'request') as mock_request:
            with pytest.raises(FetchError) as exc_info:
                client.fetch_all()

        assert exc_info.value.kind == FetchError.CONFIGURATION
        mock_request.assert_not_called()

    def test_test_connection_reports_errors(self):
        with patch.object(self.client.session, 'request') as mock_request:
            mock_request.return_value = status_response(404)
            result = self.client.test_connection()

        assert result["status"] == "error"
        assert result["kind"] == FetchError.HTTP_STATUS

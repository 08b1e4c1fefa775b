"""Integration tests for Lambda handler."""
import json
import logging
import os
from unittest.mock import Mock, patch

import pytest

from lambda_function import StoreConfig, build_store, lambda_handler, load_config, setup_logging
from processor.models import Event, RepeatInfo, StoreResult


@pytest.fixture
def mock_env():
    """Set up environment variables for testing."""
    env_vars = {
        'STORE_BACKEND': 'http',
        'STORE_URL': 'http://events.test',
        'TABLE_NAME': 'test-calendar-events',
        'LOG_LEVEL': 'INFO',
        'TIMEOUT_SECONDS': '10'
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars


@pytest.fixture
def mock_context():
    """Create a mock Lambda context."""
    context = Mock()
    context.function_name = 'test-function'
    context.aws_request_id = 'test-request-id'
    return context


@pytest.fixture
def stored_events():
    return [
        Event(id='1', title='Team meeting', date='2024-10-01', start_time='10:00', end_time='11:00'),
        Event(id='2', title='Lunch', date='2024-10-02', start_time='12:00', end_time='13:00'),
    ]


@pytest.fixture
def mock_store(stored_events):
    store = Mock()
    store.list_events.return_value = StoreResult.success(stored_events)
    store.create.return_value = StoreResult.success(stored_events[0])
    store.create_many.return_value = StoreResult.success([])
    store.update.return_value = StoreResult.success(stored_events[0])
    store.delete.return_value = StoreResult.success(None)
    return store


class TestLambdaHandler:
    """Test cases for Lambda handler."""

    @patch('lambda_function.HttpEventStore')
    def test_list_returns_loaded_events(self, mock_store_class, mock_env, mock_context, mock_store):
        mock_store_class.return_value = mock_store

        response = lambda_handler({'action': 'list'}, mock_context)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        assert [e['id'] for e in body['events']] == ['1', '2']
        assert body['notifications'][-1]['message'] == 'Events loaded!'
        assert 'duration_seconds' in body
        mock_store_class.assert_called_once_with('http://events.test', timeout=10)
        mock_store.list_events.assert_called_once()

    @patch('lambda_function.HttpEventStore')
    def test_list_reports_load_failure(self, mock_store_class, mock_env, mock_context, mock_store):
        mock_store.list_events.return_value = StoreResult.failure('500 Server Error')
        mock_store_class.return_value = mock_store

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 502
        body = json.loads(response['body'])
        assert body['events'] == []
        assert [n['message'] for n in body['notifications']] == [
            'Failed to load events', 'Events loaded!'
        ]

    @patch('lambda_function.HttpEventStore')
    def test_save_new_event(self, mock_store_class, mock_env, mock_context, mock_store):
        mock_store_class.return_value = mock_store

        response = lambda_handler(
            {'action': 'save', 'event': {'title': 'Dentist', 'date': '2024-10-05'}},
            mock_context
        )

        assert response['statusCode'] == 200
        mock_store.create.assert_called_once()
        assert mock_store.create.call_args[0][0].title == 'Dentist'
        assert mock_store.list_events.call_count == 2
        body = json.loads(response['body'])
        assert body['notifications'][-1] == {
            'message': 'Event added.',
            'severity': 'success',
            'duration_ms': 3000,
            'is_closable': True
        }

    @patch('lambda_function.HttpEventStore')
    def test_save_edit_uses_startup_list_as_baseline(
        self, mock_store_class, mock_env, mock_context, mock_store
    ):
        mock_store_class.return_value = mock_store
        payload = {
            'id': '1',
            'title': 'Team meeting',
            'date': '2024-10-01',
            'repeat': {'type': 'weekly', 'interval': 1, 'endDate': '2024-10-29'}
        }

        response = lambda_handler({'action': 'save', 'editing': True, 'event': payload}, mock_context)

        assert response['statusCode'] == 200
        mock_store.update.assert_not_called()
        mock_store.create_many.assert_called_once()
        sent = mock_store.create_many.call_args[0][0]
        assert [e.date for e in sent] == [
            '2024-10-01', '2024-10-08', '2024-10-15', '2024-10-22', '2024-10-29'
        ]
        body = json.loads(response['body'])
        assert body['notifications'][-1]['message'] == 'Event updated.'

    @patch('lambda_function.HttpEventStore')
    def test_save_edit_unknown_id_fails(self, mock_store_class, mock_env, mock_context, mock_store):
        mock_store_class.return_value = mock_store

        response = lambda_handler(
            {'action': 'save', 'editing': True, 'event': {'id': '99', 'title': 'x', 'date': '2024-10-01'}},
            mock_context
        )

        assert response['statusCode'] == 502
        mock_store.update.assert_not_called()
        body = json.loads(response['body'])
        assert body['notifications'][-1]['message'] == 'Failed to save event'

    @pytest.mark.parametrize('payload', [
        {'title': 'No date'},
        {'title': 'x', 'date': '2024-10-01', 'repeat': 'daily'},
        {'title': 'x', 'date': '2024-10-01', 'notificationTime': None},
        {'title': 'x', 'date': '2024-10-01', 'notificationTime': 'soon'},
        {'title': 'x', 'date': '2024-10-01', 'repeat': {'type': 'weekly', 'count': 0}},
    ])
    @patch('lambda_function.HttpEventStore')
    def test_save_invalid_payload_is_bad_request(
        self, mock_store_class, mock_env, mock_context, mock_store, payload
    ):
        mock_store_class.return_value = mock_store

        response = lambda_handler({'action': 'save', 'event': payload}, mock_context)

        assert response['statusCode'] == 400
        body = json.loads(response['body'])
        assert body['message'] == 'Invalid request'

    @patch('lambda_function.HttpEventStore')
    def test_delete_event(self, mock_store_class, mock_env, mock_context, mock_store):
        mock_store_class.return_value = mock_store

        response = lambda_handler({'action': 'delete', 'id': '2'}, mock_context)

        assert response['statusCode'] == 200
        mock_store.delete.assert_called_once_with('2')
        body = json.loads(response['body'])
        assert body['notifications'][-1]['message'] == 'Event deleted.'

    @patch('lambda_function.HttpEventStore')
    def test_delete_failure(self, mock_store_class, mock_env, mock_context, mock_store):
        mock_store.delete.return_value = StoreResult.failure('404 Not Found')
        mock_store_class.return_value = mock_store

        response = lambda_handler({'action': 'delete', 'id': '2'}, mock_context)

        assert response['statusCode'] == 502
        assert mock_store.delete.call_count == 1
        assert mock_store.list_events.call_count == 1

    @patch('lambda_function.HttpEventStore')
    def test_delete_without_id_is_bad_request(
        self, mock_store_class, mock_env, mock_context, mock_store
    ):
        mock_store_class.return_value = mock_store

        response = lambda_handler({'action': 'delete'}, mock_context)

        assert response['statusCode'] == 400
        mock_store.delete.assert_not_called()

    @patch('lambda_function.HttpEventStore')
    def test_unknown_action_is_bad_request(self, mock_store_class, mock_env, mock_context, mock_store):
        mock_store_class.return_value = mock_store

        response = lambda_handler({'action': 'archive'}, mock_context)

        assert response['statusCode'] == 400
        assert 'Unknown action' in json.loads(response['body'])['error']

    def test_unknown_backend_is_error(self, mock_env, mock_context):
        with patch.dict(os.environ, {'STORE_BACKEND': 'redis'}):
            response = lambda_handler({'action': 'list'}, mock_context)

        assert response['statusCode'] == 500
        body = json.loads(response['body'])
        assert body['error_type'] == 'ValueError'
        assert 'redis' in body['error']

    @patch('lambda_function.DynamoDBEventStore')
    def test_dynamodb_backend(self, mock_store_class, mock_env, mock_context, mock_store):
        mock_store_class.return_value = mock_store

        with patch.dict(os.environ, {'STORE_BACKEND': 'dynamodb'}):
            response = lambda_handler({'action': 'list'}, mock_context)

        assert response['statusCode'] == 200
        mock_store_class.assert_called_once_with(table_name='test-calendar-events')

    @patch('lambda_function.HttpEventStore')
    @patch('lambda_function.setup_logging')
    def test_logging_output(
        self, mock_setup_logging, mock_store_class, mock_env, mock_context, mock_store, caplog
    ):
        mock_store_class.return_value = mock_store

        with caplog.at_level(logging.INFO):
            response = lambda_handler({'action': 'delete', 'id': '1'}, mock_context)

        assert response['statusCode'] == 200
        log_messages = [record.message for record in caplog.records]
        assert any('Lambda execution started' in msg for msg in log_messages)
        assert any('Loaded 2 events' in msg for msg in log_messages)
        assert any('Event deleted.' in msg for msg in log_messages)
        assert any('Lambda execution completed' in msg for msg in log_messages)


class TestConfig:
    """Test cases for environment configuration."""

    def test_load_config_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = load_config()

        assert config == StoreConfig(
            backend='http',
            store_url='http://localhost:3000',
            table_name='calendar-events',
            timeout_seconds=30,
            log_level='INFO'
        )

    def test_load_config_from_env(self, mock_env):
        config = load_config()

        assert config.store_url == 'http://events.test'
        assert config.timeout_seconds == 10

    def test_build_store_http(self):
        config = StoreConfig('http', 'http://events.test/', 'tbl', 5, 'INFO')

        store = build_store(config)

        assert store.base_url == 'http://events.test'
        assert store.timeout == 5


class TestSetupLogging:
    """Test cases for logging setup."""

    def test_setup_logging_default_level(self):
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug_level(self):
        setup_logging('DEBUG')
        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_error_level(self):
        setup_logging('ERROR')
        assert logging.getLogger().level == logging.ERROR

"""
Module: test_sqs.py
Description: Unit tests for the aioboto3-backed SQS backend.

Patches the aioboto3 session client with AsyncMock so every SQS call
can be inspected and made to fail with botocore errors. Covers request
parameters, response mapping and error translation.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from botocore.exceptions import ClientError, EndpointConnectionError

from simple_sqs.backend.sqs import SQSBackend
from simple_sqs.config.settings import QueueSettings
from simple_sqs.errors import BackendError, BackendUnavailable, InvalidReceipt
from simple_sqs.models.message import BatchEntry

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/test-queue"


def client_error(code: str, operation: str, message: str = "Test error") -> ClientError:
    return ClientError(
        error_response={'Error': {'Code': code, 'Message': message}},
        operation_name=operation
    )


@pytest.fixture
def backend():
    """Provide an SQS backend with dummy credentials."""
    return SQSBackend(
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing"
    )


@pytest.fixture
def sqs(backend):
    """
    Patch the backend's session so clients yield one AsyncMock.

    The mock stands in for the object returned by
    ``async with session.client('sqs') as sqs``.
    """
    client = AsyncMock()
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=client)
    context.__aexit__ = AsyncMock(return_value=False)

    with patch.object(backend.session, 'client', return_value=context) as factory:
        client.factory = factory
        yield client


class TestSQSBackendInit:
    """Test cases for SQSBackend construction."""

    def test_init(self, backend):
        """Test backend initialization."""
        assert backend.region_name == "us-east-1"
        assert backend.endpoint_url is None
        assert backend.client_config.read_timeout == 30

    def test_init_invalid_region(self):
        """Test an empty region is rejected."""
        with pytest.raises(ValueError, match="region_name must be a non-empty string"):
            SQSBackend(region_name="")

    def test_from_settings(self):
        """Test settings are carried over."""
        settings = QueueSettings(
            _env_file=None,
            queue_name="jobs",
            aws_region="eu-west-1",
            endpoint_url="http://localhost:4566",
            read_timeout=45
        )

        backend = SQSBackend.from_settings(settings)

        assert backend.region_name == "eu-west-1"
        assert backend.endpoint_url == "http://localhost:4566"
        assert backend.client_config.read_timeout == 45

    @pytest.mark.asyncio
    async def test_client_options(self, backend, sqs):
        """Test clients are opened for SQS with the backend's config."""
        sqs.purge_queue.return_value = {}

        await backend.purge_queue(QUEUE_URL)

        args, kwargs = sqs.factory.call_args
        assert args == ('sqs',)
        assert kwargs['config'] is backend.client_config
        assert kwargs['endpoint_url'] is None


class TestResolveEndpoint:
    """Test cases for SQSBackend.resolve_endpoint."""

    @pytest.mark.asyncio
    async def test_resolve_success(self, backend, sqs):
        """Test the queue URL is returned."""
        sqs.get_queue_url.return_value = {'QueueUrl': QUEUE_URL}

        assert await backend.resolve_endpoint("test-queue") == QUEUE_URL
        sqs.get_queue_url.assert_awaited_once_with(QueueName="test-queue")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [
        "AWS.SimpleQueueService.NonExistentQueue",
        "InvalidClientTokenId",
        "SomethingUnexpected",
    ])
    async def test_resolve_failure_is_unavailable(self, backend, sqs, code):
        """Test every resolution failure maps to BackendUnavailable."""
        sqs.get_queue_url.side_effect = client_error(code, "GetQueueUrl")

        with pytest.raises(BackendUnavailable) as exc_info:
            await backend.resolve_endpoint("test-queue")

        assert exc_info.value.code == code
        assert isinstance(exc_info.value.cause, ClientError)

    @pytest.mark.asyncio
    async def test_resolve_transport_failure(self, backend, sqs):
        """Test connection failures map to BackendUnavailable."""
        sqs.get_queue_url.side_effect = EndpointConnectionError(endpoint_url="https://sqs.invalid")

        with pytest.raises(BackendUnavailable):
            await backend.resolve_endpoint("test-queue")


class TestSendMessage:
    """Test cases for SQSBackend.send_message and send_message_batch."""

    @pytest.mark.asyncio
    async def test_send_message(self, backend, sqs):
        """Test a send returns id and digest."""
        sqs.send_message.return_value = {'MessageId': 'm-1', 'MD5OfMessageBody': 'md5'}

        result = await backend.send_message(QUEUE_URL, '{"v":1}')

        assert result.id == 'm-1'
        assert result.digest == 'md5'
        sqs.send_message.assert_awaited_once_with(QueueUrl=QUEUE_URL, MessageBody='{"v":1}')

    @pytest.mark.asyncio
    async def test_send_message_with_delay(self, backend, sqs):
        """Test DelaySeconds is only sent when given."""
        sqs.send_message.return_value = {'MessageId': 'm-1', 'MD5OfMessageBody': 'md5'}

        await backend.send_message(QUEUE_URL, '1', delay_seconds=0)

        assert sqs.send_message.call_args.kwargs['DelaySeconds'] == 0

    @pytest.mark.asyncio
    async def test_send_message_error(self, backend, sqs):
        """Test service rejections map to BackendError with the code."""
        sqs.send_message.side_effect = client_error("InvalidMessageContents", "SendMessage")

        with pytest.raises(BackendError) as exc_info:
            await backend.send_message(QUEUE_URL, '1')

        assert exc_info.value.code == "InvalidMessageContents"
        assert not isinstance(exc_info.value, BackendUnavailable)

    @pytest.mark.asyncio
    async def test_send_message_throttled(self, backend, sqs):
        """Test throttling maps to BackendUnavailable."""
        sqs.send_message.side_effect = client_error("RequestThrottled", "SendMessage")

        with pytest.raises(BackendUnavailable):
            await backend.send_message(QUEUE_URL, '1')

    @pytest.mark.asyncio
    async def test_send_message_batch(self, backend, sqs):
        """Test batch results are returned in entry order, failures included."""
        sqs.send_message_batch.return_value = {
            'Successful': [
                {'Id': 'c', 'MessageId': 'm-c', 'MD5OfMessageBody': 'md5-c'},
                {'Id': 'a', 'MessageId': 'm-a', 'MD5OfMessageBody': 'md5-a'},
            ],
            'Failed': [
                {'Id': 'b', 'SenderFault': True, 'Code': 'InvalidMessageContents', 'Message': 'bad'},
            ],
        }
        entries = [
            BatchEntry(client_token='a', body='1', delay_seconds=5),
            BatchEntry(client_token='b', body='2'),
            BatchEntry(client_token='c', body='3'),
            BatchEntry(client_token='d', body='4'),
        ]

        results = await backend.send_message_batch(QUEUE_URL, entries)

        assert [r.client_token for r in results] == ['a', 'b', 'c', 'd']
        assert [r.ok for r in results] == [True, False, True, False]
        assert results[0].id == 'm-a'
        assert results[1].error_code == 'InvalidMessageContents'
        assert results[3].error_code == 'MissingResult'

        sent = sqs.send_message_batch.call_args.kwargs['Entries']
        assert sent[0] == {'Id': 'a', 'MessageBody': '1', 'DelaySeconds': 5}
        assert sent[1] == {'Id': 'b', 'MessageBody': '2'}

    @pytest.mark.asyncio
    async def test_send_message_batch_too_large(self, backend, sqs):
        """Test more than 10 entries are refused before calling SQS."""
        entries = [BatchEntry(client_token=str(i), body='1') for i in range(11)]

        with pytest.raises(ValueError, match="cannot exceed 10"):
            await backend.send_message_batch(QUEUE_URL, entries)

        sqs.send_message_batch.assert_not_awaited()


class TestReceiveAndDelete:
    """Test cases for receive, delete, purge and counts."""

    @pytest.mark.asyncio
    async def test_receive_messages(self, backend, sqs):
        """Test received messages are mapped to records."""
        sqs.receive_message.return_value = {
            'Messages': [
                {'MessageId': 'm-1', 'ReceiptHandle': 'r-1', 'MD5OfBody': 'md5', 'Body': '{"v":1}'},
            ]
        }

        messages = await backend.receive_messages(QUEUE_URL, 5, 20)

        assert len(messages) == 1
        assert messages[0].id == 'm-1'
        assert messages[0].body == '{"v":1}'
        assert messages[0].receipt_token == 'r-1'
        sqs.receive_message.assert_awaited_once_with(
            QueueUrl=QUEUE_URL, MaxNumberOfMessages=5, WaitTimeSeconds=20
        )

    @pytest.mark.asyncio
    async def test_receive_no_messages(self, backend, sqs):
        """Test an empty response yields an empty list."""
        sqs.receive_message.return_value = {}

        assert await backend.receive_messages(QUEUE_URL, 1, 0) == []

    @pytest.mark.asyncio
    async def test_delete_message(self, backend, sqs):
        """Test delete passes the receipt handle."""
        sqs.delete_message.return_value = {}

        await backend.delete_message(QUEUE_URL, 'r-1')

        sqs.delete_message.assert_awaited_once_with(QueueUrl=QUEUE_URL, ReceiptHandle='r-1')

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["ReceiptHandleIsInvalid", "InvalidParameterValue"])
    async def test_delete_invalid_receipt(self, backend, sqs, code):
        """Test rejected receipt handles map to InvalidReceipt."""
        sqs.delete_message.side_effect = client_error(code, "DeleteMessage")

        with pytest.raises(InvalidReceipt):
            await backend.delete_message(QUEUE_URL, 'r-1')

    @pytest.mark.asyncio
    async def test_purge_queue(self, backend, sqs):
        """Test purge targets the queue URL."""
        sqs.purge_queue.return_value = {}

        await backend.purge_queue(QUEUE_URL)

        sqs.purge_queue.assert_awaited_once_with(QueueUrl=QUEUE_URL)

    @pytest.mark.asyncio
    async def test_purge_in_progress(self, backend, sqs):
        """Test a purge rejected by SQS surfaces as BackendError."""
        sqs.purge_queue.side_effect = client_error(
            "AWS.SimpleQueueService.PurgeQueueInProgress", "PurgeQueue"
        )

        with pytest.raises(BackendError) as exc_info:
            await backend.purge_queue(QUEUE_URL)

        assert exc_info.value.code == "AWS.SimpleQueueService.PurgeQueueInProgress"

    @pytest.mark.asyncio
    async def test_approximate_counts(self, backend, sqs):
        """Test attribute strings are parsed into counts."""
        sqs.get_queue_attributes.return_value = {
            'Attributes': {
                'ApproximateNumberOfMessages': '4',
                'ApproximateNumberOfMessagesNotVisible': '2',
            }
        }

        counts = await backend.get_approximate_counts(QUEUE_URL)

        assert counts.visible == 4
        assert counts.in_flight == 2
        assert counts.total == 6
        assert sqs.get_queue_attributes.call_args.kwargs['AttributeNames'] == [
            'ApproximateNumberOfMessages',
            'ApproximateNumberOfMessagesNotVisible',
        ]

    @pytest.mark.asyncio
    async def test_counts_transport_error(self, backend, sqs):
        """Test connection failures map to BackendUnavailable."""
        sqs.get_queue_attributes.side_effect = EndpointConnectionError(endpoint_url=QUEUE_URL)

        with pytest.raises(BackendUnavailable):
            await backend.get_approximate_counts(QUEUE_URL)

"""
Module: sqs.py
Description: Amazon SQS backend for the queue client.

Performs the raw SQS calls (queue URL lookup, send, batch send,
receive, delete, purge, attribute lookup) through aioboto3 and maps
botocore failures onto the client's error taxonomy.

Key Components:
- SQSBackend: QueueBackend implementation over aioboto3
- Error translation: ClientError/BotoCoreError to BackendError subclasses

Dependencies: aioboto3, botocore, typing
"""

from typing import Any, Dict, List, Optional

from aioboto3 import Session
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config.settings import QueueSettings
from ..errors import BackendError, BackendUnavailable, InvalidReceipt
from ..models.message import (
    BatchEntry,
    BatchEntryResult,
    QueueCounts,
    ReceivedMessage,
    SendResult,
)
from ..utils.batch_helpers import validate_batch_size
from ..utils.logger import get_logger
from .base import QueueBackend

logger = get_logger(__name__)

API_VERSION = "2012-11-05"

UNAVAILABLE_ERROR_CODES = {
    # queue lookup
    "AWS.SimpleQueueService.NonExistentQueue",
    "QueueDoesNotExist",
    # credentials
    "InvalidClientTokenId",
    "UnrecognizedClientException",
    "SignatureDoesNotMatch",
    "InvalidSignatureException",
    "ExpiredToken",
    "AccessDenied",
    "AccessDeniedException",
    # transient service-side failures
    "ServiceUnavailable",
    "InternalError",
    "InternalFailure",
    "RequestThrottled",
    "ThrottlingException",
}

INVALID_RECEIPT_ERROR_CODES = {
    "ReceiptHandleIsInvalid",
    "InvalidParameterValue",
    "AWS.SimpleQueueService.ReceiptHandleIsInvalid",
}


def _error_code(e: ClientError) -> str:
    return e.response.get('Error', {}).get('Code', '')


def _error_message(e: ClientError) -> str:
    return e.response.get('Error', {}).get('Message', str(e))


class SQSBackend(QueueBackend):
    """
    SQS backend for queue operations.

    Opens a short-lived aioboto3 client per call. botocore's own retry
    handler is switched off so that each call reaches SQS at most once.

    Attributes:
        session: aioboto3 session holding credentials and region
        endpoint_url: Optional service endpoint override
    """

    def __init__(
        self,
        region_name: str = "us-east-1",
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        aws_session_token: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        read_timeout: int = 30
    ):
        """
        Initialize SQS backend.

        Args:
            region_name: AWS region of the queue
            aws_access_key_id: Access key ID; default credential chain when None
            aws_secret_access_key: Secret access key
            aws_session_token: Optional session token
            endpoint_url: Optional service endpoint override
            read_timeout: Socket read timeout; must exceed the 20s long-poll
        """
        if not region_name or not isinstance(region_name, str):
            raise ValueError("region_name must be a non-empty string")

        self.region_name = region_name
        self.endpoint_url = endpoint_url
        self.session = Session(
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            aws_session_token=aws_session_token,
            region_name=region_name
        )
        self.client_config = Config(
            read_timeout=read_timeout,
            connect_timeout=5,
            retries={"total_max_attempts": 1, "mode": "standard"}
        )

        logger.info(
            "SQS backend initialized",
            region=region_name,
            endpoint_url=endpoint_url
        )

    @classmethod
    def from_settings(cls, settings: QueueSettings) -> "SQSBackend":
        """Build a backend from queue settings."""
        return cls(
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            aws_session_token=settings.aws_session_token,
            endpoint_url=settings.endpoint_url,
            read_timeout=settings.read_timeout
        )

    def _client(self):
        return self.session.client(
            'sqs',
            api_version=API_VERSION,
            endpoint_url=self.endpoint_url,
            config=self.client_config
        )

    def _translate_error(self, e: Exception, operation: str, **context: Any) -> BackendError:
        """Log a failed SQS call and return the matching client error."""
        if isinstance(e, ClientError):
            code = _error_code(e)
            message = _error_message(e)
            logger.error(
                "SQS request failed",
                operation=operation,
                error_code=code,
                error_message=message,
                **context
            )
            if operation == "delete_message" and code in INVALID_RECEIPT_ERROR_CODES:
                return InvalidReceipt(f"Receipt token rejected: {message}", code=code, cause=e)
            if code in UNAVAILABLE_ERROR_CODES:
                return BackendUnavailable(f"SQS {operation} unavailable: {message}", code=code, cause=e)
            return BackendError(f"SQS {operation} failed: {message}", code=code, cause=e)

        logger.error(
            "SQS transport error",
            operation=operation,
            error=str(e),
            error_type=type(e).__name__,
            **context
        )
        return BackendUnavailable(f"SQS {operation} unavailable: {e}", cause=e)

    async def resolve_endpoint(self, queue_name: str) -> str:
        """
        Look up the URL of a queue by name.

        Raises:
            BackendUnavailable: If the queue does not exist, credentials are
                rejected or SQS cannot be reached
        """
        try:
            async with self._client() as sqs:
                response = await sqs.get_queue_url(QueueName=queue_name)
        except (ClientError, BotoCoreError) as e:
            error = self._translate_error(e, "get_queue_url", queue_name=queue_name)
            if not isinstance(error, BackendUnavailable):
                error = BackendUnavailable(str(error), code=error.code, cause=e)
            raise error from e

        queue_url = response['QueueUrl']
        logger.debug("Queue URL resolved", queue_name=queue_name, queue_url=queue_url)
        return queue_url

    async def send_message(
        self,
        endpoint: str,
        body: str,
        delay_seconds: Optional[int] = None
    ) -> SendResult:
        """Send one message to the queue."""
        params: Dict[str, Any] = {'QueueUrl': endpoint, 'MessageBody': body}
        if delay_seconds is not None:
            params['DelaySeconds'] = delay_seconds

        try:
            async with self._client() as sqs:
                response = await sqs.send_message(**params)
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e, "send_message", queue_url=endpoint) from e

        logger.debug("Message sent to SQS", message_id=response['MessageId'], queue_url=endpoint)
        return SendResult(id=response['MessageId'], digest=response['MD5OfMessageBody'])

    async def send_message_batch(self, endpoint: str, entries: List[BatchEntry]) -> List[BatchEntryResult]:
        """
        Send up to 10 messages in one call.

        Returns:
            One result per entry in the order of entries; entries SQS did
            not report on are returned as failed
        """
        validate_batch_size(entries)

        request_entries = []
        for entry in entries:
            request_entry = {'Id': entry.client_token, 'MessageBody': entry.body}
            if entry.delay_seconds is not None:
                request_entry['DelaySeconds'] = entry.delay_seconds
            request_entries.append(request_entry)

        try:
            async with self._client() as sqs:
                response = await sqs.send_message_batch(QueueUrl=endpoint, Entries=request_entries)
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(
                e, "send_message_batch", queue_url=endpoint, count=len(entries)
            ) from e

        results: Dict[str, BatchEntryResult] = {}
        for item in response.get('Successful', []):
            results[item['Id']] = BatchEntryResult(
                client_token=item['Id'],
                id=item['MessageId'],
                digest=item['MD5OfMessageBody']
            )
        for item in response.get('Failed', []):
            results[item['Id']] = BatchEntryResult(
                client_token=item['Id'],
                error_code=item.get('Code', 'Unknown'),
                error_message=item.get('Message')
            )

        failed = len(response.get('Failed', []))
        if failed:
            logger.warning(
                "SQS batch send partially failed",
                queue_url=endpoint,
                count=len(entries),
                failed=failed
            )

        return [
            results.get(entry.client_token) or BatchEntryResult(
                client_token=entry.client_token,
                error_code="MissingResult",
                error_message="SQS returned no result for this entry"
            )
            for entry in entries
        ]

    async def receive_messages(self, endpoint: str, max_count: int, wait_seconds: int) -> List[ReceivedMessage]:
        """Receive up to max_count messages, long-polling for wait_seconds."""
        try:
            async with self._client() as sqs:
                response = await sqs.receive_message(
                    QueueUrl=endpoint,
                    MaxNumberOfMessages=max_count,
                    WaitTimeSeconds=wait_seconds
                )
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e, "receive_message", queue_url=endpoint) from e

        return [
            ReceivedMessage(
                id=item['MessageId'],
                body=item['Body'],
                digest=item['MD5OfBody'],
                receipt_token=item['ReceiptHandle']
            )
            for item in response.get('Messages', [])
        ]

    async def delete_message(self, endpoint: str, receipt_token: str) -> None:
        """
        Delete an in-flight message.

        Raises:
            InvalidReceipt: If SQS rejects the receipt handle
        """
        try:
            async with self._client() as sqs:
                await sqs.delete_message(QueueUrl=endpoint, ReceiptHandle=receipt_token)
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e, "delete_message", queue_url=endpoint) from e

    async def purge_queue(self, endpoint: str) -> None:
        """Purge every message from the queue."""
        try:
            async with self._client() as sqs:
                await sqs.purge_queue(QueueUrl=endpoint)
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e, "purge_queue", queue_url=endpoint) from e

        logger.info("SQS queue purged", queue_url=endpoint)

    async def get_approximate_counts(self, endpoint: str) -> QueueCounts:
        """Return approximate visible and in-flight message counts."""
        try:
            async with self._client() as sqs:
                response = await sqs.get_queue_attributes(
                    QueueUrl=endpoint,
                    AttributeNames=[
                        'ApproximateNumberOfMessages',
                        'ApproximateNumberOfMessagesNotVisible'
                    ]
                )
        except (ClientError, BotoCoreError) as e:
            raise self._translate_error(e, "get_queue_attributes", queue_url=endpoint) from e

        attributes = response.get('Attributes', {})
        return QueueCounts(
            visible=int(attributes.get('ApproximateNumberOfMessages', 0)),
            in_flight=int(attributes.get('ApproximateNumberOfMessagesNotVisible', 0))
        )

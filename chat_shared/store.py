"""
DynamoDB store adapter.

This module wraps the boto3 low-level DynamoDB client with exactly the
primitives the Chat Service needs:
- point get by key
- put (full overwrite) by key
- partition query with sort-key prefix, descending order and a limit
- batch get by explicit keys with attribute projection
- equality query on a global secondary index

The low-level client is used (rather than the Table resource) so attribute
type tags reach the codec untouched. Every botocore failure is surfaced as
StorageError; nothing is retried here beyond botocore's own retry policy.
"""

from typing import Any, Dict, Iterable, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from chat_shared.codec import describe_key
from chat_shared.errors import StorageError
from chat_shared.types import AttributeValue, Item


# DynamoDB BatchGetItem accepts at most 100 keys per request
BATCH_GET_LIMIT = 100

# Rounds of UnprocessedKeys follow-up before giving up on a batch
MAX_UNPROCESSED_ROUNDS = 5


def create_dynamodb_client(config: Dict[str, Any]):
    """
    Create the boto3 DynamoDB client described by the service configuration.

    Args:
        config: Output of chat_shared.config.load_config

    Returns:
        boto3 low-level DynamoDB client
    """
    return boto3.client(
        'dynamodb',
        region_name=config['aws_region'],
        endpoint_url=config.get('endpoint_url'),
        config=Config(retries={'mode': 'standard'})
    )


def _projection(fields: Iterable[str]) -> Dict[str, Any]:
    """
    Build ProjectionExpression parameters.

    Every field goes through a placeholder because attributes such as
    'name' are DynamoDB reserved words.
    """
    names = {f'#p{i}': field for i, field in enumerate(fields)}
    return {
        'ProjectionExpression': ','.join(names.keys()),
        'ExpressionAttributeNames': names,
    }


class DynamoDBStore:
    """
    Key-value store over one boto3 DynamoDB client.

    The client is the only state held; boto3 clients are thread-safe, so a
    single store may serve concurrent requests.
    """

    def __init__(self, client):
        self.client = client

    def _call(self, operation: str, context: str, **params: Any) -> Dict[str, Any]:
        try:
            return getattr(self.client, operation)(**params)
        except (ClientError, BotoCoreError) as error:
            raise StorageError(operation, debug=f'{operation} {context}: {error!r}') from error

    def get_item(
        self,
        table: str,
        key: Item,
        projection: Optional[List[str]] = None
    ) -> Optional[Item]:
        """
        Fetch one item by its full primary key.

        Returns:
            The item, or None when no item has that key
        """
        params: Dict[str, Any] = {'TableName': table, 'Key': key}
        if projection:
            params.update(_projection(projection))

        response = self._call('get_item', f'{table} {describe_key(key)}', **params)
        return response.get('Item')

    def put_item(self, table: str, item: Item) -> None:
        """Write an item, overwriting any existing item with the same key."""
        self._call('put_item', table, TableName=table, Item=item)

    def query_prefix(
        self,
        table: str,
        partition_field: str,
        partition_value: AttributeValue,
        sort_field: str,
        prefix: str,
        limit: int,
        descending: bool = True
    ) -> List[Item]:
        """
        Query one partition for sort keys starting with a prefix.

        Only the first page is read: callers ask for the latest N items.
        """
        response = self._call(
            'query',
            f'{table} {partition_field}={partition_value}',
            TableName=table,
            KeyConditionExpression='#pk = :pk AND begins_with(#sk, :prefix)',
            ExpressionAttributeNames={'#pk': partition_field, '#sk': sort_field},
            ExpressionAttributeValues={':pk': partition_value, ':prefix': {'S': prefix}},
            ScanIndexForward=not descending,
            Limit=limit
        )
        return response.get('Items', [])

    def batch_get(
        self,
        table: str,
        keys: List[Item],
        projection: Optional[List[str]] = None
    ) -> List[Item]:
        """
        Fetch many items by key.

        Keys are sent in chunks of BATCH_GET_LIMIT. Keys DynamoDB reports as
        unprocessed are requested again, up to MAX_UNPROCESSED_ROUNDS times.
        Items come back in no particular order.

        Raises:
            ValueError: If keys is empty (DynamoDB rejects empty batches)
            StorageError: If the call fails or keys stay unprocessed
        """
        if not keys:
            raise ValueError('batch_get requires at least one key')

        extra = _projection(projection) if projection else {}
        items: List[Item] = []

        for start in range(0, len(keys), BATCH_GET_LIMIT):
            request = {table: {'Keys': keys[start:start + BATCH_GET_LIMIT], **extra}}

            for _ in range(MAX_UNPROCESSED_ROUNDS):
                response = self._call(
                    'batch_get_item',
                    f'{table} ({len(request[table]["Keys"])} keys)',
                    RequestItems=request
                )
                items.extend(response.get('Responses', {}).get(table, []))

                request = response.get('UnprocessedKeys') or {}
                if not request.get(table, {}).get('Keys'):
                    break
            else:
                raise StorageError(
                    'batch_get_item',
                    debug=f'batch_get_item {table}: keys still unprocessed after '
                          f'{MAX_UNPROCESSED_ROUNDS} rounds'
                )

        return items

    def query_index(
        self,
        table: str,
        index: str,
        field: str,
        value: AttributeValue,
        projection: Optional[List[str]] = None
    ) -> List[Item]:
        """Query a global secondary index for items whose field equals value."""
        names = {'#k': field}
        params: Dict[str, Any] = {
            'TableName': table,
            'IndexName': index,
            'KeyConditionExpression': '#k = :v',
            'ExpressionAttributeValues': {':v': value},
        }
        if projection:
            extra = _projection(projection)
            params['ProjectionExpression'] = extra['ProjectionExpression']
            names.update(extra['ExpressionAttributeNames'])
        params['ExpressionAttributeNames'] = names

        response = self._call('query', f'{table}/{index} {field}', **params)
        return response.get('Items', [])

"""
Shared fixtures for Chat Service tests.

FakeDynamoDBClient implements the subset of the boto3 low-level DynamoDB
client the store adapter calls (get_item, put_item, query, batch_get_item)
over in-memory tables, and records every call so tests can assert on the
requests made.
"""

import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from chat_shared.metrics import MetricsClient
from chat_shared.repository import ChatRepository
from chat_shared.service import ChatService
from chat_shared.store import DynamoDBStore


MESSAGES_TABLE = 'messages'
USERS_TABLE = 'users'

KEY_SCHEMA = {
    MESSAGES_TABLE: ['room_id', 'sort'],
    USERS_TABLE: ['user_id'],
}


def _scalar(value: Dict[str, str]) -> str:
    return next(iter(value.values()))


def _project(item: Dict[str, Any], params: Dict[str, Any]) -> Dict[str, Any]:
    expression = params.get('ProjectionExpression')
    if not expression:
        return copy.deepcopy(item)

    names = params.get('ExpressionAttributeNames', {})
    fields = [names.get(token, token) for token in expression.split(',')]
    return {field: copy.deepcopy(item[field]) for field in fields if field in item}


class FakeDynamoDBClient:
    """In-memory stand-in for boto3.client('dynamodb')."""

    def __init__(self, key_schema: Optional[Dict[str, List[str]]] = None):
        self.key_schema = key_schema or KEY_SCHEMA
        self.tables: Dict[str, Dict[tuple, Dict[str, Any]]] = {
            name: {} for name in self.key_schema
        }
        self.calls: List[tuple] = []
        # Number of batch_get_item responses that report every key unprocessed
        self.unprocessed_rounds = 0

    def _key_of(self, table: str, item: Dict[str, Any]) -> tuple:
        return tuple(_scalar(item[field]) for field in self.key_schema[table])

    def calls_to(self, operation: str) -> List[Dict[str, Any]]:
        return [params for name, params in self.calls if name == operation]

    def get_item(self, **params: Any) -> Dict[str, Any]:
        self.calls.append(('get_item', params))
        table = params['TableName']
        item = self.tables[table].get(self._key_of(table, params['Key']))
        if item is None:
            return {}
        return {'Item': _project(item, params)}

    def put_item(self, **params: Any) -> Dict[str, Any]:
        self.calls.append(('put_item', params))
        table = params['TableName']
        item = copy.deepcopy(params['Item'])
        self.tables[table][self._key_of(table, item)] = item
        return {}

    def query(self, **params: Any) -> Dict[str, Any]:
        self.calls.append(('query', params))
        table = params['TableName']
        names = params['ExpressionAttributeNames']
        values = params['ExpressionAttributeValues']
        items = list(self.tables[table].values())

        if 'IndexName' in params:
            field = names['#k']
            matches = [item for item in items if item.get(field) == values[':v']]
        else:
            partition, sort = names['#pk'], names['#sk']
            prefix = values[':prefix']['S']
            matches = [
                item for item in items
                if item.get(partition) == values[':pk']
                and item[sort]['S'].startswith(prefix)
            ]
            matches.sort(
                key=lambda item: item[sort]['S'],
                reverse=not params.get('ScanIndexForward', True)
            )

        if 'Limit' in params:
            matches = matches[:params['Limit']]

        projected = [_project(item, params) for item in matches]
        return {'Items': projected, 'Count': len(projected)}

    def batch_get_item(self, **params: Any) -> Dict[str, Any]:
        self.calls.append(('batch_get_item', params))
        request_items = params['RequestItems']

        if self.unprocessed_rounds > 0:
            self.unprocessed_rounds -= 1
            return {'Responses': {}, 'UnprocessedKeys': copy.deepcopy(request_items)}

        responses = {}
        for table, request in request_items.items():
            found = []
            for key in request['Keys']:
                item = self.tables[table].get(self._key_of(table, key))
                if item is not None:
                    found.append(_project(item, request))
            # DynamoDB makes no ordering promise; reverse to catch reliance on it
            responses[table] = list(reversed(found))

        return {'Responses': responses, 'UnprocessedKeys': {}}


class FakeCloudWatch:
    """Records put_metric_data calls."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.batches: List[Dict[str, Any]] = []

    def put_metric_data(self, **params: Any) -> Dict[str, Any]:
        if self.fail:
            raise RuntimeError('cloudwatch unavailable')
        self.batches.append(params)
        return {}


@pytest.fixture
def config() -> Dict[str, Any]:
    return {
        'messages_table_name': MESSAGES_TABLE,
        'users_table_name': USERS_TABLE,
        'users_name_index': 'name-index',
        'aws_region': 'us-east-1',
        'endpoint_url': None,
        'message_page_limit': 50,
    }


@pytest.fixture
def client() -> FakeDynamoDBClient:
    return FakeDynamoDBClient()


@pytest.fixture
def store(client) -> DynamoDBStore:
    return DynamoDBStore(client)


@pytest.fixture
def repository(store, config) -> ChatRepository:
    return ChatRepository(store, config)


@pytest.fixture
def cloudwatch() -> FakeCloudWatch:
    return FakeCloudWatch()


@pytest.fixture
def service(repository, config, cloudwatch) -> ChatService:
    ids = iter(str(n) for n in range(1000, 2000))
    return ChatService(
        config,
        repository=repository,
        clock=lambda: datetime(2023, 1, 3, 12, 0, 0, tzinfo=timezone.utc),
        id_factory=lambda: next(ids),
        metrics_factory=lambda op: MetricsClient(op, cloudwatch=cloudwatch)
    )

"""
Configuration loading for the Chat Service.

Configuration is read once at startup from environment variables and
validated immediately, so a misconfigured deployment fails on boot rather
than on the first request.
"""

import os
from typing import Any, Dict, Mapping, Optional


REQUIRED_VARS = ['MESSAGES_TABLE_NAME', 'USERS_TABLE_NAME']

DEFAULTS = {
    'users_name_index': 'name-index',
    'aws_region': 'us-east-1',
    'message_page_limit': '50',
}

# Largest page DynamoDB is asked for in a single listing
MAX_PAGE_LIMIT = 100


def load_config(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Load and validate environment variables.

    Args:
        environ: Mapping to read from (default: os.environ)

    Returns:
        Configuration dictionary with snake_case keys:
            - messages_table_name: Table holding rooms, messages and the ledger
            - users_table_name: Table holding users
            - users_name_index: GSI on users.name
            - aws_region: Region for the DynamoDB client
            - endpoint_url: Local DynamoDB endpoint, or None for AWS
            - message_page_limit: Default number of messages per listing

    Raises:
        ValueError: If a required variable is missing or a value is invalid
    """
    if environ is None:
        environ = os.environ

    config: Dict[str, Any] = {}
    missing_vars = []

    for var in REQUIRED_VARS:
        value = environ.get(var)
        if not value:
            missing_vars.append(var)
        else:
            config[var.lower()] = value

    if missing_vars:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing_vars)}"
        )

    for key, default in DEFAULTS.items():
        config[key] = environ.get(key.upper()) or default

    # DB_HOSTNAME points the client at a DynamoDB Local container
    hostname = environ.get('DB_HOSTNAME')
    config['endpoint_url'] = f'http://{hostname}:8000' if hostname else None

    try:
        limit = int(config['message_page_limit'])
    except ValueError:
        raise ValueError(
            f"MESSAGE_PAGE_LIMIT must be an integer, got '{config['message_page_limit']}'"
        )
    if not 1 <= limit <= MAX_PAGE_LIMIT:
        raise ValueError(f'MESSAGE_PAGE_LIMIT must be between 1 and {MAX_PAGE_LIMIT}')
    config['message_page_limit'] = limit

    return config

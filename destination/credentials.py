"""Service account credentials for the Google Calendar API."""
import json
import logging
from typing import Mapping

import boto3
from botocore.exceptions import ClientError
from google.oauth2 import service_account

from processor.errors import ConfigurationError

logger = logging.getLogger(__name__)

SCOPES = ['https://www.googleapis.com/auth/calendar']
TOKEN_URI = 'https://oauth2.googleapis.com/token'


def load_credentials(environ: Mapping[str, str]):
    """
    Load service account credentials from the environment.

    GOOGLE_CREDENTIALS_SECRET_ID names a Secrets Manager secret holding
    the service account JSON. Without it, GOOGLE_CLIENT_EMAIL and
    GOOGLE_PRIVATE_KEY are used.

    Args:
        environ: Environment variables

    Returns:
        google.oauth2.service_account.Credentials

    Raises:
        ConfigurationError: If no usable credentials are configured
    """
    secret_id = environ.get('GOOGLE_CREDENTIALS_SECRET_ID')
    if secret_id:
        info = _read_secret(secret_id)
    else:
        client_email = environ.get('GOOGLE_CLIENT_EMAIL')
        private_key = environ.get('GOOGLE_PRIVATE_KEY')
        if not client_email or not private_key:
            raise ConfigurationError(
                "GOOGLE_CLIENT_EMAIL and GOOGLE_PRIVATE_KEY must be set"
            )
        info = {
            'client_email': client_email,
            # Keys stored in env files usually carry escaped newlines
            'private_key': private_key.replace('\\n', '\n'),
            'token_uri': TOKEN_URI,
        }

    try:
        credentials = service_account.Credentials.from_service_account_info(
            info, scopes=SCOPES
        )
    except (ValueError, KeyError) as e:
        raise ConfigurationError(f"Invalid service account credentials: {e}") from e

    logger.info(f"Loaded credentials for {credentials.service_account_email}")
    return credentials


def _read_secret(secret_id: str) -> dict:
    """Read a service account JSON document from Secrets Manager."""
    client = boto3.client('secretsmanager')
    try:
        response = client.get_secret_value(SecretId=secret_id)
    except ClientError as e:
        raise ConfigurationError(f"Error reading secret {secret_id}: {e}") from e

    try:
        info = json.loads(response['SecretString'])
    except (KeyError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Secret {secret_id} is not service account JSON") from e

    info.setdefault('token_uri', TOKEN_URI)
    return info

"""
Optionally load environment variables from AWS Secrets Manager before Django settings
are loaded. Import this module first in manage.py, asgi.py and wsgi.py so os.environ is
populated before clip_relay.settings and realtime.config read it.

Secret name: set RELAY_SECRET_NAME (e.g. "clip-relay/prod"). When it is unset nothing
is fetched, which is the normal case for local runs and tests.
Uses setdefault so existing env vars (e.g. from the container definition) override
secret values.
"""
import json
import logging
import os

import boto3

logger = logging.getLogger(__name__)


def load_secrets_from_aws(secret_name: str, region: str | None = None) -> int:
    client = boto3.client("secretsmanager", region_name=region or os.environ.get("AWS_REGION", "us-east-2"))
    response = client.get_secret_value(SecretId=secret_name)
    secret_str = response.get("SecretString")
    if not secret_str:
        raise RuntimeError(f"Secret {secret_name!r} has no SecretString")
    data = json.loads(secret_str)
    loaded = 0
    for key, value in data.items():
        if value is not None:
            os.environ.setdefault(key, str(value))
            loaded += 1
    return loaded


_secret_name = os.environ.get("RELAY_SECRET_NAME", "").strip()
if _secret_name:
    load_secrets_from_aws(_secret_name)

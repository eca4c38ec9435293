from __future__ import annotations

import json
import os

import boto3
import pytest

from clip_relay.env_bootstrap import load_secrets_from_aws


class FakeSecretsClient:
    def __init__(self, secret_string):
        self.secret_string = secret_string
        self.requested = []

    def get_secret_value(self, SecretId):
        self.requested.append(SecretId)
        return {"SecretString": self.secret_string}


@pytest.fixture
def env(monkeypatch):
    environ = {}
    monkeypatch.setattr(os, "environ", environ)
    return environ


@pytest.fixture
def fake_client(monkeypatch):
    holder = {}

    def factory(service, region_name=None):
        assert service == "secretsmanager"
        holder["region"] = region_name
        return holder["client"]

    monkeypatch.setattr(boto3, "client", factory)
    return holder


def test_loads_values_into_environment(env, fake_client):
    fake_client["client"] = FakeSecretsClient(json.dumps({"DJANGO_SECRET_KEY": "s3cret", "RELAY_HISTORY_LIMIT": 5}))

    assert load_secrets_from_aws("clip-relay/test", region="eu-west-1") == 2
    assert fake_client["region"] == "eu-west-1"
    assert fake_client["client"].requested == ["clip-relay/test"]
    assert env["DJANGO_SECRET_KEY"] == "s3cret"
    assert env["RELAY_HISTORY_LIMIT"] == "5"


def test_region_falls_back_to_environment(env, fake_client):
    env["AWS_REGION"] = "ap-south-1"
    fake_client["client"] = FakeSecretsClient("{}")
    load_secrets_from_aws("clip-relay/test")
    assert fake_client["region"] == "ap-south-1"


def test_existing_environment_wins(env, fake_client):
    env["DJANGO_SECRET_KEY"] = "from-container"
    fake_client["client"] = FakeSecretsClient(json.dumps({"DJANGO_SECRET_KEY": "from-secret"}))

    load_secrets_from_aws("clip-relay/test")

    assert env["DJANGO_SECRET_KEY"] == "from-container"


def test_null_values_are_skipped(env, fake_client):
    fake_client["client"] = FakeSecretsClient(json.dumps({"REDIS_URL": None}))

    assert load_secrets_from_aws("clip-relay/test") == 0
    assert "REDIS_URL" not in env


def test_empty_secret_string(env, fake_client):
    fake_client["client"] = FakeSecretsClient("")
    with pytest.raises(RuntimeError):
        load_secrets_from_aws("clip-relay/test")

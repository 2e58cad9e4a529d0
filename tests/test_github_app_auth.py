import hashlib
import hmac
from types import SimpleNamespace

import pytest
from githubkit.exception import GitHubException

from integrations.github.app_auth import GitHubAppClientFactory
from integrations.github.graphql import GitHubApiError, GitHubGraphQLClient
from integrations.github.webhooks import SignatureMismatch, SignatureMissing, verify_signature


def _github(create_token):
    return SimpleNamespace(rest=SimpleNamespace(apps=SimpleNamespace(create_installation_access_token=create_token)))


def test_factory_builds_client_with_installation_token():
    requested = []

    def create_token(installation_id):
        requested.append(installation_id)
        return SimpleNamespace(parsed_data=SimpleNamespace(token="ghs_token"))

    factory = GitHubAppClientFactory("1", "PEM", github=_github(create_token))

    client = factory("42")

    assert isinstance(client, GitHubGraphQLClient)
    assert requested == [42]
    assert factory.installation_token(7) == "ghs_token"


def test_factory_wraps_token_errors():
    def create_token(installation_id):
        raise GitHubException("bad installation")

    factory = GitHubAppClientFactory("1", "PEM", github=_github(create_token))

    with pytest.raises(GitHubApiError, match="installation 42"):
        factory("42")


def test_factory_requires_credentials():
    with pytest.raises(RuntimeError):
        GitHubAppClientFactory("", "PEM")


def test_verify_signature():
    body = b'{"action": "edited"}'
    signature = "sha256=" + hmac.new(b"secret", body, hashlib.sha256).hexdigest()

    verify_signature("secret", body, signature)

    with pytest.raises(SignatureMissing):
        verify_signature("secret", body, None)
    with pytest.raises(SignatureMismatch):
        verify_signature("other", body, signature)

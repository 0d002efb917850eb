from typing import Any
from unittest.mock import Mock

import pytest
import requests

from wpcomposer.errors import InvalidArgumentError, RegistryLookupError
from wpcomposer.manifest import PLUGIN, THEME
from wpcomposer.registry import WordPressOrgRegistry, is_known_remote_dependency


def make_response(status: int, payload: Any = None, bad_json: bool = False) -> Mock:
    response = Mock()
    response.status_code = status
    if bad_json:
        response.json.side_effect = ValueError("Expecting value")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session() -> Mock:
    return Mock(spec=requests.Session)


@pytest.fixture
def registry(session: Mock) -> WordPressOrgRegistry:
    return WordPressOrgRegistry(session=session, timeout=2)


def test_published_plugin(registry: WordPressOrgRegistry, session: Mock) -> None:
    session.get.return_value = make_response(200, {"name": "Akismet", "slug": "akismet"})
    assert registry.lookup("akismet", PLUGIN) is True

    url = session.get.call_args.args[0]
    kwargs = session.get.call_args.kwargs
    assert "api.wordpress.org/plugins/info" in url
    assert kwargs["params"] == {"action": "plugin_information", "request[slug]": "akismet"}
    assert kwargs["timeout"] == 2


def test_theme_uses_theme_endpoint(registry: WordPressOrgRegistry, session: Mock) -> None:
    session.get.return_value = make_response(200, {"slug": "astra"})
    assert registry.lookup("astra", THEME) is True
    assert "api.wordpress.org/themes/info" in session.get.call_args.args[0]
    assert session.get.call_args.kwargs["params"]["action"] == "theme_information"


@pytest.mark.parametrize(
    "response",
    [
        make_response(404, {"error": "Plugin not found."}),
        make_response(200, {"error": "Plugin not found."}),
        make_response(200, False),
    ],
)
def test_unpublished_plugin(registry: WordPressOrgRegistry, session: Mock, response: Mock) -> None:
    session.get.return_value = response
    assert registry.lookup("in-house-plugin", PLUGIN) is False


def test_answers_are_cached(registry: WordPressOrgRegistry, session: Mock) -> None:
    session.get.return_value = make_response(200, {"slug": "akismet"})
    registry.lookup("akismet", PLUGIN)
    registry.is_available("akismet", PLUGIN)
    assert session.get.call_count == 1


@pytest.mark.parametrize(
    "outcome",
    [
        requests.ConnectionError("unreachable"),
        requests.Timeout("timed out"),
        make_response(503),
        make_response(200, bad_json=True),
        make_response(200, ["unexpected"]),
    ],
)
def test_lookup_failures(registry: WordPressOrgRegistry, session: Mock, outcome: Any) -> None:
    if isinstance(outcome, Exception):
        session.get.side_effect = outcome
    else:
        session.get.return_value = outcome

    with pytest.raises(RegistryLookupError):
        registry.lookup("akismet", PLUGIN)
    # degrades instead of aborting
    assert registry.is_available("akismet", PLUGIN) is False


def test_failures_are_not_cached(registry: WordPressOrgRegistry, session: Mock) -> None:
    session.get.side_effect = [
        requests.ConnectionError("unreachable"),
        make_response(200, {"slug": "akismet"}),
    ]
    assert registry.is_available("akismet", PLUGIN) is False
    assert registry.is_available("akismet", PLUGIN) is True


def test_unknown_kind(registry: WordPressOrgRegistry) -> None:
    with pytest.raises(InvalidArgumentError):
        registry.lookup("akismet", "widget")


def test_module_helper(session: Mock) -> None:
    session.get.return_value = make_response(200, {"slug": "hello-dolly"})
    registry = WordPressOrgRegistry(session=session)
    assert is_known_remote_dependency("hello-dolly", PLUGIN, registry) is True

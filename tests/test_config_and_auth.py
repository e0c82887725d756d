import os
import unittest
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError

from typed_dialogflow.core.auth import (
    DIALOGFLOW_SCOPES,
    GoogleTokenSource,
    StaticTokenSource,
    resolve_token_source,
)
from typed_dialogflow.core.config import DEFAULT_API_BASE_URL, Settings, get_settings
from typed_dialogflow.core.errors import AuthenticationError, ConfigurationError


class SettingsTests(unittest.TestCase):
    def setUp(self):
        get_settings.cache_clear()

    def tearDown(self):
        get_settings.cache_clear()

    @patch.dict(os.environ, {}, clear=False)
    def test_defaults(self):
        s = Settings()
        self.assertEqual(s.dialogflow_project_id, "")
        self.assertEqual(s.dialogflow_session_id, "dev")
        self.assertEqual(s.dialogflow_language_code, "en")
        self.assertEqual(s.dialogflow_api_base_url, DEFAULT_API_BASE_URL)
        self.assertEqual(s.dialogflow_timeout_seconds, 8.0)
        self.assertIsNone(s.dialogflow_geolocation)
        self.assertEqual(s.validate_required_config(), [])

    @patch.dict(
        os.environ,
        {
            "DIALOGFLOW_PROJECT_ID": "my-project",
            "DIALOGFLOW_LANGUAGE_CODE": "pt-BR",
            "DIALOGFLOW_TIMEOUT_SECONDS": "1.5",
            "DIALOGFLOW_GEOLOCATION": "-23.55, -46.63",
        },
        clear=False,
    )
    def test_reads_environment(self):
        s = Settings()
        self.assertEqual(s.dialogflow_project_id, "my-project")
        self.assertEqual(s.dialogflow_language_code, "pt-BR")
        self.assertEqual(s.dialogflow_timeout_seconds, 1.5)
        self.assertEqual(s.dialogflow_geolocation, (-23.55, -46.63))

    @patch.dict(os.environ, {"DIALOGFLOW_LANGUAGE": "lt"}, clear=False)
    def test_language_alias(self):
        self.assertEqual(Settings().dialogflow_language_code, "lt")

    @patch.dict(os.environ, {"DIALOGFLOW_GEOLOCATION": "[48.85, 2.35]"}, clear=False)
    def test_geolocation_json_list(self):
        self.assertEqual(Settings().dialogflow_geolocation, (48.85, 2.35))

    def test_invalid_language_code(self):
        with self.assertRaises(ValidationError):
            Settings(dialogflow_language_code="not a language")

    def test_invalid_geolocation(self):
        for raw in ("91,0", "0,181", "1,2,3", "north,east"):
            with self.subTest(raw=raw):
                with self.assertRaises(ValidationError):
                    Settings(dialogflow_geolocation_raw=raw)

    def test_non_positive_timeout(self):
        with self.assertRaises(ValidationError):
            Settings(dialogflow_timeout_seconds=0)

    def test_validate_required_config_reports_problems(self):
        s = Settings(
            dialogflow_access_token="token",
            dialogflow_session_id=" ",
            dialogflow_api_base_url="ftp://example.test",
        )
        errors = s.validate_required_config()
        self.assertEqual(len(errors), 3)
        self.assertTrue(any("DIALOGFLOW_PROJECT_ID" in e for e in errors))

    @patch.dict(os.environ, {"DIALOGFLOW_SESSION_ID": "first"}, clear=False)
    def test_get_settings_is_cached(self):
        first = get_settings()
        with patch.dict(os.environ, {"DIALOGFLOW_SESSION_ID": "second"}):
            self.assertIs(get_settings(), first)
            get_settings.cache_clear()
            self.assertEqual(get_settings().dialogflow_session_id, "second")


@pytest.mark.asyncio
async def test_static_token_source():
    assert await StaticTokenSource("abc")() == "abc"


def test_static_token_source_rejects_empty_token():
    with pytest.raises(ConfigurationError):
        StaticTokenSource("")


def test_resolve_token_source():
    assert isinstance(
        resolve_token_source(Settings(dialogflow_access_token="abc", dialogflow_project_id="p")),
        StaticTokenSource,
    )
    assert isinstance(resolve_token_source(Settings()), GoogleTokenSource)


@pytest.mark.asyncio
async def test_google_token_source_refreshes_every_call():
    credentials = MagicMock()
    credentials.token = "fresh-token"

    with patch("google.auth.default", return_value=(credentials, "adc-project")) as default:
        source = GoogleTokenSource()
        assert await source() == "fresh-token"
        assert await source() == "fresh-token"

    assert default.call_count == 2
    assert credentials.refresh.call_count == 2
    default.assert_called_with(scopes=list(DIALOGFLOW_SCOPES))


@pytest.mark.asyncio
async def test_google_token_source_without_credentials():
    from google.auth.exceptions import DefaultCredentialsError

    with patch("google.auth.default", side_effect=DefaultCredentialsError("no ADC")):
        with pytest.raises(AuthenticationError, match="no ADC"):
            await GoogleTokenSource()()


@pytest.mark.asyncio
async def test_google_token_source_empty_token():
    credentials = MagicMock()
    credentials.token = None

    with patch("google.auth.default", return_value=(credentials, None)):
        with pytest.raises(AuthenticationError):
            await GoogleTokenSource()()

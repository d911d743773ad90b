# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for property placeholder resolution in Config values."""

import pytest

from doublecsrf.core.config import Config


class TestPlaceholderResolution:
    """Config.get() should resolve ${...} placeholders in string values."""

    def test_resolve_env_var(self, monkeypatch):
        monkeypatch.setenv("CSRF_SIGNING_KEY", "s3cret")
        config = Config({"doublecsrf": {"csrf": {"cookie_signing_secret": "${CSRF_SIGNING_KEY}"}}})
        assert config.get("doublecsrf.csrf.cookie_signing_secret") == "s3cret"

    def test_resolve_config_reference(self):
        config = Config({
            "app": {"prefix": "__Host-"},
            "cookie": "${app.prefix}csrf",
        })
        assert config.get("cookie") == "__Host-csrf"

    def test_resolve_with_default(self):
        config = Config({"key": "${MISSING_CSRF_VAR:fallback_value}"})
        assert config.get("key") == "fallback_value"

    def test_resolve_nested(self):
        config = Config({
            "base": "example.com",
            "domain": "${base}",
            "origin": "https://${domain}",
        })
        assert config.get("origin") == "https://example.com"

    def test_no_placeholder_passthrough(self):
        config = Config({"key": "plain-value"})
        assert config.get("key") == "plain-value"

    def test_non_string_passthrough(self):
        config = Config({"size": 32})
        assert config.get("size") == 32

    def test_multiple_placeholders_in_one_value(self, monkeypatch):
        monkeypatch.setenv("CSRF_PREFIX", "__Host")
        monkeypatch.setenv("CSRF_NAME", "token")
        config = Config({"cookie_name": "${CSRF_PREFIX}-${CSRF_NAME}"})
        assert config.get("cookie_name") == "__Host-token"

    def test_unresolvable_placeholder_raises(self):
        config = Config({"key": "${MISSING_CSRF_VAR}"})
        with pytest.raises(ValueError, match="Cannot resolve placeholder"):
            config.get("key")

    def test_max_recursion_guard(self):
        config = Config({"a": "${b}", "b": "${a}"})
        with pytest.raises(ValueError, match="[Mm]ax.*recursion|[Cc]ircular"):
            config.get("a")

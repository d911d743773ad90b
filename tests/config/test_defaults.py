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
"""Tests for package defaults loading."""

from pathlib import Path

from doublecsrf.core.config import Config


class TestPackageDefaults:
    def test_load_defaults_provides_doublecsrf_namespace(self):
        defaults = Config._load_package_defaults()
        assert set(defaults["doublecsrf"]) == {"logging", "csrf"}

    def test_defaults_have_logging_level(self):
        defaults = Config._load_package_defaults()
        assert defaults["doublecsrf"]["logging"]["level"]["root"] == "INFO"

    def test_defaults_have_secure_cookie(self):
        csrf = Config._load_package_defaults()["doublecsrf"]["csrf"]
        assert csrf["cookie_secure"] is True
        assert csrf["cookie_http_only"] is True
        assert csrf["cookie_same_site"] == "lax"

    def test_from_file_loads_defaults_automatically(self, tmp_path: Path):
        config_file = tmp_path / "doublecsrf.yaml"
        config_file.write_text("myapp:\n  custom: true\n")
        config = Config.from_file(config_file)
        assert config.get("doublecsrf.csrf.hmac_algorithm") == "sha256"
        assert config.get("myapp.custom") is True

    def test_user_config_overrides_defaults(self, tmp_path: Path):
        config_file = tmp_path / "doublecsrf.yaml"
        config_file.write_text("doublecsrf:\n  csrf:\n    overwrite: true\n")
        config = Config.from_file(config_file)
        assert config.get("doublecsrf.csrf.overwrite") is True
        assert config.get("doublecsrf.csrf.validate_on_reuse") is True

    def test_defaults_can_be_skipped(self, tmp_path: Path):
        config = Config.from_sources(tmp_path, load_defaults=False)
        assert config.get("doublecsrf.csrf.hmac_algorithm") is None
        assert config.loaded_sources == []

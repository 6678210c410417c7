"""Unit tests for arango_harness.config.harness_config module."""

import json

import pytest

from arango_harness.config import (
    AuthenticationSpec,
    AuthKind,
    ConfigValidationError,
    DeploymentMode,
    HarnessConfig,
    load_harness_config,
    normalize_endpoint,
)


class TestNormalizeEndpoint:
    """Tests for normalize_endpoint."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("tcp://localhost:8529", "http://localhost:8529"),
            ("ssl://db:8530", "https://db:8530"),
            ("http://localhost:8529/", "http://localhost:8529"),
            ("  https://db:8529 ", "https://db:8529"),
        ],
    )
    def test_normalizes(self, raw: str, expected: str) -> None:
        """Scheme aliases and trailing slashes should be normalized."""
        assert normalize_endpoint(raw) == expected


class TestAuthenticationSpec:
    """Tests for AuthenticationSpec.parse."""

    def test_basic(self) -> None:
        """basic:user:pass should parse."""
        spec = AuthenticationSpec.parse("basic:root:secret")
        assert spec.kind == AuthKind.BASIC
        assert spec.username == "root"
        assert spec.password.get_secret_value() == "secret"

    def test_jwt_password_with_colons(self) -> None:
        """Everything after the second colon is the password."""
        spec = AuthenticationSpec.parse("jwt:root:a:b:c")
        assert spec.kind == AuthKind.JWT
        assert spec.password.get_secret_value() == "a:b:c"

    def test_empty_password(self) -> None:
        """An empty password is allowed."""
        assert AuthenticationSpec.parse("basic:root:").password.get_secret_value() == ""

    def test_unknown_kind(self) -> None:
        """Unknown schemes should be rejected."""
        with pytest.raises(ConfigValidationError, match="Unknown authentication"):
            AuthenticationSpec.parse("kerberos:root:x")

    def test_missing_password(self) -> None:
        """user and password are required."""
        with pytest.raises(ConfigValidationError, match="username & password"):
            AuthenticationSpec.parse("basic:root")

    def test_password_not_in_repr(self) -> None:
        """The password should stay hidden."""
        assert "secret" not in repr(AuthenticationSpec.parse("basic:root:secret"))


class TestHarnessConfigFromEnv:
    """Tests for HarnessConfig.from_env."""

    def test_full_environment(self) -> None:
        """All TEST_* variables should be read."""
        config = HarnessConfig.from_env(
            {
                "TEST_ENDPOINTS": "tcp://a:8529,http://b:8529/",
                "TEST_MODE": "cluster",
                "TEST_AUTHENTICATION": "jwt:root:pw",
                "ENABLE_DATABASE_EXTRA_FEATURES": "true",
                "TEST_BACKUP_REMOTE_REPO": "s3:/bucket/backups",
                "TEST_BACKUP_REMOTE_CONFIG": '{"s3": {"type": "s3", "provider": "minio"}}',
                "TEST_CONNECT_TIMEOUT": "3",
                "TEST_READ_TIMEOUT": "12.5",
                "TEST_LOG_LEVEL": "debug",
            }
        )

        assert config.endpoints == ["http://a:8529", "http://b:8529"]
        assert config.mode == DeploymentMode.CLUSTER
        assert config.is_cluster
        assert config.authentication.kind == AuthKind.JWT
        assert config.enable_database_extra_features is True
        assert config.backup_remote_repo == "s3:/bucket/backups"
        assert config.backup_remote_config == {"s3": {"type": "s3", "provider": "minio"}}
        assert config.connect_timeout == 3.0
        assert config.read_timeout == 12.5
        assert config.log_level == "debug"
        assert config.source == "environment"

    def test_empty_environment(self) -> None:
        """An empty environment should give defaults without endpoints."""
        config = HarnessConfig.from_env({})
        assert config.endpoints == []
        assert config.mode is None
        assert config.authentication is None
        assert config.enable_database_extra_features is False

    @pytest.mark.parametrize("value,expected", [("1", True), ("yes", True), ("false", False), ("", False)])
    def test_extra_features_flag(self, value: str, expected: bool) -> None:
        """ENABLE_DATABASE_EXTRA_FEATURES accepts common truthy spellings."""
        config = HarnessConfig.from_env({"ENABLE_DATABASE_EXTRA_FEATURES": value})
        assert config.enable_database_extra_features is expected

    def test_invalid_mode(self) -> None:
        """Unknown modes should be rejected."""
        with pytest.raises(ConfigValidationError):
            HarnessConfig.from_env({"TEST_MODE": "sharded"})

    def test_invalid_scheme(self) -> None:
        """Non-HTTP endpoint schemes should fail semantic validation."""
        with pytest.raises(ConfigValidationError, match="Unsupported endpoint scheme"):
            HarnessConfig.from_env({"TEST_ENDPOINTS": "vst://a:8529"})

    def test_duplicate_endpoints(self) -> None:
        """Endpoints must be unique after normalization."""
        with pytest.raises(ConfigValidationError, match="unique"):
            HarnessConfig.from_env({"TEST_ENDPOINTS": "tcp://a:8529,http://a:8529"})

    def test_invalid_backup_config(self) -> None:
        """TEST_BACKUP_REMOTE_CONFIG must be a JSON object."""
        with pytest.raises(ConfigValidationError):
            HarnessConfig.from_env({"TEST_BACKUP_REMOTE_CONFIG": "[1, 2]"})
        with pytest.raises(ConfigValidationError):
            HarnessConfig.from_env({"TEST_BACKUP_REMOTE_CONFIG": "{not json"})

    def test_invalid_timeout(self) -> None:
        """Timeouts must be numbers."""
        with pytest.raises(ConfigValidationError):
            HarnessConfig.from_env({"TEST_READ_TIMEOUT": "soon"})

    def test_invalid_log_level(self) -> None:
        """Unknown log levels should fail semantic validation."""
        with pytest.raises(ConfigValidationError, match="Invalid log level"):
            HarnessConfig.from_env({"TEST_LOG_LEVEL": "chatty"})


class TestLoadHarnessConfig:
    """Tests for load_harness_config."""

    def test_yaml_file_with_env_override(self, tmp_path) -> None:
        """Environment values should win over file values."""
        path = tmp_path / "harness.yaml"
        path.write_text(
            "endpoints:\n  - http://file:8529\nmode: single\nread_timeout: 45\n",
            encoding="utf-8",
        )

        config = load_harness_config(path, {"TEST_MODE": "cluster"})

        assert config.endpoints == ["http://file:8529"]
        assert config.mode == DeploymentMode.CLUSTER
        assert config.read_timeout == 45
        assert config.source == str(path)

    def test_json_file(self, tmp_path) -> None:
        """JSON files should be accepted."""
        path = tmp_path / "harness.json"
        path.write_text('{"endpoints": "http://a:8529,http://b:8529"}', encoding="utf-8")

        config = load_harness_config(path, {})
        assert config.endpoints == ["http://a:8529", "http://b:8529"]

    def test_missing_file(self, tmp_path) -> None:
        """A missing file should raise ConfigValidationError."""
        with pytest.raises(ConfigValidationError, match="not found"):
            load_harness_config(tmp_path / "nope.yaml", {})

    def test_non_mapping_file(self, tmp_path) -> None:
        """The top level must be a mapping."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError):
            load_harness_config(path, {})

    def test_unknown_keys_rejected(self, tmp_path) -> None:
        """Unknown keys should fail strict validation."""
        path = tmp_path / "extra.yaml"
        path.write_text("endpoint: http://a:8529\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError):
            load_harness_config(path, {})

    def test_without_file_reads_environment(self) -> None:
        """Without a file only the environment is used."""
        config = load_harness_config(None, {"TEST_ENDPOINTS": "http://env:8529"})
        assert config.endpoints == ["http://env:8529"]


class TestSaveHarnessConfig:
    """Tests for writing a HarnessConfig to disk and loading it back."""

    @pytest.fixture
    def config(self) -> HarnessConfig:
        return HarnessConfig(
            endpoints=["http://a:8529"],
            mode=DeploymentMode.CLUSTER,
            authentication=AuthenticationSpec.parse("basic:root:secret"),
        )

    @pytest.mark.parametrize("name", ["harness.yaml", "harness.json"])
    def test_password_survives_save_and_load(self, config: HarnessConfig, tmp_path, name: str) -> None:
        """The saved file should carry the real password."""
        path = tmp_path / name

        config.save_to_file(path)
        loaded = HarnessConfig.from_file(path)

        assert loaded.authentication.password.get_secret_value() == "secret"
        assert loaded.authentication.kind == AuthKind.BASIC
        assert loaded.mode == DeploymentMode.CLUSTER
        assert loaded.endpoints == ["http://a:8529"]

    def test_display_output_masks_password(self, config: HarnessConfig) -> None:
        """to_json is for display and should not leak the password."""
        dumped = json.loads(config.to_json())

        assert dumped["authentication"]["password"] == "**********"
        assert "secret" not in config.to_json()

    def test_merge_keeps_password(self, config: HarnessConfig) -> None:
        """Merging should carry the secret through unchanged."""
        merged = config.merge(HarnessConfig(endpoints=["http://b:8529"]))

        assert merged.authentication.password.get_secret_value() == "secret"
        assert merged.endpoints == ["http://b:8529"]

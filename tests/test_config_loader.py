# CUI // SP-CTI
"""Tests for multicloud.config_loader — environment and YAML configuration."""

import pytest

from multicloud.config_loader import ConfigLoader, _expand_env, generate_env_example
from multicloud.errors import ConfigurationError, UnsupportedProviderError


# ============================================================
# Environment expansion
# ============================================================
class TestExpandEnv:
    def test_plain_value(self):
        assert _expand_env("abc", {}) == "abc"

    def test_variable(self):
        assert _expand_env("${A}", {"A": "1"}) == "1"

    def test_default_used_when_missing(self):
        assert _expand_env("${A:-fallback}", {}) == "fallback"

    def test_default_used_when_empty(self):
        assert _expand_env("${A:-fallback}", {"A": ""}) == "fallback"

    def test_unresolved_left_in_place(self):
        assert _expand_env("${A}", {}) == "${A}"

    def test_non_string(self):
        assert _expand_env(5, {}) == 5


# ============================================================
# Environment-sourced configuration
# ============================================================
class TestLoadFromEnvironment:
    def test_aws(self, aws_env):
        config = ConfigLoader(environ=aws_env).load_config()
        assert config.provider == "aws"
        assert config.region == "us-east-1"
        assert config.credentials.aws.access_key_id == "AKIATEST"
        assert config.credentials.aws.secret_access_key == "secret-test"
        assert config.credentials.aws.sagemaker_role_arn is None
        assert config.credentials.azure is None

    def test_azure(self, azure_env):
        config = ConfigLoader(environ=azure_env).load_config()
        assert config.provider == "azure"
        assert config.region == "eastus"
        azure = config.credentials.azure
        assert azure.tenant_id == "tenant"
        assert azure.subscription_id == "sub-123"
        assert azure.resource_group == "dsar-resource-group"
        assert azure.ml_workspace == "ml-workspace"
        assert config.credentials.aws is None

    def test_defaults_to_aws(self, aws_env):
        del aws_env["CLOUD_PROVIDER"]
        assert ConfigLoader(environ=aws_env).load_config().provider == "aws"

    def test_provider_case_insensitive(self, aws_env):
        aws_env["CLOUD_PROVIDER"] = "AWS"
        assert ConfigLoader(environ=aws_env).load_config().provider == "aws"

    def test_optional_variables(self, aws_env, azure_env):
        aws_env["AWS_SAGEMAKER_ROLE_ARN"] = "arn:aws:iam::1:role/sm"
        aws = ConfigLoader(environ=aws_env).load_config()
        assert aws.credentials.aws.sagemaker_role_arn == "arn:aws:iam::1:role/sm"

        azure_env["AZURE_RESOURCE_GROUP"] = "rg-prod"
        azure_env["AZURE_ML_WORKSPACE"] = "ws-prod"
        azure = ConfigLoader(environ=azure_env).load_config().credentials.azure
        assert azure.resource_group == "rg-prod"
        assert azure.ml_workspace == "ws-prod"

    @pytest.mark.parametrize("var", ["AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY"])
    def test_missing_aws_variable(self, aws_env, var):
        del aws_env[var]
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(environ=aws_env).load_config()
        assert exc_info.value.config_key == var
        assert f"Required environment variable {var} is not set" in str(exc_info.value)

    @pytest.mark.parametrize("var", [
        "AZURE_TENANT_ID",
        "AZURE_CLIENT_ID",
        "AZURE_CLIENT_SECRET",
        "AZURE_SUBSCRIPTION_ID",
        "AZURE_STORAGE_CONNECTION_STRING",
    ])
    def test_missing_azure_variable(self, azure_env, var):
        del azure_env[var]
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(environ=azure_env).load_config()
        assert exc_info.value.config_key == var

    def test_empty_variable_counts_as_missing(self, aws_env):
        aws_env["AWS_ACCESS_KEY_ID"] = ""
        with pytest.raises(ConfigurationError):
            ConfigLoader(environ=aws_env).load_config()

    def test_other_provider_variables_not_required(self, aws_env):
        # No AZURE_* variables set; loading aws must still succeed
        assert ConfigLoader(environ=aws_env).load_config().provider == "aws"

    def test_unsupported_provider(self, aws_env):
        aws_env["CLOUD_PROVIDER"] = "gcp"
        with pytest.raises(UnsupportedProviderError):
            ConfigLoader(environ=aws_env).load_config()

    def test_reads_os_environ_by_default(self, clean_cloud_env, monkeypatch, aws_env):
        for key, value in aws_env.items():
            monkeypatch.setenv(key, value)
        assert ConfigLoader().load_config().credentials.aws.access_key_id == "AKIATEST"


# ============================================================
# Caching
# ============================================================
class TestCaching:
    def test_cached_without_provider(self, aws_env):
        loader = ConfigLoader(environ=aws_env)
        first = loader.load_config()
        aws_env["CLOUD_REGION"] = "eu-west-1"
        assert loader.load_config() is first

    def test_explicit_provider_reloads(self, aws_env, azure_env):
        env = dict(aws_env)
        env.update(azure_env)
        env["CLOUD_PROVIDER"] = "aws"
        loader = ConfigLoader(environ=env)
        assert loader.load_config().provider == "aws"
        assert loader.load_config("azure").provider == "azure"
        # Last loaded config is now the cached one
        assert loader.load_config().provider == "azure"

    def test_clear(self, aws_env):
        loader = ConfigLoader(environ=aws_env)
        first = loader.load_config()
        loader.clear()
        assert loader.load_config() is not first


# ============================================================
# YAML configuration file
# ============================================================
class TestYamlConfig:
    def test_yaml_overrides_region(self, tmp_path, aws_env):
        path = tmp_path / "cloud_config.yaml"
        path.write_text("cloud:\n  region: us-west-2\n")
        config = ConfigLoader(config_path=str(path), environ=aws_env).load_config()
        assert config.region == "us-west-2"
        assert config.credentials.aws.access_key_id == "AKIATEST"

    def test_yaml_expands_environment(self, tmp_path):
        path = tmp_path / "cloud_config.yaml"
        path.write_text(
            "cloud:\n"
            "  provider: aws\n"
            "  aws:\n"
            "    access_key_id: ${MY_KEY}\n"
            "    secret_access_key: literal-secret\n"
        )
        config = ConfigLoader(config_path=str(path), environ={"MY_KEY": "from-env"}).load_config()
        assert config.credentials.aws.access_key_id == "from-env"
        assert config.credentials.aws.secret_access_key == "literal-secret"

    def test_yaml_unresolved_reference_reported(self, tmp_path):
        path = tmp_path / "cloud_config.yaml"
        path.write_text(
            "cloud:\n"
            "  aws:\n"
            "    access_key_id: ${MY_KEY}\n"
            "    secret_access_key: s\n"
        )
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(config_path=str(path), environ={}).load_config()
        assert exc_info.value.config_key == "MY_KEY"

    def test_missing_file_falls_back_to_environment(self, tmp_path, aws_env):
        loader = ConfigLoader(config_path=str(tmp_path / "nonexistent.yaml"), environ=aws_env)
        assert loader.load_config().provider == "aws"

    def test_invalid_yaml(self, tmp_path, aws_env):
        path = tmp_path / "cloud_config.yaml"
        path.write_text("cloud: [unclosed\n")
        with pytest.raises(ConfigurationError):
            ConfigLoader(config_path=str(path), environ=aws_env).load_config()

    def test_cloud_section_must_be_mapping(self, tmp_path, aws_env):
        path = tmp_path / "cloud_config.yaml"
        path.write_text("cloud: just-a-string\n")
        with pytest.raises(ConfigurationError):
            ConfigLoader(config_path=str(path), environ=aws_env).load_config()

    @pytest.mark.parametrize("content", ["- a\n- b\n", "just-a-string\n", "42\n"])
    def test_top_level_must_be_mapping(self, tmp_path, aws_env, content):
        path = tmp_path / "cloud_config.yaml"
        path.write_text(content)
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(config_path=str(path), environ=aws_env).load_config()
        assert exc_info.value.config_key == "config_path"

    @pytest.mark.parametrize("content", ["cloud:\n  aws: x\n", "cloud:\n  aws: [a, b]\n"])
    def test_credential_section_must_be_mapping(self, tmp_path, aws_env, content):
        path = tmp_path / "cloud_config.yaml"
        path.write_text(content)
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader(config_path=str(path), environ=aws_env).load_config()
        assert exc_info.value.config_key == "aws"

    def test_non_string_provider(self, tmp_path, aws_env):
        path = tmp_path / "cloud_config.yaml"
        path.write_text("cloud:\n  provider: 5\n")
        with pytest.raises(UnsupportedProviderError) as exc_info:
            ConfigLoader(config_path=str(path), environ=aws_env).load_config()
        assert exc_info.value.provider == "5"

    def test_shipped_example_config(self, aws_env):
        from pathlib import Path
        example = Path(__file__).resolve().parent.parent / "args" / "cloud_config.yaml"
        config = ConfigLoader(config_path=str(example), environ=aws_env).load_config()
        assert config.provider == "aws"
        assert config.region == "us-east-1"


# ============================================================
# .env example
# ============================================================
class TestEnvExample:
    def test_lists_every_variable(self):
        content = generate_env_example()
        for var in ("CLOUD_PROVIDER", "CLOUD_REGION", "AWS_ACCESS_KEY_ID",
                    "AWS_SECRET_ACCESS_KEY", "AZURE_TENANT_ID", "AZURE_CLIENT_ID",
                    "AZURE_CLIENT_SECRET", "AZURE_SUBSCRIPTION_ID",
                    "AZURE_STORAGE_CONNECTION_STRING"):
            assert f"{var}=" in content

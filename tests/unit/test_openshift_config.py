"""Unit tests for OpenShift client configuration."""

from __future__ import annotations

import typing as typ

import pytest

from hooksync.openshift import OpenShiftConfig, OpenShiftConfigError

if typ.TYPE_CHECKING:
    import pathlib


def test_environment_provides_server_and_token(tmp_path: pathlib.Path) -> None:
    """OPENSHIFT_* variables configure the client."""
    config = OpenShiftConfig.from_env(
        environ={
            "OPENSHIFT_SERVER": " https://master.example.test:8443/ ",
            "OPENSHIFT_TOKEN": "env-token",
            "OPENSHIFT_INSECURE_SKIP_TLS_VERIFY": "true",
        },
        service_account_dir=tmp_path,
    )

    assert config.server == "https://master.example.test:8443/"
    assert config.base_url == "https://master.example.test:8443"
    assert config.token == "env-token"
    assert config.verify_tls is False
    assert config.ssl_verify() is False


def test_explicit_arguments_win_over_environment(tmp_path: pathlib.Path) -> None:
    """Command-line overrides take precedence over the environment."""
    config = OpenShiftConfig.from_env(
        server="https://flag.example.test",
        token="flag-token",
        insecure_skip_tls_verify=False,
        environ={
            "OPENSHIFT_SERVER": "https://env.example.test",
            "OPENSHIFT_TOKEN": "env-token",
            "OPENSHIFT_INSECURE_SKIP_TLS_VERIFY": "1",
        },
        service_account_dir=tmp_path,
    )

    assert (config.server, config.token, config.verify_tls) == (
        "https://flag.example.test",
        "flag-token",
        True,
    )


def test_in_cluster_service_account_is_used(tmp_path: pathlib.Path) -> None:
    """Inside a pod the service host and service account token are used."""
    (tmp_path / "token").write_text("sa-token\n", encoding="utf-8")
    config = OpenShiftConfig.from_env(
        environ={
            "KUBERNETES_SERVICE_HOST": "10.0.0.1",
            "KUBERNETES_SERVICE_PORT": "6443",
        },
        service_account_dir=tmp_path,
    )

    assert config.server == "https://10.0.0.1:6443"
    assert config.token == "sa-token"
    assert config.ca_file is None
    assert config.ssl_verify() is True


def test_in_cluster_ca_bundle_is_picked_up(tmp_path: pathlib.Path) -> None:
    """The service account CA bundle is used to check the master."""
    ca_path = tmp_path / "ca.crt"
    ca_path.write_text("-----BEGIN CERTIFICATE-----\n", encoding="utf-8")
    config = OpenShiftConfig.from_env(
        environ={"KUBERNETES_SERVICE_HOST": "10.0.0.1"},
        service_account_dir=tmp_path,
    )

    assert config.ca_file == str(ca_path)


def test_in_cluster_defaults_to_port_443(tmp_path: pathlib.Path) -> None:
    """A missing service port defaults to 443 and a missing token to none."""
    config = OpenShiftConfig.from_env(
        environ={"KUBERNETES_SERVICE_HOST": "10.0.0.1"},
        service_account_dir=tmp_path,
    )

    assert config.server == "https://10.0.0.1:443"
    assert config.token == ""


def test_missing_server_is_reported(tmp_path: pathlib.Path) -> None:
    """Without a server or in-cluster service, configuration fails."""
    with pytest.raises(OpenShiftConfigError, match="OPENSHIFT_SERVER"):
        OpenShiftConfig.from_env(environ={}, service_account_dir=tmp_path)


@pytest.mark.parametrize(
    ("value", "expected_verify"),
    [("0", True), ("false", True), ("", True), ("yes", False), ("T", False)],
)
def test_insecure_flag_parsing(
    tmp_path: pathlib.Path, value: str, *, expected_verify: bool
) -> None:
    """OPENSHIFT_INSECURE_SKIP_TLS_VERIFY accepts the usual truthy spellings."""
    config = OpenShiftConfig.from_env(
        environ={
            "OPENSHIFT_SERVER": "https://master.example.test",
            "OPENSHIFT_INSECURE_SKIP_TLS_VERIFY": value,
        },
        service_account_dir=tmp_path,
    )

    assert config.verify_tls is expected_verify

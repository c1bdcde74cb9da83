#tests\conftest.py

"""Pytest configuration and fixtures."""

import textwrap

import pytest
from ruamel.yaml import YAML

from langlab.config.settings import InstallerSettings
from langlab.container import build_container
from langlab.core.models import (
    Action,
    Component,
    Environment,
    InstallationRequest,
    RunContext,
    SecretBundle,
)
from langlab.infrastructure.memory.cluster import InMemoryClusterClient
from langlab.overlay.document import load_document


HOSTNAME = "Dev.Box.Local"
NAMESPACE = "dev-box-local"

BASE_CONFIG = """\
# LangSmith values
config:
  langsmithLicenseKey: ""
  apiKeySalt: ""
  basicAuth:
    enabled: true
    initialOrgAdminEmail: ""
    initialOrgAdminPassword: ""
    jwtSecret: ""
ingress:
  enabled: true
  hostname: ""
"""

ENV_FILE = """\
initialOrgAdminEmail="admin@example.com"
LicenseKey="lic-123"
"""


def write_yaml(tmp_path, text, name="doc.yaml"):
    """Write YAML text to a file and load it as a document."""
    path = tmp_path / name
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return load_document(path)


def read_values(text):
    """Parse a values file snapshot into plain Python data."""
    return YAML(typ="safe", pure=True).load(text)


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    """Endpoint probes never leave the test process."""

    class FakeResponse:
        status_code = 200

    monkeypatch.setattr(
        "langlab.readiness.poller.requests.get",
        lambda url, timeout=None: FakeResponse(),
    )


@pytest.fixture
def config_dir(tmp_path):
    """Config directory with an operator env file and a base template."""
    directory = tmp_path / "config"
    directory.mkdir()
    (directory / ".env").write_text(ENV_FILE, encoding="utf-8")
    (directory / "config.yaml").write_text(BASE_CONFIG, encoding="utf-8")
    return directory


@pytest.fixture
def settings(config_dir):
    return InstallerSettings(
        config_dir=config_dir,
        readiness_initial_delay=0,
        readiness_interval=0,
        readiness_max_attempts=3,
    )


@pytest.fixture
def cluster():
    return InMemoryClusterClient()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def reports():
    return []


@pytest.fixture
def container(settings, cluster, sleeps, reports):
    return build_container(
        settings=settings,
        cluster=cluster,
        hostname_provider=lambda: HOSTNAME,
        sleep=sleeps.append,
        reporter=reports.append,
    )


@pytest.fixture
def environment():
    return Environment(
        namespace=NAMESPACE,
        admin_email="admin@example.com",
        license_key="lic-123",
    )


@pytest.fixture
def secrets():
    return SecretBundle(
        api_key_salt="salt-value",
        jwt_secret="jwt-value",
        admin_password="Abcdefghijkl!#$x1y2",
    )


@pytest.fixture
def make_context(environment):
    """Build a run context for an ``up`` request."""

    def _make(*components, version=None, debug=False):
        request = InstallationRequest(
            action=Action.UP,
            components=frozenset(components or {Component.CORE_SERVICE}),
            version=version,
            debug=debug,
        )
        return RunContext(request=request, environment=environment)

    return _make

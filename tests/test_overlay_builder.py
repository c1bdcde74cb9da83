#tests\test_overlay_builder.py

"""Test core and platform overlay derivation."""

import pytest

from langlab.core.errors import (
    MissingBaseConfigError,
    MissingDependencyOverlayError,
    OverlayBuildError,
)
from langlab.core.models import Component, SecretBundle
from langlab.overlay.builder import (
    PLATFORM_LICENSE_KEY,
    OverlayBuilder,
    platform_block,
)
from langlab.overlay.document import dump_document, load_document

from conftest import BASE_CONFIG, write_yaml


class NoSecrets:
    """Generator that must not be consulted."""

    def generate(self):
        raise AssertionError("secrets should have been reused")


@pytest.fixture
def builder(settings):
    return OverlayBuilder(settings)


@pytest.fixture
def base(tmp_path):
    return write_yaml(tmp_path, BASE_CONFIG, name="base.yaml")


class TestCoreOverlay:
    """Test the core overlay fields."""

    def test_fills_all_fields(self, builder, base, environment, secrets):
        overlay = builder.build_core_overlay(base, environment, secrets, include_platform_license=False)
        config = overlay["config"]

        assert config["langsmithLicenseKey"] == "lic-123"
        assert config["apiKeySalt"] == "salt-value"
        assert config["basicAuth"]["initialOrgAdminEmail"] == "admin@example.com"
        assert config["basicAuth"]["initialOrgAdminPassword"] == "Abcdefghijkl!#$x1y2"
        assert config["basicAuth"]["jwtSecret"] == "jwt-value"

    def test_unrelated_content_untouched(self, builder, base, environment, secrets):
        overlay = builder.build_core_overlay(base, environment, secrets, include_platform_license=False)

        assert overlay["config"]["basicAuth"]["enabled"] is True
        assert overlay["ingress"] == {"enabled": True, "hostname": ""}
        assert list(overlay["config"]) == ["langsmithLicenseKey", "apiKeySalt", "basicAuth"]

    def test_base_template_not_mutated(self, builder, base, environment, secrets):
        builder.build_core_overlay(base, environment, secrets, include_platform_license=True)

        assert base["config"]["apiKeySalt"] == ""
        assert PLATFORM_LICENSE_KEY not in base["config"]

    def test_missing_fields_added_at_default_paths(self, builder, tmp_path, environment, secrets):
        base = write_yaml(tmp_path, """\
            ingress:
              enabled: true
        """)

        overlay = builder.build_core_overlay(base, environment, secrets, include_platform_license=False)

        assert overlay["config"]["langsmithLicenseKey"] == "lic-123"
        assert overlay["config"]["basicAuth"]["jwtSecret"] == "jwt-value"

    # -------------------------
    # PLATFORM LICENSE
    # -------------------------

    def test_platform_license_omitted(self, builder, base, environment, secrets):
        overlay = builder.build_core_overlay(base, environment, secrets, include_platform_license=False)

        assert PLATFORM_LICENSE_KEY not in overlay["config"]

    def test_platform_license_inserted_after_core_license(self, builder, base, environment, secrets):
        overlay = builder.build_core_overlay(base, environment, secrets, include_platform_license=True)

        assert list(overlay["config"]) == [
            "langsmithLicenseKey",
            PLATFORM_LICENSE_KEY,
            "apiKeySalt",
            "basicAuth",
        ]
        assert overlay["config"][PLATFORM_LICENSE_KEY] == "lic-123"

    def test_platform_license_replaced_in_place(self, builder, tmp_path, environment, secrets):
        base = write_yaml(tmp_path, """\
            config:
              langsmithLicenseKey: ""
              apiKeySalt: ""
              langgraphPlatformLicenseKey: "stale"
        """)

        overlay = builder.build_core_overlay(base, environment, secrets, include_platform_license=True)

        assert list(overlay["config"])[:3] == [
            "langsmithLicenseKey",
            "apiKeySalt",
            PLATFORM_LICENSE_KEY,
        ]
        assert overlay["config"][PLATFORM_LICENSE_KEY] == "lic-123"

    def test_platform_block_license_not_touched(self, builder, tmp_path, environment, secrets):
        base = write_yaml(tmp_path, """\
            config:
              langgraphPlatform:
                langgraphPlatformLicenseKey: "nested"
              langsmithLicenseKey: ""
        """)

        overlay = builder.build_core_overlay(base, environment, secrets, include_platform_license=True)

        assert overlay["config"]["langgraphPlatform"][PLATFORM_LICENSE_KEY] == "nested"
        assert overlay["config"][PLATFORM_LICENSE_KEY] == "lic-123"


class TestPlatformOverlay:
    """Test the three shapes of the platform overlay input."""

    def test_no_config_section(self, builder, tmp_path, environment):
        core = write_yaml(tmp_path, """\
            ingress:
              enabled: true
        """)

        overlay = builder.build_platform_overlay(core, environment)

        assert platform_block(overlay) == {"enabled": True, PLATFORM_LICENSE_KEY: "lic-123"}
        assert overlay["ingress"]["enabled"] is True

    def test_block_placed_first_in_config(self, builder, tmp_path, environment):
        core = write_yaml(tmp_path, """\
            config:
              langsmithLicenseKey: "lic-123"
              apiKeySalt: "salt"
        """)

        overlay = builder.build_platform_overlay(core, environment)

        assert list(overlay["config"]) == ["langgraphPlatform", "langsmithLicenseKey", "apiKeySalt"]
        assert platform_block(overlay)["enabled"] is True
        assert overlay["config"]["apiKeySalt"] == "salt"

    def test_block_inserted_below_section_comments(self, builder, tmp_path, environment):
        core = write_yaml(tmp_path, """\
            config:  # section
              # license comment
              langsmithLicenseKey: "lic-123"  # eol
              apiKeySalt: "salt"
        """)

        overlay = builder.build_platform_overlay(core, environment)
        dump_document(overlay, tmp_path / "lgp.yaml")
        lines = (tmp_path / "lgp.yaml").read_text(encoding="utf-8").splitlines()

        comment = [line.strip() for line in lines].index("# license comment")
        assert lines[0].startswith("config:") and "# section" in lines[0]
        assert lines[1] == "  langgraphPlatform:"
        assert lines[comment + 1].startswith('  langsmithLicenseKey: "lic-123"')
        assert list(load_document(tmp_path / "lgp.yaml")["config"])[0] == "langgraphPlatform"

    def test_existing_block_keeps_other_fields(self, builder, tmp_path, environment):
        core = write_yaml(tmp_path, """\
            config:
              apiKeySalt: "salt"
              langgraphPlatform:
                enabled: false
                ingressHostname: lgp.example.com
        """)

        overlay = builder.build_platform_overlay(core, environment)
        block = platform_block(overlay)

        assert list(overlay["config"]) == ["apiKeySalt", "langgraphPlatform"]
        assert block["enabled"] is True
        assert block["ingressHostname"] == "lgp.example.com"
        assert block[PLATFORM_LICENSE_KEY] == "lic-123"

    def test_core_overlay_not_mutated(self, builder, tmp_path, environment):
        core = write_yaml(tmp_path, """\
            config:
              apiKeySalt: "salt"
        """)

        builder.build_platform_overlay(core, environment)

        assert "langgraphPlatform" not in core["config"]


class TestMaterialize:
    """Test overlay files on disk."""

    def test_core_overlay_written(self, builder, settings, make_context, secrets):
        ctx = make_context(Component.CORE_SERVICE)
        ctx.secrets = secrets

        path = builder.materialize_core_overlay(ctx, NoSecrets(), include_platform_license=False)

        assert path == settings.overlay_path(Component.CORE_SERVICE)
        written = load_document(path)
        assert written["config"]["basicAuth"]["jwtSecret"] == "jwt-value"
        assert 'jwtSecret: "jwt-value"' in path.read_text(encoding="utf-8")

    def test_secrets_generated_once_per_run(self, builder, make_context):
        bundles = []

        class RecordingGenerator:
            def generate(self):
                bundles.append(SecretBundle("salt", "jwt", "pw"))
                return bundles[-1]

        ctx = make_context(Component.CORE_SERVICE)
        builder.materialize_core_overlay(ctx, RecordingGenerator(), include_platform_license=False)
        builder.materialize_core_overlay(ctx, RecordingGenerator(), include_platform_license=False)

        assert len(bundles) == 1
        assert ctx.secrets.jwt_secret == "jwt"

    def test_missing_base_config(self, builder, settings, make_context, secrets):
        settings.base_config.unlink()
        ctx = make_context(Component.CORE_SERVICE)
        ctx.secrets = secrets

        with pytest.raises(MissingBaseConfigError):
            builder.materialize_core_overlay(ctx, NoSecrets(), include_platform_license=False)

        assert not settings.overlay_path(Component.CORE_SERVICE).exists()

    def test_platform_requires_core_overlay(self, builder, settings, make_context):
        ctx = make_context(Component.PLATFORM_RUNTIME)

        with pytest.raises(MissingDependencyOverlayError):
            builder.materialize_platform_overlay(ctx)

        assert not settings.overlay_path(Component.PLATFORM_RUNTIME).exists()

    def test_platform_derived_from_core_on_disk(self, builder, settings, make_context, secrets):
        ctx = make_context(Component.PLATFORM_RUNTIME)
        ctx.secrets = secrets
        builder.materialize_core_overlay(ctx, NoSecrets(), include_platform_license=True)

        path = builder.materialize_platform_overlay(ctx)
        overlay = load_document(path)

        assert path == settings.overlay_path(Component.PLATFORM_RUNTIME)
        assert overlay["config"]["apiKeySalt"] == "salt-value"
        assert overlay["config"]["basicAuth"]["jwtSecret"] == "jwt-value"
        assert platform_block(overlay)["enabled"] is True

    def test_unwritable_overlay_path(self, builder, settings, make_context, secrets):
        settings.overlay_path(Component.CORE_SERVICE).mkdir()
        ctx = make_context(Component.CORE_SERVICE)
        ctx.secrets = secrets

        with pytest.raises(OverlayBuildError, match="Cannot write"):
            builder.materialize_core_overlay(ctx, NoSecrets(), include_platform_license=False)

# langlab/overlay/builder.py
"""Builds the per-component values overlays from the base template."""

import logging
from pathlib import Path

from ruamel.yaml.comments import CommentedMap

from langlab.config.settings import InstallerSettings
from langlab.core.errors import MissingDependencyOverlayError
from langlab.core.models import Component, Environment, RunContext, SecretBundle
from langlab.credentials.generator import SecretMaterialGenerator
from langlab.overlay.document import (
    copy_document,
    dump_document,
    ensure_mapping,
    get_path,
    insert_after,
    iter_key_locations,
    load_document,
    prepend_mapping,
    quoted,
    set_leaf,
    upsert_key,
)

logger = logging.getLogger(__name__)


CORE_LICENSE_KEY = "langsmithLicenseKey"
PLATFORM_LICENSE_KEY = "langgraphPlatformLicenseKey"
PLATFORM_SECTION = "config"
PLATFORM_BLOCK = "langgraphPlatform"

# Default locations, used only when a key is absent from the whole document
CORE_LICENSE_PATH = ("config", CORE_LICENSE_KEY)
API_KEY_SALT_PATH = ("config", "apiKeySalt")
ADMIN_EMAIL_PATH = ("config", "basicAuth", "initialOrgAdminEmail")
ADMIN_PASSWORD_PATH = ("config", "basicAuth", "initialOrgAdminPassword")
JWT_SECRET_PATH = ("config", "basicAuth", "jwtSecret")


class OverlayBuilder:
    """
    Derives the core and platform overlays.

    ``build_*`` methods are pure tree transformations on copies;
    ``materialize_*`` methods add the file IO around them.
    """

    def __init__(self, settings: InstallerSettings):
        self._settings = settings

    # -------------------------
    # CORE
    # -------------------------

    def build_core_overlay(
        self,
        base: CommentedMap,
        env: Environment,
        secrets: SecretBundle,
        include_platform_license: bool,
    ) -> CommentedMap:
        overlay = copy_document(base)

        fields: tuple[tuple[tuple[str, ...], str], ...] = (
            (CORE_LICENSE_PATH, env.license_key),
            (API_KEY_SALT_PATH, secrets.api_key_salt),
            (ADMIN_EMAIL_PATH, env.admin_email),
            (ADMIN_PASSWORD_PATH, secrets.admin_password),
            (JWT_SECRET_PATH, secrets.jwt_secret),
        )
        for path, value in fields:
            upsert_key(overlay, path[-1], quoted(value), default_path=path)

        if include_platform_license:
            self._upsert_platform_license(overlay, env.license_key)

        return overlay

    def _upsert_platform_license(self, overlay: CommentedMap, license_key: str) -> None:
        # The nested langgraphPlatform block belongs to the platform overlay
        locations = list(
            iter_key_locations(overlay, PLATFORM_LICENSE_KEY, skip_under=(PLATFORM_BLOCK,))
        )

        if locations:
            upsert_key(
                overlay,
                PLATFORM_LICENSE_KEY,
                quoted(license_key),
                default_path=CORE_LICENSE_PATH[:-1] + (PLATFORM_LICENSE_KEY,),
                skip_under=(PLATFORM_BLOCK,),
            )
            return

        core_parent, _ = next(iter_key_locations(overlay, CORE_LICENSE_KEY))
        insert_after(core_parent, CORE_LICENSE_KEY, PLATFORM_LICENSE_KEY, quoted(license_key))

    # -------------------------
    # PLATFORM
    # -------------------------

    def build_platform_overlay(self, core_overlay: CommentedMap, env: Environment) -> CommentedMap:
        overlay = copy_document(core_overlay)

        section = ensure_mapping(overlay, PLATFORM_SECTION)
        if PLATFORM_BLOCK in section:
            # Existing block: only these two leaves change
            block = ensure_mapping(section, PLATFORM_BLOCK)
        else:
            block = prepend_mapping(overlay, PLATFORM_SECTION, PLATFORM_BLOCK)

        set_leaf(block, "enabled", True)
        set_leaf(block, PLATFORM_LICENSE_KEY, quoted(env.license_key))

        return overlay

    # -------------------------
    # FILES
    # -------------------------

    def materialize_core_overlay(
        self,
        ctx: RunContext,
        generator: SecretMaterialGenerator,
        include_platform_license: bool,
    ) -> Path:
        """
        Write the core overlay for this run.

        Reuses the secrets already on the run context so every overlay of
        a run carries the same values.
        """
        logger.info("Creating LangSmith configuration file...")

        base = load_document(self._settings.base_config)

        if ctx.secrets is None:
            ctx.secrets = generator.generate()

        overlay = self.build_core_overlay(
            base, ctx.environment, ctx.secrets, include_platform_license
        )
        path = dump_document(overlay, self._settings.overlay_path(Component.CORE_SERVICE))

        logger.info(f"✅ LangSmith configuration file created: {path}")
        return path

    def materialize_platform_overlay(self, ctx: RunContext) -> Path:
        """
        Write the platform overlay derived from the core overlay on disk.

        Raises:
            MissingDependencyOverlayError: If no core overlay exists yet
        """
        logger.info("Creating LangGraph Platform configuration file...")

        core_path = self._settings.overlay_path(Component.CORE_SERVICE)
        core_overlay = load_document(core_path, missing_error=MissingDependencyOverlayError)

        overlay = self.build_platform_overlay(core_overlay, ctx.environment)
        path = dump_document(overlay, self._settings.overlay_path(Component.PLATFORM_RUNTIME))

        logger.info(f"✅ LangGraph Platform configuration file created: {path}")
        return path


def platform_block(overlay: CommentedMap) -> CommentedMap:
    return get_path(overlay, (PLATFORM_SECTION, PLATFORM_BLOCK))

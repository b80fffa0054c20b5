"""JSON-backed credential, endpoint and user-model store.

Single provider, single file (~/.openwork/config.json). Every mutation is a
read-modify-write of the whole document under an in-process lock, written to
a temporary file and renamed into place so readers never see a partial file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path

from pydantic import ValidationError

from config.paths import get_config_path
from config.schema import DEFAULT_BASE_URL, MCPConfig, OpenworkConfig, RuntimeSettings, UserModel

logger = logging.getLogger(__name__)


class ConfigStore:
    """Credential/endpoint and user model configuration."""

    def __init__(self, config_path: str | Path | None = None):
        self.config_path = Path(config_path) if config_path else get_config_path()
        self._lock = threading.RLock()

    # =========================================================================
    # File I/O
    # =========================================================================

    def read(self) -> OpenworkConfig:
        """Read config with schema validation; unreadable files count as empty."""
        if not self.config_path.exists():
            return OpenworkConfig()
        try:
            data = json.loads(self.config_path.read_text(encoding="utf-8"))
            config = OpenworkConfig.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.error("[Config] Failed to read %s: %s", self.config_path, e)
            return OpenworkConfig()
        logger.debug(
            "[Config] Read config: has_api_key=%s base_url=%s model_count=%d",
            bool(config.api_key),
            config.base_url,
            len(config.models),
        )
        return config

    def write(self, config: OpenworkConfig) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(config.to_json_dict(), indent=2)
        fd, tmp_name = tempfile.mkstemp(dir=self.config_path.parent, prefix=".config-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.config_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(
            "[Config] Wrote config: has_api_key=%s base_url=%s model_count=%d",
            bool(config.api_key),
            config.base_url,
            len(config.models),
        )

    # =========================================================================
    # API Key Management
    # =========================================================================

    def get_api_key(self) -> str | None:
        """Return the stored key; None means "not configured"."""
        return self.read().api_key

    def set_api_key(self, api_key: str) -> None:
        with self._lock:
            config = self.read()
            config.api_key = api_key
            self.write(config)

    def delete_api_key(self) -> None:
        with self._lock:
            config = self.read()
            config.api_key = None
            self.write(config)

    def has_api_key(self) -> bool:
        return bool(self.get_api_key())

    # =========================================================================
    # Base URL Management
    # =========================================================================

    def get_base_url(self) -> str:
        return self.read().base_url or DEFAULT_BASE_URL

    def set_base_url(self, url: str) -> None:
        with self._lock:
            config = self.read()
            config.base_url = url
            self.write(config)

    def delete_base_url(self) -> None:
        with self._lock:
            config = self.read()
            config.base_url = None
            self.write(config)

    # =========================================================================
    # User Models Management
    # =========================================================================

    def get_user_models(self) -> list[UserModel]:
        return self.read().models

    def get_user_model(self, model_id: str) -> UserModel | None:
        return next((m for m in self.get_user_models() if m.id == model_id), None)

    def set_user_models(self, models: list[UserModel]) -> None:
        with self._lock:
            config = self.read()
            config.models = list(models)
            self.write(config)

    def add_user_model(self, model: UserModel) -> None:
        """Add a model, replacing any record with the same id in place."""
        with self._lock:
            config = self.read()
            models = list(config.models)
            index = next((i for i, m in enumerate(models) if m.id == model.id), None)
            if index is None:
                models.append(model)
            else:
                models[index] = model
            if model.is_default:
                models = [m.model_copy(update={"is_default": m.id == model.id}) for m in models]
                config.default_model = model.id
            config.models = models
            self.write(config)

    def delete_user_model(self, model_id: str) -> None:
        with self._lock:
            config = self.read()
            config.models = [m for m in config.models if m.id != model_id]
            if config.default_model == model_id:
                config.default_model = None
            self.write(config)

    def get_default_model(self) -> str | None:
        """Model flagged default, else the stored default id, else None."""
        config = self.read()
        flagged = next((m for m in config.models if m.is_default), None)
        if flagged:
            return flagged.id
        return config.default_model

    def set_default_model(self, model_id: str) -> None:
        """Make model_id the default and clear the flag on every other record."""
        with self._lock:
            config = self.read()
            config.default_model = model_id
            config.models = [m.model_copy(update={"is_default": m.id == model_id}) for m in config.models]
            self.write(config)

    # =========================================================================
    # Pool / Runtime sections
    # =========================================================================

    def get_mcp_config(self) -> MCPConfig:
        return self.read().mcp

    def get_runtime_settings(self) -> RuntimeSettings:
        return self.read().runtime

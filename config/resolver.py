"""Model resolver for logical model ids.

This module provides a ModelResolver class that:
- Resolves a user model id (or "use default") to the provider-side model name
- Falls back to treating unknown ids literally as provider model names
- Builds an OpenAI-compatible chat model bound to the configured endpoint

Client construction performs no network I/O.
"""

from __future__ import annotations

import logging
from typing import Any

from langchain.chat_models import init_chat_model
from langchain_core.language_models import BaseChatModel

from config.store import ConfigStore
from core.errors import CredentialMissing, NoDefaultModel

logger = logging.getLogger(__name__)


class ModelResolver:
    """Resolver from (model_id?, global config) to a ready chat model."""

    def __init__(self, store: ConfigStore):
        self.store = store

    def resolve_model_name(self, model_id: str | None = None) -> str:
        """Resolve to the provider-side model identifier.

        Raises:
            NoDefaultModel: model_id omitted and no default configured
        """
        if not model_id:
            model_id = self.store.get_default_model()
            if not model_id:
                raise NoDefaultModel()

        user_model = self.store.get_user_model(model_id)
        # Unregistered ids pass through so externally known names still work
        return user_model.model_id if user_model and user_model.model_id else model_id

    def resolve(self, model_id: str | None = None) -> dict[str, Any]:
        """Resolve to a config dict compatible with init_chat_model().

        Raises:
            CredentialMissing: no API key stored
            NoDefaultModel: model_id omitted and no default configured
        """
        api_key = self.store.get_api_key()
        if not api_key:
            raise CredentialMissing()

        model_name = self.resolve_model_name(model_id)
        base_url = self.store.get_base_url()

        logger.info("[Runtime] Using model: %s", model_name)
        logger.info("[Runtime] Base URL: %s", base_url)
        logger.info("[Runtime] API key present: %s", bool(api_key))

        return {
            "model": model_name,
            "model_provider": "openai",
            "api_key": api_key,
            "base_url": base_url,
        }

    def create_model(self, model_id: str | None = None) -> BaseChatModel:
        config = self.resolve(model_id)
        return init_chat_model(
            config.pop("model"),
            stream_usage=True,
            **config,
        )

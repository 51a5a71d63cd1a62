"""Application factory for dependency injection and wiring."""

import logging
from typing import Optional

from thinkchat.application.chat.service import ChatService
from thinkchat.core.ids import IdGenerator
from thinkchat.infrastructure.storage.in_memory_storage import InMemoryStorage
from thinkchat.interfaces.responder import ResponderProtocol
from thinkchat.interfaces.storage import StorageProtocol
from thinkchat.modules.config import ConfigManager

logger = logging.getLogger(__name__)


class AppFactory:
    """Application factory that wires dependencies (simple in-memory DI)."""

    def __init__(self, config_manager: Optional[ConfigManager] = None) -> None:
        # Configuration
        self.config_manager = config_manager or ConfigManager()
        settings = self.config_manager.app_settings

        # Storage backend
        if settings.storage_backend == "sql":
            from thinkchat.modules.chat_history import SqlStorage
            logger.info("Using SQL chat storage")
            self.storage: StorageProtocol = SqlStorage.from_url(settings.chat_history_db_url)
        else:
            logger.info("Using in-memory chat storage")
            self.storage = InMemoryStorage()

        # Remote responder (None when no URL is configured: every turn falls back)
        if settings.responder_url:
            from thinkchat.modules.responder import HttpResponder
            self.responder: Optional[ResponderProtocol] = HttpResponder(
                base_url=settings.responder_url,
                path=settings.responder_path,
                timeout=settings.responder_timeout,
                api_key=self.config_manager.responder_api_key,
            )
        else:
            logger.warning("RESPONDER_URL not set; AI replies will use the fallback response")
            self.responder = None

        logger.info("AppFactory initialized")

    def create_chat_service(self, id_generator: Optional[IdGenerator] = None) -> ChatService:
        return ChatService(
            storage=self.storage,
            responder=self.responder,
            config_manager=self.config_manager,
            id_generator=id_generator,
        )

    # Accessors
    def get_config_manager(self) -> ConfigManager:  # noqa: D401
        return self.config_manager

    def get_responder(self) -> Optional[ResponderProtocol]:  # noqa: D401
        return self.responder

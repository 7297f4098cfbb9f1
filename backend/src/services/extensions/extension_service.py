"""Service resolving configured extensions and the assistants they belong to."""

import logging
from typing import Dict, List, Optional, Type

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from backend.src.api.middleware.exceptions import NotFoundError
from backend.src.database import Configuration, Extension, SessionFactory, User
from backend.src.services.extensions.extension import EXTENSIONS, BaseExtension

logger = logging.getLogger(__name__)


def is_configuration_allowed(configuration: Configuration, user: User) -> bool:
    """Whether the user's group may use the assistant."""
    if not configuration.user_group_ids:
        return True
    return user.user_group_id in configuration.user_group_ids


class ExtensionService:
    """Create extension instances from their stored configuration."""

    def __init__(
        self,
        session_factory: SessionFactory,
        registry: Optional[Dict[str, Type[BaseExtension]]] = None,
    ) -> None:
        self.session_factory = session_factory
        self.registry = registry if registry is not None else EXTENSIONS

    def _create(self, entity: Extension) -> Optional[BaseExtension]:
        cls = self.registry.get(entity.name)
        if cls is None:
            logger.warning(f"Unknown extension '{entity.name}' ({entity.external_id})")
            return None

        try:
            instance = cls(entity.external_id, entity.values)
        except (ValueError, KeyError) as e:
            logger.error(f"Could not create extension {entity.external_id}: {str(e)}")
            return None

        return instance

    def get_extension(self, extension_id: int) -> Optional[BaseExtension]:
        with self.session_factory() as session:
            entity = session.get(Extension, extension_id)
            return self._create(entity) if entity else None

    def get_extension_by_external_id(self, external_id: str) -> Optional[BaseExtension]:
        """Resolve the extension that produced a source."""
        if not external_id:
            return None

        with self.session_factory() as session:
            entity = session.scalar(select(Extension).where(Extension.external_id == external_id))
            return self._create(entity) if entity else None

    def get_configuration_extensions(self, configuration_id: int) -> List[BaseExtension]:
        """Enabled extensions of an assistant, in creation order."""
        with self.session_factory() as session:
            entities = session.scalars(
                select(Extension)
                .where(
                    Extension.configuration_id == configuration_id,
                    Extension.enabled.is_(True),
                )
                .order_by(Extension.id)
            ).all()

            extensions = [self._create(entity) for entity in entities]
        return [extension for extension in extensions if extension is not None]

    def get_configurations(self, user: User, enabled_only: bool = False) -> List[Configuration]:
        """Assistants the user's group may use."""
        with self.session_factory() as session:
            query = select(Configuration).options(selectinload(Configuration.extensions))
            if enabled_only:
                query = query.where(Configuration.enabled.is_(True))
            configurations = session.scalars(query.order_by(Configuration.id)).all()

        return [c for c in configurations if is_configuration_allowed(c, user)]

    def get_configuration(self, user: User, configuration_id: int) -> Configuration:
        with self.session_factory() as session:
            configuration = session.scalar(
                select(Configuration)
                .options(selectinload(Configuration.extensions))
                .where(Configuration.id == configuration_id)
            )

        if configuration is None or not is_configuration_allowed(configuration, user):
            raise NotFoundError(message=f"Configuration {configuration_id} not found")
        return configuration


def configuration_to_json(configuration: Configuration) -> Dict:
    return {
        "id": configuration.id,
        "name": configuration.name,
        "description": configuration.description,
        "enabled": configuration.enabled,
        "userGroupIds": configuration.user_group_ids or [],
        "extensions": [
            {
                "id": extension.id,
                "name": extension.name,
                "externalId": extension.external_id,
                "enabled": extension.enabled,
            }
            for extension in configuration.extensions
        ],
    }

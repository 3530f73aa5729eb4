from __future__ import annotations

import datetime
from pathlib import Path

import pydantic as p
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Object, Provider, Resource, Singleton

import registrar
from registrar.model import DeploymentEnvironment

from ..config import Secrets, Settings
from ..di import NotReady, wire_imported
from ..provider import LoggingProvider, TimestampProvider
from .storage import StorageContainer


class RegistrarContainer(DeclarativeContainer):
    config: Configuration = Configuration()
    secrets: Configuration = Configuration()

    debug: Provider[bool] = Singleton(bool)
    env: Provider[DeploymentEnvironment] = Singleton(DeploymentEnvironment)
    # the source tree root, which holds migrations/
    root: Object[NotReady | Path] = Object(NotReady())

    logging: Provider[LoggingProvider] = Resource(LoggingProvider, config=config.logging, debug=debug)
    storage: Provider[StorageContainer] = Container(
        StorageContainer, config=config.storage, secrets=secrets, logging=logging, root=root
    )

    utcnow: Provider[TimestampProvider] = Object(lambda: datetime.datetime.now(datetime.UTC))

    @staticmethod
    def boot(
        ct: RegistrarContainer,
        /,
        debug: bool,
        env: DeploymentEnvironment,
        config_root: p.FileUrl,
        secrets_path: p.AnyUrl | None = None,
        override: tuple[str, ...] = (),
    ) -> None:
        """Configure `ct` for `env` and wire the registrar modules imported so far.

        Settings come from the YAML files under `config_root` and the
        `override` pairs; secrets from the vault under `secrets_path`, which
        defaults to the config root. Logging is configured before secrets
        are read, so a vault prompt is preceded by the usual log setup.
        """
        if config_root.scheme != "file":
            raise ValueError(f"config root must be a file:// URL, not {config_root.scheme}://")

        settings = Settings(env=env, root=config_root, override=override)
        ct.config.from_pydantic(settings)
        ct.debug.override(debug)
        ct.env.override(env)
        ct.root.override(Path(registrar.__file__).resolve().parents[1])

        wired = wire_imported(ct)
        logger = ct.logging().get_logger()
        logger.debug("wired modules", extra={"modules": wired})
        for pair in settings.override:
            key, value = (s.strip() for s in pair.split("=", 1))
            logger.info("configuration overridden", extra={"key": key, "value": value})

        ct.secrets.from_pydantic(Secrets(env=env, root=secrets_path or config_root))
        logger.debug("container booted", extra={"config_root": str(config_root), "env": env.value})

from __future__ import annotations

import typing as t
from pathlib import Path

import alembic.config
import sqlalchemy
import sqlalchemy.orm
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Factory, Object, Provider, Resource, Singleton
from sqlalchemy.engine.url import URL

import registrar.lib.json as json

from ..config.secrets import PostgresqlSecrets
from ..config.storage import PostgresqlSettings, StorageSettings
from ..di import NotReady
from ..provider import LoggingProvider

MigrationsPath = Path("migrations")


def postgresql_url(config: PostgresqlSettings, secrets: PostgresqlSecrets) -> URL:
    def reveal(s: t.Any) -> str | None:
        return s.get_secret_value() if s is not None else None

    return URL.create(
        config.driver,
        username=reveal(secrets.username),
        password=reveal(secrets.password),
        host=str(config.host) if config.host else None,
        port=config.port,
        database=config.database,
    )


def provide_alembic_config(
    config: PostgresqlSettings, secrets: PostgresqlSecrets, root: Path | NotReady
) -> alembic.config.Config:
    """Alembic configuration for `migrations/`, built in memory rather than read from alembic.ini"""
    if isinstance(root, NotReady):
        raise RuntimeError("alembic configuration requested before the container was booted")

    # configparser interpolates %, which may appear in an encoded password
    url = postgresql_url(config, secrets).render_as_string(hide_password=False).replace("%", "%%")
    ac = alembic.config.Config()
    ac.set_main_option("script_location", str(root / MigrationsPath))
    ac.set_main_option("sqlalchemy.url", url)
    return ac


def provide_engine(
    config: PostgresqlSettings, secrets: PostgresqlSecrets, logging: LoggingProvider
) -> sqlalchemy.Engine:
    engine = sqlalchemy.create_engine(
        postgresql_url(config, secrets),
        echo=config.echo,
        pool_pre_ping=True,
        # TIMESTAMPTZ values come back in UTC
        connect_args={"options": "-c timezone=UTC"},
        json_serializer=json.dumps,
        json_deserializer=json.loads,
    )
    logging.get_logger().info(
        "database engine ready",
        extra={"database": config.database, "host": config.host, "port": config.port, "echo": config.echo},
    )
    return engine


def open_session(maker: sqlalchemy.orm.sessionmaker[sqlalchemy.orm.Session]) -> sqlalchemy.orm.Session:
    """A fresh session that only opens a transaction on an explicit `begin()`; the caller closes it"""
    return maker(autobegin=False)


class PersistentContainer(DeclarativeContainer):
    config = Configuration()
    secrets = Configuration()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    postgresql = config.postgresql.as_(PostgresqlSettings)
    postgresql_secrets = secrets.postgresql.as_(PostgresqlSecrets)

    alembic_config: Provider[alembic.config.Config] = Singleton(
        provide_alembic_config, config=postgresql, secrets=postgresql_secrets, root=root
    )
    engine: Provider[sqlalchemy.Engine] = Singleton(
        provide_engine, config=postgresql, secrets=postgresql_secrets, logging=logging
    )
    sessionmaker: Provider[sqlalchemy.orm.sessionmaker[sqlalchemy.orm.Session]] = Singleton(
        sqlalchemy.orm.sessionmaker, engine, expire_on_commit=False, autoflush=False
    )
    session: Provider[sqlalchemy.orm.Session] = Factory(open_session, maker=sessionmaker)


class StorageContainer(DeclarativeContainer):
    config: Provider[StorageSettings] = Configuration(strict=True)
    secrets: Provider[StorageSettings] = Configuration(strict=True)
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    persistent: Provider[PersistentContainer] = Container(
        PersistentContainer, config=config.persistent, secrets=secrets, logging=logging, root=root
    )

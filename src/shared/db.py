"""Schema bootstrap for domains configured with an SQL provider.

Domains running on Protean's memory provider need nothing; for sqlite and
postgresql providers the tables are created from the registered aggregates
and entities.
"""

import structlog
from protean.domain import Domain
from sqlalchemy import create_engine

logger = structlog.get_logger(__name__)

_SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    return [
        (name, provider)
        for name, provider in domain.providers.items()
        if provider.conn_info["provider"] in _SQL_PROVIDERS
    ]


def _load_models(domain: Domain, provider_name: str):
    # Touching the DAO registers the model with the provider's metadata
    records = list(domain.registry.aggregates.values()) + list(domain.registry.entities.values())
    for record in records:
        if record.cls.meta_.provider == provider_name:
            domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain):
    """Create tables for every SQL provider of ``domain``."""
    with domain.domain_context():
        for name, provider in _sql_providers(domain):
            _load_models(domain, name)
            provider._metadata.create_all(create_engine(provider.conn_info["database_uri"]))
            logger.info("database_schema_created", domain=domain.name, provider=name)


def drop_db(domain: Domain):
    """Drop the tables created by :func:`setup_db`."""
    with domain.domain_context():
        for name, provider in _sql_providers(domain):
            provider._metadata.drop_all(create_engine(provider.conn_info["database_uri"]))
            logger.info("database_schema_dropped", domain=domain.name, provider=name)

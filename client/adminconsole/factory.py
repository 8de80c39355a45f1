"""Client factory wiring the credential store, session core and services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import requests

from adminconsole.core.config import BaseConfig, get_config
from adminconsole.core.logger import configure_logging
from adminconsole.infra.http.auth_gateway import HttpAuthGateway
from adminconsole.infra.http.pipeline import RequestPipeline
from adminconsole.infra.http.transport import HttpTransport
from adminconsole.services._shared.ports import (
    AuthGateway,
    CredentialStore,
    InMemoryCredentialStore,
)
from adminconsole.services.auth.dto import AuthTokenConfig
from adminconsole.services.auth.service import AuthService
from adminconsole.services.customers.service import CustomerService
from adminconsole.services.dashboard.service import DashboardService
from adminconsole.services.items.service import ItemService
from adminconsole.services.sales_orders.service import SalesOrderService
from adminconsole.services.session.coordinator import RefreshCoordinator
from adminconsole.services.session.lifecycle import SessionLifecycle
from adminconsole.services.uploads.service import UploadService

CREDENTIAL_BACKENDS = ("memory", "file", "redis")


@dataclass(slots=True)
class ConsoleClient:
    """One wired client: a single credential store shared by every component."""

    config: type[BaseConfig] | object
    store: CredentialStore
    lifecycle: SessionLifecycle
    transport: HttpTransport
    coordinator: RefreshCoordinator
    pipeline: RequestPipeline
    auth: AuthService
    customers: CustomerService
    items: ItemService
    sales_orders: SalesOrderService
    uploads: UploadService
    dashboard: DashboardService

    def close(self) -> None:
        self.transport.close()


def build_store(config: type[BaseConfig] | object) -> CredentialStore:
    """
    Create the credential store selected by ``CREDENTIAL_BACKEND``.

    :raises ValueError: Unknown backend name.
    :raises RuntimeError: Redis backend selected but unreachable.
    """
    backend = str(getattr(config, "CREDENTIAL_BACKEND", "memory")).strip().lower()
    grace = timedelta(seconds=float(getattr(config, "EXPIRY_GRACE_SECONDS", 5.0)))
    key = getattr(config, "CREDENTIAL_KEY", "auth-storage")

    if backend == "memory":
        return InMemoryCredentialStore(grace=grace)
    if backend == "file":
        from adminconsole.infra.file.json_credential_store import JsonFileCredentialStore

        return JsonFileCredentialStore(getattr(config, "CREDENTIAL_FILE"), key=key, grace=grace)
    if backend == "redis":
        from adminconsole.core import extensions
        from adminconsole.infra.redis.redis_credential_store import RedisCredentialStore

        url = getattr(config, "REDIS_URL", None)
        if not url:
            raise RuntimeError("CREDENTIAL_BACKEND=redis requires REDIS_URL")
        return RedisCredentialStore(extensions.init_redis(url), key=key, grace=grace)
    raise ValueError(
        f"Unknown CREDENTIAL_BACKEND {backend!r}; expected one of {', '.join(CREDENTIAL_BACKENDS)}"
    )


def create_client(
    config: type[BaseConfig] | object | None = None,
    *,
    store: CredentialStore | None = None,
    gateway: AuthGateway | None = None,
    session: requests.Session | None = None,
    configure_logs: bool = True,
) -> ConsoleClient:
    """
    Build and wire a console client.

    :param config: Config class or object; defaults to :func:`get_config`.
    :param store: Credential store overriding the configured backend.
    :param gateway: Auth gateway overriding the HTTP one.
    :param session: Pre-configured :class:`requests.Session` for the transport.
    :param configure_logs: Install the JSON log handler at ``LOG_LEVEL``.
    :returns: Client whose session was restored from the persisted credential.
    """
    cfg = get_config() if config is None else config

    if configure_logs:
        configure_logging(getattr(cfg, "LOG_LEVEL", "INFO"))

    store = store or build_store(cfg)
    lifecycle = SessionLifecycle(
        store, idle_timeout=float(getattr(cfg, "SESSION_IDLE_TIMEOUT_SECONDS", 0) or 0)
    )
    transport = HttpTransport(
        getattr(cfg, "API_URL"),
        timeout=float(getattr(cfg, "REQUEST_TIMEOUT", 10.0)),
        session=session,
    )
    token_cfg = AuthTokenConfig(
        access_expires=timedelta(seconds=float(getattr(cfg, "DEFAULT_ACCESS_TTL_SECONDS"))),
        refresh_expires=timedelta(seconds=float(getattr(cfg, "DEFAULT_REFRESH_TTL_SECONDS"))),
    )
    gateway = gateway or HttpAuthGateway(transport, token_cfg=token_cfg)
    coordinator = RefreshCoordinator(
        store=store,
        gateway=gateway,
        lifecycle=lifecycle,
        wait_timeout=float(getattr(cfg, "REFRESH_WAIT_TIMEOUT_SECONDS", 30.0)),
    )
    pipeline = RequestPipeline(
        transport=transport,
        store=store,
        coordinator=coordinator,
        lifecycle=lifecycle,
        preflight_refresh=bool(getattr(cfg, "PREFLIGHT_REFRESH", False)),
    )

    client = ConsoleClient(
        config=cfg,
        store=store,
        lifecycle=lifecycle,
        transport=transport,
        coordinator=coordinator,
        pipeline=pipeline,
        auth=AuthService(gateway=gateway, store=store, lifecycle=lifecycle, pipeline=pipeline),
        customers=CustomerService(pipeline=pipeline),
        items=ItemService(pipeline=pipeline),
        sales_orders=SalesOrderService(pipeline=pipeline),
        uploads=UploadService(pipeline=pipeline),
        dashboard=DashboardService(pipeline=pipeline),
    )
    client.auth.restore()
    return client

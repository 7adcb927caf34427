"""
ATS adapter factory.
"""

import httpx

from talent_engine.integrations.ats.bullhorn_adapter import BullhornAtsAdapter
from talent_engine.integrations.ats.config import AtsConfig, AtsProviderType, get_ats_config
from talent_engine.integrations.ats.greenhouse_adapter import GreenhouseAdapter
from talent_engine.integrations.ats.greenhouse_client import GreenhouseHarvestClient
from talent_engine.integrations.ats.interface import AtsAdapter, AtsEventStore
from talent_engine.integrations.bullhorn.client import BullhornClient
from talent_engine.integrations.bullhorn.types import BullhornAuthTokens
from talent_engine.shared.logging import get_logger

logger = get_logger(__name__)


def create_bullhorn_client(
    config: AtsConfig,
    http_client: httpx.AsyncClient | None = None,
) -> BullhornClient:
    tokens = None
    if config.bullhorn_refresh_token:
        # Expired placeholder: the first request refreshes it.
        tokens = BullhornAuthTokens(
            access_token="",
            refresh_token=config.bullhorn_refresh_token,
            expires_at=0,
        )
    return BullhornClient(
        client_id=config.bullhorn_client_id,
        client_secret=config.bullhorn_client_secret,
        redirect_uri=config.bullhorn_redirect_uri,
        base_url=config.bullhorn_base_url,
        auth_base_url=config.bullhorn_auth_base_url,
        http_client=http_client,
        tokens=tokens,
        test_mode=config.bullhorn_test_mode,
        timeout_seconds=config.request_timeout_seconds,
    )


def create_ats_adapter(
    provider: AtsProviderType | str,
    store: AtsEventStore,
    config: AtsConfig | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AtsAdapter:
    """Build the adapter for ``provider`` with a configured HTTP client.

    Raises:
        ValueError: If the provider is unknown.
    """
    cfg = config or get_ats_config()
    provider_type = AtsProviderType(provider)

    logger.info("Creating ATS adapter", extra={"provider": provider_type.value})

    if provider_type == AtsProviderType.BULLHORN:
        return BullhornAtsAdapter(create_bullhorn_client(cfg, http_client), store)

    return GreenhouseAdapter(
        GreenhouseHarvestClient(
            api_key=cfg.greenhouse_api_key,
            on_behalf_of=cfg.greenhouse_on_behalf_of or None,
            base_url=cfg.greenhouse_base_url,
            http_client=http_client,
            timeout_seconds=cfg.request_timeout_seconds,
        ),
        store,
    )

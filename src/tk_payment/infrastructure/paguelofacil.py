"""PagueloFacil HTTP client (payment links).

Only the transport lives here: the form is built by the domain layer and the
response is interpreted by the reconciler. Any failure to get a JSON object
back is a ProviderError; nothing in this module touches the database.
"""
import logging
from typing import Any

import httpx

from config.settings import settings
from src.tk_common.errors import ProviderError

logger = logging.getLogger(__name__)

_LINK_PATH = "/LinkDeamon.cfm"
_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Content-Type": "application/x-www-form-urlencoded",
}


class PagueloFacilClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = (base_url or settings.PAGUELOFACIL_BASE_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.PROVIDER_TIMEOUT_SECONDS
        self._client = client

    async def create_link(self, form: dict[str, str]) -> dict[str, Any]:
        url = f"{self._base_url}{_LINK_PATH}"
        try:
            if self._client is not None:
                response = await self._client.post(url, data=form, headers=_HEADERS)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(url, data=form, headers=_HEADERS)
            payload = response.json()
        except httpx.TimeoutException as exc:
            logger.warning("PagueloFacil timed out after %.1fs", self._timeout)
            raise ProviderError("Payment provider timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("PagueloFacil request failed: %s", exc)
            raise ProviderError("Payment provider is unreachable") from exc
        except ValueError as exc:
            logger.warning("PagueloFacil returned non-JSON body (HTTP %d)", response.status_code)
            raise ProviderError("Payment provider returned an invalid response") from exc

        if not isinstance(payload, dict):
            raise ProviderError("Payment provider returned an invalid response")
        logger.debug("PagueloFacil responded HTTP %d", response.status_code)
        return payload

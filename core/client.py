# =============================================================================
# core/client.py  -  Authenticated GETs against the Veeam REST API
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   VeeamClient is the only thing the tool layer talks to.  It offers:
#     - get(path, query)        one authenticated GET, parsed as JSON
#     - get_list(path, query)   one page, or every page when query.all is set
#
# THE 401 RULE:
#   A token can pass the staleness check and still be rejected by the time
#   the request lands.  On a 401 we refresh once and retry once.  Nothing
#   else is retried.
# =============================================================================

import logging
import time
from typing import Any, Callable, Mapping, Optional

import httpx

from core.auth import TokenManager, response_text
from core.errors import UpstreamError
from core.models import Credential, ListQuery, TokenState
from core.pagination import PAGE_DELAY_SECONDS, collect_pages, normalize_page_size

logger = logging.getLogger(__name__)


def clean_query(query: Optional[Mapping[str, Any]]) -> dict[str, str]:
    """Drop None/empty-string parameters; stringify the rest."""
    if not query:
        return {}
    return {key: str(value) for key, value in query.items() if value is not None and value != ""}


class VeeamClient:
    """Read-only client for one Veeam Backup server.

    Args:
        credential: Where to connect and who to log in as.
        http: Async HTTP client.  When omitted one is built from `timeout`
            and `verify`, and aclose() closes it.
        state: Token state to start from (tests inject one).
        clock: Epoch-seconds clock passed to the TokenManager.
        page_delay: Pause between page requests when aggregating.
    """

    def __init__(
        self,
        credential: Credential,
        http: Optional[httpx.AsyncClient] = None,
        *,
        timeout: float = 30.0,
        verify: bool = True,
        state: Optional[TokenState] = None,
        clock: Callable[[], float] = time.time,
        page_delay: float = PAGE_DELAY_SECONDS,
    ) -> None:
        self.credential = credential
        self._owns_http = http is None
        self._http = http if http is not None else httpx.AsyncClient(timeout=httpx.Timeout(timeout), verify=verify)
        self.tokens = TokenManager(credential, self._http, state=state, clock=clock)
        self.page_delay = page_delay

    @classmethod
    def from_settings(cls, settings) -> "VeeamClient":
        return cls(
            settings.credential,
            timeout=settings.timeout_seconds,
            verify=settings.verify_tls,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def build_url(self, path: str) -> str:
        return f"{self.credential.base_url}/{path.lstrip('/')}"

    async def _send(self, url: str, params: dict[str, str]) -> httpx.Response:
        return await self._http.get(
            url,
            params=params,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {self.tokens.access_token}",
            },
        )

    async def get(self, path: str, query: Optional[Mapping[str, Any]] = None) -> Any:
        """GET `path` with a valid bearer token and return the parsed JSON body.

        Raises:
            AuthenticationError: if a token can't be obtained.
            UpstreamError: on a non-2xx status or a body that isn't JSON.
        """
        await self.tokens.ensure_valid()
        url = self.build_url(path)
        params = clean_query(query)

        response = await self._send(url, params)
        if response.status_code == 401 and await self.tokens.refresh():
            logger.info("GET %s was unauthorized; retrying with a refreshed token", path)
            response = await self._send(url, params)

        if not response.is_success:
            raise UpstreamError(path, response.status_code, response_text(response))

        try:
            return response.json()
        except ValueError:
            raise UpstreamError(path, response.status_code, response_text(response)) from None

    async def get_list(self, path: str, query: Optional[ListQuery] = None) -> Any:
        """List a collection: the raw page, or all pages when `query.all` is set."""
        query = query or ListQuery()
        params = {
            "offset": query.offset or 0,
            "limit": query.limit or 100,
            "filter": query.filter,
            "sort": query.sort,
            "search": query.search,
        }
        if not query.all:
            return await self.get(path, params)

        async def fetch_page(offset: int, limit: int) -> Any:
            return await self.get(path, {**params, "offset": offset, "limit": limit})

        return await collect_pages(
            fetch_page,
            offset=query.offset or 0,
            page_size=normalize_page_size(query.limit),
            delay=self.page_delay,
        )

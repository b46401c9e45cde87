"""Single-page access to ``list=usercontribs`` through the relay.

Each wiki's ``/w/api.php`` is reached via an allorigins-style relay: the
full target URL travels as the relay's ``url`` parameter and the upstream
body comes back as a JSON string under ``contents``.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import httpx
import structlog

from contrib_analyzer.config import SourceSettings
from contrib_analyzer.exceptions import SourceError, SourceUnavailableError
from contrib_analyzer.models import ContributionPage, ContributionRecord

if TYPE_CHECKING:
    from datetime import date
    from types import TracebackType

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_CONTRIB_PROPS = "title|timestamp|comment|size|sizediff|flags|ids|tags"

# ``ucshow`` values sent for each toggle. Both directives always travel as
# separate repeated parameters on the same request; see DESIGN.md.
_MINOR_DIRECTIVE = {True: "!minor", False: "minor"}
_BOT_DIRECTIVE = {True: "!bot", False: "bot"}


def build_query(
    participant: str,
    start_date: date,
    end_date: date,
    *,
    cursor: str | None = None,
    include_minor: bool = True,
    include_bot: bool = True,
    page_size: int = 500,
) -> list[tuple[str, str]]:
    """Build the ``usercontribs`` query for one page.

    Returns an ordered list of pairs because ``ucshow`` appears twice.
    """
    params: list[tuple[str, str]] = [
        ("action", "query"),
        ("list", "usercontribs"),
        ("ucuser", participant),
        ("ucstart", f"{start_date.isoformat()}T00:00:00Z"),
        ("ucend", f"{end_date.isoformat()}T23:59:59Z"),
        ("ucdir", "newer"),
        ("uclimit", str(page_size)),
        ("ucprop", _CONTRIB_PROPS),
        ("format", "json"),
        ("origin", "*"),
        ("ucshow", _MINOR_DIRECTIVE[include_minor]),
        ("ucshow", _BOT_DIRECTIVE[include_bot]),
    ]
    if cursor:
        params.append(("uccontinue", cursor))
    return params


def api_url(domain: str) -> str:
    return f"https://{domain}/w/api.php"


class PageFetcher:
    """Fetch and parse one page of contributions at a time.

    Args:
        settings: Relay and request configuration.
        client: Optional injected :class:`httpx.AsyncClient`. When omitted
            the fetcher owns a client and closes it in :meth:`aclose`.
    """

    def __init__(
        self,
        settings: SourceSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or SourceSettings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._settings.timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> PageFetcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def fetch_page(
        self,
        participant: str,
        domain: str,
        start_date: date,
        end_date: date,
        cursor: str | None = None,
        *,
        include_minor: bool = True,
        include_bot: bool = True,
    ) -> ContributionPage:
        """Request one page of a participant's contributions on ``domain``.

        Raises:
            SourceUnavailableError: The relay could not be reached or
                answered with a non-success status.
            SourceError: The wiki reported an error or the body could not
                be decoded.
        """
        query = build_query(
            participant,
            start_date,
            end_date,
            cursor=cursor,
            include_minor=include_minor,
            include_bot=include_bot,
            page_size=self._settings.page_size,
        )
        target = f"{api_url(domain)}?{urlencode(query)}"

        try:
            response = await self._client.get(
                self._settings.relay_url,
                params={"url": target},
                headers={
                    "User-Agent": self._settings.user_agent,
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as exc:
            msg = f"{domain}: {exc.__class__.__name__}: {exc}"
            raise SourceUnavailableError(msg) from exc

        if not response.is_success:
            msg = f"HTTP {response.status_code}"
            raise SourceUnavailableError(msg)

        payload = _decode(response)

        error = payload.get("error")
        if error:
            info = error.get("info") if isinstance(error, dict) else str(error)
            raise SourceError(str(info or "unknown source error"))

        items = (payload.get("query") or {}).get("usercontribs") or []
        cursor_out = (payload.get("continue") or {}).get("uccontinue")

        try:
            records = [ContributionRecord.from_api(item) for item in items]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            msg = f"Malformed contribution record: {exc}"
            raise SourceError(msg) from exc

        logger.debug(
            "page_fetched",
            domain=domain,
            records=len(records),
            has_more=cursor_out is not None,
        )
        return ContributionPage(records=records, cursor=cursor_out)


def _decode(response: httpx.Response) -> dict[str, Any]:
    """Unwrap the relay envelope into the upstream JSON payload."""
    try:
        envelope = response.json()
        contents = envelope["contents"]
        payload = json.loads(contents) if isinstance(contents, str) else contents
    except (ValueError, KeyError, TypeError) as exc:
        msg = f"Malformed response payload: {exc}"
        raise SourceError(msg) from exc
    if not isinstance(payload, dict):
        msg = "Malformed response payload: expected a JSON object"
        raise SourceError(msg)
    return payload

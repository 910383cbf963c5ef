"""GitHub session used to list owned repositories and update their settings."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import os
import typing as typ
from urllib.parse import quote

import httpx
import msgspec

from repoconform.settings import SETTING_SPECS

from .errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
    GitHubTransportError,
)
from .models import RepositoryPage, RepositorySnapshot

if typ.TYPE_CHECKING:
    import types


class RepositorySettingsClient(typ.Protocol):
    """Interface the scanner and updater need from a GitHub session."""

    async def viewer_login(self) -> str:
        """Return the login of the authenticated account."""
        ...

    def iter_repository_pages(
        self, login: str, *, after: str | None = None
    ) -> cabc.AsyncIterator[RepositoryPage]:
        """Yield pages of repositories owned by ``login`` in server order."""
        ...

    async def update_repository(
        self, owner: str, name: str, payload: cabc.Mapping[str, bool]
    ) -> None:
        """Apply a sparse settings payload to ``owner/name``."""
        ...


_DEFAULT_API_URL = "https://api.github.com"


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubConfig:
    """Connection settings for the GitHub REST and GraphQL APIs."""

    token: str
    api_url: str = _DEFAULT_API_URL
    graphql_url: str | None = None
    timeout_s: float = 20.0
    user_agent: str = "repoconform/0.1"

    @property
    def graphql_endpoint(self) -> str:
        """Return the GraphQL endpoint, derived from ``api_url`` by default."""
        if self.graphql_url:
            return self.graphql_url
        return f"{self.api_url.rstrip('/')}/graphql"

    @classmethod
    def from_env(cls, token: str | None = None) -> GitHubConfig:
        """Build configuration from ``REPOCONFORM_GITHUB_TOKEN`` or ``GITHUB_TOKEN``.

        An explicit ``token`` (for example one typed at a prompt) takes the
        place of both variables. ``REPOCONFORM_GITHUB_API_URL`` overrides the
        API base URL, which is useful for GitHub Enterprise Server.
        """
        token = (
            (token or "").strip()
            or os.environ.get("REPOCONFORM_GITHUB_TOKEN", "").strip()
            or os.environ.get("GITHUB_TOKEN", "").strip()
        )
        if not token:
            raise GitHubConfigError.missing_token()
        api_url = (
            os.environ.get("REPOCONFORM_GITHUB_API_URL", "").strip() or _DEFAULT_API_URL
        )
        return cls(token=token, api_url=api_url)


PAGE_SIZE = 100

_VIEWER_QUERY = """
query {
  viewer {
    login
  }
}
"""

_REPOSITORY_FIELDS = "\n".join(
    f"        {spec.graphql_field}" for spec in SETTING_SPECS.values()
)

_REPOSITORIES_QUERY = f"""
query($login: String!, $after: String) {{
  user(login: $login) {{
    repositories(affiliations: [OWNER], first: {PAGE_SIZE}, after: $after) {{
      pageInfo {{
        hasNextPage
        endCursor
      }}
      nodes {{
        id
        name
{_REPOSITORY_FIELDS}
      }}
    }}
  }}
}}
"""

_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_FORBIDDEN = 403
_HTTP_TOO_MANY_REQUESTS = 429


def _validate_string_keyed_dict(
    raw_dict: dict[typ.Any, typ.Any], *, field_name: str
) -> dict[str, typ.Any]:
    result: dict[str, typ.Any] = {}
    for key, value in raw_dict.items():
        if not isinstance(key, str):
            raise GitHubResponseShapeError.missing(field_name)
        result[key] = value
    return result


def _parse_graphql_payload(payload_raw: object) -> dict[str, typ.Any]:
    """Validate a GraphQL response and return its ``data`` member."""
    if not isinstance(payload_raw, dict):
        raise GitHubResponseShapeError.missing("response")

    payload = _validate_string_keyed_dict(payload_raw, field_name="response")
    errors = payload.get("errors")
    if errors:
        raise GitHubAPIError.graphql_errors(errors)

    data = payload.get("data")
    if not isinstance(data, dict):
        raise GitHubResponseShapeError.missing("data")
    return _validate_string_keyed_dict(data, field_name="data")


def _extract_connection(
    data: dict[str, typ.Any], path: list[str]
) -> dict[str, typ.Any]:
    node: object = data
    for key in path:
        if not isinstance(node, dict):
            raise GitHubResponseShapeError.missing(".".join(path))
        node = node.get(key)
    if not isinstance(node, dict):
        raise GitHubResponseShapeError.missing(".".join(path))
    return node


def _decode_nodes(connection: dict[str, typ.Any]) -> tuple[RepositorySnapshot, ...]:
    nodes = connection.get("nodes")
    if not isinstance(nodes, list):
        raise GitHubResponseShapeError.missing("user.repositories.nodes")
    snapshots: list[RepositorySnapshot] = []
    for index, node in enumerate(nodes):
        try:
            snapshots.append(msgspec.convert(node, type=RepositorySnapshot))
        except msgspec.ValidationError as exc:
            raise GitHubResponseShapeError.invalid_node(index, str(exc)) from exc
    return tuple(snapshots)


def _page_from_connection(
    connection: dict[str, typ.Any], *, requested_after: str | None
) -> RepositoryPage:
    """Build a page and check that a further page can actually be requested."""
    page_info = connection.get("pageInfo")
    if not isinstance(page_info, dict):
        raise GitHubResponseShapeError.missing("user.repositories.pageInfo")

    has_next_page = page_info.get("hasNextPage")
    if not isinstance(has_next_page, bool):
        raise GitHubResponseShapeError.missing(
            "user.repositories.pageInfo.hasNextPage"
        )
    raw_cursor = page_info.get("endCursor")
    end_cursor = raw_cursor if isinstance(raw_cursor, str) else None
    if has_next_page:
        if end_cursor is None:
            raise GitHubResponseShapeError.missing(
                "user.repositories.pageInfo.endCursor"
            )
        if end_cursor == requested_after:
            raise GitHubResponseShapeError.stale_cursor(end_cursor)

    return RepositoryPage(
        nodes=_decode_nodes(connection),
        has_next_page=has_next_page,
        end_cursor=end_cursor,
    )


def _response_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return response.reason_phrase


def _retry_after(headers: httpx.Headers) -> float | None:
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _error_from_response(response: httpx.Response) -> GitHubAPIError:
    """Translate an HTTP error response, recognising primary and secondary limits."""
    message = _response_message(response)
    status = response.status_code
    rate_limited = status == _HTTP_TOO_MANY_REQUESTS or (
        status == _HTTP_FORBIDDEN
        and (
            response.headers.get("x-ratelimit-remaining") == "0"
            or "rate limit" in message.lower()
        )
    )
    return GitHubAPIError.http_error(
        status,
        message=message,
        rate_limited=rate_limited,
        retry_after=_retry_after(response.headers),
    )


class GitHubRepositoryClient:
    """httpx implementation of :class:`RepositorySettingsClient`."""

    def __init__(
        self,
        config: GitHubConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the session, creating an authenticated httpx client if needed."""
        if not config.token.strip():
            raise GitHubConfigError.empty_token()

        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s,
            headers={
                "Authorization": f"Bearer {config.token}",
                "User-Agent": config.user_agent,
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )

    @property
    def config(self) -> GitHubConfig:
        """Return the connection settings this client was built with."""
        return self._config

    async def __aenter__(self) -> typ.Self:
        """Return the client for use in ``async with`` blocks."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Close owned HTTP resources on exit."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def viewer_login(self) -> str:
        """Return the login of the account that owns the token."""
        data = await self._graphql(_VIEWER_QUERY, {})
        viewer = data.get("viewer")
        login = viewer.get("login") if isinstance(viewer, dict) else None
        if not isinstance(login, str) or not login:
            raise GitHubResponseShapeError.missing("viewer.login")
        return login

    async def iter_repository_pages(
        self, login: str, *, after: str | None = None
    ) -> cabc.AsyncIterator[RepositoryPage]:
        """Yield pages of repositories owned by ``login``.

        Pages are requested one at a time, each with the cursor reported by
        the previous response, until GitHub reports no further page. Nothing
        is requested until the iterator is advanced, and iteration can be
        restarted from any cursor by passing ``after``.
        """
        if not login.strip():
            msg = "login must be non-empty"
            raise ValueError(msg)

        cursor = after
        while True:
            data = await self._graphql(
                _REPOSITORIES_QUERY, {"login": login, "after": cursor}
            )
            connection = _extract_connection(data, ["user", "repositories"])
            page = _page_from_connection(connection, requested_after=cursor)
            yield page
            if not page.has_next_page:
                return
            cursor = page.end_cursor

    async def update_repository(
        self, owner: str, name: str, payload: cabc.Mapping[str, bool]
    ) -> None:
        """Send ``PATCH /repos/{owner}/{name}`` with only the given fields."""
        url = (
            f"{self._config.api_url.rstrip('/')}/repos/"
            f"{quote(owner, safe='')}/{quote(name, safe='')}"
        )
        response = await self._send("PATCH", url, json=dict(payload))
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise _error_from_response(response)

    async def _graphql(
        self, query: str, variables: dict[str, typ.Any]
    ) -> dict[str, typ.Any]:
        """Execute a GraphQL query and return the validated data field."""
        response = await self._send(
            "POST",
            self._config.graphql_endpoint,
            json={"query": query, "variables": variables},
        )
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise _error_from_response(response)
        try:
            payload_raw = response.json()
        except ValueError as exc:
            raise GitHubResponseShapeError.missing("response") from exc
        return _parse_graphql_payload(payload_raw)

    async def _send(
        self, method: str, url: str, *, json: dict[str, typ.Any]
    ) -> httpx.Response:
        try:
            return await self._client.request(method, url, json=json)
        except httpx.HTTPError as exc:
            raise GitHubTransportError.from_exception(exc) from exc

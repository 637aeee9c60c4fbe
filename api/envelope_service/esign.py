from typing import Any, NamedTuple, Optional, Type

import httpx

from . import config
from .errors import (
    ConfigurationError,
    StatusSnapshotError,
    UpstreamError,
    UpstreamSubmissionError,
)

COLLABORATOR = "esign"


class DownloadedDocument(NamedTuple):
    content: bytes
    content_type: str
    filename: str


def _error_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text or None


class ESignClient:
    """Client for the e-signature provider's envelope REST API.

    Base URL and account are taken from configuration, or looked up from the
    OAuth ``userinfo`` endpoint (default account) on first use.
    """

    def __init__(
        self,
        access_token: Optional[str],
        account_id: Optional[str] = None,
        base_url: Optional[str] = None,
        host_env: str = config.DOCUSIGN_HOST_ENV,
        timeout: float = config.HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.account_id = account_id
        self.base_url = base_url.rstrip("/") if base_url else None
        self.host_env = host_env
        self.timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(cls, **kwargs) -> "ESignClient":
        return cls(
            config.DOCUSIGN_ACCESS_TOKEN,
            account_id=config.DOCUSIGN_ACCOUNT_ID,
            base_url=config.DOCUSIGN_BASE_URL,
            **kwargs,
        )

    async def __aenter__(self) -> "ESignClient":
        self._http = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    @property
    def _auth(self) -> dict:
        return {"Authorization": f"Bearer {self.access_token}", "Accept": "application/json"}

    async def resolve_account(
        self,
        error_cls: Type[UpstreamError] = UpstreamError,
        operation: str = "resolveAccount",
    ) -> None:
        if not self.access_token:
            raise ConfigurationError("DOCUSIGN_ACCESS_TOKEN is not set", COLLABORATOR, operation)
        if self.base_url and self.account_id:
            return
        try:
            resp = await self._http.get(f"https://{self.host_env}/oauth/userinfo", headers=self._auth)
            resp.raise_for_status()
            accounts = resp.json().get("accounts") or []
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            raise error_cls(f"Failed to fetch provider user info: {exc}", COLLABORATOR, operation) from exc
        default = next((a for a in accounts if isinstance(a, dict) and a.get("is_default")), None)
        if not default or not default.get("base_uri") or not default.get("account_id"):
            raise error_cls("No default e-signature account found for the user", COLLABORATOR, operation)
        self.base_url = f"{default['base_uri'].rstrip('/')}/restapi/v2.1"
        self.account_id = str(default["account_id"])

    async def _request(
        self,
        method: str,
        path: str,
        error_cls: Type[UpstreamError],
        operation: str,
        headers: Optional[dict] = None,
        **kwargs,
    ) -> httpx.Response:
        await self.resolve_account(error_cls, operation)
        url = f"{self.base_url}/accounts/{self.account_id}{path}"
        try:
            resp = await self._http.request(method, url, headers={**self._auth, **(headers or {})}, **kwargs)
        except httpx.RequestError as exc:
            raise error_cls(f"Provider call failed: {exc}", COLLABORATOR, operation) from exc
        if resp.is_error:
            raise error_cls(
                f"Provider answered {resp.status_code} to {operation}",
                COLLABORATOR,
                operation,
                details=_error_body(resp),
            )
        return resp

    async def _json(self, method: str, path: str, error_cls: Type[UpstreamError], operation: str, **kwargs) -> dict:
        resp = await self._request(method, path, error_cls, operation, **kwargs)
        try:
            data = resp.json()
        except ValueError as exc:
            raise error_cls(f"Provider sent non-JSON content to {operation}", COLLABORATOR, operation) from exc
        if not isinstance(data, dict):
            raise error_cls(f"Provider sent unexpected content to {operation}", COLLABORATOR, operation)
        return data

    async def submit_envelope(self, payload: dict) -> dict:
        return await self._json("POST", "/envelopes", UpstreamSubmissionError, "submitEnvelope", json=payload)

    async def get_envelope(self, envelope_id: str, include: Optional[str] = None) -> dict:
        params = {"include": include} if include else None
        return await self._json(
            "GET", f"/envelopes/{envelope_id}", StatusSnapshotError, "getEnvelope", params=params
        )

    async def get_recipients(self, envelope_id: str, include_tabs: bool = True) -> dict:
        params = {"include_tabs": "true"} if include_tabs else None
        return await self._json(
            "GET", f"/envelopes/{envelope_id}/recipients", StatusSnapshotError, "getRecipients", params=params
        )

    async def get_documents(self, envelope_id: str) -> dict:
        return await self._json("GET", f"/envelopes/{envelope_id}/documents", StatusSnapshotError, "getDocuments")

    async def download(self, envelope_id: str, kind: str, document_id: Optional[str] = None) -> DownloadedDocument:
        if kind == "combined":
            path, filename = "combined", f"envelope-{envelope_id}-combined.pdf"
        elif kind == "archive":
            path, filename = "archive", f"envelope-{envelope_id}-archive.zip"
        else:
            path, filename = document_id, f"document-{document_id}.pdf"
        accept = "application/zip" if kind == "archive" else "application/pdf"
        resp = await self._request(
            "GET",
            f"/envelopes/{envelope_id}/documents/{path}",
            UpstreamError,
            "download",
            headers={"Accept": accept},
        )
        return DownloadedDocument(resp.content, resp.headers.get("content-type") or accept, filename)


async def get_esign_client():
    async with ESignClient.from_config() as client:
        yield client

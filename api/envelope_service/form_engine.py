from typing import Any, List, Mapping, Optional, Sequence

import httpx

from . import config
from .errors import ConfigurationError, UpstreamError, UpstreamGenerationError, UpstreamLookupError
from .models import DocumentSource, FieldLocation, FieldLocationBundle, TabKind
from .utils import form_fields_to_engine

COLLABORATOR = "form_engine"
TOKEN_PATH = "/rest_authentication/token"
GENERATE_PATH = "/rest/QuikFormsEngine/qfe/execute/pdf"
LOCATIONS_PATH = "/rest/QFEM/v2000/fields/esign"


def _parse_locations(raw: Optional[Sequence[Mapping[str, Any]]], kind: TabKind) -> List[FieldLocation]:
    return [
        FieldLocation(
            x=field["DocusignXCoord"],
            y=field["DocusignYCoord"],
            page=field["Page"],
            role=str(field.get("FieldRole") or ""),
            kind=kind,
        )
        for field in raw or []
    ]


def parse_location_bundle(entry: Mapping[str, Any]) -> FieldLocationBundle:
    return FieldLocationBundle(
        form_id=str(entry.get("FormId")),
        sign_fields=_parse_locations(entry.get("SignFields"), TabKind.sign),
        sign_date_fields=_parse_locations(entry.get("SignDateFields"), TabKind.date),
        sign_initials_fields=_parse_locations(entry.get("SignInitialsFields"), TabKind.initial),
    )


class FormEngineClient:
    """Client for the form-fill engine: PDF generation and signature field locations.

    Use as an async context manager; call ``authenticate`` once before fanning
    out concurrent calls.
    """

    def __init__(
        self,
        base_url: Optional[str],
        username: Optional[str],
        password: Optional[str],
        timeout: float = config.HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None
        self._token: Optional[str] = None

    @classmethod
    def from_config(cls, **kwargs) -> "FormEngineClient":
        return cls(
            config.QUIK_BASE_URL,
            config.QUIK_OAUTH_MASTER_USER,
            config.QUIK_OAUTH_MASTER_PASSWORD,
            **kwargs,
        )

    async def __aenter__(self) -> "FormEngineClient":
        self._http = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def authenticate(self) -> str:
        if not (self.base_url and self.username and self.password):
            raise ConfigurationError(
                "Form engine settings missing (QUIK_BASE_URL, QUIK_OAUTH_MASTER_USER, QUIK_OAUTH_MASTER_PASSWORD)",
                COLLABORATOR,
                "authenticate",
            )
        try:
            resp = await self._http.post(
                f"{self.base_url}{TOKEN_PATH}",
                data={"grant_type": "password", "username": self.username, "password": self.password},
            )
            resp.raise_for_status()
            token = resp.json().get("access_token")
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            raise UpstreamError(f"Form engine authentication failed: {exc}", COLLABORATOR, "authenticate") from exc
        if not token:
            raise UpstreamError("Form engine returned no access token", COLLABORATOR, "authenticate")
        self._token = token
        return token

    async def _headers(self) -> dict:
        if self._token is None:
            await self.authenticate()
        return {"Authorization": f"Bearer {self._token}", "Content-Type": "application/json"}

    async def generate_document(self, form_id: str, document_id: str, fields: Mapping[str, str]) -> DocumentSource:
        body = {
            "HostFormOnQuik": True,
            "FormFields": form_fields_to_engine(fields),
            "QuikFormID": form_id,
        }
        try:
            resp = await self._http.post(f"{self.base_url}{GENERATE_PATH}", json=body, headers=await self._headers())
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamGenerationError(
                f"PDF generation failed for form {form_id}: {exc}", COLLABORATOR, "generateDocuments"
            ) from exc
        if not isinstance(data, dict):
            data = {}
        result = data.get("ResultData")
        if resp.is_error or data.get("Errors") or not isinstance(result, dict) or not result.get("PDF"):
            raise UpstreamGenerationError(
                f"Form engine returned no PDF for form {form_id}",
                COLLABORATOR,
                "generateDocuments",
                details=data.get("Errors"),
            )
        return DocumentSource(
            document_id=document_id,
            origin="generated-form",
            content=result["PDF"],
            display_name=f"{result.get('FormShortName') or form_id}-{document_id}",
        )

    async def fetch_field_locations(self, form_ids: Sequence[str]) -> List[FieldLocationBundle]:
        try:
            resp = await self._http.get(
                f"{self.base_url}{LOCATIONS_PATH}",
                params={"formIds": ",".join(form_ids)},
                headers=await self._headers(),
            )
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamLookupError(
                f"Field-location lookup failed for {', '.join(form_ids)}: {exc}", COLLABORATOR, "fetchFieldLocations"
            ) from exc
        if not isinstance(data, dict):
            data = {}
        entries = data.get("ResultData")
        if resp.is_error or data.get("Errors") or not isinstance(entries, list) or not entries:
            raise UpstreamLookupError(
                f"Form engine returned no field locations for {', '.join(form_ids)}",
                COLLABORATOR,
                "fetchFieldLocations",
                details=data.get("Errors"),
            )
        try:
            return [parse_location_bundle(entry) for entry in entries]
        except (KeyError, TypeError, ValueError) as exc:
            raise UpstreamLookupError(
                f"Malformed field locations for {', '.join(form_ids)}: {exc}", COLLABORATOR, "fetchFieldLocations"
            ) from exc


async def get_form_engine():
    async with FormEngineClient.from_config() as engine:
        yield engine

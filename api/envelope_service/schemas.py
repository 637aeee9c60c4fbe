from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BeforeValidator, Field, field_validator

from .models import AttachmentTab, CamelModel, stringify
from .utils import form_fields_from_any

OptStr = Annotated[Optional[str], BeforeValidator(stringify)]
# kept loose so the composer can report bad identifiers itself
RawId = Annotated[Optional[Any], BeforeValidator(stringify)]
FormFields = Annotated[Dict[str, str], BeforeValidator(form_fields_from_any)]


def _page_number(value):
    return "1" if value is None else stringify(value)


PageNumber = Annotated[str, BeforeValidator(_page_number)]


class SignerCreate(CamelModel):
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: OptStr = None
    attachments: List[AttachmentTab] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class CarbonCopyCreate(CamelModel):
    name: str
    email: str


class FormCreate(CamelModel):
    form_id: OptStr = None
    signers: List[SignerCreate] = Field(default_factory=list)
    cc: List[CarbonCopyCreate] = Field(default_factory=list)
    form_fields: FormFields = Field(default_factory=dict)

    @field_validator("signers", "cc", mode="before")
    @classmethod
    def _none_list(cls, v):
        return [] if v is None else v


class SignLocation(CamelModel):
    x_position: float
    y_position: float
    page_number: PageNumber = "1"


class SignLocations(CamelModel):
    sign_here: List[SignLocation] = Field(default_factory=list)
    initial_here: List[SignLocation] = Field(default_factory=list)
    date_signed: List[SignLocation] = Field(default_factory=list)
    attachment_tabs: List[AttachmentTab] = Field(default_factory=list)


class AdditionalPDFSigner(CamelModel):
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    sign_locations: Optional[SignLocations] = None
    attachments: List[AttachmentTab] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class AdditionalPDF(CamelModel):
    document_name: str = "Document"
    document_base64: Optional[str] = None
    signers: List[AdditionalPDFSigner] = Field(default_factory=list)


class EnvelopeCreate(CamelModel):
    email_subject: str = "Please sign"
    forms: List[FormCreate] = Field(default_factory=list)
    additional_pdfs: List[AdditionalPDF] = Field(default_factory=list, alias="additionalPDFs")
    status: Literal["created", "sent"] = "created"

    @field_validator("forms", "additional_pdfs", "status", mode="before")
    @classmethod
    def _defaults(cls, v, info):
        if v is None:
            return "created" if info.field_name == "status" else []
        return v


# ---------- explicit recipient-document linkage ----------

class LinkedForm(CamelModel):
    form_id: OptStr = None
    document_id: RawId = None
    form_fields: FormFields = Field(default_factory=dict)


class RecipientDocument(CamelModel):
    document_id: RawId = None
    roles: Optional[List[str]] = None


class RecipientDetail(CamelModel):
    email: Optional[str] = None
    name: Optional[str] = None
    document_id: RawId = None
    documents: List[RecipientDocument] = Field(default_factory=list)
    attachments: List[AttachmentTab] = Field(default_factory=list)

    def linked_documents(self) -> List[RecipientDocument]:
        if self.documents:
            return list(self.documents)
        if self.document_id is not None:
            return [RecipientDocument(document_id=self.document_id)]
        return []


class SuppliedDocument(CamelModel):
    document_id: RawId = None
    document_base64: Optional[str] = None
    file_name: str = "Document"


class LinkedEnvelopeCreate(CamelModel):
    email_subject: str = "Please sign"
    forms: List[LinkedForm] = Field(default_factory=list)
    recipient_details: List[RecipientDetail] = Field(default_factory=list)
    additional_documents: List[SuppliedDocument] = Field(default_factory=list)
    status: Literal["created", "sent"] = "created"


# ---------- client-filled PDF, engine-located tabs ----------

class PrefilledEnvelopeCreate(CamelModel):
    form_id: OptStr = None
    pdf_base64: Optional[str] = None
    signers: List[SignerCreate] = Field(default_factory=list)
    email_subject: str = "Please sign this document"
    status: Literal["created", "sent"] = "created"

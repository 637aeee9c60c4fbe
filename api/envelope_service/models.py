from enum import Enum
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def stringify(value: Any) -> Any:
    """Numbers arriving where the provider expects strings are stringified."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


Str = Annotated[str, BeforeValidator(stringify)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class TabKind(str, Enum):
    sign = "sign"
    date = "date"
    initial = "initial"


# ---------- form-fill engine side ----------

class FieldLocation(BaseModel):
    x: float
    y: float
    page: int
    role: str
    kind: TabKind


class FieldLocationBundle(BaseModel):
    form_id: str
    sign_fields: List[FieldLocation] = Field(default_factory=list)
    sign_date_fields: List[FieldLocation] = Field(default_factory=list)
    sign_initials_fields: List[FieldLocation] = Field(default_factory=list)


# ---------- envelope composition side ----------

class DocumentSource(CamelModel):
    document_id: str
    origin: Literal["client-supplied", "generated-form"]
    content: str  # base64 PDF bytes
    display_name: str

    def to_wire(self) -> dict:
        return {
            "documentBase64": self.content,
            "documentId": self.document_id,
            "fileExtension": "pdf",
            "name": self.display_name,
        }


class TabPlacement(CamelModel):
    document_id: str
    page_number: str
    x_position: int
    y_position: int


class AttachmentTab(CamelModel):
    document_id: Str
    name: str
    tab_label: str
    page_number: Str
    x_position: Str
    y_position: Str
    required: bool = True


class Tabs(CamelModel):
    sign_here_tabs: List[TabPlacement] = Field(default_factory=list)
    initial_here_tabs: List[TabPlacement] = Field(default_factory=list)
    date_signed_tabs: List[TabPlacement] = Field(default_factory=list)
    attachment_tabs: List[AttachmentTab] = Field(default_factory=list)

    def extend(self, other: "Tabs") -> None:
        # attachment tabs are fixed at signer creation
        self.sign_here_tabs.extend(other.sign_here_tabs)
        self.initial_here_tabs.extend(other.initial_here_tabs)
        self.date_signed_tabs.extend(other.date_signed_tabs)


class Signer(CamelModel):
    email: str
    name: str
    recipient_id: str
    tabs: Tabs = Field(default_factory=Tabs)


class CarbonCopy(CamelModel):
    name: str
    email: str
    recipient_id: str
    routing_order: str = "2"
    excluded_documents: List[str] = Field(default_factory=list)


class EnvelopeRequest(CamelModel):
    email_subject: str
    documents: List[DocumentSource] = Field(default_factory=list)
    signers: List[Signer] = Field(default_factory=list)
    carbon_copies: List[CarbonCopy] = Field(default_factory=list)
    status: Literal["created", "sent"] = "created"
    enforce_signer_visibility: bool = True

    def to_wire(self) -> dict:
        return {
            "documents": [d.to_wire() for d in self.documents],
            "emailSubject": self.email_subject,
            "recipients": {
                "signers": [s.to_wire() for s in self.signers],
                "carbonCopies": [c.to_wire() for c in self.carbon_copies],
            },
            "enforceSignerVisibility": self.enforce_signer_visibility,
            "status": self.status,
        }


# ---------- status reduction side ----------

class SignerDocumentStatus(CamelModel):
    document_id: str
    document_name: str
    status: Literal["signed", "not_signed"]
    signed_date_time: Optional[str] = None


class SignerStatus(CamelModel):
    email: str
    name: str
    signed_count: int = 0
    total_documents: int = 0
    documents: List[SignerDocumentStatus] = Field(default_factory=list)


class TimelineEvent(CamelModel):
    status: Literal["created", "sent", "delivered", "signed", "completed"]
    date_time: str = ""
    completed: bool = False


class EnvelopeSignersStatus(CamelModel):
    envelope_id: str
    status: Optional[str] = None
    timeline: List[TimelineEvent] = Field(default_factory=list)
    signers: List[SignerStatus] = Field(default_factory=list)

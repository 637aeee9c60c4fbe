import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import AttachmentTab, FieldLocationBundle, Signer, TabPlacement, Tabs
from .schemas import AdditionalPDF, FormCreate, SignLocation, SignLocations
from .tabs import RoleFilter, map_field_locations
from .utils import normalize_email, round_coordinate

logger = logging.getLogger(__name__)


def _explicit_placements(locations: Iterable[SignLocation], document_id: str) -> List[TabPlacement]:
    return [
        TabPlacement(
            document_id=document_id,
            page_number=str(loc.page_number),
            x_position=round_coordinate(loc.x_position),
            y_position=round_coordinate(loc.y_position),
        )
        for loc in locations
    ]


class SignerAggregator:
    """Folds per-document tab sets into one Signer per e-mail address.

    The merge key is the lower-cased address; the casing seen first is the one
    kept for display. Recipient ids follow first-seen order starting at "1".
    A signer met again only has tabs appended, in processing order. One
    aggregator serves one envelope and is discarded afterwards.
    """

    def __init__(self):
        self._by_email: Dict[str, Signer] = {}

    def __len__(self) -> int:
        return len(self._by_email)

    @property
    def signers(self) -> List[Signer]:
        return list(self._by_email.values())

    def add(
        self,
        email: str,
        name: str,
        tabs: Tabs,
        attachments: Optional[Iterable[AttachmentTab]] = None,
    ) -> Signer:
        key = normalize_email(email)
        signer = self._by_email.get(key)
        if signer is None:
            own = Tabs(
                sign_here_tabs=list(tabs.sign_here_tabs),
                initial_here_tabs=list(tabs.initial_here_tabs),
                date_signed_tabs=list(tabs.date_signed_tabs),
                attachment_tabs=list(attachments or []),
            )
            signer = Signer(
                email=email,
                name=name,
                recipient_id=str(len(self._by_email) + 1),
                tabs=own,
            )
            self._by_email[key] = signer
        else:
            signer.tabs.extend(tabs)
        return signer

    def add_located(
        self,
        document_id: str,
        bundle: Optional[FieldLocationBundle],
        email: str,
        name: str,
        roles: RoleFilter,
        attachments: Optional[Iterable[AttachmentTab]] = None,
    ) -> Signer:
        return self.add(email, name, map_field_locations(bundle, roles, document_id), attachments)

    def add_form(
        self,
        document_id: str,
        form: FormCreate,
        bundle: Optional[FieldLocationBundle],
    ) -> None:
        if bundle is None:
            logger.warning(
                "No field locations for form %s (document %s); its signers get no tabs there",
                form.form_id,
                document_id,
            )
        for s in form.signers:
            self.add_located(document_id, bundle, s.email, s.name, s.role, s.attachments)

    def add_explicit(self, document_id: str, pdf: AdditionalPDF) -> None:
        for s in pdf.signers:
            locations = s.sign_locations or SignLocations()
            tabs = Tabs(
                sign_here_tabs=_explicit_placements(locations.sign_here, document_id),
                initial_here_tabs=_explicit_placements(locations.initial_here, document_id),
                date_signed_tabs=_explicit_placements(locations.date_signed, document_id),
            )
            self.add(s.email, s.name, tabs, list(s.attachments) + list(locations.attachment_tabs))


def aggregate_signers(
    forms: Sequence[Tuple[str, FormCreate]],
    locations: Mapping[str, Optional[FieldLocationBundle]],
    additional_pdfs: Sequence[Tuple[str, AdditionalPDF]] = (),
) -> List[Signer]:
    """Forms are folded first, then additional PDFs, each in input order."""
    aggregator = SignerAggregator()
    for document_id, form in forms:
        aggregator.add_form(document_id, form, locations.get(form.form_id))
    for document_id, pdf in additional_pdfs:
        aggregator.add_explicit(document_id, pdf)
    return aggregator.signers

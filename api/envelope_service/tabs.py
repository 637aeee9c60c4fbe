from typing import Collection, Iterable, List, Optional, Union

from .models import FieldLocation, FieldLocationBundle, TabPlacement, Tabs
from .utils import round_coordinate

RoleFilter = Union[str, Collection[str], None]


def _matches(role: str, roles: RoleFilter) -> bool:
    if roles is None:
        return True
    if isinstance(roles, str):
        return role == roles
    return role in roles


def to_placement(location: FieldLocation, document_id: str) -> TabPlacement:
    return TabPlacement(
        document_id=document_id,
        page_number=str(location.page),
        x_position=round_coordinate(location.x),
        y_position=round_coordinate(location.y),
    )


def _placements(locations: Iterable[FieldLocation], roles: RoleFilter, document_id: str) -> List[TabPlacement]:
    return [to_placement(loc, document_id) for loc in locations if _matches(loc.role, roles)]


def map_field_locations(
    bundle: Optional[FieldLocationBundle],
    roles: RoleFilter,
    document_id: str,
) -> Tabs:
    """Turn a form's raw locations into the tabs belonging to ``roles``.

    ``roles`` is a single role tag, a collection of tags, or None for every
    location in the bundle. Role comparison is exact. Input order is kept.
    A missing bundle or a role with no locations yields empty sequences.
    """
    if bundle is None:
        return Tabs()
    return Tabs(
        sign_here_tabs=_placements(bundle.sign_fields, roles, document_id),
        date_signed_tabs=_placements(bundle.sign_date_fields, roles, document_id),
        initial_here_tabs=_placements(bundle.sign_initials_fields, roles, document_id),
    )

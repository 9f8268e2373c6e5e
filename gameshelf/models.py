"""
Entity models for the four collections.

Entities are stored as plain dicts with camelCase keys, as they appear in
the Collection Document and in backup files. The models only check
incoming data at the store boundary; reads never re-validate. Store-managed
keys (``id``, ``nextMaintenanceDate``) are not model fields, so anything a
caller sends for them is dropped.
"""

from typing import Annotated, Any, ClassVar, Dict, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError, field_validator

from gameshelf.constants import ACCESSORIES, CONSOLES, GAMES, WISHLIST
from gameshelf.exceptions import ValidationException
from gameshelf.utils import format_date, parse_date

MAINTENANCE_FIELDS = ['lastMaintenanceDate', 'maintenanceIntervalMonths', 'notifyMaintenance', 'nextMaintenanceDate']

Text = Annotated[str, Field(min_length=1)]


def normalize_date(value):
    """DD/MM/YYYY or ISO input, stored as DD/MM/YYYY"""
    if value is None or value == '':
        return None
    return format_date(parse_date(value))


class Entity(BaseModel):
    model_config = ConfigDict(extra='ignore', str_strip_whitespace=True)

    label: ClassVar[str] = 'Item'
    maintainable: ClassVar[bool] = False

    name: Text


class Game(Entity):
    label: ClassVar[str] = 'Game'

    consoleId: Text
    genre: Text
    region: Text
    releaseYear: Union[int, str]
    purchaseDate: Text
    isPhysical: StrictBool
    imageUrl: Optional[str] = None
    externalId: Optional[Union[int, str]] = None
    pricePaid: Optional[float] = Field(None, ge=0)
    igdbData: Optional[Dict[str, Any]] = None

    @field_validator('purchaseDate')
    @classmethod
    def normalize_dates(cls, value):
        return normalize_date(value)


class MaintainedEntity(Entity):
    """Consoles and accessories carry a maintenance schedule"""
    maintainable: ClassVar[bool] = True

    purchaseDate: Text
    imageUrl: Optional[str] = None
    condition: Optional[str] = None
    pricePaid: Optional[float] = Field(None, ge=0)
    lastMaintenanceDate: Optional[str] = None
    maintenanceIntervalMonths: Optional[int] = Field(None, ge=1)
    notifyMaintenance: Optional[StrictBool] = None
    maintenanceDescription: Optional[str] = None

    @field_validator('purchaseDate', 'lastMaintenanceDate')
    @classmethod
    def normalize_dates(cls, value):
        return normalize_date(value)


class Console(MaintainedEntity):
    label: ClassVar[str] = 'Console'

    brand: Text
    model: Text
    region: Optional[str] = None


class Accessory(MaintainedEntity):
    label: ClassVar[str] = 'Accessory'

    type: Text
    consoleId: Text


class WishlistItem(Entity):
    label: ClassVar[str] = 'Wishlist item'

    type: Literal['game', 'console', 'accessory', 'other']
    description: Optional[str] = None
    priority: Optional[Literal['low', 'medium', 'high']] = None
    estimatedPrice: Optional[float] = Field(None, ge=0)


MODELS: Dict[str, Type[Entity]] = {
    GAMES: Game,
    CONSOLES: Console,
    ACCESSORIES: Accessory,
    WISHLIST: WishlistItem,
}


def get_model(collection: str) -> Optional[Type[Entity]]:
    return MODELS.get(collection)


def _validation_message(model: Type[Entity], error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        field = '.'.join(str(part) for part in item['loc']) or 'data'
        problems.append(f"{field} ({item['msg']})")
    return f"{model.label} has invalid or missing field(s): {', '.join(problems)}"


def validate_entity(model: Type[Entity], data) -> Dict:
    """Validated copy of ``data`` for a new entity, holding only the fields the caller sent"""
    if not isinstance(data, dict):
        raise ValidationException(f"{model.label} data must be an object")
    try:
        return model.model_validate(data).model_dump(exclude_unset=True)
    except ValidationError as e:
        raise ValidationException(_validation_message(model, e)) from e


def validate_changes(model: Type[Entity], current: Dict, changes: Dict) -> Dict:
    """
    Validate a partial update against the entity it will produce.

    Returns the normalized subset of ``changes`` that are model fields;
    store-managed and unknown keys are left out.
    """
    merged = validate_entity(model, {**current, **changes})
    return {field: merged[field] for field in changes if field in merged}

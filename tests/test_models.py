"""
Tests for entity models
"""
import pytest

from gameshelf.constants import ACCESSORIES, CONSOLES, GAMES, WISHLIST
from gameshelf.exceptions import ValidationException
from gameshelf.models import Accessory, Console, Game, WishlistItem, get_model, validate_changes, validate_entity


class TestValidateEntity:
    """Tests for new-entity validation"""

    def test_models_per_collection(self):
        assert get_model(GAMES) is Game
        assert get_model(CONSOLES) is Console
        assert get_model(ACCESSORIES) is Accessory
        assert get_model(WISHLIST) is WishlistItem
        assert get_model('movies') is None

    def test_only_sent_fields_are_kept(self, sample_wishlist_item):
        assert validate_entity(WishlistItem, sample_wishlist_item) == sample_wishlist_item

    def test_store_managed_and_unknown_keys_are_dropped(self, sample_console):
        entity = validate_entity(Console, {**sample_console, 'id': 'x', 'nextMaintenanceDate': '01/01/2030',
                                           'colour': 'white'})
        assert entity == sample_console

    def test_dates_are_normalized(self, sample_accessory):
        entity = validate_entity(Accessory, {**sample_accessory, 'purchaseDate': '2020-11-15T10:00:00Z',
                                             'lastMaintenanceDate': ''})

        assert entity['purchaseDate'] == '15/11/2020'
        assert entity['lastMaintenanceDate'] is None

    def test_release_year_keeps_its_form(self, sample_game):
        assert validate_entity(Game, {**sample_game, 'releaseYear': '2024'})['releaseYear'] == '2024'
        assert validate_entity(Game, sample_game)['releaseYear'] == 2024

    @pytest.mark.parametrize('model, field, value', [
        (Game, 'purchaseDate', '31/02/2024'),
        (Game, 'isPhysical', 'yes'),
        (Game, 'pricePaid', -1),
        (Game, 'name', '   '),
        (Console, 'maintenanceIntervalMonths', 0),
        (Console, 'notifyMaintenance', 1),
        (WishlistItem, 'type', 'book'),
        (WishlistItem, 'priority', 'urgent'),
        (WishlistItem, 'estimatedPrice', 'cheap'),
    ])
    def test_invalid_values_name_the_field(self, model, field, value, sample_game, sample_console,
                                           sample_wishlist_item):
        base = {Game: sample_game, Console: sample_console, WishlistItem: sample_wishlist_item}[model]

        with pytest.raises(ValidationException) as exc:
            validate_entity(model, {**base, field: value})

        assert field in exc.value.message
        assert exc.value.message.startswith(model.label)

    def test_non_object_is_rejected(self):
        with pytest.raises(ValidationException):
            validate_entity(Game, ['Astro Bot'])


class TestValidateChanges:
    """Tests for partial updates"""

    def test_returns_only_changed_fields(self, sample_console):
        current = {**sample_console, 'id': 'c1', 'nextMaintenanceDate': '01/12/2024'}

        changes = validate_changes(Console, current, {'lastMaintenanceDate': '2024-07-01', 'id': 'other'})

        assert changes == {'lastMaintenanceDate': '01/07/2024'}

    def test_blanking_a_required_field(self, sample_game):
        with pytest.raises(ValidationException):
            validate_changes(Game, {**sample_game, 'id': 'g1'}, {'genre': None})

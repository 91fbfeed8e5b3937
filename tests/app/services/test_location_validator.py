import pytest

from app.constants.messages import BotMessages
from app.services.location_validator import LocationValidator, normalize_location


@pytest.fixture
def validator():
    return LocationValidator()


def test_normalize_location():
    assert normalize_location("  Álvaro-Obregón,  CDMX ") == "alvaro obregon cdmx"


@pytest.mark.parametrize(
    "location", ["Coyoacán", "naucalpan de juarez", "Tizayuca", "Polanco", "Gustavo A. Madero"]
)
def test_served_locations(validator, location):
    assert validator.is_valid_location(location)


@pytest.mark.parametrize("location", ["Guadalajara", "", "   ", None])
def test_unserved_locations(validator, location):
    assert not validator.is_valid_location(location)


def test_message_with_served_area(validator):
    result = validator.validate_message("Busco servicio en la colonia Del Valle, Benito Juárez")
    assert result.is_valid
    assert not result.is_rejected
    assert set(result.found_locations) == {"del valle", "benito juarez"}


def test_message_with_unserved_city(validator):
    result = validator.validate_message("Estoy en Monterrey")
    assert result.is_rejected
    assert result.invalid_locations == ["monterrey"]
    assert result.has_location


def test_message_without_location(validator):
    result = validator.validate_message("¿Cuánto cuesta el servicio?")
    assert not result.has_location
    assert not result.is_valid
    assert validator.validate_message(None).original_message == ""


def test_area_names_match_whole_words(validator):
    """'roma' inside 'romantico' is not the Roma neighbourhood."""
    assert validator.validate_message("Algo romantico").found_locations == []


def test_custom_areas():
    validator = LocationValidator(valid_areas=["Springfield"], invalid_areas=["Shelbyville"])
    assert validator.validate_message("I live in springfield").is_valid
    assert validator.validate_message("Shelbyville here").is_rejected


def test_rejection_message():
    assert LocationValidator.rejection_message("Ana") == BotMessages.LOCATION_REJECTION.format(name=" Ana")
    assert "tiempo." in LocationValidator.rejection_message()

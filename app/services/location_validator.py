"""Service-area policy: the Mexico City metropolitan area is served, other cities are not."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from app.constants.messages import BotMessages

CDMX_BOROUGHS = (
    "alvaro obregon",
    "azcapotzalco",
    "benito juarez",
    "coyoacan",
    "cuajimalpa",
    "cuauhtemoc",
    "gustavo a madero",
    "iztacalco",
    "iztapalapa",
    "magdalena contreras",
    "miguel hidalgo",
    "milpa alta",
    "tlahuac",
    "tlalpan",
    "venustiano carranza",
    "xochimilco",
)

EDOMEX_MUNICIPALITIES = (
    "atizapan de zaragoza",
    "coacalco",
    "cuautitlan",
    "cuautitlan izcalli",
    "chalco",
    "chicoloapan",
    "chimalhuacan",
    "ecatepec",
    "huixquilucan",
    "ixtapaluca",
    "la paz",
    "naucalpan",
    "nezahualcoyotl",
    "nicolas romero",
    "tecamac",
    "tepotzotlan",
    "texcoco",
    "tlalnepantla",
    "tultitlan",
    "valle de chalco",
    "zumpango",
)

HIDALGO_MUNICIPALITIES = ("tizayuca",)

OTHER_AREAS = (
    "satelite",
    "santa fe",
    "polanco",
    "reforma",
    "zona rosa",
    "condesa",
    "roma",
    "del valle",
    "doctores",
    "centro",
    "centro historico",
    "insurgentes",
    "perisur",
)

KNOWN_INVALID_AREAS = (
    "guadalajara",
    "monterrey",
    "queretaro",
    "puebla",
    "tijuana",
    "cancun",
    "veracruz",
    "merida",
    "toluca",
    "leon",
    "aguascalientes",
    "morelia",
    "chihuahua",
    "saltillo",
    "hermosillo",
    "culiacan",
    "mazatlan",
    "torreon",
    "durango",
    "tampico",
    "reynosa",
    "matamoros",
    "nuevo laredo",
    "acapulco",
    "oaxaca",
    "tuxtla",
    "villahermosa",
    "campeche",
    "chetumal",
)

_SEPARATORS = re.compile(r"[.,\-_]")
_WHITESPACE = re.compile(r"\s+")


def normalize_location(text: str) -> str:
    """Lower-case, strip accents and punctuation separators, collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", text.lower())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    stripped = _SEPARATORS.sub(" ", stripped)
    return _WHITESPACE.sub(" ", stripped).strip()


def _dedupe(values: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


@dataclass
class LocationValidation:
    found_locations: List[str] = field(default_factory=list)
    invalid_locations: List[str] = field(default_factory=list)
    original_message: str = ""

    @property
    def is_valid(self) -> bool:
        return bool(self.found_locations)

    @property
    def has_location(self) -> bool:
        return bool(self.found_locations or self.invalid_locations)

    @property
    def is_rejected(self) -> bool:
        return bool(self.invalid_locations)


class LocationValidator:
    def __init__(
        self,
        valid_areas: Optional[Sequence[str]] = None,
        invalid_areas: Optional[Sequence[str]] = None,
    ) -> None:
        if valid_areas is None:
            valid_areas = CDMX_BOROUGHS + EDOMEX_MUNICIPALITIES + HIDALGO_MUNICIPALITIES + OTHER_AREAS
        self.valid_areas = _dedupe(valid_areas)
        self.invalid_areas = _dedupe(invalid_areas if invalid_areas is not None else KNOWN_INVALID_AREAS)
        self._valid_patterns = [(a, self._pattern(a)) for a in self.valid_areas]
        self._invalid_patterns = [(a, self._pattern(a)) for a in self.invalid_areas]

    @staticmethod
    def _pattern(area: str) -> re.Pattern:
        return re.compile(rf"\b{re.escape(normalize_location(area))}\b")

    def is_valid_location(self, location: Optional[str]) -> bool:
        """True if the text names (or is part of the name of) a served area."""
        if not location or not location.strip():
            return False
        clean = normalize_location(location)
        for area, pattern in self._valid_patterns:
            if pattern.search(clean) or clean in normalize_location(area):
                return True
        return False

    def validate_message(self, message: Optional[str]) -> LocationValidation:
        if not message:
            return LocationValidation(original_message=message or "")
        clean = normalize_location(message)
        return LocationValidation(
            found_locations=[a for a, p in self._valid_patterns if p.search(clean)],
            invalid_locations=[a for a, p in self._invalid_patterns if p.search(clean)],
            original_message=message,
        )

    @staticmethod
    def rejection_message(display_name: Optional[str] = None) -> str:
        name = f" {display_name}" if display_name else ""
        return BotMessages.LOCATION_REJECTION.format(name=name)

"""
PrepFlow - Unit Conversion Layer
=================================

Dimensional conversion between kitchen measurement units.

Every known unit belongs to exactly one dimension and is stored as an exact
rational multiple of that dimension's base unit (g, ml, each). Anything not
in the table is a CUSTOM unit ("bunch", "roll", "tray") and only converts
through an ingredient-specific override.

Conversion order:
1. Identical units: value returned untouched
2. Ingredient overrides: exact, reverse (1 / factor), then an override hop
   composed with a standard hop
3. Standard table conversion within a dimension
4. Piece <-> weight through the ingredient's piece weight (ounces per piece)

Failures come back as ``ConversionFailure`` values; nothing here raises for
an unconvertible pair, so a single bad recipe line never aborts a plan.
"""

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .models import ConversionOverride, IngredientDefinition
from .utils.logger import get_logger

logger = get_logger(__name__)


class Dimension(Enum):
    """Physical dimension a unit measures"""
    WEIGHT = "weight"
    VOLUME = "volume"
    COUNT = "count"
    CUSTOM = "custom"


class FailureReason(Enum):
    """Why a conversion could not be performed"""
    INCOMPATIBLE_DIMENSIONS = "incompatible_dimensions"
    MISSING_PIECE_WEIGHT = "missing_piece_weight"
    UNKNOWN_UNIT = "unknown_unit"


@dataclass(frozen=True)
class ConversionFailure:
    """Result of a conversion that has no answer"""
    value: float
    from_unit: str
    to_unit: str
    reason: FailureReason

    @property
    def message(self) -> str:
        if self.reason is FailureReason.MISSING_PIECE_WEIGHT:
            return (f"Cannot convert {self.from_unit} to {self.to_unit} "
                    f"without a piece weight")
        if self.reason is FailureReason.UNKNOWN_UNIT:
            return (f"No conversion defined between {self.from_unit} "
                    f"and {self.to_unit}")
        return f"Cannot convert {self.from_unit} to {self.to_unit}: incompatible units"


ConversionResult = Union[float, ConversionFailure]

# =============================================================================
# UNIT TABLE
# =============================================================================
# Factors are exact so that table round trips (16 oz -> 1 lb,
# 1 gal -> 128 fl oz) come out as whole numbers.

_OUNCE_G = Fraction('28.349523125')
_GALLON_ML = Fraction('3785.411784')
_FL_OUNCE_ML = _GALLON_ML / 128

BASE_UNITS: Dict[Dimension, str] = {
    Dimension.WEIGHT: 'g',
    Dimension.VOLUME: 'ml',
    Dimension.COUNT: 'each',
}

UNIT_TABLE: Dict[str, Tuple[Dimension, Fraction]] = {
    # Weight (base: gram)
    'mg': (Dimension.WEIGHT, Fraction(1, 1000)),
    'g': (Dimension.WEIGHT, Fraction(1)),
    'kg': (Dimension.WEIGHT, Fraction(1000)),
    'oz': (Dimension.WEIGHT, _OUNCE_G),
    'lb': (Dimension.WEIGHT, _OUNCE_G * 16),
    # Volume (base: millilitre)
    'ml': (Dimension.VOLUME, Fraction(1)),
    'l': (Dimension.VOLUME, Fraction(1000)),
    'tsp': (Dimension.VOLUME, _FL_OUNCE_ML / 6),
    'tbsp': (Dimension.VOLUME, _FL_OUNCE_ML / 2),
    'fl oz': (Dimension.VOLUME, _FL_OUNCE_ML),
    'cup': (Dimension.VOLUME, _FL_OUNCE_ML * 8),
    'pt': (Dimension.VOLUME, _FL_OUNCE_ML * 16),
    'qt': (Dimension.VOLUME, _FL_OUNCE_ML * 32),
    'gal': (Dimension.VOLUME, _GALLON_ML),
    # Count (base: each)
    'each': (Dimension.COUNT, Fraction(1)),
    'pc': (Dimension.COUNT, Fraction(1)),
    'dozen': (Dimension.COUNT, Fraction(12)),
}

UNIT_ALIASES: Dict[str, str] = {
    'milligram': 'mg', 'milligrams': 'mg',
    'gram': 'g', 'grams': 'g', 'gr': 'g',
    'kilogram': 'kg', 'kilograms': 'kg', 'kgs': 'kg',
    'ounce': 'oz', 'ounces': 'oz',
    'pound': 'lb', 'pounds': 'lb', 'lbs': 'lb',
    'milliliter': 'ml', 'milliliters': 'ml', 'millilitre': 'ml', 'millilitres': 'ml',
    'liter': 'l', 'liters': 'l', 'litre': 'l', 'litres': 'l',
    'teaspoon': 'tsp', 'teaspoons': 'tsp', 'tsps': 'tsp',
    'tablespoon': 'tbsp', 'tablespoons': 'tbsp', 'tbs': 'tbsp', 'tbsps': 'tbsp',
    'fluid ounce': 'fl oz', 'fluid ounces': 'fl oz', 'floz': 'fl oz',
    'fl. oz': 'fl oz', 'fl.oz': 'fl oz', 'fl oz.': 'fl oz',
    'cups': 'cup',
    'pint': 'pt', 'pints': 'pt',
    'quart': 'qt', 'quarts': 'qt',
    'gallon': 'gal', 'gallons': 'gal',
    'ea': 'each',
    'piece': 'pc', 'pieces': 'pc', 'pcs': 'pc',
    'dz': 'dozen',
}

# Unit a piece weight is expressed in
PIECE_WEIGHT_UNIT = 'oz'


def normalize_unit(unit: str) -> str:
    """Canonical spelling of a unit name (case and whitespace insensitive)"""
    key = ' '.join(str(unit).strip().lower().split())
    return UNIT_ALIASES.get(key, key)


def dimension_of(unit: str) -> Dimension:
    """Dimension a unit belongs to; unknown units are CUSTOM"""
    entry = UNIT_TABLE.get(normalize_unit(unit))
    return entry[0] if entry else Dimension.CUSTOM


def units_in(dimension: Dimension) -> List[str]:
    """Canonical units of a dimension, smallest first"""
    return sorted(
        (name for name, (dim, _) in UNIT_TABLE.items() if dim is dimension),
        key=lambda name: UNIT_TABLE[name][1]
    )


def _valid_piece_weight(piece_weight_oz: Optional[float]) -> Optional[float]:
    if piece_weight_oz is None or piece_weight_oz <= 0:
        return None
    return float(piece_weight_oz)


def are_units_compatible(
    unit1: str,
    unit2: str,
    piece_weight_oz: Optional[float] = None
) -> bool:
    """
    Whether ``convert`` succeeds between two units without overrides.

    Count and weight units are only compatible when a positive piece weight
    is supplied.
    """
    if unit1 == unit2:
        return True
    a, b = normalize_unit(unit1), normalize_unit(unit2)
    if a == b:
        return True

    dim_a, dim_b = dimension_of(a), dimension_of(b)
    if Dimension.CUSTOM in (dim_a, dim_b):
        return False
    if dim_a is dim_b:
        return True
    if {dim_a, dim_b} == {Dimension.COUNT, Dimension.WEIGHT}:
        return _valid_piece_weight(piece_weight_oz) is not None
    return False


def _scale(value: float, from_unit: str, to_unit: str) -> float:
    """Table conversion between two canonical units of one dimension"""
    ratio = UNIT_TABLE[from_unit][1] / UNIT_TABLE[to_unit][1]
    return value * float(ratio)


def _convert_standard(
    value: float,
    src: str,
    dst: str,
    piece_weight_oz: Optional[float]
) -> ConversionResult:
    """Table and piece-weight conversion between canonical units"""
    if src == dst:
        return value

    src_dim, dst_dim = dimension_of(src), dimension_of(dst)

    if Dimension.CUSTOM in (src_dim, dst_dim):
        return ConversionFailure(value, src, dst, FailureReason.UNKNOWN_UNIT)

    if src_dim is dst_dim:
        return _scale(value, src, dst)

    if {src_dim, dst_dim} == {Dimension.COUNT, Dimension.WEIGHT}:
        weight = _valid_piece_weight(piece_weight_oz)
        if weight is None:
            return ConversionFailure(value, src, dst, FailureReason.MISSING_PIECE_WEIGHT)

        if src_dim is Dimension.COUNT:
            pieces = _scale(value, src, 'pc')
            return _scale(pieces * weight, PIECE_WEIGHT_UNIT, dst)

        ounces = _scale(value, src, PIECE_WEIGHT_UNIT)
        return _scale(ounces / weight, 'pc', dst)

    return ConversionFailure(value, src, dst, FailureReason.INCOMPATIBLE_DIMENSIONS)


def _usable_overrides(overrides: Iterable[ConversionOverride]) -> List[Tuple[str, str, float]]:
    """Normalised (from, to, factor) triples, dropping non-positive factors."""
    usable = []
    for override in overrides:
        if not override.factor or override.factor <= 0:
            logger.warning(
                f"Ignoring override {override.from_unit} -> {override.to_unit} "
                f"for ingredient {override.ingredient_id}: factor {override.factor}"
            )
            continue
        usable.append((normalize_unit(override.from_unit),
                       normalize_unit(override.to_unit),
                       float(override.factor)))
    return usable


def _direct_override(value: float, src: str, dst: str, usable) -> Optional[float]:
    for frm, to, factor in usable:
        if frm == src and to == dst:
            return value * factor
    for frm, to, factor in usable:
        if frm == dst and to == src:
            return value / factor
    return None


def _composed_override(
    value: float,
    src: str,
    dst: str,
    piece_weight_oz: Optional[float],
    usable
) -> Optional[float]:
    """
    Resolve a conversion through one override and one standard hop.

    Only consulted once the standard table has failed, so units the table
    already relates are never routed through an override.
    """
    # Override first, then a standard hop
    for frm, to, factor in usable:
        if frm == src:
            hop = _convert_standard(value * factor, to, dst, piece_weight_oz)
        elif to == src:
            hop = _convert_standard(value / factor, frm, dst, piece_weight_oz)
        else:
            continue
        if not isinstance(hop, ConversionFailure):
            return hop

    # Standard hop first, then the override
    for frm, to, factor in usable:
        if to == dst:
            hop = _convert_standard(value, src, frm, piece_weight_oz)
            if not isinstance(hop, ConversionFailure):
                return hop * factor
        elif frm == dst:
            hop = _convert_standard(value, src, to, piece_weight_oz)
            if not isinstance(hop, ConversionFailure):
                return hop / factor

    return None


def convert(
    value: float,
    from_unit: str,
    to_unit: str,
    piece_weight_oz: Optional[float] = None,
    ingredient_overrides: Optional[Iterable[ConversionOverride]] = None
) -> ConversionResult:
    """
    Convert a quantity from one unit to another.

    Resolution order: identity, exact override, reverse override, the
    standard tables (including the piece path), then an override composed
    with one standard hop.

    Args:
        value: Quantity to convert
        from_unit: Unit the quantity is expressed in (e.g. 'pc', 'oz', 'cup')
        to_unit: Target unit (e.g. 'lb', 'kg', 'fl oz')
        piece_weight_oz: Ounces per piece for the ingredient, enables
            piece <-> weight conversion
        ingredient_overrides: Overrides recorded for this ingredient

    Returns:
        Converted value, or a ConversionFailure describing why not

    Examples:
        >>> convert(16, 'oz', 'lb')
        1.0
        >>> convert(5, 'pc', 'oz', piece_weight_oz=1.5)
        7.5
    """
    if from_unit == to_unit:
        return value

    src, dst = normalize_unit(from_unit), normalize_unit(to_unit)
    if src == dst:
        return value

    usable = _usable_overrides(ingredient_overrides) if ingredient_overrides else []
    resolved = _direct_override(value, src, dst, usable)
    if resolved is not None:
        return resolved

    result = _convert_standard(value, src, dst, piece_weight_oz)
    if isinstance(result, ConversionFailure) and usable:
        resolved = _composed_override(value, src, dst, piece_weight_oz, usable)
        if resolved is not None:
            return resolved

    if isinstance(result, ConversionFailure):
        logger.debug(f"Conversion failed for {value} {from_unit} -> {to_unit}: {result.reason.value}")
    return result


class UnitConverter:
    """
    Conversion entry point for callers holding ingredient definitions.

    Indexes conversion overrides by ingredient so that each call only sees
    the overrides recorded for the ingredient being converted.

    Usage:
        converter = UnitConverter(overrides)
        qty = converter.convert(2, 'bunch', 'oz', ingredient=cilantro)
    """

    def __init__(self, overrides: Optional[Iterable[ConversionOverride]] = None):
        self._overrides: Dict[int, List[ConversionOverride]] = defaultdict(list)
        for override in overrides or []:
            self.add_override(override)

    def add_override(self, override: ConversionOverride) -> None:
        self._overrides[override.ingredient_id].append(override)

    def overrides_for(self, ingredient_id: int) -> List[ConversionOverride]:
        return list(self._overrides.get(ingredient_id, []))

    def convert(
        self,
        value: float,
        from_unit: str,
        to_unit: str,
        ingredient: Optional[IngredientDefinition] = None
    ) -> ConversionResult:
        """Convert using the ingredient's piece weight and overrides"""
        if ingredient is None:
            return convert(value, from_unit, to_unit)
        return convert(
            value,
            from_unit,
            to_unit,
            piece_weight_oz=ingredient.piece_weight_oz,
            ingredient_overrides=self._overrides.get(ingredient.id)
        )

    def conversion_factor(
        self,
        ingredient_id: int,
        from_unit: str,
        to_unit: str
    ) -> Optional[float]:
        """
        Factor recorded for an ingredient, looking at the reverse direction
        when the requested one is missing. None when neither exists.
        """
        src, dst = normalize_unit(from_unit), normalize_unit(to_unit)
        reverse = None
        for override in self._overrides.get(ingredient_id, []):
            frm, to = normalize_unit(override.from_unit), normalize_unit(override.to_unit)
            if not override.factor or override.factor <= 0:
                continue
            if frm == src and to == dst:
                return float(override.factor)
            if frm == dst and to == src:
                reverse = 1 / float(override.factor)
        return reverse

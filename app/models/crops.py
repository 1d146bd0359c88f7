"""Crop category reference table: agronomic thresholds per crop class.

Categories are static configuration: built once at import, never mutated.
Each one carries the acceptable band for soil temperature (°C), soil
moisture (%) and salinity (EC, dS/m):

    CropCategory(
        id="fruits",
        thresholds=CropThresholds(
            temperature=Band(15, 30),
            moisture=Band(60, 80),
            salinity_max=1.5,
        ),
        ...
    )

Consumers take the table as an explicit ``Mapping[str, CropCategory]``;
``DEFAULT_CROP_CATEGORIES`` is the one served by the API.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True, slots=True)
class Band:
    """Closed numeric interval ``[min, max]``."""

    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError(f"band min {self.min} exceeds max {self.max}")

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


@dataclass(frozen=True, slots=True)
class CropThresholds:
    temperature: Band
    moisture: Band
    salinity_max: float
    temperature_unit: str = "°C"
    moisture_unit: str = "%"
    salinity_unit: str = "dS/m"


@dataclass(frozen=True, slots=True)
class CropCategory:
    """A coarse crop classification with its sensor thresholds."""

    id: str
    name: str
    thresholds: CropThresholds
    emoji: str = ""
    description: str = ""
    examples: tuple[str, ...] = field(default_factory=tuple)


def build_category_table(categories: Iterable[CropCategory]) -> Mapping[str, CropCategory]:
    """Index categories by id as a read-only mapping; ids must be unique."""
    table: dict[str, CropCategory] = {}
    for category in categories:
        if category.id in table:
            raise ValueError(f"duplicate crop category id: {category.id}")
        table[category.id] = category
    return MappingProxyType(table)


def _category(
    id: str,
    name: str,
    emoji: str,
    description: str,
    temperature: tuple[float, float],
    moisture: tuple[float, float],
    salinity_max: float,
    examples: tuple[str, ...],
) -> CropCategory:
    return CropCategory(
        id=id,
        name=name,
        emoji=emoji,
        description=description,
        thresholds=CropThresholds(
            temperature=Band(*temperature),
            moisture=Band(*moisture),
            salinity_max=salinity_max,
        ),
        examples=examples,
    )


DEFAULT_CROP_CATEGORIES: Mapping[str, CropCategory] = build_category_table(
    [
        _category(
            "fruits", "Fruits", "🍎", "Fruit trees and berry crops",
            (15, 30), (60, 80), 1.5,
            ("Apples", "Oranges", "Grapes", "Strawberries", "Blueberries"),
        ),
        _category(
            "vegetables", "Vegetables", "🥬", "Leafy and root vegetables",
            (10, 25), (65, 85), 2.0,
            ("Tomatoes", "Lettuce", "Cucumbers", "Carrots", "Peppers"),
        ),
        _category(
            "grains", "Grains & Cereals", "🌾", "Wheat, rice, and other grains",
            (15, 35), (50, 70), 2.5,
            ("Wheat", "Rice", "Corn", "Barley", "Oats"),
        ),
        _category(
            "legumes", "Legumes", "🫘", "Beans, peas, and lentils",
            (15, 28), (55, 75), 2.0,
            ("Soybeans", "Chickpeas", "Lentils", "Green Beans", "Peas"),
        ),
        _category(
            "nuts", "Nuts & Seeds", "🥜", "Nut trees and seed crops",
            (18, 32), (55, 70), 1.8,
            ("Almonds", "Walnuts", "Pistachios", "Sunflowers", "Hazelnuts"),
        ),
        _category(
            "herbs", "Herbs & Spices", "🌿", "Culinary and medicinal herbs",
            (12, 26), (50, 70), 1.5,
            ("Basil", "Mint", "Rosemary", "Thyme", "Oregano"),
        ),
        _category(
            "root_crops", "Root Crops", "🥔", "Potatoes, tubers, and root vegetables",
            (10, 24), (60, 80), 2.0,
            ("Potatoes", "Sweet Potatoes", "Beets", "Turnips", "Radishes"),
        ),
        _category(
            "cotton", "Cotton & Fiber", "🌱", "Cotton and other fiber crops",
            (20, 35), (45, 65), 3.0,
            ("Cotton", "Flax", "Hemp", "Jute"),
        ),
    ]
)

"""
Data models for decoded blueprint storage.

All models are frozen dataclasses holding tuples, so a decoded session is an
immutable value tree. Library entries form a closed tagged union: each variant
carries a `kind` tag and absent slots are represented by None.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Literal, Optional, Tuple, TypeAlias, Union


class Category(str, Enum):
    """Prototype categories used to resolve numeric IDs."""

    ITEM = "ITEM"
    FLUID = "FLUID"
    VIRTUAL_SIGNAL = "VIRTUAL_SIGNAL"
    TILE = "TILE"
    ENTITY = "ENTITY"
    RECIPE = "RECIPE"
    EQUIPMENT = "EQUIPMENT"
    QUALITY = "QUALITY"
    PLANET = "PLANET"


@dataclass(frozen=True, order=True)
class Version:
    """Game version stamped into the stream.

    Ordering compares major, minor, patch and developer in that order; the
    branch byte takes no part in comparisons.
    """
    major: int
    minor: int
    patch: int
    developer: int = 0
    branch: int = field(default=0, compare=False)

    @classmethod
    def parse(cls, text: str, developer: int = 0) -> "Version":
        """Build a version from "major.minor.patch" text.

        Args:
            text: Dotted version, e.g. "1.2.0"
            developer: Developer build number

        Returns:
            Version instance
        """
        parts = [int(part) for part in text.split(".")]
        if len(parts) != 3:
            raise ValueError(f"Expected major.minor.patch, got {text!r}")
        return cls(parts[0], parts[1], parts[2], developer)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}.{self.developer}"


@dataclass(frozen=True)
class PrototypeEntry:
    """One (group, name, id) record of the prototype dictionary."""
    category: Category
    group_name: str
    name: str
    numeric_id: int


@dataclass(frozen=True)
class DictionaryHeader:
    """Fields at the start of the dictionary block with unconfirmed meaning."""
    label: str
    reserved_index: int
    reserved_name: str


@dataclass(frozen=True)
class Signal:
    type: Category
    name: str


@dataclass(frozen=True)
class Icon:
    # 1-based slot number
    index: int
    signal: Signal


@dataclass(frozen=True)
class Filter:
    # 0-based slot number
    index: int
    name: str


@dataclass(frozen=True)
class FilterSet:
    """Entity or tile filters of a deconstruction planner."""
    entries: Tuple[Filter, ...] = ()
    quality_entries: Tuple[Filter, ...] = ()


@dataclass(frozen=True)
class MapperTarget:
    type: Category
    name: str


@dataclass(frozen=True)
class Mapper:
    """Replacement rule of an upgrade planner."""
    index: int
    source: MapperTarget
    target: MapperTarget


@dataclass(frozen=True)
class Blueprint:
    """A blueprint whose entity content is kept as an opaque payload."""
    generation: int
    label: str
    removed_mods: bool
    payload: bytes
    description: Optional[str] = None
    kind: Literal["blueprint"] = "blueprint"


@dataclass(frozen=True)
class BlueprintBook:
    generation: int
    label: str
    description: str
    icons: Tuple[Icon, ...]
    children: Tuple["LibraryEntry", ...]
    active_index: int
    kind: Literal["blueprint_book"] = "blueprint_book"


@dataclass(frozen=True)
class DeconstructionPlanner:
    generation: int
    label: str
    description: str
    icons: Tuple[Icon, ...]
    entity_filter_mode: int
    entity_filters: FilterSet
    trees_rocks_only: bool
    tile_filter_mode: int
    tile_selection_mode: int
    tile_filters: FilterSet
    kind: Literal["deconstruction_planner"] = "deconstruction_planner"


@dataclass(frozen=True)
class UpgradePlanner:
    generation: int
    label: str
    description: str
    icons: Tuple[Icon, ...]
    mappers: Tuple[Mapper, ...]
    kind: Literal["upgrade_planner"] = "upgrade_planner"


LibraryEntry: TypeAlias = Union[
    Blueprint, BlueprintBook, DeconstructionPlanner, UpgradePlanner, None
]
"""One slot of a library object array; None marks an empty slot."""


@dataclass(frozen=True)
class TrailingValidation:
    """Outcome of the checks made after the library objects."""
    trailer_present: bool
    saved_targetables_count: Optional[int] = None
    targeter_mappings: int = 0


@dataclass(frozen=True)
class DecodedSession:
    """Complete decode result of one blueprint storage stream."""
    version: Version
    expansions: Dict[str, Tuple[str, ...]]
    dictionary_header: DictionaryHeader
    player_index: int
    generation_counter: int
    save_time: datetime
    blueprints: Tuple[LibraryEntry, ...]
    trailing: TrailingValidation


def is_blueprint(entry: LibraryEntry) -> bool:
    return isinstance(entry, Blueprint)


def is_blueprint_book(entry: LibraryEntry) -> bool:
    return isinstance(entry, BlueprintBook)


def is_deconstruction_planner(entry: LibraryEntry) -> bool:
    return isinstance(entry, DeconstructionPlanner)


def is_upgrade_planner(entry: LibraryEntry) -> bool:
    return isinstance(entry, UpgradePlanner)


def is_empty(entry: LibraryEntry) -> bool:
    return entry is None

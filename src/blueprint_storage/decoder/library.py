"""
Decoder for library objects: blueprints, books and planners.

A library object array is a u32 slot count followed by slots. Each used slot
starts with a 1-byte variant selector and a shared header whose item
prototype must agree with the selected variant. Books nest further arrays.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from ..models import (
    Blueprint,
    BlueprintBook,
    Category,
    DeconstructionPlanner,
    Filter,
    FilterSet,
    Icon,
    LibraryEntry,
    Mapper,
    MapperTarget,
    PrototypeEntry,
    Signal,
    UpgradePlanner,
    Version,
)
from .errors import StructuralError, UnresolvedReferenceError
from .primitives import PrimitiveCodec
from .prototypes import PrototypeIndex, reference_width

logger = logging.getLogger(__name__)

SIGNAL_TYPES = (Category.ITEM, Category.FLUID, Category.VIRTUAL_SIGNAL)

# Stream major version from which filter sets carry quality filters
QUALITY_FILTERS_MAJOR = 2

# Stream major version from which the book active index is a u16
WIDE_ACTIVE_INDEX_MAJOR = 2

# Deepest accepted chain of books inside books
MAX_BOOK_DEPTH = 64


class LibraryDecoder:
    """Recursive decoder for the four library object variants.

    Holds no decode state of its own besides the codec, the finished
    prototype index and the stream version, so nested books are decoded by
    plain recursion. The nesting depth travels down as an argument and is
    capped at MAX_BOOK_DEPTH.
    """

    def __init__(self, codec: PrimitiveCodec, index: PrototypeIndex, version: Version):
        self.codec = codec
        self.index = index
        self.version = version
        self._variants: Tuple[Callable[[], Awaitable[LibraryEntry]], ...] = (
            self.decode_blueprint,
            self.decode_blueprint_book,
            self.decode_deconstruction_planner,
            self.decode_upgrade_planner,
        )

    # === SLOTS ===

    async def decode_library_objects(self, depth: int = 0) -> List[LibraryEntry]:
        """Read a u32-prefixed array of library slots.

        `depth` counts the books enclosing this array; the root array is 0.
        """
        with self.codec.label("LibObj"):
            return await self.codec.read_array(4, lambda _: self.decode_entry(depth))

    async def decode_entry(self, depth: int = 0) -> LibraryEntry:
        """Read one slot; returns None for an unused slot."""
        codec = self.codec
        with codec.label("slot-used"):
            used = await codec.read_boolean()
        codec.observer.decoded("used" if used else "not used")
        if not used:
            return None

        with codec.label("entity-type"):
            variant = await codec.read_mapped_number(1, self._variants)
        codec.observer.decoded(f"{variant.__name__}()")
        if variant == self.decode_blueprint_book:
            return await self.decode_blueprint_book(depth)
        return await variant()

    async def read_entry(self, category: Category) -> Optional[PrototypeEntry]:
        """Read a prototype reference; None if the dictionary lacks it."""
        numeric_id = await self.codec.read_fixed_uint(reference_width(category))
        entry = self.index.resolve(category, numeric_id)
        self.codec.observer.decoded(entry.name if entry else "null")
        return entry

    async def _read_header(self, group_name: str) -> Tuple[int, str]:
        """Read generation, item prototype and label shared by all variants."""
        codec = self.codec
        with codec.label("header"):
            with codec.label("generation"):
                generation = await codec.read_fixed_uint(4)
            with codec.label("entry"):
                entry = await self.read_entry(Category.ITEM)
            if entry is None:
                raise UnresolvedReferenceError(
                    f"Item prototype of {group_name} not found", codec.position
                )
            if entry.group_name != group_name:
                raise StructuralError(
                    f"Entry {entry.group_name} does not match {group_name}",
                    codec.position,
                )
            with codec.label("label"):
                label = await codec.read_string()
        return generation, label

    # === VARIANTS ===

    async def decode_blueprint(self) -> Blueprint:
        codec = self.codec
        with codec.label("Blueprint"):
            generation, label = await self._read_header("blueprint")
            await codec.expect(0, "Expect 0")
            with codec.label("removed mods"):
                removed_mods = await codec.read_boolean()
            with codec.label("DataLength"):
                length = await codec.read_flexible_count()
            with codec.label("UnparsedData"):
                payload = await codec.read_bytes(length)

        logger.debug(f"Blueprint '{label}' with {length} payload bytes")
        return Blueprint(
            generation=generation,
            label=label,
            removed_mods=removed_mods,
            payload=payload,
        )

    async def decode_blueprint_book(self, depth: int = 0) -> BlueprintBook:
        codec = self.codec
        if depth >= MAX_BOOK_DEPTH:
            raise StructuralError(
                f"Blueprint books nested deeper than {MAX_BOOK_DEPTH}", codec.position
            )
        with codec.label("BB"):
            generation, label = await self._read_header("blueprint-book")
            with codec.label("description"):
                description = await codec.read_string()
            icons = await self.parse_icons()
            children = await self.decode_library_objects(depth + 1)
            with codec.label("activeIndex"):
                if self.version.major >= WIDE_ACTIVE_INDEX_MAJOR:
                    active_index = await codec.read_fixed_uint(2)
                else:
                    active_index = await codec.read_fixed_uint(1)
                    await codec.expect(0, "Expect 0")

        logger.debug(f"Blueprint book '{label}' with {len(children)} slots")
        return BlueprintBook(
            generation=generation,
            label=label,
            description=description,
            icons=icons,
            children=tuple(children),
            active_index=active_index,
        )

    async def decode_deconstruction_planner(self) -> DeconstructionPlanner:
        codec = self.codec
        with codec.label("Decon"):
            generation, label = await self._read_header("deconstruction-item")
            with codec.label("description"):
                description = await codec.read_string()
            icons = await self.parse_icons()

            with codec.label("EFMode"):
                entity_filter_mode = await codec.read_fixed_uint(1)
            with codec.label("EF"):
                entity_filters = await self.read_filters(Category.ENTITY)
            with codec.label("TROnly"):
                trees_rocks_only = await codec.read_boolean()

            with codec.label("TFMode"):
                tile_filter_mode = await codec.read_fixed_uint(1)
            with codec.label("TSMode"):
                tile_selection_mode = await codec.read_fixed_uint(1)
            with codec.label("TF"):
                tile_filters = await self.read_filters(Category.TILE)

        return DeconstructionPlanner(
            generation=generation,
            label=label,
            description=description,
            icons=icons,
            entity_filter_mode=entity_filter_mode,
            entity_filters=entity_filters,
            trees_rocks_only=trees_rocks_only,
            tile_filter_mode=tile_filter_mode,
            tile_selection_mode=tile_selection_mode,
            tile_filters=tile_filters,
        )

    async def decode_upgrade_planner(self) -> UpgradePlanner:
        codec = self.codec
        with codec.label("UpgradeItem"):
            generation, label = await self._read_header("upgrade-item")
            with codec.label("description"):
                description = await codec.read_string()
            icons = await self.parse_icons()

            overrides: Dict[bool, Dict[int, str]] = {False: {}, True: {}}

            async def read_override(_: int) -> None:
                with codec.label("name"):
                    name = await codec.read_string()
                with codec.label("isTo"):
                    is_to = await codec.read_boolean()
                with codec.label("index"):
                    index = await codec.read_fixed_uint(2)
                overrides[is_to][index] = name

            with codec.label("unknowns"):
                await codec.read_array(1, read_override)

            async def read_target(index: int, is_to: bool) -> MapperTarget:
                with codec.label("isItem"):
                    is_item = await codec.read_boolean()
                category = Category.ITEM if is_item else Category.ENTITY
                with codec.label("entry"):
                    entry = await self.read_entry(category)
                if entry is None:
                    raise UnresolvedReferenceError(
                        f"Unknown {category.value} in upgrade mapper {index}",
                        codec.position,
                    )
                return MapperTarget(category, overrides[is_to].get(index) or entry.name)

            async def read_mapper(index: int) -> Mapper:
                source = await read_target(index, is_to=False)
                target = await read_target(index, is_to=True)
                return Mapper(index, source, target)

            with codec.label("mappers"):
                mappers = await codec.read_array(1, read_mapper)

        return UpgradePlanner(
            generation=generation,
            label=label,
            description=description,
            icons=icons,
            mappers=tuple(mappers),
        )

    # === SHARED SUBSTRUCTURES ===

    async def read_signal(self) -> Optional[Signal]:
        """Read a typed signal; None when its prototype is not in the index."""
        codec = self.codec
        with codec.label("signal"):
            with codec.label("type"):
                signal_type = await codec.read_mapped_number(1, SIGNAL_TYPES)
            codec.observer.decoded(signal_type.value)
            with codec.label("entry"):
                entry = await self.read_entry(signal_type)
        if entry is None:
            return None
        return Signal(signal_type, entry.name)

    async def parse_icons(self) -> Tuple[Icon, ...]:
        """Read icon name overrides and icon signals.

        Icons are numbered from 1 by their position; unresolved signals are
        dropped without renumbering the rest.
        """
        codec = self.codec
        with codec.label("unknownIcons"):
            names = await codec.read_array(1, lambda _: codec.read_string())

        icons: List[Icon] = []

        async def read_icon(i: int) -> None:
            signal = await self.read_signal()
            if signal is None:
                logger.debug(f"Icon {i} not found")
                return
            if i < len(names) and names[i]:
                signal = Signal(signal.type, names[i])
            icons.append(Icon(i + 1, signal))

        with codec.label("icons"):
            await codec.read_array(1, read_icon)
        return tuple(icons)

    async def read_filters(self, category: Category) -> FilterSet:
        """Read a filter set resolving names in `category`."""
        codec = self.codec
        with codec.label(f"readFilters({category.value})"):
            overrides: Dict[int, str] = {}

            async def read_override(_: int) -> None:
                with codec.label("index"):
                    index = await codec.read_fixed_uint(2)
                with codec.label("name"):
                    overrides[index] = await codec.read_string()

            with codec.label("unknowns"):
                await codec.read_array(1, read_override)

            filters: List[Filter] = []

            async def read_filter(index: int) -> None:
                with codec.label("UnknownEntry"):
                    entry = await self.read_entry(category)
                if entry is None:
                    return
                filters.append(Filter(index, overrides.get(index) or entry.name))

            with codec.label("Filters"):
                await codec.read_array(1, read_filter)

            quality: List[Filter] = []
            if self.version.major >= QUALITY_FILTERS_MAJOR:

                async def read_quality(_: int) -> Filter:
                    with codec.label("index"):
                        index = await codec.read_fixed_uint(2)
                    with codec.label("name"):
                        name = await codec.read_string()
                    return Filter(index, name)

                with codec.label("Quality"):
                    quality = await codec.read_array(1, read_quality)

        return FilterSet(tuple(filters), tuple(quality))

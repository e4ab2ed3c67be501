"""
Prototype dictionary: numeric ID to prototype name, per category.

The dictionary block is read once near the start of a stream. Every later
prototype reference is a numeric ID resolved through the PrototypeIndex built
from it.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import Category, DictionaryHeader, PrototypeEntry
from .errors import StructuralError
from .primitives import PrimitiveCodec

logger = logging.getLogger(__name__)

# Dictionary group whose IDs (and references) are a single byte
QUALITY_GROUP = "quality"

# Prototype group name -> category of the IDs listed under it
PROTOTYPE_CATEGORIES: Dict[str, Category] = {
    # item
    "ammo": Category.ITEM,
    "armor": Category.ITEM,
    "blueprint": Category.ITEM,
    "blueprint-book": Category.ITEM,
    "capsule": Category.ITEM,
    "deconstruction-item": Category.ITEM,
    "gun": Category.ITEM,
    "item": Category.ITEM,
    "item-with-entity-data": Category.ITEM,
    "module": Category.ITEM,
    "spidertron-remote": Category.ITEM,
    "rail-planner": Category.ITEM,
    "repair-tool": Category.ITEM,
    "tool": Category.ITEM,
    "upgrade-item": Category.ITEM,
    # items that cannot be put into blueprints
    "copy-paste-tool": Category.ITEM,
    "item-with-label": Category.ITEM,
    "item-with-inventory": Category.ITEM,
    "item-with-tags": Category.ITEM,
    "mining-tool": Category.ITEM,
    "selection-tool": Category.ITEM,
    # fluid
    "fluid": Category.FLUID,
    # virtual signal
    "virtual-signal": Category.VIRTUAL_SIGNAL,
    # entity
    "accumulator": Category.ENTITY,
    "ammo-turret": Category.ENTITY,
    "arithmetic-combinator": Category.ENTITY,
    "artillery-turret": Category.ENTITY,
    "artillery-wagon": Category.ENTITY,
    "assembling-machine": Category.ENTITY,
    "beacon": Category.ENTITY,
    "boiler": Category.ENTITY,
    "burner-generator": Category.ENTITY,
    "car": Category.ENTITY,
    "cargo-wagon": Category.ENTITY,
    "cliff": Category.ENTITY,
    "constant-combinator": Category.ENTITY,
    "container": Category.ENTITY,
    "curved-rail": Category.ENTITY,
    "curved-rail-a": Category.ENTITY,
    "curved-rail-b": Category.ENTITY,
    "decider-combinator": Category.ENTITY,
    "display-panel": Category.ENTITY,
    "electric-energy-interface": Category.ENTITY,
    "electric-pole": Category.ENTITY,
    "electric-turret": Category.ENTITY,
    "entity-ghost": Category.ENTITY,
    "fish": Category.ENTITY,
    "fluid-turret": Category.ENTITY,
    "fluid-wagon": Category.ENTITY,
    "furnace": Category.ENTITY,
    "gate": Category.ENTITY,
    "generator": Category.ENTITY,
    "half-diagonal-rail": Category.ENTITY,
    "heat-interface": Category.ENTITY,
    "heat-pipe": Category.ENTITY,
    "infinity-container": Category.ENTITY,
    "infinity-pipe": Category.ENTITY,
    "inserter": Category.ENTITY,
    "item-entity": Category.ENTITY,
    "item-request-proxy": Category.ENTITY,
    "lab": Category.ENTITY,
    "lamp": Category.ENTITY,
    "land-mine": Category.ENTITY,
    "linked-belt": Category.ENTITY,
    "linked-container": Category.ENTITY,
    "loader": Category.ENTITY,
    "loader-1x1": Category.ENTITY,
    "locomotive": Category.ENTITY,
    "logistic-container": Category.ENTITY,
    "mining-drill": Category.ENTITY,
    "offshore-pump": Category.ENTITY,
    "pipe": Category.ENTITY,
    "pipe-to-ground": Category.ENTITY,
    "power-switch": Category.ENTITY,
    "programmable-speaker": Category.ENTITY,
    "pump": Category.ENTITY,
    "radar": Category.ENTITY,
    "rail-chain-signal": Category.ENTITY,
    "rail-signal": Category.ENTITY,
    "reactor": Category.ENTITY,
    "roboport": Category.ENTITY,
    "rocket-silo": Category.ENTITY,
    "selector-combinator": Category.ENTITY,
    "simple-entity": Category.ENTITY,
    "solar-panel": Category.ENTITY,
    "splitter": Category.ENTITY,
    "storage-tank": Category.ENTITY,
    "straight-rail": Category.ENTITY,
    "tile-ghost": Category.ENTITY,
    "train-stop": Category.ENTITY,
    "transport-belt": Category.ENTITY,
    "tree": Category.ENTITY,
    "underground-belt": Category.ENTITY,
    "wall": Category.ENTITY,
    # used for "unknown-entity" in upgrade and deconstruction planners
    "flying-text": Category.ENTITY,
    # tile
    "tile": Category.TILE,
    # recipe
    "recipe": Category.RECIPE,
    # equipment
    "active-defense-equipment": Category.EQUIPMENT,
    "battery-equipment": Category.EQUIPMENT,
    "energy-shield-equipment": Category.EQUIPMENT,
    "equipment-ghost": Category.EQUIPMENT,
    "generator-equipment": Category.EQUIPMENT,
    "movement-bonus-equipment": Category.EQUIPMENT,
    "roboport-equipment": Category.EQUIPMENT,
    "solar-panel-equipment": Category.EQUIPMENT,
    # space age
    "quality": Category.QUALITY,
    "planet": Category.PLANET,
}

# Categories whose references are encoded as a single byte
SINGLE_BYTE_CATEGORIES = frozenset({Category.TILE, Category.QUALITY})


def reference_width(category: Category) -> int:
    """Byte width of an ID referencing a prototype of `category`."""
    return 1 if category in SINGLE_BYTE_CATEGORIES else 2


class PrototypeIndex:
    """Read-only lookup of prototype entries by (category, numeric ID).

    Entries keep dictionary order within their category. Group names missing
    from PROTOTYPE_CATEGORIES are kept in `unclassified` and are not
    resolvable.
    """

    def __init__(
        self,
        entries: Iterable[PrototypeEntry] = (),
        unclassified: Iterable[Tuple[str, int, str]] = (),
    ):
        by_category: Dict[Category, List[PrototypeEntry]] = defaultdict(list)
        by_id: Dict[Tuple[Category, int], PrototypeEntry] = {}

        for entry in entries:
            key = (entry.category, entry.numeric_id)
            if key in by_id:
                raise StructuralError(
                    f"Duplicate {entry.category.value} id {entry.numeric_id}: "
                    f"{by_id[key].name} and {entry.name}"
                )
            by_id[key] = entry
            by_category[entry.category].append(entry)

        self._by_id = by_id
        self._by_category = {
            category: tuple(items) for category, items in by_category.items()
        }
        self.unclassified: Tuple[Tuple[str, int, str], ...] = tuple(unclassified)

    def __len__(self) -> int:
        return len(self._by_id)

    def resolve(self, category: Category, numeric_id: int) -> Optional[PrototypeEntry]:
        """Return the entry for `numeric_id` in `category`, or None."""
        return self._by_id.get((category, numeric_id))

    def entries(self, category: Category) -> Tuple[PrototypeEntry, ...]:
        """Return all entries of a category in dictionary order."""
        return self._by_category.get(category, ())


async def read_prototype_index(
    codec: PrimitiveCodec,
) -> Tuple[DictionaryHeader, PrototypeIndex]:
    """Read the dictionary block and build the index from it.

    Layout: u16 group count, a header label, a reserved (u16, string) pair,
    then count - 1 groups of (group name, array of (id, name)).
    """
    entries: List[PrototypeEntry] = []
    unclassified: List[Tuple[str, int, str]] = []

    with codec.label("IndexSize"):
        group_count = await codec.read_fixed_uint(2)
    if group_count == 0:
        raise StructuralError("Prototype dictionary has no header group", codec.position)

    with codec.label("IndexHeader"):
        label = await codec.read_string()
    with codec.label("IndexReserved"):
        reserved_index = await codec.read_fixed_uint(2)
        reserved_name = await codec.read_string()

    for _ in range(group_count - 1):
        with codec.label("Prototype"):
            group_name = await codec.read_string()
        id_width = 1 if group_name == QUALITY_GROUP else 2
        category = PROTOTYPE_CATEGORIES.get(group_name)
        if category is None:
            logger.debug(f"Unclassified prototype group '{group_name}'")

        async def read_pair(i: int) -> None:
            with codec.label(f"[{i:>2}]"):
                with codec.label("id"):
                    numeric_id = await codec.read_fixed_uint(id_width)
                with codec.label("name"):
                    name = await codec.read_string()
            if category is None:
                unclassified.append((group_name, numeric_id, name))
            else:
                entries.append(PrototypeEntry(category, group_name, name, numeric_id))

        await codec.read_array(id_width, read_pair)

    header = DictionaryHeader(label, reserved_index, reserved_name)
    index = PrototypeIndex(entries, unclassified)
    logger.debug(
        f"Prototype dictionary: {group_count} groups, {len(index)} entries, "
        f"{len(index.unclassified)} unclassified"
    )
    return header, index

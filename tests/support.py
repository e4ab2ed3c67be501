"""Test-only encoder for synthetic blueprint storage streams."""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from blueprint_storage.decoder import ByteCursor, DecodeObserver, PrimitiveCodec, reader_from_bytes

VersionTuple = Tuple[int, int, int, int]
Group = Tuple[str, Sequence[Tuple[int, str]]]

V2 = (2, 0, 0, 0)
V1_1 = (1, 1, 0, 0)

SAVE_TIME = 1_700_000_000

# Item IDs of the library item prototypes in DEFAULT_GROUPS
BLUEPRINT_ID = 1
BOOK_ID = 2
DECON_ID = 3
UPGRADE_ID = 4

DEFAULT_GROUPS: List[Group] = [
    ("blueprint", [(BLUEPRINT_ID, "blueprint")]),
    ("blueprint-book", [(BOOK_ID, "blueprint-book")]),
    ("deconstruction-item", [(DECON_ID, "deconstruction-planner")]),
    ("upgrade-item", [(UPGRADE_ID, "upgrade-planner")]),
    ("item", [(10, "iron-plate"), (11, "copper-plate")]),
    ("fluid", [(1, "water")]),
    ("virtual-signal", [(1, "signal-A")]),
    ("transport-belt", [(20, "transport-belt"), (21, "fast-transport-belt")]),
    ("tree", [(30, "tree-01")]),
    ("tile", [(1, "concrete")]),
    ("quality", [(0, "normal"), (1, "rare")]),
]


class StreamBuilder:
    """Little-endian byte writer mirroring the decoder's primitives."""

    def __init__(self) -> None:
        self.data = bytearray()

    def raw(self, data: bytes) -> "StreamBuilder":
        self.data += data
        return self

    def uint(self, value: int, width: int) -> "StreamBuilder":
        self.data += value.to_bytes(width, "little")
        return self

    def u8(self, value: int) -> "StreamBuilder":
        return self.uint(value, 1)

    def u16(self, value: int) -> "StreamBuilder":
        return self.uint(value, 2)

    def u32(self, value: int) -> "StreamBuilder":
        return self.uint(value, 4)

    def u64(self, value: int) -> "StreamBuilder":
        return self.uint(value, 8)

    def boolean(self, value: bool) -> "StreamBuilder":
        return self.u8(1 if value else 0)

    def count(self, value: int) -> "StreamBuilder":
        if value < 0xFF:
            return self.u8(value)
        return self.u8(0xFF).u32(value)

    def string(self, value: str) -> "StreamBuilder":
        encoded = value.encode("utf-8")
        return self.count(len(encoded)).raw(encoded)

    def build(self) -> bytes:
        return bytes(self.data)


def dictionary(
    groups: Iterable[Group] = DEFAULT_GROUPS,
    label: str = "",
    reserved: Tuple[int, str] = (0, ""),
) -> bytes:
    groups = list(groups)
    out = StreamBuilder().u16(len(groups) + 1).string(label)
    out.u16(reserved[0]).string(reserved[1])
    for name, pairs in groups:
        width = 1 if name == "quality" else 2
        out.string(name).uint(len(pairs), width)
        for numeric_id, proto_name in pairs:
            out.uint(numeric_id, width).string(proto_name)
    return out.build()


def prelude(
    version: VersionTuple = V2,
    branch: int = 0,
    expansions: Optional[Dict[str, Sequence[str]]] = None,
    groups: Iterable[Group] = DEFAULT_GROUPS,
    player_index: int = 1,
    generation: int = 7,
    save_time: int = SAVE_TIME,
    synchronized: bool = True,
) -> bytes:
    """Everything before the root library object array."""
    out = StreamBuilder()
    for part in version:
        out.u16(part)
    out.u8(branch).u8(0)

    expansions = {"base": []} if expansions is None else expansions
    out.u8(len(expansions))
    for mod_name, files in expansions.items():
        out.string(mod_name).u8(len(files))
        for file_name in files:
            out.string(file_name)

    out.raw(dictionary(groups))
    out.u16(player_index).u32(generation)
    if version <= (1, 2, 0, 0x175):
        out.u32(save_time)
    else:
        out.u64(save_time)
    out.boolean(synchronized)
    return out.build()


def trailer(version: VersionTuple = V2) -> bytes:
    out = StreamBuilder()
    if version >= (1, 2, 0, 0xA7):
        if version > (1, 2, 0, 0xA7):
            out.count(0)
        out.count(0).u8(0)
    return out.build()


def library(*slots: bytes) -> bytes:
    return StreamBuilder().u32(len(slots)).raw(b"".join(slots)).build()


def storage(*slots: bytes, version: VersionTuple = V2, **kwargs: object) -> bytes:
    """A complete stream holding `slots` in its root library."""
    return prelude(version, **kwargs) + library(*slots) + trailer(version)  # type: ignore[arg-type]


# === SLOTS ===

def empty_slot() -> bytes:
    return b"\x00"


def _header(variant: int, item_id: int, generation: int, label: str) -> StreamBuilder:
    return StreamBuilder().boolean(True).u8(variant).u32(generation).u16(item_id).string(label)


def _icons(
    out: StreamBuilder,
    icons: Sequence[Tuple[int, int]],
    icon_names: Sequence[str],
) -> None:
    out.u8(len(icon_names))
    for name in icon_names:
        out.string(name)
    out.u8(len(icons))
    for signal_type, numeric_id in icons:
        out.u8(signal_type).u16(numeric_id)


def blueprint_slot(
    label: str,
    payload: bytes = b"",
    generation: int = 1,
    removed_mods: bool = False,
    item_id: int = BLUEPRINT_ID,
) -> bytes:
    out = _header(0, item_id, generation, label)
    out.u8(0).boolean(removed_mods).count(len(payload)).raw(payload)
    return out.build()


def book_slot(
    label: str,
    children: Sequence[bytes] = (),
    description: str = "",
    icons: Sequence[Tuple[int, int]] = (),
    icon_names: Sequence[str] = (),
    active_index: int = 0,
    generation: int = 1,
    major: int = 2,
    item_id: int = BOOK_ID,
) -> bytes:
    out = _header(1, item_id, generation, label).string(description)
    _icons(out, icons, icon_names)
    out.raw(library(*children))
    if major >= 2:
        out.u16(active_index)
    else:
        out.u8(active_index).u8(0)
    return out.build()


def _filters(
    out: StreamBuilder,
    ids: Sequence[int],
    id_width: int,
    overrides: Sequence[Tuple[int, str]],
    quality: Sequence[Tuple[int, str]],
    major: int,
) -> None:
    out.u8(len(overrides))
    for index, name in overrides:
        out.u16(index).string(name)
    out.u8(len(ids))
    for numeric_id in ids:
        out.uint(numeric_id, id_width)
    if major >= 2:
        out.u8(len(quality))
        for index, name in quality:
            out.u16(index).string(name)


def decon_slot(
    label: str,
    description: str = "",
    entity_filters: Sequence[int] = (),
    entity_overrides: Sequence[Tuple[int, str]] = (),
    entity_quality: Sequence[Tuple[int, str]] = (),
    trees_rocks_only: bool = False,
    tile_filters: Sequence[int] = (),
    entity_filter_mode: int = 0,
    tile_filter_mode: int = 0,
    tile_selection_mode: int = 0,
    icons: Sequence[Tuple[int, int]] = (),
    generation: int = 1,
    major: int = 2,
) -> bytes:
    out = _header(2, DECON_ID, generation, label).string(description)
    _icons(out, icons, ())
    out.u8(entity_filter_mode)
    _filters(out, entity_filters, 2, entity_overrides, entity_quality, major)
    out.boolean(trees_rocks_only)
    out.u8(tile_filter_mode).u8(tile_selection_mode)
    _filters(out, tile_filters, 1, (), (), major)
    return out.build()


def upgrade_slot(
    label: str,
    mappers: Sequence[Tuple[Tuple[bool, int], Tuple[bool, int]]] = (),
    overrides: Sequence[Tuple[str, bool, int]] = (),
    description: str = "",
    icons: Sequence[Tuple[int, int]] = (),
    generation: int = 1,
) -> bytes:
    out = _header(3, UPGRADE_ID, generation, label).string(description)
    _icons(out, icons, ())
    out.u8(len(overrides))
    for name, is_to, index in overrides:
        out.string(name).boolean(is_to).u16(index)
    out.u8(len(mappers))
    for source, target in mappers:
        for is_item, numeric_id in (source, target):
            out.boolean(is_item).u16(numeric_id)
    return out.build()


def codec_from(
    data: bytes,
    observer: Optional[DecodeObserver] = None,
    check_strings: bool = True,
) -> PrimitiveCodec:
    """Codec over a finished in-memory stream. Call inside an event loop."""
    return PrimitiveCodec(ByteCursor(reader_from_bytes(data), observer), check_strings)


class RecordingObserver(DecodeObserver):
    """Collects every observer callback in order."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, object]] = []

    def peek(self) -> None:
        self.events.append(("peek", None))

    def push_label(self, label: str) -> None:
        self.events.append(("push", label))

    def pop_label(self, label: str) -> None:
        self.events.append(("pop", label))

    def read(self, data: bytes, position: int) -> None:
        self.events.append(("read", (position, data)))

    def decoded(self, value: str) -> None:
        self.events.append(("decoded", value))

    def reads(self) -> List[Tuple[int, bytes]]:
        return [event[1] for event in self.events if event[0] == "read"]  # type: ignore[misc]

"""
Working-Set Tiling

Collapses the per-datatype working-set tile hierarchy produced by nest
analysis onto the storage levels of a topology, honoring datatype bypass,
and transposes datatype-major structures into level-major order.

Key concepts:
- TileInfo: Working-set tile of one datatype at one storage level
- collapse_tiles: Fold bypassed levels into the next kept outer level
- transpose_tiles / transpose_masks: Datatype-major -> level-major
"""

from dataclasses import dataclass, replace
from typing import Dict, List

from ..problem.datatypes import DataType

CompoundTileNest = Dict[DataType, List['TileInfo']]
CompoundMaskNest = Dict[DataType, List[bool]]
CompoundTile = Dict[DataType, 'TileInfo']
CompoundMask = Dict[DataType, bool]


@dataclass
class TileInfo:
    """
    Working-set tile of one datatype resident at one storage level.

    Counts are totals over all utilized instances of the level.
    """
    size: int = 0                  # Words per instance
    content_accesses: int = 0      # Reads served to the inner level
    fills: int = 0                 # Writes received from the outer level
    fanout: int = 1                # Inner instances fed by one instance
    distributed_fanout: int = 1    # Fanout served by one distributed multicast
    instances_used: int = 1        # Utilized instances of this level

    @property
    def accesses(self) -> int:
        return self.content_accesses + self.fills

    @property
    def is_empty(self) -> bool:
        return self.size == 0 and self.accesses == 0


def collapse_tiles(
    ws_tiles: CompoundTileNest,
    num_tiling_levels: int,
    bypass_nest: CompoundMaskNest,
    distribution_supported: CompoundMaskNest,
) -> CompoundTileNest:
    """
    Collapse the raw tile hierarchy into exactly num_tiling_levels tiles
    per datatype.

    A bypassed level keeps an empty tile; the content accesses it would
    have served and its fanout are forwarded to the next kept level
    further out. A kept level that supports distributed multicast records
    its whole (accumulated) fanout as distributed fanout.
    """
    collapsed: CompoundTileNest = {}
    for dt in DataType:
        raw = ws_tiles[dt]
        if len(raw) < num_tiling_levels:
            raise ValueError(
                f"{dt.name}: {len(raw)} working-set tiles for {num_tiling_levels} levels"
            )
        keep = bypass_nest[dt]
        distributed = distribution_supported[dt]

        tiles: List[TileInfo] = []
        pending_accesses = 0
        pending_fanout = 1
        for level in range(num_tiling_levels):
            tile = raw[level]
            if not keep[level]:
                pending_accesses += tile.content_accesses
                pending_fanout *= tile.fanout
                tiles.append(TileInfo(instances_used=tile.instances_used))
                continue

            fanout = tile.fanout * pending_fanout
            tiles.append(replace(
                tile,
                content_accesses=tile.content_accesses + pending_accesses,
                fanout=fanout,
                distributed_fanout=fanout if distributed[level] else 1,
            ))
            pending_accesses = 0
            pending_fanout = 1
        collapsed[dt] = tiles
    return collapsed


def transpose_tiles(tiles: CompoundTileNest) -> List[CompoundTile]:
    """Datatype -> level structure to level -> datatype structure."""
    num_levels = min(len(tiles[dt]) for dt in DataType)
    return [{dt: tiles[dt][level] for dt in DataType} for level in range(num_levels)]


def transpose_masks(masks: CompoundMaskNest) -> List[CompoundMask]:
    """Datatype -> level keep masks to level -> datatype keep masks."""
    num_levels = min(len(masks[dt]) for dt in DataType)
    return [{dt: masks[dt][level] for dt in DataType} for level in range(num_levels)]

#!/usr/bin/env python3
"""
Architecture Validation Tool

Loads an architecture YAML, validates the inter-level structure (instance
counts, meshes, fanouts), builds the topology and prints its levels.
Structural errors name the inconsistent level pair and exit with status 1.

Usage:
    python cli/validate_architecture.py arch.yaml
    python cli/validate_architecture.py arch.yaml --verbose
    python cli/validate_architecture.py arch.yaml --format json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))

from accelmap.config import load_architecture
from accelmap.model import BufferSpecs, Topology, TopologySpecError


def specs_table(specs) -> dict:
    """Structural attributes per storage level."""
    arithmetic = specs.get_arithmetic_level()
    table = {
        'arithmetic': {
            'name': arithmetic.name,
            'instances': arithmetic.instances,
            'meshX': arithmetic.mesh_x,
            'meshY': arithmetic.mesh_y,
        },
        'storage': [],
    }
    for i in range(specs.num_storage_levels):
        level: BufferSpecs = specs.get_storage_level(i)
        table['storage'].append({
            'name': level.name,
            'sharing': level.sharing_type.value,
            'instances': level.get('instances'),
            'meshX': level.get('mesh_x'),
            'meshY': level.get('mesh_y'),
            'fanout': level.get('fanout'),
            'fanoutX': level.get('fanout_x'),
            'fanoutY': level.get('fanout_y'),
        })
    return table


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Validate an accelerator architecture")
    parser.add_argument("architecture", help="Architecture YAML file")
    parser.add_argument("--format", choices=["text", "json"], default="text")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        specs = load_architecture(args.architecture)
        topology = Topology()
        topology.spec(specs)
    except TopologySpecError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        print(json.dumps(specs_table(specs), indent=2))
    else:
        print(topology.report())
    return 0


if __name__ == "__main__":
    sys.exit(main())

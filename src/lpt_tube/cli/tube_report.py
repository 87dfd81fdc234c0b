#!/usr/bin/env python3
"""
Molded Tube Report CLI.

This script provides a command-line interface for evaluating molded tube
designs from YAML configuration files: section properties along the tube,
weight, balance point and barrel compression.

Usage:
    python -m lpt_tube.cli.tube_report design.yaml [options]

Examples:
    # Report section properties and totals
    python -m lpt_tube.cli.tube_report design.yaml

    # Report at chosen positions and print the wall ABD matrices
    python -m lpt_tube.cli.tube_report design.yaml --positions 0.6,0.7 --abd

    # Write the section table to CSV
    python -m lpt_tube.cli.tube_report design.yaml --output sections.csv

    # Generate template configuration
    python -m lpt_tube.cli.tube_report --template > my_design.yaml
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np
import yaml

# Template YAML configuration
TEMPLATE_CONFIG = """# Molded Tube Design
# ==================
# This file defines a molded composite tube for lpt-tube.
# Lengths in m, moduli in Pa, densities in kg/m³, areal weights in kg/m².

name: "Example bat"
description: "Carbon bat with a +/-30 barrel"

# Resin for all dry fiber layers (name from 'materials' or the catalog)
resin: "epoxy_resin"
compaction_pressure: 0.0   # [Pa]

#============================================================================
# MATERIALS
#============================================================================
# Catalog materials: epoxy_resin, e_glass_fiber, carbon_fiber
materials:
  carbon_im:
    type: "PlanarIso23"   # Isotropic, PlanarIso12, PlanarIso13, PlanarIso23,
                          # Orthotropic or FRP
    density: 1790.0
    E1: 290.0e9
    E2: 15.0e9
    G12: 7.0e9
    PR12: 0.25
    PR23: 0.3

#============================================================================
# LAYERS
#============================================================================
# Catalog layers: glass_uni, carbon_uni, carbon_75, c30, c30L, c45,
# lam_4, lam_4L, lam_4f, lam_4z, lam_4gz, lam_5, lam_5L, lam_5f
layers:
  im_uni:
    type: "FiberLayer"
    fiber: "carbon_im"
    faw: 0.15      # Fiber areal weight [kg/m²]
    vf: 0.59
  im_pm45:
    type: "FabricLayer"
    layers: ["im_uni", "im_uni"]
    angles: [45, -45]
    weave_type: "None"   # "None", "Stitch-Knit", "Plain Weave", "2x2 Twill"

#============================================================================
# PROFILE
#============================================================================
profile:
  x:  [0.0,    0.30,   0.50,     0.84]
  od: [0.0254, 0.0254, 0.056642, 0.056642]

#============================================================================
# PLY SCHEDULE (inside to outside)
#============================================================================
plies:
  - layer: "im_pm45"
    start: 0.0
    end: 0.84
  - layer: "lam_4"
    start: 0.45
    end: 0.84
    width_at_start: 0.1
    width_at_end: 0.18
    taper_end: 0.55

#============================================================================
# REPORT
#============================================================================
report:
  # positions: [0.1, 0.6, 0.7]   # Default: ply ends and profile points
  integration_points: 101
"""

TABLE_COLUMNS = ("x", "OD", "thickness", "wt_per_len", "ExI", "barrel_compression")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def print_template() -> None:
    """Print template configuration to stdout."""
    print(TEMPLATE_CONFIG)


def parse_positions(text: str) -> List[float]:
    """Comma separated positions, e.g. '0.1,0.5,0.7'."""
    try:
        return [float(v) for v in text.split(",") if v.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid position list: {text!r}") from None


def validate_config(config_path: str) -> bool:
    """Validate configuration file and build the tube without reporting."""
    from lpt_tube.core.config import TubeDesignConfig

    try:
        config = TubeDesignConfig.from_yaml(config_path)
        config.build_tube()
        warnings = config.validate()

        print("Configuration validation:")
        print("=" * 50)
        print(config)

        if warnings:
            print("\nWarnings:")
            for w in warnings:
                print(f"  ⚠️  {w}")
            return False
        else:
            print("\n✓ Configuration is valid")
            return True

    except Exception as e:
        print(f"\n✗ Validation failed: {e}")
        return False


def format_section_table(table: np.ndarray) -> str:
    """Section table with units, one row per position."""
    header = (f"{'x [m]':>10} {'OD [mm]':>10} {'t [mm]':>10} {'wt [g/m]':>10} "
              f"{'ExI [N·m²]':>12} {'BC [lbf]':>10}")
    lines = [header, "-" * len(header)]
    for x, od, t, wt, exi, bc in table:
        lines.append(f"{x:10.4f} {od * 1000:10.3f} {t * 1000:10.3f} {wt * 1000:10.2f} "
                     f"{exi:12.2f} {bc:10.1f}")
    return "\n".join(lines)


def write_output(output_path: Path, table: np.ndarray, totals: dict) -> None:
    """Write the section table to .csv, or the table and totals to .yaml."""
    if output_path.suffix.lower() in (".yaml", ".yml"):
        data = {
            "totals": totals,
            "sections": [dict(zip(TABLE_COLUMNS, (float(v) for v in row))) for row in table],
        }
        with open(output_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
    else:
        np.savetxt(output_path, table, delimiter=",", header=",".join(TABLE_COLUMNS),
                   comments="")
    logging.getLogger(__name__).info("Wrote %s", output_path)


def run_report(config_path: str, positions: Optional[List[float]] = None,
               show_abd: bool = False, output: Optional[str] = None) -> None:
    """Build the tube in ``config_path`` and print its report."""
    from lpt_tube.core.config import TubeDesignConfig
    from lpt_tube.core.helpers import format_matrix

    config = TubeDesignConfig.from_yaml(config_path)
    tube = config.build_tube()
    if positions is None:
        positions = config.report.positions
    n = config.report.integration_points

    table = tube.get_section_table(positions)
    totals = {
        "weight": tube.get_weight(n=n),
        "volume": tube.get_volume(n=n),
        "cog": tube.get_cog(n=n),
        "moi": tube.get_moi(n=n),
    }

    print(config)
    print()
    print(format_section_table(table))
    print()
    print(f"Weight: {totals['weight'] * 1000:.1f} g")
    print(f"Volume: {totals['volume'] * 1e6:.2f} cm³")
    print(f"Balance point: {totals['cog']:.4f} m")
    print(f"MOI about balance point: {totals['moi']:.6f} kg·m²")

    if show_abd:
        for x in table[:, 0]:
            section = tube.get_section_properties(float(x))
            if section.laminate_properties is None:
                continue
            print(f"\nABD matrix at x = {x:.4f} m ({section.laminate.ply_count} plies)")
            print(format_matrix(section.laminate_properties.stiffness_matrix))

    if output:
        write_output(Path(output), table, totals)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Report properties of molded tubes from YAML design files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s design.yaml                      Report sections and totals
  %(prog)s design.yaml --preview            Preview configuration
  %(prog)s design.yaml --validate           Validate configuration
  %(prog)s design.yaml --positions 0.6,0.7  Report at chosen positions
  %(prog)s design.yaml --output out.csv     Write section table
  %(prog)s --template > design.yaml         Generate template
        """,
    )

    parser.add_argument(
        "config",
        nargs="?",
        help="Path to YAML design file",
    )

    parser.add_argument(
        "--preview",
        "-p",
        action="store_true",
        help="Preview configuration without building the tube",
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration file",
    )

    parser.add_argument(
        "--template",
        "-t",
        action="store_true",
        help="Print template configuration to stdout",
    )

    parser.add_argument(
        "--positions",
        type=parse_positions,
        help="Comma separated axial positions [m]",
    )

    parser.add_argument(
        "--abd",
        action="store_true",
        help="Print the wall ABD matrix at every position",
    )

    parser.add_argument(
        "--output",
        "-o",
        help="Write the section table (.csv) or table and totals (.yaml)",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    if args.template:
        print_template()
        return 0

    # Require config file for other operations
    if not args.config:
        parser.print_help()
        return 1

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Error: Configuration file not found: {config_path}")
        return 1

    setup_logging(args.verbose)

    # Validate only
    if args.validate:
        return 0 if validate_config(str(config_path)) else 1

    # Preview configuration
    if args.preview:
        from lpt_tube.core.config import TubeDesignConfig

        config = TubeDesignConfig.from_yaml(str(config_path))
        print(config)
        return 0

    try:
        run_report(str(config_path), args.positions, args.abd, args.output)
        return 0

    except Exception as e:
        logging.exception("Report failed")
        print(f"\nError: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""
Grow a single CCO tree in a sphere.

This example demonstrates:
1. Loading a domain file, or sampling the preset sphere
2. Growing the tree with the reference parameters
3. Exporting VTK, CSV, JSON and the morphometry table
"""

import argparse
import logging
from pathlib import Path

from cco_lib import (
    ConstrainedConstructiveOptimization,
    TreeMorphometry,
    get_preset,
    read_domain_file,
    save_csv,
    save_json,
    save_vtk,
)


def parse_args():
    p = argparse.ArgumentParser(description="Grow a CCO tree in a sphere.")
    p.add_argument('--domain', type=str, default=None,
                   help='Domain point file (VTK FIELD); samples the preset sphere when omitted')
    p.add_argument('--out', type=str, default='output', help='Output directory')
    p.add_argument('--terminals', type=int, default=None, help='Number of terminals (default 250)')
    p.add_argument('--points', type=int, default=None, help='Number of sampled domain points')
    p.add_argument('--seed', type=int, default=0, help='Random seed for sampling')
    p.add_argument('--plot', action='store_true', help='Show the tree with matplotlib')
    return p.parse_args()


def main():
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    preset = get_preset("sphere_cco")
    if args.terminals is not None:
        preset.tree.number_of_terminals = args.terminals

    if args.domain:
        domain = read_domain_file(args.domain, function=preset.function)
    else:
        domain = preset.build_domain(seed=args.seed, number_of_points=args.points)

    cco = ConstrainedConstructiveOptimization.from_parameters(domain, preset.tree, preset.growth)
    result = cco.grow()

    print("\n=== Growth Results ===")
    print(f"Status: {result.status.value}")
    print(f"Terminals: {result.number_of_terminals}")
    print(f"Segments: {result.number_of_segments}")
    print(f"Relaxations: {result.relaxations}")
    print(f"Root radius: {cco.tree.root_radius() * 1000.0:.4f} mm")
    print(f"Elapsed: {result.elapsed_seconds:.1f} s")

    out = Path(args.out)
    out.mkdir(parents=True, exist_ok=True)
    save_vtk(cco.tree, out / "cco-tree.vtk",
             length_unit=preset.export_length_unit, radius_unit=preset.export_radius_unit)
    save_csv(cco.tree, out / "cco-tree.csv",
             length_unit=preset.export_length_unit, radius_unit=preset.export_radius_unit)
    save_json(cco.tree, out / "cco-tree.json")
    TreeMorphometry(cco.tree).save(out / "cco-morphometry.txt",
                                   length_unit=preset.export_length_unit,
                                   radius_unit=preset.export_radius_unit)
    print(f"Saved results to {out}")

    if args.plot:
        from cco_lib.visualization import plot_tree
        plot_tree(cco.tree, show=True, title="CCO tree")


if __name__ == "__main__":
    main()

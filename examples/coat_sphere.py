"""
Grow two competing optimized arterial trees (COAT) in a sphere.

Stage 1 grows both trees near their seeds until each carries 20% of its
flow share; stage 2 splits the sphere into territories and fills each one.
"""

import argparse
import logging
from pathlib import Path

from cco_lib import (
    CompetingOptimizedArterialTrees,
    TreeMorphometry,
    get_preset,
    read_domain_file,
    save_vtk,
)


def parse_args():
    p = argparse.ArgumentParser(description="Grow a COAT forest in a sphere.")
    p.add_argument('--domain', type=str, default=None,
                   help='Domain point file with at least two seeds; samples the preset sphere when omitted')
    p.add_argument('--out', type=str, default='output', help='Output directory')
    p.add_argument('--terminals', type=int, default=None, help='Terminals of the whole forest (default 250)')
    p.add_argument('--points', type=int, default=None, help='Number of sampled domain points')
    p.add_argument('--seed', type=int, default=0, help='Random seed for sampling')
    p.add_argument('--plot', action='store_true', help='Show the forest with matplotlib')
    return p.parse_args()


def main():
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    preset = get_preset("coat_two_trees")
    if args.terminals is not None:
        preset.tree.number_of_terminals = args.terminals

    if args.domain:
        domain = read_domain_file(args.domain, function=preset.function)
    else:
        domain = preset.build_domain(seed=args.seed, number_of_points=args.points)

    coat = CompetingOptimizedArterialTrees.from_parameters(
        domain, preset.tree, preset.growth, preset.forest
    )
    result = coat.grow()

    print("\n=== Growth Results ===")
    print(f"Status: {result.status.value}")
    print(f"Terminals per tree: {result.metadata['terminals_per_tree']}")
    print(f"Relaxations: {result.relaxations}")
    print(f"Rejected commits: {result.rejected_commits}")

    out = Path(args.out)
    out.mkdir(parents=True, exist_ok=True)
    for t, tree in enumerate(coat.trees):
        save_vtk(tree, out / f"coat-tree{t + 1}.vtk",
                 length_unit=preset.export_length_unit, radius_unit=preset.export_radius_unit)
        TreeMorphometry(tree).save(out / f"coat-morphometry{t + 1}.txt",
                                   length_unit=preset.export_length_unit,
                                   radius_unit=preset.export_radius_unit)
    coat.attained_flow(out / "coat-attained-flow.txt")
    coat.volumes(out / "coat-volumes.txt", radius_unit=preset.export_radius_unit)
    print(f"Saved results to {out}")

    if args.plot:
        from cco_lib.visualization import plot_tree
        plot_tree(coat.trees, show=True, title="COAT forest")


if __name__ == "__main__":
    main()

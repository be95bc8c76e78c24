"""Command-line interface for dsgeswitch.

Usage:
    dsgeswitch solve setup.yaml   Solve the setup and show per-regime results
    dsgeswitch info setup.yaml    Show model, policies and regime partition
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

if TYPE_CHECKING:
    from argparse import Namespace

    from dsgeswitch.system import TransitionSolution


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="dsgeswitch",
        description="Regime-switching solutions of linear DSGE models",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  dsgeswitch solve setup.yaml                  Solve all configured regimes
  dsgeswitch solve setup.yaml -r 2 -r 3        Solve regimes 2 and 3 only
  dsgeswitch solve setup.yaml --show-matrices  Print TTT and CCC per regime
  dsgeswitch info setup.yaml                   Show setup structure
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # =========================================================================
    # solve command
    # =========================================================================
    solve_parser = subparsers.add_parser(
        "solve",
        help="Solve a setup and show the transition equations",
        description="Load a setup, solve it, and display per-regime results.",
    )
    solve_parser.add_argument("setup", help="Setup file (.yaml)")
    solve_parser.add_argument(
        "--regime", "-r",
        type=int,
        action="append",
        default=None,
        help=(
            "Regime to solve (repeatable; default: all configured regimes). "
            "Requires regime_switching in the setup"
        ),
    )
    solve_parser.add_argument(
        "--show-matrices",
        action="store_true",
        help="Print TTT and CCC for each regime",
    )

    # =========================================================================
    # info command
    # =========================================================================
    info_parser = subparsers.add_parser(
        "info",
        help="Show setup information",
        description="Display model states, shocks, policies and regimes.",
    )
    info_parser.add_argument("setup", help="Setup file (.yaml)")

    return parser


def _get_version() -> str:
    """Get package version."""
    try:
        from dsgeswitch._version import __version__

        return __version__
    except ImportError:
        return "unknown"


def _load_setup(setup_path: str):
    """Load setup from file, or None after reporting the problem."""
    from dsgeswitch import load_setup
    from dsgeswitch.exceptions import DSGESwitchError

    path = Path(setup_path)
    if not path.exists():
        print(f"Error: Setup file not found: {path}", file=sys.stderr)
        return None

    try:
        return load_setup(path)
    except (DSGESwitchError, ValueError, OSError) as e:
        print(f"Error loading setup: {e}", file=sys.stderr)
        return None


def _print_matrices(model, label: str, solution: TransitionSolution) -> None:
    names = [*model.state_names, *model.augmented_state_names]
    if len(names) != solution.n_states:
        names = [f"x{i}" for i in range(solution.n_states)]

    print(f"Transition matrix TTT ({label}):")
    print("-" * 40)
    T_df = pd.DataFrame(solution.TTT, index=names, columns=names)
    print(T_df.to_string(float_format=lambda x: f"{x:.4f}"))
    print()
    print(f"Constant CCC ({label}):")
    print("-" * 40)
    print(pd.Series(solution.CCC, index=names).to_string(float_format=lambda x: f"{x:.4f}"))
    print()


def cmd_solve(args: Namespace) -> int:
    """Solve command."""
    from dsgeswitch import solve
    from dsgeswitch.exceptions import DSGESwitchError
    from dsgeswitch.system import RegimeSwitchingSolution

    print(f"Loading setup: {args.setup}")
    loaded = _load_setup(args.setup)
    if loaded is None:
        return 1
    model, config, registry = loaded

    if args.regime and not config.regime_switching:
        print(
            "Error: --regime requires regime_switching to be enabled in the setup",
            file=sys.stderr,
        )
        return 1

    print("Solving model...")
    try:
        result = solve(model, config, registry, regimes=args.regime)
    except DSGESwitchError as e:
        print(f"Error solving model: {e}", file=sys.stderr)
        return 1

    print()
    if isinstance(result, RegimeSwitchingSolution):
        print(result.summary())
        print()
        print(result.to_frame().to_string(float_format=lambda x: f"{x:.6f}"))
        print()
        if args.show_matrices:
            for reg in result:
                _print_matrices(model, f"regime {reg}", result[reg])
    else:
        print("=" * 50)
        print("SOLUTION")
        print("=" * 50)
        print(f"  States:          {result.n_states}")
        print(f"  Shocks:          {result.n_shocks}")
        print(f"  Spectral radius: {result.spectral_radius:.6f}")
        print()
        if args.show_matrices:
            _print_matrices(model, config.solution_method, result)

    return 0


def cmd_info(args: Namespace) -> int:
    """Info command."""
    print(f"Loading setup: {args.setup}")
    loaded = _load_setup(args.setup)
    if loaded is None:
        return 1
    model, config, registry = loaded

    print()
    print("=" * 50)
    print(f"MODEL: {model.name}")
    print("=" * 50)
    print()

    print("States:")
    print("-" * 30)
    for name in model.state_names:
        print(f"  {name}")
    for name in model.augmented_state_names:
        print(f"  {name:<15} (augmented)")
    print()

    print("Shocks:")
    print("-" * 30)
    for name in model.shock_names:
        print(f"  {name}")
    print()

    print("Policies:")
    print("-" * 30)
    for key, policy in model.policies.items():
        active = " [active]" if key == registry.alternative_policy.key else ""
        print(f"  {key:<15} {policy.description}{active}")
    print()

    print("Regimes:")
    print("-" * 30)
    print(f"  Solution method:   {config.solution_method}")
    print(f"  Regime switching:  {config.regime_switching}")
    if config.regime_switching:
        for r in config.gensys_regimes:
            print(f"  gensys regimes:    {r.start}..{r.stop - 1}")
        for r in config.gensys2_regimes:
            print(f"  gensys2 window:    {r.start}..{r.stop - 1}")
        for reg, info in sorted(registry.regime_eqcond_info.items()):
            weights = f" weights={info.weights}" if info.weights else ""
            print(f"  Regime {reg:<4d}       {info.alternative_policy.key}{weights}")

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "solve": cmd_solve,
        "info": cmd_info,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())

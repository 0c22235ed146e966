"""pdbview command-line application."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from pdbview import config
from pdbview.errors import PdbviewError
from pdbview.logging_config import configure_logging
from pdbview.model import Model
from pdbview.render.styles import ColorMode, RenderStyle
from pdbview.worker import Worker

logger = logging.getLogger(__name__)

TABLE_NAMES = ("chains", "residues", "elements", "secondary_structure", "ligands", "pockets")


def _parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=f"{config.APP_NAME}")
    parser.add_argument("pdb_path", help="Path to a PDB file (.pdb, .ent, optionally .gz)")
    parser.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Write debug logs to this file instead of stderr",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level",
    )
    parser.add_argument(
        "--bond-tolerance",
        dest="bond_tolerance",
        type=float,
        default=config.BOND_TOLERANCE,
        help="Multiplier applied to summed covalent radii",
    )
    parser.add_argument(
        "--max-bond-degree",
        dest="max_bond_degree",
        type=int,
        default=config.MAX_BOND_DEGREE,
        help="Maximum number of inferred bonds per atom",
    )
    parser.add_argument(
        "--table",
        dest="tables",
        action="append",
        choices=TABLE_NAMES,
        default=None,
        help="Include an info table in the output (repeatable)",
    )
    parser.add_argument(
        "--sequence",
        dest="sequence_chain",
        default=None,
        help="Include the one-letter sequence of this chain",
    )
    parser.add_argument(
        "--scene",
        dest="scene",
        action="store_true",
        help="Include a render scene summary",
    )
    parser.add_argument(
        "--style",
        dest="style",
        default=RenderStyle.SPHERES.value,
        choices=[style.value for style in RenderStyle],
        help="Render style for --scene",
    )
    parser.add_argument(
        "--color-mode",
        dest="color_mode",
        default=ColorMode.ELEMENT.value,
        choices=[mode.value for mode in ColorMode],
        help="Color mode for --scene",
    )
    parser.add_argument(
        "--atoms",
        dest="include_atoms",
        action="store_true",
        help="Include every atom and bond in the output",
    )
    return parser.parse_args(argv[1:])


def run(args: argparse.Namespace) -> Dict[str, object]:
    """Load a structure and build the requested JSON payload.

    Parameters
    ----------
    args
        Parsed command-line arguments.

    Returns
    -------
    dict
        JSON-ready payload.

    Raises
    ------
    PdbviewError
        If the file cannot be loaded or a request is invalid.
    """

    with Worker(max_workers=1) as worker:
        model = Model(
            cpu_submit=worker.submit_cpu,
            submit=worker.submit,
            tolerance=args.bond_tolerance,
            max_degree=args.max_bond_degree,
        )
        loaded = model.load_file(args.pdb_path)
        payload: Dict[str, object] = model.get_structure(include_atoms=args.include_atoms)
        payload["warnings"] = loaded["warnings"]
        if args.tables:
            tables = model.get_structure_info()["tables"]
            payload["tables"] = {name: tables[name] for name in args.tables}
        if args.sequence_chain is not None:
            payload["sequence"] = model.get_sequence(args.sequence_chain)["sequence"]
        if args.scene:
            scene = model.get_scene(style=args.style, color_mode=args.color_mode)
            payload["scene"] = scene["scene"]
            payload["cache"] = scene["cache"]
        model.wait_for_background()
    return payload


def main(argv: Optional[List[str]] = None) -> int:
    """Run the pdbview CLI.

    Returns
    -------
    int
        Process exit code.
    """

    args = _parse_args(sys.argv if argv is None else argv)
    configure_logging(args.log_file, level=args.log_level)
    logger.debug("Starting %s for %s", config.APP_NAME, args.pdb_path)
    try:
        payload = run(args)
    except PdbviewError as exc:
        logger.error("%s: %s", exc.code, exc.message)
        json.dump(exc.to_result(), sys.stdout, indent=2, ensure_ascii=False)
        sys.stdout.write("\n")
        return 1
    json.dump(payload, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0

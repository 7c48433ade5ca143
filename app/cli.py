"""
Command-line interface for Propagating Circuits batch operations.

Validate diagrams, replay input events and export flattened diagrams
without the GUI.

Usage::

    python -m cli validate examples/switches_in_series.json
    python -m cli simulate examples/switches_in_series.json --event toggle:switch1 --event toggle:switch2
    python -m cli simulate examples/relay_selector.json --event toggle:switch --format text
    python -m cli export examples/interlocked_switches.json --output flat.json
    python -m cli batch examples/
    python -m cli repl --load examples/switches_in_series.json
"""

import argparse
import glob
import json
import logging
import sys
from pathlib import Path

from controllers.diagram_controller import DiagramController
from controllers.file_controller import FileController, read_diagram
from models.diagram import DiagramModel
from simulation.errors import SimulationError

logger = logging.getLogger(__name__)

EVENT_KINDS = ("toggle", "press", "release", "coil")


def parse_event(text: str) -> tuple[str, str, bool]:
    """Parse ``toggle:NAME``, ``press:NAME``, ``release:NAME`` or ``coil:NAME=0/1``."""
    kind, sep, rest = text.partition(":")
    if not sep or kind not in EVENT_KINDS or not rest:
        raise argparse.ArgumentTypeError(
            f"invalid event '{text}' (expected one of {', '.join(k + ':NAME' for k in EVENT_KINDS)})"
        )
    if kind != "coil":
        return kind, rest, True

    name, sep, value = rest.partition("=")
    if not sep or value not in ("0", "1"):
        raise argparse.ArgumentTypeError(f"invalid coil event '{text}' (expected coil:NAME=0 or coil:NAME=1)")
    return kind, name, value == "1"


def try_load_diagram(filepath: str) -> tuple[DiagramModel | None, str]:
    """Load and validate a diagram JSON file without exiting.

    Returns:
        (model, "") on success, or (None, error_message) on failure.
    """
    path = Path(filepath)
    if not path.exists():
        return None, f"file not found: {filepath}"

    try:
        model = read_diagram(path)
    except json.JSONDecodeError as e:
        return None, f"invalid JSON in {filepath}: {e}"
    except ValueError as e:
        return None, f"invalid diagram file: {e}"

    if not model.name:
        model.name = path.stem
    return model, ""


def load_diagram(filepath: str) -> DiagramModel:
    """Load and validate a diagram JSON file.

    Raises:
        SystemExit: On file read or validation errors.
    """
    model, error = try_load_diagram(filepath)
    if model is None:
        print(f"Error: {error}", file=sys.stderr)
        sys.exit(1)
    return model


def build_controller(filepath: str, model: DiagramModel) -> DiagramController:
    """Build ``model`` with External items resolved next to ``filepath``.

    Raises:
        SimulationError: If the diagram cannot be built or never settles.
    """
    controller = DiagramController(builder=FileController(model).builder_for(filepath))
    controller.load(model)
    return controller


def apply_event(controller: DiagramController, event: tuple[str, str, bool]) -> None:
    kind, name, value = event
    if kind == "toggle":
        controller.toggle(name)
    elif kind == "press":
        controller.press(name)
    elif kind == "release":
        controller.release(name)
    else:
        controller.set_coil_input(name, value)


def snapshot(controller: DiagramController) -> dict:
    """Collect the observable state of a built diagram."""
    context = controller.context
    data = {
        "diagram": controller.model.name,
        "testable": context.testable,
        "states": {c.name: c.state for c in context.registry},
        "energized": sorted(controller.energized()),
    }
    if context.decoders:
        data["displays"] = {name: d.text for name, d in context.decoders.items()}
    if context.testable:
        data["loops"] = [loop.names() for loop in controller.loops]
    return data


def _format_snapshot(data: dict, fmt: str) -> str:
    if fmt == "text":
        lines = [f"Diagram: {data['diagram']}{' (testable)' if data['testable'] else ''}"]
        for name, state in data["states"].items():
            lines.append(f"  {name:<32} {'ON' if state else 'off'}")
        for name, text in data.get("displays", {}).items():
            lines.append(f"  {name:<32} {text}")
        if "loops" in data:
            lines.append(f"Closed loops: {len(data['loops'])}")
            for loop in data["loops"]:
                lines.append("  " + " -> ".join(loop))
        return "\n".join(lines)
    return json.dumps(data, indent=2)


def cmd_simulate(args: argparse.Namespace) -> int:
    """Build a diagram, replay events and output the resulting state."""
    model = load_diagram(args.diagram)
    try:
        controller = build_controller(args.diagram, model)
        for event in args.event or []:
            logger.debug("Applying %s:%s", event[0], event[1])
            apply_event(controller, event)
    except SimulationError as e:
        print(f"Simulation failed: {e}", file=sys.stderr)
        return 1

    output_text = _format_snapshot(snapshot(controller), args.format)

    if args.output:
        Path(args.output).write_text(output_text)
        print(f"Results written to {args.output}", file=sys.stderr)
    else:
        print(output_text)

    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a diagram by building it."""
    model = load_diagram(args.diagram)
    try:
        controller = build_controller(args.diagram, model)
    except SimulationError as e:
        print(f"Diagram has errors: {args.diagram}", file=sys.stderr)
        print(f"  - {e}", file=sys.stderr)
        return 1

    context = controller.context
    print(
        f"Diagram is valid: {args.diagram} "
        f"({len(context.registry) - len(context.wire_index)} components, {len(context.wire_index)} wires)"
    )
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Export the diagram with External items flattened into its library."""
    model = load_diagram(args.diagram)
    try:
        controller = build_controller(args.diagram, model)
    except SimulationError as e:
        print(f"Error building diagram: {e}", file=sys.stderr)
        return 1

    context = controller.context
    data = {
        "name": model.name,
        "components": [
            c.to_dict() for c in context.registry if c.component_type != "Wire"
        ],
        "wires": [w.to_dict() for w in context.wire_index],
    }
    if model.testable:
        data["testable"] = True
    if model.consistency:
        data["consistency"] = True
    if context.rules:
        data["dependencies"] = [rule.to_dict() for rule in context.rules]

    output_text = json.dumps(data, indent=2)
    if args.output:
        Path(args.output).write_text(output_text)
        print(f"JSON written to {args.output}", file=sys.stderr)
    else:
        print(output_text)
    return 0


def cmd_batch(args: argparse.Namespace) -> int:
    """Build every diagram in a directory or glob and report the outcome."""
    pattern = args.path
    path = Path(pattern)
    if path.is_dir():
        files = sorted(path.glob("*.json"))
    elif "*" in pattern or "?" in pattern:
        files = sorted(Path(p) for p in glob.glob(pattern))
    else:
        print(f"Error: {pattern} is not a directory or glob pattern", file=sys.stderr)
        return 1

    if not files:
        print(f"No .json diagram files found matching: {pattern}", file=sys.stderr)
        return 1

    results_summary = []
    any_failed = False

    for filepath in files:
        model, error = try_load_diagram(str(filepath))
        if model is None:
            results_summary.append({"file": filepath.name, "status": "LOAD_ERROR", "error": error})
            any_failed = True
            if args.fail_fast:
                break
            continue

        try:
            controller = build_controller(str(filepath), model)
        except SimulationError as e:
            results_summary.append({"file": filepath.name, "status": "FAIL", "error": str(e)})
            any_failed = True
            if args.fail_fast:
                break
            continue

        results_summary.append({
            "file": filepath.name,
            "status": "OK",
            "details": f"{len(controller.energized())} on",
        })

    print(f"\n{'File':<40} {'Status':<12} {'Details'}")
    print("-" * 70)
    for entry in results_summary:
        details = entry.get("details", entry.get("error", ""))
        print(f"{entry['file']:<40} {entry['status']:<12} {details}")

    total = len(results_summary)
    passed = sum(1 for e in results_summary if e["status"] == "OK")
    print(f"\n{passed}/{total} succeeded, {total - passed} failed")

    return 1 if any_failed else 0


REPL_BANNER = """\
Propagating Circuits Interactive REPL
=====================================

Available objects:
  Diagram          - declare, build and drive diagrams
  COMPONENT_TYPES  - all supported component types

Quick start:
  d = Diagram(testable=True)
  d.add_component("Battery", "battery")
  d.add_component("Switch", "switch1")
  d.add_component("Lightbulb", "light")
  d.add_wire("w1", ("battery", "neg"), ("switch1", "left"))
  d.add_wire("w2", ("switch1", "out"), ("light", "left"))
  d.add_wire("w3", ("light", "right"), ("battery", "pos"))
  d.toggle("switch1")
  print(d.state("light"))
"""


def build_repl_namespace(load_path: str | None = None) -> dict:
    """Build the namespace dict for the interactive REPL."""
    from models.component import COMPONENT_TYPES
    from scripting.diagram import Diagram

    namespace = {
        "Diagram": Diagram,
        "COMPONENT_TYPES": COMPONENT_TYPES,
    }

    if load_path:
        try:
            namespace["diagram"] = Diagram.load(load_path)
            print(f"Loaded diagram from {load_path} as 'diagram'", file=sys.stderr)
        except (OSError, ValueError) as e:
            print(f"Warning: could not load {load_path}: {e}", file=sys.stderr)

    return namespace


def cmd_repl(args: argparse.Namespace) -> int:
    """Launch an interactive Python REPL with the scripting API."""
    import code

    namespace = build_repl_namespace(getattr(args, "load", None))
    code.interact(banner=REPL_BANNER, local=namespace)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="propagating-circuits",
        description="Propagating Circuits batch operations: validate, simulate and export diagrams.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log simulation details to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # simulate
    sim_parser = subparsers.add_parser("simulate", help="Replay input events and output the final state")
    sim_parser.add_argument("diagram", help="Path to diagram JSON file")
    sim_parser.add_argument(
        "--event", "-e", action="append", type=parse_event,
        help="Input event: toggle:NAME, press:NAME, release:NAME or coil:NAME=0/1 (repeatable)",
    )
    sim_parser.add_argument("--format", choices=["json", "text"], default="json", help="Output format (default: json)")
    sim_parser.add_argument("--output", "-o", help="Write results to file instead of stdout")

    # validate
    val_parser = subparsers.add_parser("validate", help="Check that a diagram builds")
    val_parser.add_argument("diagram", help="Path to diagram JSON file")

    # export
    exp_parser = subparsers.add_parser("export", help="Export the flattened diagram as JSON")
    exp_parser.add_argument("diagram", help="Path to diagram JSON file")
    exp_parser.add_argument("--output", "-o", help="Write output to file instead of stdout")

    # batch
    batch_parser = subparsers.add_parser("batch", help="Build multiple diagram files")
    batch_parser.add_argument("path", help="Directory or glob pattern matching diagram JSON files")
    batch_parser.add_argument("--fail-fast", action="store_true", help="Stop on first error")

    # repl
    repl_parser = subparsers.add_parser("repl", help="Launch interactive Python REPL with scripting API")
    repl_parser.add_argument("--load", help="Pre-load a diagram JSON file as 'diagram' variable")

    return parser


def main(argv=None) -> int:
    """CLI entry point. Returns exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handlers = {
        "simulate": cmd_simulate,
        "validate": cmd_validate,
        "export": cmd_export,
        "batch": cmd_batch,
        "repl": cmd_repl,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from . import tree_builder, tree_serializer
from .config import BridgeOptions, load_options
from .utils import configure_logging, is_html_path, read_text, resolve_output_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="TypstBridge",
        description="Convert Typst markup into the visual editor tree (HTML) and back.",
    )
    parser.add_argument("input", type=str, help="Path to a .typ file, or an .html tree to serialize")
    parser.add_argument("-o", "--output", type=str, help="Output path")
    parser.add_argument("--config", type=str, help="YAML file with converter options")
    parser.add_argument("--debounce-delay", type=float, help="Seconds to wait before syncing visual edits")
    parser.add_argument("--max-heading-level", type=int, help="Deepest '=' heading recognized (1-6)")
    parser.add_argument(
        "--no-collapse",
        dest="collapse_blank_lines",
        action="store_false",
        default=None,
        help="Keep runs of blank lines when serializing",
    )
    parser.add_argument("--check", action="store_true", help="Only verify that the round trip is stable")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def resolve_options(args: argparse.Namespace) -> BridgeOptions:
    options = load_options(Path(args.config).expanduser()) if args.config else BridgeOptions()
    return options.updated(
        debounce_delay=args.debounce_delay,
        max_heading_level=args.max_heading_level,
        collapse_blank_lines=args.collapse_blank_lines,
    )


def check_round_trip(markup: str, options: BridgeOptions) -> bool:
    first = tree_serializer.to_markup(tree_builder.to_tree(markup, options), options)
    if first != markup:
        logging.info("First round trip normalized the source")
    second = tree_serializer.to_markup(tree_builder.to_tree(first, options), options)
    direct = tree_serializer.document_to_markup(tree_builder.build_document(first, options), options)
    if direct != second:
        logging.error("Block and tree serializations disagree")
        return False
    return first == second


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    input_path = Path(args.input).expanduser()
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")
    options = resolve_options(args)

    logging.info("Reading %s", input_path)
    source = read_text(input_path)
    logging.debug("Source length: %d chars", len(source))

    if is_html_path(input_path):
        logging.info("Serializing tree to markup...")
        markup = tree_serializer.html_to_markup(source, options)
        result = markup
    else:
        markup = source
        result = tree_builder.to_html(source, options)

    if args.check:
        if check_round_trip(markup, options):
            logging.info("Round trip is stable")
            return 0
        logging.error("Round trip is not stable for %s", input_path)
        return 1

    output_path = resolve_output_path(input_path, args.output)
    logging.info("Writing %s", output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result, encoding="utf-8")

    logging.info("Done. Saved to %s", output_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from tabulate import tabulate

from . import __version__
from .config import EditorConfig
from .conllu import conllu_to_sentences, sentences_to_conllu
from .doc import AnyToken, Sentence
from .errors import GraphError
from .graph import TokenGraph
from .indices import IndexFormat
from .locks import LockCoordinator
from .projection import Projection, build_projection

TASK_CHOICES = ("show", "edit", "config")

logger = logging.getLogger("flexitree")


def _str_to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"true", "1", "yes", "on"}:
        return True
    if lowered in {"false", "0", "no", "off"}:
        return False
    raise argparse.ArgumentTypeError(f"Expected true/false, got '{value}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flexitree",
        description="Inspect and edit dependency trees of CoNLL-U sentences",
    )
    parser.add_argument("-V", "--version", action="version", version=f"flexitree {__version__}")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging and check graph invariants after every edit",
    )
    subparsers = parser.add_subparsers(dest="task", required=False)

    def add_input_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--input", "-i", required=True, help="CoNLL-U file to read ('-' for STDIN)")
        p.add_argument(
            "--sentence",
            "-s",
            type=int,
            default=1,
            help="Sentence to work on (1-based, default: 1)",
        )

    # show ----------------------------------------------------------------
    show_parser = subparsers.add_parser("show", help="Print the projection of a sentence")
    add_input_args(show_parser)
    show_parser.add_argument(
        "--format",
        choices=["conllu", "cg3"],
        default=None,
        help="Index labels to use (default: configured format, CoNLL-U)",
    )
    show_parser.add_argument("--rtl", action="store_true", help="Right-to-left reading direction")
    show_parser.add_argument(
        "--enhanced",
        action="store_true",
        default=None,
        help="Show enhanced dependencies",
    )
    show_parser.add_argument("--lock", metavar="ELEMENT_ID", help="Lock an element of the shown sentence")
    show_parser.add_argument("--unlock", action="store_true", help="Release the saved lock")

    # edit ----------------------------------------------------------------
    edit_parser = subparsers.add_parser(
        "edit",
        help="Apply edit operations and write CoNLL-U",
        description=(
            "Operations address tokens by their CoNLL-U id at the time the operation runs: "
            + ", ".join(sorted(OPERATIONS))
        ),
    )
    add_input_args(edit_parser)
    edit_parser.add_argument(
        "--op",
        action="append",
        required=True,
        metavar="OP",
        help="Operation such as add-head:3:1:obj, split:4:3 or combine:1:2 (repeatable)",
    )
    edit_parser.add_argument("--output", "-o", help="Output file (default: STDOUT)")
    edit_parser.add_argument(
        "--enhanced",
        action="store_true",
        default=None,
        help="Edit in enhanced mode (heads accumulate instead of replacing)",
    )

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser("config", help="Configure flexitree defaults")
    config_parser.add_argument("--show", action="store_true", help="Show current configuration")
    config_parser.add_argument(
        "--set-default-format",
        choices=["conllu", "cg3"],
        metavar="FORMAT",
        help="Set the default index format (conllu or cg3)",
    )
    config_parser.add_argument(
        "--set-direction",
        choices=["ltr", "rtl"],
        metavar="DIRECTION",
        help="Set the default reading direction (ltr or rtl)",
    )
    config_parser.add_argument(
        "--set-enhanced",
        type=_str_to_bool,
        metavar="true|false",
        help="Set whether enhanced dependencies are shown by default",
    )
    return parser


def _read_sentences(source: str) -> List[Sentence]:
    if source == "-":
        text = sys.stdin.read()
    else:
        path = Path(source)
        if not path.exists():
            raise OSError(f"input file not found: {path}")
        text = path.read_text(encoding="utf-8")
    sentences = conllu_to_sentences(text)
    if not sentences:
        raise ValueError("no sentences in input")
    return sentences


def _select(sentences: List[Sentence], number: int) -> Tuple[int, Sentence]:
    if not 1 <= number <= len(sentences):
        raise ValueError(f"sentence {number} out of range (1-{len(sentences)})")
    return number - 1, sentences[number - 1]


def _projection_rows(projection: Projection) -> List[List[object]]:
    rows = []
    for element in projection.elements:
        rows.append(
            [
                element.num if element.num is not None else "",
                element.id,
                element.kind.value,
                element.label,
                element.clump if element.clump is not None else "",
                " ".join(element.classes),
            ]
        )
    return rows


def run_show(args: argparse.Namespace) -> int:
    from .storage import JsonPrefsStore

    config = EditorConfig.from_storage(
        format=args.format,
        ltr=False if args.rtl else None,
        enhanced=args.enhanced,
        debug=args.debug,
    )
    sentences = _read_sentences(args.input)
    index, sentence = _select(sentences, args.sentence)
    graph = TokenGraph(sentence)
    if config.enhanced:
        graph.set_enhanced(True)

    projection = build_projection(sentence, config.index_format, ltr=config.ltr)
    coordinator = LockCoordinator(JsonPrefsStore(), user_id=config.user_id, persist=config.persist_locks)
    coordinator.load()
    if args.unlock:
        coordinator.unlock()
    elif args.lock:
        element = projection.get(args.lock)
        if element is None:
            raise ValueError(f"no element '{args.lock}' in sentence {args.sentence}")
        coordinator.lock(element.id, index, ["selected"])
    locked = coordinator.reapply(projection, index)

    if sentence.sent_id:
        print(f"# sent_id = {sentence.sent_id}")
    if sentence.text:
        print(f"# text = {sentence.text}")
    print(tabulate(_projection_rows(projection), headers=["Num", "Id", "Kind", "Label", "Clump", "Classes"]))
    progress = projection.progress
    ratio = progress.ratio
    percent = f" ({ratio:.0%})" if ratio is not None else ""
    print(f"[flexitree] Progress: {progress.done}/{progress.total}{percent}")
    if locked is not None:
        print(f"[flexitree] Locked: {locked.id}")
    return 0


def _token(graph: TokenGraph, label: str) -> AnyToken:
    token = graph.find(label, IndexFormat.CONLLU)
    if token is None:
        raise ValueError(f"no token with id '{label}'")
    return token


def _op_add_head(graph: TokenGraph, args: List[str]) -> None:
    dependent, head = _token(graph, args[0]), _token(graph, args[1])
    graph.add_head(dependent, head, args[2] if len(args) > 2 else None)


def _op_modify_head(graph: TokenGraph, args: List[str]) -> None:
    graph.modify_head(_token(graph, args[0]), _token(graph, args[1]), args[2] if len(args) > 2 else "")


def _op_remove_head(graph: TokenGraph, args: List[str]) -> None:
    graph.remove_head(_token(graph, args[0]), _token(graph, args[1]))


def _op_set_root(graph: TokenGraph, args: List[str]) -> None:
    graph.set_root(_token(graph, args[0]), args[1] if len(args) > 1 else "root")


def _op_split(graph: TokenGraph, args: List[str]) -> None:
    offset = None
    if len(args) > 1:
        try:
            offset = int(args[1])
        except ValueError:
            raise ValueError(f"split offset must be a number, got '{args[1]}'") from None
    graph.split(_token(graph, args[0]), offset)


def _op_combine(graph: TokenGraph, args: List[str]) -> None:
    graph.combine(_token(graph, args[0]), _token(graph, args[1]))


def _op_merge(graph: TokenGraph, args: List[str]) -> None:
    graph.merge(_token(graph, args[0]), _token(graph, args[1]))


def _op_insert_empty(graph: TokenGraph, args: List[str]) -> None:
    graph.insert_empty_after(_token(graph, args[0]))


def _op_set_empty(graph: TokenGraph, args: List[str]) -> None:
    try:
        value = _str_to_bool(args[1]) if len(args) > 1 else True
    except argparse.ArgumentTypeError as exc:
        raise ValueError(str(exc)) from None
    graph.set_empty(_token(graph, args[0]), value)


def _op_set(graph: TokenGraph, args: List[str]) -> None:
    graph.set_attr(_token(graph, args[0]), args[1], args[2] if len(args) > 2 else "")


# name -> (handler, required arguments, maximum split count)
OPERATIONS: Dict[str, Tuple[Callable[[TokenGraph, List[str]], None], int, int]] = {
    "add-head": (_op_add_head, 2, 2),
    "modify-head": (_op_modify_head, 2, 2),
    "remove-head": (_op_remove_head, 2, 1),
    "set-root": (_op_set_root, 1, 1),
    "split": (_op_split, 1, 1),
    "combine": (_op_combine, 2, 1),
    "merge": (_op_merge, 2, 1),
    "insert-empty": (_op_insert_empty, 1, 0),
    "set-empty": (_op_set_empty, 1, 1),
    "set": (_op_set, 2, 2),
}


def apply_operation(graph: TokenGraph, op: str) -> None:
    """Run one ``name:arg:arg`` operation; the last argument may contain ':' (e.g. ``nsubj:pass``)."""
    name, _, rest = op.partition(":")
    if name not in OPERATIONS:
        raise ValueError(f"unknown operation '{name}' (choose from {', '.join(sorted(OPERATIONS))})")
    handler, required, max_split = OPERATIONS[name]
    args = rest.split(":", max_split) if rest else []
    if len(args) < required:
        raise ValueError(f"operation '{name}' needs at least {required} argument(s): '{op}'")
    logger.debug("Applying %s %s", name, args)
    handler(graph, args)


def run_edit(args: argparse.Namespace) -> int:
    config = EditorConfig.from_storage(enhanced=args.enhanced, debug=args.debug)
    sentences = _read_sentences(args.input)
    _, sentence = _select(sentences, args.sentence)
    graph = TokenGraph(sentence)
    if config.enhanced:
        graph.set_enhanced(True)

    for op in args.op:
        apply_operation(graph, op)
        if config.debug:
            graph.check_invariants()

    output = sentences_to_conllu(sentences)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"[flexitree] Wrote {len(sentences)} sentence(s) to {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(output)
    return 0


def run_config(args: argparse.Namespace) -> int:
    """Run config command to manage flexitree configuration."""
    from .storage import (
        get_config_file,
        get_default_enhanced,
        get_default_format,
        get_flexitree_config_dir,
        get_reading_direction,
        set_default_enhanced,
        set_default_format,
        set_reading_direction,
    )

    changed = False
    if args.set_default_format:
        set_default_format(args.set_default_format)
        print(f"[flexitree] Default format set to: {get_default_format()}")
        changed = True
    if args.set_direction:
        set_reading_direction(args.set_direction)
        print(f"[flexitree] Reading direction set to: {args.set_direction}")
        changed = True
    if args.set_enhanced is not None:
        set_default_enhanced(args.set_enhanced)
        print(f"[flexitree] Enhanced dependencies by default: {args.set_enhanced}")
        changed = True
    if changed:
        print(f"[flexitree] Configuration saved to: {get_config_file()}")
        return 0

    if args.show:
        print("Current flexitree configuration:")
        print(f"  Config directory: {get_flexitree_config_dir(create=False)}")
        print(f"  Config file: {get_config_file(create_dir=False)}")
        print(f"  Default format: {get_default_format()}")
        print(f"  Reading direction: {get_reading_direction()}")
        print(f"  Enhanced dependencies: {get_default_enhanced()}")
        return 0

    print("[flexitree] Nothing to do. Use --show or one of the --set-* options.", file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    else:
        argv = list(argv)

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.task:
        parser.error("No task specified. Use one of: " + ", ".join(TASK_CHOICES))

    try:
        if args.task == "show":
            return run_show(args)
        if args.task == "edit":
            return run_edit(args)
        if args.task == "config":
            return run_config(args)
    except GraphError as exc:
        print(f"[flexitree] Error: {exc}", file=sys.stderr)
        return 1
    except (ValueError, OSError) as exc:
        print(f"[flexitree] Error: {exc}", file=sys.stderr)
        return 1

    parser.error(f"Unknown task '{args.task}'. Supported tasks: {', '.join(TASK_CHOICES)}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())

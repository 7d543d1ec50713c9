"""
Command-line driver.

Usage:
    jackc <input.jack | directory>
    jackc --xml <input.jack | directory>       # token and parse-tree markup only
    jackc --serial <directory>                 # compile files one at a time
    jackc --fail-fast <directory>              # stop at the first failing class
"""

import sys
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import List, Optional, Tuple

from jackc.analyzer import analyze_source
from jackc.compiler import compile_source
from jackc.errors import CompileError

USAGE = "Usage: jackc [--xml] [--serial] [--fail-fast] <input.jack | directory>"
FLAGS = ("--xml", "--serial", "--fail-fast")


def compile_file(path: Path, xml: bool = False) -> Tuple[str, List[str]]:
    """Compile a single .jack file and return (filename, errors).

    Output files are written only when the class compiles cleanly. Source
    that is not valid UTF-8 is reported as that file's error; other I/O
    failures are not caught here and abort the run.
    """
    try:
        source = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        return (
            path.name,
            [f"{path.name}: source is not valid UTF-8 ({e.reason} at byte {e.start})"],
        )
    try:
        if xml:
            token_xml, parse_xml = analyze_source(source, path.name)
        else:
            vm_code = compile_source(source, path.name)
    except CompileError as e:
        return (path.name, [str(e)])

    if xml:
        path.with_name(path.stem + "T.xml").write_text(token_xml, encoding="utf-8")
        path.with_suffix(".xml").write_text(parse_xml, encoding="utf-8")
        print(f"Analyzed {path.name} -> {path.stem}.xml")
    else:
        path.with_suffix(".vm").write_text(vm_code, encoding="utf-8")
        print(f"Compiled {path.name} -> {path.stem}.vm")
    return (path.name, [])


def find_sources(input_path: Path) -> List[Path]:
    if input_path.is_file():
        return [input_path]
    return sorted(input_path.glob("*.jack"))


def compile_all(
    jack_files: List[Path], xml: bool = False, parallel: bool = True, fail_fast: bool = False
) -> List[str]:
    """Compile every file and return the collected error lines."""
    all_errors: List[str] = []

    if fail_fast or not parallel or len(jack_files) < 2:
        for jack_file in jack_files:
            name, errors = compile_file(jack_file, xml)
            all_errors.extend(f"[{name}] {e}" for e in errors)
            if errors and fail_fast:
                break
        return all_errors

    with ProcessPoolExecutor() as executor:
        futures = {executor.submit(compile_file, f, xml): f for f in jack_files}
        for future in as_completed(futures):
            name, errors = future.result()
            all_errors.extend(f"[{name}] {e}" for e in errors)
    return sorted(all_errors)


def main(argv: Optional[List[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    options = {flag: flag in args for flag in FLAGS}
    args = [a for a in args if a not in FLAGS]

    if len(args) != 1 or args[0].startswith("--"):
        print(USAGE, file=sys.stderr)
        return 2

    input_path = Path(args[0])
    if not input_path.exists():
        print(f"Error: {input_path} not found", file=sys.stderr)
        return 2
    if input_path.is_file() and input_path.suffix != ".jack":
        print(f"Error: expected .jack file, got {input_path.suffix}", file=sys.stderr)
        return 2

    jack_files = find_sources(input_path)
    if not jack_files:
        print(f"Error: No .jack files found in {input_path}", file=sys.stderr)
        return 2

    try:
        errors = compile_all(
            jack_files,
            xml=options["--xml"],
            parallel=not options["--serial"],
            fail_fast=options["--fail-fast"],
        )
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for e in errors:
        print(e, file=sys.stderr)
    return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(main())

"""
l10n-rewrite driver

- Read the scanner's records (JSON) and group them per source file
- Rewrite each .vue / .ts / .js / .tsx / .jsx file in memory
- Dry-run by default: prints a plan (and unified diffs with --diff) for the
  first N files
- Apply mode:
  - rewrites the files in place
  - optional .bak backups, written once and never overwritten
- Strip mode: removes the imports and hook declarations a rewrite adds
- Restore mode: turns translation calls back into text from a locale file,
  then strips the declarations

A file whose sections can't be located or parsed is reported and skipped;
the run exits with status 1 if any file was skipped.
"""

import argparse
import difflib
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from tqdm import tqdm

from .config import load_config
from .errors import ConfigError, StructuralError
from .models import ExtractedString, TransformResult, load_locale, load_records
from .transformer import normalize_path, restore_source, rewrite_source, strip_declarations


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def group_by_file(records: List[ExtractedString], root: Path) -> Dict[Path, List[ExtractedString]]:
    grouped: Dict[Path, List[ExtractedString]] = {}
    for rec in records:
        path = Path(normalize_path(rec.file_path))
        if not path.is_absolute():
            path = root / path
        grouped.setdefault(path, []).append(rec)
    return grouped


def read_source(path: Path) -> str:
    # newline="" keeps CRLF files byte-identical outside the edits
    with open(path, encoding="utf-8", newline="") as fh:
        return fh.read()


def write_source(path: Path, text: str, backup: bool = False):
    if backup:
        bak = path.with_suffix(path.suffix + ".bak")
        if not bak.exists():
            with open(bak, "w", encoding="utf-8", newline="") as fh:
                fh.write(read_source(path))
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(text)


def unified_diff(path: Path, before: str, after: str) -> str:
    return "".join(difflib.unified_diff(
        before.splitlines(True),
        after.splitlines(True),
        fromfile=f"a/{path}",
        tofile=f"b/{path}",
    ))


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="l10n-rewrite", description="Replace extracted UI text with translation calls")
    ap.add_argument("records", help="JSON file with the scanner's extracted strings")
    ap.add_argument("--root", default=".", help="Directory relative record paths are resolved against")
    ap.add_argument("--config", help="JSON config file (library, namespace, templateFunction, callImportPath)")
    ap.add_argument("--library", help="Target library: vue-i18n or i18next-vue")
    ap.add_argument("--namespace", help="Namespace prefix for global calls (i18next-vue)")
    ap.add_argument("--template-function", help="Call name used in templates (default: $t)")
    ap.add_argument("--call-import-path", help="Module that exports t for code outside components")
    ap.add_argument("--apply", action="store_true", help="Write the rewritten files")
    ap.add_argument("--backup", action="store_true", help="Write .bak for rewritten files")
    ap.add_argument("--diff", action="store_true", help="Print unified diffs in the dry-run plan")
    ap.add_argument("--limit", type=int, default=10, help="Dry-run preview count (files)")
    mode = ap.add_mutually_exclusive_group()
    mode.add_argument("--strip", action="store_true", help="Remove added imports/declarations instead of rewriting")
    mode.add_argument("--restore", metavar="LOCALE", help="Locale JSON; turn translation calls back into its text")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = load_config(
            Path(args.config) if args.config else None,
            library=args.library,
            namespace=args.namespace,
            template_function=args.template_function,
            call_import_path=args.call_import_path,
        )
        records = load_records(Path(args.records))
        locale = load_locale(Path(args.restore)) if args.restore else None
    except ConfigError as exc:
        ap.error(str(exc))
    options = config.to_options()
    rewriting = not (args.strip or args.restore)

    root = Path(args.root).resolve()
    grouped = group_by_file(records, root)

    results: Dict[Path, TransformResult] = {}
    originals: Dict[Path, str] = {}
    missing: Dict[Path, List[str]] = {}
    failures: List[str] = []

    desc = "Restoring" if args.restore else "Stripping" if args.strip else "Rewriting"
    for path, file_records in tqdm(sorted(grouped.items()), desc=desc):
        try:
            text = read_source(path)
            if args.restore:
                restored = restore_source(str(path), text, locale, options)
                result = TransformResult(text=restored.text, changed=restored.changed)
                missing[path] = restored.missing
            elif args.strip:
                new_text = strip_declarations(str(path), text, options)
                result = TransformResult(text=new_text, changed=new_text != text)
            else:
                result = rewrite_source(str(path), text, file_records, options)
        except StructuralError as exc:
            failures.append(str(exc))
            continue
        except (OSError, UnicodeDecodeError) as exc:
            failures.append(f"{path}: {exc}")
            continue
        originals[path] = text
        results[path] = result

    changed = [p for p, r in results.items() if r.changed]
    unmatched = sum(len(r.unmatched) for r in results.values())

    # -------------------------
    # DRY-RUN PLAN
    # -------------------------
    print("\n================= APPLY =================" if args.apply else "\n================= DRY-RUN PLAN =================")
    print(f"Library: {config.library}" + (f" (namespace {config.namespace})" if config.namespace else ""))
    print(f"Records: {len(records)} in {len(grouped)} file(s)")
    print(f"Files to change: {len(changed)}")
    if rewriting:
        print(f"Unmatched records: {unmatched}")
    if args.restore:
        print(f"Missing locale keys: {sum(len(keys) for keys in missing.values())}")
    print("")

    if not args.apply:
        for idx, path in enumerate(changed[: args.limit], start=1):
            result = results[path]
            print(f"--- File #{idx} ---")
            print(f"{path}")
            if rewriting:
                print(f"Applied: {len(result.applied)}  Unmatched: {len(result.unmatched)}")
                for rec in result.unmatched[:3]:
                    print(f"  ! {rec.line}:{rec.column} {rec.original!r}")
            for key in missing.get(path, [])[:3]:
                print(f"  ! no text for {key!r}")
            if args.diff:
                print(unified_diff(path, originals[path], result.text))
            print("")
        if len(changed) > args.limit:
            print(f"… plus {len(changed) - args.limit} other file(s)")
        print("NOTE: This was a dry-run. Use --apply to rewrite the files.")
    else:
        for path in tqdm(changed, desc="Writing"):
            write_source(path, results[path].text, backup=args.backup)
            print(f"Rewrote {path}")

    for msg in failures:
        print(f"SKIPPED {msg}", file=sys.stderr)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())

"""Command-line entry point."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import CONFIG_FILE, Config, load_config, save_config
from .errors import ConfigurationError, RuleFormatError, RuleValidationError
from .events import LoggingSink
from .legacy import load_legacy_rules, save_legacy_rules
from .processor import BatchProcessor
from .watcher import start_watching

logger = logging.getLogger("smart_sorter")


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smart-sorter",
        description="Sort files into subfolders by extension rules.",
    )
    parser.add_argument("--config", default=CONFIG_FILE, help=f"rule/config file (default: {CONFIG_FILE})")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sort_cmd = sub.add_parser("sort", help="sort a directory once")
    sort_cmd.add_argument("directory", nargs="?", help="directory to sort (default: source_folder)")

    watch_cmd = sub.add_parser("watch", help="sort a directory, then keep sorting new files")
    watch_cmd.add_argument("directory", nargs="?", help="directory to watch (default: source_folder)")

    rules_cmd = sub.add_parser("rules", help="manage sorting rules")
    rules_sub = rules_cmd.add_subparsers(dest="rules_command", required=True)

    list_cmd = rules_sub.add_parser("list", help="show rules")
    list_cmd.add_argument("--filter", default="", help="only rules whose extension contains TEXT")

    add_cmd = rules_sub.add_parser("add", help="add a rule")
    add_cmd.add_argument("extension")
    add_cmd.add_argument("folder")
    add_cmd.add_argument("--description", default="")

    remove_cmd = rules_sub.add_parser("remove", help="remove the rule at a position")
    remove_cmd.add_argument("index", type=int)

    rules_sub.add_parser("stats", help="count rules per target folder")

    import_cmd = rules_sub.add_parser("import", help="append rules from an ext;folder;description file")
    import_cmd.add_argument("file")

    export_cmd = rules_sub.add_parser("export", help="write rules as ext;folder;description lines")
    export_cmd.add_argument("file")

    return parser


def _resolve_directory(arg: Optional[str], config: Config) -> Path:
    if arg:
        return Path(arg).expanduser().resolve()
    if config.source_folder is None:
        raise ConfigurationError("No directory given and no source_folder configured")
    return config.source_folder.resolve()


def _warn_if_no_rules(config: Config) -> None:
    if not len(config.rules):
        logger.warning("No sorting rules defined - all files will be skipped")


def cmd_sort(args, config: Config) -> int:
    directory = _resolve_directory(args.directory, config)
    _warn_if_no_rules(config)
    processor = BatchProcessor(sort_by_name=config.sort_by_name)
    summary = processor.run(directory, config.rules.snapshot(), LoggingSink(logger))
    return 0 if summary.ok else 1


def cmd_watch(args, config: Config) -> int:
    directory = _resolve_directory(args.directory, config)
    _warn_if_no_rules(config)
    processor = BatchProcessor(sort_by_name=config.sort_by_name)
    sink = LoggingSink(logger)
    rules = processor.snapshot(config.rules)

    # Watch first so files arriving during the initial pass are not missed
    try:
        observer = start_watching(processor, directory, rules, sink, config.settle_delay)
    except OSError as e:
        logger.error(f"Cannot watch '{directory}': {e}")
        return 1

    code = 0
    try:
        summary = processor.run(directory, rules, sink)
        if summary.error:
            code = 1
        else:
            logger.info("Press Ctrl+C to stop")
            while observer.is_alive():
                observer.join(timeout=1)
    except KeyboardInterrupt:
        logger.info("Stopping watcher...")
    finally:
        observer.stop()
        observer.join(timeout=5)
        logger.info("File system monitoring stopped")
    return code


def cmd_rules(args, config: Config) -> int:
    store = config.rules
    action = args.rules_command

    if action == "list":
        matches = store.filter(args.filter)
        if not matches:
            print("No rules.")
        for i, rule in matches:
            line = f"{i:3d}  .{rule.extension:<10} → {rule.target_folder}"
            if rule.description:
                line += f"  ({rule.description})"
            print(line)
        return 0

    if action == "stats":
        for folder, count in sorted(store.folder_counts().items()):
            print(f"{folder}: {count}")
        return 0

    if action == "export":
        count = save_legacy_rules(store, args.file)
        logger.info(f"Exported {count} rules to '{args.file}'")
        return 0

    if action == "add":
        rule = store.add(args.extension, args.folder, args.description)
        logger.info(f"Added rule .{rule.extension} → {rule.target_folder}")
    elif action == "remove":
        if not 0 <= args.index < len(store):
            logger.error(f"No rule at position {args.index}")
            return 1
        rule = store.remove(args.index)
        logger.info(f"Removed rule .{rule.extension} → {rule.target_folder}")
    elif action == "import":
        for rule in load_legacy_rules(args.file):
            store.append(rule)

    save_config(config, args.config)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "INFO")

    try:
        config = load_config(args.config, allow_missing=args.command == "rules")
        if not args.verbose:
            logging.getLogger().setLevel(config.log_level)

        if args.command == "sort":
            code = cmd_sort(args, config)
        elif args.command == "watch":
            code = cmd_watch(args, config)
        else:
            code = cmd_rules(args, config)

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        code = 1
    except (RuleValidationError, RuleFormatError) as e:
        logger.error(f"Rule error: {e}")
        code = 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        code = 1

    return code


if __name__ == "__main__":
    sys.exit(main())

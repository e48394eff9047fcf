#!/usr/bin/env python3
"""
Dive log CLI for checking and converting XML dive logs.

Usage:
    python run_divelog.py check dives.xml                 # Parse, link, summarize
    python run_divelog.py check -g date -s maxdepth *.xml # Group by day, deepest last
    python run_divelog.py convert a.xml b.xml > all.xml   # Merge into one native log
    python run_divelog.py ssrf -i alice log.ssrf > out.xml # Subsurface to native
"""

import argparse
import logging
import sys

from divelog import NativeParser, SubsurfaceParser, DiveStat, dumps, link_dives
from divelog.config import load_effective_config
from divelog.summary import mean_temp, summarize

logger = logging.getLogger("run_divelog")


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    console_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=console_level,
        format=log_format,
        handlers=[logging.StreamHandler()]
    )


def parse_sources(files: list[str], parser_cls, config: dict) -> tuple[DiveStat, bool]:
    """Parse every file (standard input when none) into one DiveStat."""
    stat = DiveStat(group_by=config["group"], group_sort=config["sort"],
                    split=config["split"])
    parser = parser_cls(stat, chunk_size=config["chunk_size"])
    ok = True
    for path in files or ["-"]:
        if not parser.parse_file(path):
            ok = False
    return stat, ok


def check(stat: DiveStat):
    """Print a per-group summary of the parsed dives."""
    print("\n" + "=" * 60)
    print("DIVE LOG SUMMARY")
    print("=" * 60)

    print(f"\nDivelogs: {len(stat.dlogs)}")
    print(f"Dives: {len(stat.dives)}")
    print(f"Groups: {len(stat.groups)}")
    print(f"Deepest: {stat.maxdepth:.1f} m")

    for summary in summarize(stat):
        print(f"\n--- Group {summary.group_id}: {summary.name or '(unnamed)'} ---")
        print(f"  Dives: {summary.ndives}")
        print(f"  Max depth (m):  min {summary.maxdepth_min:.1f}  "
              f"mean {summary.maxdepth_mean:.1f}  max {summary.maxdepth_max:.1f}")
        print(f"  Max time (min): min {summary.maxtime_min / 60:.1f}  "
              f"mean {summary.maxtime_mean / 60:.1f}  max {summary.maxtime_max / 60:.1f}")
        for dive in stat.groups[summary.group_id].dives:
            temp = mean_temp(dive)
            label = dive.num if dive.num is not None else "-"
            print(f"    dive {label}: {dive.nsamps} samples, {dive.maxdepth:.1f} m, "
                  f"{dive.maxtime // 60}:{dive.maxtime % 60:02d}"
                  + (f", {temp:.1f} C" if temp is not None else ""))

    print("\n" + "=" * 60)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Check and convert XML dive logs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_divelog.py check dives.xml
  python run_divelog.py check -g diver -s rmaxtime a.xml b.xml
  python run_divelog.py convert a.xml b.xml
  python run_divelog.py ssrf -i alice log.ssrf
        """
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    common.add_argument(
        "-c", "--config",
        type=str,
        help="Path to a YAML config file (default: divelog.yaml)"
    )
    common.add_argument(
        "-g", "--group",
        type=str,
        help="Group dives by: none, date, diver, divelog"
    )
    common.add_argument(
        "-s", "--sort",
        type=str,
        help="Order within groups: datetime, maxtime, rmaxtime, maxdepth, rmaxdepth"
    )
    common.add_argument(
        "--split",
        action="store_true",
        help="Interleave groups by time since each group's first dive"
    )
    common.add_argument("files", nargs="*", help="Input files (default: standard input)")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")
    subparsers.add_parser("check", parents=[common], help="Parse, link and summarize native logs")
    subparsers.add_parser("convert", parents=[common], help="Merge native logs into one document")
    ssrf_parser = subparsers.add_parser("ssrf", parents=[common], help="Convert a Subsurface log")
    ssrf_parser.add_argument(
        "-i", "--ident",
        type=str,
        help="Diver ident for the output divelog"
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)

    try:
        config = load_effective_config(
            config_path=args.config,
            group=args.group,
            sort=args.sort,
            verbose=args.verbose,
            split=args.split,
        )
    except ValueError as e:
        logger.error(f"configuration: {e}")
        return 1
    if config["verbose"]:
        logging.getLogger().setLevel(logging.DEBUG)
    logger.debug(f"grouping by {config['group'].value} ({config['group_source']}), "
                 f"sorting by {config['sort'].value}")

    parser_cls = SubsurfaceParser if args.command == "ssrf" else NativeParser
    stat, ok = parse_sources(args.files, parser_cls, config)
    link_dives(stat)

    if args.command == "ssrf":
        if not stat.dlogs:
            logger.error("no divelogs")
            return 1
        if len(stat.dlogs) > 1:
            logger.error("too many divelogs")
            return 1

    if not stat.dives:
        logger.error("no dives to display")
        return 1

    if args.command == "check":
        check(stat)
    elif args.command == "ssrf":
        sys.stdout.write(dumps(stat, ident=args.ident))
    else:
        sys.stdout.write(dumps(stat))

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())

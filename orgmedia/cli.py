r"""
orgmedia - Organize and copy/move photos, movies and other files by date

SUMMARY:
--------
This tool scans a source directory (optionally recursively), classifies every file by its
extension, determines its date (EXIF capture time for JPEG photos, filesystem creation time
for everything else) and copies or moves it into a destination tree whose path is built from
that date with a naming template.

FEATURES:
---------
- Separate destinations, templates and labels for pictures, movies and other files.
- EXIF DateTimeOriginal for .jpg/.jpeg files, read with hachoir; filesystem date otherwise.
- Templates with YYYY, MM, DD, HH, mm, ss tokens; "/" in a template creates subdirectories.
- Existing destination files are never overwritten: they are skipped, or with --dedupe the
  new file gets a numeric suffix (-2, -3, ...).
- Dry run mode (--noop): log every decision, change nothing.
- Sidecar files (.DS_Store, Thumbs.db, ZbThumbnail.info, *.thm) are ignored.

USAGE EXAMPLES:
---------------
1. Copy pictures and movies from a card into two libraries:
    orgmedia --src /media/card --recursive --copypictures ~/Pictures --copymovies ~/Movies

2. Move pictures, one folder per day, keeping duplicates with a numeric suffix:
    orgmedia --src ~/Downloads --movepictures ~/Pictures --picture YYYY/YYYY-MM-DD/YYYY-MM-DD-HH-mm-ss --dedupe

3. Dry run: show what would happen without touching any file:
    orgmedia --src /media/card --r --copypictures ~/Pictures --noop

4. Add a label to every file name and also sort everything else:
    orgmedia --src /media/card --copypictures ~/Pictures --copyothers ~/Other --label _paris

5. Write the log to a file as well, with debug output:
    orgmedia --src /media/card --copymovies ~/Movies -v --logfile ~/orgmedia.log

See --help for all options.
"""

import argparse
import datetime
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .config import (
    DEFAULT_MOVIE_TEMPLATE,
    DEFAULT_OTHER_TEMPLATE,
    DEFAULT_PICTURE_TEMPLATE,
    DEFAULT_WORKERS,
    CategoryConfig,
    RunConfig,
)
from .errors import ConfigurationError
from .naming import build_destination
from .walker import Organizer

LOGGER_NAME = "orgmedia"


def set_up_logging(verbose: bool, logfile: Optional[Path] = None) -> logging.Logger:
    """
    Set up the package logger.

    Args:
        verbose (bool): Whether to enable verbose (DEBUG) logging
        logfile (Path, optional): File that receives a copy of the log

    Returns:
        logging.Logger: Configured logger instance

    Messages go to standard error and, when logfile is given, are appended to
    that file as UTF-8. Handlers from an earlier call are replaced.
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Set logging level based on verbose flag
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Define a simple formatter that just prints the message
    formatter = logging.Formatter("%(message)s")

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if logfile is not None:
        try:
            logfile.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(logfile, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to open log file {logfile}: {e}")
            sys.exit(1)
        fh.setLevel(level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger


def print_examples():
    """Print the usage examples section of this module's docstring."""
    doc_lines = __doc__.split("\n")
    examples_start = doc_lines.index("USAGE EXAMPLES:")
    examples_end = next(
        (
            i
            for i, line in enumerate(doc_lines[examples_start:], examples_start)
            if line.startswith("See --help")
        ),
        len(doc_lines),
    )

    examples = "\n".join(doc_lines[examples_start : examples_end + 1])
    print(examples)


def _add_category_arguments(parser, name, plural, default_template, template_flag, label_flags):
    group = parser.add_argument_group(plural)
    dest = group.add_mutually_exclusive_group()
    dest.add_argument(
        f"--copy{plural}",
        metavar="DIR",
        help=f"Copy {plural} into DIR",
    )
    dest.add_argument(
        f"--move{plural}",
        metavar="DIR",
        help=f"Move {plural} into DIR",
    )
    group.add_argument(
        template_flag,
        dest=f"{name}_template",
        default=default_template,
        metavar="TEMPLATE",
        help=f"Naming template for {plural} [default: {default_template}]",
    )
    group.add_argument(
        *label_flags,
        dest=f"{name}_label",
        metavar="TEXT",
        help=f"Literal text added to {name} file names before the extension (overrides --label)",
    )


def parse_arguments(args=None):
    """
    Parse command line arguments using argparse.

    Args:
        args (list, optional): Command line arguments. Defaults to None.

    Returns:
        argparse.Namespace: Parsed arguments

    The --examples flag is handled before regular parsing so it works
    without a source directory.
    """
    if args is None:
        args = sys.argv[1:]

    if "--examples" in args:
        print_examples()
        sys.exit(0)

    parser = argparse.ArgumentParser(
        prog="orgmedia",
        description="Organize pictures, movies and other files into a date-based destination tree.",
        epilog="Categories without a destination are not processed. Run with --examples for usage examples.",
        allow_abbrev=False,
    )

    parser.add_argument(
        "--src", "--s", "--source",
        dest="source",
        metavar="DIR",
        help="Source directory to organize (required)",
    )
    parser.add_argument(
        "--recursive", "--r", "--recurse",
        action="store_true",
        help="Descend into subdirectories",
    )
    parser.add_argument(
        "--noop",
        action="store_true",
        help="Dry run mode: log what would be done, do not copy/move files or create directories",
    )
    parser.add_argument(
        "--dedupe",
        action="store_true",
        help="Add a numeric suffix (-2, -3, ...) when a destination file exists, instead of skipping",
    )
    parser.add_argument(
        "--label", "--suffix",
        dest="label",
        default="",
        metavar="TEXT",
        help="Literal text added to every file name before the extension",
    )

    _add_category_arguments(
        parser, "picture", "pictures", DEFAULT_PICTURE_TEMPLATE,
        "--picture", ("--picturelabel", "--picturesuffix"),
    )
    _add_category_arguments(
        parser, "movie", "movies", DEFAULT_MOVIE_TEMPLATE,
        "--movie", ("--movielabel", "--moviesuffix"),
    )
    _add_category_arguments(
        parser, "other", "others", DEFAULT_OTHER_TEMPLATE,
        "--other", ("--otherlabel", "--othersuffix"),
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_WORKERS,
        metavar="N",
        help=f"Number of files processed in parallel [default: {DEFAULT_WORKERS}]",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Talk more",
    )
    parser.add_argument(
        "--logfile",
        type=Path,
        metavar="FILE",
        help="Also append the log to FILE",
    )
    parser.add_argument(
        "--examples",
        action="store_true",
        help="Show usage examples and exit",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(args)


def _category_config(copy_dir, move_dir, template, label, dedupe):
    if move_dir is not None:
        root, move = move_dir, True
    elif copy_dir is not None:
        root, move = copy_dir, False
    else:
        return None
    return CategoryConfig(
        root=Path(root).expanduser().resolve(),
        template=template,
        label=label,
        dedupe=dedupe,
        move=move,
    )


def build_config(parsed_args) -> RunConfig:
    """
    Turn parsed arguments into a RunConfig.

    Category labels fall back to the shared --label/--suffix value.

    Raises:
        ConfigurationError: If the source is missing or not a directory, a
            destination exists but is not a directory or is the source
            itself, or a template and label would name a file outside its
            destination
    """
    if not parsed_args.source:
        raise ConfigurationError("You must specify --src as the path to a directory")

    source = Path(parsed_args.source).expanduser().resolve()
    if not source.is_dir():
        raise ConfigurationError(f"Source directory does not exist: {source}")

    if parsed_args.workers < 1:
        raise ConfigurationError("--workers must be at least 1")

    categories = {}
    for name, plural in (("picture", "pictures"), ("movie", "movies"), ("other", "others")):
        label = getattr(parsed_args, f"{name}_label")
        categories[plural] = _category_config(
            getattr(parsed_args, f"copy{plural}"),
            getattr(parsed_args, f"move{plural}"),
            getattr(parsed_args, f"{name}_template"),
            parsed_args.label if label is None else label,
            parsed_args.dedupe,
        )

    for plural, category_config in categories.items():
        if category_config is None:
            continue
        root = category_config.root
        if root.exists() and not root.is_dir():
            raise ConfigurationError(f"Destination for {plural} is not a directory: {root}")
        if root == source:
            raise ConfigurationError("Source and destination directories must not be the same.")
        try:
            build_destination(datetime.datetime.now(), category_config, "")
        except ValueError as e:
            raise ConfigurationError(f"Invalid template for {plural}: {e}")

    return RunConfig(
        source=source,
        recursive=parsed_args.recursive,
        noop=parsed_args.noop,
        workers=parsed_args.workers,
        **categories,
    )


def main(args=None):
    """
    Main entry point.

    Args:
        args (list, optional): Command line arguments. Defaults to None.

    Returns:
        int: Exit status. Configuration errors exit with status 1 before any
        file is touched.
    """
    parsed_args = parse_arguments(args)
    logger = set_up_logging(parsed_args.verbose, parsed_args.logfile)

    try:
        run_config = build_config(parsed_args)
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    start_time = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    logger.info("=" * 80)
    logger.info(f"orgmedia {__version__}")
    logger.info(f"Session Started: {start_time}")
    logger.info("=" * 80)
    logger.debug("Command-line options: %s", vars(parsed_args))

    if run_config.noop:
        logger.info("Dry run: no files will be copied, moved or created")
    if not list(run_config.configured()):
        logger.warning("No destination given, nothing will be placed")
    for category, category_config in run_config.configured():
        logger.info(
            f"{category.value}: {category_config.action} to {category_config.root} "
            f"as {category_config.template}{category_config.label}"
        )

    status = 0
    try:
        Organizer(run_config).run()
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        status = 130

    end_time = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    logger.info("=" * 80)
    logger.info(f"Session Ended: {end_time}")
    logger.info("=" * 80)

    # Ensure all log messages are written
    logging.shutdown()
    return status


if __name__ == "__main__":
    sys.exit(main())

"""
Destination naming.

Templates use moment-style tokens:

    YYYY  four digit year        YY  two digit year
    MM    month 01-12            M   month 1-12
    DD    day 01-31              D   day 1-31
    HH    hour 00-23             H   hour 0-23
    hh    hour 01-12             h   hour 1-12
    mm    minute 00-59           m   minute 0-59
    ss    second 00-59           s   second 0-59
    A     AM/PM                  a   am/pm

Text inside square brackets is copied literally, and "/" in a template
creates nested directories, e.g. "YYYY/YYYY-MM/[IMG]-YYYYMMDD".
"""

import datetime
import re
from pathlib import Path
from typing import Optional

from .config import CategoryConfig

_TOKEN_RE = re.compile(r"\[([^\]]*)\]|YYYY|YY|MM|M|DD|D|HH|H|hh|h|mm|m|ss|s|A|a")

_FORMATTERS = {
    "YYYY": lambda d: f"{d.year:04d}",
    "YY": lambda d: f"{d.year % 100:02d}",
    "MM": lambda d: f"{d.month:02d}",
    "M": lambda d: str(d.month),
    "DD": lambda d: f"{d.day:02d}",
    "D": lambda d: str(d.day),
    "HH": lambda d: f"{d.hour:02d}",
    "H": lambda d: str(d.hour),
    "hh": lambda d: f"{d.hour % 12 or 12:02d}",
    "h": lambda d: str(d.hour % 12 or 12),
    "mm": lambda d: f"{d.minute:02d}",
    "m": lambda d: str(d.minute),
    "ss": lambda d: f"{d.second:02d}",
    "s": lambda d: str(d.second),
    "A": lambda d: "AM" if d.hour < 12 else "PM",
    "a": lambda d: "am" if d.hour < 12 else "pm",
}


def format_timestamp(moment: datetime.datetime, template: str) -> str:
    """
    Expand every token of template with the matching part of moment.

    >>> format_timestamp(datetime.datetime(2023, 5, 1, 10, 0, 0), "YYYY/YYYY-MM-DD")
    '2023/2023-05-01'
    """

    def replace(match):
        literal = match.group(1)
        if literal is not None:
            return literal
        return _FORMATTERS[match.group(0)](moment)

    return _TOKEN_RE.sub(replace, template)


def build_destination(
    moment: datetime.datetime,
    config: CategoryConfig,
    extension: str,
    dedupe_suffix: Optional[int] = None,
) -> Path:
    """
    Build the destination path of a file.

    Args:
        moment (datetime.datetime): Resolved timestamp of the file
        config (CategoryConfig): Category the file was routed to
        extension (str): Original extension, lowercased here
        dedupe_suffix (int, optional): Collision number, 2 or higher

    Returns:
        Path: root / format(moment, template) + label + "-n" + extension

    Raises:
        ValueError: If dedupe_suffix is below 2, or the name has a ".."
            component and would leave the destination root
    """
    if dedupe_suffix is not None and dedupe_suffix < 2:
        raise ValueError(f"dedupe suffix must be 2 or higher, got {dedupe_suffix}")

    name = format_timestamp(moment, config.template) + config.label
    if dedupe_suffix is not None:
        name += f"-{dedupe_suffix}"
    name += extension.lower()

    if ".." in re.split(r"[/\\]", name):
        raise ValueError(f"Destination name {name!r} leaves the destination root")

    # Keep templates such as "/YYYY" inside the destination root
    return config.root / name.lstrip("/\\")

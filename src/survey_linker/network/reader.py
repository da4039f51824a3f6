from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field

from survey_linker.settings import settings

logger = logging.getLogger(__name__)


class SurveyFormatError(ValueError):
    """The data sheet cannot be read as header line + rows."""


@dataclass
class SurveyData:
    """A data sheet: its headers, and one field -> value mapping per participant."""

    headers: list[str]
    rows: list[dict[str, str]] = field(default_factory=list)


def _clean(cell: str) -> str:
    return cell.strip().replace('"', "")


def parse_survey(lines: Iterable[str], *, delimiter: str | None = None) -> SurveyData:
    """Parse delimited text.

    Cells are trimmed and stripped of double quotes. Columns with an empty
    header are ignored, as are cells beyond the last header. Trailing empty
    cells count as absent, so the row has no entry for those fields.
    """
    delimiter = delimiter or settings.file_delimiter
    it = iter(lines)
    try:
        header_line = next(it)
    except StopIteration:
        raise SurveyFormatError("data sheet is empty; expected a header line") from None

    header_cells = header_line.rstrip("\r\n").split(delimiter)
    headers = [h for h in header_cells if h]
    if not headers:
        raise SurveyFormatError("header line has no column names")

    data = SurveyData(headers=headers)
    for line in it:
        line = line.rstrip("\r\n")
        if not line.strip():
            continue
        cells = line.split(delimiter)
        while cells and cells[-1] == "":
            cells.pop()
        row: dict[str, str] = {}
        for name, cell in zip(header_cells, cells):
            if name:
                row[name] = _clean(cell)
        data.rows.append(row)
    return data


def read_survey(path: str | os.PathLike[str], *, delimiter: str | None = None) -> SurveyData:
    with open(path, encoding="utf-8", errors="replace") as f:
        data = parse_survey(f, delimiter=delimiter)
    logger.info("Read %d rows with %d headers from %s", len(data.rows), len(data.headers), path)
    return data

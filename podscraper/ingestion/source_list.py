"""
Source List Reader
==================

Reads the feed list from an OPML subscription export.

Every ``<outline>`` carrying both a ``text`` and an ``xmlUrl`` attribute is a
feed, in document order. BeautifulSoup's lenient HTML parser is used so that
hand-edited or slightly broken OPML still yields its feeds.
"""

import warnings
from pathlib import Path
from typing import List, Union

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
from pydantic import ValidationError as PydanticValidationError

from ..models import Source
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import SourceListError, ValidationError, ErrorCode
from ..utils.validators import validate_file_path


logger = get_logger_for_component("source_list")


def parse_opml(document: Union[str, bytes], skip_first: bool = True) -> List[Source]:
    """Extract feed sources from OPML text.

    Args:
        document: OPML document
        skip_first: Drop the first feed entry, which some exporters use to
            describe the subscription list itself

    Returns:
        Sources in document order
    """
    # XML input to html.parser is expected here
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", XMLParsedAsHTMLWarning)
        soup = BeautifulSoup(document, "html.parser")

    sources = []
    found_first = False

    # html.parser lowercases attribute names
    for outline in soup.find_all("outline"):
        name = (outline.get("text") or "").strip()
        address = (outline.get("xmlurl") or "").strip()
        if not name or not address:
            continue

        if skip_first and not found_first:
            found_first = True
            logger.debug(f"Skipping first feed entry '{name}'")
            continue

        try:
            sources.append(Source(name=name, address=address))
        except PydanticValidationError:
            logger.warning(f"Ignoring feed '{name}' with unusable address: {address}")

    return sources


def read_source_list(path: Union[str, Path], skip_first: bool = True) -> List[Source]:
    """Read feed sources from an OPML file.

    Args:
        path: OPML file path
        skip_first: See :func:`parse_opml`

    Returns:
        Sources in document order

    Raises:
        SourceListError: If the file cannot be read
    """
    try:
        opml_path = validate_file_path(str(path), must_exist=True)
        data = opml_path.read_bytes()
    except ValidationError as e:
        raise SourceListError(e.args[0], path=str(path)) from e
    except OSError as e:
        raise SourceListError(
            f"Cannot open OPML file: {e}",
            path=str(path),
            error_code=ErrorCode.SOURCE_LIST_UNREADABLE,
        ) from e

    sources = parse_opml(data, skip_first=skip_first)
    logger.info(f"Found {len(sources)} feeds in {opml_path.name}")
    return sources

"""
Watch-list parsing.

Turns the configured ``owner/name;owner/name`` string into repository references.
Malformed entries are collected for reporting instead of aborting the run.
"""

from typing import List, NamedTuple

from miners.models import MalformedRepositoryEntry, RepositoryReference

WATCH_LIST_DELIMITER = ";"


class WatchList(NamedTuple):
    """Result of parsing a watch-list string."""

    valid_refs: List[RepositoryReference]
    invalid_entries: List[str]


def parse_watch_list(raw: str, delimiter: str = WATCH_LIST_DELIMITER) -> WatchList:
    """
    Parse a delimited watch-list string.

    Order is preserved for both valid references and invalid entries. A
    malformed entry never prevents the following entries from being parsed.

    Args:
        raw (str): Delimited list of ``owner/name`` entries
        delimiter (str): Entry separator

    Returns:
        WatchList: Valid references and the raw text of invalid entries
    """
    watch_list = WatchList([], [])
    if not raw:
        return watch_list

    for entry in raw.split(delimiter):
        try:
            watch_list.valid_refs.append(RepositoryReference.parse(entry))
        except MalformedRepositoryEntry:
            watch_list.invalid_entries.append(entry)

    return watch_list

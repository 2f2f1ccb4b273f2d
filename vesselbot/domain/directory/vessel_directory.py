from typing import List, Optional, Iterable
from pathlib import Path
import csv
import re
import structlog

from vesselbot.domain.models.conversation import VesselRecord

logger = structlog.get_logger(__name__)

MAX_FUZZY_DISTANCE = 2
IDENTIFIER_PATTERN = re.compile(r"^\d+$")


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit cost for insertion, deletion and substitution"""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def looks_like_identifier(text: str) -> bool:
    return bool(IDENTIFIER_PATTERN.match(text.strip()))


class VesselDirectory:
    """Name to IMO catalog loaded once from a CSV file.

    Lookups never raise; empty or non-string input simply finds nothing.
    """

    def __init__(self, csv_path: Optional[Path] = None, records: Optional[Iterable[VesselRecord]] = None):
        self.csv_path = Path(csv_path) if csv_path else None
        self._records: Optional[List[VesselRecord]] = list(records) if records is not None else None

    def load(self) -> List[VesselRecord]:
        """Load the catalog, caching it for the directory's lifetime"""
        if self._records is not None:
            return self._records

        if self.csv_path is None or not self.csv_path.exists():
            logger.warning("Vessel mappings file not found", path=str(self.csv_path))
            self._records = []
            return self._records

        with self.csv_path.open(newline="", encoding="utf-8") as handle:
            self._records = list(self._parse_rows(csv.reader(handle)))

        logger.info("Vessel mappings loaded", count=len(self._records), path=str(self.csv_path))
        return self._records

    def reload(self) -> List[VesselRecord]:
        self._records = None
        return self.load()

    @staticmethod
    def _parse_rows(rows) -> Iterable[VesselRecord]:
        # first row is the header
        for line_no, row in enumerate(rows):
            if line_no == 0 or len(row) < 2:
                continue
            name, identifier = row[0].strip(), row[1].strip()
            if name and identifier:
                yield VesselRecord(canonical_name=name, identifier=identifier)

    def find_by_name(self, query) -> Optional[VesselRecord]:
        """Exact, then substring, then fuzzy (edit distance <= 2) match.

        Distance ties go to the entry listed first in the catalog.
        """
        if not query or not isinstance(query, str):
            return None

        search = query.strip().upper()
        if not search:
            return None

        records = self.load()

        for record in records:
            if record.normalized_name == search:
                return record

        for record in records:
            name = record.normalized_name
            if search in name or name in search:
                return record

        best: Optional[VesselRecord] = None
        best_distance = MAX_FUZZY_DISTANCE + 1
        for record in records:
            distance = levenshtein(search, record.normalized_name)
            if distance < best_distance:
                best, best_distance = record, distance

        if best is not None:
            logger.info("Fuzzy vessel match", query=search, match=best.canonical_name, distance=best_distance)
        return best

    def find_by_identifier(self, identifier) -> Optional[VesselRecord]:
        if identifier is None or isinstance(identifier, bool):
            return None

        wanted = str(identifier).strip()
        if not wanted:
            return None

        for record in self.load():
            if record.identifier == wanted:
                return record
        return None

    def resolve(self, text: str) -> Optional[VesselRecord]:
        """Look up free text as an IMO number when it is all digits, else as a name"""
        if not text or not isinstance(text, str):
            return None
        if looks_like_identifier(text):
            return self.find_by_identifier(text)
        return self.find_by_name(text)

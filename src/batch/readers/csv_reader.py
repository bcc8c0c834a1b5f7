"""
Delimited-file reader producing OrderRecord items one line at a time.
"""

import csv
import math
from pathlib import Path
from typing import IO, Optional, Set

from src.batch.interfaces import ItemReader
from src.core.errors import ParseError
from src.core.models import OrderRecord
from src.observability.logger import get_logger
from src.utils.validation import validate_delimiter

logger = get_logger(__name__)

EXPECTED_FIELDS = ("order_id", "customer_name", "amount")


class CSVOrderReader(ItemReader[OrderRecord]):
    """
    Reads orders from a delimited text file lazily.

    The first line is always a header and is skipped without inspection.
    Each remaining non-blank line must hold exactly three fields:
    integer order id, customer name, decimal amount.
    """

    def __init__(self, file_path: str | Path, delimiter: str = ",", encoding: str = "utf-8"):
        """
        Initialize CSV reader.

        Args:
            file_path: Path to the delimited file
            delimiter: Field delimiter
            encoding: File encoding, applied line by line
        """
        self.file_path = Path(file_path)
        self.delimiter = validate_delimiter(delimiter)
        self.encoding = encoding
        self._handle: Optional[IO[bytes]] = None
        self._line_number = 0
        self._seen_ids: Set[int] = set()

    @property
    def line_number(self) -> int:
        """1-based number of the last physical line consumed (the header is line 1)."""
        return self._line_number

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def open(self) -> None:
        if self._handle is not None:
            raise RuntimeError(f"Reader for {self.file_path} is already open")

        self._handle = open(self.file_path, "rb")
        self._line_number = 0
        self._seen_ids = set()

        header = self._handle.readline()
        if header:
            self._line_number = 1
            logger.debug(
                "Skipped header line",
                extra={
                    "file_path": str(self.file_path),
                    "header": header.decode(self.encoding, errors="replace").rstrip("\r\n"),
                },
            )

    def read(self) -> Optional[OrderRecord]:
        if self._handle is None:
            raise RuntimeError(f"Reader for {self.file_path} is not open. Call open() first.")

        for raw_bytes in self._handle:
            self._line_number += 1
            raw_line = self._decode(raw_bytes).rstrip("\r\n")
            if not raw_line.strip():
                continue
            return self._parse_line(raw_line)

        return None

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def _decode(self, raw_bytes: bytes) -> str:
        try:
            return raw_bytes.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise ParseError(
                self._line_number,
                repr(raw_bytes.rstrip(b"\r\n")),
                f"invalid {self.encoding} at byte {e.start}",
            ) from e

    def _parse_line(self, raw_line: str) -> OrderRecord:
        """
        Parse one data line into an OrderRecord.

        Raises:
            ParseError: On wrong field count, non-integer id, blank or
                        non-numeric amount, or an id already seen in this pass
        """
        line_number = self._line_number

        try:
            fields = next(csv.reader([raw_line], delimiter=self.delimiter, skipinitialspace=True))
        except csv.Error as e:
            raise ParseError(line_number, raw_line, f"malformed line: {e}") from e

        if len(fields) != len(EXPECTED_FIELDS):
            raise ParseError(
                line_number,
                raw_line,
                f"expected {len(EXPECTED_FIELDS)} fields, got {len(fields)}",
            )

        raw_id, customer_name, raw_amount = (field.strip() for field in fields)

        try:
            order_id = int(raw_id)
        except ValueError as e:
            raise ParseError(line_number, raw_line, f"order_id is not an integer: {raw_id!r}") from e

        if not raw_amount:
            raise ParseError(line_number, raw_line, "amount is missing")

        try:
            amount = float(raw_amount)
        except ValueError as e:
            raise ParseError(line_number, raw_line, f"amount is not numeric: {raw_amount!r}") from e

        if not math.isfinite(amount):
            raise ParseError(line_number, raw_line, f"amount is not a finite number: {raw_amount!r}")

        if order_id in self._seen_ids:
            raise ParseError(line_number, raw_line, f"duplicate order_id {order_id}")
        self._seen_ids.add(order_id)

        return OrderRecord(order_id=order_id, customer_name=customer_name, amount=amount)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(file={self.file_path}, delimiter={self.delimiter!r})"

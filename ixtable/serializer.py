import logging

import msgpack

from ixtable.config import EXT_CODE_RECORD, FORMAT_VERSION, RAW, STRICT_MAP_KEY, USE_BIN_TYPE
from ixtable.errors import SerializationError
from ixtable.table import Table, TableRecord

logger = logging.getLogger(__name__)


class Serializer:
    """
    Packs a Table into msgpack bytes and rebuilds it again.

    The table format is not known to the table itself: packing only walks table.values()
    and unpacking only goes through Table.extend. What a record looks like on the wire is
    decided by the two callables:
      - encode(record) -> msgpack-native data (dict, list, str, int, ...)
      - decode(data) -> record
    """

    def __init__(self, encode, decode):
        self.encode = encode
        self.decode = decode

    def packb(self, table):
        records = [self._pack_record(record) for record in table.values()]
        payload = {"version": FORMAT_VERSION, "records": records}
        data = msgpack.packb(payload, use_bin_type=USE_BIN_TYPE)
        logger.debug("packed %d records into %d bytes", len(records), len(data))
        return data

    def unpackb(self, data, table=None):
        """
        Rebuild the records packed in `data` into `table` (a new Table if omitted).
        Raises SerializationError on a malformed payload and KeyCollision on duplicate keys;
        in both cases the target table is left as it was.
        """
        try:
            payload = msgpack.unpackb(
                data, raw=RAW, ext_hook=self._ext_hook, strict_map_key=STRICT_MAP_KEY
            )
        except (ValueError, TypeError, msgpack.exceptions.UnpackException) as exc:
            raise SerializationError(f"cannot unpack table: {exc}") from exc

        records = self._check_payload(payload)
        if table is None:
            table = Table()
        table.extend(records)
        logger.debug("unpacked %d records", len(records))
        return table

    def _pack_record(self, record):
        try:
            packed_state = msgpack.packb(self.encode(record), use_bin_type=USE_BIN_TYPE)
        except (TypeError, ValueError, OverflowError) as exc:
            raise SerializationError(f"cannot pack record {record.key()!r}: {exc}") from exc
        return msgpack.ExtType(EXT_CODE_RECORD, packed_state)

    def _ext_hook(self, code, data):
        if code == EXT_CODE_RECORD:
            state = msgpack.unpackb(data, raw=RAW, strict_map_key=STRICT_MAP_KEY)
            try:
                return self.decode(state)
            except Exception as exc:
                raise SerializationError(f"cannot decode record: {exc}") from exc
        return msgpack.ExtType(code, data)

    def _check_payload(self, payload):
        if not isinstance(payload, dict):
            raise SerializationError("payload must be a map")
        version = payload.get("version")
        if version != FORMAT_VERSION:
            raise SerializationError(f"unsupported format version: {version!r}")
        records = payload.get("records")
        if not isinstance(records, list):
            raise SerializationError("payload records must be a list")
        for record in records:
            if isinstance(record, msgpack.ExtType):
                raise SerializationError(f"unknown ext type code: {record.code}")
            if not isinstance(record, TableRecord):
                raise SerializationError(f"not a table record: {record!r}")
        return records

"""Assemble a typed FeedMessage from wire-level field events."""

from enum import IntEnum
from typing import Any, cast

from gtfs_feedkit.enums import lookup_enum
from gtfs_feedkit.errors import (
    DecodeError,
    InputLimitExceeded,
    MissingRequiredField,
    NestingTooDeep,
)
from gtfs_feedkit.logging import get_logger
from gtfs_feedkit.metrics import (
    record_decode_error,
    record_decode_success,
    record_dropped,
    timed_stage,
)
from gtfs_feedkit.models import DecodeOptions, DroppedPolicy
from gtfs_feedkit.realtime.models import DroppedField, FeedEntity, FeedHeader, FeedMessage
from gtfs_feedkit.realtime.schema import (
    FEED_ENTITY,
    FEED_HEADER,
    FEED_MESSAGE_ENTITY,
    FEED_MESSAGE_HEADER,
    MESSAGES,
    FieldSpec,
    Kind,
    MessageSpec,
)
from gtfs_feedkit.realtime.wire import (
    WireField,
    WireReader,
    WireType,
    as_double,
    as_float,
    as_int32,
    as_int64,
    as_string,
    as_uint32,
)

logger = get_logger(__name__)


def _scalar(spec: FieldSpec, field: WireField) -> Any:
    value = field.value
    if isinstance(value, memoryview):
        return as_string(value, field.value_offset)
    value = cast(int, value)
    match spec.kind:
        case Kind.BOOL:
            return value != 0
        case Kind.INT32:
            return as_int32(value)
        case Kind.INT64:
            return as_int64(value)
        case Kind.UINT32:
            return as_uint32(value)
        case Kind.UINT64:
            return value
        case Kind.FLOAT:
            return as_float(value)
        case Kind.DOUBLE:
            return as_double(value)
        case Kind.ENUM:
            return lookup_enum(cast(type[IntEnum], spec.enum), as_int32(value))
    raise ValueError(f"Not a scalar kind: {spec.kind}")


class _Builder:
    """Per-call decode state; never shared between calls."""

    def __init__(self, options: DecodeOptions) -> None:
        self.options = options
        self.dropped: list[DroppedField] = []

    def build(self, reader: WireReader, spec: MessageSpec, path: str, depth: int) -> Any:
        """Build one message, raising on any failure inside it.

        Unknown field numbers and known fields with an unexpected wire type are
        skipped. Scalars seen twice keep the last value; repeated fields keep
        wire order.

        Raises:
            DecodeError: On malformed bytes or a missing required field.
        """
        values: dict[str, Any] = {}
        repeated: dict[str, list[Any]] = {}
        occurrences: dict[str, int] = {}

        for field in reader:
            field_spec = spec.by_number.get(field.number)
            if field_spec is None or field.wire_type != field_spec.wire_type:
                continue

            bucket = repeated.setdefault(field_spec.key, []) if field_spec.repeated else None
            if field_spec.kind is Kind.MESSAGE:
                sub_path = f"{path}.{field_spec.name}"
                if bucket is not None:
                    index = occurrences.get(field_spec.key, 0)
                    occurrences[field_spec.key] = index + 1
                    sub_path = f"{sub_path}[{index}]"
                value = self.build_optional(
                    reader.sub_reader(field),
                    MESSAGES[cast(str, field_spec.message)],
                    sub_path,
                    depth + 1,
                    field.offset,
                )
                if value is None:
                    if bucket is None:
                        # A dropped occurrence clears what it would have replaced
                        values.pop(field_spec.key, None)
                    continue
            else:
                value = _scalar(field_spec, field)

            if bucket is not None:
                bucket.append(value)
            else:
                values[field_spec.key] = value

        for field_spec in spec.required:
            if field_spec.key not in values:
                raise MissingRequiredField(f"{path}.{field_spec.name}", reader.base)

        for key, items in repeated.items():
            values[key] = tuple(items)
        return spec.model(**values)

    def build_optional(
        self,
        reader: WireReader,
        spec: MessageSpec,
        path: str,
        depth: int,
        offset: int,
    ) -> Any | None:
        """Build a nested message, degrading it to absent on failure."""
        if depth > self.options.max_depth:
            raise NestingTooDeep(f"Nesting too deep at '{path}'", offset)
        try:
            return self.build(reader, spec, path, depth)
        except DecodeError as e:
            self.drop(DroppedField(path=path, reason=str(e), offset=offset), spec, e)
            return None

    def drop(self, dropped: DroppedField, spec: MessageSpec, error: DecodeError) -> None:
        policy = self.options.dropped_policy
        if policy is DroppedPolicy.RAISE:
            raise error
        record_dropped(spec.name)
        if policy is DroppedPolicy.LOG:
            logger.warning(
                "realtime_substructure_dropped",
                path=dropped.path,
                reason=dropped.reason,
                offset=dropped.offset,
            )
        elif policy is DroppedPolicy.COLLECT:
            self.dropped.append(dropped)


def decode_feed_message(
    data: bytes | bytearray | memoryview,
    options: DecodeOptions | None = None,
) -> FeedMessage:
    """Decode a GTFS-realtime FeedMessage from its binary encoding.

    The envelope is fail-fast: framing errors at the top level, a missing or
    malformed header, or an oversized buffer abort the whole decode. Entities
    and everything nested below them degrade to absent when malformed,
    handled according to `options.dropped_policy`.

    Args:
        data: Raw protobuf bytes. Not retained after the call.
        options: Decode options; defaults apply when omitted.

    Returns:
        Immutable FeedMessage with entities in wire order.

    Raises:
        InputLimitExceeded: If the buffer exceeds `options.max_buffer_bytes`.
        TruncatedMessage: If the top-level framing ends mid-field.
        MissingRequiredField: If the header or its version is absent.
        DecodeError: For any other top-level wire syntax error.
    """
    options = options or DecodeOptions()
    size = memoryview(data).nbytes
    if options.max_buffer_bytes is not None and size > options.max_buffer_bytes:
        record_decode_error(InputLimitExceeded.kind.value)
        raise InputLimitExceeded("Realtime buffer size", options.max_buffer_bytes, size)

    builder = _Builder(options)
    header: FeedHeader | None = None
    entities: list[FeedEntity] = []
    entity_index = 0

    try:
        with timed_stage("realtime_decode", options.profile, bytes=size):
            reader = WireReader(data, max_depth=options.max_depth)
            for field in reader:
                if field.wire_type is not WireType.LENGTH_DELIMITED:
                    continue
                if field.number == FEED_MESSAGE_HEADER:
                    header = builder.build(reader.sub_reader(field), FEED_HEADER, "header", 1)
                elif field.number == FEED_MESSAGE_ENTITY:
                    entity = builder.build_optional(
                        reader.sub_reader(field),
                        FEED_ENTITY,
                        f"entity[{entity_index}]",
                        1,
                        field.offset,
                    )
                    entity_index += 1
                    if entity is not None:
                        entities.append(entity)
            if header is None:
                raise MissingRequiredField("header")
    except DecodeError as e:
        record_decode_error(e.kind.value)
        logger.warning("realtime_decode_failed", error=str(e), offset=e.offset)
        raise

    message = FeedMessage(
        header=header,
        entities=tuple(entities),
        dropped=tuple(builder.dropped),
    )

    payload_counts: dict[str, int] = {}
    for entity in message.entities:
        kind = type(entity.payload).__name__ if entity.payload is not None else "none"
        payload_counts[kind] = payload_counts.get(kind, 0) + 1
    record_decode_success(size, payload_counts)

    logger.debug(
        "realtime_feed_decoded",
        entity_count=len(message.entities),
        feed_timestamp=header.timestamp,
        gtfs_rt_version=header.gtfs_realtime_version,
        dropped=len(message.dropped),
    )
    return message

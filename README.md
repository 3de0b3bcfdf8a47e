# cotwire

A Cursor-on-Target (CoT) codec for Python, covering:

- **TAK Protocol v1 framing** (`cotwire.framing`): stream framing
  (`0xBF <varint length> <payload>`) for TCP/TLS, mesh framing
  (`0xBF 0x01 0xBF <payload>`) for UDP datagrams, and protobuf-style varints.
- **CoT XML** (`cotwire.xml`): a decoder that extracts the `<event>`, `<point>`
  and `<detail>` parts of a CoT document, keeping each detail child verbatim,
  and an encoder that writes a view back out with attributes in a fixed
  canonical order.
- **XML ↔ TakMessage** (`cotwire.proto`, `cotwire.messages`): conversion
  between a decoded view and a `TakMessage` dataclass tree, filling the typed
  detail sub-messages (`contact`, `__group`, `precisionlocation`, `status`,
  `takv`, `track`) where an element carries every required attribute and no
  others, and passing everything else through verbatim as `xml_detail`.
- **Conformance tooling** (`cotwire.mock_client`, `cotwire.scenario`): an
  asyncio mock client that speaks stream-framed Protocol v1 to a server's
  firehose port, and a small `Scenario` / `Outcome` framework for writing
  wire-level checks.

The package has no third-party runtime dependencies. All codec errors derive
from `CotError` in `cotwire.errors`.

## Framing

```python
from cotwire.framing import (
    FrameKind,
    decode_mesh,
    decode_stream,
    encode_mesh,
    encode_stream,
    peek,
    read_varint,
    write_varint,
)

frame = encode_stream(b"\x08\x96\x01")
assert peek(frame) is FrameKind.V1
assert peek(b"<event") is FrameKind.LEGACY_XML

consumed, payload = decode_stream(frame)
assert payload == b"\x08\x96\x01"
assert consumed == len(frame)

datagram = encode_mesh(b"payload")
assert decode_mesh(datagram) == b"payload"

assert read_varint(write_varint(300)) == (300, 2)
```

`decode_stream` raises `IncompleteError` (with `need` and `have`) when the
buffer does not yet hold a whole frame, so a reader can keep appending bytes
and retry; extra bytes after the first frame are left for the next call. A
buffer that does not start with the magic byte raises `InvalidMagicError`; a
length varint longer than 10 bytes raises `FramingError`. `peek` on an empty
buffer raises `IncompleteError`.

The module also exposes `MAGIC`, `MESH_HEADER`, `MULTICAST_GROUP`
(`"239.2.3.1"`), `MULTICAST_PORT` (`6969`) and the `ProtoVersion` enum
(`XML = 0`, `V1 = 1`).

## CoT XML

```python
from cotwire.xml import decode_xml, encode_xml

document = """<?xml version="1.0" encoding="UTF-8"?>
<event version="2.0" uid="example-unit-1" type="a-f-G-U-C"
       time="2026-04-27T05:00:00Z" start="2026-04-27T05:00:00Z"
       stale="2026-04-27T05:01:30Z" how="m-g">
  <point lat="34.2257" lon="-118.5739" hae="245" ce="9" le="9999999"/>
  <detail>
    <contact endpoint="*:-1:stcp" callsign="ALPHA"/>
    <remarks>on station</remarks>
  </detail>
</event>"""

view = decode_xml(document)
print(view.event.uid, view.event.kind)                  # example-unit-1 a-f-G-U-C
print([child.name for child in view.detail.children])   # ['contact', 'remarks']

xml_text = encode_xml(view)                             # a str
```

`decode_xml` accepts `str` or UTF-8 `bytes` and returns a `CotEventView` with
`event` (`EventAttrs`), `point` (`PointAttrs` or `None`) and `detail`
(`DetailView`, whose `raw` is the trimmed inner markup and whose `children`
are `DetailChild(name, raw)` entries for the top-level elements in document
order). Point attributes are kept as the source strings.

The decoder raises `XmlError` for malformed markup, `EntityNotSupportedError`
for attribute values containing `&`, `MissingEventAttrError` when `uid` or
`type` is missing, and `MissingPointAttrError` when a `<point>` lacks `lat` or
`lon`. `encode_xml` raises `MissingEventAttrError` for an empty `uid` or
`type`, and `SpecialCharInValueError` for values holding `<`, `>`, `&`, `"` or
`'`.

`walk_attrs(header)` yields the `(key, value)` pairs of a single element
header such as `'<contact callsign="ALPHA"/>'`.

## TakMessage conversion

```python
from cotwire.proto import takmessage_to_xml, view_to_takmessage
from cotwire.xml import decode_xml

message = view_to_takmessage(decode_xml(document))
print(message.cot_event.detail.contact)   # Contact(endpoint='*:-1:stcp', callsign='ALPHA')
print(message.cot_event.detail.xml_detail)  # <remarks>on station</remarks>

round_tripped = takmessage_to_xml(message)
```

Timestamps become milliseconds since the epoch on the way in (an unparseable
or pre-epoch time raises `XmlError`) and are written back as ISO-8601 with
three decimal places of seconds. Malformed coordinates become `0.0`.
`submission_time` and `creation_time` are left at zero. On output, typed
sub-messages are written first, followed by `xml_detail` verbatim, so the
order of detail children may change; decoding and converting the output again
yields the same typed fields and times.

The message types in `cotwire.messages` are plain dataclasses: `TakMessage`,
`CotEvent`, `Detail`, `Contact`, `Group`, `PrecisionLocation`, `Status`,
`Takv` and `Track`.

## Mock client and scenarios

```python
from cotwire.framing import encode_stream
from cotwire.mock_client import AtakMockClient


async def echo_check(host: str, port: int, payload: bytes) -> bool:
    async with await AtakMockClient.connect(host, port) as subscriber:
        async with await AtakMockClient.connect(host, port) as publisher:
            frame = encode_stream(payload)
            await publisher.send_frame(frame)
            received = await subscriber.recv_frame(2.0)
            return received == frame
```

`recv_frame(timeout)` returns the next whole frame, header included. It raises
`ClientTimeoutError` when no complete frame arrives within `timeout` seconds,
`PeerEofError` when the server closes the socket first, and
`MockClientError` for I/O failures or malformed framing. Partial frames stay
buffered between calls.

Checks can be written as `Scenario` subclasses in `cotwire.scenario`: set the
`name` and `description` class attributes and implement the coroutine
`run(host, port)`, returning `Outcome.passed()`, `Outcome.failed(reason)` or
`Outcome.skipped(reason)`. `str(outcome)` gives `PASS`, `FAIL: <reason>` or
`SKIPPED: <reason>`.

## What this package does not do

- It contains no TAK server, bus or persistence layer; the mock client needs a
  server listening elsewhere.
- The mock client speaks plain TCP with stream framing only: no TLS, no XML
  connection preamble.
- No concrete conformance scenarios are bundled; only the `Scenario` base class
  and `Outcome` type.
- `TakMessage` is a set of dataclasses; there is no protobuf binary encoding or
  decoding of it.
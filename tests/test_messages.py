from dataclasses import replace

from cotwire.messages import (
    Contact,
    CotEvent,
    Detail,
    Group,
    PrecisionLocation,
    Status,
    TakMessage,
    Takv,
    Track,
)


def _build():
    return TakMessage(
        cot_event=CotEvent(
            type="a-f-G-U-C",
            uid="x",
            how="m-g",
            send_time=1_777_266_000_000,
            detail=Detail(
                contact=Contact(endpoint="*:-1:stcp", callsign="ALPHA"),
                group=Group(name="Cyan", role="Team Member"),
                status=Status(battery=78),
                takv=Takv(device="d", platform="p", os="o", version="v"),
                track=Track(speed=1.5, course=90.0),
                precision_location=PrecisionLocation(geopointsrc="GPS", altsrc="GPS"),
            ),
        )
    )


def test_default_message_has_proto3_zero_values():
    msg = TakMessage()
    assert msg.cot_event is None
    assert msg.submission_time == 0
    assert msg.creation_time == 0


def test_default_detail_has_no_typed_sub_messages():
    detail = Detail()
    assert detail.xml_detail == ""
    assert [
        detail.contact,
        detail.group,
        detail.precision_location,
        detail.status,
        detail.takv,
        detail.track,
    ] == [None] * 6


def test_equal_messages_compare_equal():
    first = TakMessage(
        cot_event=CotEvent(
            type="a-f-G-U-C",
            uid="x",
            how="m-g",
            send_time=1_777_266_000_000,
            detail=Detail(
                contact=Contact(endpoint="*:-1:stcp", callsign="ALPHA"),
                status=Status(battery=78),
            ),
        )
    )
    second = TakMessage(
        cot_event=CotEvent(
            type="a-f-G-U-C",
            uid="x",
            how="m-g",
            send_time=1_777_266_000_000,
            detail=Detail(
                contact=Contact(endpoint="*:-1:stcp", callsign="ALPHA"),
                status=Status(battery=78),
            ),
        )
    )
    assert first == second
    assert first.cot_event.send_time == 1_777_266_000_000
    assert first.cot_event.detail.contact.callsign == "ALPHA"
    assert first.cot_event.detail.status.battery == 78
    assert _build() == _build()
    assert _build().cot_event.detail.track == Track(speed=1.5, course=90.0)


def test_messages_differing_in_nested_field_are_unequal():
    base = TakMessage(cot_event=CotEvent(uid="x", detail=Detail(status=Status(battery=78))))
    other = TakMessage(cot_event=CotEvent(uid="x", detail=Detail(status=Status(battery=77))))
    assert not base == other


def test_replace_keeps_other_fields():
    event = CotEvent(type="a-f", uid="x", how="m-g", lat=34.2257)
    moved = replace(event, lat=-10.0)
    assert moved.lat == -10.0
    assert (moved.type, moved.uid, moved.how) == (event.type, event.uid, event.how)


def test_default_instances_do_not_share_state():
    first = Detail()
    second = Detail()
    first.contact = Contact(callsign="ALPHA")
    assert second.contact is None
    assert first.contact.callsign == "ALPHA"
import base64
import json
from datetime import datetime, timezone

import pytest

from mixpanel_track import (
    API_ENDPOINT,
    MissingField,
    TrackingRequest,
    ValidationError,
    build_url,
    decode_payload,
    encode_payload,
)

pytestmark = pytest.mark.unit


def build_request(**overrides):
    defaults = {
        "event": "test2",
        "distinct_id": "50479b24671bf",
        "name_tag": "Test Name",
        "ip": "123.123.123.123",
        "time": datetime(2009, 6, 21, 19, 51, 25, 987000, tzinfo=timezone.utc),
        "properties": {"action": "play"},
    }
    defaults.update(overrides)
    return TrackingRequest(**defaults)


def data_param(url):
    prefix = f"{API_ENDPOINT}?data="
    assert url.startswith(prefix)
    return url[len(prefix):]


def test_full_message_matches_wire_format():
    message = build_request().build_message("e3bc4100330c35722740fb8c6f5abddc")
    assert message.event == "test2"
    assert message.properties == {
        "distinct_id": "50479b24671bf",
        "ip": "123.123.123.123",
        "token": "e3bc4100330c35722740fb8c6f5abddc",
        "time": 1245613885,
        "mp_name_tag": "Test Name",
        "action": "play",
    }


def test_minimal_message_has_only_distinct_id_and_token():
    request = TrackingRequest(event="test6", distinct_id="50479b24671bf")
    message = request.build_message("abc")
    document = json.loads(message.to_json())
    assert document == {
        "event": "test6",
        "properties": {"distinct_id": "50479b24671bf", "token": "abc"},
    }


@pytest.mark.parametrize(
    "value, expected",
    [
        (1245613885.999, 1245613885),
        (1245613885, 1245613885),
        (datetime(2009, 6, 21, 19, 51, 25, 999999, tzinfo=timezone.utc), 1245613885),
    ],
)
def test_time_is_truncated_to_whole_seconds(value, expected):
    message = build_request(time=value).build_message("abc")
    assert message.properties["time"] == expected


def test_missing_event_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        build_request(event=None).build_message("abc")
    assert excinfo.value.missing is MissingField.EVENT


def test_missing_distinct_id_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        build_request(distinct_id=None).validate()
    assert excinfo.value.missing is MissingField.DISTINCT_ID
    assert "distinct_id" in str(excinfo.value)


def test_empty_strings_are_accepted():
    message = TrackingRequest(event="", distinct_id="").build_message("abc")
    assert message.event == ""
    assert message.properties["distinct_id"] == ""


def test_caller_properties_override_reserved_keys():
    message = build_request(properties={"token": "other", "plan": "pro"}).build_message("abc")
    assert message.properties["token"] == "other"
    assert message.properties["plan"] == "pro"


def test_message_is_immutable():
    message = build_request().build_message("abc")
    with pytest.raises(Exception):
        message.event = "changed"


def test_message_properties_cannot_be_changed_in_place():
    message = build_request().build_message("abc")
    with pytest.raises(TypeError):
        message.properties["token"] = "hijacked"
    assert json.loads(message.to_json())["properties"]["token"] == "abc"


def test_message_copies_caller_properties():
    extra = {"action": "play"}
    message = TrackingRequest(event="e", distinct_id="d", properties=extra).build_message("abc")
    extra["action"] = "stop"
    assert message.properties["action"] == "play"


def test_url_carries_standard_base64_of_json():
    message = build_request(properties={"note": "??>>ü"}).build_message("abc")
    url = build_url(message)
    data = data_param(url)
    assert data == encode_payload(message)
    assert base64.b64decode(data) == message.to_json().encode("utf-8")
    assert decode_payload(data) == message.to_json()


def test_json_is_compact():
    message = TrackingRequest(event="e", distinct_id="d").build_message("t")
    assert message.to_json() == '{"event":"e","properties":{"distinct_id":"d","token":"t"}}'

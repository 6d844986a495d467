from __future__ import annotations

from datetime import UTC, datetime

import pytest

from ircwire.errors import ProtocolFormatError
from ircwire.irc.timestamp import Timestamp


def test_iso_string_round_trip():
    ts = Timestamp("2012-06-30T23:59:59.419Z")
    assert ts.to_iso_string() == "2012-06-30T23:59:59.419Z"
    assert ts.date == datetime(2012, 6, 30, 23, 59, 59, 419000, tzinfo=UTC)


def test_compatibility_epoch():
    ts = Timestamp("1504923972", compatibility=True)
    assert ts.unix_timestamp == 1504923972
    assert ts.to_iso_string() == "2017-09-09T02:26:12.000Z"


def test_equality_uses_whole_seconds():
    assert Timestamp("2017-09-09T02:26:12.900Z") == Timestamp("1504923972", compatibility=True)
    assert hash(Timestamp("2017-09-09T02:26:12.100Z")) == hash(Timestamp("1504923972", True))
    assert Timestamp("2017-09-09T02:26:13.000Z") != Timestamp("1504923972", compatibility=True)


@pytest.mark.parametrize(
    "value, compatibility",
    [
        ("2012-06-30T23:59:60.419Z", False),
        ("yesterday", False),
        ("12ab", True),
        ("nan", True),
        (None, False),
    ],
)
def test_invalid_values_raise(value, compatibility):
    with pytest.raises(ProtocolFormatError):
        Timestamp(value, compatibility=compatibility)

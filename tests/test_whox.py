from __future__ import annotations

import pytest

from ircwire.errors import ProtocolFormatError
from ircwire.irc.whox import WhoxField, WhoxFlag, build_whox_query, decode_who, decode_whox


def test_field_string_is_canonical_order():
    fields = WhoxField.REAL_NAME | WhoxField.NICK | WhoxField.QUERY_TYPE | WhoxField.CHANNEL
    assert fields.as_string() == "tcnr"


def test_build_query():
    fields = WhoxField.QUERY_TYPE | WhoxField.NICK | WhoxField.ACCOUNT_NAME
    assert build_whox_query("#chan", WhoxFlag.NONE, fields, 42) == "WHO #chan %tna,42"
    assert build_whox_query("#chan", WhoxFlag.OPERATORS_ONLY, fields, 7) == "WHO #chan o%tna,7"


def test_decode_nick_hostname_account():
    fields = WhoxField.NICK | WhoxField.HOSTNAME | WhoxField.ACCOUNT_NAME
    who = decode_whox(fields, ["me", "host.example", "alice", "alice_acct"])
    assert who.user.nick == "alice"
    assert who.user.hostname == "host.example"
    assert who.user.account == "alice_acct"
    assert who.channel is None
    assert who.hops is None


def test_decode_full_reply():
    fields = (
        WhoxField.QUERY_TYPE
        | WhoxField.CHANNEL
        | WhoxField.USERNAME
        | WhoxField.USER_IP
        | WhoxField.HOSTNAME
        | WhoxField.SERVER_NAME
        | WhoxField.NICK
        | WhoxField.FLAGS
        | WhoxField.HOPS
        | WhoxField.TIME_IDLE
        | WhoxField.ACCOUNT_NAME
        | WhoxField.OP_LEVEL
        | WhoxField.REAL_NAME
    )
    params = [
        "me", "12", "#chan", "~al", "10.0.0.1", "host", "srv.example", "alice",
        "H@", "0", "35", "alice_acct", "n/a", "Alice Liddell",
    ]
    who = decode_whox(fields, params)
    assert who.query_type == 12
    assert who.channel == "#chan"
    assert who.user.user == "~al"
    assert who.ip == "10.0.0.1"
    assert who.user.hostname == "host"
    assert who.server == "srv.example"
    assert who.user.nick == "alice"
    assert who.flags == "H@"
    assert who.hops == 0
    assert who.time_idle == 35
    assert who.user.account == "alice_acct"
    assert who.op_level == "n/a"
    assert who.user.real_name == "Alice Liddell"


def test_decode_non_numeric_hops_raises():
    with pytest.raises(ProtocolFormatError):
        decode_whox(WhoxField.NICK | WhoxField.HOPS, ["me", "alice", "x", "extra"])


def test_decode_short_reply_raises():
    with pytest.raises(ProtocolFormatError):
        decode_whox(WhoxField.NICK | WhoxField.ACCOUNT_NAME, ["me", "alice"])


def test_decode_standard_who_splits_hops_from_real_name():
    params = ["me", "#chan", "~al", "host.example", "srv.example", "alice", "H", "3 Alice Liddell"]
    who = decode_who(params)
    assert who.channel == "#chan"
    assert who.user.user == "~al"
    assert who.user.hostname == "host.example"
    assert who.server == "srv.example"
    assert who.user.nick == "alice"
    assert who.flags == "H"
    assert who.hops == 3
    assert who.user.real_name == "Alice Liddell"
    assert who.ip is None


def test_decode_standard_who_too_short():
    with pytest.raises(ProtocolFormatError):
        decode_who(["me", "#chan"])

from __future__ import annotations

import asyncio
import base64
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from ircwire.errors import NotFoundError, ProtocolFormatError
from ircwire.irc.events import IrcEvent
from ircwire.irc.models import NegotiationPhase
from ircwire.irc.whox import WhoxField

from tests.conftest import DummyIRC, make_settings


def record(client: DummyIRC, event: IrcEvent) -> list:
    items: list = []
    client.on(event, items.append)
    return items


@pytest.mark.asyncio
async def test_ping_pong_response(client):
    await client.feed("PING :irc.example.net")
    assert client.sent == ["PONG :irc.example.net"]
    assert client.server_name_from_ping == "irc.example.net"


@pytest.mark.asyncio
async def test_raw_received_event(client):
    raws = record(client, IrcEvent.RAW_MESSAGE_RECEIVED)
    await client.feed(":srv NOTICE * :*** Looking up your hostname")
    assert [r.line for r in raws] == [":srv NOTICE * :*** Looking up your hostname"]
    assert raws[0].outgoing is False


@pytest.mark.asyncio
async def test_notice_event(client):
    notices = record(client, IrcEvent.NOTICE_RECEIVED)
    await client.feed(":srv NOTICE tester :hello there")
    assert notices[0].text == "hello there"
    assert notices[0].source == "srv"


@pytest.mark.asyncio
async def test_malformed_notice_becomes_error_event(client):
    errors = record(client, IrcEvent.ERROR)
    await client.feed(":srv NOTICE tester extra :hello")
    assert isinstance(errors[0].error, ProtocolFormatError)
    assert errors[0].line == ":srv NOTICE tester extra :hello"


@pytest.mark.asyncio
async def test_privmsg_channel_and_user_events(client):
    private = record(client, IrcEvent.PRIVATE_MESSAGE_RECEIVED)
    channel = record(client, IrcEvent.CHANNEL_MESSAGE_RECEIVED)
    user = record(client, IrcEvent.USER_MESSAGE_RECEIVED)
    await client.feed(":alice!a@h PRIVMSG #room :hello world", ":bob!b@h PRIVMSG tester :psst")
    assert len(private) == 2
    assert channel[0].privmsg.message == "hello world"
    assert channel[0].privmsg.author == "alice"
    assert user[0].privmsg.author == "bob"


@pytest.mark.asyncio
async def test_unparseable_line_becomes_error_event(client):
    errors = record(client, IrcEvent.ERROR)
    await client.feed("   ")
    assert isinstance(errors[0].error, ProtocolFormatError)


@pytest.mark.asyncio
async def test_unknown_command_is_ignored(client):
    errors = record(client, IrcEvent.ERROR)
    await client.feed(":srv FROBNICATE x")
    assert errors == []
    assert client.sent == []


@pytest.mark.asyncio
async def test_error_numerics_become_error_replies(client):
    replies = record(client, IrcEvent.ERROR_REPLY)
    await client.feed(":srv 401 tester ghost :No such nick/channel", ":srv 502 tester :Cant change mode")
    assert [r.message.command for r in replies] == ["401", "502"]


@pytest.mark.asyncio
async def test_set_handler_overrides_and_removes(client):
    seen = []

    def custom(c, message):  # type: ignore[no-untyped-def]
        seen.append(message.params[-1])

    client.set_handler("ping", custom)
    await client.feed("PING :x")
    assert seen == ["x"]
    assert client.sent == []
    client.set_handler("PING", None)
    await client.feed("PING :y")
    assert seen == ["x"]


@pytest.mark.asyncio
async def test_handler_exception_is_reported_not_raised(client):
    async def broken(c, message):  # type: ignore[no-untyped-def]
        raise RuntimeError("boom")

    errors = record(client, IrcEvent.ERROR)
    client.set_handler("TOPIC", broken)
    await client.feed(":alice!a@h TOPIC #c :new topic")
    assert isinstance(errors[0].error, RuntimeError)


@pytest.mark.asyncio
async def test_event_handler_exception_does_not_stop_dispatch(client):
    def bad(_payload):  # type: ignore[no-untyped-def]
        raise RuntimeError("handler bug")

    client.on(IrcEvent.RAW_MESSAGE_RECEIVED, bad)
    await client.feed("PING :still")
    assert client.sent == ["PONG :still"]


@pytest.mark.asyncio
async def test_async_event_handlers_are_awaited(client):
    seen = []

    async def handler(payload):  # type: ignore[no-untyped-def]
        await asyncio.sleep(0)
        seen.append(payload.text)

    client.on(IrcEvent.NOTICE_RECEIVED, handler)
    await client.feed(":srv NOTICE tester :hi")
    assert seen == ["hi"]


@pytest.mark.asyncio
async def test_motd_flow_completes_connection_and_whois_self(client):
    parts = record(client, IrcEvent.MOTD_PART_RECEIVED)
    motd = record(client, IrcEvent.MOTD_RECEIVED)
    complete = record(client, IrcEvent.CONNECTION_COMPLETE)
    client.register()
    await client.feed(
        ":srv 375 tester :- srv Message of the day -",
        ":srv 372 tester :- Hello",
        ":srv 372 tester :- World",
        ":srv 376 tester :End of /MOTD command.",
    )
    assert [p.text for p in parts] == ["Hello", "World"]
    assert motd[0].text == "Hello\nWorld\n"
    assert len(complete) == 1
    assert client.negotiator.phase is NegotiationPhase.READY
    assert client.sent[-1] == "WHOIS tester"


@pytest.mark.asyncio
async def test_self_whois_reconciles_identity(client):
    await client.feed(":srv 422 tester :MOTD File is missing")
    await client.feed(
        ":srv 311 tester tester ~tester real.host * :Real Name",
        ":srv 318 tester tester :End of /WHOIS list.",
    )
    assert client.user.user == "~tester"
    assert client.user.hostname == "real.host"
    assert client.user.real_name == "Real Name"


@pytest.mark.asyncio
async def test_no_self_whois_when_disabled():
    client = DummyIRC(make_settings(whois_on_connect=False))
    await client.feed(":srv 422 tester :MOTD File is missing")
    assert not any(line.startswith("WHOIS") for line in client.sent)


@pytest.mark.asyncio
async def test_malformed_motd_line(client):
    errors = record(client, IrcEvent.ERROR)
    await client.feed(":srv 372 tester extra :- Hello")
    assert isinstance(errors[0].error, ProtocolFormatError)


@pytest.mark.asyncio
async def test_nick_in_use_switches_to_random_nick(client):
    events = record(client, IrcEvent.NICK_IN_USE)
    await client.feed(":srv 433 * tester :Nickname is already in use")
    assert events[0].invalid_nick == "tester"
    new_nick = events[0].new_nick
    assert len(new_nick) == 8 and new_nick.isalpha()
    assert client.sent == [f"NICK {new_nick}"]
    assert client.user.nick == new_nick


@pytest.mark.asyncio
async def test_nick_in_use_do_not_handle(client):
    def veto(event):  # type: ignore[no-untyped-def]
        event.do_not_handle = True

    client.on(IrcEvent.NICK_IN_USE, veto)
    await client.feed(":srv 433 * tester :Nickname is already in use")
    assert client.sent == []


@pytest.mark.asyncio
async def test_nick_in_use_custom_nick(client):
    client.on(IrcEvent.NICK_IN_USE, lambda e: setattr(e, "new_nick", "tester_"))
    await client.feed(":srv 433 * tester :Nickname is already in use")
    assert client.sent == ["NICK tester_"]


@pytest.mark.asyncio
async def test_welcome_and_nick_change_track_own_nick(client):
    await client.feed(":srv 001 Tester :Welcome")
    assert client.user.nick == "Tester"
    await client.feed(":Tester!t@h NICK :renamed", ":other!o@h NICK :ignored")
    assert client.user.nick == "renamed"


@pytest.mark.asyncio
async def test_isupport_updates_server_info(client):
    infos = record(client, IrcEvent.SERVER_INFO_RECEIVED)
    await client.feed(":srv 005 tester WHOX NETWORK=Example CHANTYPES=# :are supported by this server")
    assert client.server_info.extended_who
    assert client.server_info.network == "Example"
    assert client.server_info.features["CHANTYPES"] == "#"
    assert infos[0].tokens == ["WHOX", "NETWORK=Example", "CHANTYPES=#"]
    await client.feed(":srv 005 tester -WHOX :are supported by this server")
    assert not client.server_info.extended_who


@pytest.mark.asyncio
async def test_mode_change_event_and_user_modes(client):
    changes = record(client, IrcEvent.MODE_CHANGED)
    await client.feed(":tester MODE tester :+iw", ":op!o@h MODE #chan +o alice")
    assert client.user.mode == "iw"
    assert changes[1].target == "#chan"
    assert changes[1].change == "+o"
    assert changes[1].arguments == ["alice"]
    await client.feed(":tester MODE tester :-w")
    assert client.user.mode == "i"


@pytest.mark.asyncio
async def test_join_part_kick_track_channels(client):
    await client.feed(":tester!t@h JOIN #one", ":tester!t@h JOIN #Two", ":alice!a@h JOIN #three")
    assert client.channels == {"#one", "#two"}
    await client.feed(":tester!t@h PART #one :bye", ":op!o@h KICK #two tester :out")
    assert client.channels == set()


@pytest.mark.asyncio
async def test_join_and_part_events_for_any_user(client):
    joined = record(client, IrcEvent.USER_JOINED_CHANNEL)
    parted = record(client, IrcEvent.USER_PARTED_CHANNEL)
    await client.feed(":alice!a@alice.host JOIN #three", ":alice!a@alice.host PART #three :later")
    assert joined[0].channel == "#three"
    assert joined[0].user.nick == "alice"
    assert joined[0].user.hostname == "alice.host"
    assert parted[0].reason == "later"
    assert client.channels == set()


@pytest.mark.asyncio
async def test_kick_event_names_both_sides(client):
    kicks = record(client, IrcEvent.USER_KICKED)
    await client.feed(":op!o@h KICK #two bob :flooding", ":op!o@h KICK #two tester")
    assert [k.kicked for k in kicks] == ["bob", "tester"]
    assert kicks[0].kicker.nick == "op"
    assert kicks[0].reason == "flooding"
    assert kicks[1].reason is None


@pytest.mark.asyncio
async def test_nick_changed_event_carries_old_identity(client):
    changes = record(client, IrcEvent.NICK_CHANGED)
    await client.feed(":alice!a@h NICK :alicia", ":tester!t@h NICK :renamed")
    assert changes[0].old_nick == "alice"
    assert changes[0].new_nick == "alicia"
    assert changes[1].old_nick == "tester"
    assert client.user.nick == "renamed"


@pytest.mark.asyncio
async def test_quit_event(client):
    quits = record(client, IrcEvent.USER_QUIT)
    await client.feed(":bob!b@h QUIT :Ping timeout", ":carol!c@h QUIT")
    assert quits[0].user.nick == "bob"
    assert quits[0].reason == "Ping timeout"
    assert quits[1].reason is None


@pytest.mark.asyncio
async def test_topic_reply_and_live_topic_change(client):
    topics = record(client, IrcEvent.CHANNEL_TOPIC_RECEIVED)
    await client.feed(
        ":srv 332 tester #lobby :Welcome to the lobby",
        ":alice!a@h TOPIC #lobby :New rules",
    )
    assert (topics[0].channel, topics[0].topic, topics[0].setter) == (
        "#lobby",
        "Welcome to the lobby",
        None,
    )
    assert topics[1].topic == "New rules"
    assert topics[1].setter.nick == "alice"


@pytest.mark.asyncio
async def test_names_collected_until_end_of_list(client):
    lists = record(client, IrcEvent.CHANNEL_LIST_RECEIVED)
    await client.feed(
        ":srv 353 tester = #Lobby :@alice +bob",
        ":srv 353 tester = #lobby :@+carol!c@carol.host dave",
    )
    assert lists == []
    await client.feed(":srv 366 tester #Lobby :End of /NAMES list.")
    assert lists[0].channel == "#Lobby"
    assert lists[0].members == {"alice": "@", "bob": "+", "carol": "@+", "dave": ""}
    assert client.names_buffer == {}


@pytest.mark.asyncio
async def test_account_and_chghost_for_self(client):
    await client.feed(":tester!t@h ACCOUNT tester_acct", ":tester!t@h CHGHOST ~new new.host")
    assert client.user.account == "tester_acct"
    assert client.user.user == "~new"
    assert client.user.hostname == "new.host"
    await client.feed(":alice!a@h ACCOUNT other")
    assert client.user.account == "tester_acct"


@pytest.mark.asyncio
async def test_whois_flow(client):
    results = []
    received = record(client, IrcEvent.WHOIS_RECEIVED)
    client.whois("Alice", results.append)
    assert client.sent == ["WHOIS Alice"]
    await client.feed(
        ":srv 311 tester alice ~al host.example * :Alice Liddell",
        ":srv 330 tester alice alice_acct :is logged in as",
        ":srv 312 tester alice srv.example :Example server",
        ":srv 313 tester alice :is an IRC operator",
        ":srv 317 tester alice 42 1504923966 :seconds idle, signon time",
        ":srv 319 tester alice :@#ops +#chat #lobby",
        ":srv 318 tester alice :End of /WHOIS list.",
    )
    whois = results[0].state
    assert whois.user.nick == "alice"
    assert whois.user.hostname == "host.example"
    assert whois.user.real_name == "Alice Liddell"
    assert whois.logged_in_as == "alice_acct"
    assert whois.server == "srv.example"
    assert whois.server_info == "Example server"
    assert whois.irc_op
    assert whois.seconds_idle == 42
    assert whois.channels == ["#ops", "#chat", "#lobby"]
    assert received[0].whois is whois
    assert len(client.requests) == 0


@pytest.mark.asyncio
async def test_whois_channels_keep_non_hash_channel_types(client):
    results = []
    client.whois("bob", results.append)
    await client.feed(
        ":srv 319 tester bob :@&local +#chan",
        ":srv 318 tester bob :End of /WHOIS list.",
    )
    assert results[0].state.channels == ["&local", "#chan"]


@pytest.mark.asyncio
async def test_whois_channels_use_advertised_prefixes(client):
    await client.feed(":srv 005 tester PREFIX=(Yqov)!~@+ CHANTYPES=#& :are supported by this server")
    results = []
    client.whois("bob", results.append)
    await client.feed(
        ":srv 319 tester bob :!@#staff ~&local #plain",
        ":srv 318 tester bob :End of /WHOIS list.",
    )
    assert results[0].state.channels == ["#staff", "&local", "#plain"]


@pytest.mark.asyncio
async def test_uncorrelated_whois_reply_is_reported(client):
    errors = record(client, IrcEvent.ERROR)
    await client.feed(":srv 311 tester ghost ~g host * :Ghost")
    assert isinstance(errors[0].error, NotFoundError)


@pytest.mark.asyncio
async def test_standard_who_flow(client):
    results = []
    whox = record(client, IrcEvent.WHOX_RECEIVED)
    client.who("#chan", callback=results.append)
    assert client.sent == ["WHO #chan"]
    await client.feed(
        ":srv 352 tester #chan ~al host.a srv.example alice H :0 Alice Liddell",
        ":srv 352 tester #chan ~bo host.b srv.example bob G@ :2 Bob",
        ":srv 315 tester #chan :End of /WHO list.",
    )
    rows = results[0].state
    assert [r.user.nick for r in rows] == ["alice", "bob"]
    assert rows[0].user.hostname == "host.a"
    assert rows[1].hops == 2
    assert rows[0].user.real_name == "Alice Liddell"
    assert [r.user.nick for r in whox[0].responses] == ["alice", "bob"]


@pytest.mark.asyncio
async def test_whox_flow(client):
    await client.feed(":srv 005 tester WHOX :are supported by this server")
    results = []
    client.who("#chan", fields=WhoxField.NICK | WhoxField.ACCOUNT_NAME, callback=results.append)
    sent = client.sent[-1]
    assert sent.startswith("WHO #chan %tna,")
    query_type = int(sent.rsplit(",", 1)[1])
    assert 0 <= query_type < 999
    await client.feed(
        f":srv 354 tester {query_type} alice alice_acct",
        f":srv 354 tester {query_type} bob 0",
        ":srv 354 tester 1000 stray reply",
        ":srv 315 tester #chan :End of /WHO list.",
    )
    rows = results[0].state
    assert [(r.query_type, r.user.nick, r.user.account) for r in rows] == [
        (query_type, "alice", "alice_acct"),
        (query_type, "bob", "0"),
    ]
    assert not rows[1].user.logged_in


@pytest.mark.asyncio
async def test_ban_list_flow(client):
    results = []
    client.get_mode_list("#chan", "b", results.append)
    assert client.sent == ["MODE #chan b"]
    await client.feed(
        ":srv 367 tester #chan *!*@bad.host op!o@h.example 1504923966",
        ":srv 367 tester #chan *!*@worse.host",
        ":srv 368 tester #chan :End of channel ban list",
    )
    masks = results[0].state
    assert [m.value for m in masks] == ["*!*@bad.host", "*!*@worse.host"]
    assert masks[0].creator.nick == "op"
    assert masks[0].created_at == datetime(2017, 9, 9, 2, 26, 6, tzinfo=UTC)
    assert masks[1].created_at is None


@pytest.mark.asyncio
async def test_quiet_list_skips_mode_column(client):
    results = []
    client.get_mode_list("#chan", "q", results.append)
    await client.feed(
        ":srv 728 tester #chan q *!*@noisy op 1504923966",
        ":srv 729 tester #chan q :End of channel quiet list",
    )
    assert [m.value for m in results[0].state] == ["*!*@noisy"]


@pytest.mark.asyncio
async def test_channel_modes_flow(client):
    results = []
    client.get_mode("#chan", results.append)
    assert client.sent == ["MODE #chan"]
    await client.feed(":srv 324 tester #chan +ntk secret")
    modes = results[0].state
    assert modes.modes == "+ntk"
    assert modes.arguments == ["secret"]


@pytest.mark.asyncio
async def test_sasl_handshake_through_dispatch():
    client = DummyIRC(make_settings(password="hunter2"))
    client.register()
    assert client.sent == [
        "CAP LS 302",
        "PASS hunter2",
        "NICK tester",
        "USER tester hostname servername :tester",
    ]
    await client.feed(":srv CAP * LS :sasl=PLAIN server-time")
    assert client.sent[-1] == "CAP REQ :sasl server-time"
    await client.feed(":srv CAP tester ACK :sasl server-time")
    assert client.sent[-1] == "AUTHENTICATE PLAIN"
    await client.feed("AUTHENTICATE +")
    payload = base64.b64encode(b"tester\0tester\0hunter2").decode()
    assert client.sent[-1] == f"AUTHENTICATE {payload}"
    assert client.authenticating_sasl
    await client.feed(":srv 900 tester tester!t@h tester_acct :You are now logged in as tester_acct")
    await client.feed(":srv 903 tester :SASL authentication successful")
    assert client.sent[-1] == "CAP END"
    assert client.user.account == "tester_acct"
    assert set(client.capabilities.enabled) == {"server-time", "sasl"}


@pytest.mark.asyncio
async def test_server_error_during_negotiation_sends_cap_end(client):
    client.register()
    await client.feed("ERROR :Closing link")
    assert client.sent[-1] == "CAP END"
    assert not client.negotiating_capabilities


@pytest.mark.asyncio
async def test_custom_handler_receives_client_and_message(client):
    handler = AsyncMock()
    client.set_handler("INVITE", handler)
    await client.feed(":alice!a@h INVITE tester #secret")
    handler.assert_awaited_once()
    called_client, message = handler.await_args.args
    assert called_client is client
    assert message.params == ["tester", "#secret"]

"""Handlers for connection-level and messaging commands."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...errors import ProtocolFormatError
from ...logs.logger import logger
from ..events import (
    ChannelNames,
    ChannelTopic,
    ChannelUserEvent,
    ErrorReply,
    IrcEvent,
    ModeChange,
    NickChanged,
    NickInUse,
    Notice,
    PrivateMessage,
    ServerInfoReceived,
    UserKicked,
    UserQuit,
)
from ..models import IrcUser
from ..parser import IRCMessage, build_privmsg

if TYPE_CHECKING:  # pragma: no cover
    from ..client import AsyncIRCClient


async def handle_ping(client: AsyncIRCClient, message: IRCMessage) -> None:
    server = message.param(-1, "") or ""
    client.connection.server_name_from_ping = server
    client.send_raw(f"PONG :{server}")


async def handle_pong(client: AsyncIRCClient, message: IRCMessage) -> None:
    logger.log_event(
        "irc", "pong", level=logging.DEBUG, nick=client.user.nick, server=message.param(-1)
    )


async def handle_welcome(client: AsyncIRCClient, message: IRCMessage) -> None:
    # 001 names us as the server registered us.
    nick = message.param(0)
    if nick and nick != client.user.nick:
        client.user.nick = nick
    logger.log_event("irc", "registered", nick=client.user.nick, server=message.source)


async def handle_isupport(client: AsyncIRCClient, message: IRCMessage) -> None:
    # 005 <me> TOKEN TOKEN=value ... :are supported by this server
    tokens = message.params[1:-1]
    client.server_info.update(tokens)
    await client.events.emit(IrcEvent.SERVER_INFO_RECEIVED, ServerInfoReceived(tokens))


async def handle_notice(client: AsyncIRCClient, message: IRCMessage) -> None:
    if len(message.params) != 2:
        raise ProtocolFormatError(
            "NOTICE is incorrectly formatted.", data={"params": list(message.params)}
        )
    await client.events.emit(IrcEvent.NOTICE_RECEIVED, Notice(message))


async def handle_privmsg(client: AsyncIRCClient, message: IRCMessage) -> None:
    priv = build_privmsg(message)
    if priv is None:
        raise ProtocolFormatError(
            "PRIVMSG is incorrectly formatted.", data={"params": list(message.params)}
        )
    logger.log_event(
        "irc",
        "privmsg",
        level=logging.DEBUG,
        nick=client.user.nick,
        target=priv.target,
        human=f"{priv.author}: {priv.message}",
        author=priv.author,
    )
    payload = PrivateMessage(message, priv)
    await client.events.emit(IrcEvent.PRIVATE_MESSAGE_RECEIVED, payload)
    if priv.is_channel:
        await client.events.emit(IrcEvent.CHANNEL_MESSAGE_RECEIVED, payload)
    else:
        await client.events.emit(IrcEvent.USER_MESSAGE_RECEIVED, payload)


async def handle_mode(client: AsyncIRCClient, message: IRCMessage) -> None:
    if len(message.params) < 2:
        raise ProtocolFormatError("MODE is incorrectly formatted.")
    target, change, *arguments = message.params
    if client.is_me(target):
        client.user.mode = _apply_user_mode(client.user.mode, change)
    await client.events.emit(
        IrcEvent.MODE_CHANGED, ModeChange(message.source, target, change, arguments)
    )


def _apply_user_mode(current: str, change: str) -> str:
    modes = list(current)
    adding = True
    for char in change:
        if char == "+":
            adding = True
        elif char == "-":
            adding = False
        elif adding and char not in modes:
            modes.append(char)
        elif not adding and char in modes:
            modes.remove(char)
    return "".join(modes)


async def handle_nick(client: AsyncIRCClient, message: IRCMessage) -> None:
    if not message.params:
        raise ProtocolFormatError("NICK is incorrectly formatted.")
    new_nick = message.params[0]
    event = NickChanged(IrcUser.from_source(message.source), new_nick)
    if client.is_me(message.nick):
        client.user.nick = new_nick
        logger.log_event("irc", "nick_changed", nick=new_nick, old_nick=event.old_nick)
    await client.events.emit(IrcEvent.NICK_CHANGED, event)


async def handle_nick_in_use(client: AsyncIRCClient, message: IRCMessage) -> None:
    invalid = message.param(1, client.user.nick) or ""
    event = NickInUse(invalid_nick=invalid)
    logger.log_event("irc", "nick_in_use", level=logging.WARNING, nick=invalid)
    await client.events.emit(IrcEvent.NICK_IN_USE, event)
    if event.do_not_handle or not client.settings.generate_random_nick_if_in_use:
        return
    client.nick(event.new_nick)


async def handle_error_reply(client: AsyncIRCClient, message: IRCMessage) -> None:
    logger.log_event(
        "irc",
        "error_reply",
        level=logging.WARNING,
        nick=client.user.nick,
        numeric=message.command,
        text=message.param(-1, ""),
    )
    await client.events.emit(IrcEvent.ERROR_REPLY, ErrorReply(message))


async def handle_error(client: AsyncIRCClient, message: IRCMessage) -> None:
    logger.log_event(
        "irc", "server_error", level=logging.ERROR, nick=client.user.nick, text=message.param(-1, "")
    )
    client.negotiator.handle_error()


async def handle_account(client: AsyncIRCClient, message: IRCMessage) -> None:
    if client.is_me(message.nick) and message.params:
        client.user.account = message.params[0]


async def handle_chghost(client: AsyncIRCClient, message: IRCMessage) -> None:
    if not client.is_me(message.nick) or len(message.params) < 2:
        return
    client.user.user, client.user.hostname = message.params[0], message.params[1]


async def handle_join(client: AsyncIRCClient, message: IRCMessage) -> None:
    if not message.params:
        raise ProtocolFormatError("JOIN is incorrectly formatted.")
    channel = message.params[0]
    if client.is_me(message.nick):
        client.channels.add(channel.casefold())
        logger.log_event("irc", "joined", nick=client.user.nick, target=channel)
    await client.events.emit(
        IrcEvent.USER_JOINED_CHANNEL, ChannelUserEvent(channel, IrcUser.from_source(message.source))
    )


async def handle_part(client: AsyncIRCClient, message: IRCMessage) -> None:
    if not message.params:
        raise ProtocolFormatError("PART is incorrectly formatted.")
    channel = message.params[0]
    if client.is_me(message.nick):
        client.channels.discard(channel.casefold())
        logger.log_event("irc", "parted", nick=client.user.nick, target=channel)
    await client.events.emit(
        IrcEvent.USER_PARTED_CHANNEL,
        ChannelUserEvent(channel, IrcUser.from_source(message.source), message.param(1)),
    )


async def handle_kick(client: AsyncIRCClient, message: IRCMessage) -> None:
    # KICK <channel> <nick> [:<reason>]
    if len(message.params) < 2:
        raise ProtocolFormatError("KICK is incorrectly formatted.")
    channel, kicked = message.params[0], message.params[1]
    if client.is_me(kicked):
        client.channels.discard(channel.casefold())
        logger.log_event(
            "irc",
            "kicked",
            level=logging.WARNING,
            nick=client.user.nick,
            target=channel,
            by=message.nick,
        )
    await client.events.emit(
        IrcEvent.USER_KICKED,
        UserKicked(channel, kicked, IrcUser.from_source(message.source), message.param(2)),
    )


async def handle_quit(client: AsyncIRCClient, message: IRCMessage) -> None:
    await client.events.emit(
        IrcEvent.USER_QUIT, UserQuit(IrcUser.from_source(message.source), message.param(0))
    )


async def handle_topic(client: AsyncIRCClient, message: IRCMessage) -> None:
    # TOPIC <channel> :<topic> (someone changed it)
    if not message.params:
        raise ProtocolFormatError("TOPIC is incorrectly formatted.")
    topic = ChannelTopic(
        message.params[0], message.param(1, "") or "", IrcUser.from_source(message.source)
    )
    await client.events.emit(IrcEvent.CHANNEL_TOPIC_RECEIVED, topic)


async def handle_topic_reply(client: AsyncIRCClient, message: IRCMessage) -> None:
    # 332 <me> <channel> :<topic>
    if len(message.params) < 3:
        raise ProtocolFormatError(
            "332 reply is incorrectly formatted.", data={"params": list(message.params)}
        )
    await client.events.emit(
        IrcEvent.CHANNEL_TOPIC_RECEIVED, ChannelTopic(message.params[1], message.params[2])
    )


async def handle_names(client: AsyncIRCClient, message: IRCMessage) -> None:
    # 353 <me> <symbol> <channel> :[prefix]<nick> ...
    if len(message.params) < 4:
        raise ProtocolFormatError(
            "353 reply is incorrectly formatted.", data={"params": list(message.params)}
        )
    channel = message.params[2]
    members = client.names_buffer.setdefault(channel.casefold(), ChannelNames(channel)).members
    prefixes = client.server_info.membership_prefixes
    for entry in message.params[3].split():
        nick = entry.lstrip(prefixes)
        if not nick:
            continue
        # userhost-in-names sends nick!user@host
        members[IrcUser.from_source(nick).nick or nick] = entry[: len(entry) - len(nick)]


async def handle_names_end(client: AsyncIRCClient, message: IRCMessage) -> None:
    # 366 <me> <channel> :End of /NAMES list.
    if len(message.params) < 2:
        raise ProtocolFormatError("366 reply is incorrectly formatted.")
    channel = message.params[1]
    names = client.names_buffer.pop(channel.casefold(), None) or ChannelNames(channel)
    await client.events.emit(IrcEvent.CHANNEL_LIST_RECEIVED, names)

"""Default command -> handler table."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from ..negotiation import SASL_NUMERICS
from . import listing_handlers, message_handlers, motd_handlers, negotiation_handlers, user_handlers

if TYPE_CHECKING:  # pragma: no cover
    from ..client import AsyncIRCClient
    from ..parser import IRCMessage

MessageHandler = Callable[["AsyncIRCClient", "IRCMessage"], Awaitable[Any] | Any]


def default_handlers() -> dict[str, MessageHandler]:
    handlers: dict[str, MessageHandler] = {
        "PING": message_handlers.handle_ping,
        "PONG": message_handlers.handle_pong,
        "ERROR": message_handlers.handle_error,
        "NOTICE": message_handlers.handle_notice,
        "PRIVMSG": message_handlers.handle_privmsg,
        "MODE": message_handlers.handle_mode,
        "NICK": message_handlers.handle_nick,
        "JOIN": message_handlers.handle_join,
        "PART": message_handlers.handle_part,
        "KICK": message_handlers.handle_kick,
        "QUIT": message_handlers.handle_quit,
        "TOPIC": message_handlers.handle_topic,
        "ACCOUNT": message_handlers.handle_account,
        "CHGHOST": message_handlers.handle_chghost,
        "001": message_handlers.handle_welcome,
        "005": message_handlers.handle_isupport,
        "433": message_handlers.handle_nick_in_use,
        "332": message_handlers.handle_topic_reply,
        "353": message_handlers.handle_names,
        "366": message_handlers.handle_names_end,
        "375": motd_handlers.handle_motd_start,
        "372": motd_handlers.handle_motd,
        "376": motd_handlers.handle_end_of_motd,
        "422": motd_handlers.handle_motd_not_found,
        "CAP": negotiation_handlers.handle_cap,
        "AUTHENTICATE": negotiation_handlers.handle_authenticate,
        "311": user_handlers.handle_whois_user,
        "312": user_handlers.handle_whois_server,
        "313": user_handlers.handle_whois_operator,
        "317": user_handlers.handle_whois_idle,
        "318": user_handlers.handle_whois_end,
        "319": user_handlers.handle_whois_channels,
        "330": user_handlers.handle_whois_logged_in_as,
        "352": user_handlers.handle_who,
        "354": user_handlers.handle_whox,
        "315": user_handlers.handle_who_end,
        "324": listing_handlers.handle_channel_modes,
    }
    for numeric in SASL_NUMERICS:
        handlers[numeric] = negotiation_handlers.handle_sasl_numeric
    for numeric in listing_handlers.LIST_PART_MODES:
        handlers[numeric] = listing_handlers.handle_list_part
    for numeric in listing_handlers.LIST_END_MODES:
        handlers[numeric] = listing_handlers.handle_list_end
    return handlers


__all__ = ["MessageHandler", "default_handlers"]

#!/usr/bin/env python3
"""
Example entry point: connect, join channels and echo traffic to the log
"""

import asyncio
import logging
import sys

from ircwire.config import default_config_path, load_settings
from ircwire.errors import UsageError, log_error
from ircwire.irc import AsyncIRCClient, IrcEvent
from ircwire.logging_config import LoggerConfigurator, error_aggregator
from ircwire.logs.logger import logger

configurator = LoggerConfigurator()
configurator.configure()


def _wire_events(client: AsyncIRCClient, channels: list[str]) -> None:
    def on_complete(_payload):
        for channel in channels:
            client.join_channel(channel)

    def on_motd(payload):
        logger.log_event("app", "motd", level=logging.DEBUG, lines=payload.text.count("\n"))

    def on_message(payload):
        priv = payload.privmsg
        logger.log_event(
            "app", "message", nick=client.user.nick, target=priv.target, author=priv.author, text=priv.message
        )

    def on_notice(payload):
        logger.log_event("app", "notice", nick=client.user.nick, text=payload.text)

    def on_network_error(payload):
        logger.log_event("app", "network_error", level=logging.ERROR, reason=payload.reason)

    def on_error(payload):
        logger.log_event("app", "protocol_error", level=logging.WARNING, error=str(payload.error))

    client.on(IrcEvent.CONNECTION_COMPLETE, on_complete)
    client.on(IrcEvent.MOTD_RECEIVED, on_motd)
    client.on(IrcEvent.PRIVATE_MESSAGE_RECEIVED, on_message)
    client.on(IrcEvent.NOTICE_RECEIVED, on_notice)
    client.on(IrcEvent.NETWORK_ERROR, on_network_error)
    client.on(IrcEvent.ERROR, on_error)


async def main(channels: list[str]) -> int:
    """Main function"""
    settings = load_settings()
    client = AsyncIRCClient(settings)
    _wire_events(client, channels)
    logger.log_event("app", "start", server=settings.server)
    if not await client.connect():
        logger.log_event("app", "connect_failed", level=logging.ERROR, server=settings.server)
        return 1
    try:
        await client.wait_until_closed()
    except asyncio.CancelledError:
        logger.log_event("app", "interrupted", level=logging.WARNING)
        if client.connected:
            await client.quit("Shutting down")
        raise
    finally:
        logger.log_event("app", "shutdown")
        error_aggregator.log_summary_report()
    return 0


if __name__ == "__main__":
    # Config check mode
    if len(sys.argv) > 1 and sys.argv[1] == "--check-config":
        try:
            checked = load_settings()
        except UsageError as e:
            logger.logger.error(f"Configuration check failed: {e}")
            sys.exit(1)
        logger.logger.info(f"Configuration OK: {default_config_path()} ({checked.server})")
        sys.exit(0)

    try:
        sys.exit(asyncio.run(main(sys.argv[1:])))
    except KeyboardInterrupt:
        logger.logger.info("Application terminated by user")
        sys.exit(0)
    except UsageError as e:
        log_error("Configuration error", e)
        sys.exit(1)

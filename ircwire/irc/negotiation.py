"""IRCv3 capability negotiation and SASL PLAIN authentication."""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable

from ..constants import IRC_CAP_LS_VERSION, IRC_SASL_CHUNK_SIZE
from ..logs.logger import logger
from .capabilities import CapabilityPool
from .models import NegotiationPhase

SASL_SUCCESS = "903"
SASL_LOGGED_IN = "900"
SASL_MECHANISMS = "908"
SASL_FAILURES = frozenset({"902", "904", "905", "906", "907"})
SASL_NUMERICS = frozenset({SASL_LOGGED_IN, SASL_SUCCESS, SASL_MECHANISMS}) | SASL_FAILURES


def build_sasl_plain_chunks(
    account: str, password: str, chunk_size: int = IRC_SASL_CHUNK_SIZE
) -> list[str]:
    """Base64 PLAIN payload split for ``AUTHENTICATE``.

    A payload whose length is an exact multiple of ``chunk_size`` (zero
    included) is terminated with a lone ``+`` so the server knows it ended.
    """
    plain = f"{account}\0{account}\0{password}".encode()
    payload = base64.b64encode(plain).decode("ascii")
    chunks = [payload[i : i + chunk_size] for i in range(0, len(payload), chunk_size)]
    if len(payload) % chunk_size == 0:
        chunks.append("+")
    return chunks


class CapNegotiator:
    """Drives ``CAP LS/REQ/ACK/END`` and the SASL exchange for one session."""

    def __init__(
        self,
        capabilities: CapabilityPool,
        send: Callable[[str], None],
        sasl_credentials: tuple[str, str] | None = None,
        nick: str | None = None,
    ) -> None:
        self.capabilities = capabilities
        self.send = send
        self.sasl_credentials = sasl_credentials
        self.nick = nick
        self.phase = NegotiationPhase.IDLE
        self.sasl_mechanisms: list[str] = []
        self.sasl_succeeded: bool | None = None
        self._ls_buffer: list[str] = []
        self._cap_end_sent = False

    @property
    def negotiating_capabilities(self) -> bool:
        return self.phase in (NegotiationPhase.NEGOTIATING, NegotiationPhase.AUTHENTICATING_SASL)

    @property
    def authenticating_sasl(self) -> bool:
        return self.phase is NegotiationPhase.AUTHENTICATING_SASL

    def _set_phase(self, phase: NegotiationPhase) -> None:
        if phase is not self.phase:
            logger.log_event(
                "cap",
                "phase_change",
                level=logging.DEBUG,
                nick=self.nick,
                old_phase=self.phase.name,
                new_phase=phase.name,
            )
            self.phase = phase

    def start(self) -> None:
        """Begin a new session: forget enabled caps and send ``CAP LS 302``."""
        self.capabilities.reset()
        self.sasl_mechanisms = []
        self.sasl_succeeded = None
        self._ls_buffer = []
        self._cap_end_sent = False
        self._set_phase(NegotiationPhase.NEGOTIATING)
        self.send(f"CAP LS {IRC_CAP_LS_VERSION}")

    def reset(self) -> None:
        self._ls_buffer = []
        self._set_phase(NegotiationPhase.IDLE)

    def end_capabilities(self) -> None:
        """Send ``CAP END`` once per session."""
        if self._cap_end_sent:
            return
        self._cap_end_sent = True
        logger.log_event("cap", "end", level=logging.DEBUG, nick=self.nick)
        self.send("CAP END")

    def finish(self) -> None:
        """Registration completed (end of MOTD); negotiation is over."""
        self._ls_buffer = []
        self._set_phase(NegotiationPhase.READY)

    # CAP

    def handle_cap(self, params: list[str]) -> None:
        if len(params) < 2:
            logger.log_event("cap", "malformed", level=logging.WARNING, params=params)
            return
        sub = params[1].upper()
        if sub == "LS":
            self._handle_ls(params)
        elif sub == "ACK":
            self._handle_ack(_cap_list(params))
        elif sub == "NAK":
            self._handle_nak(_cap_list(params))
        elif sub == "NEW":
            self._handle_new(_cap_list(params))
        elif sub == "DEL":
            self._handle_del(_cap_list(params))
        else:
            logger.log_event("cap", "unhandled", level=logging.DEBUG, subcommand=sub)

    def _wanted(self, name: str) -> bool:
        if name not in self.capabilities or self.capabilities.is_enabled(name):
            return False
        return name != "sasl" or self.sasl_credentials is not None

    def _record_offer(self, tokens: list[str]) -> list[str]:
        request: list[str] = []
        for token in tokens:
            name, sep, value = token.partition("=")
            if name not in self.capabilities:
                continue
            self.capabilities[name].value = value if sep else None
            if self._wanted(name) and name not in request:
                request.append(name)
        return request

    def _handle_ls(self, params: list[str]) -> None:
        # CAP * LS * :<caps>  marks a continuation line (CAP 302 multi-line).
        if len(params) >= 4 and params[2] == "*":
            self._ls_buffer.extend(params[3].split())
            return
        self._ls_buffer.extend(_cap_list(params))
        offered, self._ls_buffer = self._ls_buffer, []
        logger.log_event(
            "cap", "ls_received", level=logging.DEBUG, nick=self.nick, offered=" ".join(offered)
        )
        request = self._record_offer(offered)
        if request:
            self._request(request)
        else:
            self.end_capabilities()

    def _request(self, names: list[str]) -> None:
        logger.log_event("cap", "request", nick=self.nick, capabilities=" ".join(names))
        self.send(f"CAP REQ :{' '.join(names)}")

    def _handle_ack(self, names: list[str]) -> None:
        acked: list[str] = []
        for raw in names:
            name = raw.lstrip("-~=")
            if name not in self.capabilities:
                continue
            if raw.startswith("-"):
                self.capabilities.disable(name)
            else:
                self.capabilities.enable(name)
                acked.append(name)
        logger.log_event("cap", "ack", nick=self.nick, capabilities=" ".join(acked))
        if not self.negotiating_capabilities:
            return
        if "sasl" in acked and self.sasl_credentials is not None and not self.authenticating_sasl:
            self._set_phase(NegotiationPhase.AUTHENTICATING_SASL)
            logger.log_event("sasl", "start", nick=self.nick, mechanism="PLAIN")
            self.send("AUTHENTICATE PLAIN")
        elif not self.authenticating_sasl:
            self.end_capabilities()

    def _handle_nak(self, names: list[str]) -> None:
        logger.log_event(
            "cap", "nak", level=logging.WARNING, nick=self.nick, capabilities=" ".join(names)
        )
        if self.negotiating_capabilities and not self.authenticating_sasl:
            self.end_capabilities()

    def _handle_new(self, names: list[str]) -> None:
        logger.log_event("cap", "new", level=logging.DEBUG, nick=self.nick, capabilities=" ".join(names))
        request = self._record_offer(names)
        # SASL can only be started during registration.
        if not self.negotiating_capabilities and "sasl" in request:
            request.remove("sasl")
        if request:
            self._request(request)

    def _handle_del(self, names: list[str]) -> None:
        logger.log_event("cap", "del", level=logging.DEBUG, nick=self.nick, capabilities=" ".join(names))
        for name in names:
            if name in self.capabilities:
                self.capabilities.disable(name)

    # SASL

    def handle_authenticate(self, params: list[str]) -> None:
        if not self.authenticating_sasl or not params or params[0] != "+":
            return
        if self.sasl_credentials is None:
            return
        account, password = self.sasl_credentials
        chunks = build_sasl_plain_chunks(account, password)
        for chunk in chunks:
            self.send(f"AUTHENTICATE {chunk}")
        logger.log_event(
            "sasl", "payload_sent", level=logging.DEBUG, nick=self.nick, chunks=len(chunks)
        )

    def handle_sasl_numeric(self, command: str, params: list[str]) -> None:
        if command == SASL_LOGGED_IN:
            logger.log_event("sasl", "logged_in", nick=self.nick, account=_param(params, 2))
            return
        if command == SASL_MECHANISMS:
            self.sasl_mechanisms = _param(params, 1).split(",") if _param(params, 1) else []
            logger.log_event(
                "sasl",
                "mechanisms",
                level=logging.WARNING,
                nick=self.nick,
                mechanisms=",".join(self.sasl_mechanisms),
            )
        elif command == SASL_SUCCESS:
            self.sasl_succeeded = True
            logger.log_event("sasl", "success", nick=self.nick)
        else:
            self.sasl_succeeded = False
            logger.log_event(
                "sasl",
                "failed",
                level=logging.ERROR,
                nick=self.nick,
                numeric=command,
                reason=params[-1] if params else "",
            )
        if self.authenticating_sasl:
            self._set_phase(NegotiationPhase.NEGOTIATING)
        self.end_capabilities()

    def handle_error(self) -> None:
        """Server ``ERROR`` during registration: stop negotiating."""
        if self.negotiating_capabilities and not self.authenticating_sasl:
            self.end_capabilities()
            self._set_phase(NegotiationPhase.READY)


def _cap_list(params: list[str]) -> list[str]:
    if len(params) < 3:
        return []
    return params[-1].split()


def _param(params: list[str], index: int) -> str:
    return params[index] if len(params) > index else ""

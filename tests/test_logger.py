from __future__ import annotations

import logging
import string

from ircwire.logs import logger as global_logger
from ircwire.logs.event_catalog import EVENT_TEMPLATES, flatten_templates, load_event_templates
from ircwire.logs.logger import IrcLogger


def test_templates_are_lowercase_and_renderable():
    assert ("app", "load_error") not in EVENT_TEMPLATES
    for (domain, action), template in EVENT_TEMPLATES.items():
        assert domain == domain.lower()
        assert action == action.lower()
        fields = {name for _, name, _, _ in string.Formatter().parse(template) if name}
        template.format(**dict.fromkeys(fields, "x"))


def test_template_text_used(caplog):
    caplog.set_level(logging.INFO, logger="ircwire")
    global_logger.log_event("irc", "pong", level=logging.INFO, server="irc.example.net")
    assert any("PONG from irc.example.net" in r.message for r in caplog.records)


def test_unknown_event_gets_derived_text(caplog):
    caplog.set_level(logging.INFO, logger="ircwire")
    global_logger.log_event("nonexistent_domain", "some_event", foo=1)
    assert any("nonexistent domain: some event" in r.message for r in caplog.records)


def test_missing_template_field_falls_back_to_raw_template(caplog):
    caplog.set_level(logging.INFO, logger="ircwire")
    global_logger.log_event("irc", "pong")
    assert any("PONG from {server}" in r.message for r in caplog.records)


def test_prefix_carries_nick_and_target(caplog):
    caplog.set_level(logging.INFO, logger="ircwire")
    global_logger.log_event("irc", "joined", nick="tester", target="#room")
    assert any(r.message.startswith("[tester>#room") for r in caplog.records)


def test_prefix_defaults_to_client(caplog):
    caplog.set_level(logging.INFO, logger="ircwire")
    global_logger.log_event("connection", "disconnected")
    assert any(r.message.startswith("[client") for r in caplog.records)


def test_debug_format_includes_event_name_and_context(caplog, monkeypatch):
    monkeypatch.setenv("DEBUG", "1")
    log = IrcLogger(name="ircwire.test_debug")
    caplog.set_level(logging.DEBUG, logger="ircwire.test_debug")
    log.log_event("request", "queued", level=logging.DEBUG, key="WHOIS alice", extra_field=3)
    message = caplog.records[-1].message
    assert message.startswith("request_queued")
    assert "Pending request WHOIS alice" in message
    assert "extra_field=3" in message


def test_long_event_names_are_truncated(caplog, monkeypatch):
    monkeypatch.setenv("DEBUG", "1")
    log = IrcLogger(name="ircwire.test_truncate")
    caplog.set_level(logging.DEBUG, logger="ircwire.test_truncate")
    log.log_event("a_rather_long_domain_name", "and_an_even_longer_action", level=logging.DEBUG)
    assert caplog.records[-1].message.split(" ", 1)[0].endswith("~")


def test_explicit_human_text_wins(caplog):
    caplog.set_level(logging.INFO, logger="ircwire")
    global_logger.log_event("irc", "pong", human="custom text", server="x")
    assert any("custom text" in r.message for r in caplog.records)


def test_secret_context_values_are_masked(caplog, monkeypatch):
    monkeypatch.setenv("DEBUG", "1")
    log = IrcLogger(name="ircwire.test_secrets")
    caplog.set_level(logging.DEBUG, logger="ircwire.test_secrets")
    log.log_event("sasl", "payload_sent", level=logging.DEBUG, chunks=1, payload="c2VjcmV0")
    message = caplog.records[-1].message
    assert "payload=****" in message
    assert "c2VjcmV0" not in message


def test_disabled_level_is_skipped(caplog):
    caplog.set_level(logging.INFO, logger="ircwire")
    global_logger.log_event("irc", "raw_in", level=logging.DEBUG, raw="PING :x")
    assert not any("PING :x" in r.message for r in caplog.records)


def test_flatten_skips_malformed_entries():
    raw = {"irc": {"ok": "text", "bad": 3}, "broken": "not a mapping", 5: {"x": "y"}}
    assert flatten_templates(raw) == {("irc", "ok"): "text"}
    assert flatten_templates(["not", "a", "mapping"]) == {}


def test_missing_catalog_file_yields_load_error(tmp_path):
    templates = load_event_templates(tmp_path / "absent.json")
    assert "missing" in templates[("app", "load_error")]


def test_invalid_catalog_json_yields_load_error(tmp_path):
    path = tmp_path / "event_templates.json"
    path.write_text("{broken")
    message = load_event_templates(path)[("app", "load_error")]
    assert message.startswith("Failed to load event templates")

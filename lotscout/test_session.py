"""
Tests for consent dismissal, challenge detection and session bookkeeping.
"""
import asyncio

from lotscout.config import AUTOTRADER, CrawlConfig
from lotscout.detector import is_blocked, looks_blocked
from lotscout.session import BrowserSession, dismiss_consent

PHRASES = AUTOTRADER.challenge_phrases


def test_looks_blocked():
    assert looks_blocked("Please VERIFY you are a   human", PHRASES)
    assert looks_blocked("We've detected unusual traffic from your network", PHRASES)
    assert not looks_blocked("2021 Honda Civic EX-L $23,500", PHRASES)
    assert not looks_blocked("", PHRASES)
    assert not looks_blocked(None, PHRASES)


def test_is_blocked_checks_title_and_body(page_cls):
    assert asyncio.run(is_blocked(page_cls(title="Access Denied"), PHRASES))
    assert asyncio.run(is_blocked(page_cls(body="Press & Hold to confirm you are a human"), PHRASES))
    assert not asyncio.run(is_blocked(page_cls(body="Cars for Sale near 59901"), PHRASES))


def test_dismiss_consent_first_visible_label(page_cls):
    agree = 'button:has-text("I Agree")'
    got_it = 'button:has-text("Got it")'
    page = page_cls(buttons=[agree, got_it])
    assert asyncio.run(dismiss_consent(page, AUTOTRADER.consent_labels)) == "I Agree"
    assert page.clicked == [agree]


def test_dismiss_consent_without_prompt(page_cls):
    page = page_cls()
    assert asyncio.run(dismiss_consent(page, AUTOTRADER.consent_labels)) is None
    assert page.clicked == []


def test_unopened_session_closes_once():
    session = BrowserSession(CrawlConfig())
    asyncio.run(session.close())
    asyncio.run(session.close())
    assert session.closed
    assert session.page is None

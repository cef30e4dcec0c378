from __future__ import annotations

import pytest

from ofgem_watch_agent.channels import RetrievalChannel
from ofgem_watch_agent.email_notifier import EmailTransport
from ofgem_watch_agent.models import Item

BASE_URL = "https://www.ofgem.gov.uk"

ARTICLE_HTML = """
<html><body>
<div class="results">
  <article class="search-result">
    <h3 class="text-fl-base text-underline">
      <a href="/publications/energy-market-outlook-2025"><span><span>
        Energy Market   Outlook 2025
      </span></span></a>
    </h3>
    <div class="meta">
      <span class="font-bold">Published date:</span>
      <time datetime="2025-08-31">31 August 2025</time>
    </div>
  </article>
  <article class="search-result">
    <h3><a href="/publications/older"><span><span>Older item</span></span></a></h3>
  </article>
</div>
</body></html>
"""


class DummyResponse:
    def __init__(self, *, text="", json_data=None, error=None):
        self.text = text
        self._json = json_data
        self._error = error

    def raise_for_status(self):
        if self._error is not None:
            raise self._error

    def json(self):
        if isinstance(self._json, Exception):
            raise self._json
        return self._json


class DummySession:
    def __init__(self, response):
        self.response = response
        self.last_url = None
        self.last_kwargs = {}
        self.calls = 0

    def get(self, url, **kwargs):
        self.calls += 1
        self.last_url = url
        self.last_kwargs = kwargs
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class ScriptedChannel(RetrievalChannel):
    """Channel that plays back a list of outcomes (Items or exceptions)."""

    def __init__(self, name, outcomes):
        super().__init__(extractor=None)
        self.name = name
        self.outcomes = list(outcomes)
        self.calls = 0

    def retrieve(self):
        raise NotImplementedError

    def fetch_item(self):
        self.calls += 1
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingTransport(EmailTransport):
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    def send(self, sender, recipients, subject, text, html=None):
        if self.error is not None:
            raise self.error
        self.sent.append(
            {
                "sender": sender,
                "recipients": list(recipients),
                "subject": subject,
                "text": text,
                "html": html,
            }
        )


@pytest.fixture
def article_html():
    return ARTICLE_HTML


@pytest.fixture
def sample_item():
    return Item(
        title="Energy Market Outlook 2025",
        link="https://x/pub/1",
        published_date="31 August 2025",
    )

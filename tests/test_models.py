from __future__ import annotations

from ofgem_watch_agent.models import UNKNOWN_DATE, Item


def test_identity_key_joins_title_and_link():
    item = Item(title="A", link="https://x/1", published_date="1 May 2025")
    assert item.identity_key == "A|https://x/1"


def test_identity_ignores_date():
    a = Item(title="A", link="L", published_date="1 May 2025")
    b = Item(title="A", link="L", published_date="2 May 2025")
    assert a.same_as(b)
    assert not a.same_as(None)


def test_is_valid_requires_title_and_link():
    assert Item(title="A", link="L").is_valid()
    assert not Item(title="", link="L").is_valid()
    assert not Item(title="A", link="").is_valid()


def test_to_dict_uses_state_field_names(sample_item):
    assert sample_item.to_dict() == {
        "title": "Energy Market Outlook 2025",
        "link": "https://x/pub/1",
        "date": "31 August 2025",
    }


def test_from_dict_rejects_bad_shapes():
    assert Item.from_dict(None) is None
    assert Item.from_dict([]) is None
    assert Item.from_dict({"title": "A"}) is None
    assert Item.from_dict({"title": "", "link": "L"}) is None
    assert Item.from_dict({"title": 3, "link": "L"}) is None


def test_from_dict_defaults_missing_date():
    item = Item.from_dict({"title": "A", "link": "L"})
    assert item == Item(title="A", link="L", published_date=UNKNOWN_DATE)

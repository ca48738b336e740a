from datetime import date

from contact_finder.demo import DEMO_SOURCE, build_fallback_contacts
from contact_finder.models import SearchParams


def _today() -> date:
    return date(2024, 5, 1)


def test_fallback_contacts_are_filtered_by_state_and_position() -> None:
    [contact] = build_fallback_contacts(SearchParams.create(state="RJ"), today=_today)
    assert contact.id == "sim-2"
    assert contact.source == DEMO_SOURCE
    assert contact.last_updated == date(2024, 5, 1)

    [contact] = build_fallback_contacts(
        SearchParams.create(position="procurement"), today=_today
    )
    assert contact.name == "Fernanda Santos"


def test_fallback_contacts_match_query_against_name_and_department() -> None:
    contacts = build_fallback_contacts(SearchParams.create("administração"), today=_today)
    assert [contact.id for contact in contacts] == ["sim-3", "sim-4"]


def test_fallback_contacts_return_everything_when_nothing_matches() -> None:
    contacts = build_fallback_contacts(SearchParams.create(state="AM"), today=_today)
    assert [contact.id for contact in contacts] == ["sim-1", "sim-2", "sim-3", "sim-4"]
    assert all(contact.email and contact.phone for contact in contacts)

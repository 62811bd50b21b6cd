# tests/test_validators.py
import pytest

from modules.job_scrape.lib.validators import (
    has_supply_chain_keywords,
    is_placeholder_text,
    is_valid_job_data,
    is_valid_job_url,
    resolve_job_url,
    supply_chain_tags,
)


@pytest.mark.parametrize(
    "text",
    [None, "", "   ", "****", "Company ****", "---", "(*)", "null", "N/A", "undefined", "12345", "!!!"],
)
def test_placeholder_text_detected(text):
    assert is_placeholder_text(text) is True


@pytest.mark.parametrize("text", ["Bidco Africa", "Nairobi, Kenya", "Supply Chain Officer", "3M Kenya"])
def test_real_text_is_not_placeholder(text):
    assert is_placeholder_text(text) is False


def test_valid_job_data_accepts_real_listing():
    assert is_valid_job_data("Logistics Officer", "Bidco Africa", "Nairobi", "BrighterMonday")


def test_valid_job_data_allows_empty_company_and_location():
    assert is_valid_job_data("Warehouse Clerk", "", None, "Fuzu")


@pytest.mark.parametrize(
    "title",
    ["", "Ab", "12 34", "Load more", "Sign in to apply", "Advertisement", "Apply now", "Read more", "****"],
)
def test_valid_job_data_rejects_bad_titles(title):
    assert not is_valid_job_data(title, "Acme", "Nairobi", "Fuzu")


def test_valid_job_data_rejects_masked_company():
    assert not is_valid_job_data("Procurement Assistant", "Acme ****", "Nairobi", "Fuzu")


def test_valid_job_data_rejects_site_name_as_title():
    assert not is_valid_job_data("brightermonday", "", "", "BrighterMonday")


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://example.com/jobs/123", True),
        ("http://example.com/careers?id=9", True),
        ("https://example.com/vacancy/logistics", True),
        ("https://example.com/about", False),
        ("/jobs/123", False),
        ("ftp://example.com/jobs/1", False),
        ("", False),
        (None, False),
    ],
)
def test_is_valid_job_url(url, expected):
    assert is_valid_job_url(url) is expected


def test_resolve_job_url_joins_relative_links():
    assert resolve_job_url("/jobs/7", "https://board.example.com") == "https://board.example.com/jobs/7"


@pytest.mark.parametrize("href", [None, "", "#", "javascript:void(0)", "mailto:hr@example.com", "/about-us"])
def test_resolve_job_url_drops_non_job_links(href):
    assert resolve_job_url(href, "https://board.example.com") is None


def test_supply_chain_keywords_and_tags():
    assert has_supply_chain_keywords("Senior LOGISTICS Coordinator")
    assert not has_supply_chain_keywords("Graphic Designer")
    assert not has_supply_chain_keywords(None)
    assert supply_chain_tags("Warehouse Lead", None, "Inventory and shipping") == ("warehouse", "inventory", "shipping")

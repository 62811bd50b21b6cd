# tests/test_cleaners.py
import pytest

from modules.job_scrape.lib import cleaners


def test_field_cleaners_strip_disallowed_and_collapse_whitespace():
    assert cleaners.clean_title("  Supply   Chain\nOfficer  <NEW> ") == "Supply Chain Officer NEW"
    assert cleaners.clean_company_name("Procter & Gamble (K) Ltd.") == "Procter & Gamble (K) Ltd."
    assert cleaners.clean_location("Nairobi,\tKenya!") == "Nairobi, Kenya"
    assert cleaners.clean_title(None) == ""


def test_field_cleaners_truncate():
    assert len(cleaners.clean_title("a" * 400)) == cleaners.TITLE_MAX
    assert len(cleaners.clean_company_name("b" * 400)) == cleaners.COMPANY_MAX
    assert len(cleaners.clean_location("c" * 400)) == cleaners.LOCATION_MAX


def test_clean_job_description_strips_markup_and_scripts():
    html = "<div><p>Manage the <b>warehouse</b> team.</p><script>var x = 1;</script></div>"
    assert cleaners.clean_job_description(html) == "Manage the warehouse team."


def test_clean_job_description_rejects_short_or_placeholder():
    assert cleaners.clean_job_description("<p>short</p>") == ""
    assert cleaners.clean_job_description("*************") == ""
    assert cleaners.clean_job_description(None) == ""


def test_clean_job_description_truncates():
    out = cleaners.clean_job_description("word " * 2000)
    assert len(out) <= cleaners.DESCRIPTION_MAX


def test_clean_description_unwraps_cdata():
    assert cleaners.clean_description("<![CDATA[<p>Plan inventory</p>]]>") == "Plan inventory"


def test_clean_description_handles_encoded_and_unbalanced_markers():
    assert cleaners.clean_description("&lt;![CDATA[Plan inventory]]&gt;") == "Plan inventory"
    assert cleaners.clean_description("&#60;![CDATA[Plan inventory") == "Plan inventory"
    assert cleaners.clean_description("Plan inventory]]>") == "Plan inventory"
    assert cleaners.clean_description("&amp;lt;p&amp;gt;Plan inventory&amp;lt;/p&amp;gt;") == "&lt;p&gt;Plan inventory&lt;/p&gt;"


def test_clean_description_decodes_entities_then_strips_revealed_tags():
    assert cleaners.clean_description("&lt;p&gt;Fish &amp; chips&nbsp;supplier&lt;/p&gt;") == "Fish & chips supplier"


def test_decode_entities_leaves_double_encoding_one_level_deep():
    assert cleaners.decode_entities("&amp;lt;") == "&lt;"
    assert cleaners.decode_entities("it&#39;s &quot;fine&quot;") == "it's \"fine\""


def test_decode_entities_handles_numeric_and_named_typography():
    assert cleaners.decode_entities("We&#8217;re hiring &ndash; now&hellip;") == "We’re hiring – now…"
    assert cleaners.decode_entities("a&nbsp;b") == "a b"


def test_clean_description_decodes_wordpress_entities_inside_cdata():
    out = cleaners.clean_description("<![CDATA[<p>We&#8217;re hiring &ndash; Logistics&#8230;</p>]]>")
    assert out == "We’re hiring – Logistics…"


@pytest.mark.parametrize("clean", [cleaners.clean_title, cleaners.clean_company_name, cleaners.clean_location])
@pytest.mark.parametrize(
    "raw",
    [
        "Supply ! Chain",
        "  Logistics\t@ #Officer  ",
        "Kapa Oil* Refineries (K) Ltd.",
        "!!! ???",
        "x" * 99 + " " + "y" * 300,
        "z" * 199 + " $" + "w" * 100,
        "word " * 120,
        " Nairobi, Kenya ",
    ],
)
def test_field_cleaners_are_idempotent(clean, raw):
    once = clean(raw)
    assert clean(once) == once

# tests/test_xml_extractor.py
from dataclasses import replace
from datetime import datetime, timezone

from modules.job_scrape.lib.models import JobType
from modules.job_scrape.lib.scrapers import registry, xml_feed
from modules.job_scrape.lib.scrapers.base import DEFAULT_LOCATION
from modules.job_scrape.lib.sites import FeedType


def _feed_site(make_site, source="JobWebKenya"):
    return make_site(
        source=source,
        url="https://jobwebkenya.com/feed/?post_type=job_listing",
        feed_type=FeedType.XML,
        job_container="item",
        title="title",
    )


# ----------------------------------------------------------------------
# RSS items
# ----------------------------------------------------------------------
def test_rss_items_infer_company_and_location_from_description(make_site, fixture_text):
    jobs = xml_feed.extract_jobs_from_xml(fixture_text("rss_feed.xml"), _feed_site(make_site))

    # the off-topic "Graphic Designer" item is filtered out
    assert [j.title for j in jobs] == ["Supply Chain Officer", "Warehouse Supervisor"]

    officer = jobs[0]
    assert officer.company == "Acme Ltd"
    assert officer.location == "Nairobi, Kenya"
    assert officer.job_url == "https://jobwebkenya.com/jobs/supply-chain-officer/"
    assert officer.employment_type == "Full-time"
    assert officer.job_type is JobType.FULL_TIME
    assert officer.skills == ("SAP", "Excel", "negotiation")
    assert officer.experience_level == "mid"
    assert officer.source_posted_at == datetime(2024, 12, 2, 9, 0, tzinfo=timezone.utc)
    # no expiry tag: deadline is 30 days after the publication date
    assert officer.deadline == datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)
    assert "<p>" not in officer.description and "CDATA" not in officer.description
    assert {"supply", "chain", "procurement"} <= set(officer.tags)


def test_rss_item_without_link_or_date(make_site, fixture_text):
    jobs = xml_feed.extract_jobs_from_xml(fixture_text("rss_feed.xml"), _feed_site(make_site))
    supervisor = jobs[1]
    assert supervisor.company == "Kapa Oil Refineries"
    assert supervisor.location == "Mombasa, Kenya"
    assert supervisor.salary == "KSH 50,000 - 70,000"
    assert supervisor.is_remote is True
    assert supervisor.job_url is None
    assert supervisor.deadline is None
    assert supervisor.source_posted_at is None


def test_wp_job_manager_tags_take_precedence(make_site, fixture_text):
    jobs = xml_feed.extract_jobs_from_xml(fixture_text("wp_job_manager_feed.xml"), _feed_site(make_site))
    assert [j.title for j in jobs] == ["Logistics Assistant", "Procurement Analyst"]

    assistant = jobs[0]
    assert assistant.company == "Bollore Logistics"
    assert assistant.location == "Mombasa"
    assert assistant.job_type is JobType.PART_TIME
    assert assistant.employment_type == "Part-time"
    assert assistant.deadline == datetime(2025, 2, 15, tzinfo=timezone.utc)
    # double-encoded CDATA markers are removed
    assert assistant.description == "Support the logistics desk with dispatch and documentation."


def test_job_meta_company_and_synthesized_description(make_site, fixture_text):
    analyst = xml_feed.extract_jobs_from_xml(fixture_text("wp_job_manager_feed.xml"), _feed_site(make_site))[1]
    assert analyst.company == "Kenya Power"
    assert analyst.location == DEFAULT_LOCATION
    assert analyst.description == "Procurement Analyst at Kenya Power in Kenya. This is a full time position."
    assert analyst.deadline is None


# ----------------------------------------------------------------------
# <job> elements
# ----------------------------------------------------------------------
def test_job_elements_tier(make_site, fixture_text):
    jobs = xml_feed.extract_jobs_from_xml(fixture_text("job_elements.xml"), _feed_site(make_site, "CustomFeed"))
    assert len(jobs) == 1
    manager = jobs[0]
    assert manager.title == "Logistics Manager"
    assert manager.company == "DHL Kenya"
    assert manager.location == "Nairobi"
    assert manager.job_url == "https://dhl.example.com/careers/logistics-manager"
    assert manager.job_type is JobType.CONTRACT
    assert manager.deadline == datetime(2025, 3, 31, tzinfo=timezone.utc)
    assert manager.salary == "KES 250,000"
    assert manager.source == "CustomFeed"


# ----------------------------------------------------------------------
# Generic scan and tier fallthrough
# ----------------------------------------------------------------------
SCAN_DOC = """
<rss><channel><title>Board</title><link>https://board.example.com</link><description>All jobs</description>
<entry><title>Inventory Analyst</title><link>https://board.example.com/jobs/1</link>
  <description>Company: Twiga Foods. Manage inventory counts.</description></entry>
<entry><title>Shipping Clerk</title><link>https://board.example.com/jobs/2</link>
  <description>Handle shipping documents at Maersk Kenya for the port team.</description></entry>
</channel></rss>
"""


def test_scan_generic_tags_zips_columns(make_site):
    jobs = xml_feed.scan_generic_tags(SCAN_DOC, _feed_site(make_site, "Board"))
    assert [(j.title, j.company, j.job_url) for j in jobs] == [
        ("Inventory Analyst", "Twiga Foods", "https://board.example.com/jobs/1"),
        ("Shipping Clerk", "Maersk Kenya", "https://board.example.com/jobs/2"),
    ]


def test_failing_tier_falls_through_to_next(make_site, fixture_text, monkeypatch):
    def boom(xml_text, site):
        raise RuntimeError("parser exploded")

    monkeypatch.setattr(
        xml_feed,
        "TIERS",
        (("broken", boom), ("rss_items", xml_feed.parse_rss_items)),
    )
    jobs = xml_feed.extract_jobs_from_xml(fixture_text("rss_feed.xml"), _feed_site(make_site))
    assert len(jobs) == 2


def test_empty_or_unrelated_documents_yield_nothing(make_site):
    site = _feed_site(make_site)
    assert xml_feed.extract_jobs_from_xml("", site) == []
    assert xml_feed.extract_jobs_from_xml("   ", site) == []
    assert xml_feed.extract_jobs_from_xml("<rss><channel></channel></rss>", site) == []


def test_feed_deduplicates_title_and_link(make_site):
    item = (
        "<item><title>Logistics Officer</title><link>https://x.example.com/jobs/1</link>"
        "<description>Coordinate logistics for the Nairobi depot.</description></item>"
    )
    doc = f"<rss><channel>{item}{item}</channel></rss>"
    assert len(xml_feed.extract_jobs_from_xml(doc, _feed_site(make_site))) == 1


def test_xml_extractor_is_registered():
    assert registry.get(FeedType.XML) is xml_feed.XmlFeedExtractor


def test_site_keywords_drop_entries_matching_none(make_site):
    site = replace(_feed_site(make_site), keywords=("warehouse",))
    procurement = {
        "title": "Procurement Officer",
        "description": "Company: Acme Ltd, Location: Nairobi. Run tenders for the buying team.",
    }
    warehouse = {
        "title": "Stores Assistant",
        "description": "Company: Acme Ltd, Location: Nairobi. Daily WAREHOUSE receiving and dispatch.",
    }
    assert xml_feed.build_feed_record(procurement, site) is None
    assert xml_feed.build_feed_record(warehouse, site).title == "Stores Assistant"


def test_rss_feed_narrowed_by_site_keywords(make_site, fixture_text):
    site = replace(_feed_site(make_site), keywords=("warehouse",))
    jobs = xml_feed.extract_jobs_from_xml(fixture_text("rss_feed.xml"), site)
    assert [j.title for j in jobs] == ["Warehouse Supervisor"]

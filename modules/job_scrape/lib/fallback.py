from __future__ import annotations

from .models import JobRecord, JobType
from .validators import supply_chain_tags

FALLBACK_SOURCE = "Fallback Jobs"

_FALLBACK = (
    (
        "Supply Chain Manager",
        "East Africa Breweries Limited",
        "Nairobi, Kenya",
        JobType.FULL_TIME,
        "We are looking for an experienced Supply Chain Manager to oversee our operations across East Africa. "
        "The role involves managing procurement, logistics, and distribution networks.",
        "https://eabl.com/careers",
    ),
    (
        "Procurement Officer",
        "Safaricom PLC",
        "Nairobi, Kenya",
        JobType.FULL_TIME,
        "Join our procurement team to manage supplier relationships and optimize our supply chain operations. "
        "Experience in telecommunications sector preferred.",
        "https://safaricom.co.ke/careers",
    ),
    (
        "Logistics Coordinator",
        "Kenya Airways",
        "Nairobi, Kenya",
        JobType.FULL_TIME,
        "Coordinate logistics operations for our cargo and passenger services. "
        "Manage warehouse operations and optimize distribution networks.",
        "https://www.kenya-airways.com/careers",
    ),
    (
        "Supply Chain Intern",
        "Unilever Kenya",
        "Nairobi, Kenya",
        JobType.INTERNSHIP,
        "Internship opportunity to gain hands-on experience in supply chain management. Learn about procurement, "
        "logistics, and operations in a fast-moving consumer goods environment.",
        "https://www.unilever.com/careers",
    ),
    (
        "Warehouse Manager",
        "Tuskys Supermarkets",
        "Mombasa, Kenya",
        JobType.FULL_TIME,
        "Manage warehouse operations including inventory control, staff supervision, and logistics coordination. "
        "Ensure efficient distribution to retail outlets.",
        "https://tuskys.com/careers",
    ),
)


def get_fallback_jobs() -> list[JobRecord]:
    """Curated stand-in listings persisted when every site came back empty."""
    return [
        JobRecord(
            title=title,
            company=company,
            location=location,
            source=FALLBACK_SOURCE,
            job_type=job_type,
            description=description,
            job_url=url,
            application_url=url,
            tags=supply_chain_tags(title, description),
        )
        for title, company, location, job_type, description, url in _FALLBACK
    ]

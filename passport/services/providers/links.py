"""
Directory-link providers for Gas Safe, FENSA and the Valuation Office Agency.

None of these registers offers a public API, so the payload is a curated set of
deep links with the caller's property identifiers filled in.
"""

from datetime import datetime, timezone
from typing import Dict, List

from passport.schemas.lookups import ExternalLink, ExternalLinksPayload, PropertyLookupRequest
from passport.services.providers.base import LookupProvider

# 30 days
LINKS_TTL = 30 * 24 * 60 * 60


class ExternalLinksProvider(LookupProvider):
    """Builds an external-links payload; subclasses supply the link set."""

    ttl = LINKS_TTL
    title = ""
    description = ""

    def cache_key(self, request: PropertyLookupRequest) -> str:
        # Requests that differ in postcode or address are cached separately
        parts = [self.name, request.identifier]
        for value in (request.postcode, request.address):
            if value and value != request.identifier:
                parts.append(value)
        return ":".join(parts)

    def build_items(self, request: PropertyLookupRequest) -> List[Dict]:
        raise NotImplementedError

    async def fetch(self, request: PropertyLookupRequest) -> Dict:
        postcode = request.postcode or ""
        items = []
        for item in self.build_items(request):
            # Every link carries the postcode so clients can prefill searches
            item["parameters"].setdefault("postcode", postcode)
            items.append(ExternalLink(**item))

        payload = ExternalLinksPayload(
            title=self.title,
            description=self.description,
            items=items,
            last_updated=datetime.now(timezone.utc),
        )
        return payload.model_dump(mode="json", by_alias=True)


class GasSafeProvider(ExternalLinksProvider):
    name = "gassafe"
    title = "Gas Safe Register - Gas Engineers"
    description = (
        "Access to Gas Safe registered engineers and gas safety certificates. "
        "Gas Safe Register is the official list of gas engineers who are legally "
        "allowed to work on gas appliances and installations."
    )

    def build_items(self, request: PropertyLookupRequest) -> List[Dict]:
        postcode = request.postcode or ""
        return [
            {
                "label": "Find a Gas Safe Engineer",
                "url": "https://www.gassaferegister.co.uk/find-an-engineer/",
                "notes": "Search for Gas Safe registered engineers by postcode or engineer ID",
                "parameters": {"postcode": postcode, "radius": "25", "engineer_type": "all"},
            },
            {
                "label": "Check Engineer Registration",
                "url": "https://www.gassaferegister.co.uk/check-an-engineer/",
                "notes": "Verify if an engineer is Gas Safe registered and check their qualifications",
                "parameters": {"engineer_id": "", "postcode": postcode, "qualification": "all"},
            },
            {
                "label": "Gas Safety Certificate Check",
                "url": "https://www.gassaferegister.co.uk/help-and-advice/check-a-gas-safety-certificate/",
                "notes": "Verify gas safety certificates and compliance documents",
                "parameters": {"certificate_number": "", "postcode": postcode, "installation_date": ""},
            },
            {
                "label": "Gas Safe Registration",
                "url": "https://www.gassaferegister.co.uk/register/",
                "notes": "Register as a Gas Safe engineer to legally work on gas installations",
                "parameters": {"engineer_type": "individual", "region": "england_wales"},
            },
            {
                "label": "Gas Safety Standards",
                "url": "https://www.gassaferegister.co.uk/help-and-advice/gas-safety-standards/",
                "notes": "Technical standards and safety requirements for gas installations",
                "parameters": {"standard_type": "gas_safety", "appliance_type": "all"},
            },
            {
                "label": "Gas Safe Contact",
                "url": "https://www.gassaferegister.co.uk/contact-us/",
                "notes": "Contact Gas Safe Register for technical support and registration queries",
                "parameters": {"enquiry_type": "technical", "region": "england_wales"},
            },
            {
                "label": "Gas Safety Regulations",
                "url": "https://www.hse.gov.uk/gas/",
                "notes": "Official HSE guidance on gas safety regulations and compliance",
                "parameters": {"regulation_type": "gas_safety", "industry": "domestic"},
            },
        ]


class FensaProvider(ExternalLinksProvider):
    name = "fensa"
    title = "FENSA - Fenestration Self-Assessment Scheme"
    description = (
        "Access to FENSA registered installers and window/door installation certificates. "
        "FENSA is the official scheme for self-certification of replacement windows and "
        "doors in England and Wales."
    )

    def build_items(self, request: PropertyLookupRequest) -> List[Dict]:
        postcode = request.postcode or ""
        return [
            {
                "label": "FENSA Installer Search",
                "url": "https://www.fensa.org.uk/find-a-fensa-installer",
                "notes": "Search for FENSA registered installers by postcode or company name",
                "parameters": {"postcode": postcode, "radius": "25", "installer_type": "all"},
            },
            {
                "label": "FENSA Certificate Check",
                "url": "https://www.fensa.org.uk/certificate-check",
                "notes": "Verify FENSA certificates for window and door installations",
                "parameters": {"certificate_number": "", "postcode": postcode, "installation_date": ""},
            },
            {
                "label": "FENSA Registration",
                "url": "https://www.fensa.org.uk/register",
                "notes": "Register as a FENSA installer for self-certification of installations",
                "parameters": {"installer_type": "company", "region": "england_wales"},
            },
            {
                "label": "FENSA Standards Guide",
                "url": "https://www.fensa.org.uk/standards",
                "notes": "Technical standards and requirements for window and door installations",
                "parameters": {"standard_type": "building_regulations", "product_type": "windows_doors"},
            },
            {
                "label": "FENSA Contact Information",
                "url": "https://www.fensa.org.uk/contact",
                "notes": "Contact FENSA for technical support and certification queries",
                "parameters": {"enquiry_type": "technical", "region": "england_wales"},
            },
            {
                "label": "Building Regulations Compliance",
                "url": "https://www.gov.uk/building-regulations",
                "notes": "Official government guidance on building regulations for windows and doors",
                "parameters": {"regulation_type": "part_l", "product_type": "windows_doors"},
            },
        ]


class VOAProvider(ExternalLinksProvider):
    name = "voa"
    title = "Valuation Office Agency (VOA) - Council Tax"
    description = (
        "Access to council tax band information and property valuations through official "
        "government services. These services provide details about council tax bands, "
        "property values, and appeals processes."
    )

    def build_items(self, request: PropertyLookupRequest) -> List[Dict]:
        postcode = request.postcode or ""
        return [
            {
                "label": "Check Council Tax Band",
                "url": "https://www.gov.uk/council-tax-bands",
                "notes": "Official government service to check council tax band for any property",
                "parameters": {"postcode": postcode, "address": request.address or ""},
            },
            {
                "label": "VOA Property Search",
                "url": "https://www.tax.service.gov.uk/check-council-tax-band",
                "notes": "Direct access to VOA's property search tool for detailed valuation information",
                "parameters": {"postcode": postcode, "uprn": request.uprn or ""},
            },
            {
                "label": "Council Tax Appeals",
                "url": "https://www.gov.uk/challenge-council-tax-band",
                "notes": "Information about challenging your council tax band if you believe it's incorrect",
                "parameters": {"reason": "valuation", "property_type": "residential"},
            },
            {
                "label": "VOA Contact Information",
                "url": "https://www.gov.uk/contact-voa",
                "notes": "Contact the Valuation Office Agency directly for specific property queries",
                "parameters": {"service": "council_tax", "region": "england"},
            },
            {
                "label": "Council Tax Bands Guide",
                "url": "https://www.gov.uk/council-tax-bands",
                "notes": "Comprehensive guide to understanding council tax bands and how they're calculated",
                "parameters": {"guide_type": "bands", "property_type": "residential"},
            },
            {
                "label": "Local Authority Contact",
                "url": "https://www.gov.uk/find-local-council",
                "notes": "Find your local council for specific council tax queries and payments",
                "parameters": {"postcode": postcode, "service": "council_tax"},
            },
        ]

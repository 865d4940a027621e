import logging

from .schema import ContentFields

logger = logging.getLogger("ContentVault")

_DASHBOARD_HTML = """
<div class="dashboard-grid">
    <div class="dashboard-card primary-card">
        <h3><i class="fas fa-coins"></i> Lead-to-Cash (L2C) Deep Dive</h3>
        <p>Explore the end-to-end revenue generation process in telecom from lead creation to payment collection.</p>
        <a href="page.html?slug=bss-lead-to-cash" class="btn btn-primary">Go to L2C Details</a>
    </div>
    <div class="dashboard-card secondary-card">
        <h3><i class="fas fa-wifi"></i> Mobile Technologies</h3>
        <p>Understand the evolution and key aspects of 3G, 4G, and 5G networks and their architectural components.</p>
        <a href="page.html?slug=mobile-technologies" class="btn btn-secondary">Explore Mobile Tech</a>
    </div>
    <div class="dashboard-card accent-card">
        <h3><i class="fas fa-cogs"></i> Network Fulfillment &amp; IN</h3>
        <p>Dive into how services are provisioned and managed within the network, including Intelligent Networks (IN).</p>
        <a href="page.html?slug=network-fulfillment" class="btn btn-accent">Learn Fulfillment</a>
    </div>
</div>
<section class="quick-links">
    <h2>Quick Resources</h2>
    <ul>
        <li><a href="https://www.tmforum.org/" target="_blank">TM Forum Official Website</a></li>
        <li><a href="https://www.3gpp.org/" target="_blank">3GPP Standards</a></li>
    </ul>
</section>
"""

_LEAD_TO_CASH_HTML = """
<section class="content-block">
    <h3>Overview</h3>
    <p>The <strong>Lead-to-Cash (L2C)</strong> process in telecommunications covers every activity from a
    potential customer showing initial interest to the provider collecting payment for services rendered.
    It is driven by a suite of interconnected Business Support Systems (BSS).</p>
</section>
<section class="content-block">
    <h3 class="stage-heading">1. Lead Generation / Creation</h3>
    <p>This initial stage focuses on identifying potential customers (leads) interested in the provider's offerings.</p>
    <h4>How Leads are Created:</h4>
    <ul>
        <li><strong>Marketing Campaigns:</strong> Online ads, social media, TV commercials promoting new bundles.</li>
        <li><strong>Website Forms:</strong> "Request info" or "check availability" forms.</li>
        <li><strong>Referrals:</strong> Existing customers referring new ones.</li>
        <li><strong>Direct Sales:</strong> Cold calls, field sales, in-store walk-ins.</li>
    </ul>
    <h4>Systems Involved:</h4>
    <ul>
        <li><strong>CRM:</strong> The central repository for all customer and lead data.</li>
        <li><strong>Marketing Automation Platform:</strong> Manages campaigns and captures web form submissions.</li>
    </ul>
</section>
"""

_MOBILE_TECH_HTML = """
<section class="content-block">
    <h3>Introduction to Mobile Network Generations</h3>
    <div class="accordion">
        <div class="accordion-item">
            <button class="accordion-header">3G (Third Generation)</button>
            <div class="accordion-content">
                <p><strong>Key Features:</strong> Mobile broadband, web browsing, email and basic video calls. UMTS (W-CDMA).</p>
                <p><strong>Architectural Components:</strong> MSC, GGSN, SGSN.</p>
            </div>
        </div>
        <div class="accordion-item">
            <button class="accordion-header">4G (Fourth Generation) / LTE</button>
            <div class="accordion-content">
                <p><strong>Key Features:</strong> All-IP network, much higher data rates, low latency, HD mobile video.</p>
                <p><strong>Architectural Components:</strong> Evolved Packet Core with MME, S-GW, P-GW and HSS.</p>
            </div>
        </div>
        <div class="accordion-item">
            <button class="accordion-header">5G (Fifth Generation)</button>
            <div class="accordion-content">
                <p><strong>Key Features:</strong> eMBB, URLLC and mMTC; network slicing and edge computing.</p>
                <p><strong>Architectural Components:</strong> Service-Based Architecture with AMF, SMF, UPF, AUSF, UDM and PCF.</p>
            </div>
        </div>
    </div>
</section>
"""

_NETWORK_FULFILLMENT_HTML = """
<section class="content-block">
    <h3>Network Fulfillment Process</h3>
    <p>Network fulfillment activates, provisions and ensures the delivery of telecom services on the network
    infrastructure. It is the bridge between the BSS (commercial layer) and OSS (operations layer).</p>
    <div class="accordion">
        <div class="accordion-item">
            <button class="accordion-header">Key Stages of Network Fulfillment</button>
            <div class="accordion-content">
                <ul>
                    <li><strong>Service Order Activation:</strong> Translating commercial orders into technical commands.</li>
                    <li><strong>Resource Provisioning:</strong> Allocating bandwidth, IP addresses and ports.</li>
                    <li><strong>Inventory Management:</strong> Tracking physical and logical assets.</li>
                    <li><strong>Activation &amp; Testing:</strong> Activating the service and verifying it works.</li>
                </ul>
            </div>
        </div>
        <div class="accordion-item">
            <button class="accordion-header">Intelligent Network (IN) Concepts</button>
            <div class="accordion-content">
                <p>Intelligent Networks allow new services to be introduced without changing the core switching infrastructure.</p>
                <ul>
                    <li><strong>SSP:</strong> Recognizes IN calls and queries the SCP.</li>
                    <li><strong>SCP:</strong> Contains the service logic and data.</li>
                    <li><strong>SDP:</strong> Stores subscriber data.</li>
                    <li><strong>SMP:</strong> Service creation and management.</li>
                </ul>
            </div>
        </div>
    </div>
</section>
"""

SEED_CONTENTS = [
    ContentFields(
        title="Dashboard Overview",
        slug="dashboard-overview",
        category="Dashboard",
        html_content=_DASHBOARD_HTML,
    ),
    ContentFields(
        title="Lead-to-Cash (L2C) Process in Telecom",
        slug="bss-lead-to-cash",
        category="BSS",
        html_content=_LEAD_TO_CASH_HTML,
    ),
    ContentFields(
        title="Mobile Technologies (3G/4G/5G)",
        slug="mobile-technologies",
        category="Mobile Tech",
        html_content=_MOBILE_TECH_HTML,
    ),
    ContentFields(
        title="Network Fulfillment & Intelligent Networks (IN)",
        slug="network-fulfillment",
        category="Network",
        html_content=_NETWORK_FULFILLMENT_HTML,
    ),
]


def seed_if_empty(store, contents=None):
    """Insert the seed set when the store holds no records; returns the count inserted."""
    if store.count_contents() > 0:
        return 0
    logger.info("Datastore is empty. Seeding initial content...")
    inserted = store.insert_many(contents if contents is not None else SEED_CONTENTS)
    logger.info("Seeded %d initial content items.", len(inserted))
    return len(inserted)

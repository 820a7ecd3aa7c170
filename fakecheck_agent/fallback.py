"""
Offline fallback analysis.

Produces a plausible AnalysisResult from lexical features of the URL alone. Used when
no Gemini credential is configured or the Gemini call fails. Never touches the network.
"""
from __future__ import annotations

import ipaddress
import random
import re
from difflib import SequenceMatcher
from urllib.parse import urlparse

import tldextract

from .models import AnalysisResult, Breakdown, Verdict, utc_timestamp

# Bundled public suffix snapshot only; no fetching.
_TLDX = tldextract.TLDExtract(cache_dir=None, suffix_list_urls=())

_TRUSTED_DOMAINS = {
    "amazon.com",
    "amazon.in",
    "amazon.co.uk",
    "amazon.de",
    "walmart.com",
    "ebay.com",
    "flipkart.com",
    "bestbuy.com",
    "target.com",
    "apple.com",
    "etsy.com",
    "costco.com",
    "myntra.com",
    "ikea.com",
    "homedepot.com",
    "aliexpress.com",
}

_TRUSTED_BRANDS = {d.split(".")[0] for d in _TRUSTED_DOMAINS}

SUSPICIOUS_TLDS = {
    "xyz", "click", "top", "shop", "club", "icu", "zip", "mov", "quest", "gq",
    "work", "fit", "tk", "cf", "ml", "ga", "pw", "win", "bid", "loan",
    "online", "store", "buzz", "cam", "live",
}

_LOOKALIKE_CHARS = str.maketrans({"0": "o", "1": "l", "3": "e", "4": "a", "5": "s", "7": "t", "$": "s"})

_FILLER_FINDINGS = {
    "reviews": [
        "Review volume could not be verified offline.",
        "No independent review data was consulted.",
    ],
    "sentiment": [
        "Customer sentiment was not sampled in offline mode.",
        "Sentiment analysis requires a live lookup.",
    ],
    "price": [
        "Price was not compared against other retailers.",
        "No live price check was performed.",
    ],
    "seller": [
        "Seller identity was inferred from the domain only.",
        "Seller history was not looked up.",
    ],
    "description": [
        "Listing text was not retrieved.",
        "Product description was not inspected.",
    ],
}


def _status_for(score: float) -> Verdict:
    if score >= 70:
        return "Genuine"
    if score >= 40:
        return "Suspicious"
    return "Fake"


def _is_ip_host(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True


def _lookalike_brand(label: str) -> str | None:
    """Trusted brand this domain label imitates, if any.

    Brands only match whole hyphen/digit-separated tokens, so "pineapple-farm" or
    "snapple" are not look-alikes of "apple".
    """
    if not label or label in _TRUSTED_BRANDS:
        return None
    plain = label.translate(_LOOKALIKE_CHARS).replace("rn", "m").replace("vv", "w")
    for token in re.split(r"[-\d]+", plain):
        if not token:
            continue
        for brand in sorted(_TRUSTED_BRANDS):
            if token == brand:
                return brand
            if len(brand) >= 5 and abs(len(token) - len(brand)) <= 1 and SequenceMatcher(None, token, brand).ratio() >= 0.8:
                return brand
    return None


def fallback_analyze(url: str, *, rng: random.Random | None = None) -> AnalysisResult:
    rng = rng or random.Random()

    try:
        parsed = urlparse(url if "://" in url else f"https://{url}")
        scheme, netloc = parsed.scheme, parsed.netloc
        hostname = (parsed.hostname or "").lower()
    except ValueError:
        # Unbalanced or non-IP bracketed hosts, e.g. "shop[1].com".
        scheme, netloc, hostname = "", "", ""
        malformed = True
    else:
        malformed = False
    ext = _TLDX(hostname)
    registrable = ext.top_domain_under_public_suffix.lower() if ext.top_domain_under_public_suffix else hostname
    label = ext.domain.lower()
    suffix = ext.suffix.lower()

    findings: dict[str, list[str]] = {slot: [] for slot in _FILLER_FINDINGS}
    reasons: list[str] = []

    if registrable in _TRUSTED_DOMAINS:
        score = 85 + rng.randint(0, 10)
        reasons.append(f"{registrable} is a well-known, established retailer.")
        findings["seller"].append("Listing is hosted on a major marketplace domain.")
        findings["reviews"].append("Established retailers typically carry verified purchase reviews.")
    else:
        score = 55 + rng.randint(-3, 3)

        if malformed:
            score -= 25
            reasons.append("URL is malformed; the store's host could not be determined.")
            findings["seller"].append("No valid host name could be read from the link.")

        brand = _lookalike_brand(label)
        if brand:
            score = min(score, 20)
            reasons.append(f"Domain imitates the trusted brand '{brand}' (possible typosquatting).")
            findings["seller"].append(f"'{registrable}' is not an official {brand} domain.")

        if _is_ip_host(hostname):
            score -= 30
            reasons.append("Store is addressed by a raw IP address instead of a domain name.")
            findings["seller"].append("No registered domain name is associated with the seller.")
        elif suffix.split(".")[-1] in SUSPICIOUS_TLDS:
            score -= 25
            reasons.append(f"Unusual top-level domain '.{suffix}' is common among scam stores.")
            findings["seller"].append(f"The '.{suffix}' extension is frequently used for short-lived shops.")

        if label.count("-") >= 2:
            score -= 10
            reasons.append("Domain name contains many hyphens.")
            findings["description"].append("Keyword-stuffed domain names are a common scam pattern.")

        if ext.subdomain and ext.subdomain.count(".") >= 2:
            score -= 10
            reasons.append("Deeply nested subdomains obscure the real site owner.")

        if "@" in netloc:
            score -= 20
            reasons.append("URL embeds credentials, a known redirection trick.")

        if scheme == "http":
            score -= 5
            findings["seller"].append("Site is served without HTTPS.")

        if len(url) > 120:
            score -= 5
            findings["description"].append("Unusually long URL with heavy tracking or obfuscation.")

        if not reasons:
            reasons.append("Domain is not a recognized retailer; reputation could not be verified offline.")

    score = float(max(0, min(100, score)))
    verdict = _status_for(score)

    if verdict == "Fake":
        findings["price"].append("Prices on look-alike stores are often far below market value.")
    for slot, options in _FILLER_FINDINGS.items():
        if not findings[slot]:
            findings[slot].append(rng.choice(options))

    if verdict == "Genuine":
        advice = "Looks safe. Still check the seller rating and return policy before you buy."
    elif verdict == "Suspicious":
        advice = "Proceed with caution. Verify the seller and pay only through protected payment methods."
    else:
        advice = "Avoid this listing. Do not enter payment details on this site."

    return AnalysisResult(
        url=url,
        trust_score=score,
        verdict=verdict,
        breakdown=Breakdown(**findings),
        reasons=reasons,
        advice=advice,
        timestamp=utc_timestamp(),
        sources=[],
        mode="fallback",
    )

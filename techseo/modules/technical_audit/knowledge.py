"""Static remediation knowledge for technical SEO issue types.

The tables are built once at import time and exposed read-only.  Issue types
are an open set: a type missing from the table gets the generic fallback
bullets rather than an error, so new crawler checks never need an engine
change to be aggregated.
"""

import re
from types import MappingProxyType
from typing import Any, Iterable, Mapping

GENERIC_RECOMMENDATIONS: tuple[str, ...] = (
    "Fix the identified issues to improve SEO performance",
    "Regularly monitor for similar issues",
    "Consider consulting with an SEO specialist for complex issues",
)

_RECOMMENDATIONS: dict[str, tuple[str, ...]] = {
    "broken_links": (
        "Fix or remove broken links to improve user experience and crawlability",
        "Set up 301 redirects for permanently moved content",
        "Update internal linking to point to valid URLs",
        "Check for typos in href attributes in your HTML",
    ),
    "missing_title": (
        "Add unique, descriptive title tags to all pages (50-60 characters optimal)",
        "Include primary keywords in titles when relevant",
        "Avoid duplicate titles across different pages",
        "Make titles compelling for users to improve click-through rates",
    ),
    "missing_meta_description": (
        "Add meta descriptions to all pages (120-155 characters optimal)",
        "Include relevant keywords naturally in the description",
        "Make descriptions compelling and actionable",
        "Avoid duplicate descriptions across pages",
    ),
    "missing_h1": (
        "Add a single H1 heading to each page that includes the main topic",
        "Ensure the H1 is visible and not hidden by CSS",
        "Make the H1 descriptive and relevant to the page content",
        "Maintain proper heading hierarchy (H1, H2, H3, etc.)",
    ),
    "duplicate_content": (
        "Implement canonical tags to indicate the preferred version of duplicate pages",
        "Use 301 redirects to consolidate duplicate URLs",
        "Modify content to make pages sufficiently different",
        "Use parameter handling in Google Search Console for URLs with query parameters",
    ),
    "slow_page": (
        "Compress and optimize images",
        "Minify CSS, JavaScript, and HTML",
        "Implement browser caching",
        "Use a content delivery network (CDN)",
        "Reduce server response time",
        "Defer loading of non-critical JavaScript",
    ),
    "mobile_unfriendly": (
        "Implement responsive design using viewport meta tags",
        "Ensure text is readable without zooming",
        "Size tap targets appropriately for mobile users",
        "Avoid horizontal scrolling on mobile devices",
        "Test your site with the Google Mobile-Friendly Test tool",
    ),
    "mixed_content": (
        "Update all HTTP resources to HTTPS",
        "Use relative URLs for resources when possible",
        "Check for hard-coded HTTP URLs in your code",
        "Update content embedded from third parties to use HTTPS",
    ),
    "redirect_chain": (
        "Update links to point directly to the final URL",
        "Simplify redirect chains to a single 301 redirect",
        "Check for redirect loops and fix them",
        "Update internal linking structure",
    ),
    "low_word_count": (
        "Expand content to provide more value to users",
        "Cover topics comprehensively with detailed information",
        "Add relevant subheadings, lists, and examples",
        "Focus on quality and relevance over arbitrary word counts",
    ),
    "duplicate_title": (
        "Review all pages with duplicate titles and create unique titles for each",
        "Ensure each title accurately describes the specific content of the page",
        "For similar content, highlight unique aspects in the title",
        "Audit your CMS templates to ensure they don't generate duplicate titles",
        "Check for dynamically generated titles from parameters",
    ),
    "duplicate_meta_description": (
        "Create unique meta descriptions for each page",
        "Focus on the unique value proposition of each page in the description",
        "Review and update meta description templates in your CMS",
        "Prioritize high-traffic pages when updating descriptions",
        "Make descriptions actionable and specific to the page",
    ),
    "duplicate_h1": (
        "Make every H1 unique and descriptive of its page",
        "Review templates that reuse the same H1 across pages",
        "Differentiate similar pages by their primary topic in the H1",
    ),
    "missing_canonical": (
        "Add proper canonical tags to all pages",
        "Use absolute URLs in canonical tags",
        "Make canonical tags consistent with other signals (sitemap, internal linking)",
        "Standardize URL patterns (www vs non-www, trailing slashes)",
    ),
    "canonical_mismatch": (
        "Confirm the canonical target is the preferred version of the page",
        "Ensure all canonical URLs use the same protocol (https)",
        "Check for and resolve conflicting canonical signals",
    ),
}

# Detector and legacy type names that share an entry above.
_ALIASES: dict[str, str] = {
    "broken_link": "broken_links",
    "low_content": "low_word_count",
    "thin_content": "low_word_count",
    "missing_viewport": "mobile_unfriendly",
    "incorrect_viewport": "mobile_unfriendly",
    "mobile_usability": "mobile_unfriendly",
}

RECOMMENDATIONS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    **_RECOMMENDATIONS,
    **{alias: _RECOMMENDATIONS[target] for alias, target in _ALIASES.items()},
})


def normalize_issue_type(issue_type: Any) -> str:
    """Lowercase *issue_type* and collapse whitespace runs to underscores."""
    if issue_type is None:
        return ""
    return re.sub(r"\s+", "_", str(issue_type).strip().lower())


def format_issue_type(issue_type: str) -> str:
    """``missing_meta_description`` -> ``Missing Meta Description``."""
    return " ".join(
        word[:1].upper() + word[1:].lower()
        for word in str(issue_type).split("_")
    )


def get_recommendations_for_type(issue_type: str) -> list[str]:
    """Return the remediation bullets for *issue_type*.

    Lookup is an exact match on the normalized key.  Unrecognized types get
    the three generic fallback bullets.
    """
    bullets = RECOMMENDATIONS.get(normalize_issue_type(issue_type), GENERIC_RECOMMENDATIONS)
    return list(bullets)


# ---------------------------------------------------------------------------
# Site-wide category bundles
# ---------------------------------------------------------------------------

# (category, trigger issue types, bullets) in presentation order.
_CATEGORY_RULES: tuple[tuple[str, frozenset[str], tuple[str, ...]], ...] = (
    ("title_issues", frozenset({"missing_title", "duplicate_title"}), (
        "Create unique, descriptive title tags for each page",
        "Keep titles between 50-60 characters in length",
        "Include your main keyword near the beginning of the title",
        "Use title format: Primary Keyword | Secondary Keyword | Brand Name",
        "Avoid keyword stuffing in titles",
        "Use a unique title on every page",
    )),
    ("meta_description_issues", frozenset({"missing_meta_description", "duplicate_meta_description"}), (
        "Write compelling meta descriptions between 120-158 characters",
        "Include relevant keywords naturally in the description",
        "Add a clear call-to-action when appropriate",
        "Make each meta description unique and specific to the page content",
        "Avoid truncation by keeping descriptions under 158 characters",
        "Use active voice in descriptions",
    )),
    ("heading_structure_issues", frozenset({"missing_h1", "duplicate_h1", "heading_structure"}), (
        "Ensure every page has exactly one H1 tag",
        "Make H1 tags unique and descriptive of the page content",
        "Use a logical heading hierarchy (H1 -> H2 -> H3...)",
        "Include relevant keywords in heading tags",
        "Keep headings concise and clear",
        "Avoid skipping heading levels",
    )),
    ("performance_issues", frozenset({"slow_page"}), (
        "Optimize and compress images before uploading",
        "Enable browser caching for static resources",
        "Minify CSS, JavaScript, and HTML",
        "Reduce server response time (TTFB)",
        "Implement lazy loading for images and videos",
        "Consider using a Content Delivery Network (CDN)",
        "Reduce the impact of third-party scripts",
        "Eliminate render-blocking resources",
        "Optimize Core Web Vitals (LCP, INP, CLS)",
    )),
    ("mobile_issues", frozenset({
        "mobile_usability", "mobile_unfriendly", "missing_viewport", "incorrect_viewport",
    }), (
        "Ensure text is readable without zooming",
        "Configure the viewport properly",
        "Size tap targets appropriately (minimum 48x48px)",
        "Avoid horizontal scrolling on mobile devices",
        "Use responsive design techniques",
        "Test your site on multiple devices and screen sizes",
        "Ensure forms are mobile-friendly",
    )),
    ("broken_link_issues", frozenset({"broken_link", "broken_links"}), (
        "Fix or remove all broken internal links",
        "Redirect URLs that have been permanently moved (301 redirects)",
        "Update outbound links to point to valid resources",
        "Implement a custom 404 page with navigation options",
        "Regularly monitor and fix broken links",
        "Check for broken links in your navigation menu and footer",
    )),
    ("redirect_issues", frozenset({"redirect_chain"}), (
        "Minimize redirect chains (ideally 0-1 redirects)",
        "Update internal links to point directly to final URLs",
        "Use 301 redirects for permanent moves",
        "Avoid redirect loops",
        "Implement server-side redirects rather than client-side when possible",
    )),
    ("url_structure_issues", frozenset({"url_structure"}), (
        "Keep URLs short and descriptive",
        "Use lowercase letters in URLs",
        "Include keywords in URLs when relevant",
        "Use hyphens (-) instead of underscores (_) to separate words",
        "Avoid using query parameters for indexable content",
        "Avoid special characters in URLs",
    )),
    ("canonicalization_issues", frozenset({
        "canonicalization_issue", "missing_canonical", "canonical_mismatch",
    }), (
        "Implement canonical tags on all pages",
        "Ensure canonical URLs are correctly formatted and valid",
        "Use absolute URLs in canonical tags",
        "Choose one version of your URL (with/without www, with/without trailing slash)",
        "Make sure redirects and canonical tags are consistent",
        "Set up proper handling of URL parameters",
    )),
    ("content_issues", frozenset({"low_content", "thin_content", "low_word_count", "duplicate_content"}), (
        "Expand thin content pages with meaningful, valuable information",
        "Ensure content is original and provides value to users",
        "Add relevant images, videos, or infographics to enhance content",
        "Update outdated content regularly",
        "Structure content with appropriate headings and paragraphs",
        "Aim for minimum 300 words for standard pages",
    )),
    ("schema_issues", frozenset({"missing_schema", "invalid_schema"}), (
        "Implement schema markup appropriate for your content type",
        "Keep schema current with latest standards from Schema.org",
        "Add organization and breadcrumb schema to all pages",
        "Ensure required properties are included in each schema type",
        "Test implementation with Google's Rich Results Test",
    )),
    ("robots_txt_issues", frozenset({"robots_txt_issue"}), (
        "Ensure robots.txt is accessible at domain.com/robots.txt",
        "Use proper syntax in robots.txt directives",
        "Don't block CSS or JavaScript files needed for rendering",
        "Add sitemap location to robots.txt",
        "Test robots.txt in Google Search Console",
    )),
    ("sitemap_issues", frozenset({"sitemap_issue"}), (
        "Create and maintain an XML sitemap of all indexable pages",
        "Keep sitemap under 50MB and 50,000 URLs",
        "Submit sitemap to Google Search Console",
        "Remove non-canonical URLs from sitemap",
        "Ensure all URLs in sitemap return 200 status code",
    )),
)

GENERAL_RECOMMENDATIONS: tuple[str, ...] = (
    "Implement HTTPS across the entire site",
    "Use descriptive, keyword-rich anchor text for internal links",
    "Optimize images with descriptive file names and alt text",
    "Implement breadcrumb navigation for user experience and SEO",
    "Create a logical site structure with minimal click depth",
    "Regularly audit and fix technical SEO issues",
    "Monitor Core Web Vitals and user experience metrics",
    "Ensure your site has proper internal linking",
)


def category_recommendations_for_types(issue_types: Iterable[str]) -> dict[str, list[str]]:
    """Site-wide recommendation bundles for a set of present issue types.

    Returns ``{}`` when no types are present; otherwise every triggered
    category plus ``general_recommendations``.
    """
    present = {normalize_issue_type(t) for t in issue_types}
    if not present:
        return {}
    bundles: dict[str, list[str]] = {}
    for category, triggers, bullets in _CATEGORY_RULES:
        if present & triggers:
            bundles[category] = list(bullets)
    bundles["general_recommendations"] = list(GENERAL_RECOMMENDATIONS)
    return bundles

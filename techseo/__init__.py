"""Technical SEO health: crawl issue aggregation, scoring and recommendations."""

__version__ = "1.0.0"

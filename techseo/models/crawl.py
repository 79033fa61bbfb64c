"""Site crawl, crawled page and technical issue SQLAlchemy models."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from techseo.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SiteCrawl(Base):
    """One crawl run of a site."""

    __tablename__ = "site_crawls"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    domain: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(50), default="pending", nullable=False)
    pages_crawled: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    health_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    pages: Mapped[list["CrawledPage"]] = relationship(
        back_populates="crawl", cascade="all, delete-orphan", lazy="selectin",
        order_by="CrawledPage.id",
    )
    issues: Mapped[list["TechnicalIssueRecord"]] = relationship(
        back_populates="crawl", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<SiteCrawl id={self.id} domain={self.domain!r} status={self.status}>"


class CrawledPage(Base):
    """A single page fetched during a crawl."""

    __tablename__ = "crawled_pages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    crawl_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("site_crawls.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    status_code: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    meta_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    h1: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    word_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    html_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    crawl: Mapped["SiteCrawl"] = relationship(back_populates="pages")

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "status_code": self.status_code,
            "title": self.title,
            "meta_description": self.meta_description,
            "h1": self.h1,
            "word_count": self.word_count,
            "html_content": self.html_content,
        }

    def __repr__(self) -> str:
        return f"<CrawledPage id={self.id} url={self.url[:60]!r} status={self.status_code}>"


class TechnicalIssueRecord(Base):
    """A technical SEO issue detected on a page during a crawl."""

    __tablename__ = "technical_issues"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    crawl_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("site_crawls.id", ondelete="CASCADE"), nullable=False, index=True
    )
    page_url: Mapped[str] = mapped_column(Text, default="", nullable=False)
    issue_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    issue_severity: Mapped[str] = mapped_column(String(20), nullable=False)
    issue_description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    fixed_status: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    detected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    crawl: Mapped["SiteCrawl"] = relationship(back_populates="issues")

    def __repr__(self) -> str:
        return (
            f"<TechnicalIssueRecord id={self.id} type={self.issue_type!r} "
            f"severity={self.issue_severity}>"
        )

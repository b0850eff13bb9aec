"""
BuildWatch Data Models
=====================

Pydantic models for the items flowing through the notification pipeline.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class BuildStatus(str, Enum):
    """Fixed status labels produced from a CI feed item title."""
    STILL_FAILING = "STILL FAILING"
    NOW_FIXED = "NOW FIXED"
    STILL_OK = "STILL OK"
    UNKNOWN = "UNKNOWN"
    SUPPRESSED = ""


class FeedItem(BaseModel):
    """One entry of the polled CI feed."""
    key: str = Field(..., description="Identity used to detect new entries")
    title: str = Field(default="", description="Entry title, e.g. 'job #12 broken since build #11'")
    links: List[str] = Field(default_factory=list, description="Entry links in feed order")
    content: Optional[str] = Field(default=None, description="Entry body, may embed HTML")

    def __str__(self) -> str:
        return f"FeedItem({self.title})"


class PullRequestInfo(BaseModel):
    """Pull request metadata fetched from GitHub."""
    title: str = ""
    author: str = ""


class Notification(BaseModel):
    """A build status change relayed to chat."""
    id: int = Field(..., ge=0, description="Pull request number")
    job_url: str = Field(..., description="Link to the triggering CI job")
    title: str = Field(default="", description="Pull request title, empty if lookup failed")
    author: str = Field(default="", description="Pull request author login, empty if lookup failed")
    status: str = Field(default="", description="Status label, empty means suppressed")

    def enrich(self, info: PullRequestInfo) -> "Notification":
        """Copy pull request metadata onto this notification."""
        self.title = info.title
        self.author = info.author
        return self

    def render(self) -> str:
        """Human-readable message sent to chat and stdout."""
        return f"PR#{self.id}({self.title}) authored by {self.author} is {self.status}"

"""Paper data model and the fixed classification vocabularies."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Literal, Optional


class BankingDomain(str, Enum):
    """Banking business area a paper applies to."""

    PORTFOLIO_OPTIMIZATION = "Portfolio Optimization"
    RISK_CONTROL = "Investment Risk Control"
    FRAUD_DETECTION = "Fraud Detection"
    AML_COMPLIANCE = "AML Compliance & Control"
    CUSTOMER_SERVICING = "Customer Servicing (eKYC/CDD)"
    GENERAL_BANKING = "General Banking AI"


class AIDomain(str, Enum):
    """AI technique family a paper belongs to."""

    LLM_SFT = "LLM SFT"
    RLHF = "RLHF"
    AGENT_DESIGN = "Agent Designing"
    AGENTIC_PIPELINE = "Agentic AI Pipeline"
    RAG = "RAG Systems"
    PREDICTIVE_ANALYTICS = "Predictive Analytics"


class Methodology(str, Enum):
    """Research methodology of a paper."""

    EMPIRICAL = "Empirical Study"
    THEORETICAL = "Theoretical Framework"
    CASE_STUDY = "Case Study"
    SURVEY = "Survey/Review"
    PROTOTYPE = "Prototype/Implementation"


# One designated fallback per vocabulary (not simply the first member)
DEFAULT_BANKING_DOMAIN = BankingDomain.GENERAL_BANKING
DEFAULT_AI_DOMAIN = AIDomain.PREDICTIVE_ANALYTICS
DEFAULT_METHODOLOGY = Methodology.THEORETICAL


class DateRange(str, Enum):
    """Date horizon offered when starting a collection run."""

    PAST_MONTH = "Past Month"
    PAST_YEAR = "Past Year"
    PAST_3_YEARS = "Past 3 Years"
    ALL_TIME = "All Time"


class CollectionStatus(str, Enum):
    """Status flag of an interactive collection run."""

    IDLE = "idle"
    OPTIMIZING = "optimizing"
    SEARCHING = "searching"
    SAVING = "saving"
    COMPLETED = "completed"
    ERROR = "error"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Return the literal string values of *enum_cls* in declaration order."""
    return [member.value for member in enum_cls]


def coerce_enum(value: Any, enum_cls: type[Enum], default: Enum) -> Enum:
    """Return the member whose value equals *value* exactly, else *default*."""
    for member in enum_cls:
        if value == member.value:
            return member
    return default


@dataclass
class Paper:
    """Represents a classified research paper held in the catalogue."""

    id: str
    title: str
    abstract: str
    authors: list[str]
    publication_date: str
    source: str
    url: str
    citation_count: int = 0
    banking_domain: BankingDomain = DEFAULT_BANKING_DOMAIN
    ai_domain: AIDomain = DEFAULT_AI_DOMAIN
    methodology: Methodology = DEFAULT_METHODOLOGY
    tags: list[str] = field(default_factory=list)
    is_favorite: bool = False
    collected_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON shape used by the store."""
        return {
            "id": self.id,
            "title": self.title,
            "abstract": self.abstract,
            "authors": list(self.authors),
            "publicationDate": self.publication_date,
            "source": self.source,
            "url": self.url,
            "citationCount": self.citation_count,
            "bankingDomain": self.banking_domain.value,
            "aiDomain": self.ai_domain.value,
            "methodology": self.methodology.value,
            "tags": list(self.tags),
            "isFavorite": self.is_favorite,
            "collectedAt": self.collected_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Paper":
        """Rebuild a paper from its stored form.

        Applies the read-time repairs for legacy records: non-list authors
        are wrapped, non-list tags are emptied and missing title/abstract
        get short placeholders.
        """
        authors = data.get("authors")
        if not isinstance(authors, list):
            authors = [authors] if isinstance(authors, str) else ["Unknown"]
        tags = data.get("tags")
        if not isinstance(tags, list):
            tags = []
        citation_count = data.get("citationCount")
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title") or "Untitled",
            abstract=data.get("abstract") or "No abstract",
            authors=[str(a) for a in authors],
            publication_date=str(data.get("publicationDate") or ""),
            source=str(data.get("source") or ""),
            url=str(data.get("url") or ""),
            citation_count=citation_count if isinstance(citation_count, int) else 0,
            banking_domain=coerce_enum(data.get("bankingDomain"), BankingDomain, DEFAULT_BANKING_DOMAIN),
            ai_domain=coerce_enum(data.get("aiDomain"), AIDomain, DEFAULT_AI_DOMAIN),
            methodology=coerce_enum(data.get("methodology"), Methodology, DEFAULT_METHODOLOGY),
            tags=[str(t) for t in tags],
            is_favorite=bool(data.get("isFavorite", False)),
            collected_at=str(data.get("collectedAt") or ""),
        )


@dataclass
class SearchCriteria:
    """Parameters of one interactive collection run."""

    topic: str
    sources: list[str] = field(default_factory=list)
    date_range: DateRange = DateRange.PAST_YEAR
    use_optimization: bool = True


@dataclass
class ChatMessage:
    """A single turn of the research-assistant conversation."""

    role: Literal["user", "model"]
    text: str
    timestamp: float = 0.0


@dataclass
class User:
    """Locally signed-in user."""

    email: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Optional["User"]:
        if not isinstance(data, dict) or not data.get("email"):
            return None
        return cls(email=str(data["email"]), name=str(data.get("name", "")))

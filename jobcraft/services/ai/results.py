"""Result records returned by adapters and the aggregator.

Every public adapter and aggregator operation returns exactly one of a
success record or a Failure. Callers branch on the ``error`` attribute,
never on exceptions, for normal provider failure.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class FailureKind(str, Enum):
    """Why an adapter call failed. For logging only, not control flow."""

    TRANSPORT = "transport"
    VENDOR = "vendor"
    UNSUPPORTED_CAPABILITY = "unsupported_capability"
    MALFORMED_RESPONSE = "malformed_response"
    NO_PROVIDERS = "no_providers"


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class Failure:
    """Uniform failure record: ``{error: true, message}``."""

    message: str
    provider: Optional[str] = None
    kind: Optional[FailureKind] = None
    error: bool = field(default=True, init=False)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"error": True, "message": self.message}
        if self.provider:
            data["provider"] = self.provider
        return data


@dataclass
class TextResult:
    """Text generated by one adapter.

    Attributes:
        provider: Provider key (e.g. "groq")
        model: Model identifier used
        text: Generated text
        usage: Token counts as reported (or estimated) by the vendor
        latency_ms: Wall-clock duration of the remote call
        finish_reason: Vendor stop/finish reason
        cached: True when replayed from the response cache
    """

    provider: str
    model: str
    text: str
    usage: Dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0
    finish_reason: Optional[str] = None
    cached: bool = False
    error: bool = field(default=False, init=False)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("error")
        return _compact(data)


@dataclass
class EmbeddingResult:
    provider: str
    model: str
    embedding: List[float]
    latency_ms: float = 0.0
    cached: bool = False
    error: bool = field(default=False, init=False)

    @property
    def dimensions(self) -> int:
        return len(self.embedding)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("error")
        data["dimensions"] = self.dimensions
        return data


@dataclass
class AnalysisResult:
    provider: str
    model: str
    analysis: str
    usage: Dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0
    cached: bool = False
    error: bool = field(default=False, init=False)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("error")
        return data


@dataclass
class GenerationResult:
    """Aggregated text generation result.

    ``provider`` is set by single/fastest; ``providers_used`` and
    ``individual_responses`` by weighted/consensus; ``consensus_score``
    by consensus only.
    """

    strategy: str
    text: str
    provider: Optional[str] = None
    model: Optional[str] = None
    providers_used: Optional[List[str]] = None
    consensus_score: Optional[float] = None
    individual_responses: Optional[List[Dict[str, Any]]] = None
    usage: Optional[Dict[str, int]] = None
    response_time_ms: Optional[float] = None
    error: bool = field(default=False, init=False)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("error")
        return _compact(data)


@dataclass
class AggregatedEmbedding:
    embedding: List[float]
    providers_used: List[str]
    error: bool = field(default=False, init=False)

    @property
    def dimensions(self) -> int:
        return len(self.embedding)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "embedding": self.embedding,
            "dimensions": self.dimensions,
            "providers_used": self.providers_used,
        }


@dataclass
class AggregatedAnalysis:
    analyses: List[Dict[str, str]]
    combined_analysis: str
    error: bool = field(default=False, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analyses": self.analyses,
            "combined_analysis": self.combined_analysis,
        }


TextOutcome = Union[TextResult, Failure]
EmbeddingOutcome = Union[EmbeddingResult, Failure]
AnalysisOutcome = Union[AnalysisResult, Failure]

from dataclasses import dataclass, field
from typing import Literal

BlockType = Literal["paragraph", "line", "word"]
FieldType = Literal["text", "number", "date", "checkbox", "signature"]


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in provider coordinates (pixels or PDF points)."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @classmethod
    def from_points(cls, points: list[tuple[float, float]]) -> "BoundingBox":
        """Build the enclosing box of a polygon. Fewer than two points gives an empty box."""
        if len(points) < 2:
            return cls()
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return cls(
            x=max(0.0, min(xs)),
            y=max(0.0, min(ys)),
            width=max(xs) - min(xs),
            height=max(ys) - min(ys),
        )

    @classmethod
    def from_edges(cls, x0: float, top: float, x1: float, bottom: float) -> "BoundingBox":
        return cls.from_points([(x0, top), (x1, bottom)])


@dataclass(frozen=True)
class TextBlock:
    text: str
    confidence: float
    bounding_box: BoundingBox = field(default_factory=BoundingBox)
    block_type: BlockType = "paragraph"


@dataclass(frozen=True)
class TableData:
    headers: list[str]
    rows: list[list[str]]
    confidence: float
    bounding_box: BoundingBox = field(default_factory=BoundingBox)


@dataclass(frozen=True)
class DetectedFormField:
    """A best-effort guess at a labelled value found in the document."""

    name: str
    value: str
    field_type: FieldType
    confidence: float
    bounding_box: BoundingBox = field(default_factory=BoundingBox)


@dataclass(frozen=True)
class OcrMetadata:
    page_count: int
    language: str
    processing_time_ms: int
    provider: str


@dataclass(frozen=True)
class OcrResult:
    """Normalized output of the text extraction stage. Immutable once built."""

    text: str
    confidence: float
    blocks: list[TextBlock] = field(default_factory=list)
    tables: list[TableData] = field(default_factory=list)
    form_fields: list[DetectedFormField] = field(default_factory=list)
    metadata: OcrMetadata = field(
        default_factory=lambda: OcrMetadata(
            page_count=0, language="unknown", processing_time_ms=0, provider="none"
        )
    )


@dataclass
class RawExtraction:
    """What a provider adapter hands back before post-processing.

    token_confidences holds every per-token (word/symbol) confidence the
    provider reported; an empty list means the provider reports none.
    """

    text: str
    provider: str
    page_count: int = 1
    blocks: list[TextBlock] = field(default_factory=list)
    token_confidences: list[float] = field(default_factory=list)
    tables: list[TableData] = field(default_factory=list)
    form_fields: list[DetectedFormField] = field(default_factory=list)

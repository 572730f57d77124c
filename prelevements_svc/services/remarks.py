"""
Remark normalization for parameter samples.

Samples may carry a single ``remark`` and/or a list of ``remarks``. They are
merged into one bounded, deduplicated comment so tooltips and calendars show
a single annotation per value.
"""
from collections.abc import Mapping
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from core.config import settings


@dataclass
class Meta:
    """Annotation attached to a daily value or timeline sample."""
    comment: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _read_field(sample: Any, name: str) -> Any:
    if isinstance(sample, Mapping):
        return sample.get(name)
    return getattr(sample, name, None)


def _clean(remark: Any) -> Optional[str]:
    if not isinstance(remark, str):
        return None
    stripped = remark.strip()
    return stripped or None


def collect_remarks(sample: Any) -> List[str]:
    """
    Collect the unique, trimmed remarks of a sample in order of appearance.

    ``remark`` comes first, then each entry of ``remarks`` (a bare string
    counts as one entry). Non-text entries are ignored. The list is capped
    at ``settings.series_remark_max_items`` entries.
    """
    if sample is None:
        return []

    candidates = [_read_field(sample, 'remark')]
    remarks = _read_field(sample, 'remarks')
    if isinstance(remarks, str):
        candidates.append(remarks)
    elif isinstance(remarks, (list, tuple)):
        candidates.extend(remarks)

    unique: List[str] = []
    for candidate in candidates:
        cleaned = _clean(candidate)
        if cleaned is not None and cleaned not in unique:
            unique.append(cleaned)

    return unique[:settings.series_remark_max_items]


def normalize_remarks(sample: Any) -> Optional[str]:
    """
    Merge the remarks of a sample into a single comment.

    Args:
        sample: Mapping, pydantic model or object with optional
            ``remark`` (str) and ``remarks`` (list of str).

    Returns:
        Remarks joined with " • ", or None when there is nothing to report.

    Example:
        >>> normalize_remarks({'remark': 'Capteur défectueux', 'remarks': ['Estimation']})
        'Capteur défectueux • Estimation'
    """
    remarks = collect_remarks(sample)
    if not remarks:
        return None
    return settings.series_remark_separator.join(remarks)


def build_meta(sample: Any) -> Optional[Meta]:
    """Wrap the normalized remarks of a sample in a Meta, or None."""
    comment = normalize_remarks(sample)
    return Meta(comment=comment) if comment is not None else None

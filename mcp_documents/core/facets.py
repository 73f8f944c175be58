"""
Facet filtering

Builds counted facet buckets from documents already in memory, adapts
server-side search aggregations to the same FacetGroup shape, and applies a
conjunctive single-select filter. Every function is pure: inputs are never
mutated and each call returns fresh values.
"""
from typing import Any, Iterable, Mapping, Optional, Sequence

from .domain import (
    ActiveFilter,
    AggregationBucket,
    AttributeSelector,
    FacetBucket,
    FacetGroup,
)


ActiveFilterSet = dict[str, str]


def _metadata_attr(name: str):
    def getter(entity: Any) -> Optional[str]:
        metadata = getattr(entity, "metadata", None)
        return getattr(metadata, name, None) if metadata is not None else None
    return getter


# Facets shown on the document list, derived locally
LIST_SELECTORS: tuple[AttributeSelector, ...] = (
    AttributeSelector("company", "Company", _metadata_attr("company")),
    AttributeSelector("holder", "Holder", _metadata_attr("holder")),
    AttributeSelector("year", "Year", _metadata_attr("year"), sort="key_desc"),
    AttributeSelector("docType", "Type", _metadata_attr("document_type")),
)

# Aggregations the search endpoint may return, with display labels
SEARCH_FACET_LABELS: dict[str, str] = {
    "companies": "Company",
    "holders": "Holder",
    "documentTypes": "Document Type",
    "taxTypes": "Tax Type",
    "years": "Year",
    "fileTypes": "File Type",
}


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def build_facets(
    entities: Iterable[Any],
    selectors: Sequence[AttributeSelector] = LIST_SELECTORS,
    active: Optional[Mapping[str, str]] = None,
) -> list[FacetGroup]:
    """Count distinct attribute values across entities, one group per selector.

    Year-like selectors sort by key descending; the rest by count
    descending with ties kept in first-seen order. Groups with no values
    are left out.
    """
    entities = list(entities)
    active = active or {}
    groups = []
    for selector in selectors:
        # dicts keep insertion order, so this records first-seen order
        counts: dict[str, int] = {}
        for entity in entities:
            value = selector.getter(entity)
            if _is_blank(value):
                continue
            counts[value] = counts.get(value, 0) + 1

        if not counts:
            continue

        if selector.sort == "key_desc":
            ordered = sorted(counts.items(), key=lambda item: item[0], reverse=True)
        else:
            # sorted() is stable, so ties stay in first-seen order
            ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)

        groups.append(FacetGroup(
            group_key=selector.group_key,
            label=selector.label,
            buckets=tuple(FacetBucket(key=key, count=count) for key, count in ordered),
            selected=active.get(selector.group_key),
        ))
    return groups


def from_server_aggregations(
    aggregations: Optional[Mapping[str, Optional[Sequence[AggregationBucket]]]],
    known_attributes: Mapping[str, str] = SEARCH_FACET_LABELS,
    active: Optional[Mapping[str, str]] = None,
) -> list[FacetGroup]:
    """Adapt search aggregations to facet groups.

    Unknown attributes and empty bucket lists are dropped. Bucket order is
    kept exactly as the server sent it.
    """
    active = active or {}
    groups = []
    for attribute, buckets in (aggregations or {}).items():
        label = known_attributes.get(attribute)
        if label is None or not buckets:
            continue
        groups.append(FacetGroup(
            group_key=attribute,
            label=label,
            buckets=tuple(FacetBucket(key=b.key, count=b.doc_count) for b in buckets),
            selected=active.get(attribute),
        ))
    return groups


def apply_filters(
    entities: Iterable[Any],
    active: Mapping[str, str],
    selectors: Sequence[AttributeSelector] = LIST_SELECTORS,
) -> list[Any]:
    """Keep entities matching every active filter exactly (logical AND)"""
    entities = list(entities)
    if not active:
        return entities

    getters = {s.group_key: s.getter for s in selectors}

    def matches(entity: Any) -> bool:
        for group_key, selected in active.items():
            getter = getters.get(group_key)
            if getter is None:
                return False
            value = getter(entity)
            if _is_blank(value) or value != selected:
                return False
        return True

    return [entity for entity in entities if matches(entity)]


def toggle(group_key: str, item_key: Optional[str], current: Mapping[str, str]) -> ActiveFilterSet:
    """Select, replace or clear one group's value; other groups are untouched"""
    updated = dict(current)
    if item_key is None or current.get(group_key) == item_key:
        updated.pop(group_key, None)
    else:
        updated[group_key] = item_key
    return updated


def active_filters(active: Mapping[str, str], labels: Mapping[str, str]) -> list[ActiveFilter]:
    """Active selections as filter-bar chips, in label order"""
    return [
        ActiveFilter(group_key=key, group_label=label, value=active[key])
        for key, label in labels.items()
        if key in active
    ]


def selector_labels(selectors: Sequence[AttributeSelector]) -> dict[str, str]:
    return {s.group_key: s.label for s in selectors}

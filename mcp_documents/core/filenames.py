"""
Filename composition

Derives the canonical filename of a document from its metadata. The upload
and edit flows both call compose() so the preview shown before saving is
exactly the name that gets persisted.
"""
import re
from typing import Optional

from .domain import DocumentSummary, MetadataFields, OriginalFilenameInfo


WINTON_TOKEN = "WintonDisclosure"

_UNDERSCORE_RUN = re.compile(r"_+")


def _present(value: Optional[str]) -> str:
    return value if value and value.strip() else ""


def date_part(fields: MetadataFields) -> str:
    """YYYYMMDD-style prefix; month and day are zero-padded, blanks skipped"""
    part = ""
    if _present(fields.year):
        part += fields.year
    if _present(fields.month):
        part += fields.month.rjust(2, "0")
    if _present(fields.day):
        part += fields.day.rjust(2, "0")
    return part


def stem_parts(fields: MetadataFields) -> list[str]:
    """Ordered name tokens for the naming mode the fields select.

    Winton disclosures take priority over tax filings, which take priority
    over the default layout.
    """
    date = date_part(fields)
    if fields.winton_disclosure:
        return [date, WINTON_TOKEN, fields.holder, fields.company, fields.account_number]
    if _present(fields.tax_type):
        return [
            f"{fields.tax_type}{date}",
            fields.holder,
            fields.company,
            fields.document_type,
            fields.purpose,
            fields.account_number,
        ]
    return [
        date,
        fields.holder,
        fields.company,
        fields.document_type,
        fields.purpose,
        fields.account_number,
    ]


def compose_stem(fields: MetadataFields) -> str:
    joined = "_".join(p for p in stem_parts(fields) if _present(p))
    return _UNDERSCORE_RUN.sub("_", joined).strip("_")


def compose(original: OriginalFilenameInfo, fields: MetadataFields) -> str:
    """Compose "{stem}.{extension}", or the fallback name if the stem is blank"""
    stem = compose_stem(fields)
    if not stem.strip():
        return original.fallback_filename
    return f"{stem}.{original.extension_hint}"


def compose_for_upload(filename: str, fields: MetadataFields) -> str:
    return compose(OriginalFilenameInfo.from_filename(filename), fields)


def compose_for_document(document: DocumentSummary, fields: MetadataFields) -> str:
    """Composed name for an existing document being renamed"""
    return compose(OriginalFilenameInfo.from_filename(document.display_name), fields)

"""
Unit tests for mcp_documents.core.filenames

Tests filename composition from metadata without any I/O.
"""
import pytest

from mcp_documents.core.domain import (
    DocumentMetadata,
    DocumentSummary,
    MetadataFields,
    OriginalFilenameInfo,
)
from mcp_documents.core.filenames import (
    WINTON_TOKEN,
    compose,
    compose_for_document,
    compose_for_upload,
    compose_stem,
    date_part,
)


INVOICE_FIELDS = MetadataFields(
    year="2024",
    month="3",
    day="5",
    company="Acme",
    holder="Jane",
    document_type="Invoice",
    purpose="Renewal",
    account_number="123",
    tax_type="",
    winton_disclosure=False,
)


class TestDatePart:
    """Test the date prefix."""

    def test_full_date_is_padded(self):
        assert date_part(MetadataFields(year="2024", month="3", day="5")) == "20240305"

    def test_two_digit_month_kept(self):
        assert date_part(MetadataFields(year="2024", month="11")) == "202411"

    def test_blank_month_adds_no_placeholder(self):
        """A missing month is skipped, not written as 00."""
        assert date_part(MetadataFields(year="2024", month="", day="7")) == "202407"

    def test_whitespace_counts_as_blank(self):
        assert date_part(MetadataFields(year="  ", month="3")) == "03"

    def test_all_blank(self):
        assert date_part(MetadataFields()) == ""


class TestCompose:
    """Test the three naming modes and the fallback."""

    def test_default_mode_end_to_end(self):
        assert compose_for_upload("scan.jpg", INVOICE_FIELDS) == "20240305_Jane_Acme_Invoice_Renewal_123.jpg"

    def test_tax_mode_prefixes_date(self):
        fields = INVOICE_FIELDS.with_field("tax_type", "USTax")
        filename = compose_for_upload("scan.jpg", fields)
        assert filename.startswith("USTax20240305_Jane_Acme_Invoice_Renewal_123")
        assert filename.endswith(".jpg")

    def test_tax_mode_without_date(self):
        fields = MetadataFields(tax_type="K1", holder="Jane")
        assert compose_stem(fields) == "K1_Jane"

    def test_winton_mode(self):
        fields = INVOICE_FIELDS.with_field("winton_disclosure", True)
        assert compose_for_upload("scan.pdf", fields) == f"20240305_{WINTON_TOKEN}_Jane_Acme_123.pdf"

    def test_winton_takes_priority_over_tax(self):
        fields = INVOICE_FIELDS.with_field("tax_type", "USTax").with_field("winton_disclosure", True)
        stem = compose_stem(fields)
        assert WINTON_TOKEN in stem
        assert "USTax" not in stem.split("_")
        assert "USTax" not in stem

    def test_winton_ignores_type_and_purpose(self):
        fields = MetadataFields(winton_disclosure=True, document_type="Invoice", purpose="Renewal")
        assert compose_stem(fields) == WINTON_TOKEN

    def test_blank_fields_return_fallback(self):
        original = OriginalFilenameInfo.from_filename("IMG_0042.HEIC")
        assert compose(original, MetadataFields()) == "IMG_0042.HEIC"

    def test_whitespace_only_fields_return_fallback(self):
        fields = MetadataFields(company="   ", holder=" ")
        assert compose_for_upload("scan.jpg", fields) == "scan.jpg"

    def test_flags_other_than_winton_do_not_name(self):
        fields = MetadataFields(ustax_opening=True, ustax_account_closing=True)
        assert compose_for_upload("scan.jpg", fields) == "scan.jpg"

    def test_skips_blank_middle_fields(self):
        fields = MetadataFields(year="2023", company="Acme", account_number="9")
        assert compose_for_upload("a.pdf", fields) == "2023_Acme_9.pdf"

    @pytest.mark.parametrize("fields", [
        MetadataFields(holder="_Jane_", company="Acme"),
        MetadataFields(company="Acme__Corp", purpose="_"),
        MetadataFields(year="2024", holder="__", account_number="_9_"),
        MetadataFields(winton_disclosure=True, holder="_", company="_"),
    ])
    def test_no_double_or_edge_underscores(self, fields):
        stem = compose_stem(fields)
        assert "__" not in stem
        assert not stem.startswith("_")
        assert not stem.endswith("_")

    def test_no_extension_defaults_to_pdf(self):
        assert compose_for_upload("scan", MetadataFields(company="Acme")) == "Acme.pdf"

    def test_extension_from_last_dot(self):
        assert compose_for_upload("archive.tar.gz", MetadataFields(company="Acme")) == "Acme.gz"

    def test_extension_case_preserved(self):
        assert compose_for_upload("scan.JPG", MetadataFields(company="Acme")) == "Acme.JPG"


class TestComposeForDocument:
    """Test renaming an existing document."""

    def test_uses_original_filename(self):
        document = DocumentSummary(id="d1", filename="stored-123", original_filename="bill.png")
        assert compose_for_document(document, MetadataFields(company="Acme")) == "Acme.png"

    def test_falls_back_to_filename(self):
        document = DocumentSummary(id="d1", filename="bill.docx")
        assert compose_for_document(document, MetadataFields(company="Acme")) == "Acme.docx"

    def test_blank_fields_keep_name(self):
        document = DocumentSummary(id="d1", filename="stored", original_filename="bill.png")
        assert compose_for_document(document, MetadataFields()) == "bill.png"

    def test_prefilled_fields_reproduce_name(self):
        """Editing without changes composes the same name as the upload."""
        metadata = DocumentMetadata(
            year="2024", month="3", day="5", company="Acme", holder="Jane",
            document_type="Invoice", purpose="Renewal", account_number="123"
        )
        document = DocumentSummary(
            id="d1",
            filename="x",
            original_filename="20240305_Jane_Acme_Invoice_Renewal_123.jpg",
            metadata=metadata
        )
        fields = MetadataFields.from_metadata(document.metadata)
        assert compose_for_document(document, fields) == document.original_filename


class TestMetadataFields:
    """Test the input-layer caps and payloads."""

    def test_date_caps(self):
        fields = MetadataFields().with_field("year", "20245").with_field("month", "123").with_field("day", "001")
        assert (fields.year, fields.month, fields.day) == ("2024", "12", "00")

    def test_from_dict_uses_api_names(self):
        fields = MetadataFields.from_dict({
            "documentType": "Invoice",
            "accountNumber": 42,
            "wintonDisclosure": True,
            "unknown": "ignored",
        })
        assert fields.document_type == "Invoice"
        assert fields.account_number == "42"
        assert fields.winton_disclosure is True

    def test_upload_payload_omits_blanks(self):
        payload = MetadataFields(company="Acme", holder=" ", ustax_opening=True).to_upload_payload()
        assert payload == {"company": "Acme", "ustaxOpening": True}

    def test_update_payload_sends_nulls(self):
        payload = MetadataFields(company="Acme").to_update_payload()
        assert payload["company"] == "Acme"
        assert payload["holder"] is None
        assert payload["wintonDisclosure"] is False

    def test_payloads_treat_none_as_blank(self):
        fields = MetadataFields(company=None, year="2024", winton_disclosure=None)
        assert compose_for_upload("scan.pdf", fields) == "2024.pdf"
        assert fields.to_upload_payload() == {"year": "2024"}

        payload = fields.to_update_payload()
        assert payload["company"] is None
        assert payload["year"] == "2024"
        assert payload["wintonDisclosure"] is False

"""
MCP Tool Definitions

Single source of truth for tool schemas and descriptions.
Used by both stdio and HTTP/SSE servers.
"""
from ...core.domain import TAX_TYPES

# Metadata accepted by upload/update/preview, keyed by API field name
METADATA_SCHEMA = {
    "type": "object",
    "description": "Document metadata. Blank fields are left out of the filename.",
    "properties": {
        "year": {"type": "string", "description": "4-digit year"},
        "month": {"type": "string", "description": "Month (1-12), zero-padded in the filename"},
        "day": {"type": "string", "description": "Day (1-31), zero-padded in the filename"},
        "company": {"type": "string"},
        "holder": {"type": "string"},
        "documentType": {"type": "string"},
        "purpose": {"type": "string"},
        "accountNumber": {"type": "string"},
        "taxType": {"type": "string", "enum": TAX_TYPES},
        "wintonDisclosure": {"type": "boolean"},
        "ustaxAccountClosing": {"type": "boolean"},
        "ustaxOpening": {"type": "boolean"},
        "notes": {"type": "string"},
    }
}

# Tool schemas for MCP
TOOL_SCHEMAS = {
    "list_documents": {
        "name": "list_documents",
        "description": """List documents with facet counts. Filters apply to the loaded pages.

list_documents() → first page + company/holder/year/type facets
list_documents(pages=3, filters={"company": "Acme", "year": "2024"})
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "pages": {
                    "type": "integer",
                    "description": "Number of pages to load before filtering",
                    "default": 1
                },
                "per_page": {
                    "type": "integer",
                    "description": "Documents per page",
                    "default": 20
                },
                "filters": {
                    "type": "object",
                    "description": "One value per facet: company, holder, year, docType",
                    "additionalProperties": {"type": "string"}
                }
            }
        }
    },
    "get_document": {
        "name": "get_document",
        "description": "Get one document's metadata and version history.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "document_id": {"type": "string", "description": "Document ID"}
            },
            "required": ["document_id"]
        }
    },
    "search_documents": {
        "name": "search_documents",
        "description": """Search documents (hybrid full-text). Returns hits and facet buckets.

search_documents("insurance renewal") → hits + facets
search_documents("statement", filters={"companies": "Acme", "years": "2024"})
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search text"},
                "filters": {
                    "type": "object",
                    "description": "One value per facet: companies, holders, documentTypes, taxTypes, years, fileTypes",
                    "additionalProperties": {"type": "string"}
                },
                "page": {"type": "integer", "default": 1},
                "size": {"type": "integer", "default": 20}
            },
            "required": ["query"]
        }
    },
    "upload_document": {
        "name": "upload_document",
        "description": """Upload a local file. It is renamed from its metadata before upload.

upload_document("/tmp/scan.jpg", {"year": "2024", "month": "3", "company": "Acme"})
→ uploaded as 202403_Acme.jpg
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "file_path": {"type": "string", "description": "Path to local file"},
                "metadata": METADATA_SCHEMA,
                "mime_type": {"type": "string", "description": "Override guessed MIME type"}
            },
            "required": ["file_path"]
        }
    },
    "update_document": {
        "name": "update_document",
        "description": "Save metadata for a document and rename it to match. Omitted fields are cleared.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "document_id": {"type": "string", "description": "Document ID"},
                "metadata": METADATA_SCHEMA
            },
            "required": ["document_id", "metadata"]
        }
    },
    "delete_document": {
        "name": "delete_document",
        "description": "Delete a document.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "document_id": {"type": "string", "description": "Document ID"}
            },
            "required": ["document_id"]
        }
    },
    "download_document": {
        "name": "download_document",
        "description": "Download a document to disk. Returns path for Read.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "document_id": {"type": "string", "description": "Document ID"},
                "dest_dir": {"type": "string", "description": "Target directory (default: DOWNLOAD_DIR)"}
            },
            "required": ["document_id"]
        }
    },
    "preview_filename": {
        "name": "preview_filename",
        "description": """Show the filename metadata would produce, without saving.

preview_filename(filename="scan.jpg", metadata={...}) → upload name
preview_filename(document_id="abc", metadata={...}) → rename on edit
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "filename": {"type": "string", "description": "Original filename (upload)"},
                "document_id": {"type": "string", "description": "Existing document (edit)"},
                "metadata": METADATA_SCHEMA
            }
        }
    },
    "list_metadata_options": {
        "name": "list_metadata_options",
        "description": "List known companies, holders and document types with document counts.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "match": {"type": "string", "description": "Only names containing this text (case-insensitive)"}
            }
        }
    },
    "check_status": {
        "name": "check_status",
        "description": "Check the connection to the document service.",
        "inputSchema": {"type": "object", "properties": {}}
    },
}

"""Core constants used across DOMS ingest modules.

This module centralizes protocol identifiers and defaults.
Relation identifiers must match the existing repository exactly.
"""

from __future__ import annotations

HAS_PART_RELATION = "info:fedora/fedora-system:def/relations-external#hasPart"
HAS_FILE_RELATION = "http://doms.statsbiblioteket.dk/relations/default/0/1/#hasFile"
IS_PART_OF_COLLECTION_RELATION = (
    "http://doms.statsbiblioteket.dk/relations/default/0/1/#isPartOfCollection"
)
FEDORA_URI_PREFIX = "info:fedora/"
PATH_IDENTIFIER_PREFIX = "path:"
CONTENTS_ATTRIBUTE_SUFFIX = "/contents"
DATASTREAM_WRITE_COMMENT = "Added by ingester."
DATASTREAM_MIME_TYPE = "text/xml"
CHECKSUM_TYPE = "MD5"
DEFAULT_FEDORA_URL = "http://localhost:7880/fedora"
DEFAULT_FEDORA_USERNAME = "fedoraAdmin"
DEFAULT_PID_NAMESPACE = "uuid"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0
DEFAULT_LOG_LEVEL = "info"
NEWSPAPER_COLLECTION = "doms:Newspaper_Collection"
NEWSPAPER_DATA_FILE_SUFFIXES = (".jp2",)
NEWSPAPER_CHECKSUM_SUFFIX = ".md5"
SUPPORTED_LOG_LEVELS = ("debug", "info", "warning", "error")

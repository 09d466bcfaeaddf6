"""Fedora 3 REST client for the DOMS repository.

This module implements the object store contract over HTTP using
requests. HTTP failures are mapped onto typed backend errors.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Sequence
from xml.etree import ElementTree

import requests

from core.config import DomsConfig
from core.constants import (
    CHECKSUM_TYPE,
    DATASTREAM_MIME_TYPE,
    FEDORA_URI_PREFIX,
    IS_PART_OF_COLLECTION_RELATION,
)
from core.errors import (
    BackendInvalidCredsError,
    BackendInvalidResourceError,
    BackendMethodFailedError,
    ChecksumMismatchError,
    DomsBackendError,
    PIDGeneratorError,
)
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

_FOXML_NS = "info:fedora/fedora-system:def/foxml#"
_OAI_DC_NS = "http://www.openarchives.org/OAI/2.0/oai_dc/"
_DC_NS = "http://purl.org/dc/elements/1.1/"
_RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
_DOMS_RELATIONS_NS = "http://doms.statsbiblioteket.dk/relations/default/0/1/#"
_FOXML_FORMAT = "info:fedora/fedora-system:FOXML-1.1"
_NTRIPLE_PATTERN = re.compile(r"^<([^>]*)>\s+<([^>]*)>\s+<([^>]*)>\s*\.\s*$")

ElementTree.register_namespace("foxml", _FOXML_NS)
ElementTree.register_namespace("oai_dc", _OAI_DC_NS)
ElementTree.register_namespace("dc", _DC_NS)
ElementTree.register_namespace("rdf", _RDF_NS)
ElementTree.register_namespace("doms", _DOMS_RELATIONS_NS)


class FedoraRestClient:
    """Object store backed by a Fedora 3 REST endpoint."""

    def __init__(self, config: DomsConfig, session: requests.Session | None = None) -> None:
        self._base_url = config.fedora_url.rstrip("/")
        self._pid_generator_url = config.pid_generator_url
        self._pid_namespace = config.pid_namespace
        self._timeout = config.request_timeout
        self._session = session or requests.Session()
        self._session.auth = (config.username, config.password)

    def new_empty_object(
        self,
        old_ids: Sequence[str],
        collections: Sequence[str],
        log_message: str,
    ) -> str:
        """Create an empty object carrying DC identifiers and collections.

        Args:
            old_ids: Alternate identifiers recorded as ``dc:identifier``.
            collections: Collection pids linked through ``isPartOfCollection``.
            log_message: Audit comment stored with the ingest.

        Returns:
            Pid of the created object.

        Raises:
            PIDGeneratorError: If no pid could be generated.
            DomsBackendError: If the ingest request fails.
        """
        pid = self._generate_pid()
        foxml = build_foxml(pid, old_ids, collections)
        self._request(
            "POST",
            f"/objects/{pid}",
            params={"format": _FOXML_FORMAT, "logMessage": log_message},
            data=foxml,
            headers={"Content-Type": "text/xml; charset=utf-8"},
            context=f"create object {pid}",
        )
        _LOGGER.debug("fedora_object_ingested", pid=pid, old_ids=list(old_ids))
        return pid

    def modify_datastream_by_value(
        self,
        pid: str,
        datastream: str,
        content: str,
        alternative_ids: Sequence[str],
        comment: str,
        checksum: str | None = None,
    ) -> None:
        """Add or replace a managed datastream with textual content.

        Raises:
            ChecksumMismatchError: If Fedora rejects the supplied checksum.
            DomsBackendError: If the request fails for any other reason.
        """
        params: dict[str, str] = {
            "dsLabel": datastream,
            "mimeType": DATASTREAM_MIME_TYPE,
            "altIDs": " ".join(alternative_ids),
            "logMessage": comment,
        }
        if checksum is not None:
            params["checksumType"] = CHECKSUM_TYPE
            params["checksum"] = checksum
        path = f"/objects/{pid}/datastreams/{datastream}"
        if self._datastream_exists(pid, datastream):
            method = "PUT"
        else:
            method = "POST"
            params["controlGroup"] = "M"
        self._request(
            method,
            path,
            params=params,
            data=content.encode("utf-8"),
            headers={"Content-Type": f"{DATASTREAM_MIME_TYPE}; charset=utf-8"},
            context=f"write datastream {datastream} on {pid}",
        )

    def add_relation(self, pid: str, predicate: str, object_pid: str, comment: str) -> None:
        """Add a resource relation between two objects."""
        self._request(
            "POST",
            f"/objects/{pid}/relationships/new",
            params={
                "subject": _fedora_uri(pid),
                "predicate": predicate,
                "object": _fedora_uri(object_pid),
                "isLiteral": "false",
            },
            context=f"add relation {predicate} from {pid} to {object_pid}",
        )
        _LOGGER.debug("fedora_relation_added", pid=pid, predicate=predicate, comment=comment)

    def find_objects_by_identifier(self, identifier: str) -> list[str]:
        """Return pids of objects whose DC identifiers match exactly.

        Fedora pages search results; the listSession token is followed
        until a page arrives without one.
        """
        query_params = {
            "query": f"identifier='{identifier}'",
            "pid": "true",
            "resultFormat": "xml",
            "maxResults": "1000",
        }
        params = query_params
        pids: list[str] = []
        while True:
            response = self._request(
                "GET",
                "/objects",
                params=params,
                context=f"find objects with identifier {identifier}",
            )
            root = _parse_xml(response.text, context=f"search for {identifier}")
            pids.extend(_pid_elements(root))
            token = _session_token(root)
            if token is None:
                return pids
            params = {**query_params, "sessionToken": token}

    def get_related_objects(self, pid: str, predicate: str) -> list[str]:
        """Return related object pids in the order Fedora reports them."""
        response = self._request(
            "GET",
            f"/objects/{pid}/relationships",
            params={"subject": _fedora_uri(pid), "predicate": predicate, "format": "n-triples"},
            context=f"read relations {predicate} of {pid}",
        )
        related: list[str] = []
        for line in response.text.splitlines():
            match = _NTRIPLE_PATTERN.match(line.strip())
            if match and match.group(2) == predicate:
                related.append(match.group(3).removeprefix(FEDORA_URI_PREFIX))
        return related

    def purge_object(self, pid: str, comment: str) -> None:
        """Permanently delete an object."""
        self._request(
            "DELETE",
            f"/objects/{pid}",
            params={"logMessage": comment},
            context=f"purge object {pid}",
        )

    def _datastream_exists(self, pid: str, datastream: str) -> bool:
        try:
            self._request(
                "GET",
                f"/objects/{pid}/datastreams/{datastream}",
                params={"format": "xml"},
                context=f"read datastream {datastream} on {pid}",
            )
        except BackendInvalidResourceError:
            return False
        return True

    def _generate_pid(self) -> str:
        try:
            if self._pid_generator_url:
                return self._generate_external_pid(self._pid_generator_url)
            return self._generate_fedora_pid()
        except (BackendInvalidCredsError, PIDGeneratorError):
            raise
        except DomsBackendError as error:
            raise PIDGeneratorError(
                f"Failed to generate a new pid: {error}. "
                "Check the PID generator service and retry ingest."
            ) from error

    def _generate_external_pid(self, generator_url: str) -> str:
        response = self._request(
            "GET",
            f"{generator_url.rstrip('/')}/rest/pids/generatePid",
            context="generate pid",
            absolute=True,
        )
        pid = response.text.strip()
        if not pid:
            raise PIDGeneratorError("PID generator returned an empty response.")
        return pid

    def _generate_fedora_pid(self) -> str:
        response = self._request(
            "POST",
            "/objects/nextPID",
            params={"namespace": self._pid_namespace, "format": "xml"},
            context="generate pid",
        )
        pids = _parse_pid_elements(response.text, context="nextPID")
        if not pids:
            raise PIDGeneratorError("Fedora nextPID returned no pid.")
        return pids[0]

    def _request(
        self,
        method: str,
        path: str,
        context: str,
        params: Mapping[str, str] | None = None,
        data: Any = None,
        headers: Mapping[str, str] | None = None,
        absolute: bool = False,
    ) -> requests.Response:
        """Send one request and map failures onto backend errors.

        Args:
            method: HTTP method.
            path: Path below the Fedora base URL, or a full URL if ``absolute``.
            context: Human-readable description used in error messages.
            params: Query parameters.
            data: Request body.
            headers: Extra request headers.
            absolute: Treat ``path`` as a complete URL.

        Returns:
            Successful response.

        Raises:
            DomsBackendError: Typed subclass matching the failure.
        """
        url = path if absolute else f"{self._base_url}{path}"
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                data=data,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.exceptions.Timeout as error:
            raise BackendMethodFailedError(
                f"Failed to {context}: no response within {self._timeout} seconds."
            ) from error
        except requests.exceptions.RequestException as error:
            raise BackendMethodFailedError(
                f"Failed to {context}: {error}. Check that Fedora is reachable at {self._base_url}."
            ) from error
        _raise_for_status(response, context)
        return response


def build_foxml(pid: str, old_ids: Sequence[str], collections: Sequence[str]) -> bytes:
    """Render a FOXML 1.1 document for a new empty object.

    Args:
        pid: Object pid.
        old_ids: Alternate identifiers written after the pid as ``dc:identifier``.
        collections: Collection pids for RELS-EXT.

    Returns:
        UTF-8 encoded FOXML document.
    """
    root = ElementTree.Element(
        _qname(_FOXML_NS, "digitalObject"), {"VERSION": "1.1", "PID": pid}
    )
    properties = ElementTree.SubElement(root, _qname(_FOXML_NS, "objectProperties"))
    _add_property(properties, "info:fedora/fedora-system:def/model#state", "Inactive")
    label = old_ids[0] if old_ids else pid
    _add_property(properties, "info:fedora/fedora-system:def/model#label", label)

    dc_content = _add_inline_datastream(
        root, "DC", "Dublin Core Record", "http://www.openarchives.org/OAI/2.0/oai_dc/"
    )
    dc_root = ElementTree.SubElement(dc_content, _qname(_OAI_DC_NS, "dc"))
    for identifier in (pid, *old_ids):
        ElementTree.SubElement(dc_root, _qname(_DC_NS, "identifier")).text = identifier

    rels_content = _add_inline_datastream(
        root, "RELS-EXT", "Relationships", "info:fedora/fedora-system:FedoraRELSExt-1.0"
    )
    rdf_root = ElementTree.SubElement(rels_content, _qname(_RDF_NS, "RDF"))
    description = ElementTree.SubElement(
        rdf_root, _qname(_RDF_NS, "Description"), {_qname(_RDF_NS, "about"): _fedora_uri(pid)}
    )
    collection_tag = IS_PART_OF_COLLECTION_RELATION.removeprefix(_DOMS_RELATIONS_NS)
    for collection in collections:
        ElementTree.SubElement(
            description,
            _qname(_DOMS_RELATIONS_NS, collection_tag),
            {_qname(_RDF_NS, "resource"): _fedora_uri(collection)},
        )
    return ElementTree.tostring(root, encoding="utf-8", xml_declaration=True)


def _add_property(parent: ElementTree.Element, name: str, value: str) -> None:
    ElementTree.SubElement(parent, _qname(_FOXML_NS, "property"), {"NAME": name, "VALUE": value})


def _add_inline_datastream(
    root: ElementTree.Element,
    datastream_id: str,
    label: str,
    format_uri: str,
) -> ElementTree.Element:
    datastream = ElementTree.SubElement(
        root,
        _qname(_FOXML_NS, "datastream"),
        {"ID": datastream_id, "STATE": "A", "CONTROL_GROUP": "X", "VERSIONABLE": "true"},
    )
    version = ElementTree.SubElement(
        datastream,
        _qname(_FOXML_NS, "datastreamVersion"),
        {
            "ID": f"{datastream_id}1.0",
            "LABEL": label,
            "MIMETYPE": DATASTREAM_MIME_TYPE,
            "FORMAT_URI": format_uri,
        },
    )
    return ElementTree.SubElement(version, _qname(_FOXML_NS, "xmlContent"))


def _raise_for_status(response: requests.Response, context: str) -> None:
    """Raise the backend error matching an unsuccessful response."""
    status = response.status_code
    if status < 400:
        return
    body = response.text or ""
    message = f"Failed to {context}: HTTP {status} {body[:200].strip()}"
    if status == 401:
        raise BackendInvalidCredsError(
            f"{message}. Check DOMS_USERNAME and DOMS_PASSWORD."
        )
    lowered = body.lower()
    if "checksum" in lowered and "mismatch" in lowered:
        raise ChecksumMismatchError(message)
    if status in (403, 404):
        raise BackendInvalidResourceError(message)
    raise BackendMethodFailedError(message)


def _parse_pid_elements(payload: str, context: str) -> list[str]:
    return _pid_elements(_parse_xml(payload, context))


def _parse_xml(payload: str, context: str) -> ElementTree.Element:
    try:
        return ElementTree.fromstring(payload)
    except ElementTree.ParseError as error:
        raise BackendMethodFailedError(
            f"Failed to parse Fedora response for {context}: {error}."
        ) from error


def _local_name(element: ElementTree.Element) -> str:
    return element.tag.rsplit("}", 1)[-1]


def _pid_elements(root: ElementTree.Element) -> list[str]:
    return [
        element.text.strip()
        for element in root.iter()
        if _local_name(element) == "pid" and element.text
    ]


def _session_token(root: ElementTree.Element) -> str | None:
    for element in root.iter():
        if _local_name(element) == "token" and element.text and element.text.strip():
            return element.text.strip()
    return None


def _fedora_uri(pid: str) -> str:
    if pid.startswith(FEDORA_URI_PREFIX):
        return pid
    return f"{FEDORA_URI_PREFIX}{pid}"


def _qname(namespace: str, tag: str) -> str:
    return f"{{{namespace}}}{tag}"

"""PubChem synonym lookup for a single SMILES identifier."""

from typing import Any, List, Optional
from urllib.parse import quote
import re

import requests

from .config import PUBCHEM_SMILES_BASE_URL, DEFAULT_TIMEOUT
from .logger import StructuredLogger, get_logger
from .outcome import LookupOutcome
from .retry import is_retryable_status

# Synonyms containing any of these are line notations or registry labels,
# not names a person would recognise.
EXCLUDED_SYNONYM_PATTERN = re.compile(r"inchi|inchikey|iupac|smiles|cas", re.IGNORECASE)

# Bare registry numbers: PubChem CIDs ("CID 2244") and CAS numbers ("50-78-2").
REGISTRY_ID_PATTERN = re.compile(r"^(?:CID[\s:]*\d+|\d{2,7}-\d{2}-\d)$", re.IGNORECASE)


def synonyms_url(base_url: str, identifier: str) -> str:
    return f"{base_url.rstrip('/')}/{quote(identifier, safe='')}/synonyms/JSON"


def extract_synonyms(payload: Any) -> List[str]:
    """
    Pull InformationList.Information[0].Synonym out of a response body.

    Any missing or oddly shaped level means there are no candidates.
    """
    if not isinstance(payload, dict):
        return []
    info_list = payload.get("InformationList")
    if not isinstance(info_list, dict):
        return []
    information = info_list.get("Information")
    if not isinstance(information, list) or not information:
        return []
    first = information[0]
    if not isinstance(first, dict):
        return []
    synonyms = first.get("Synonym")
    if not isinstance(synonyms, list):
        return []
    return synonyms


def select_synonym(candidates: List[Any]) -> Optional[str]:
    """
    Choose the display name from candidate synonyms.

    Returns the first candidate that does not look like an identifier
    notation; if every candidate does, the first candidate; None if there
    are no usable candidates.
    """
    usable = [c.strip() for c in candidates if isinstance(c, str) and c.strip()]
    if not usable:
        return None
    for c in usable:
        if EXCLUDED_SYNONYM_PATTERN.search(c) or REGISTRY_ID_PATTERN.match(c):
            continue
        return c
    return usable[0]


class NameLookupClient:
    """Performs one synonym request per call and classifies the result."""

    def __init__(
        self,
        base_url: str = PUBCHEM_SMILES_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logger or get_logger()

    def lookup(self, identifier: str) -> LookupOutcome:
        """
        Query the synonyms endpoint once.

        Never raises for HTTP or network problems: timeouts, connection
        errors and retryable status codes come back as transient outcomes,
        everything else that is not a usable name as permanent.
        """
        url = synonyms_url(self.base_url, identifier)
        self.logger.record_lookup_attempt()

        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout:
            self.logger.record_lookup_failure("Timeout")
            self.logger.warning("Name lookup timed out", identifier=identifier)
            return LookupOutcome.transient("request timed out")
        except requests.exceptions.ConnectionError as e:
            self.logger.record_lookup_failure("ConnectionError")
            self.logger.warning("Name lookup connection error", identifier=identifier, error=str(e))
            return LookupOutcome.transient(f"connection error: {e}")
        except requests.exceptions.RequestException as e:
            self.logger.record_lookup_failure("RequestException")
            self.logger.warning("Name lookup request error", identifier=identifier, error=str(e))
            return LookupOutcome.transient(f"request error: {e}")

        status = resp.status_code
        if not 200 <= status < 300:
            self.logger.record_lookup_failure(f"HTTPError_{status}")
            if is_retryable_status(status):
                self.logger.warning("Name lookup failed, retryable", identifier=identifier, status=status)
                return LookupOutcome.transient(f"HTTP {status}", status_code=status)
            self.logger.info("Name lookup failed", identifier=identifier, status=status)
            return LookupOutcome.permanent(f"HTTP {status}", status_code=status)

        try:
            payload = resp.json()
        except ValueError:
            self.logger.record_lookup_failure("InvalidJSON")
            self.logger.warning("Name lookup returned invalid JSON", identifier=identifier, status=status)
            return LookupOutcome.permanent("invalid JSON body", status_code=status)

        name = select_synonym(extract_synonyms(payload))
        if name is None:
            self.logger.record_lookup_failure("NoSynonyms")
            self.logger.info("No synonyms found", identifier=identifier)
            return LookupOutcome.permanent("no synonyms", status_code=status)

        self.logger.record_lookup_success()
        self.logger.debug("Name resolved", identifier=identifier, name=name)
        return LookupOutcome.success(name, status_code=status)

    def close(self) -> None:
        self.session.close()

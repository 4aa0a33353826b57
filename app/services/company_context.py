"""
app/services/company_context.py

Company ID resolution from an ordered list of side-effect-free providers.

A company dashboard can learn which company to show from several places.
Each place is wrapped in a zero-argument provider; :func:`resolve_company_id`
asks them in order and returns the first non-blank answer.

Two orderings are defined:

client storage (browser-style key/value stores)
    URL id → ``selectedCompany`` (local, then session) →
    ``currentCompany`` JSON ``id``/``_id`` → ``selectedCompanyId`` →
    session ``companyId``

HTTP request
    path id → ``X-Company-ID`` header → ``companyId`` query → configured default
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional, Sequence

from stats.fields import Provider, is_present, resolve_first

logger = logging.getLogger(__name__)

COMPANY_HEADER = "X-Company-ID"


def constant(value: Optional[str]) -> Provider:
    """Provider returning a fixed value."""
    return lambda: value


def storage_key(storage: Mapping[str, Any], name: str) -> Provider:
    """Provider reading one key from a key/value store."""

    def _read() -> Optional[str]:
        value = storage.get(name)
        return str(value) if is_present(value) else None

    return _read


def json_storage_id(storage: Mapping[str, Any], name: str) -> Provider:
    """
    Provider reading ``id`` (else ``_id``) from a JSON object stored under *name*.

    Malformed JSON resolves to ``None`` rather than raising.
    """

    def _read() -> Optional[str]:
        raw = storage.get(name)
        if isinstance(raw, Mapping):
            document: Any = raw
        elif isinstance(raw, str) and raw.strip():
            try:
                document = json.loads(raw)
            except ValueError:
                logger.debug("Ignoring malformed JSON under storage key=%s", name)
                return None
        else:
            return None
        if not isinstance(document, Mapping):
            return None
        value = resolve_first((lambda: document.get("id"), lambda: document.get("_id")))
        return str(value) if value is not None else None

    return _read


def storage_providers(
    *,
    url_company_id: Optional[str],
    local_storage: Mapping[str, Any],
    session_storage: Mapping[str, Any],
) -> list[Provider]:
    return [
        constant(url_company_id),
        storage_key(local_storage, "selectedCompany"),
        storage_key(session_storage, "selectedCompany"),
        json_storage_id(local_storage, "currentCompany"),
        storage_key(local_storage, "selectedCompanyId"),
        storage_key(session_storage, "companyId"),
    ]


def request_providers(
    *,
    path_company_id: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
    query: Optional[Mapping[str, str]] = None,
    default_company_id: Optional[str] = None,
) -> list[Provider]:
    header_source = _case_insensitive(headers or {})
    return [
        constant(path_company_id),
        lambda: header_source.get(COMPANY_HEADER.lower()),
        storage_key(query or {}, "companyId"),
        constant(default_company_id),
    ]


def resolve_company_id(providers: Sequence[Provider]) -> Optional[str]:
    """
    Return the first non-blank company ID, or ``None`` when no provider has one.
    """

    return resolve_first(providers, default=None, accept=is_present)


def _case_insensitive(headers: Mapping[str, str]) -> dict[str, str]:
    return {str(name).lower(): value for name, value in headers.items()}

"""
Lead Extractors
Pull normalized lead fields out of source-specific webhook payloads
"""

from typing import Any, Dict, Optional, Sequence

from switchboard.models.lead import LeadDraft


def _dig(payload: Any, path: str) -> Any:
    value = payload
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _first(payload: Any, paths: Sequence[str]) -> Optional[str]:
    """First non-empty value among the dotted paths, as a stripped string"""
    for path in paths:
        value = _dig(payload, path)
        if value is None or isinstance(value, (dict, list, bool)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


class LeadExtractor:
    """
    Field-path driven extraction.

    Subclasses list where each field may live; the first non-empty
    match wins. Missing fields come back as None, never an error.
    """

    source: str = "webhook"

    contact_id_paths: Sequence[str] = ("contactId", "contact_id", "contact.id")
    phone_paths: Sequence[str] = ("phone", "phoneNumber", "phone_number", "contact.phone")
    first_name_paths: Sequence[str] = ("firstName", "first_name", "contact.firstName")
    last_name_paths: Sequence[str] = ("lastName", "last_name", "contact.lastName")
    email_paths: Sequence[str] = ("email", "contact.email")
    source_paths: Sequence[str] = ("source",)
    timestamp_paths: Sequence[str] = ("timestamp",)

    def extract(self, payload: Dict[str, Any]) -> LeadDraft:
        return LeadDraft(
            contact_id=_first(payload, self.contact_id_paths),
            raw_phone=_first(payload, self.phone_paths),
            first_name=_first(payload, self.first_name_paths),
            last_name=_first(payload, self.last_name_paths),
            email=_first(payload, self.email_paths),
            source=_first(payload, self.source_paths) or self.source,
            submitted_at=self._timestamp(payload),
        )

    def _timestamp(self, payload: Dict[str, Any]) -> Any:
        # Numbers are kept as-is so epoch seconds and milliseconds stay distinguishable
        for path in self.timestamp_paths:
            value = _dig(payload, path)
            if value is not None and value != "":
                return value
        return None


class GoHighLevelExtractor(LeadExtractor):
    """GoHighLevel workflow webhooks: fields at top level or under contact/data wrappers"""

    source = "gohighlevel"

    contact_id_paths = (
        "contactId",
        "contact.id",
        "data.contactId",
        "data.contact.id",
    )
    phone_paths = (
        "phone",
        "phoneNumber",
        "contact.phone",
        "contact.phoneNumber",
        "contact.phoneNumberRaw",
        "data.phone",
        "data.phoneNumber",
        "data.contact.phone",
    )
    first_name_paths = (
        "firstName",
        "contact.firstName",
        "data.firstName",
        "data.contact.firstName",
    )
    last_name_paths = (
        "lastName",
        "contact.lastName",
        "data.lastName",
        "data.contact.lastName",
    )
    email_paths = (
        "email",
        "contact.email",
        "data.email",
        "data.contact.email",
    )
    source_paths = ("source",)
    timestamp_paths = ("timestamp", "data.timestamp")


class GenericExtractor(LeadExtractor):
    """Fallback for unknown sources: common camelCase and snake_case shapes"""

    contact_id_paths = (
        "contactId",
        "contact_id",
        "contact.id",
        "lead.id",
        "data.contactId",
        "data.contact_id",
        "data.contact.id",
    )
    phone_paths = (
        "phone",
        "phoneNumber",
        "phone_number",
        "contact.phone",
        "contact.phoneNumber",
        "contact.phone_number",
        "lead.phone",
        "data.phone",
        "data.phoneNumber",
        "data.phone_number",
        "data.contact.phone",
    )
    first_name_paths = (
        "firstName",
        "first_name",
        "contact.firstName",
        "contact.first_name",
        "lead.firstName",
        "lead.first_name",
        "data.firstName",
        "data.first_name",
        "data.contact.firstName",
    )
    last_name_paths = (
        "lastName",
        "last_name",
        "contact.lastName",
        "contact.last_name",
        "lead.lastName",
        "lead.last_name",
        "data.lastName",
        "data.last_name",
        "data.contact.lastName",
    )
    email_paths = (
        "email",
        "contact.email",
        "lead.email",
        "data.email",
        "data.contact.email",
    )
    source_paths = ("source", "data.source")
    timestamp_paths = (
        "timestamp",
        "submittedAt",
        "submitted_at",
        "data.timestamp",
        "data.submittedAt",
    )

    def __init__(self, source: str = "webhook"):
        self.source = source


_EXTRACTORS: Dict[str, LeadExtractor] = {
    "gohighlevel": GoHighLevelExtractor(),
    "ghl": GoHighLevelExtractor(),
}


def register_extractor(source: str, extractor: LeadExtractor) -> None:
    """Register an extractor for a webhook source path segment"""
    _EXTRACTORS[source.strip().lower()] = extractor


def get_extractor(source: str) -> LeadExtractor:
    """Extractor for a source, falling back to the generic shapes"""
    key = (source or "").strip().lower()
    return _EXTRACTORS.get(key) or GenericExtractor(source=key or "webhook")

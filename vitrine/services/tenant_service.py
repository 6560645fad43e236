from dataclasses import dataclass
from typing import Optional

DEFAULT_TENANT_ID = 1


@dataclass(frozen=True)
class Tenant:
    org_id: int
    flow_id: int


# Zero-value context used when an inbound event cannot be matched to an instance
ANONYMOUS_TENANT = Tenant(org_id=0, flow_id=0)


def parse_tenant_id(raw: Optional[str], default: int = DEFAULT_TENANT_ID) -> int:
    """Parse a tenant header value, falling back to the default tenant."""
    value = (raw or "").strip()
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def tenant_from_headers(org_header: Optional[str], flow_header: Optional[str]) -> Tenant:
    return Tenant(org_id=parse_tenant_id(org_header), flow_id=parse_tenant_id(flow_header))

# =============================================================================
# core/endpoints.py  -  The fixed table of read-only Veeam endpoints
# =============================================================================
#
# Each Endpoint becomes exactly one MCP tool.  The kind decides which input
# model the tool validates against:
#
#   LIST         ListQuery        offset/limit/filter/sort/search/all
#   RESOURCE     ResourceQuery    id
#   SCOPED_LIST  ScopedListQuery  id + the list fields
#
# Adding a tool is a one-line change here; tools/mcp_server.py picks it up.
# =============================================================================

from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote


class EndpointKind(Enum):
    LIST = "list"
    RESOURCE = "resource"
    SCOPED_LIST = "scoped_list"


@dataclass(frozen=True)
class Endpoint:
    """One tool name mapped to one GET path."""

    name: str                          # MCP tool name, e.g. "list_jobs"
    path: str                          # may contain an "{id}" placeholder
    kind: EndpointKind
    title: str

    @property
    def description(self) -> str:
        return f"Read-only GET {self.path}"

    @property
    def needs_id(self) -> bool:
        return self.kind is not EndpointKind.LIST

    def resolve(self, resource_id: str = "") -> str:
        """Fill the {id} placeholder with a percent-encoded id."""
        if not self.needs_id:
            return self.path
        return self.path.replace("{id}", quote(resource_id, safe="!~*'()"))


_LIST = EndpointKind.LIST
_RESOURCE = EndpointKind.RESOURCE
_SCOPED = EndpointKind.SCOPED_LIST

ENDPOINTS: tuple[Endpoint, ...] = (
    # --- Infrastructure ---
    Endpoint("list_tenants", "/api/v3/tenants", _LIST, "List Tenants"),
    Endpoint("list_backup_servers", "/api/v3/infrastructure/backupServers", _LIST, "List Backup Servers"),
    Endpoint("list_jobs", "/api/v3/jobs", _LIST, "List Jobs"),
    # --- Protected VMs ---
    Endpoint("list_protected_vms", "/api/v8/protectedItem/virtualMachines", _LIST, "List Protected VMs"),
    Endpoint("get_vm_details", "/api/v8/protectedItem/virtualMachines/{id}", _RESOURCE, "Get VM Details"),
    # --- Storage ---
    Endpoint("list_repositories", "/api/v3/repositories", _LIST, "List Repositories"),
    Endpoint("get_repository", "/api/v3/repositories/{id}", _RESOURCE, "Get Repository"),
    Endpoint("list_sobr", "/api/v3/backupInfrastructure/sobr", _LIST, "List SOBR"),
    Endpoint("get_sobr", "/api/v3/backupInfrastructure/sobr/{id}", _RESOURCE, "Get SOBR"),
    Endpoint("list_sobr_extents", "/api/v3/backupInfrastructure/sobr/{id}/extents", _SCOPED, "List SOBR Extents"),
    Endpoint("list_object_storage", "/api/v3/objectStorage", _LIST, "List Object Storage"),
    Endpoint("get_object_storage", "/api/v3/objectStorage/{id}", _RESOURCE, "Get Object Storage"),
    Endpoint("list_storage_systems", "/api/v3/storageSystems", _LIST, "List Storage Systems"),
    Endpoint("get_storage_system", "/api/v3/storageSystems/{id}", _RESOURCE, "Get Storage System"),
)

ENDPOINTS_BY_NAME: dict[str, Endpoint] = {endpoint.name: endpoint for endpoint in ENDPOINTS}

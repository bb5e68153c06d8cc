from typing import Final

AZURE_DEVOPS_RESOURCE_ID: Final[str] = "499b84ac-1321-427f-aa17-267ca6975798"
AZURE_DEVOPS_DEFAULT_SCOPE: Final[str] = f"{AZURE_DEVOPS_RESOURCE_ID}/.default"

# Public client registered for Visual Studio; accepted by Azure DevOps.
VISUAL_STUDIO_CLIENT_ID: Final[str] = "872cd9fa-d31f-45e0-9eab-6e460a02d1f1"

AAD_LOGIN_HOST: Final[str] = "https://login.microsoftonline.com"
DEFAULT_AUTHORITY: Final[str] = f"{AAD_LOGIN_HOST}/organizations"

SESSION_TOKEN_SCOPE: Final[str] = "vso.packaging_write vso.drop_write"


def authority_for_tenant(tenant_id: str, host: str = AAD_LOGIN_HOST) -> str:
    """Return the AAD authority for ``tenant_id`` on ``host``.

    Args:
        tenant_id: Directory (tenant) id, e.g. from ``X-VSS-ResourceTenant``.
        host: Login host; a trailing slash is ignored.

    Returns:
        The "<host>/<tenant_id>" authority URL.
    """
    return f"{host.rstrip('/')}/{tenant_id}"

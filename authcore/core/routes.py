"""
routes.py

API 경로별 접근 정책(Route Policy) 선언 테이블.

각 (HTTP 메서드, 경로) 에 대해
- requires_auth  : Access Token 필요 여부
- allowed_roles  : 허용 권한 (비어 있으면 로그인한 모든 계정 허용)
을 한 곳에서 선언하고, authcore.core.deps.authorize 가 요청마다 이 테이블을 조회한다.

테이블에 없는 경로는 로그인 필요로 간주한다.

"""

from dataclasses import dataclass, field

from authcore.models.account import AccountRole


@dataclass(frozen=True)
class RoutePolicy:
    requires_auth: bool = True
    allowed_roles: frozenset[AccountRole] = field(default_factory=frozenset)


PUBLIC = RoutePolicy(requires_auth=False)
AUTHENTICATED = RoutePolicy()
ADMIN_ONLY = RoutePolicy(allowed_roles=frozenset({AccountRole.ADMIN}))


ROUTE_POLICIES: dict[tuple[str, str], RoutePolicy] = {
    ("GET", "/health"): PUBLIC,
    ("GET", "/db-ping"): PUBLIC,

    ("POST", "/auth/register"): PUBLIC,
    ("POST", "/auth/login"): PUBLIC,
    ("POST", "/auth/refresh"): PUBLIC,
    ("POST", "/auth/logout"): AUTHENTICATED,
    ("GET", "/auth/verify-email/{token}"): PUBLIC,
    ("POST", "/auth/resend-verification"): PUBLIC,
    ("POST", "/auth/forgot-password"): PUBLIC,
    ("POST", "/auth/reset-password"): PUBLIC,
    ("GET", "/auth/me"): AUTHENTICATED,

    ("GET", "/users/me"): AUTHENTICATED,
    ("PUT", "/users/me"): AUTHENTICATED,
    ("DELETE", "/users/me"): AUTHENTICATED,

    ("GET", "/admin/accounts"): ADMIN_ONLY,
    ("PATCH", "/admin/accounts/{account_id}/status"): ADMIN_ONLY,
    ("PATCH", "/admin/accounts/{account_id}/role"): ADMIN_ONLY,
    ("DELETE", "/admin/accounts/{account_id}"): ADMIN_ONLY,
    ("DELETE", "/admin/accounts/{account_id}/hard"): ADMIN_ONLY,
}


def policy_for(method: str, path: str) -> RoutePolicy:
    return ROUTE_POLICIES.get((method.upper(), path), AUTHENTICATED)

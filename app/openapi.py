"""
OpenAPI 문서 조립

기본 문서, 공통 components, 리소스별 paths 조각을 하나의 문서로 합칩니다.
"""
import copy
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

SECURITY_COMPONENTS = {
    "securitySchemes": {
        "bearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
}


def merge_openapi(
    base: Dict[str, Any],
    components: Dict[str, Any],
    *path_fragments: Dict[str, Any]
) -> Dict[str, Any]:
    """
    OpenAPI 조각 병합

    - components는 섹션(schemas, securitySchemes ...)별로 합침
    - paths는 순서대로 덮어씀 (같은 경로면 뒤의 조각이 우선)
    """
    document = copy.deepcopy(base)

    merged_components = document.setdefault("components", {})
    for section, entries in components.items():
        merged_components.setdefault(section, {}).update(copy.deepcopy(entries))

    paths = document.setdefault("paths", {})
    for fragment in path_fragments:
        paths.update(copy.deepcopy(fragment))

    return document


def split_paths_by_resource(paths: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """/api/club/info → "club" 처럼 리소스 단위로 paths 분리"""
    fragments: Dict[str, Dict[str, Any]] = {}
    for path, item in paths.items():
        segments = [s for s in path.split("/") if s and s != "api"]
        resource = segments[0] if segments else "root"
        fragments.setdefault(resource, {})[path] = item
    return fragments


def install_openapi(app: FastAPI) -> None:
    """app.openapi를 리소스별 조각 병합 방식으로 교체"""

    def build_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        generated = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        base = {
            "openapi": generated["openapi"],
            "info": generated["info"],
            "servers": [{"url": "/"}],
            "security": [{"bearerAuth": []}],
            "components": generated.get("components", {}),
        }
        fragments = split_paths_by_resource(generated.get("paths", {}))
        app.openapi_schema = merge_openapi(
            base,
            SECURITY_COMPONENTS,
            *[fragments[name] for name in sorted(fragments)]
        )
        return app.openapi_schema

    app.openapi = build_openapi

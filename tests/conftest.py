"""
Pytest configuration and fixtures for Club Membership API tests

Supabase 클라이언트 대신 메모리 테이블 기반 가짜 클라이언트를 사용합니다.
"""

import re
import sys
from itertools import count
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.club.config import ClubSettings
from app.club.dependencies import CallerContext, get_caller, get_club_service
from app.club.service import ClubService
from app.server import create_app


class FakeAPIError(Exception):
    """postgrest APIError 대용"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]]):
        self.data = data
        self.count = len(data)


def _split_columns(columns: str) -> List[str]:
    parts, depth, current = [], 0, ""
    for ch in columns:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += ch
    if current.strip():
        parts.append(current.strip())
    return parts


EMBED_PATTERN = re.compile(r"^(?:(\w+):)?(\w+)\((.*)\)$", re.S)


def _like_regex(pattern: str) -> "re.Pattern":
    """like 패턴(%, _, 백슬래시 이스케이프)을 정규식으로 변환"""
    out, chars = [], iter(pattern)
    for ch in chars:
        if ch == "\\":
            out.append(re.escape(next(chars, "\\")))
        elif ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return re.compile("".join(out), re.S | re.I)


class FakeQuery:
    """supabase-py 쿼리 빌더 흉내 (체이닝 후 execute)"""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self._op = "select"
        self._columns = "*"
        self._payload: Any = None
        self._filters = []
        self._embed_filters: Dict[str, List[tuple]] = {}
        self._order = None
        self._limit: Optional[int] = None

    # ---- 작업 종류 ----
    def select(self, columns: str = "*", count=None):
        self._columns = columns
        return self

    def insert(self, payload):
        self._op = "insert"
        self._payload = payload
        return self

    def update(self, payload):
        self._op = "update"
        self._payload = payload
        return self

    def delete(self):
        self._op = "delete"
        return self

    # ---- 필터 ----
    def eq(self, column, value):
        # "club.members.status" 처럼 점이 있으면 임베드 행에만 적용
        path, _, field = column.rpartition(".")
        if path:
            self._embed_filters.setdefault(path, []).append((field, value))
            return self
        self._filters.append(lambda row: str(row.get(column)) == str(value))
        return self

    def in_(self, column, values):
        allowed = {str(v) for v in values}
        self._filters.append(lambda row: str(row.get(column)) in allowed)
        return self

    def ilike(self, column, pattern):
        regex = _like_regex(pattern)
        self._filters.append(lambda row: regex.fullmatch(row.get(column) or "") is not None)
        return self

    def order(self, column, desc=False):
        self._order = (column, desc)
        return self

    def limit(self, size):
        self._limit = size
        return self

    # ---- 실행 ----
    def execute(self) -> FakeResponse:
        self.db.calls.append((self._op, self.table))
        failure = self.db.failures.get((self._op, self.table))
        if failure:
            raise FakeAPIError(failure)

        rows = self.db.tables.setdefault(self.table, [])

        if self._op == "insert":
            payloads = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for payload in payloads:
                row = {"id": self.db.next_id(self.table), **payload}
                rows.append(row)
                inserted.append(dict(row))
            return FakeResponse(inserted)

        matched = [row for row in rows if all(f(row) for f in self._filters)]

        if self._op == "update":
            for row in matched:
                row.update(self._payload)
            return FakeResponse([dict(row) for row in matched])

        if self._op == "delete":
            self.db.tables[self.table] = [row for row in rows if row not in matched]
            return FakeResponse([dict(row) for row in matched])

        if self._order:
            column, desc = self._order
            matched = sorted(
                matched,
                key=lambda r: (r.get(column) is None, r.get(column)),
                reverse=desc
            )
        if self._limit is not None:
            matched = matched[:self._limit]
        return FakeResponse([
            self.db.expand(row, self._columns, self.table, self._embed_filters)
            for row in matched
        ])


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path, content, file_options=None):
        if self.storage.upload_error:
            raise FakeAPIError(self.storage.upload_error)
        self.storage.objects[f"{self.name}/{path}"] = {
            "content": content,
            "options": file_options or {},
        }
        return {"Key": f"{self.name}/{path}"}

    def get_public_url(self, path):
        return f"https://project.supabase.co/storage/v1/object/public/{self.name}/{path}"

    def remove(self, paths):
        for path in paths:
            self.storage.objects.pop(f"{self.name}/{path}", None)
        return []


class FakeStorage:
    def __init__(self):
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.upload_error: Optional[str] = None

    def from_(self, name):
        return FakeBucket(self, name)


class FakeSupabase:
    """메모리 테이블 기반 Supabase 클라이언트"""

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.failures: Dict[tuple, str] = {}
        self.calls: List[tuple] = []
        self.storage = FakeStorage()
        self._ids = count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def next_id(self, table: str) -> str:
        return f"{table}-{next(self._ids)}"

    def fail(self, op: str, table: str, message: str):
        self.failures[(op, table)] = message

    def seed(self, table: str, *rows: Dict[str, Any]):
        self.tables.setdefault(table, []).extend(dict(r) for r in rows)

    def rows(self, table: str, **filters) -> List[Dict[str, Any]]:
        return [
            r for r in self.tables.get(table, [])
            if all(str(r.get(k)) == str(v) for k, v in filters.items())
        ]

    def expand(
        self,
        row: Dict[str, Any],
        columns: str,
        table: str,
        embed_filters: Optional[Dict[str, List[tuple]]] = None,
        prefix: str = ""
    ) -> Dict[str, Any]:
        """
        alias:table(cols) 임베드와 table(count) 집계를 흉내

        embed_filters는 "club.members" 같은 임베드 경로별 (컬럼, 값) 조건입니다.
        조건은 임베드된 행(집계 포함)에만 적용되고 상위 행은 그대로 둡니다.
        """
        embed_filters = embed_filters or {}
        result = dict(row)
        for part in _split_columns(columns):
            match = EMBED_PATTERN.match(part)
            if not match:
                continue
            alias, target, inner = match.groups()
            alias = alias or target
            path = f"{prefix}{alias}"
            conditions = embed_filters.get(path, [])

            def matches(r):
                return all(str(r.get(k)) == str(v) for k, v in conditions)

            if inner.strip() == "count":
                parent_key = f"{table[:-1]}_id"
                total = len([
                    r for r in self.tables.get(target, [])
                    if str(r.get(parent_key)) == str(row.get("id")) and matches(r)
                ])
                result[alias] = [{"count": total}]
                continue
            foreign_key = f"{target[:-1]}_id"
            related = next(
                (r for r in self.tables.get(target, [])
                 if str(r.get("id")) == str(row.get(foreign_key)) and matches(r)),
                None
            )
            result[alias] = (
                self.expand(related, inner, target, embed_filters, f"{path}.")
                if related else None
            )
        return result


@pytest.fixture
def settings():
    """테스트용 설정 (환경변수와 무관)"""
    return ClubSettings(
        SUPABASE_URL="https://project.supabase.co",
        SUPABASE_KEY="test-key",
        SUPABASE_JWT_SECRET="test-jwt-secret",
        CLUB_THUMBNAIL_BUCKET="club-thumbnails",
        CLUB_THUMBNAIL_MAX_BYTES=1024,
        CLUB_SEARCH_LIMIT=10,
        CLUB_REQUIRE_AUTH=True,
        CLUB_TEST_MODE=False,
    )


@pytest.fixture
def fake_db():
    db = FakeSupabase()
    db.seed(
        "profiles",
        {"id": "u1", "name": "김회장", "email": "president@club.kr", "phone": "010-1111-1111"},
        {"id": "u2", "name": "이임원", "email": "officer@club.kr", "phone": "010-2222-2222"},
        {"id": "u3", "name": "박일반", "email": "member@club.kr", "phone": "010-3333-3333"},
        {"id": "u4", "name": "최졸업", "email": "alumni@club.kr", "phone": "010-4444-4444"},
        {"id": "u9", "name": "정신입", "email": "Newbie@Example.com", "phone": "010-9999-9999"},
    )
    return db


@pytest.fixture
def seeded_club(fake_db):
    """회장/임원/일반/졸업/초대 대기 회원이 있는 동아리 c1"""
    fake_db.seed(
        "clubs",
        {"id": "c1", "name": "사진동아리", "description": "출사", "location": "서울",
         "thumbnail_url": None, "created_by": "u1"},
        {"id": "c2", "name": "등산동아리", "description": None, "location": None,
         "thumbnail_url": "https://cdn/c2.png", "created_by": "u2"},
    )
    fake_db.seed(
        "club_members",
        {"id": "m1", "club_id": "c1", "profile_id": "u1", "role": "president",
         "officer_title": None, "status": "active", "graduate": False, "ord": 1},
        {"id": "m2", "club_id": "c1", "profile_id": "u2", "role": "officer",
         "officer_title": "총무", "status": "active", "graduate": False, "ord": 2},
        {"id": "m3", "club_id": "c1", "profile_id": "u3", "role": "member",
         "officer_title": None, "status": "active", "graduate": False, "ord": 3},
        {"id": "m4", "club_id": "c1", "profile_id": "u4", "role": "member",
         "officer_title": None, "status": "active", "graduate": True, "ord": 4},
        {"id": "m5", "club_id": "c2", "profile_id": "u1", "role": "member",
         "officer_title": None, "status": "pending", "graduate": False, "ord": 2,
         "invited_at": "2026-10-01T00:00:00+00:00"},
        {"id": "m6", "club_id": "c2", "profile_id": "u2", "role": "president",
         "officer_title": None, "status": "active", "graduate": False, "ord": 1},
    )
    fake_db.seed(
        "club_officers",
        {"id": 1, "club_id": "c1", "title": "총무"},
        {"id": 2, "club_id": "c1", "title": "부회장"},
        {"id": 3, "club_id": "c2", "title": "산악대장"},
    )
    return fake_db


@pytest.fixture
def service(fake_db, settings):
    return ClubService(fake_db, settings=settings)


@pytest.fixture
def caller():
    return CallerContext(profile_id="u1")


@pytest.fixture
def client(service, caller):
    """의존성을 가짜 서비스/호출자로 교체한 TestClient"""
    app = create_app()
    app.dependency_overrides[get_club_service] = lambda: service
    app.dependency_overrides[get_caller] = lambda: caller
    return TestClient(app)

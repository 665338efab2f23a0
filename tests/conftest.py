"""Pytest configuration and shared fixtures for orgdiff tests.

Provides:
- FakeGateway: in-memory RemoteGateway with scripted failures and pauses
- Settings with prefetch delays disabled
- Session and service fixtures over the fake gateway
- Retrieved source tree on disk
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from orgdiff.config import PrefetchConfig, Settings
from orgdiff.domain import Category, EnvironmentInfo, Entry
from orgdiff.exceptions import NotFoundError
from orgdiff.service import OrgDiffService
from orgdiff.session import ComparisonSession

ORG_A = "Org A"
ORG_B = "Org B"


# ============================================================================
# Fake Gateway
# ============================================================================


class FakeGateway:
    """In-memory RemoteGateway.

    Data is keyed by alias. ``fail`` scripts an exception for an operation
    (optionally for one category or entry only); ``pause`` makes an operation
    wait on an event before answering, to interleave concurrent requests.
    """

    def __init__(self):
        self.environments: List[EnvironmentInfo] = []
        self.descriptors: Dict[str, Dict[str, Any]] = {}
        self.categories: Dict[str, List[Category]] = {}
        self.entries: Dict[Tuple[str, str], List[Entry]] = {}
        self.contents: Dict[Tuple[str, str, str, Optional[str]], str] = {}
        self.members: Dict[Tuple[str, str, str], List[str]] = {}
        self.calls: List[Tuple[Any, ...]] = []
        self._errors: Dict[Tuple[Any, ...], BaseException] = {}
        self._pauses: Dict[Tuple[Any, ...], asyncio.Event] = {}

    # --- scripting -----------------------------------------------------

    def fail(self, op: str, alias: str, error: BaseException, target: Optional[str] = None) -> None:
        self._errors[(op, alias, target)] = error

    def clear_failures(self) -> None:
        self._errors.clear()

    def clear_pauses(self) -> None:
        self._pauses.clear()

    def pause(self, op: str, alias: str, target: Optional[str] = None) -> asyncio.Event:
        event = asyncio.Event()
        self._pauses[(op, alias, target)] = event
        return event

    def count(self, op: str) -> int:
        return sum(1 for call in self.calls if call[0] == op)

    async def _enter(self, op: str, alias: str, target: Optional[str] = None) -> None:
        self.calls.append((op, alias, target))
        event = self._pauses.get((op, alias, target)) or self._pauses.get((op, alias, None))
        if event is not None:
            await event.wait()
        error = self._errors.get((op, alias, target)) or self._errors.get((op, alias, None))
        if error is not None:
            raise error

    # --- RemoteGateway -------------------------------------------------

    async def list_environments(self) -> List[EnvironmentInfo]:
        await self._enter("list_environments", "*")
        return list(self.environments)

    async def validate_environment(self, alias: str) -> Dict[str, Any]:
        await self._enter("validate_environment", alias)
        return self.descriptors.get(alias, {"alias": alias, "connectedStatus": "Connected"})

    async def list_categories(self, alias: str) -> List[Category]:
        await self._enter("list_categories", alias)
        return list(self.categories.get(alias, []))

    async def list_entries(self, category: str, alias: str) -> List[Entry]:
        await self._enter("list_entries", alias, category)
        return list(self.entries.get((alias, category), []))

    async def fetch_content(
        self, category: str, entry_name: str, alias: str, file_path: Optional[str] = None
    ) -> str:
        await self._enter("fetch_content", alias, entry_name)
        try:
            return self.contents[(alias, category, entry_name, file_path)]
        except KeyError:
            raise NotFoundError(f"Component {entry_name} not found in org {alias}") from None

    async def list_member_files(self, category: str, entry_name: str, alias: str) -> List[str]:
        await self._enter("list_member_files", alias, entry_name)
        try:
            return list(self.members[(alias, category, entry_name)])
        except KeyError:
            raise NotFoundError(f"Component {entry_name} not found in org {alias}") from None


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def fake_gateway() -> FakeGateway:
    """Empty fake gateway."""
    return FakeGateway()


@pytest.fixture
def settings() -> Settings:
    """Default settings with no inter-batch delay."""
    return Settings(prefetch=PrefetchConfig(batch_size=2, batch_delay_s=0.0, max_categories=50))


@pytest.fixture
def session(fake_gateway: FakeGateway, settings: Settings) -> ComparisonSession:
    """Comparison session for Org A vs Org B."""
    return ComparisonSession(fake_gateway, ORG_A, ORG_B, settings)


@pytest.fixture
def service(fake_gateway: FakeGateway, settings: Settings) -> OrgDiffService:
    """Boundary service over the fake gateway."""
    return OrgDiffService(fake_gateway, settings)


@pytest.fixture
def populated_gateway(fake_gateway: FakeGateway) -> FakeGateway:
    """Fake gateway with a small realistic inventory.

    ApexClass:
        Org A: Bar (5), Foo (10)
        Org B: Baz (7), Foo (10)
    LightningComponentBundle:
        both: myCard (member files differ)
    """
    apex = Category(name="ApexClass", directory_name="classes", suffix="cls", meta_file=True)
    lwc = Category(name="LightningComponentBundle", directory_name="lwc", is_composite=True)
    page = Category(name="ApexPage", directory_name="pages", suffix="page")

    fake_gateway.environments = [
        EnvironmentInfo(alias=ORG_A, display_name=ORG_A, id="00DA", is_default=True),
        EnvironmentInfo(alias=ORG_B, display_name=ORG_B, id="00DB"),
    ]
    fake_gateway.categories[ORG_A] = [apex, lwc, page]
    fake_gateway.categories[ORG_B] = [apex, lwc]

    fake_gateway.entries[(ORG_A, "ApexClass")] = [Entry(name="Foo", fingerprint=10), Entry(name="Bar", fingerprint=5)]
    fake_gateway.entries[(ORG_B, "ApexClass")] = [Entry(name="Foo", fingerprint=10), Entry(name="Baz", fingerprint=7)]
    fake_gateway.entries[(ORG_A, "LightningComponentBundle")] = [Entry(name="myCard")]
    fake_gateway.entries[(ORG_B, "LightningComponentBundle")] = [Entry(name="myCard")]

    fake_gateway.contents[(ORG_A, "ApexClass", "Foo", None)] = "public class Foo {}"
    fake_gateway.contents[(ORG_B, "ApexClass", "Foo", None)] = "public class Foo {}"
    fake_gateway.contents[(ORG_A, "ApexClass", "Bar", None)] = "public class Bar {}"

    fake_gateway.members[(ORG_A, "LightningComponentBundle", "myCard")] = ["myCard.html", "myCard.js"]
    fake_gateway.members[(ORG_B, "LightningComponentBundle", "myCard")] = ["myCard.css", "myCard.js"]
    return fake_gateway


# ============================================================================
# Filesystem Fixtures
# ============================================================================


@pytest.fixture
def retrieve_tree(tmp_path: Path) -> Path:
    """Retrieved source tree with a class, a trigger and an LWC bundle.

    Structure:
        tmp_path/retrieve/force-app/main/default/
        ├── classes/Foo.cls, Foo.cls-meta.xml
        ├── triggers/AccountTrigger.trigger
        └── lwc/myCard/myCard.js, myCard.html, __tests__/myCard.test.js
    """
    root = tmp_path / "retrieve"
    base = root / "force-app" / "main" / "default"
    (base / "classes").mkdir(parents=True)
    (base / "classes" / "Foo.cls").write_text("public class Foo {}")
    (base / "classes" / "Foo.cls-meta.xml").write_text("<ApexClass/>")
    (base / "triggers").mkdir()
    (base / "triggers" / "AccountTrigger.trigger").write_text("trigger AccountTrigger on Account (before insert) {}")
    bundle = base / "lwc" / "myCard"
    (bundle / "__tests__").mkdir(parents=True)
    (bundle / "myCard.js").write_text("export default class MyCard {}")
    (bundle / "myCard.html").write_text("<template></template>")
    (bundle / "__tests__" / "myCard.test.js").write_text("test('x', () => {});")
    return root

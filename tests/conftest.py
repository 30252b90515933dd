from __future__ import annotations

from pathlib import Path

import pytest

from sdb_fixtures import SdbFactory, e_format_text, legacy_text, stamp
from sdbxml.dialect import Dialect


@pytest.fixture()
def make_legacy(tmp_path: Path) -> SdbFactory:
    def factory(version: str = "1.1.0", newline: str = "\n", text: str | None = None) -> Path:
        path = tmp_path / f"legacy-{version}.xml"
        dialect = Dialect(version)
        path.write_bytes(stamp(text if text is not None else legacy_text(version), dialect, newline))
        return path

    return factory


@pytest.fixture()
def make_e_format(tmp_path: Path) -> SdbFactory:
    def factory(newline: str = "\n", text: str | None = None) -> Path:
        path = tmp_path / "e-format.xml"
        path.write_bytes(stamp(text if text is not None else e_format_text(), Dialect.E_FORMAT, newline))
        return path

    return factory


@pytest.fixture()
def legacy_path(make_legacy: SdbFactory) -> Path:
    return make_legacy()


@pytest.fixture()
def e_format_path(make_e_format: SdbFactory) -> Path:
    return make_e_format()

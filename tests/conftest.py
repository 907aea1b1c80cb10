import pytest

from tests.helpers import MIB, make_file, utc


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch):
    for name in ("YEARSIZE_THRESHOLD", "YEARSIZE_WORKERS", "YEARSIZE_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def scenario_tree(tmp_path):
    """a.txt 5 MiB (2022-03-01), b.txt 12 MiB (2022-03-15), c.txt 20 MiB (2022-07-01)."""
    root = tmp_path / "scenario"
    root.mkdir()
    make_file(root, "a.txt", 5 * MIB, utc(2022, 3, 1))
    make_file(root, "docs/b.txt", 12 * MIB, utc(2022, 3, 15))
    make_file(root, "docs/deep/er/c.txt", 20 * MIB, utc(2022, 7, 1))
    return root
